"""
Tests for external job search providers

Tests cover:
- Normalizing SerpApi, Adzuna and RemoteOK payloads to ExternalJob
- Upstream failures and malformed payloads
- Missing credentials
"""

import httpx
import pytest
from unittest.mock import patch

from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError
from jobtracker.services.job_sources import (
    AdzunaSource,
    RemoteOKSource,
    SerpApiSource,
    get_job_source,
)

RealAsyncClient = httpx.AsyncClient


def mock_transport(handler):
    transport = httpx.MockTransport(handler)
    return patch(
        "jobtracker.services.job_sources.serpapi.httpx.AsyncClient",
        lambda **kwargs: RealAsyncClient(transport=transport, **kwargs),
    )


def respond(status_code=200, **kwargs):
    return mock_transport(lambda request: httpx.Response(status_code, **kwargs))


class TestRegistry:
    def test_get_job_source(self):
        assert isinstance(get_job_source("serpapi"), SerpApiSource)
        assert isinstance(get_job_source("adzuna"), AdzunaSource)
        assert isinstance(get_job_source("remoteok"), RemoteOKSource)


class TestSerpApi:
    """Google Jobs via SerpApi."""

    @pytest.mark.asyncio
    async def test_parses_jobs_results(self):
        payload = {
            "jobs_results": [
                {
                    "title": "Backend Engineer",
                    "company_name": "Acme",
                    "location": "Austin, TX",
                    "job_id": "abc",
                    "related_links": [{"link": "https://acme.example/apply"}],
                    "detected_extensions": {"schedule_type": "Full-time"},
                },
                {"title": "Data Analyst"},
            ]
        }
        with respond(json=payload):
            jobs = await SerpApiSource(api_key="k").search("engineer")

        first, second = jobs
        assert first.id == "google_jobs-abc"
        assert first.url == "https://acme.example/apply"
        assert first.tags == ["Full-time"]
        assert second.company == "Unknown Company"
        assert second.url.startswith("https://www.google.com/search?q=Data+Analyst")

    @pytest.mark.asyncio
    async def test_falls_back_to_organic_results(self):
        payload = {"organic_results": [{"title": "Job", "link": "https://x.example", "position": 1}]}
        with respond(json=payload):
            jobs = await SerpApiSource(api_key="k").search("job", engine="google")

        assert jobs[0].id == "google-1"
        assert jobs[0].url == "https://x.example"

    @pytest.mark.asyncio
    async def test_sends_engine_and_query(self):
        seen = []

        def handler(request):
            seen.append(request.url.params)
            return httpx.Response(200, json={"jobs_results": []})

        with mock_transport(handler):
            assert await SerpApiSource(api_key="k").search("python") == []

        assert seen[0]["engine"] == "google_jobs"
        assert seen[0]["q"] == "python"

    @pytest.mark.asyncio
    async def test_error_field(self):
        with respond(json={"error": "Invalid API key"}):
            with pytest.raises(UpstreamError, match="Invalid API key"):
                await SerpApiSource(api_key="k").search("python")

    @pytest.mark.asyncio
    async def test_non_200(self):
        with respond(status_code=500, text="oops"):
            with pytest.raises(UpstreamError):
                await SerpApiSource(api_key="k").search("python")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            await SerpApiSource(api_key="").search("python")

    @pytest.mark.asyncio
    async def test_same_title_without_ids_gets_distinct_ids(self):
        payload = {
            "jobs_results": [
                {"title": "Engineer", "company_name": "Acme"},
                {"title": "Engineer", "company_name": "Globex"},
                {"title": "Engineer", "company_name": "Acme"},
            ]
        }
        with respond(json=payload):
            jobs = await SerpApiSource(api_key="k").search("engineer")

        assert len({job.id for job in jobs}) == 3


class TestAdzuna:
    """Adzuna search API."""

    @pytest.mark.asyncio
    async def test_parses_results(self):
        payload = {
            "results": [
                {
                    "id": 99,
                    "title": "Python Developer",
                    "company": {"display_name": "Globex"},
                    "location": {"display_name": "London"},
                    "redirect_url": "https://adzuna.example/99",
                    "category": {"label": "IT Jobs"},
                    "contract_time": "full_time",
                },
                {"title": "no id"},
            ]
        }
        with respond(json=payload):
            jobs = await AdzunaSource(app_id="a", api_key="k").search("python")

        assert len(jobs) == 1
        job = jobs[0]
        assert job.id == "adzuna-99"
        assert job.company == "Globex"
        assert job.location == "London"
        assert job.tags == ["IT Jobs", "full_time"]

    @pytest.mark.asyncio
    async def test_results_not_a_list(self):
        with respond(json={"results": {"oops": 1}}):
            with pytest.raises(MalformedPayloadError):
                await AdzunaSource(app_id="a", api_key="k").search("python")

    @pytest.mark.asyncio
    async def test_http_error(self):
        with respond(status_code=403, json={}):
            with pytest.raises(UpstreamError):
                await AdzunaSource(app_id="a", api_key="k").search("python")

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(ConfigurationError):
            await AdzunaSource(app_id="", api_key="").search("python")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with respond(text="<html>gateway</html>"):
            with pytest.raises(MalformedPayloadError):
                await AdzunaSource(app_id="a", api_key="k").search("python")

    @pytest.mark.asyncio
    async def test_flat_nested_fields_tolerated(self):
        payload = {"results": [{"id": 1, "company": "Acme", "location": "Leeds", "category": "IT"}]}
        with respond(json=payload):
            jobs = await AdzunaSource(app_id="a", api_key="k").search("python")

        assert jobs[0].company == "Unknown Company"
        assert jobs[0].location is None
        assert jobs[0].tags == []


class TestRemoteOK:
    """RemoteOK public feed."""

    @pytest.mark.asyncio
    async def test_skips_legal_notice(self):
        payload = [
            {"legal": "terms"},
            {"id": 5, "company": "Remote Co", "position": "SRE", "tags": ["devops", "aws"], "url": "https://r.example/5"},
            {"id": 6, "position": "Designer"},
        ]
        with respond(json=payload):
            jobs = await RemoteOKSource().search("devops")

        assert [j.id for j in jobs] == ["remoteok-5", "remoteok-6"]
        assert jobs[0].tags == ["devops", "aws"]
        assert jobs[1].location == "Remote"
        assert jobs[1].url == "#"

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        with respond(json={"message": "rate limited"}):
            with pytest.raises(MalformedPayloadError):
                await RemoteOKSource().search("devops")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with respond(text="<html>cloudflare</html>"):
            with pytest.raises(MalformedPayloadError):
                await RemoteOKSource().search("devops")
