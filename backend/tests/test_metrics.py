"""
Tests for Prometheus instrumentation
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from prometheus_client import REGISTRY
from starlette.requests import Request
from starlette.routing import Match

from jobtracker.exceptions import UpstreamError
from jobtracker.middleware import track_upstream
from jobtracker.middleware.metrics import route_template
from jobtracker.schemas import ExternalJob


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestRequestMetrics:
    @pytest.mark.asyncio
    async def test_requests_labelled_by_route_template(self, client, alice, seed):
        application = await seed(alice)
        await client.get(f"/applications/{application.id}", headers=alice.headers)

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 'route="/applications/{application_id}"' in response.text
        assert application.id not in response.text

    @pytest.mark.asyncio
    async def test_router_mounted_post_is_served_and_counted(self, client, alice):
        source = SimpleNamespace(search=AsyncMock(return_value=[
            ExternalJob(id="adzuna-1", company="Globex", position="Engineer", url="https://a.example"),
        ]))
        labels = {"method": "POST", "route": "/functions/adzuna-search", "status": "200"}
        before = sample("tracker_http_requests_total", **labels)

        with patch("jobtracker.api.functions.get_job_source", return_value=source):
            response = await client.post(
                "/functions/adzuna-search", json={"searchTerm": "python"}, headers=alice.headers
            )

        assert response.status_code == 200
        assert response.json()["jobs"][0]["company"] == "Globex"
        assert sample("tracker_http_requests_total", **labels) == before + 1


class TestRouteTemplate:
    def _request(self, routes, path="/applications/abc", route=None):
        scope = {
            "type": "http",
            "method": "GET",
            "path": path,
            "query_string": b"",
            "headers": [],
            "app": SimpleNamespace(routes=routes),
        }
        if route is not None:
            scope["route"] = route
        return Request(scope)

    def test_routes_without_path_are_skipped(self):
        included = SimpleNamespace(matches=lambda scope: (Match.FULL, {}))
        templated = SimpleNamespace(
            path="/applications/{application_id}",
            matches=lambda scope: (Match.FULL, {}),
        )

        assert route_template(self._request([included, templated])) == "/applications/{application_id}"

    def test_unmatched_falls_back_to_raw_path(self):
        included = SimpleNamespace(matches=lambda scope: (Match.FULL, {}))

        assert route_template(self._request([included], path="/nowhere")) == "/nowhere"

    def test_prefers_route_recorded_by_routing(self):
        served = SimpleNamespace(path="/notes/{note_id}")

        assert route_template(self._request([], path="/notes/n1", route=served)) == "/notes/{note_id}"


class TestTrackUpstream:
    @pytest.mark.asyncio
    async def test_counts_ok_and_error(self):
        ok_before = sample("tracker_upstream_calls_total", service="unit-test", outcome="ok")
        error_before = sample("tracker_upstream_calls_total", service="unit-test", outcome="error")

        async with track_upstream("unit-test"):
            pass
        with pytest.raises(UpstreamError):
            async with track_upstream("unit-test"):
                raise UpstreamError("down")

        assert sample("tracker_upstream_calls_total", service="unit-test", outcome="ok") == ok_before + 1
        assert sample("tracker_upstream_calls_total", service="unit-test", outcome="error") == error_before + 1
