"""
SerpApi job search - Google Jobs (or any SerpApi engine)

SerpApi answers with ``jobs_results`` for job engines and ``organic_results``
for plain web engines; both are accepted and normalized.
"""

import httpx
import logging
from typing import List, Optional
from urllib.parse import quote_plus
from jobtracker.services.job_sources.base import BaseJobSource
from jobtracker.schemas import ExternalJob
from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_ENGINE = "google_jobs"


class SerpApiSource(BaseJobSource):
    source = "serpapi"
    base_url = "https://serpapi.com/search.json"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.serpapi_key

    async def search(self, search_term: str, engine: Optional[str] = None) -> List[ExternalJob]:
        engine = engine or DEFAULT_ENGINE
        if not self.api_key:
            logger.error("SERPAPI_KEY is not set")
            raise ConfigurationError("Server configuration error: API key is missing.")

        params = {
            "api_key": self.api_key,
            "engine": engine,
            "q": search_term,
            "location": "United States",
            "gl": "us",
            "hl": "en",
        }
        logger.info(f"SerpApi search for '{search_term}' on engine '{engine}'")

        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(self.base_url, params=params, timeout=self.timeout)
            except httpx.HTTPError as e:
                logger.error(f"SerpApi request failed: {e}")
                raise UpstreamError("SerpApi request failed.") from e

        if response.status_code != 200:
            logger.error(f"SerpApi returned {response.status_code}: {response.text[:500]}")
            raise UpstreamError("SerpApi returned a non-200 status.")

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayloadError("SerpApi returned invalid JSON.") from e
        if not isinstance(data, dict):
            raise MalformedPayloadError("SerpApi returned an unexpected payload.")
        if data.get("error"):
            logger.error(f"SerpApi error: {data['error']}")
            raise UpstreamError(str(data["error"]))

        results = data.get("jobs_results") or data.get("organic_results") or []
        if not isinstance(results, list):
            raise MalformedPayloadError("SerpApi results are not a list.")

        jobs = [
            self._parse_job(engine, r, index)
            for index, r in enumerate(results)
            if isinstance(r, dict)
        ]
        logger.info(f"SerpApi found {len(jobs)} results")
        return jobs

    def _parse_job(self, engine: str, data: dict, index: int) -> ExternalJob:
        title = data.get("title") or "Unknown Title"
        company = data.get("company_name") or "Unknown Company"
        related = data.get("related_links")
        related = related if isinstance(related, list) else []
        url = (
            (related[0].get("link") if related and isinstance(related[0], dict) else None)
            or data.get("link")
            or data.get("share_link")
            or f"https://www.google.com/search?q={quote_plus(f'{title} {company} job')}"
        )
        extensions = data.get("detected_extensions")
        schedule = extensions.get("schedule_type") if isinstance(extensions, dict) else None
        # Without a provider id, title alone is not unique across postings
        key = data.get("job_id") or data.get("position") or f"{title}-{company}-{index}"

        return ExternalJob(
            id=f"{engine}-{key}",
            company=company,
            position=title,
            location=data.get("location"),
            url=url,
            tags=[schedule] if schedule else [],
        )
