import httpx
import logging
from typing import List, Optional
from jobtracker.services.job_sources.base import BaseJobSource
from jobtracker.schemas import ExternalJob
from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)
settings = get_settings()


class AdzunaSource(BaseJobSource):
    source = "adzuna"
    base_url = "https://api.adzuna.com/v1/api/jobs"

    def __init__(self, app_id: Optional[str] = None, api_key: Optional[str] = None):
        self.app_id = app_id if app_id is not None else settings.adzuna_app_id
        self.api_key = api_key if api_key is not None else settings.adzuna_api_key

    async def search(
        self,
        search_term: str,
        engine: Optional[str] = None,
        results_per_page: int = 20,
    ) -> List[ExternalJob]:
        if not self.app_id or not self.api_key:
            raise ConfigurationError("Server configuration error: Adzuna credentials are missing.")

        params = {
            "app_id": self.app_id,
            "app_key": self.api_key,
            "results_per_page": results_per_page,
            "what": search_term,
            "content-type": "application/json",
        }

        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(
                    f"{self.base_url}/{settings.adzuna_country}/search/1",
                    params=params,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"Adzuna API error: {e}")
                raise UpstreamError("Adzuna returned a non-200 status.") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayloadError("Adzuna returned invalid JSON.") from e
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise MalformedPayloadError("Adzuna response has no results list.")

        jobs = [job for job in (self._parse_job(r) for r in results) if job]
        logger.info(f"Adzuna returned {len(jobs)} jobs for '{search_term}'")
        return jobs

    def _parse_job(self, data: dict) -> Optional[ExternalJob]:
        if not isinstance(data, dict) or data.get("id") is None:
            return None

        tags = []
        category = _nested(data, "category", "label")
        if category:
            tags.append(category)
        if isinstance(data.get("contract_time"), str):
            tags.append(data["contract_time"])

        return ExternalJob(
            id=f"{self.source}-{data['id']}",
            company=_nested(data, "company", "display_name") or "Unknown Company",
            position=str(data.get("title") or "Unknown Title"),
            location=_nested(data, "location", "display_name"),
            url=str(data.get("redirect_url") or "#"),
            tags=tags,
        )


def _nested(data: dict, key: str, field: str) -> Optional[str]:
    """``data[key][field]`` when ``data[key]`` is an object, else None."""
    value = data.get(key)
    if not isinstance(value, dict):
        return None
    inner = value.get(field)
    return str(inner) if inner else None
