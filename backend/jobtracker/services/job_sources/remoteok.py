import httpx
import logging
from typing import List, Optional
from jobtracker.services.job_sources.base import BaseJobSource
from jobtracker.schemas import ExternalJob
from jobtracker.exceptions import MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)


class RemoteOKSource(BaseJobSource):
    """RemoteOK public API. Needs no key; searches by tag."""

    source = "remoteok"
    base_url = "https://remoteok.com/api"

    async def search(self, search_term: str, engine: Optional[str] = None) -> List[ExternalJob]:
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(
                    self.base_url,
                    params={"tag": search_term},
                    headers={"User-Agent": "jobtracker/0.1"},
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.error(f"RemoteOK API error: {e}")
                raise UpstreamError("RemoteOK request failed.") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayloadError("RemoteOK returned invalid JSON.") from e
        if not isinstance(data, list):
            raise MalformedPayloadError("RemoteOK returned an unexpected payload.")

        # First element is the API's legal notice
        jobs = []
        for item in data[1:]:
            if not isinstance(item, dict) or item.get("id") is None:
                continue
            tags = item.get("tags") if isinstance(item.get("tags"), list) else []
            jobs.append(
                ExternalJob(
                    id=f"{self.source}-{item['id']}",
                    company=str(item.get("company") or "Unknown Company"),
                    position=str(item.get("position") or "Unknown Title"),
                    location=str(item.get("location") or "Remote"),
                    url=str(item.get("url") or "#"),
                    tags=[str(t) for t in tags if t],
                )
            )
        return jobs
