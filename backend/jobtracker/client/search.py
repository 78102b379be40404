"""
Job Import - search external job boards and save hits to the tracker

The importer remembers which external job ids were saved during this
session; importing the same hit again is refused locally without a
request to the server.
"""

import logging
from datetime import date
from typing import List, Optional, Set

from jobtracker.schemas import ExternalJob
from jobtracker.client.api import SEARCH_ENDPOINTS, TrackerAPIError
from jobtracker.client.notices import NoticeBoard
from jobtracker.client.store import Record, RecordAdded, RecordStore

logger = logging.getLogger(__name__)

SEARCH_SOURCES = tuple(SEARCH_ENDPOINTS)


class JobImporter:
    def __init__(self, api, store: Optional[RecordStore] = None, notices: Optional[NoticeBoard] = None):
        self.api = api
        self.store = store
        self.notices = notices or NoticeBoard()
        self.results: List[ExternalJob] = []
        self._saved: Set[str] = set()

    async def search(
        self, search_term: str, source: str = "serpapi", engine: Optional[str] = None
    ) -> List[ExternalJob]:
        if not search_term.strip():
            self.notices.error("Enter a search term.")
            return []
        try:
            self.results = await self.api.search_jobs(search_term, source=source, engine=engine)
        except TrackerAPIError as e:
            self.notices.error(f"Job search failed: {e.message}")
            self.results = []
        return self.results

    def is_saved(self, job_id: str) -> bool:
        return job_id in self._saved

    async def import_job(self, job: ExternalJob, today: Optional[date] = None) -> Optional[Record]:
        """Save a search hit as a new record with status 'saved'."""
        if self.is_saved(job.id):
            self.notices.info(f"{job.position} at {job.company} is already saved.")
            return None

        # Claimed before the request so a second click while in flight is refused too
        self._saved.add(job.id)
        try:
            record = await self.api.create_application(
                company=job.company,
                position=job.position,
                status="saved",
                date_applied=today or date.today(),
                job_url=job.url if job.url and job.url != "#" else None,
                location=job.location,
            )
        except TrackerAPIError as e:
            self._saved.discard(job.id)
            self.notices.error(f"Failed to save job: {e.message}")
            return None

        if self.store is not None:
            self.store.dispatch(RecordAdded(record))
        self.notices.success(f"Saved {job.position} at {job.company}.")
        return record
