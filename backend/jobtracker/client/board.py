"""
Board Workflow - status transitions on the kanban board

Every transition follows the same sequence:
1. Dispatch the change to the local store (the card moves immediately)
2. Issue the remote write
3. On failure, surface an error notice and resync the whole list

Local state is never rolled back by hand; the resync is authoritative.
"""

import logging
import webbrowser
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from jobtracker.schemas import APPLICATION_STATUSES, ApplicationUpdate
from jobtracker.client.api import TrackerAPIError
from jobtracker.client.notices import NoticeBoard
from jobtracker.client.store import (
    BoardState,
    Record,
    RecordAdded,
    RecordRemoved,
    RecordStore,
    RecordUpdated,
    StatusChanged,
)

logger = logging.getLogger(__name__)

COLUMN = "column"
CARD = "card"


@dataclass(frozen=True)
class DropTarget:
    """Where a drag ended: a status column or another card."""

    kind: str
    value: str

    @classmethod
    def column(cls, status: str) -> "DropTarget":
        return cls(kind=COLUMN, value=status)

    @classmethod
    def card(cls, record_id: str) -> "DropTarget":
        return cls(kind=CARD, value=record_id)


def resolve_drop(state: BoardState, active_id: str, target: Optional[DropTarget]) -> Optional[str]:
    """
    Status the dragged record should move to, or None when the drop is a no-op.

    A card dropped on another card joins that card's column. Ordering within
    a column is not tracked.
    """
    record = state.get(active_id)
    if record is None or target is None:
        return None

    if target.kind == COLUMN:
        status = target.value if target.value in APPLICATION_STATUSES else None
    else:
        if target.value == active_id:
            return None
        other = state.get(target.value)
        status = other.status if other else None

    if status is None or status == record.status:
        return None
    return status


class BoardWorkflow:
    def __init__(
        self,
        store: RecordStore,
        notices: NoticeBoard,
        open_url: Callable[[str], Any] = webbrowser.open_new_tab,
    ):
        self.store = store
        self.api = store.api
        self.notices = notices
        self.open_url = open_url

    async def handle_drop(self, active_id: str, target: Optional[DropTarget]) -> bool:
        status = resolve_drop(self.store.state, active_id, target)
        if status is None:
            return False
        return await self.change_status(active_id, status)

    async def change_status(self, record_id: str, status: str) -> bool:
        record = self.store.state.get(record_id)
        if record is None:
            self.notices.error("Application not found.")
            return False
        if record.status == status:
            return False

        self.store.dispatch(StatusChanged(record_id, status))
        return await self._write(record_id, {"status": status}, "Status updated.")

    async def apply_now(self, record_id: str) -> bool:
        """Open the job posting and move a saved record to applied."""
        record = self.store.state.get(record_id)
        if record is None:
            self.notices.error("Application not found.")
            return False
        if record.status != "saved":
            self.notices.error("Only saved applications can be applied to.")
            return False
        if not record.job_url:
            self.notices.error("This application has no job URL.")
            return False

        self.open_url(record.job_url)
        self.store.dispatch(StatusChanged(record_id, "applied"))
        return await self._write(record_id, {"status": "applied"}, "Marked as applied.")

    async def save_edit(self, record_id: str, **changes: Any) -> bool:
        record = self.store.state.get(record_id)
        if record is None:
            self.notices.error("Application not found.")
            return False

        update = ApplicationUpdate(**changes).model_dump(exclude_unset=True)
        if not update:
            return False

        self.store.dispatch(RecordUpdated(record.model_copy(update=update)))
        return await self._write(record_id, update, "Application updated.")

    async def create(self, **fields: Any) -> Optional[Record]:
        fields.setdefault("date_applied", date.today())
        try:
            record = await self.api.create_application(**fields)
        except TrackerAPIError as e:
            self.notices.error(f"Failed to add application: {e.message}")
            return None
        self.store.dispatch(RecordAdded(record))
        self.notices.success("Application added.")
        return record

    async def delete(self, record_id: str) -> bool:
        if self.store.state.get(record_id) is None:
            return False

        self.store.dispatch(RecordRemoved(record_id))
        try:
            await self.api.delete_application(record_id)
        except TrackerAPIError as e:
            self.notices.error(f"Failed to delete application: {e.message}")
            await self._resync()
            return False
        self.notices.success("Application deleted.")
        return True

    async def _write(self, record_id: str, changes: dict, success_message: str) -> bool:
        try:
            updated = await self.api.update_application(record_id, **changes)
        except TrackerAPIError as e:
            self.notices.error(f"Failed to update application: {e.message}")
            await self._resync()
            return False

        # A later transition on the same card may already be in flight
        current = self.store.state.get(record_id)
        if current is not None and current.status == updated.status:
            self.store.dispatch(RecordUpdated(updated))
        self.notices.success(success_message)
        return True

    async def _resync(self) -> None:
        try:
            await self.store.resync()
        except TrackerAPIError as e:
            self.notices.error(f"Failed to reload applications: {e.message}")
