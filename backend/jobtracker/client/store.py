"""
Record Store - local projection of the user's application records

The board keeps an immutable BoardState and changes it only through
``reduce(state, action)``. Speculative (optimistic) mutations are ordinary
actions; recovery from a failed remote write is a full ``resync()`` that
replaces the projection with whatever the server returns.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple, Union

from jobtracker.schemas import APPLICATION_STATUSES, ApplicationResponse

logger = logging.getLogger(__name__)

Record = ApplicationResponse


@dataclass(frozen=True)
class BoardState:
    records: Tuple[Record, ...] = ()
    loading: bool = False
    loaded: bool = False

    def get(self, record_id: str) -> Optional[Record]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def by_status(self) -> Dict[str, List[Record]]:
        columns = {status: [] for status in APPLICATION_STATUSES}
        for record in self.records:
            columns.setdefault(record.status, []).append(record)
        return columns


# ==================== Actions ====================

@dataclass(frozen=True)
class LoadStarted:
    pass


@dataclass(frozen=True)
class RecordsLoaded:
    records: Tuple[Record, ...]


@dataclass(frozen=True)
class LoadFailed:
    pass


@dataclass(frozen=True)
class RecordAdded:
    record: Record


@dataclass(frozen=True)
class RecordUpdated:
    record: Record


@dataclass(frozen=True)
class RecordRemoved:
    record_id: str


@dataclass(frozen=True)
class StatusChanged:
    record_id: str
    status: str


Action = Union[
    LoadStarted, LoadFailed, RecordsLoaded, RecordAdded, RecordUpdated, RecordRemoved, StatusChanged,
]


def reduce(state: BoardState, action: Action) -> BoardState:
    """Return the next state. Actions that change nothing return ``state`` itself."""
    if isinstance(action, LoadStarted):
        return replace(state, loading=True)

    if isinstance(action, LoadFailed):
        if not state.loading:
            return state
        return replace(state, loading=False)

    if isinstance(action, RecordsLoaded):
        return BoardState(records=tuple(action.records), loading=False, loaded=True)

    if isinstance(action, RecordAdded):
        if state.get(action.record.id):
            return reduce(state, RecordUpdated(action.record))
        return replace(state, records=(action.record,) + state.records)

    if isinstance(action, RecordUpdated):
        if not state.get(action.record.id):
            return state
        records = tuple(
            action.record if r.id == action.record.id else r for r in state.records
        )
        return replace(state, records=records)

    if isinstance(action, RecordRemoved):
        records = tuple(r for r in state.records if r.id != action.record_id)
        if len(records) == len(state.records):
            return state
        return replace(state, records=records)

    if isinstance(action, StatusChanged):
        if action.status not in APPLICATION_STATUSES:
            raise ValueError(f"Unknown status: {action.status}")
        current = state.get(action.record_id)
        if not current or current.status == action.status:
            return state
        return reduce(state, RecordUpdated(current.model_copy(update={"status": action.status})))

    raise TypeError(f"Unknown action: {action!r}")


class RecordStore:
    def __init__(self, api, state: Optional[BoardState] = None):
        self.api = api
        self.state = state or BoardState()
        self._listeners: List[Callable[[BoardState], None]] = []

    @property
    def records(self) -> Tuple[Record, ...]:
        return self.state.records

    def dispatch(self, action: Action) -> BoardState:
        next_state = reduce(self.state, action)
        if next_state is not self.state:
            self.state = next_state
            for listener in list(self._listeners):
                listener(next_state)
        return self.state

    def subscribe(self, listener: Callable[[BoardState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> BoardState:
        self.dispatch(LoadStarted())
        try:
            records = await self.api.list_applications()
        except Exception:
            # Keep whatever projection we had; only the spinner is cleared
            self.dispatch(LoadFailed())
            raise
        return self.dispatch(RecordsLoaded(tuple(records)))

    async def resync(self) -> BoardState:
        """Discard local state and reload the authoritative list."""
        logger.info("Resyncing application records")
        return await self.load()


# ==================== Filtering ====================

def filter_records(records, query: str) -> List[Record]:
    """Records whose company or position contains ``query``, ignoring case."""
    needle = (query or "").casefold()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.company.casefold() or needle in r.position.casefold()
    ]


class RecordFilter:
    """Memoized ``filter_records``; recomputes only when records or query change."""

    def __init__(self):
        self._records = None
        self._query: Optional[str] = None
        self._result: List[Record] = []
        self.computations = 0

    def __call__(self, records, query: str) -> List[Record]:
        if records is not self._records or query != self._query:
            self._result = filter_records(records, query)
            self._records = records
            self._query = query
            self.computations += 1
        return self._result
