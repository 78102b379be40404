"""
Tracker client - UI-independent state for the job tracker front end

    api            TrackerClient over the HTTP API
    session        process-wide SessionContext and route gate
    store          BoardState reducer, RecordStore, filtering
    board          drag/drop and apply-now transitions
    polling        cancellable analysis polling
    search         external job search and import
    analytics      dashboard summaries
    notifications  notification list and unread badge
"""

from jobtracker.client.api import TrackerClient, TrackerAPIError
from jobtracker.client.notices import Notice, NoticeBoard
from jobtracker.client.session import (
    AuthEvent,
    GateState,
    NotAuthenticated,
    SessionContext,
    get_session_context,
    reset_session_context,
)
from jobtracker.client.store import BoardState, RecordStore, RecordFilter, filter_records, reduce
from jobtracker.client.board import BoardWorkflow, DropTarget, resolve_drop
from jobtracker.client.polling import AnalysisWatcher, CancellationToken, PollCancelled, poll_until
from jobtracker.client.search import JobImporter
from jobtracker.client.analytics import summarize
from jobtracker.client.notifications import NotificationFeed

__all__ = [
    "TrackerClient",
    "TrackerAPIError",
    "Notice",
    "NoticeBoard",
    "AuthEvent",
    "GateState",
    "NotAuthenticated",
    "SessionContext",
    "get_session_context",
    "reset_session_context",
    "BoardState",
    "RecordStore",
    "RecordFilter",
    "filter_records",
    "reduce",
    "BoardWorkflow",
    "DropTarget",
    "resolve_drop",
    "AnalysisWatcher",
    "CancellationToken",
    "PollCancelled",
    "poll_until",
    "JobImporter",
    "summarize",
    "NotificationFeed",
]
