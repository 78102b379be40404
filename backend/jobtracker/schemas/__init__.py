from jobtracker.schemas.application import (
    APPLICATION_STATUSES,
    ApplicationStatus,
    ApplicationCreate,
    ApplicationUpdate,
    ApplicationResponse,
    MatchAnalysis,
)
from jobtracker.schemas.note import NoteCreate, NoteResponse
from jobtracker.schemas.notification import NotificationResponse, UnreadCountResponse
from jobtracker.schemas.profile import (
    ProfileUpdate,
    ProfileResponse,
    ResumeAnalysis,
    SignedUrlResponse,
)
from jobtracker.schemas.auth import UserResponse, SessionResponse, LogoutResponse
from jobtracker.schemas.search import (
    JobSearchRequest,
    ExternalJob,
    JobSearchResponse,
    MatchRequest,
    AnalysisResponse,
)

__all__ = [
    "APPLICATION_STATUSES",
    "ApplicationStatus",
    "ApplicationCreate",
    "ApplicationUpdate",
    "ApplicationResponse",
    "MatchAnalysis",
    "NoteCreate",
    "NoteResponse",
    "NotificationResponse",
    "UnreadCountResponse",
    "ProfileUpdate",
    "ProfileResponse",
    "ResumeAnalysis",
    "SignedUrlResponse",
    "UserResponse",
    "SessionResponse",
    "LogoutResponse",
    "JobSearchRequest",
    "ExternalJob",
    "JobSearchResponse",
    "MatchRequest",
    "AnalysisResponse",
]
