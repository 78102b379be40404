"""
Session Context - the process-wide authentication state

One SessionContext per process holds the current session and tells
subscribers when it changes. Route gating reads it: while the initial check
is unresolved the gate is LOADING, afterwards it either allows the route or
redirects to the sign-in page.
"""

import enum
import logging
from typing import Callable, List, Optional

from jobtracker.schemas import SessionResponse, UserResponse
from jobtracker.client.api import TrackerAPIError, TrackerClient

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"

Session = SessionResponse


class AuthEvent(str, enum.Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class GateState(str, enum.Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


class NotAuthenticated(Exception):
    def __init__(self, redirect_to: str = LOGIN_ROUTE):
        super().__init__(f"Sign-in required, redirect to {redirect_to}")
        self.redirect_to = redirect_to


Listener = Callable[[AuthEvent, Optional[Session]], None]


class SessionContext:
    def __init__(self, api: TrackerClient, login_route: str = LOGIN_ROUTE):
        self.api = api
        self.login_route = login_route
        self.session: Optional[Session] = None
        self.resolved = False
        self._listeners: List[Listener] = []

    @property
    def user(self) -> Optional[UserResponse]:
        return self.session.user if self.session else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        self.session = session
        self.api.set_token(session.access_token if session else None)
        logger.info(f"Auth event: {event.value}")
        for listener in list(self._listeners):
            listener(event, session)

    async def _fetch_session(self) -> Optional[Session]:
        data = await self.api.get_session()
        return SessionResponse.model_validate(data) if data else None

    async def initialize(self) -> Optional[Session]:
        """Resolve the initial session check. A failed check counts as signed out."""
        try:
            session = await self._fetch_session()
        except TrackerAPIError as e:
            logger.warning(f"Initial session check failed: {e.message}")
            session = None
        self.resolved = True
        self._emit(AuthEvent.INITIAL_SESSION, session)
        return session

    async def sign_in(self, token: str) -> Session:
        """Adopt the token handed back by the OAuth callback."""
        self.api.set_token(token)
        session = await self._fetch_session()
        if session is None:
            self.api.set_token(None)
            raise NotAuthenticated(self.login_route)
        self.resolved = True
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def refresh(self) -> Session:
        data = await self.api.refresh_session()
        session = SessionResponse.model_validate(data)
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        try:
            await self.api.logout()
        except TrackerAPIError as e:
            logger.warning(f"Logout request failed: {e.message}")
        self._emit(AuthEvent.SIGNED_OUT, None)

    def gate(self) -> GateState:
        if not self.resolved:
            return GateState.LOADING
        if self.session is None:
            return GateState.REDIRECT
        return GateState.ALLOW

    def require_session(self) -> Session:
        if self.gate() is not GateState.ALLOW:
            raise NotAuthenticated(self.login_route)
        return self.session

    def authorize_url(self, provider: str) -> str:
        return self.api.authorize_url(provider)


_context: Optional[SessionContext] = None


def get_session_context(api: Optional[TrackerClient] = None) -> SessionContext:
    """Return the process-wide context, creating it on first use."""
    global _context
    if _context is None:
        if api is None:
            raise RuntimeError("Session context is not configured; pass a TrackerClient first")
        _context = SessionContext(api)
    return _context


def reset_session_context() -> None:
    global _context
    _context = None
