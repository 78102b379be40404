"""
Analysis Polling - wait for server-side analysis to land

Resume and match analysis run in the background on the server. The client
re-reads the record on a fixed interval until the analysis field is filled.
Each watcher owns a CancellationToken so the loop stops when its owner goes
away instead of leaking a background task.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from jobtracker.client.api import TrackerAPIError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0

IDLE = "idle"
PENDING = "pending"
READY = "ready"
CANCELLED = "cancelled"


class PollCancelled(Exception):
    pass


class CancellationToken:
    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True


async def poll_until(
    fetch: Callable[[], Awaitable[Any]],
    is_ready: Callable[[Any], bool],
    interval: float = DEFAULT_INTERVAL,
    token: Optional[CancellationToken] = None,
) -> Any:
    """
    Call ``fetch`` every ``interval`` seconds until ``is_ready`` accepts a result.

    There is no attempt cap. Failed reads are logged and retried on the next
    tick. Raises PollCancelled once the token is cancelled.
    """
    token = token or CancellationToken()
    while not token.cancelled:
        try:
            result = await fetch()
        except TrackerAPIError as e:
            logger.warning(f"Poll read failed: {e.message}")
        else:
            if is_ready(result):
                return result
        if await token.wait(interval):
            break
    raise PollCancelled()


class AnalysisWatcher:
    """
    Lifetime-bound poller for one analysis field.

    Usage:
        async with resume_analysis_watcher(api) as watcher:
            analysis = await watcher.wait()
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        extract: Callable[[Any], Optional[dict]],
        interval: float = DEFAULT_INTERVAL,
        on_ready: Optional[Callable[[dict], Any]] = None,
    ):
        self._fetch = fetch
        self._extract = extract
        self.interval = interval
        self.on_ready = on_ready
        self.token = CancellationToken()
        self.state = IDLE
        self.result: Optional[dict] = None
        self._task: Optional[asyncio.Task] = None

    async def _run(self) -> Optional[dict]:
        try:
            record = await poll_until(
                self._fetch,
                lambda r: bool(self._extract(r)),
                interval=self.interval,
                token=self.token,
            )
        except PollCancelled:
            self.state = CANCELLED
            return None

        self.result = self._extract(record)
        self.state = READY
        if self.on_ready:
            self.on_ready(self.result)
        return self.result

    def start(self) -> "AnalysisWatcher":
        if self._task is None:
            self.state = PENDING
            self._task = asyncio.create_task(self._run())
        return self

    async def wait(self) -> Optional[dict]:
        if self._task is None:
            self.start()
        return await self._task

    def close(self) -> None:
        self.token.cancel()

    async def aclose(self) -> None:
        self.close()
        if self._task is not None:
            await self._task

    async def __aenter__(self) -> "AnalysisWatcher":
        return self.start()

    async def __aexit__(self, *exc) -> None:
        await self.aclose()


def resume_analysis_watcher(api, interval: float = DEFAULT_INTERVAL, **kwargs) -> AnalysisWatcher:
    return AnalysisWatcher(
        api.get_profile,
        lambda profile: profile.resume_analysis,
        interval=interval,
        **kwargs,
    )


def match_analysis_watcher(
    api, application_id: str, interval: float = DEFAULT_INTERVAL, **kwargs
) -> AnalysisWatcher:
    return AnalysisWatcher(
        lambda: api.get_application(application_id),
        lambda record: record.match_analysis,
        interval=interval,
        **kwargs,
    )
