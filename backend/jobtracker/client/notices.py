"""Transient user-visible notices (toasts)."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"


@dataclass(frozen=True)
class Notice:
    level: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeBoard:
    def __init__(self, max_history: int = 50):
        self._notices = deque(maxlen=max_history)
        self._listeners: List[Callable[[Notice], None]] = []

    def push(self, level: str, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        if level == ERROR:
            logger.warning(message)
        for listener in list(self._listeners):
            listener(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.push(SUCCESS, message)

    def error(self, message: str) -> Notice:
        return self.push(ERROR, message)

    def info(self, message: str) -> Notice:
        return self.push(INFO, message)

    def subscribe(self, listener: Callable[[Notice], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    def latest(self, level: Optional[str] = None) -> Optional[Notice]:
        for notice in reversed(self._notices):
            if level is None or notice.level == level:
                return notice
        return None

    def clear(self) -> None:
        self._notices.clear()
