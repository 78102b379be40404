"""
Change Feed - in-process pub/sub for row change events

Subscribers register for one table filtered by owner and receive
``ChangeEvent`` objects on an asyncio.Queue. Used by the notifications
websocket to keep the unread badge live.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Set, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ChangeEvent:
    table: str
    event: str  # "INSERT" | "UPDATE"
    record: dict

    def to_message(self) -> dict:
        return {"table": self.table, "event": self.event, "record": self.record}


class ChangeFeed:
    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[Tuple[str, str], Set[asyncio.Queue]] = defaultdict(set)

    def subscribe(self, table: str, owner_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[(table, owner_id)].add(queue)
        return queue

    def unsubscribe(self, table: str, owner_id: str, queue: asyncio.Queue) -> None:
        key = (table, owner_id)
        self._subscribers[key].discard(queue)
        if not self._subscribers[key]:
            del self._subscribers[key]

    def subscriber_count(self, table: str, owner_id: str) -> int:
        return len(self._subscribers.get((table, owner_id), ()))

    def publish(self, table: str, owner_id: str, event: str, record: dict) -> None:
        change = ChangeEvent(table=table, event=event, record=record)
        for queue in list(self._subscribers.get((table, owner_id), ())):
            if queue.full():
                # Slow consumer: drop the oldest event rather than block publishers
                queue.get_nowait()
                logger.warning(f"Change feed queue full for {table}:{owner_id}, dropped oldest event")
            queue.put_nowait(change)


change_feed = ChangeFeed()
