"""
Notification Feed - notification list plus live unread badge

Change messages from the ``/notifications/stream`` websocket (or any other
transport) are fed to ``apply_event``; INSERT prepends, UPDATE replaces.
"""

import logging
from typing import List, Optional

from jobtracker.schemas import NotificationResponse
from jobtracker.client.api import TrackerAPIError
from jobtracker.client.notices import NoticeBoard

logger = logging.getLogger(__name__)

TABLE = "notifications"


class NotificationFeed:
    def __init__(self, api, notices: Optional[NoticeBoard] = None):
        self.api = api
        self.notices = notices or NoticeBoard()
        self.items: List[NotificationResponse] = []

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items if not n.read)

    async def load(self) -> List[NotificationResponse]:
        try:
            self.items = await self.api.list_notifications()
        except TrackerAPIError as e:
            self.notices.error(f"Failed to load notifications: {e.message}")
        return self.items

    def apply_event(self, message: dict) -> bool:
        """Apply one change message. Returns True when the list changed."""
        if message.get("table") != TABLE:
            return False
        notification = NotificationResponse.model_validate(message["record"])
        event = message.get("event")

        if event == "INSERT":
            if any(n.id == notification.id for n in self.items):
                return False
            self.items.insert(0, notification)
            self.notices.info(notification.message)
            return True

        if event == "UPDATE":
            for index, existing in enumerate(self.items):
                if existing.id == notification.id:
                    self.items[index] = notification
                    return True
            return False

        logger.debug(f"Ignoring change event {event}")
        return False

    async def mark_read(self, notification_id: str) -> bool:
        try:
            updated = await self.api.mark_notification_read(notification_id)
        except TrackerAPIError as e:
            self.notices.error(f"Failed to mark notification read: {e.message}")
            return False
        self.items = [updated if n.id == updated.id else n for n in self.items]
        return True

    async def mark_all_read(self) -> bool:
        try:
            await self.api.mark_all_notifications_read()
        except TrackerAPIError as e:
            self.notices.error(f"Failed to mark notifications read: {e.message}")
            return False
        self.items = [n.model_copy(update={"read": True}) for n in self.items]
        return True
