"""
Client-side notifications for community_blog.

Notifications are ephemeral: they live for the client session only and
are never written to the remote store or to local state.
"""
import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime

from django.dispatch import Signal
from django.utils import timezone

from ..exceptions import ValidationError

SUCCESS = "success"
ERROR = "error"
INFO = "info"
NOTIFICATION_TYPES = (SUCCESS, ERROR, INFO)


@dataclass(frozen=True)
class Notification:
    id: str
    type: str
    message: str
    read: bool
    created_at: datetime


class NotificationStore:
    """Newest-first list of notifications with read tracking."""

    def __init__(self):
        self.notifications = []
        self.changed = Signal()

    def _set(self, notifications):
        self.notifications = notifications
        self.changed.send(sender=self)

    def add(self, type, message):
        if type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {type}")
        notification = Notification(
            id=uuid.uuid4().hex,
            type=type,
            message=message,
            read=False,
            created_at=timezone.now(),
        )
        self._set([notification] + self.notifications)
        return notification

    def success(self, message):
        return self.add(SUCCESS, message)

    def error(self, message):
        return self.add(ERROR, message)

    def info(self, message):
        return self.add(INFO, message)

    def mark_as_read(self, notification_id):
        self._set([
            dataclasses.replace(n, read=True) if n.id == notification_id else n
            for n in self.notifications
        ])

    def mark_all_as_read(self):
        self._set([dataclasses.replace(n, read=True) for n in self.notifications])

    def remove(self, notification_id):
        self._set([n for n in self.notifications if n.id != notification_id])

    def clear_all(self):
        self._set([])

    @property
    def unread_count(self):
        return sum(1 for n in self.notifications if not n.read)
