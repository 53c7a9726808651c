"""
Client-side stores for community_blog.

    from community_blog.stores import PostStore, SessionStore, NotificationStore
"""
from .local import LocalState
from .notifications import Notification, NotificationStore
from .posts import PostStore
from .session import AdminStatus, SessionStore

__all__ = [
    "LocalState",
    "Notification",
    "NotificationStore",
    "PostStore",
    "AdminStatus",
    "SessionStore",
]
