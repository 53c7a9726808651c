"""
Application-state service for community_blog.

Build one BlogClient at startup, hand its stores to whatever needs them
and close it on shutdown:

    client = BlogClient()
    client.start()
    client.posts.fetch_all()
    ...
    client.close()
"""
import logging

from .moderation import ModerationController
from .remote import DjangoRemoteDataService
from .stores import LocalState, NotificationStore, PostStore, SessionStore

logger = logging.getLogger(__name__)


class BlogClient:
    """Owns the remote service, the stores and any open moderation views."""

    def __init__(self, remote=None, local_state=None):
        self.remote = remote or DjangoRemoteDataService()
        self.local_state = local_state or LocalState()
        self.session = SessionStore(self.remote, self.local_state)
        self.posts = PostStore(self.remote, self.session, self.local_state)
        self.notifications = NotificationStore()
        self._controllers = []
        self.is_running = False

    def start(self):
        """
        Restore the persisted session and post cache.

        The restored identity is reconciled with the remote session right
        away; it is dropped when the remote no longer knows it.
        """
        self.session.restore()
        self.session.refresh_session()
        self.posts.hydrate()
        self.is_running = True
        logger.info("Blog client started (%d cached posts)", len(self.posts.all()))
        return self

    def moderation(self, **kwargs):
        """
        Create a moderation controller bound to this client.

        The client tracks the controller while it is open so ``close()``
        can stop it; closing the controller releases it.
        """
        controller = ModerationController(
            self.posts,
            self.session,
            self.notifications,
            **kwargs,
        )
        controller.opened.connect(self._controller_opened)
        controller.closed.connect(self._controller_closed)
        return controller

    @property
    def controllers(self):
        """Moderation controllers that are currently open."""
        return tuple(self._controllers)

    def _controller_opened(self, sender, **kwargs):
        if sender not in self._controllers:
            self._controllers.append(sender)

    def _controller_closed(self, sender, **kwargs):
        if sender in self._controllers:
            self._controllers.remove(sender)

    def close(self):
        for controller in list(self._controllers):
            controller.close()
        self._controllers = []
        self.posts.close()
        self.is_running = False
        logger.info("Blog client closed")

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
