"""
Moderation workflow for community_blog admins.

The controller backs the admin dashboard: it re-verifies the admin flag
against the remote store before showing anything, keeps the pending list
fresh (periodic refresh plus the post change feed) and routes approve /
reject decisions through the post store's transition primitive.
"""
import logging
import threading

from django.db import close_old_connections
from django.dispatch import Signal

from .conf import blog_settings
from .exceptions import AuthError, BlogError, RemoteError, ValidationError

logger = logging.getLogger(__name__)


class ModerationController:
    """
    Admin review workflow.

    ``changed`` is sent whenever the pending list or the review state
    changes; ``opened`` and ``closed`` mark the lifecycle. Results that
    arrive after ``close()`` are dropped.

    The periodic refresh runs on the timer's thread. Refreshes and
    reviews hold the controller lock, so callers and the timer take
    turns; listeners on ``changed`` may be called from either thread.
    """

    def __init__(self, posts, session, notifications, interval=None,
                 timer_factory=threading.Timer):
        self.posts = posts
        self.session = session
        self.notifications = notifications
        self.interval = blog_settings.REFRESH_INTERVAL if interval is None else interval
        self.timer_factory = timer_factory
        self.changed = Signal()
        self.opened = Signal()
        self.closed = Signal()

        self.is_open = False
        self.pending_posts = []
        self.selected_id = None
        self.review_notes = ""
        self.error = None

        self._generation = 0
        # Reentrant: change-feed refreshes can fire inside a review's commit
        self._lock = threading.RLock()
        self._timer = None
        self._unsubscribe = None

    # Lifecycle

    def open(self):
        """
        Verify admin rights remotely, then load and start watching posts.

        The cached admin flag is not enough: it may be stale or tampered
        with, so the remote profile decides.
        """
        self.session.require_identity()
        if not self.session.verify_admin():
            raise AuthError("You do not have permission to access this page")

        with self._lock:
            self._generation += 1
            self.is_open = True
            self.refresh()
            self._unsubscribe = self.posts.remote.subscribe_posts(self._on_change)
            self._schedule()
        self.opened.send(sender=self)
        logger.info("Moderation opened by admin %s", self.session.identity.id)
        return self.pending_posts

    def close(self):
        with self._lock:
            self._generation += 1
            self.is_open = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None
        self.closed.send(sender=self)

    def _schedule(self):
        if not self.interval or self.interval <= 0:
            return
        generation = self._generation
        timer = self.timer_factory(self.interval, self._tick, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _tick(self, generation):
        if generation != self._generation:
            return
        try:
            self.refresh()
        finally:
            close_old_connections()
            with self._lock:
                if generation == self._generation:
                    self._schedule()

    def _on_change(self, event):
        logger.debug("Post change event %s, refreshing", event)
        self.refresh()

    # Data

    def refresh(self):
        """
        Re-fetch every post and rebuild the pending list (newest first).

        Failures become error notifications; returns True when the
        dashboard state was updated.
        """
        with self._lock:
            return self._refresh()

    def _refresh(self):
        if not self.is_open:
            return False
        generation = self._generation
        try:
            self.posts.fetch_all()
        except RemoteError as exc:
            logger.error("Refreshing pending posts failed: %s", exc)
            self.notifications.error(f"Failed to load posts: {exc}")
            return False
        if generation != self._generation:
            logger.debug("Dropping refresh that finished after close")
            return False

        self.pending_posts = self.posts.pending()
        if self.selected_id and self.posts.get_by_id(self.selected_id) not in self.pending_posts:
            self.selected_id = None
            self.review_notes = ""
        self.changed.send(sender=self)
        return True

    # Review

    def select(self, post_id):
        """Start reviewing a post."""
        self.selected_id = str(post_id)
        self.review_notes = ""
        self.error = None
        self.changed.send(sender=self)

    def cancel(self):
        self.selected_id = None
        self.review_notes = ""
        self.error = None
        self.changed.send(sender=self)

    def approve(self, post_id=None, notes=None):
        return self._review(self.posts.approve, post_id, notes, "Post approved")

    def reject(self, post_id=None, notes=None):
        return self._review(self.posts.reject, post_id, notes, "Post rejected")

    def _review(self, action, post_id, notes, message):
        with self._lock:
            return self._apply_review(action, post_id, notes, message)

    def _apply_review(self, action, post_id, notes, message):
        if not self.is_open:
            raise AuthError("Open the moderation dashboard before reviewing posts")
        post_id = post_id or self.selected_id
        if post_id is None:
            raise ValidationError("Select a post to review")
        if notes is None:
            notes = self.review_notes

        self.error = None
        try:
            record = action(post_id, notes)
        except BlogError as exc:
            self.error = str(exc)
            if not isinstance(exc, ValidationError):
                self.notifications.error(str(exc))
            self.changed.send(sender=self)
            raise

        self.selected_id = None
        self.review_notes = ""
        self.pending_posts = self.posts.pending()
        self.notifications.success(f'{message}: "{record.title}"')
        self.changed.send(sender=self)
        return record
