"""
Contract for the remote data service.

The stores never touch the database directly; everything goes through
a RemoteDataService. Rows are plain dicts:

    post:    id, title, content, excerpt, cover_image, author_id, category,
             published, status, reviewed_by, reviewed_at, review_notes,
             created_at, updated_at, hashtags (list), author ({name, role})
    profile: id, name, bio, avatar_url, role, is_admin, created_at, updated_at
    user:    id, email

Implementations raise AuthError when the session may not perform an
operation and RemoteError for anything else that goes wrong.
"""
import abc
import contextlib


class RemoteDataService(abc.ABC):
    """Relational store, object storage, auth and change feed."""

    # Posts

    @abc.abstractmethod
    def select_posts(self):
        """Return posts visible to the session, newest first."""

    @abc.abstractmethod
    def insert_post(self, values):
        """Insert a post and return the canonical row."""

    @abc.abstractmethod
    def update_post(self, post_id, values):
        """Update a subset of post fields and return the canonical row."""

    @abc.abstractmethod
    def delete_post(self, post_id):
        """Delete a post row. Returns the number of rows removed."""

    @abc.abstractmethod
    def delete_hashtags(self, post_id):
        """Delete every hashtag row of a post."""

    @abc.abstractmethod
    def insert_hashtags(self, post_id, tags):
        """Attach hashtags to a post."""

    def atomic(self):
        """
        Group several writes into one transaction.

        Backends without transactions keep this no-op; callers must then
        expect partially applied groups.
        """
        return contextlib.nullcontext()

    # Profiles

    @abc.abstractmethod
    def get_profile(self, user_id):
        """Return a profile row, or None when it does not exist."""

    @abc.abstractmethod
    def insert_profile(self, values):
        """Insert a profile row and return it."""

    @abc.abstractmethod
    def update_profile(self, user_id, values):
        """Update a profile and return the canonical row."""

    # Auth

    @abc.abstractmethod
    def sign_in(self, email, password):
        """Start a session. Returns the user row."""

    @abc.abstractmethod
    def sign_up(self, email, password):
        """Create an account and start a session. Returns the user row."""

    @abc.abstractmethod
    def sign_out(self):
        """End the current session."""

    @abc.abstractmethod
    def get_session(self):
        """Return the user row of the current session, or None."""

    # Storage

    @abc.abstractmethod
    def upload(self, bucket, path, data, content_type):
        """Store a blob and return its public URL."""

    # Change feed

    @abc.abstractmethod
    def subscribe_posts(self, callback):
        """
        Call ``callback(event)`` for every committed change to posts.

        Returns a callable that cancels the subscription.
        """
