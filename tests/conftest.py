"""
Shared fixtures for community_blog tests.
"""
import datetime

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import caches
from django.utils import timezone

from community_blog.client import BlogClient
from community_blog.exceptions import RemoteError
from community_blog.models import Post, PostHashtag, PostStatus, Profile
from community_blog.remote import DjangoRemoteDataService

User = get_user_model()

PASSWORD = "s3cret-pass"


class FlakyRemote(DjangoRemoteDataService):
    """Django backend that fails the operations named in ``fail_on``."""

    def __init__(self, fail_on=()):
        super().__init__()
        self.fail_on = set(fail_on)

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise RemoteError(f"{name} is unavailable")

    def select_posts(self):
        self._maybe_fail("select_posts")
        return super().select_posts()

    def insert_post(self, values):
        self._maybe_fail("insert_post")
        return super().insert_post(values)

    def update_post(self, post_id, values):
        self._maybe_fail("update_post")
        return super().update_post(post_id, values)

    def delete_post(self, post_id):
        self._maybe_fail("delete_post")
        return super().delete_post(post_id)

    def insert_hashtags(self, post_id, tags):
        self._maybe_fail("insert_hashtags")
        return super().insert_hashtags(post_id, tags)

    def update_profile(self, user_id, values):
        self._maybe_fail("update_profile")
        return super().update_profile(user_id, values)


class FakeTimer:
    """Stand-in for threading.Timer that only fires on demand."""

    def __init__(self, registry, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        registry.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args, **self.kwargs)


@pytest.fixture(autouse=True)
def clear_local_state():
    """Local state lives in the cache; start every test empty."""
    caches["default"].clear()
    yield
    caches["default"].clear()


@pytest.fixture
def make_member(db):
    """Create a user with a profile."""

    def make(email, name, is_admin=False):
        user = User.objects.create_user(username=email, email=email, password=PASSWORD)
        Profile.objects.create(user=user, name=name, is_admin=is_admin)
        return user

    return make


@pytest.fixture
def author(make_member):
    return make_member("author@example.com", "Ada Author")


@pytest.fixture
def reader(make_member):
    return make_member("reader@example.com", "Reese Reader")


@pytest.fixture
def moderator(make_member):
    return make_member("moderator@example.com", "Mo Derator", is_admin=True)


@pytest.fixture
def make_post(db):
    """Create a post row directly, bypassing the stores."""
    base = timezone.now() - datetime.timedelta(days=1)

    def make(author, title="A post", status=PostStatus.PENDING, hashtags=(), minutes=0, **extra):
        post = Post.objects.create(
            author=author,
            title=title,
            content=extra.pop("content", f"<p>{title}</p>"),
            excerpt=extra.pop("excerpt", f"About {title}"),
            status=status,
            published=status == PostStatus.APPROVED,
            created_at=base + datetime.timedelta(minutes=minutes),
            **extra,
        )
        for tag in hashtags:
            PostHashtag.objects.create(post=post, hashtag=tag)
        return post

    return make


@pytest.fixture
def connect(db):
    """Start a BlogClient, optionally signed in as ``user``."""
    clients = []

    def connect(user=None, remote=None):
        client = BlogClient(remote=remote).start()
        if user is not None:
            client.session.login(user.email, PASSWORD)
        clients.append(client)
        return client

    yield connect
    for client in clients:
        client.close()


@pytest.fixture
def author_client(connect, author):
    return connect(author)


@pytest.fixture
def reader_client(connect, reader):
    return connect(reader)


@pytest.fixture
def moderator_client(connect, moderator):
    return connect(moderator)


@pytest.fixture
def timers():
    """Timers created through ``timer_factory``; fire them by hand."""
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(interval, function, args=None, kwargs=None):
        return FakeTimer(timers, interval, function, args=args, kwargs=kwargs)

    return factory
