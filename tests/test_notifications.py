"""
Tests for the notification store.
"""
import pytest

from community_blog.exceptions import ValidationError
from community_blog.stores import NotificationStore


@pytest.fixture
def store():
    return NotificationStore()


class TestNotificationStore:
    """Tests for NotificationStore."""

    def test_newest_first(self, store):
        store.info("first")
        store.success("second")
        store.error("third")

        assert [n.message for n in store.notifications] == ["third", "second", "first"]
        assert [n.type for n in store.notifications] == ["error", "success", "info"]
        assert store.unread_count == 3

    def test_unknown_type(self, store):
        with pytest.raises(ValidationError):
            store.add("warning", "nope")
        assert store.notifications == []

    def test_mark_as_read(self, store):
        first = store.info("first")
        store.info("second")

        store.mark_as_read(first.id)

        assert store.unread_count == 1
        assert [n.read for n in store.notifications] == [False, True]

    def test_mark_all_as_read(self, store):
        store.info("first")
        store.info("second")
        store.mark_all_as_read()
        assert store.unread_count == 0

    def test_remove_and_clear(self, store):
        first = store.info("first")
        store.info("second")

        store.remove(first.id)
        assert [n.message for n in store.notifications] == ["second"]

        store.clear_all()
        assert store.notifications == []
        assert store.unread_count == 0

    def test_ids_are_unique(self, store):
        assert store.info("a").id != store.info("a").id

    def test_changed_signal(self, store):
        counts = []
        store.changed.connect(
            lambda sender, **kwargs: counts.append(sender.unread_count), weak=False
        )
        store.info("a")
        store.mark_all_as_read()
        assert counts == [1, 0]
