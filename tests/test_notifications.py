"""Tests for the notification feed and channel."""

import pytest

from billsense.domain.errors import NotFoundError
from billsense.domain.notifications import NotificationFeed


def notify(db, user_id, n):
    return [db.create_notification(user_id, f"Title {i}", f"Message {i}") for i in range(n)]


def test_mark_all_as_read(temp_db, session):
    ids = notify(temp_db, session.user_id, 5)
    temp_db.mark_notifications_read(ids[:2])

    feed = NotificationFeed(temp_db, session)
    assert feed.load()
    assert len(feed.items) == 5
    assert feed.unread_count == 3

    assert feed.mark_all_as_read()
    assert feed.unread_count == 0
    assert all(n.is_read for n in feed.items)
    assert all(n.is_read for n in temp_db.list_notifications(session.user_id))


def test_feed_is_newest_first_and_limited(temp_db, session):
    ids = notify(temp_db, session.user_id, 4)

    feed = NotificationFeed(temp_db, session, limit=3)
    feed.load()

    assert [n.id for n in feed.items] == list(reversed(ids))[:3]


def test_mark_as_read(temp_db, session):
    ids = notify(temp_db, session.user_id, 2)
    feed = NotificationFeed(temp_db, session)
    feed.load()

    assert feed.mark_as_read(ids[0])
    assert feed.unread_count == 1
    read = {n.id: n.is_read for n in temp_db.list_notifications(session.user_id)}
    assert read == {ids[0]: True, ids[1]: False}


def test_mark_as_read_unknown_id(temp_db, session):
    feed = NotificationFeed(temp_db, session)
    feed.load()
    with pytest.raises(NotFoundError):
        feed.mark_as_read(12345)


def test_failed_write_reverts_local_state(temp_db, session, monkeypatch):
    notify(temp_db, session.user_id, 3)
    feed = NotificationFeed(temp_db, session)
    feed.load()

    def broken(ids):
        raise RuntimeError("write failed")

    monkeypatch.setattr(temp_db, "mark_notifications_read", broken)

    assert feed.mark_all_as_read() is False
    assert feed.unread_count == 3
    assert feed.mark_as_read(feed.items[0].id) is False
    assert feed.unread_count == 3


def test_open_feed_receives_inserts(temp_db, session):
    with NotificationFeed(temp_db, session) as feed:
        assert feed.is_open
        new_id = temp_db.create_notification(session.user_id, "Invoice paid", "INV-0001 was paid")

        assert feed.items[0].id == new_id
        assert feed.unread_count == 1


def test_inserts_after_close_are_ignored(temp_db, session):
    feed = NotificationFeed(temp_db, session).open()
    feed.close()
    feed.close()

    temp_db.create_notification(session.user_id, "Late", "Arrives after close")

    assert not feed.is_open
    assert feed.items == []
    assert temp_db.notification_channel.subscriber_count(session.user_id) == 0


def test_inserts_for_other_users_are_not_delivered(temp_db, session, other_session):
    with NotificationFeed(temp_db, session) as feed:
        temp_db.create_notification(other_session.user_id, "Other", "Not for you")
        assert feed.items == []


def test_session_close_cancels_subscriptions(temp_db, session):
    received = []
    session.subscribe_notifications(received.append)
    assert temp_db.notification_channel.subscriber_count(session.user_id) == 1

    session.close()
    temp_db.create_notification(session.user_id, "After", "Session closed")

    assert received == []
    assert temp_db.notification_channel.subscriber_count(session.user_id) == 0


def test_failing_subscriber_does_not_block_others(temp_db, session):
    received = []

    def broken(notification):
        raise RuntimeError("subscriber crashed")

    temp_db.subscribe_notifications(session.user_id, broken)
    temp_db.subscribe_notifications(session.user_id, received.append)

    temp_db.create_notification(session.user_id, "Hello", "World")

    assert [n.title for n in received] == ["Hello"]
