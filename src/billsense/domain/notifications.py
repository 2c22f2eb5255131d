"""Notification feed for the acting user."""

import logging
import threading
from dataclasses import replace
from typing import Optional

from billsense.database.base import Database
from billsense.database.channel import Subscription
from billsense.domain.entities import Notification
from billsense.domain.errors import NotFoundError, notification_not_found
from billsense.domain.session import SessionContext

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


class NotificationFeed:
    """Newest-first list of the acting user's notifications.

    open() subscribes to inserts and prepends them as they arrive; close()
    cancels the subscription, and anything delivered afterwards is ignored.
    Read flags are updated locally first and reverted if the write fails.
    """

    def __init__(self, db: Database, session: SessionContext, limit: int = FEED_LIMIT):
        self.db = db
        self.session = session
        self.limit = limit
        self.items: list[Notification] = []
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = None
        self._alive = False

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self.items if not n.is_read)

    @property
    def is_open(self) -> bool:
        return self._alive

    def load(self) -> bool:
        """Fetch the newest notifications, replacing the local list.

        Returns:
            False if the fetch failed and the previous list was kept
        """
        try:
            notifications = self.db.list_notifications(self.session.user_id, limit=self.limit)
        except Exception:
            logger.exception("Error fetching notifications for user %s", self.session.user_id)
            return False
        with self._lock:
            self.items = list(notifications)
        return True

    def open(self) -> "NotificationFeed":
        """Load the feed and start receiving inserts."""
        if self._alive:
            return self
        self._alive = True
        self.load()
        self._subscription = self.session.subscribe_notifications(self._on_insert)
        return self

    def close(self) -> None:
        """Stop receiving inserts. Safe to call more than once."""
        self._alive = False
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self) -> "NotificationFeed":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _on_insert(self, notification: Notification) -> None:
        if not self._alive:
            return
        with self._lock:
            self.items.insert(0, notification)

    def mark_as_read(self, notification_id: int) -> bool:
        """Mark one notification read.

        Returns:
            False if persisting failed and the local flag was reverted

        Raises:
            NotFoundError: If the notification is not in the feed
        """
        with self._lock:
            index = self._index_of(notification_id)
            previous = self.items[index]
            if previous.is_read:
                return True
            self.items[index] = replace(previous, is_read=True)

        try:
            self.db.mark_notifications_read([notification_id])
        except Exception:
            logger.exception("Error marking notification %s as read", notification_id)
            with self._lock:
                self._set_read({notification_id}, False)
            return False
        return True

    def mark_all_as_read(self) -> bool:
        """Mark every locally unread notification read with one update.

        Returns:
            False if persisting failed and the local flags were reverted
        """
        with self._lock:
            unread_ids = {n.id for n in self.items if not n.is_read}
            if not unread_ids:
                return True
            self._set_read(unread_ids, True)

        try:
            self.db.mark_notifications_read(sorted(unread_ids))
        except Exception:
            logger.exception("Error marking %d notifications as read", len(unread_ids))
            with self._lock:
                self._set_read(unread_ids, False)
            return False
        return True

    def _index_of(self, notification_id: int) -> int:
        for index, item in enumerate(self.items):
            if item.id == notification_id:
                return index
        raise NotFoundError(notification_not_found(notification_id))

    def _set_read(self, ids: set[int], is_read: bool) -> None:
        self.items = [replace(n, is_read=is_read) if n.id in ids else n for n in self.items]
