"""In-process push channel for newly inserted notifications."""

import logging
import threading
from typing import Callable

from billsense.domain.entities import Notification

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[Notification], None]


class Subscription:
    """Handle for one subscriber; close it to stop delivery.

    Can be used as a context manager so the subscription never outlives the
    block that consumes it.
    """

    def __init__(self, channel: "NotificationChannel", user_id: int, callback: NotificationCallback):
        self.channel = channel
        self.user_id = user_id
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        """Stop receiving notifications. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.channel._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class NotificationChannel:
    """Fan-out of notification inserts to per-user subscribers.

    Delivery happens synchronously on the publishing thread, in subscription
    order. No deduplication is applied.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, user_id: int, callback: NotificationCallback) -> Subscription:
        """Register a callback for inserts addressed to user_id."""
        subscription = Subscription(self, user_id, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed to notifications for user %s", user_id)
        return subscription

    def publish(self, notification: Notification) -> int:
        """Deliver a notification to matching subscribers.

        Returns:
            Number of subscribers the notification was delivered to
        """
        with self._lock:
            targets = [s for s in self._subscriptions if s.user_id == notification.user_id]

        delivered = 0
        for subscription in targets:
            if subscription.closed:
                continue
            try:
                subscription.callback(notification)
                delivered += 1
            except Exception:
                logger.exception(
                    "Notification subscriber for user %s failed", subscription.user_id
                )
        return delivered

    def subscriber_count(self, user_id: int | None = None) -> int:
        """Count open subscriptions, optionally for one user."""
        with self._lock:
            if user_id is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.user_id == user_id)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        logger.debug("Unsubscribed from notifications for user %s", subscription.user_id)
