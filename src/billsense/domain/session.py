"""Acting-user session context."""

import logging
from typing import Callable, Optional

from billsense.config.settings import BillSenseSettings, get_config
from billsense.database.base import Database
from billsense.database.channel import NotificationCallback, Subscription
from billsense.domain.entities import Company, Profile
from billsense.domain.errors import (
    NotFoundError,
    ProfileTimeoutError,
    company_profile_not_found,
)
from billsense.utils.concurrency import call_with_timeout

logger = logging.getLogger(__name__)

RefreshListener = Callable[[], None]


class SessionContext:
    """Scope of one acting user for a process or request.

    Resolves the user's profile and company once, owns every notification
    subscription opened on behalf of the user and tears them down in close().
    """

    def __init__(self, db: Database, user_id: int, config: Optional[BillSenseSettings] = None):
        """Initialize session context.

        Args:
            db: Database instance
            user_id: Acting user (profile) ID
            config: Settings; the global configuration when omitted
        """
        self.db = db
        self.user_id = user_id
        self.config = config or get_config()
        self._profile: Optional[Profile] = None
        self._profile_loaded = False
        self._subscriptions: list[Subscription] = []
        self._refresh_listeners: list[RefreshListener] = []
        self.closed = False

    def fetch_profile(self) -> Optional[Profile]:
        """Fetch the profile, bounded by the configured timeout.

        Raises:
            ProfileTimeoutError: If the lookup takes longer than allowed
        """
        try:
            return call_with_timeout(
                lambda: self.db.get_profile(self.user_id),
                timeout=self.config.profile_fetch_timeout,
                cleanup=self.db.release_session,
            )
        except TimeoutError:
            raise ProfileTimeoutError(
                f"Profile lookup for user {self.user_id} exceeded "
                f"{self.config.profile_fetch_timeout}s"
            )

    @property
    def profile(self) -> Optional[Profile]:
        """The acting user's profile; None when missing or the lookup timed out."""
        if not self._profile_loaded:
            try:
                self._profile = self.fetch_profile()
            except ProfileTimeoutError as e:
                logger.warning("%s; continuing without a profile", e)
                self._profile = None
            self._profile_loaded = True
        return self._profile

    def refresh_profile(self) -> Optional[Profile]:
        """Drop the cached profile and look it up again."""
        self._profile_loaded = False
        return self.profile

    @property
    def company_id(self) -> Optional[int]:
        profile = self.profile
        return profile.company_id if profile is not None else None

    def require_company_id(self) -> int:
        """Company of the acting user.

        Raises:
            NotFoundError: If the user has no profile or no company yet
        """
        company_id = self.company_id
        if company_id is None:
            raise NotFoundError(company_profile_not_found())
        return company_id

    def company(self) -> Optional[Company]:
        company_id = self.company_id
        if company_id is None:
            return None
        return self.db.get_company(company_id)

    def subscribe_notifications(self, callback: NotificationCallback) -> Subscription:
        """Subscribe to the acting user's notification inserts.

        The subscription is closed automatically when the session closes.
        """
        if self.closed:
            raise RuntimeError("Session is closed")
        subscription = self.db.subscribe_notifications(self.user_id, callback)
        self._subscriptions.append(subscription)
        return subscription

    def add_refresh_listener(self, listener: RefreshListener) -> None:
        """Register a callback run when dependent views should reload."""
        self._refresh_listeners.append(listener)

    def notify_refresh(self) -> None:
        """Run refresh listeners; a failing listener does not stop the others."""
        for listener in list(self._refresh_listeners):
            try:
                listener()
            except Exception:
                logger.exception("Refresh listener failed")

    def close(self) -> None:
        """Cancel all subscriptions and release this thread's session."""
        if self.closed:
            return
        self.closed = True
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions.clear()
        self._refresh_listeners.clear()
        self.db.release_session()

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
