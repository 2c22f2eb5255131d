"""Recent activity feed built from time entries and invoices."""

import logging
from typing import Iterable

from billsense.database.base import Database
from billsense.domain.entities import Activity, ActivityType, Invoice, InvoiceStatus, TimeEntry
from billsense.domain.session import SessionContext

logger = logging.getLogger(__name__)

SOURCE_LIMIT = 10
FEED_LIMIT = 8

_INVOICE_ACTIVITY = {
    InvoiceStatus.PAID: (ActivityType.INVOICE_PAID, "was paid"),
    InvoiceStatus.SENT: (ActivityType.INVOICE_SENT, "was sent"),
}


def time_entry_activities(entry: TimeEntry) -> list[Activity]:
    """Stopped activity (when finished) followed by the started activity."""
    metadata = {"task": entry.description}
    activities = []
    if entry.end_time is not None:
        activities.append(
            Activity(
                id=f"time_stop_{entry.id}",
                type=ActivityType.TIME_STOP,
                description=f"Stopped tracking time for {entry.project_name}",
                timestamp=entry.end_time,
                metadata=metadata,
            )
        )
    activities.append(
        Activity(
            id=f"time_start_{entry.id}",
            type=ActivityType.TIME_START,
            description=f"Started tracking time for {entry.project_name}",
            timestamp=entry.start_time,
            metadata=metadata,
        )
    )
    return activities


def invoice_activity(invoice: Invoice) -> Activity:
    """One activity per invoice; paid invoices are dated by their last update."""
    activity_type, verb = _INVOICE_ACTIVITY.get(
        invoice.status, (ActivityType.INVOICE_CREATED, "was created")
    )
    timestamp = invoice.updated_at if invoice.status == InvoiceStatus.PAID else invoice.created_at
    return Activity(
        id=f"invoice_{invoice.id}",
        type=activity_type,
        description=(
            f"Invoice {invoice.invoice_number} {verb} for {invoice.client_name} - ${invoice.total}"
        ),
        timestamp=timestamp,
        metadata={"amount": invoice.total},
    )


def merge_activities(
    entries: Iterable[TimeEntry],
    invoices: Iterable[Invoice],
    limit: int = FEED_LIMIT,
) -> list[Activity]:
    """Merge both sources newest first and keep the top `limit`.

    Equal timestamps keep insertion order: time entries in the order given,
    then invoices in the order given.
    """
    activities: list[Activity] = []
    for entry in entries:
        activities.extend(time_entry_activities(entry))
    for invoice in invoices:
        activities.append(invoice_activity(invoice))

    # sorted() is stable with reverse=True as well
    activities = sorted(activities, key=lambda a: a.timestamp, reverse=True)
    return activities[:limit]


class ActivityService:
    """Service for the acting user's recent activity."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize activity service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def recent_activity(self, limit: int = FEED_LIMIT) -> list[Activity]:
        """Most recent activities of the acting user.

        A failed read is logged and yields an empty feed.
        """
        try:
            entries = self.db.list_time_entries(
                user_id=self.session.user_id, order_by="created_at", limit=SOURCE_LIMIT
            )
            invoices = self.db.list_invoices(user_id=self.session.user_id, limit=SOURCE_LIMIT)
        except Exception:
            logger.exception("Error loading recent activity for user %s", self.session.user_id)
            return []
        return merge_activities(entries, invoices, limit=limit)
