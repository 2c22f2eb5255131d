"""Invoice domain service."""

import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billsense.database.base import Database
from billsense.domain.entities import Invoice, InvoiceStatus
from billsense.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    client_not_found,
    illegal_invoice_transition,
    invoice_not_found,
    project_not_found,
)
from billsense.domain.session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_TERMS_DAYS = 30

ALLOWED_TRANSITIONS = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PARTIAL, InvoiceStatus.PAID}),
    InvoiceStatus.PARTIAL: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}

CENT = Decimal("0.01")


@dataclass
class InvoiceForm:
    """User input for a new invoice."""

    client_id: int
    subtotal: Decimal
    tax_rate: Decimal = Decimal("0")
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    invoice_number: Optional[str] = None
    currency: Optional[str] = None
    notes: Optional[str] = None
    project_id: Optional[int] = None


def compute_totals(subtotal: Decimal, tax_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return (tax_amount, total) for a subtotal and a percentage tax rate."""
    tax_amount = (subtotal * tax_rate / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return tax_amount, (subtotal + tax_amount).quantize(CENT, rounding=ROUND_HALF_UP)


def new_payment_link() -> str:
    """Unguessable token identifying an invoice's public page."""
    return secrets.token_urlsafe(16)


def can_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class InvoiceService:
    """Service for creating invoices and moving them through their lifecycle."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize invoice service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def create_invoice(self, form: InvoiceForm) -> int:
        """Create a draft invoice.

        The invoice number comes from the company's prefix and counter when
        the form leaves it empty.

        Returns:
            Invoice ID

        Raises:
            ValidationError: On negative amounts or a due date before the issue date
            NotFoundError: If the client or project is not in the company
        """
        company_id = self.session.require_company_id()

        if form.subtotal is None or form.subtotal < 0:
            raise ValidationError("Subtotal cannot be negative")
        tax_rate = form.tax_rate or Decimal("0")
        if tax_rate < 0 or tax_rate > 100:
            raise ValidationError("Tax rate must be between 0 and 100")

        client = self.db.get_client(form.client_id)
        if client is None or client.company_id != company_id:
            raise NotFoundError(client_not_found(form.client_id))

        if form.project_id is not None:
            project = self.db.get_project(form.project_id)
            if project is None or project.company_id != company_id:
                raise NotFoundError(project_not_found(form.project_id))

        issue_date = form.issue_date or date.today()
        due_date = form.due_date or issue_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS)
        if due_date < issue_date:
            raise ValidationError("Due date cannot be before the issue date")

        invoice_number = (form.invoice_number or "").strip() or self.db.next_invoice_number(company_id)
        tax_amount, total = compute_totals(form.subtotal, tax_rate)

        invoice_id = self.db.create_invoice(
            company_id=company_id,
            user_id=self.session.user_id,
            client_id=client.id,
            project_id=form.project_id,
            invoice_number=invoice_number,
            issue_date=issue_date,
            due_date=due_date,
            subtotal=form.subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            total=total,
            currency=(form.currency or client.currency).upper(),
            notes=(form.notes or "").strip() or None,
            payment_link=new_payment_link(),
        )
        logger.info("Created invoice %s (%s) for client %s", invoice_id, invoice_number, client.id)
        return invoice_id

    def get_invoice(self, invoice_id: int) -> Invoice:
        """Get an invoice of the acting user's company.

        Raises:
            NotFoundError: If not found in the company
        """
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None or invoice.company_id != self.session.require_company_id():
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(self, status: Optional[str] = None, overdue_only: bool = False) -> list[Invoice]:
        """List company invoices, newest first.

        Args:
            status: Optional stored status filter
            overdue_only: Only sent invoices past their due date
        """
        if status is not None:
            try:
                InvoiceStatus(status)
            except ValueError:
                valid = ", ".join(s.value for s in InvoiceStatus)
                raise ValidationError(f"Invalid invoice status '{status}'. Must be one of: {valid}")

        invoices = self.db.list_invoices(company_id=self.session.require_company_id(), status=status)
        if overdue_only:
            now = datetime.now()
            invoices = [inv for inv in invoices if inv.is_overdue(now)]
        return invoices

    def transition(self, invoice_id: int, target: InvoiceStatus) -> Invoice:
        """Move an invoice to a new status.

        Raises:
            ConflictError: If the lifecycle does not allow the change
        """
        invoice = self.get_invoice(invoice_id)
        if not can_transition(invoice.status, target):
            raise ConflictError(
                illegal_invoice_transition(invoice.invoice_number, invoice.status.value, target.value)
            )
        self.db.update_invoice_status(invoice_id, target.value)
        logger.info("Invoice %s moved from %s to %s", invoice_id, invoice.status.value, target.value)
        return self.db.get_invoice(invoice_id)

    def mark_sent(self, invoice_id: int) -> Invoice:
        return self.transition(invoice_id, InvoiceStatus.SENT)

    def mark_partial(self, invoice_id: int) -> Invoice:
        return self.transition(invoice_id, InvoiceStatus.PARTIAL)

    def mark_paid(self, invoice_id: int) -> Invoice:
        """Mark an invoice as paid and notify its owner."""
        invoice = self.transition(invoice_id, InvoiceStatus.PAID)
        self.db.create_notification(
            user_id=invoice.user_id,
            company_id=invoice.company_id,
            type="payment",
            title="Invoice paid",
            message=f"Invoice {invoice.invoice_number} from {invoice.client_name} was paid "
            f"({invoice.currency} {invoice.total})",
        )
        return invoice

    def ensure_payment_link(self, invoice_id: int) -> str:
        """Return the invoice's payment link token, creating one if missing."""
        invoice = self.get_invoice(invoice_id)
        if invoice.payment_link:
            return invoice.payment_link
        token = new_payment_link()
        self.db.set_invoice_payment_link(invoice_id, token)
        return token

    def delete_invoice(self, invoice_id: int) -> None:
        """Delete a draft invoice.

        Raises:
            ConflictError: If the invoice has left the draft state
        """
        invoice = self.get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} is {invoice.status.value}; only drafts can be deleted"
            )
        self.db.delete_invoice(invoice_id)
