"""Quotation domain service.

Quotations price work before it is done. They move draft -> sent ->
accepted | rejected, and an accepted quotation can be converted into a
draft invoice exactly once.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billsense.database.base import Database
from billsense.domain.entities import DiscountType, Quotation, QuotationItem, QuotationStatus
from billsense.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    client_not_found,
    illegal_quotation_transition,
    quotation_not_found,
)
from billsense.domain.invoice import CENT, InvoiceForm, InvoiceService
from billsense.domain.session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_VALIDITY_DAYS = 30
QUOTE_NUMBER_PREFIX = "Q-INV"

ALLOWED_TRANSITIONS = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.SENT}),
    QuotationStatus.SENT: frozenset({QuotationStatus.ACCEPTED, QuotationStatus.REJECTED}),
    QuotationStatus.ACCEPTED: frozenset({QuotationStatus.CONVERTED}),
    QuotationStatus.REJECTED: frozenset(),
    QuotationStatus.CONVERTED: frozenset(),
}


@dataclass
class QuotationForm:
    """User input for a new quotation."""

    client_id: int
    items: list[QuotationItem] = field(default_factory=list)
    tax_rate: Decimal = Decimal("0")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Decimal("0")
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    quote_number: Optional[str] = None
    currency: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


@dataclass(frozen=True)
class QuotationTotals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_quotation_totals(
    items: list[QuotationItem],
    tax_rate: Decimal,
    discount_type: DiscountType,
    discount_value: Decimal,
) -> QuotationTotals:
    """Price a quotation.

    Tax and a percentage discount are both taken on the item subtotal;
    total = subtotal + tax - discount.
    """
    subtotal = _cents(sum((item.amount for item in items), Decimal("0")))
    tax_amount = _cents(subtotal * tax_rate / Decimal(100))
    if discount_type == DiscountType.PERCENTAGE:
        discount_amount = _cents(subtotal * discount_value / Decimal(100))
    else:
        discount_amount = _cents(discount_value)
    return QuotationTotals(subtotal, tax_amount, discount_amount, subtotal + tax_amount - discount_amount)


def format_quote_number(sequence: int) -> str:
    return f"{QUOTE_NUMBER_PREFIX}{sequence:04d}"


class QuotationService:
    """Service for pricing quotations and carrying them through to an invoice."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize quotation service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def next_quote_number(self) -> str:
        """Next free number in the company's quotation sequence."""
        company_id = self.session.require_company_id()
        taken = {q.quote_number for q in self.db.list_quotations(company_id)}
        sequence = self.db.count_quotations(company_id) + 1
        while format_quote_number(sequence) in taken:
            sequence += 1
        return format_quote_number(sequence)

    def create_quotation(self, form: QuotationForm) -> int:
        """Create a draft quotation.

        Returns:
            Quotation ID

        Raises:
            ValidationError: On missing or malformed items, rates or dates
            NotFoundError: If the client is not in the company
        """
        company_id = self.session.require_company_id()
        items = self._validate_items(form.items)

        tax_rate = form.tax_rate or Decimal("0")
        if tax_rate < 0 or tax_rate > 100:
            raise ValidationError("Tax rate must be between 0 and 100")
        discount_type = DiscountType(form.discount_type)
        discount_value = form.discount_value or Decimal("0")
        if discount_value < 0:
            raise ValidationError("Discount cannot be negative")
        if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")

        client = self.db.get_client(form.client_id)
        if client is None or client.company_id != company_id:
            raise NotFoundError(client_not_found(form.client_id))

        issue_date = form.issue_date or date.today()
        expiry_date = form.expiry_date or issue_date + timedelta(days=DEFAULT_VALIDITY_DAYS)
        if expiry_date < issue_date:
            raise ValidationError("Expiry date cannot be before the issue date")

        totals = compute_quotation_totals(items, tax_rate, discount_type, discount_value)
        if totals.discount_amount > totals.subtotal:
            raise ValidationError("Discount cannot exceed the subtotal")

        quote_number = (form.quote_number or "").strip() or self.next_quote_number()
        quotation_id = self.db.create_quotation(
            company_id=company_id,
            client_id=client.id,
            quote_number=quote_number,
            issue_date=issue_date,
            expiry_date=expiry_date,
            items=items,
            subtotal=totals.subtotal,
            tax_rate=tax_rate,
            tax_amount=totals.tax_amount,
            discount_type=discount_type.value,
            discount_value=discount_value,
            discount_amount=totals.discount_amount,
            total=totals.total,
            currency=(form.currency or client.currency).upper(),
            notes=(form.notes or "").strip() or None,
            terms=(form.terms or "").strip() or None,
        )
        logger.info("Created quotation %s (%s) for client %s", quotation_id, quote_number, client.id)
        return quotation_id

    def get_quotation(self, quotation_id: int) -> Quotation:
        """Get a quotation of the acting user's company.

        Raises:
            NotFoundError: If not found in the company
        """
        quotation = self.db.get_quotation(quotation_id)
        if quotation is None or quotation.company_id != self.session.require_company_id():
            raise NotFoundError(quotation_not_found(quotation_id))
        return quotation

    def list_quotations(self, status: Optional[str] = None, search: Optional[str] = None) -> list[Quotation]:
        """List company quotations, newest first.

        Args:
            status: Optional status filter
            search: Case-insensitive match on quote number or client name
        """
        if status is not None:
            try:
                QuotationStatus(status)
            except ValueError:
                valid = ", ".join(s.value for s in QuotationStatus)
                raise ValidationError(f"Invalid quotation status '{status}'. Must be one of: {valid}")

        quotations = self.db.list_quotations(self.session.require_company_id(), status=status)
        term = (search or "").strip().lower()
        if term:
            quotations = [
                q for q in quotations if term in q.quote_number.lower() or term in q.client_name.lower()
            ]
        return quotations

    def status_counts(self) -> dict[QuotationStatus, int]:
        """Number of company quotations in each status."""
        counts = {status: 0 for status in QuotationStatus}
        for quotation in self.db.list_quotations(self.session.require_company_id()):
            counts[quotation.status] += 1
        return counts

    def transition(self, quotation_id: int, target: QuotationStatus) -> Quotation:
        """Move a quotation to a new status.

        Raises:
            ConflictError: If the lifecycle does not allow the change
        """
        quotation = self.get_quotation(quotation_id)
        if target not in ALLOWED_TRANSITIONS[quotation.status] or target == QuotationStatus.CONVERTED:
            raise ConflictError(
                illegal_quotation_transition(quotation.quote_number, quotation.status.value, target.value)
            )
        self.db.update_quotation_status(quotation_id, target.value)
        logger.info("Quotation %s moved from %s to %s", quotation_id, quotation.status.value, target.value)
        return self.db.get_quotation(quotation_id)

    def mark_sent(self, quotation_id: int) -> Quotation:
        return self.transition(quotation_id, QuotationStatus.SENT)

    def accept(self, quotation_id: int) -> Quotation:
        return self.transition(quotation_id, QuotationStatus.ACCEPTED)

    def reject(self, quotation_id: int) -> Quotation:
        return self.transition(quotation_id, QuotationStatus.REJECTED)

    def convert_to_invoice(self, quotation_id: int, due_date: Optional[date] = None) -> int:
        """Turn an accepted quotation into a draft invoice.

        The invoice bills the discounted subtotal at the quotation's tax
        rate. The quotation becomes converted and keeps a link to the invoice.

        Returns:
            Invoice ID

        Raises:
            ConflictError: Unless the quotation is accepted
        """
        quotation = self.get_quotation(quotation_id)
        if quotation.status != QuotationStatus.ACCEPTED:
            raise ConflictError(
                illegal_quotation_transition(
                    quotation.quote_number, quotation.status.value, QuotationStatus.CONVERTED.value
                )
            )

        lines = [f"Converted from quotation {quotation.quote_number}"]
        if quotation.notes:
            lines.append(quotation.notes)
        invoice_id = InvoiceService(self.db, self.session).create_invoice(
            InvoiceForm(
                client_id=quotation.client_id,
                subtotal=quotation.subtotal - quotation.discount_amount,
                tax_rate=quotation.tax_rate,
                due_date=due_date,
                currency=quotation.currency,
                notes="\n".join(lines),
            )
        )
        self.db.update_quotation_status(quotation_id, QuotationStatus.CONVERTED.value, invoice_id=invoice_id)
        logger.info("Converted quotation %s into invoice %s", quotation_id, invoice_id)
        return invoice_id

    def delete_quotation(self, quotation_id: int) -> None:
        """Delete a quotation.

        Raises:
            ConflictError: If the quotation was already converted into an invoice
        """
        quotation = self.get_quotation(quotation_id)
        if quotation.status == QuotationStatus.CONVERTED:
            raise ConflictError(
                f"Quotation {quotation.quote_number} was converted into an invoice and cannot be deleted"
            )
        self.db.delete_quotation(quotation_id)

    @staticmethod
    def _validate_items(items: list[QuotationItem]) -> list[QuotationItem]:
        if not items:
            raise ValidationError("A quotation needs at least one item")
        cleaned = []
        for item in items:
            description = (item.description or "").strip()
            if not description:
                raise ValidationError("Item description is required")
            if item.quantity is None or item.quantity <= 0:
                raise ValidationError(f"Quantity for '{description}' must be positive")
            if item.rate is None or item.rate < 0:
                raise ValidationError(f"Rate for '{description}' cannot be negative")
            cleaned.append(QuotationItem(description=description, quantity=item.quantity, rate=item.rate))
        return cleaned
