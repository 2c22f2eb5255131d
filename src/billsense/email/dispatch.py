"""Invoice e-mail dispatch."""

import logging
from typing import Any, Optional

from billsense.config.settings import BillSenseSettings, get_config
from billsense.database.base import Database
from billsense.domain.entities import Invoice, InvoiceStatus
from billsense.domain.errors import DomainError, NotFoundError, ValidationError
from billsense.domain.invoice import new_payment_link
from billsense.email.providers import select_provider
from billsense.email.templates import InvoiceEmailFields, RenderedEmail, render_invoice_email

logger = logging.getLogger(__name__)

Envelope = tuple[dict[str, Any], int]

SUCCESS_MESSAGE = "Invoice email sent successfully"


def format_due_date(invoice: Invoice) -> str:
    if invoice.due_date is None:
        return "Upon receipt"
    return invoice.due_date.strftime("%m/%d/%Y")


class InvoiceEmailService:
    """Sends an invoice to its recipient through the company's provider."""

    def __init__(self, db: Database, config: Optional[BillSenseSettings] = None):
        """Initialize invoice e-mail service.

        Args:
            db: Database instance
            config: Settings; the global configuration when omitted
        """
        self.db = db
        self.config = config or get_config()

    def public_link(self, payment_link: str) -> str:
        """Public page where the client views and pays an invoice."""
        return f"{self.config.public_invoice_base}/{payment_link}"

    def build_email(self, invoice: Invoice, recipient_name: Optional[str]) -> RenderedEmail:
        """Render the e-mail for an invoice.

        Raises:
            NotFoundError: If the invoice owner's profile is missing
        """
        profile = self.db.get_profile(invoice.user_id)
        if profile is None:
            raise NotFoundError("Invoice owner profile not found")

        payment_link = invoice.payment_link
        if not payment_link:
            payment_link = new_payment_link()
            self.db.set_invoice_payment_link(invoice.id, payment_link)

        return render_invoice_email(
            InvoiceEmailFields(
                freelancer_name=profile.full_name,
                client_name=recipient_name or invoice.client_name,
                invoice_number=invoice.invoice_number,
                amount=invoice.total,
                currency=invoice.currency,
                due_date=format_due_date(invoice),
                invoice_link=self.public_link(payment_link),
                notes=invoice.notes,
            )
        )

    def send(self, invoice_id: Optional[int], recipient_email: Optional[str], recipient_name: Optional[str] = None) -> Invoice:
        """Send an invoice and mark drafts as sent.

        Returns:
            The invoice after the send

        Raises:
            ValidationError: If invoice ID or recipient is missing
            NotFoundError: If the invoice or its owner does not exist
            ProviderError: If the provider rejects the message
        """
        if not invoice_id or not recipient_email:
            raise ValidationError("Missing required fields: invoiceId or recipientEmail")

        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")

        message = self.build_email(invoice, recipient_name)
        settings = self.db.get_email_settings(invoice.company_id)
        provider = select_provider(settings, self.config)
        provider.send(recipient_email, recipient_name, message)

        # Re-sending a sent, partial or paid invoice leaves its status alone
        if invoice.status == InvoiceStatus.DRAFT:
            self.db.update_invoice_status(invoice.id, InvoiceStatus.SENT.value)

        self.db.create_notification(
            user_id=invoice.user_id,
            company_id=invoice.company_id,
            type="invoice",
            title="Invoice sent",
            message=f"Invoice {invoice.invoice_number} was sent to {recipient_email}",
        )
        return self.db.get_invoice(invoice.id)

    def send_invoice_email(
        self,
        invoice_id: Optional[int],
        recipient_email: Optional[str],
        recipient_name: Optional[str] = None,
    ) -> Envelope:
        """Send an invoice and report the outcome as a JSON envelope.

        Returns:
            ({"success": True, "message": ...}, 200) or ({"error": ...}, 400)
        """
        try:
            self.send(invoice_id, recipient_email, recipient_name)
        except DomainError as e:
            logger.error("Error sending invoice %s: %s", invoice_id, e)
            return {"error": str(e)}, 400
        return {"success": True, "message": SUCCESS_MESSAGE}, 200
