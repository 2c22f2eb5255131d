"""E-mail composition and dispatch for billsense."""

from billsense.email.templates import InvoiceEmailFields, RenderedEmail, render_invoice_email
from billsense.email.providers import BrevoProvider, ResendProvider, select_provider
from billsense.email.dispatch import InvoiceEmailService
from billsense.email.invite import ClientInviteService

__all__ = [
    "InvoiceEmailFields",
    "RenderedEmail",
    "render_invoice_email",
    "BrevoProvider",
    "ResendProvider",
    "select_provider",
    "InvoiceEmailService",
    "ClientInviteService",
]
