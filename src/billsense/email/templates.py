"""E-mail templates.

Rendering is pure: every value interpolated into HTML is escaped, and each
message comes with a plain-text twin.
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape
from typing import Optional

BRAND = "BillSense"
TAGLINE = "Professional time tracking and invoicing for freelancers"


@dataclass(frozen=True)
class InvoiceEmailFields:
    """Values shown in an invoice e-mail."""

    freelancer_name: str
    client_name: str
    invoice_number: str
    amount: Decimal
    currency: str
    due_date: str
    invoice_link: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def format_amount(amount: Decimal, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


_INVOICE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Invoice {invoice_number}</title>
  <style>
    body {{ font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #1f2937; background-color: #f3f4f6; padding: 20px; }}
    .email-wrapper {{ max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 12px; overflow: hidden; }}
    .header {{ background: #2563eb; color: white; padding: 40px 30px; text-align: center; }}
    .content {{ padding: 40px 30px; }}
    .invoice-card {{ border: 1px solid #e5e7eb; border-radius: 10px; padding: 24px; margin: 24px 0; }}
    .detail-row {{ display: flex; justify-content: space-between; padding: 12px 0; border-bottom: 1px solid #f3f4f6; }}
    .detail-label {{ font-size: 14px; color: #6b7280; }}
    .detail-value {{ font-size: 14px; color: #1f2937; font-weight: 600; }}
    .amount {{ font-size: 28px; font-weight: 700; color: #2563eb; }}
    .notes-box {{ background: #fffbeb; border-left: 4px solid #f59e0b; padding: 16px; border-radius: 6px; margin: 20px 0; }}
    .cta-section {{ text-align: center; margin: 32px 0; }}
    .cta-button {{ display: inline-block; background: #2563eb; color: white; padding: 16px 40px; text-decoration: none; border-radius: 8px; font-weight: 600; }}
    .footer {{ background: #f9fafb; padding: 24px 30px; text-align: center; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 13px; }}
  </style>
</head>
<body>
  <div class="email-wrapper">
    <div class="header">
      <h1>New Invoice Received</h1>
      <p>From {freelancer_name}</p>
    </div>
    <div class="content">
      <p>Hello {client_name},</p>
      <p>You have received a new invoice. Please review the details below:</p>
      <div class="invoice-card">
        <div class="detail-row">
          <span class="detail-label">Invoice</span>
          <span class="detail-value">#{invoice_number}</span>
        </div>
        <div class="detail-row">
          <span class="detail-label">From</span>
          <span class="detail-value">{freelancer_name}</span>
        </div>
        <div class="detail-row">
          <span class="detail-label">Due Date</span>
          <span class="detail-value">{due_date}</span>
        </div>
        <div class="detail-row">
          <span class="detail-label">Total Amount</span>
          <span class="amount">{amount}</span>
        </div>
      </div>
{notes_block}
      <div class="cta-section">
        <a href="{invoice_link}" class="cta-button">View &amp; Pay Invoice</a>
      </div>
      <p>Click the button above to view the full invoice and make a secure payment online.<br>
      If you have any questions, please contact {freelancer_name} directly.</p>
    </div>
    <div class="footer">
      <p>This invoice was sent via {brand}</p>
      <p>{tagline}</p>
    </div>
  </div>
</body>
</html>
"""

_NOTES_HTML = """      <div class="notes-box">
        <strong>Notes from {freelancer_name}</strong>
        <p>{notes}</p>
      </div>
"""

_INVOICE_TEXT = """Invoice {invoice_number} from {freelancer_name}

Hello {client_name},

You have received a new invoice with the following details:

Invoice Number: {invoice_number}
From: {freelancer_name}
Amount: {amount}
Due Date: {due_date}
{notes_line}
View and pay your invoice: {invoice_link}

If you have any questions about this invoice, please contact {freelancer_name} directly.

---
This invoice was sent via {brand}
{tagline}
"""


def invoice_subject(invoice_number: str, freelancer_name: str) -> str:
    return f"Invoice {invoice_number} from {freelancer_name}"


def render_invoice_email(fields: InvoiceEmailFields) -> RenderedEmail:
    """Render the subject, HTML body and text body of an invoice e-mail."""
    amount = format_amount(fields.amount, fields.currency)

    notes_block = ""
    if fields.notes:
        notes_block = _NOTES_HTML.format(
            freelancer_name=escape(fields.freelancer_name),
            notes=escape(fields.notes),
        )

    html = _INVOICE_HTML.format(
        invoice_number=escape(fields.invoice_number),
        freelancer_name=escape(fields.freelancer_name),
        client_name=escape(fields.client_name),
        due_date=escape(fields.due_date),
        amount=escape(amount),
        invoice_link=escape(fields.invoice_link, quote=True),
        notes_block=notes_block,
        brand=BRAND,
        tagline=TAGLINE,
    )
    text = _INVOICE_TEXT.format(
        invoice_number=fields.invoice_number,
        freelancer_name=fields.freelancer_name,
        client_name=fields.client_name,
        due_date=fields.due_date,
        amount=amount,
        invoice_link=fields.invoice_link,
        notes_line=f"\nNotes: {fields.notes}\n" if fields.notes else "",
        brand=BRAND,
        tagline=TAGLINE,
    )
    return RenderedEmail(
        subject=invoice_subject(fields.invoice_number, fields.freelancer_name),
        html=html,
        text=text,
    )


_PORTAL_HTML = """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #1F2937; margin-bottom: 20px;">{heading}</h2>
  <p style="color: #4B5563; line-height: 1.6;">Hello,</p>
  <p style="color: #4B5563; line-height: 1.6;">{intro}</p>
  <div style="text-align: center; margin: 32px 0;">
    <a href="{link}" style="background-color: #3B82F6; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; display: inline-block; font-weight: 600;">{button}</a>
  </div>
  <p style="color: #6B7280; font-size: 14px; line-height: 1.6;">If the button doesn't work, copy and paste this link into your browser:</p>
  <p style="color: #6B7280; font-size: 12px; word-break: break-all;">{link}</p>
  <hr style="margin: 32px 0; border: none; border-top: 1px solid #E5E7EB;">
  <p style="color: #9CA3AF; font-size: 12px; line-height: 1.6;">If you didn't expect this e-mail, you can safely ignore it.</p>
</div>
"""


def _render_portal_email(subject: str, heading: str, intro: str, button: str, link: str) -> RenderedEmail:
    html = _PORTAL_HTML.format(
        heading=escape(heading),
        intro=escape(intro),
        button=escape(button),
        link=escape(link, quote=True),
    )
    text = f"{heading}\n\nHello,\n\n{intro}\n\n{button}: {link}\n\n---\nsent via {BRAND}\n"
    return RenderedEmail(subject=subject, html=html, text=text)


def render_client_invite_email(action_link: str) -> RenderedEmail:
    """Invitation to a new client portal user."""
    return _render_portal_email(
        subject="Welcome to Your Client Portal",
        heading="Welcome to Your Client Portal!",
        intro="You have been invited to access your client portal where you can view "
        "projects, invoices, and track progress. Set up your password to get started.",
        button="Set Up Your Password",
        link=action_link,
    )


def render_portal_access_email(action_link: str) -> RenderedEmail:
    """Notice to an existing user that a client portal was shared with them."""
    return _render_portal_email(
        subject="You now have access to a client portal",
        heading="Client Portal Access",
        intro="A client portal has been shared with your existing account. "
        "Confirm your password to access it.",
        button="Access Your Portal",
        link=action_link,
    )


def render_password_reset_email(action_link: str) -> RenderedEmail:
    """Password reset for an existing client portal user."""
    return _render_portal_email(
        subject="Reset your client portal password",
        heading="Reset Your Password",
        intro="A password reset was requested for your client portal account.",
        button="Reset Password",
        link=action_link,
    )
