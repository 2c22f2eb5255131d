"""Invoice commands."""

from datetime import datetime

import click

from billsense.domain.entities import InvoiceStatus
from billsense.domain.invoice import InvoiceForm, InvoiceService
from billsense.email.dispatch import InvoiceEmailService
from billsense.utils.formatting import format_money
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.params import AMOUNT, DATE
from billsense.cli.session import get_session


@click.group()
def invoice_group():
    """Create, send and track invoices."""
    pass


def _service(ctx) -> InvoiceService:
    return InvoiceService(ctx.obj["db"], get_session(ctx))


@invoice_group.command("create")
@click.option("--client", "client_id", type=int, required=True, help="Client ID")
@click.option("--amount", "subtotal", type=AMOUNT, required=True, help="Subtotal before tax")
@click.option("--tax-rate", type=AMOUNT, default="0", show_default=True, help="Tax rate in percent")
@click.option("--number", "invoice_number", help="Invoice number (default: next in sequence)")
@click.option("--issue-date", type=DATE, help="Issue date (default: today)")
@click.option("--due-date", type=DATE, help="Due date (default: 30 days after issue)")
@click.option("--currency", help="Currency code (default: the client's)")
@click.option("--project", "project_id", type=int, help="Project ID")
@click.option("--notes", help="Notes printed on the invoice")
@click.pass_context
def create_invoice(ctx, client_id, subtotal, tax_rate, invoice_number, issue_date, due_date, currency, project_id, notes):
    """Create a draft invoice.

    Examples:
        billsense invoice create --client 1 --amount 2400 --tax-rate 20
        billsense invoice create --client 1 --amount 500 --due-date "in 14 days"
    """
    service = _service(ctx)
    form = InvoiceForm(
        client_id=client_id,
        subtotal=subtotal,
        tax_rate=tax_rate,
        issue_date=issue_date,
        due_date=due_date,
        invoice_number=invoice_number,
        currency=currency,
        notes=notes,
        project_id=project_id,
    )
    try:
        invoice = service.get_invoice(service.create_invoice(form))
        click.echo(
            f"Created invoice {invoice.invoice_number} for {invoice.client_name}: "
            f"{format_money(invoice.total, invoice.currency)} due {invoice.due_date} (ID: {invoice.id})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in InvoiceStatus]), help="Only this status")
@click.option("--overdue", is_flag=True, help="Only sent invoices past their due date")
@click.pass_context
def list_invoices(ctx, status: str | None, overdue: bool):
    """List invoices, newest first."""
    service = _service(ctx)
    try:
        invoices = service.list_invoices(status=status, overdue_only=overdue)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not invoices:
        click.echo("No invoices found.")
        return

    now = datetime.now()
    click.echo(f"\nFound {len(invoices)} invoice(s):")
    click.echo("-" * 100)
    for invoice in invoices:
        status_label = "overdue" if invoice.is_overdue(now) else invoice.status.value
        click.echo(
            f"ID: {invoice.id:4d} | {invoice.invoice_number:10s} | {invoice.client_name:20s} | "
            f"{format_money(invoice.total, invoice.currency):>14s} | {status_label:7s} | due {invoice.due_date}"
        )


@invoice_group.command("send")
@click.argument("invoice_id", type=int)
@click.option("--to", "recipient_email", required=True, help="Recipient e-mail address")
@click.option("--name", "recipient_name", help="Recipient name used in the greeting")
@click.pass_context
def send_invoice(ctx, invoice_id: int, recipient_email: str, recipient_name: str | None):
    """E-mail an invoice to the client and mark it as sent."""
    db = ctx.obj["db"]
    service = _service(ctx)
    try:
        service.ensure_payment_link(invoice_id)
        invoice = InvoiceEmailService(db, ctx.obj["config"]).send(invoice_id, recipient_email, recipient_name)
        click.echo(f"Sent invoice {invoice.invoice_number} to {recipient_email}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def _transition_command(name: str, method: str, verb: str):
    @invoice_group.command(name, help=f"Mark an invoice as {verb}.")
    @click.argument("invoice_id", type=int)
    @click.pass_context
    def command(ctx, invoice_id: int):
        service = _service(ctx)
        try:
            invoice = getattr(service, method)(invoice_id)
            click.echo(f"Invoice {invoice.invoice_number} marked as {verb}")
        except ValueError as e:
            handle_domain_error(ctx, e)

    return command


mark_sent = _transition_command("mark-sent", "mark_sent", "sent")
mark_partial = _transition_command("mark-partial", "mark_partial", "partially paid")
mark_paid = _transition_command("mark-paid", "mark_paid", "paid")


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_invoice(ctx, invoice_id: int, yes: bool):
    """Delete a draft invoice."""
    service = _service(ctx)
    try:
        invoice = service.get_invoice(invoice_id)
        if not yes and not click.confirm(f"Delete invoice {invoice.invoice_number}?"):
            click.echo("Cancelled.")
            return
        service.delete_invoice(invoice_id)
        click.echo(f"Deleted invoice {invoice.invoice_number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
