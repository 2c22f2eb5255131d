"""Quotation commands."""

from datetime import date

import click

from billsense.domain.entities import DiscountType, QuotationItem, QuotationStatus
from billsense.domain.quotation import QuotationForm, QuotationService
from billsense.utils.formatting import format_money
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.params import AMOUNT, DATE
from billsense.cli.session import get_session


@click.group()
def quote_group():
    """Price work with quotations and turn accepted ones into invoices."""
    pass


def _service(ctx) -> QuotationService:
    return QuotationService(ctx.obj["db"], get_session(ctx))


@quote_group.command("create")
@click.option("--client", "client_id", type=int, required=True, help="Client ID")
@click.option(
    "--item",
    "items",
    type=(str, AMOUNT, AMOUNT),
    multiple=True,
    required=True,
    metavar="DESCRIPTION QTY RATE",
    help="Line item; repeat for several",
)
@click.option("--tax-rate", type=AMOUNT, default="0", show_default=True, help="Tax rate in percent")
@click.option(
    "--discount-type",
    type=click.Choice([d.value for d in DiscountType]),
    default=DiscountType.PERCENTAGE.value,
    show_default=True,
)
@click.option("--discount", "discount_value", type=AMOUNT, default="0", show_default=True,
              help="Discount in percent or as a fixed amount")
@click.option("--number", "quote_number", help="Quote number (default: next in sequence)")
@click.option("--issue-date", type=DATE, help="Issue date (default: today)")
@click.option("--expiry-date", type=DATE, help="Valid until (default: 30 days after issue)")
@click.option("--currency", help="Currency code (default: the client's)")
@click.option("--notes", help="Notes printed on the quotation")
@click.option("--terms", help="Terms and conditions")
@click.pass_context
def create_quote(ctx, client_id, items, tax_rate, discount_type, discount_value, quote_number,
                 issue_date, expiry_date, currency, notes, terms):
    """Create a draft quotation.

    Examples:
        billsense quote create --client 1 --item "Design" 10 85 --item "Hosting" 1 120
        billsense quote create --client 1 --item "Audit" 1 900 --discount-type fixed --discount 100
    """
    service = _service(ctx)
    form = QuotationForm(
        client_id=client_id,
        items=[QuotationItem(description=d, quantity=q, rate=r) for d, q, r in items],
        tax_rate=tax_rate,
        discount_type=DiscountType(discount_type),
        discount_value=discount_value,
        issue_date=issue_date,
        expiry_date=expiry_date,
        quote_number=quote_number,
        currency=currency,
        notes=notes,
        terms=terms,
    )
    try:
        quotation = service.get_quotation(service.create_quotation(form))
        click.echo(
            f"Created quotation {quotation.quote_number} for {quotation.client_name}: "
            f"{format_money(quotation.total, quotation.currency)} valid until {quotation.expiry_date} "
            f"(ID: {quotation.id})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@quote_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in QuotationStatus]), help="Only this status")
@click.option("--search", help="Match quote number or client name")
@click.pass_context
def list_quotes(ctx, status: str | None, search: str | None):
    """List quotations, newest first, with a count per status."""
    service = _service(ctx)
    try:
        quotations = service.list_quotations(status=status, search=search)
        counts = service.status_counts()
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not quotations:
        click.echo("No quotations found.")
        return

    today = date.today()
    click.echo(f"\nFound {len(quotations)} quotation(s):")
    click.echo("-" * 100)
    for quotation in quotations:
        status_label = "expired" if quotation.is_expired(today) else quotation.status.value
        click.echo(
            f"ID: {quotation.id:4d} | {quotation.quote_number:10s} | {quotation.client_name:20s} | "
            f"{format_money(quotation.total, quotation.currency):>14s} | {status_label:9s} | "
            f"valid until {quotation.expiry_date}"
        )
    click.echo("-" * 100)
    click.echo(" | ".join(f"{s.value}: {n}" for s, n in counts.items()))


@quote_group.command("show")
@click.argument("quotation_id", type=int)
@click.pass_context
def show_quote(ctx, quotation_id: int):
    """Show a quotation with its line items."""
    try:
        quotation = _service(ctx).get_quotation(quotation_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    currency = quotation.currency
    click.echo(f"\nQuotation {quotation.quote_number} for {quotation.client_name} ({quotation.status.value})")
    click.echo(f"Issued {quotation.issue_date}, valid until {quotation.expiry_date}")
    click.echo("-" * 70)
    for item in quotation.items:
        click.echo(
            f"{item.description:30s} {item.quantity:>8} x {item.rate:>10,.2f} = "
            f"{format_money(item.amount, currency):>16s}"
        )
    click.echo("-" * 70)
    click.echo(f"{'Subtotal':>52s} {format_money(quotation.subtotal, currency):>16s}")
    click.echo(f"{f'Tax ({quotation.tax_rate}%)':>52s} {format_money(quotation.tax_amount, currency):>16s}")
    if quotation.discount_amount:
        click.echo(f"{'Discount':>52s} {format_money(-quotation.discount_amount, currency):>16s}")
    click.echo(f"{'Total':>52s} {format_money(quotation.total, currency):>16s}")
    if quotation.invoice_id is not None:
        click.echo(f"\nConverted into invoice ID {quotation.invoice_id}")


def _transition_command(name: str, method: str, verb: str):
    @quote_group.command(name, help=f"Mark a quotation as {verb}.")
    @click.argument("quotation_id", type=int)
    @click.pass_context
    def command(ctx, quotation_id: int):
        service = _service(ctx)
        try:
            quotation = getattr(service, method)(quotation_id)
            click.echo(f"Quotation {quotation.quote_number} marked as {verb}")
        except ValueError as e:
            handle_domain_error(ctx, e)

    return command


mark_sent = _transition_command("send", "mark_sent", "sent")
accept = _transition_command("accept", "accept", "accepted")
reject = _transition_command("reject", "reject", "rejected")


@quote_group.command("convert")
@click.argument("quotation_id", type=int)
@click.option("--due-date", type=DATE, help="Invoice due date (default: 30 days from today)")
@click.pass_context
def convert_quote(ctx, quotation_id: int, due_date):
    """Convert an accepted quotation into a draft invoice."""
    service = _service(ctx)
    try:
        invoice_id = service.convert_to_invoice(quotation_id, due_date=due_date)
        invoice = ctx.obj["db"].get_invoice(invoice_id)
        click.echo(
            f"Created invoice {invoice.invoice_number} from quotation: "
            f"{format_money(invoice.total, invoice.currency)} (ID: {invoice.id})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@quote_group.command("delete")
@click.argument("quotation_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_quote(ctx, quotation_id: int, yes: bool):
    """Delete a quotation that was not converted."""
    service = _service(ctx)
    try:
        quotation = service.get_quotation(quotation_id)
        if not yes and not click.confirm(f"Delete quotation {quotation.quote_number}?"):
            click.echo("Cancelled.")
            return
        service.delete_quotation(quotation_id)
        click.echo(f"Deleted quotation {quotation.quote_number}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register quotation commands with main CLI."""
    cli.add_command(quote_group, name="quote")
