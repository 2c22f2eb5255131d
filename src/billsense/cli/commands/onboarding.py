"""Account setup and company settings commands."""

import click

from billsense.domain.company import CompanyService
from billsense.domain.entities import EmailProviderName
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session


@click.command("setup")
@click.option("--email", required=True, help="Your e-mail address")
@click.option("--name", "full_name", required=True, help="Your full name")
@click.option("--company", "company_name", required=True, help="Company name shown on invoices")
@click.option("--currency", default="USD", show_default=True, help="Default currency code")
@click.option("--invoice-prefix", default="INV-", show_default=True, help="Prefix for invoice numbers")
@click.pass_context
def setup(ctx, email: str, full_name: str, company_name: str, currency: str, invoice_prefix: str):
    """Create your profile and company.

    Prints the user ID to pass as --user (or BILLSENSE_USER) afterwards.

    Examples:
        billsense setup --email jane@example.com --name "Jane Doe" --company "Jane Builds"
    """
    db = ctx.obj["db"]
    service = CompanyService(db)

    try:
        user_id = service.register_user(email, full_name)
        profile = db.get_profile(user_id)
        if profile.company_id is not None:
            click.echo(f"Profile {user_id} is already set up (company ID: {profile.company_id})")
        else:
            company_id = service.onboard(
                user_id,
                company_name,
                email=email,
                currency=currency,
                invoice_prefix=invoice_prefix,
            )
            click.echo(f"Created company '{company_name}' (ID: {company_id})")
        click.echo(f"Your user ID is {user_id}. Run 'export BILLSENSE_USER={user_id}' to use it.")
    except ValueError as e:
        handle_domain_error(ctx, e)


@click.command("email-settings")
@click.option(
    "--provider",
    type=click.Choice([p.value for p in EmailProviderName]),
    required=True,
    help="E-mail provider used to send invoices",
)
@click.option("--api-key", help="Provider API key (resend/brevo)")
@click.option("--sender-name", help="Sender display name")
@click.option("--sender-email", help="Sender e-mail address")
@click.pass_context
def email_settings(ctx, provider: str, api_key: str | None, sender_name: str | None, sender_email: str | None):
    """Choose how invoice e-mails are sent.

    Examples:
        billsense email-settings --provider system
        billsense email-settings --provider resend --api-key re_123 --sender-email me@example.com
    """
    session = get_session(ctx)
    service = CompanyService(ctx.obj["db"])

    try:
        settings = service.configure_email(
            session.require_company_id(),
            provider,
            api_key=api_key,
            sender_name=sender_name,
            sender_email=sender_email,
        )
        click.echo(f"E-mail provider set to '{settings.provider.value}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register setup commands with main CLI."""
    cli.add_command(setup)
    cli.add_command(email_settings)
