"""Client management commands."""

import click

from billsense.domain.client import ClientService
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("add")
@click.argument("name", metavar="CLIENT_NAME")
@click.option("--email", help="Billing e-mail address")
@click.option("--currency", default="USD", show_default=True, help="Currency code for invoices")
@click.pass_context
def add_client(ctx, name: str, email: str | None, currency: str):
    """Add a new client.

    Examples:
        billsense client add "Acme Corp" --email billing@acme.test
        billsense client add "Globex" --currency EUR
    """
    service = ClientService(ctx.obj["db"], get_session(ctx))
    try:
        client_id = service.create_client(name=name, email=email, currency=currency)
        click.echo(f"Created client '{name}' (ID: {client_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List all clients."""
    service = ClientService(ctx.obj["db"], get_session(ctx))
    try:
        clients = service.list_clients()
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 70)
    for client in clients:
        click.echo(f"ID: {client.id:3d} | {client.name:25s} | {client.currency} | {client.email or '-'}")


@client_group.command("edit")
@click.argument("client_id", type=int)
@click.option("--name", help="New client name")
@click.option("--email", help="New e-mail address (empty string clears it)")
@click.option("--currency", help="New currency code")
@click.pass_context
def edit_client(ctx, client_id: int, name: str | None, email: str | None, currency: str | None):
    """Edit a client. Fields not given keep their current value."""
    service = ClientService(ctx.obj["db"], get_session(ctx))
    try:
        service.update_client(client_id, name=name, email=email, currency=currency)
        click.echo(f"Updated client {client_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@client_group.command("delete")
@click.argument("client_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_client(ctx, client_id: int, yes: bool):
    """Delete a client without projects or invoices."""
    service = ClientService(ctx.obj["db"], get_session(ctx))
    try:
        client = service.get_client(client_id)
        if not yes and not click.confirm(f"Delete client '{client.name}'?"):
            click.echo("Cancelled.")
            return
        service.delete_client(client_id)
        click.echo(f"Deleted client '{client.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
