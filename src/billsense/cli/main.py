"""Main CLI entry point."""

import click

from billsense.config.logging_config import LoggingConfig, configure_logging
from billsense.config.settings import get_config
from billsense.database.factories import create_sqlite_database

# Import and register all commands at module level
from billsense.cli.commands import (
    onboarding,
    timer,
    client,
    project,
    expense,
    invoice,
    quote,
    dashboard,
    report,
    activity,
    notifications,
    serve,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BILLSENSE_DB_PATH environment variable)",
    envvar="BILLSENSE_DB_PATH",
)
@click.option(
    "--user",
    "user_id",
    type=int,
    help="Acting user ID (overrides BILLSENSE_USER environment variable)",
    envvar="BILLSENSE_USER",
)
@click.pass_context
def cli(ctx, db_path: str | None, user_id: int | None):
    """BillSense - Time tracking, invoicing and expenses for freelancers.

    Track time against projects, invoice clients, record expenses and keep
    an eye on the numbers from the dashboard.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        config = get_config()
        db = create_sqlite_database(database_path=db_path or config.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["config"] = config
        ctx.obj["user_id"] = user_id
        ctx.call_on_close(lambda: _teardown(ctx))


def _teardown(ctx) -> None:
    session = ctx.obj.get("session")
    if session is not None:
        session.close()
    ctx.obj["db"].disconnect()


# Register all commands
onboarding.register_commands(cli)
timer.register_commands(cli)
client.register_commands(cli)
project.register_commands(cli)
expense.register_commands(cli)
invoice.register_commands(cli)
quote.register_commands(cli)
dashboard.register_commands(cli)
report.register_commands(cli)
activity.register_commands(cli)
notifications.register_commands(cli)
serve.register_commands(cli)


def main():
    """Main entry point for CLI."""
    configure_logging(LoggingConfig.from_settings(get_config()))
    cli()


if __name__ == "__main__":
    main()
