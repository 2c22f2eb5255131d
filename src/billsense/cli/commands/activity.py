"""Recent activity command."""

import click

from billsense.domain.activity import FEED_LIMIT, ActivityService
from billsense.cli.session import get_session


@click.command("activity")
@click.option("--limit", type=int, default=FEED_LIMIT, show_default=True, help="Number of entries")
@click.pass_context
def activity(ctx, limit: int):
    """Show your most recent timer and invoice activity."""
    service = ActivityService(ctx.obj["db"], get_session(ctx))
    activities = service.recent_activity(limit=limit)
    if not activities:
        click.echo("No recent activity.")
        return

    for item in activities:
        line = f"{item.timestamp:%Y-%m-%d %H:%M}  {item.description}"
        task = item.metadata.get("task")
        if task:
            line += f" ({task})"
        click.echo(line)


def register_commands(cli):
    """Register activity command with main CLI."""
    cli.add_command(activity)
