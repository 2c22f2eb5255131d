"""Notification commands."""

import click

from billsense.domain.notifications import NotificationFeed
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session


@click.group()
def notifications_group():
    """Read your notifications."""
    pass


def _feed(ctx) -> NotificationFeed:
    feed = NotificationFeed(ctx.obj["db"], get_session(ctx))
    if not feed.load():
        click.echo("Error: Could not load notifications", err=True)
        ctx.exit(1)
    return feed


@notifications_group.command("list")
@click.option("--unread", is_flag=True, help="Only unread notifications")
@click.pass_context
def list_notifications(ctx, unread: bool):
    """List your newest notifications."""
    feed = _feed(ctx)
    items = [n for n in feed.items if not (unread and n.is_read)]
    click.echo(f"{feed.unread_count} unread")
    if not items:
        click.echo("No notifications.")
        return
    for notification in items:
        marker = " " if notification.is_read else "*"
        click.echo(
            f"{marker} ID: {notification.id:4d} | {notification.created_at:%Y-%m-%d %H:%M} | "
            f"{notification.title}: {notification.message}"
        )


@notifications_group.command("read")
@click.argument("notification_id", type=int)
@click.pass_context
def read_notification(ctx, notification_id: int):
    """Mark one notification as read."""
    feed = _feed(ctx)
    try:
        ok = feed.mark_as_read(notification_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    if not ok:
        click.echo("Error: Could not update notification", err=True)
        ctx.exit(1)
    click.echo(f"Marked notification {notification_id} as read")


@notifications_group.command("read-all")
@click.pass_context
def read_all(ctx):
    """Mark all notifications as read."""
    feed = _feed(ctx)
    count = feed.unread_count
    if not feed.mark_all_as_read():
        click.echo("Error: Could not update notifications", err=True)
        ctx.exit(1)
    click.echo(f"Marked {count} notification(s) as read")


def register_commands(cli):
    """Register notification commands with main CLI."""
    cli.add_command(notifications_group, name="notifications")
