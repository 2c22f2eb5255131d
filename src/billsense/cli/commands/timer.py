"""Timer and time log commands."""

import time

import click

from billsense.domain.timer import TimerService
from billsense.utils.date_parser import parse_date
from billsense.utils.formatting import format_duration
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session


@click.group()
def timer_group():
    """Track time against projects."""
    pass


def _service(ctx) -> TimerService:
    service = TimerService(ctx.obj["db"], get_session(ctx))
    service.resume()
    return service


@timer_group.command("start")
@click.argument("project_id", type=int)
@click.option("--description", "-d", help="What you are working on")
@click.option("--non-billable", is_flag=True, help="Track time that is not charged to the client")
@click.pass_context
def start_timer(ctx, project_id: int, description: str | None, non_billable: bool):
    """Start the timer on a project.

    Examples:
        billsense timer start 3 -d "Homepage layout"
    """
    service = _service(ctx)
    try:
        entry = service.start(project_id, description=description, billable=not non_billable)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Started timer on '{entry.project_name}' at {entry.start_time:%H:%M:%S} (entry ID: {entry.id})")


@timer_group.command("stop")
@click.pass_context
def stop_timer(ctx):
    """Stop the running timer."""
    service = _service(ctx)
    try:
        entry = service.stop()
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Stopped timer on '{entry.project_name}' after {format_duration(entry.duration or 0)}")


@timer_group.command("status")
@click.pass_context
def timer_status(ctx):
    """Show whether a timer is running."""
    service = _service(ctx)
    entry = service.running_entry
    if entry is None:
        click.echo("No timer running.")
        return
    click.echo(f"Running: {entry.project_name} {format_duration(service.elapsed())}")
    if entry.description:
        click.echo(f"  Task: {entry.description}")
    click.echo(f"  Started: {entry.start_time:%Y-%m-%d %H:%M:%S}")


@timer_group.command("watch")
@click.option("--seconds", type=int, help="Stop watching after this many seconds")
@click.pass_context
def watch_timer(ctx, seconds: int | None):
    """Show the running timer, updating every second until interrupted."""
    service = _service(ctx)
    if service.running_entry is None:
        click.echo("No timer running.")
        return

    project = service.running_entry.project_name
    service.attach_ticker(lambda elapsed: click.echo(f"\r{project} {format_duration(elapsed)}", nl=False))
    deadline = time.monotonic() + seconds if seconds is not None else None
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.2)
    except KeyboardInterrupt:
        pass
    finally:
        service.close()
        click.echo()


@timer_group.command("log")
@click.option("--week", help="Any date in the week to show (default: this week)")
@click.pass_context
def time_log(ctx, week: str | None):
    """List time entries of a week (weeks start on Sunday)."""
    week_of = None
    if week:
        try:
            week_of = parse_date(week)
        except ValueError as e:
            click.echo(f"Error: Invalid date: {e}", err=True)
            ctx.exit(1)

    service = _service(ctx)
    try:
        log = service.list_time_logs(week_of)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nWeek of {log.week_start} to {log.week_end}")
    click.echo("-" * 80)
    if not log.entries:
        click.echo("No time entries found.")
    for entry in log.entries:
        duration = "running" if entry.is_running else format_duration(entry.duration or 0)
        billable = "$" if entry.is_billable else " "
        click.echo(
            f"ID: {entry.id:4d} | {entry.start_time:%a %m-%d %H:%M} | {duration:>8s} | {billable} | "
            f"{entry.project_name:20s} | {entry.description or ''}"
        )
    click.echo("-" * 80)
    click.echo(f"Total: {log.total_hours:.1f}h")


@timer_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool):
    """Delete a time entry."""
    service = _service(ctx)
    if not yes and not click.confirm(f"Delete time entry {entry_id}?"):
        click.echo("Cancelled.")
        return
    try:
        service.delete_time_log(entry_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted time entry {entry_id}")


def register_commands(cli):
    """Register timer commands with main CLI."""
    cli.add_command(timer_group, name="timer")
