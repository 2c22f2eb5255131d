"""Project management commands."""

from dataclasses import replace

import click

from billsense.domain.entities import ProjectStatus, ProjectType
from billsense.domain.project import ProjectForm, ProjectService
from billsense.utils.formatting import format_money
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.params import AMOUNT
from billsense.cli.session import get_session

PROJECT_TYPES = [t.value for t in ProjectType]
PROJECT_STATUSES = [s.value for s in ProjectStatus]


@click.group()
def project_group():
    """Manage projects."""
    pass


@project_group.command("add")
@click.argument("name", metavar="PROJECT_NAME")
@click.option("--client", "client_id", type=int, help="Client ID")
@click.option("--type", "project_type", type=click.Choice(PROJECT_TYPES), default="hourly", show_default=True)
@click.option("--rate", "hourly_rate", type=AMOUNT, help="Hourly rate (hourly projects)")
@click.option("--price", "fixed_price", type=AMOUNT, help="Fixed price (fixed projects)")
@click.option("--currency", default="USD", show_default=True, help="Currency code")
@click.option("--description", help="Project description")
@click.pass_context
def add_project(ctx, name, client_id, project_type, hourly_rate, fixed_price, currency, description):
    """Add a new project.

    Examples:
        billsense project add "Website" --client 1 --rate 85
        billsense project add "Logo" --client 1 --type fixed --price 1200
    """
    service = ProjectService(ctx.obj["db"], get_session(ctx))
    form = ProjectForm(
        name=name,
        client_id=client_id,
        description=description,
        project_type=project_type,
        currency=currency,
    )
    if hourly_rate is not None:
        form.hourly_rate = hourly_rate
    if fixed_price is not None:
        form.fixed_price = fixed_price

    try:
        project_id = service.save(form)
        click.echo(f"Created project '{name}' (ID: {project_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@project_group.command("list")
@click.option("--status", type=click.Choice(PROJECT_STATUSES), help="Only projects with this status")
@click.pass_context
def list_projects(ctx, status: str | None):
    """List projects."""
    service = ProjectService(ctx.obj["db"], get_session(ctx))
    try:
        projects = service.list_projects(status=status)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not projects:
        click.echo("No projects found.")
        return

    click.echo("\nProjects:")
    click.echo("-" * 90)
    for project in projects:
        if project.project_type == ProjectType.HOURLY:
            pricing = f"{format_money(project.hourly_rate, project.currency)}/h"
        else:
            pricing = f"{format_money(project.fixed_price, project.currency)} fixed"
        click.echo(
            f"ID: {project.id:3d} | {project.name:20s} | {project.client_name or '-':15s} | "
            f"{project.status.value:9s} | {pricing}"
        )


@project_group.command("edit")
@click.argument("project_id", type=int)
@click.option("--name", help="New name")
@click.option("--client", "client_id", type=int, help="New client ID")
@click.option("--type", "project_type", type=click.Choice(PROJECT_TYPES), help="New pricing type")
@click.option("--rate", "hourly_rate", type=AMOUNT, help="New hourly rate")
@click.option("--price", "fixed_price", type=AMOUNT, help="New fixed price")
@click.option("--currency", help="New currency code")
@click.option("--status", type=click.Choice(PROJECT_STATUSES), help="New status")
@click.option("--description", help="New description")
@click.pass_context
def edit_project(ctx, project_id, **changes):
    """Edit a project. Fields not given keep their current value."""
    service = ProjectService(ctx.obj["db"], get_session(ctx))
    try:
        form = service.form_for(project_id)
        form = replace(form, **{k: v for k, v in changes.items() if v is not None})
        service.save(form)
        click.echo(f"Updated project {project_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@project_group.command("delete")
@click.argument("project_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_project(ctx, project_id: int, yes: bool):
    """Delete a project without time entries or expenses."""
    service = ProjectService(ctx.obj["db"], get_session(ctx))
    try:
        project = service.get_project(project_id)
        if not yes and not click.confirm(f"Delete project '{project.name}'?"):
            click.echo("Cancelled.")
            return
        service.delete_project(project_id)
        click.echo(f"Deleted project '{project.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register project commands with main CLI."""
    cli.add_command(project_group, name="project")
