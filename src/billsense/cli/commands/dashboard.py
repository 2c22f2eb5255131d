"""Dashboard command."""

import click

from billsense.domain.dashboard import DashboardService
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session


@click.command("dashboard")
@click.option("--chart/--no-chart", default=True, help="Show the 12-month revenue table")
@click.pass_context
def dashboard(ctx, chart: bool):
    """Show headline numbers for your business.

    Hours, earnings, unpaid invoices and expenses, followed by revenue and
    expenses per month for the past year and the invoice status breakdown.
    """
    session = get_session(ctx)
    service = DashboardService(ctx.obj["db"], session)
    try:
        session.require_company_id()
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not service.refresh():
        click.echo("Warning: some dashboard data could not be loaded.", err=True)

    stats = service.stats
    unpaid = stats.unpaid_invoices
    click.echo("\nDashboard")
    click.echo("=" * 60)
    click.echo(f"Hours this week:        {stats.hours_this_week:.1f}h")
    click.echo(f"Hours this month:       {stats.total_hours_this_month:.1f}h "
               f"({stats.billable_hours:.1f}h billable)")
    click.echo(f"Earnings this month:    ${stats.monthly_earnings:,.2f} ({service.revenue_change()})")
    click.echo(f"Earnings this year:     ${stats.yearly_earnings:,.2f}")
    click.echo(f"Expenses this month:    ${stats.total_expenses:,.2f} ({service.expense_change()})")
    click.echo(f"Net income this month:  ${stats.net_income:,.2f}")
    click.echo(f"Unpaid invoices:        {unpaid.count} (${unpaid.value:,.2f}, "
               f"${unpaid.overdue:,.2f} overdue)")
    click.echo(f"Invoices:               {stats.total_invoices}")
    click.echo(f"Active projects:        {stats.total_projects}")
    click.echo(f"Clients:                {stats.total_clients}")

    if not chart:
        return

    if service.revenue:
        click.echo("\nRevenue vs expenses")
        click.echo("-" * 60)
        for bucket in service.revenue:
            click.echo(
                f"{bucket.month:7s} | revenue ${bucket.revenue:>10,.2f} | "
                f"expenses ${bucket.expenses:>10,.2f} | profit ${bucket.profit:>10,.2f}"
            )

    if service.status_breakdown:
        click.echo("\nInvoice status")
        click.echo("-" * 60)
        for slice_ in service.status_breakdown:
            click.echo(f"{slice_.name:8s} {slice_.value}")


def register_commands(cli):
    """Register dashboard command with main CLI."""
    cli.add_command(dashboard)
