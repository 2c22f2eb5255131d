"""Financial report command."""

import click

from billsense.domain.dashboard import DashboardService
from billsense.domain.entities import ReportPeriod
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.session import get_session

PERIOD_TITLES = {
    ReportPeriod.THIS_MONTH: "This month",
    ReportPeriod.LAST_MONTH: "Last month",
    ReportPeriod.THIS_YEAR: "This year",
    ReportPeriod.ALL_TIME: "All time",
}


@click.command("report")
@click.option(
    "--period",
    type=click.Choice([p.value for p in ReportPeriod]),
    default=ReportPeriod.THIS_MONTH.value,
    show_default=True,
    help="Reporting period",
)
@click.pass_context
def report(ctx, period: str):
    """Show revenue, outstanding invoices and expenses for a period.

    Examples:
        billsense report
        billsense report --period this-year
    """
    service = DashboardService(ctx.obj["db"], get_session(ctx))
    period_ = ReportPeriod(period)
    try:
        result = service.compute_report(period_)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    window = "" if result.start is None else f" ({result.start} to {result.end})"
    click.echo(f"\nFinancial report: {PERIOD_TITLES[period_]}{window}")
    click.echo("=" * 60)
    click.echo(f"Total revenue:     ${result.total_revenue:,.2f}")
    click.echo(f"Outstanding:       ${result.outstanding_amount:,.2f} "
               f"({result.unpaid_count} unpaid invoice(s))")
    click.echo(f"Total expenses:    ${result.total_expenses:,.2f} "
               f"({result.expense_ratio:.1f}% of revenue)")
    click.echo(f"Net income:        ${result.net_income:,.2f}")


def register_commands(cli):
    """Register report command with main CLI."""
    cli.add_command(report)
