"""Expense management commands."""

from datetime import date

import click

from billsense.domain.entities import EXPENSE_CATEGORIES
from billsense.domain.expense import ExpenseForm, ExpenseService
from billsense.utils.formatting import format_money
from billsense.cli.error_handling import handle_domain_error
from billsense.cli.params import AMOUNT, DATE
from billsense.cli.session import get_session


@click.group()
def expense_group():
    """Track business expenses."""
    pass


def _service(ctx) -> ExpenseService:
    return ExpenseService(ctx.obj["db"], get_session(ctx))


@expense_group.command("add")
@click.option("--category", type=click.Choice(EXPENSE_CATEGORIES), required=True, help="Expense category")
@click.option("--amount", type=AMOUNT, required=True, help="Amount spent")
@click.option("--date", "expense_date", type=DATE, help="Date of the expense (default: today)")
@click.option("--currency", default="USD", show_default=True, help="Currency code")
@click.option("--description", help="What the money was spent on")
@click.option("--project", "project_id", type=int, help="Project ID the expense belongs to")
@click.option("--billable", is_flag=True, help="Charge the expense to the client")
@click.option("--receipt", "receipt_url", help="Link to the receipt")
@click.pass_context
def add_expense(ctx, category, amount, expense_date, currency, description, project_id, billable, receipt_url):
    """Record an expense.

    Examples:
        billsense expense add --category Software --amount 49.99 --description "Figma"
        billsense expense add --category Travel --amount "1,200" --date 2024-03-02 --project 2 --billable
    """
    service = _service(ctx)
    form = ExpenseForm(
        category=category,
        amount=amount,
        expense_date=expense_date or date.today(),
        currency=currency,
        description=description,
        project_id=project_id,
        is_billable=billable,
        receipt_url=receipt_url,
    )
    try:
        expense_id = service.save(form)
        click.echo(f"Created expense {format_money(amount, currency)} in {category} (ID: {expense_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("edit")
@click.argument("expense_id", type=int)
@click.option("--category", type=click.Choice(EXPENSE_CATEGORIES), help="New category")
@click.option("--amount", type=AMOUNT, help="New amount")
@click.option("--date", "expense_date", type=DATE, help="New date")
@click.option("--currency", help="New currency code")
@click.option("--description", help="New description")
@click.option("--project", "project_id", type=int, help="New project ID")
@click.option("--receipt", "receipt_url", help="New receipt link")
@click.pass_context
def edit_expense(ctx, expense_id, category, amount, expense_date, currency, description, project_id, receipt_url):
    """Edit an expense. Fields not given keep their current value."""
    service = _service(ctx)
    try:
        expense = service.get_expense(expense_id)
        form = ExpenseForm(
            category=category or expense.category,
            amount=amount if amount is not None else expense.amount,
            expense_date=expense_date or expense.expense_date,
            currency=currency or expense.currency,
            description=description if description is not None else expense.description,
            project_id=project_id if project_id is not None else expense.project_id,
            is_billable=expense.is_billable,
            receipt_url=receipt_url if receipt_url is not None else expense.receipt_url,
            expense_id=expense_id,
        )
        service.save(form)
        click.echo(f"Updated expense {expense_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("list")
@click.option("--search", help="Match description, category or project name")
@click.option("--category", type=click.Choice(EXPENSE_CATEGORIES), help="Only this category")
@click.option("--since", type=DATE, help="Only expenses on or after this date")
@click.pass_context
def list_expenses(ctx, search, category, since):
    """List expenses, newest first."""
    service = _service(ctx)
    try:
        expenses = service.list_expenses(search=search, category=category, since=since)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not expenses:
        click.echo("No expenses found.")
        return

    click.echo(f"\nFound {len(expenses)} expense(s):")
    click.echo("-" * 100)
    for expense in expenses:
        flags = ("B" if expense.is_billable else "-") + ("I" if expense.is_invoiced else "-")
        click.echo(
            f"ID: {expense.id:4d} | {expense.expense_date} | {expense.category:15s} | "
            f"{format_money(expense.amount, expense.currency):>14s} | {flags} | "
            f"{expense.project_name or '-':15s} | {expense.description or ''}"
        )
    click.echo("-" * 100)
    click.echo(f"Total: {service.total(expenses):,.2f}")


@expense_group.command("delete")
@click.argument("expense_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_expense(ctx, expense_id: int, yes: bool):
    """Delete an expense."""
    service = _service(ctx)
    try:
        service.get_expense(expense_id)
        if not yes and not click.confirm(f"Delete expense {expense_id}?"):
            click.echo("Cancelled.")
            return
        service.delete_expense(expense_id)
        click.echo(f"Deleted expense {expense_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("billable")
@click.argument("expense_id", type=int)
@click.pass_context
def toggle_billable(ctx, expense_id: int):
    """Toggle whether an expense is charged to the client."""
    service = _service(ctx)
    try:
        billable = service.toggle_billable(expense_id)
        click.echo(f"Expense {expense_id} is now {'billable' if billable else 'not billable'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@expense_group.command("invoiced")
@click.argument("expense_id", type=int)
@click.pass_context
def toggle_invoiced(ctx, expense_id: int):
    """Toggle whether an expense has been invoiced."""
    service = _service(ctx)
    try:
        invoiced = service.toggle_invoiced(expense_id)
        click.echo(f"Expense {expense_id} is now {'invoiced' if invoiced else 'not invoiced'}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register expense commands with main CLI."""
    cli.add_command(expense_group, name="expense")
