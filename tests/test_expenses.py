"""Tests for the expense service."""

from datetime import date
from decimal import Decimal

import pytest

from billsense.domain.errors import NotFoundError, ValidationError
from billsense.domain.expense import ExpenseForm, ExpenseService


def form(**overrides):
    values = dict(category="Software", amount=Decimal("49.99"), expense_date=date(2024, 3, 2))
    values.update(overrides)
    return ExpenseForm(**values)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"category": None}, "Category is required"),
        ({"category": "Snacks"}, "Unknown category"),
        ({"amount": None}, "Amount is required"),
        ({"amount": Decimal("0")}, "Amount must be positive"),
        ({"amount": Decimal("-5")}, "Amount must be positive"),
        ({"expense_date": None}, "Date is required"),
    ],
)
def test_validation(expense_service, overrides, message):
    with pytest.raises(ValidationError, match=message):
        expense_service.save(form(**overrides))


def test_validation_writes_nothing(expense_service):
    with pytest.raises(ValidationError):
        expense_service.save(form(amount=Decimal("0")))
    assert expense_service.list_expenses() == []


def test_create_and_edit(expense_service, sample_project):
    expense_id = expense_service.save(form(description="Figma", project_id=sample_project.id, receipt_url=""))
    expense = expense_service.get_expense(expense_id)

    assert expense.amount == Decimal("49.99")
    assert expense.project_name == "Website"
    assert expense.receipt_url is None
    assert not expense.is_billable

    expense_service.save(form(expense_id=expense_id, amount=Decimal("59.99"), description="Figma Pro"))
    edited = expense_service.get_expense(expense_id)
    assert edited.amount == Decimal("59.99")
    assert edited.description == "Figma Pro"
    assert edited.project_id is None


def test_unknown_project_rejected(expense_service):
    with pytest.raises(NotFoundError):
        expense_service.save(form(project_id=404))


def test_list_search_and_filters(expense_service, sample_project):
    expense_service.save(form(description="Figma"))
    expense_service.save(form(category="Travel", amount=Decimal("320"), expense_date=date(2024, 2, 10),
                              description="Train", project_id=sample_project.id))
    expense_service.save(form(category="Meals", amount=Decimal("25"), expense_date=date(2024, 3, 5)))

    assert [e.category for e in expense_service.list_expenses()] == ["Meals", "Software", "Travel"]
    assert [e.description for e in expense_service.list_expenses(search="website")] == ["Train"]
    assert [e.description for e in expense_service.list_expenses(search="FIG")] == ["Figma"]
    assert len(expense_service.list_expenses(category="Travel")) == 1
    assert len(expense_service.list_expenses(since=date(2024, 3, 1))) == 2


def test_toggles_are_independent(expense_service):
    expense_id = expense_service.save(form())

    assert expense_service.toggle_billable(expense_id) is True
    assert expense_service.toggle_invoiced(expense_id) is True
    assert expense_service.toggle_billable(expense_id) is False

    expense = expense_service.get_expense(expense_id)
    assert not expense.is_billable
    assert expense.is_invoiced


def test_total(expense_service):
    expense_service.save(form(amount=Decimal("10.50")))
    expense_service.save(form(amount=Decimal("4.50")))

    assert ExpenseService.total(expense_service.list_expenses()) == Decimal("15.00")


def test_other_company_cannot_touch_expense(temp_db, other_session, expense_service):
    expense_id = expense_service.save(form())
    other = ExpenseService(temp_db, other_session)

    with pytest.raises(NotFoundError):
        other.delete_expense(expense_id)
    with pytest.raises(NotFoundError):
        other.toggle_billable(expense_id)


def test_delete(expense_service):
    expense_id = expense_service.save(form())
    expense_service.delete_expense(expense_id)

    with pytest.raises(NotFoundError):
        expense_service.get_expense(expense_id)
