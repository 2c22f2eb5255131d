"""Expense domain service."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from billsense.database.base import Database
from billsense.domain.entities import EXPENSE_CATEGORIES, Expense
from billsense.domain.errors import (
    NotFoundError,
    ValidationError,
    expense_not_found,
    project_not_found,
)
from billsense.domain.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class ExpenseForm:
    """User input for creating or editing an expense.

    An expense_id marks an edit; without it the form creates a new expense.
    """

    category: Optional[str]
    amount: Optional[Decimal]
    expense_date: Optional[date]
    currency: str = "USD"
    description: Optional[str] = None
    project_id: Optional[int] = None
    is_billable: bool = False
    receipt_url: Optional[str] = None
    expense_id: Optional[int] = None


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value or None


class ExpenseService:
    """Service for managing company expenses."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize expense service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def validate(self, form: ExpenseForm) -> None:
        """Check required fields before anything is written.

        Raises:
            ValidationError: On the first invalid field
        """
        if not form.category:
            raise ValidationError("Category is required")
        if form.category not in EXPENSE_CATEGORIES:
            raise ValidationError(
                f"Unknown category '{form.category}'. "
                f"Choose one of: {', '.join(EXPENSE_CATEGORIES)}"
            )
        if form.amount is None:
            raise ValidationError("Amount is required")
        if form.amount <= 0:
            raise ValidationError("Amount must be positive")
        if form.expense_date is None:
            raise ValidationError("Date is required")

    def save(self, form: ExpenseForm) -> int:
        """Insert a new expense or update an existing one.

        Returns:
            Expense ID

        Raises:
            ValidationError: If the form is invalid
            NotFoundError: If the user has no company, or the expense or
                project does not belong to it
        """
        self.validate(form)
        company_id = self.session.require_company_id()

        project_id = _blank_to_none(form.project_id)
        if project_id is not None:
            project = self.db.get_project(project_id)
            if project is None or project.company_id != company_id:
                raise NotFoundError(project_not_found(project_id))

        fields = dict(
            category=form.category,
            amount=form.amount,
            expense_date=form.expense_date,
            currency=form.currency or "USD",
            description=_blank_to_none(form.description),
            project_id=project_id,
            is_billable=bool(form.is_billable),
            receipt_url=_blank_to_none(form.receipt_url),
        )

        if form.expense_id is not None:
            self._require_expense(form.expense_id, company_id)
            self.db.update_expense(form.expense_id, **fields)
            logger.info("Updated expense %s", form.expense_id)
            return form.expense_id

        expense_id = self.db.create_expense(company_id=company_id, **fields)
        logger.info("Created expense %s", expense_id)
        return expense_id

    def get_expense(self, expense_id: int) -> Expense:
        """Get an expense of the acting user's company.

        Raises:
            NotFoundError: If not found in the company
        """
        return self._require_expense(expense_id, self.session.require_company_id())

    def list_expenses(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        since: Optional[date] = None,
    ) -> list[Expense]:
        """List company expenses, newest first.

        Args:
            search: Case-insensitive match on description, category or project name
            category: Exact category filter
            since: Optional earliest expense date
        """
        company_id = self.session.require_company_id()
        expenses = self.db.list_expenses(company_id, since=since, category=category)
        if not search:
            return expenses

        term = search.lower()
        return [
            e for e in expenses
            if term in (e.description or "").lower()
            or term in e.category.lower()
            or term in (e.project_name or "").lower()
        ]

    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense of the acting user's company."""
        self.get_expense(expense_id)
        self.db.delete_expense(expense_id)

    def set_billable(self, expense_id: int, is_billable: bool) -> None:
        self.get_expense(expense_id)
        self.db.set_expense_flags(expense_id, is_billable=is_billable)

    def set_invoiced(self, expense_id: int, is_invoiced: bool) -> None:
        self.get_expense(expense_id)
        self.db.set_expense_flags(expense_id, is_invoiced=is_invoiced)

    def toggle_billable(self, expense_id: int) -> bool:
        """Flip the billable flag. Returns the new value."""
        expense = self.get_expense(expense_id)
        self.db.set_expense_flags(expense_id, is_billable=not expense.is_billable)
        return not expense.is_billable

    def toggle_invoiced(self, expense_id: int) -> bool:
        """Flip the invoiced flag. Returns the new value."""
        expense = self.get_expense(expense_id)
        self.db.set_expense_flags(expense_id, is_invoiced=not expense.is_invoiced)
        return not expense.is_invoiced

    @staticmethod
    def total(expenses: Iterable[Expense]) -> Decimal:
        return sum((e.amount for e in expenses), Decimal("0"))

    def _require_expense(self, expense_id: int, company_id: int) -> Expense:
        expense = self.db.get_expense(expense_id)
        if expense is None or expense.company_id != company_id:
            raise NotFoundError(expense_not_found(expense_id))
        return expense
