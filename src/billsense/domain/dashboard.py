"""Dashboard aggregation domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from billsense.database.base import Database
from billsense.domain.entities import (
    DashboardStats,
    Expense,
    FinancialReport,
    Invoice,
    InvoiceStatus,
    InvoiceStatusSlice,
    ProjectStatus,
    ReportPeriod,
    RevenueBucket,
    TimeEntry,
    UNPAID_STATUSES,
    UnpaidInvoiceSummary,
)
from billsense.domain.session import SessionContext
from billsense.utils.concurrency import run_parallel
from billsense.utils.date_parser import (
    month_label,
    month_start,
    period_bounds,
    trailing_month_starts,
    week_start,
    year_start,
)
from billsense.utils.formatting import percent_change, round_hours, sum_durations

logger = logging.getLogger(__name__)

SERIES_MONTHS = 12

# Display order of the status breakdown
STATUS_SLICES = (
    ("Paid", "#10B981"),
    ("Sent", "#3B82F6"),
    ("Draft", "#F59E0B"),
    ("Overdue", "#EF4444"),
)


def _total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, Decimal("0"))


def build_stats(
    now: datetime,
    week_entries: Sequence[TimeEntry],
    month_entries: Sequence[TimeEntry],
    invoices: Sequence[Invoice],
    month_expenses: Sequence[Expense],
    active_projects: int,
    clients: int,
) -> DashboardStats:
    """Compute headline numbers from already-fetched rows."""
    first_of_month = month_start(now)
    first_of_year = year_start(now)

    unpaid = [inv for inv in invoices if inv.status in UNPAID_STATUSES]
    overdue = [inv for inv in unpaid if inv.is_overdue(now)]
    paid = [inv for inv in invoices if inv.status == InvoiceStatus.PAID]

    monthly_earnings = _total(inv.total for inv in paid if inv.created_at >= first_of_month)
    yearly_earnings = _total(inv.total for inv in paid if inv.created_at >= first_of_year)
    total_expenses = _total(exp.amount for exp in month_expenses)

    return DashboardStats(
        hours_this_week=round_hours(sum_durations(e.duration for e in week_entries)),
        total_hours_this_month=round_hours(sum_durations(e.duration for e in month_entries)),
        billable_hours=round_hours(
            sum_durations(e.duration for e in month_entries if e.task_id is not None)
        ),
        unpaid_invoices=UnpaidInvoiceSummary(
            count=len(unpaid),
            value=_total(inv.total for inv in unpaid),
            overdue=_total(inv.total for inv in overdue),
        ),
        total_invoices=len(invoices),
        total_projects=active_projects,
        monthly_earnings=monthly_earnings,
        yearly_earnings=yearly_earnings,
        total_clients=clients,
        total_expenses=total_expenses,
        net_income=monthly_earnings - total_expenses,
    )


def build_revenue_series(
    now: datetime,
    paid_invoices: Iterable[Invoice],
    expenses: Iterable[Expense],
    months: int = SERIES_MONTHS,
) -> list[RevenueBucket]:
    """Bucket paid invoices (by created_at) and expenses (by expense_date) per month.

    Rows whose month label is not one of the trailing `months` buckets are dropped.
    """
    starts = trailing_month_starts(now, months)
    revenue: dict[str, Decimal] = {month_label(d): Decimal("0") for d in starts}
    spent: dict[str, Decimal] = {month_label(d): Decimal("0") for d in starts}

    for invoice in paid_invoices:
        key = month_label(invoice.created_at)
        if key in revenue:
            revenue[key] += invoice.total

    for expense in expenses:
        key = month_label(expense.expense_date)
        if key in spent:
            spent[key] += expense.amount

    return [
        RevenueBucket(
            month=month_label(d),
            start=d,
            revenue=revenue[month_label(d)],
            expenses=spent[month_label(d)],
        )
        for d in starts
    ]


def build_status_breakdown(invoices: Iterable[Invoice], now: datetime) -> list[InvoiceStatusSlice]:
    """Count invoices per status; Overdue is the subset of Sent past due."""
    counts = {name: 0 for name, _ in STATUS_SLICES}
    for invoice in invoices:
        if invoice.status == InvoiceStatus.PAID:
            counts["Paid"] += 1
        elif invoice.status == InvoiceStatus.SENT:
            counts["Sent"] += 1
            if invoice.is_overdue(now):
                counts["Overdue"] += 1
        elif invoice.status == InvoiceStatus.DRAFT:
            counts["Draft"] += 1

    return [
        InvoiceStatusSlice(name=name, value=counts[name], color=color)
        for name, color in STATUS_SLICES
        if counts[name] > 0
    ]


def build_report(
    period: ReportPeriod,
    start: Optional[datetime],
    end: Optional[datetime],
    invoices: Iterable[Invoice],
    expenses: Iterable[Expense],
) -> FinancialReport:
    """Totals for one reporting window.

    Invoices fall in the window by created_at, expenses by expense_date.
    Revenue is the paid invoice total and outstanding the unpaid one.
    """
    def in_window(moment: datetime) -> bool:
        return (start is None or moment >= start) and (end is None or moment < end)

    windowed = [inv for inv in invoices if in_window(inv.created_at)]
    unpaid = [inv for inv in windowed if inv.status in UNPAID_STATUSES]
    spent = [
        exp for exp in expenses
        if in_window(datetime.combine(exp.expense_date, datetime.min.time()))
    ]
    return FinancialReport(
        period=period,
        start=start.date() if start else None,
        end=end.date() if end else None,
        total_revenue=_total(inv.total for inv in windowed if inv.status == InvoiceStatus.PAID),
        outstanding_amount=_total(inv.total for inv in unpaid),
        unpaid_count=len(unpaid),
        total_expenses=_total(exp.amount for exp in spent),
    )

class DashboardService:
    """Service holding the dashboard state of the acting user's company.

    refresh() recomputes everything; a failed read leaves the previous
    values in place.
    """

    def __init__(
        self,
        db: Database,
        session: SessionContext,
        clock: Callable[[], datetime] = datetime.now,
        max_workers: Optional[int] = None,
    ):
        """Initialize dashboard service.

        Args:
            db: Database instance
            session: Acting-user session
            clock: Source of the current local time
            max_workers: Parallel reads; taken from configuration when omitted
        """
        self.db = db
        self.session = session
        self.clock = clock
        self.max_workers = max_workers or session.config.dashboard_workers
        self.stats = DashboardStats()
        self.revenue: list[RevenueBucket] = []
        self.status_breakdown: list[InvoiceStatusSlice] = []
        self.last_refreshed: Optional[datetime] = None

    def compute_stats(self, now: datetime) -> DashboardStats:
        """Run the six independent reads concurrently and aggregate them."""
        company_id = self.session.require_company_id()
        db = self.db

        results = run_parallel(
            {
                "week_entries": lambda: db.list_time_entries(
                    company_id=company_id, created_since=week_start(now), completed_only=True
                ),
                "month_entries": lambda: db.list_time_entries(
                    company_id=company_id, created_since=month_start(now), completed_only=True
                ),
                "invoices": lambda: db.list_invoices(company_id=company_id),
                "month_expenses": lambda: db.list_expenses(
                    company_id, since=month_start(now).date()
                ),
                "active_projects": lambda: db.count_projects(
                    company_id, status=ProjectStatus.ACTIVE.value
                ),
                "clients": lambda: db.count_clients(company_id),
            },
            max_workers=self.max_workers,
            cleanup=db.release_session,
        )
        return build_stats(now, **results)

    def compute_chart(self, now: datetime) -> tuple[list[RevenueBucket], list[InvoiceStatusSlice]]:
        """Revenue/expense series for the trailing year and the status breakdown."""
        company_id = self.session.require_company_id()
        series_start = datetime.combine(trailing_month_starts(now, SERIES_MONTHS)[0], datetime.min.time())
        db = self.db

        results = run_parallel(
            {
                "invoices": lambda: db.list_invoices(company_id=company_id),
                "expenses": lambda: db.list_expenses(company_id, since=series_start.date()),
            },
            max_workers=self.max_workers,
            cleanup=db.release_session,
        )
        invoices = results["invoices"]
        paid = [
            inv for inv in invoices
            if inv.status == InvoiceStatus.PAID and inv.created_at >= series_start
        ]
        revenue = build_revenue_series(now, paid, results["expenses"])
        breakdown = build_status_breakdown(invoices, now)
        return revenue, breakdown

    def refresh(self) -> bool:
        """Recompute dashboard state.

        Returns:
            True if every part refreshed; False if any part kept stale values
        """
        now = self.clock()
        ok = True

        try:
            self.stats = self.compute_stats(now)
        except Exception:
            logger.exception("Error loading dashboard stats")
            ok = False

        try:
            self.revenue, self.status_breakdown = self.compute_chart(now)
        except Exception:
            logger.exception("Error loading chart data")
            ok = False

        if ok:
            self.last_refreshed = now
        return ok

    def compute_report(self, period: ReportPeriod) -> FinancialReport:
        """Revenue, outstanding and expenses for a named period."""
        company_id = self.session.require_company_id()
        start, end = period_bounds(period.value, self.clock())
        db = self.db

        results = run_parallel(
            {
                "invoices": lambda: db.list_invoices(company_id=company_id, created_since=start),
                "expenses": lambda: db.list_expenses(company_id, since=start.date() if start else None),
            },
            max_workers=self.max_workers,
            cleanup=db.release_session,
        )
        return build_report(period, start, end, results["invoices"], results["expenses"])

    def revenue_change(self) -> str:
        """Revenue change of the current month against the previous month."""
        if len(self.revenue) < 2:
            return percent_change(Decimal("0"), Decimal("0"))
        return percent_change(self.revenue[-1].revenue, self.revenue[-2].revenue)

    def expense_change(self) -> str:
        """Expense change of the current month against the previous month."""
        if len(self.revenue) < 2:
            return percent_change(Decimal("0"), Decimal("0"))
        return percent_change(self.revenue[-1].expenses, self.revenue[-2].expenses)
