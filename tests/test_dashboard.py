"""Tests for dashboard aggregation."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from billsense.domain.entities import ReportPeriod
from billsense.domain.dashboard import (
    DashboardService,
    build_report,
    build_revenue_series,
    build_stats,
    build_status_breakdown,
)

NOW = datetime(2024, 3, 13, 14, 30)


def stats_for(invoices=(), week_entries=(), month_entries=(), month_expenses=()):
    return build_stats(
        NOW,
        week_entries=list(week_entries),
        month_entries=list(month_entries),
        invoices=list(invoices),
        month_expenses=list(month_expenses),
        active_projects=2,
        clients=3,
    )


def test_billable_hours_count_only_task_linked_entries(make_entry):
    entries = [
        make_entry(1, datetime(2024, 3, 11, 9, 0), duration=3600, task_id=7),
        make_entry(2, datetime(2024, 3, 12, 9, 0), duration=1800),
    ]

    stats = stats_for(week_entries=entries, month_entries=entries)

    assert stats.billable_hours == 1.0
    assert stats.total_hours_this_month == 1.5
    assert stats.hours_this_week == 1.5


def test_paid_invoice_counts_in_month_year_and_bucket(make_invoice):
    paid = make_invoice(1, 500, "paid", created_at=datetime(2024, 3, 5, 10, 0))

    stats = stats_for(invoices=[paid])
    series = build_revenue_series(NOW, [paid], [])

    assert stats.monthly_earnings == Decimal("500")
    assert stats.yearly_earnings == Decimal("500")
    assert series[-1].month == "Mar 24"
    assert series[-1].revenue == Decimal("500")
    assert sum(b.revenue for b in series) == Decimal("500")


def test_earnings_windows(make_invoice):
    invoices = [
        make_invoice(1, 100, "paid", created_at=datetime(2024, 3, 1, 0, 0)),
        make_invoice(2, 200, "paid", created_at=datetime(2024, 2, 29, 23, 59)),
        make_invoice(3, 400, "paid", created_at=datetime(2023, 12, 31, 12, 0)),
        make_invoice(4, 800, "sent", created_at=datetime(2024, 3, 2, 9, 0)),
    ]

    stats = stats_for(invoices=invoices)

    assert stats.monthly_earnings == Decimal("100")
    assert stats.yearly_earnings == Decimal("300")
    assert stats.total_invoices == 4


def test_bucket_boundary_assigns_first_of_month_to_that_month(make_invoice):
    on_boundary = make_invoice(1, 300, "paid", created_at=datetime(2024, 2, 1, 0, 0))
    just_before = make_invoice(2, 50, "paid", created_at=datetime(2024, 1, 31, 23, 59, 59))

    series = {b.month: b.revenue for b in build_revenue_series(NOW, [on_boundary, just_before], [])}

    assert series["Feb 24"] == Decimal("300")
    assert series["Jan 24"] == Decimal("50")


def test_revenue_series_shape_and_expenses(make_invoice, make_expense):
    expenses = [
        make_expense(1, 40, date(2024, 3, 2)),
        make_expense(2, 60, date(2023, 4, 30)),
        make_expense(3, 999, date(2023, 3, 31)),
    ]

    series = build_revenue_series(NOW, [], expenses)

    assert len(series) == 12
    assert series[0].month == "Apr 23"
    assert series[0].start == date(2023, 4, 1)
    assert series[0].expenses == Decimal("60")
    assert series[-1].expenses == Decimal("40")
    assert series[-1].profit == Decimal("-40")
    assert sum(b.expenses for b in series) == Decimal("100")


def test_unpaid_and_overdue_values(make_invoice):
    today = NOW.date()
    invoices = [
        make_invoice(1, 100, "draft", due_date=today - timedelta(days=10)),
        make_invoice(2, 200, "sent", due_date=today - timedelta(days=1)),
        make_invoice(3, 400, "sent", due_date=today),
        make_invoice(4, 800, "partial", due_date=today - timedelta(days=5)),
        make_invoice(5, 1600, "paid", due_date=today - timedelta(days=5)),
        make_invoice(6, 3200, "sent", due_date=today + timedelta(days=1)),
    ]

    unpaid = stats_for(invoices=invoices).unpaid_invoices

    assert unpaid.count == 5
    assert unpaid.value == Decimal("4700")
    # Due today counts as overdue once the day has started
    assert unpaid.overdue == Decimal("600")


def test_invoice_due_today_is_overdue_after_midnight(make_invoice):
    invoice = make_invoice(1, 400, "sent", due_date=date(2024, 3, 15))

    assert not invoice.is_overdue(datetime(2024, 3, 14, 23, 59))
    assert not invoice.is_overdue(datetime(2024, 3, 15, 0, 0))
    assert invoice.is_overdue(datetime(2024, 3, 15, 14, 0))

    stats = build_stats(
        datetime(2024, 3, 15, 14, 0),
        week_entries=[],
        month_entries=[],
        invoices=[invoice],
        month_expenses=[],
        active_projects=0,
        clients=0,
    )
    assert stats.unpaid_invoices.overdue == Decimal("400")
    breakdown = build_status_breakdown([invoice], datetime(2024, 3, 15, 14, 0))
    assert [(s.name, s.value) for s in breakdown] == [("Sent", 1), ("Overdue", 1)]


def test_net_income_subtracts_month_expenses(make_invoice, make_expense):
    stats = stats_for(
        invoices=[make_invoice(1, 1000, "paid", created_at=datetime(2024, 3, 2, 9, 0))],
        month_expenses=[make_expense(1, 150, date(2024, 3, 3)), make_expense(2, 50, date(2024, 3, 4))],
    )

    assert stats.total_expenses == Decimal("200")
    assert stats.net_income == Decimal("800")
    assert stats.total_projects == 2
    assert stats.total_clients == 3


def test_status_breakdown_omits_empty_slices(make_invoice):
    today = NOW.date()
    invoices = [
        make_invoice(1, 100, "paid"),
        make_invoice(2, 100, "sent", due_date=today - timedelta(days=3)),
        make_invoice(3, 100, "sent", due_date=today + timedelta(days=3)),
    ]

    breakdown = build_status_breakdown(invoices, NOW)

    assert [(s.name, s.value, s.color) for s in breakdown] == [
        ("Paid", 1, "#10B981"),
        ("Sent", 2, "#3B82F6"),
        ("Overdue", 1, "#EF4444"),
    ]


@pytest.fixture
def seeded(temp_db, session, company_id, sample_client, sample_project):
    """Rows for a full dashboard refresh at NOW."""
    temp_db.create_time_entry(
        user_id=session.user_id,
        company_id=company_id,
        project_id=sample_project.id,
        task_id=3,
        start_time=datetime(2024, 3, 11, 9, 0),
        end_time=datetime(2024, 3, 11, 10, 0),
        duration=3600,
        is_running=False,
        created_at=datetime(2024, 3, 11, 10, 0),
    )
    temp_db.create_time_entry(
        user_id=session.user_id,
        company_id=company_id,
        project_id=sample_project.id,
        start_time=datetime(2024, 3, 4, 9, 0),
        end_time=datetime(2024, 3, 4, 9, 30),
        duration=1800,
        is_running=False,
        created_at=datetime(2024, 3, 4, 9, 30),
    )
    temp_db.create_invoice(
        company_id=company_id,
        user_id=session.user_id,
        client_id=sample_client.id,
        invoice_number="INV-0001",
        issue_date=date(2024, 3, 5),
        due_date=date(2024, 4, 4),
        subtotal=Decimal("500"),
        tax_rate=Decimal("0"),
        tax_amount=Decimal("0"),
        total=Decimal("500"),
        status="paid",
        created_at=datetime(2024, 3, 5, 10, 0),
    )
    temp_db.create_expense(company_id, "Software", Decimal("120"), date(2024, 3, 6))


def test_refresh_aggregates_company_rows(temp_db, session, seeded):
    service = DashboardService(temp_db, session, clock=lambda: NOW, max_workers=4)

    assert service.refresh() is True

    stats = service.stats
    assert stats.hours_this_week == 1.0
    assert stats.total_hours_this_month == 1.5
    assert stats.billable_hours == 1.0
    assert stats.monthly_earnings == Decimal("500")
    assert stats.yearly_earnings == Decimal("500")
    assert stats.total_expenses == Decimal("120")
    assert stats.net_income == Decimal("380")
    assert stats.total_projects == 1
    assert stats.total_clients == 1
    assert service.revenue[-1].revenue == Decimal("500")
    assert [s.name for s in service.status_breakdown] == ["Paid"]
    assert service.last_refreshed == NOW


def test_refresh_keeps_stale_state_on_failure(temp_db, session, seeded, monkeypatch):
    service = DashboardService(temp_db, session, clock=lambda: NOW, max_workers=2)
    assert service.refresh()
    previous = service.stats

    def broken(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(temp_db, "count_clients", broken)

    assert service.refresh() is False
    assert service.stats is previous
    assert service.last_refreshed == NOW


def test_other_company_sees_nothing(temp_db, other_session, seeded):
    service = DashboardService(temp_db, other_session, clock=lambda: NOW)
    service.refresh()

    assert service.stats.monthly_earnings == Decimal("0")
    assert service.stats.total_hours_this_month == 0.0
    assert service.status_breakdown == []


def test_report_splits_paid_and_outstanding(make_invoice, make_expense):
    invoices = [
        make_invoice(1, 500, "paid", created_at=datetime(2024, 3, 5, 10, 0)),
        make_invoice(2, 300, "sent", created_at=datetime(2024, 3, 6, 10, 0)),
        make_invoice(3, 200, "partial", created_at=datetime(2024, 3, 7, 10, 0)),
        make_invoice(4, 900, "paid", created_at=datetime(2024, 2, 29, 23, 59)),
    ]
    expenses = [make_expense(1, 100, date(2024, 3, 1)), make_expense(2, 75, date(2024, 2, 15))]

    report = build_report(
        ReportPeriod.THIS_MONTH, datetime(2024, 3, 1), datetime(2024, 4, 1), invoices, expenses
    )

    assert report.start == date(2024, 3, 1)
    assert report.end == date(2024, 4, 1)
    assert report.total_revenue == Decimal("500")
    assert report.outstanding_amount == Decimal("500")
    assert report.unpaid_count == 2
    assert report.total_expenses == Decimal("100")
    assert report.net_income == Decimal("400")
    assert report.expense_ratio == 20.0


def test_all_time_report_is_unbounded(make_invoice, make_expense):
    invoices = [make_invoice(1, 500, "paid", created_at=datetime(2019, 1, 1, 9, 0))]
    expenses = [make_expense(1, 600, date(2018, 6, 1))]

    report = build_report(ReportPeriod.ALL_TIME, None, None, invoices, expenses)

    assert report.start is None
    assert report.total_revenue == Decimal("500")
    assert report.net_income == Decimal("-100")
    assert report.expense_ratio == 120.0


def test_report_without_revenue_has_zero_expense_ratio(make_expense):
    report = build_report(ReportPeriod.ALL_TIME, None, None, [], [make_expense(1, 50, date(2024, 3, 1))])

    assert report.expense_ratio == 0.0


@pytest.mark.parametrize(
    "period, revenue, expenses",
    [
        (ReportPeriod.THIS_MONTH, Decimal("500"), Decimal("120")),
        (ReportPeriod.LAST_MONTH, Decimal("0"), Decimal("0")),
        (ReportPeriod.THIS_YEAR, Decimal("500"), Decimal("120")),
        (ReportPeriod.ALL_TIME, Decimal("500"), Decimal("120")),
    ],
)
def test_compute_report_reads_company_rows(temp_db, session, seeded, period, revenue, expenses):
    service = DashboardService(temp_db, session, clock=lambda: NOW, max_workers=2)

    report = service.compute_report(period)

    assert report.period == period
    assert report.total_revenue == revenue
    assert report.total_expenses == expenses
