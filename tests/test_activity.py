"""Tests for the recent activity feed."""

from datetime import datetime, timedelta
from decimal import Decimal

from billsense.domain.activity import (
    ActivityService,
    invoice_activity,
    merge_activities,
    time_entry_activities,
)
from billsense.domain.entities import ActivityType


def test_finished_entry_emits_stop_then_start(make_entry):
    entry = make_entry(1, datetime(2024, 3, 13, 9, 0), duration=1800, description="Wireframes")

    stop, start = time_entry_activities(entry)

    assert stop.type == ActivityType.TIME_STOP
    assert stop.timestamp == datetime(2024, 3, 13, 9, 30)
    assert stop.description == "Stopped tracking time for Website"
    assert start.type == ActivityType.TIME_START
    assert start.timestamp == datetime(2024, 3, 13, 9, 0)
    assert start.metadata == {"task": "Wireframes"}


def test_running_entry_emits_only_start(make_entry):
    activities = time_entry_activities(make_entry(1, datetime(2024, 3, 13, 9, 0)))

    assert [a.type for a in activities] == [ActivityType.TIME_START]


def test_invoice_activity_by_status(make_invoice):
    created = datetime(2024, 3, 1, 9, 0)
    paid_at = datetime(2024, 3, 10, 16, 0)

    paid = invoice_activity(make_invoice(1, 500, "paid", created_at=created, updated_at=paid_at))
    sent = invoice_activity(make_invoice(2, 250, "sent", created_at=created, updated_at=paid_at))
    partial = invoice_activity(make_invoice(3, 100, "partial", created_at=created))

    assert paid.type == ActivityType.INVOICE_PAID
    assert paid.timestamp == paid_at
    assert paid.description == "Invoice INV-0001 was paid for Acme Corp - $500"
    assert paid.metadata == {"amount": Decimal("500")}
    assert sent.type == ActivityType.INVOICE_SENT
    assert sent.timestamp == created
    assert partial.type == ActivityType.INVOICE_CREATED


def test_merge_sorts_newest_first_and_truncates(make_entry, make_invoice):
    base = datetime(2024, 3, 13, 8, 0)
    entries = [make_entry(i, base + timedelta(hours=i), duration=600) for i in range(1, 5)]
    invoices = [make_invoice(1, 100, created_at=base + timedelta(minutes=90))]

    merged = merge_activities(entries, invoices, limit=8)

    assert len(merged) == 8
    timestamps = [a.timestamp for a in merged]
    assert timestamps == sorted(timestamps, reverse=True)
    assert merged[0].id == "time_stop_4"


def test_merge_is_deterministic_with_ties(make_entry, make_invoice):
    tie = datetime(2024, 3, 13, 10, 0)
    entries = [make_entry(1, tie), make_entry(2, tie)]
    invoices = [make_invoice(7, 50, created_at=tie), make_invoice(8, 60, created_at=tie)]

    first = merge_activities(entries, invoices)
    second = merge_activities(entries, invoices)

    assert first == second
    assert [a.id for a in first] == ["time_start_1", "time_start_2", "invoice_7", "invoice_8"]


def test_recent_activity_reads_acting_user(temp_db, session, company_id, sample_project, sample_client):
    start = datetime(2024, 3, 13, 9, 0)
    temp_db.create_time_entry(
        user_id=session.user_id,
        company_id=company_id,
        project_id=sample_project.id,
        start_time=start,
        end_time=start + timedelta(hours=1),
        duration=3600,
        is_running=False,
    )
    temp_db.create_invoice(
        company_id=company_id,
        user_id=session.user_id,
        client_id=sample_client.id,
        invoice_number="INV-0001",
        issue_date=start.date(),
        due_date=None,
        subtotal=Decimal("100"),
        tax_rate=Decimal("0"),
        tax_amount=Decimal("0"),
        total=Decimal("100"),
        created_at=datetime(2024, 3, 13, 9, 30),
    )

    activities = ActivityService(temp_db, session).recent_activity()

    assert [a.id for a in activities] == ["time_stop_1", "invoice_1", "time_start_1"]


def test_recent_activity_failure_yields_empty_feed(temp_db, session, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(temp_db, "list_time_entries", broken)

    assert ActivityService(temp_db, session).recent_activity() == []
