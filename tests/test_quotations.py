"""Tests for quotations and their conversion into invoices."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from billsense.domain.entities import DiscountType, InvoiceStatus, QuotationItem, QuotationStatus
from billsense.domain.errors import ConflictError, NotFoundError, ValidationError
from billsense.domain.quotation import QuotationForm, QuotationService, compute_quotation_totals


@pytest.fixture
def quotation_service(temp_db, session):
    return QuotationService(temp_db, session)


def items(*lines):
    return [QuotationItem(description=d, quantity=Decimal(str(q)), rate=Decimal(str(r))) for d, q, r in lines]


def create(quotation_service, client, **overrides):
    values = dict(client_id=client.id, items=items(("Design", 10, 85), ("Hosting", 1, 150)))
    values.update(overrides)
    return quotation_service.get_quotation(quotation_service.create_quotation(QuotationForm(**values)))


def accepted(quotation_service, client, **overrides):
    quotation = create(quotation_service, client, **overrides)
    quotation_service.mark_sent(quotation.id)
    return quotation_service.accept(quotation.id)


def test_totals_percentage_discount():
    totals = compute_quotation_totals(
        items(("Design", 10, 85), ("Hosting", 1, 150)), Decimal("10"), DiscountType.PERCENTAGE, Decimal("5")
    )

    assert totals.subtotal == Decimal("1000.00")
    assert totals.tax_amount == Decimal("100.00")
    assert totals.discount_amount == Decimal("50.00")
    assert totals.total == Decimal("1050.00")


def test_totals_fixed_discount_and_fractional_quantity():
    totals = compute_quotation_totals(
        items(("Consulting", "2.5", "99.99")), Decimal("0"), DiscountType.FIXED, Decimal("24.98")
    )

    assert totals.subtotal == Decimal("249.98")
    assert totals.discount_amount == Decimal("24.98")
    assert totals.total == Decimal("225.00")


def test_create_defaults(quotation_service, sample_client):
    quotation = create(quotation_service, sample_client, tax_rate=Decimal("20"), notes="  Valid for 30 days  ")

    assert quotation.quote_number == "Q-INV0001"
    assert quotation.status == QuotationStatus.DRAFT
    assert quotation.issue_date == date.today()
    assert quotation.expiry_date == date.today() + timedelta(days=30)
    assert quotation.total == Decimal("1200.00")
    assert quotation.currency == "USD"
    assert quotation.notes == "Valid for 30 days"
    assert quotation.client_name == "Acme Corp"
    assert [(i.description, i.amount) for i in quotation.items] == [
        ("Design", Decimal("850")),
        ("Hosting", Decimal("150")),
    ]


def test_quote_numbers_skip_taken_numbers(quotation_service, sample_client):
    first = create(quotation_service, sample_client)
    create(quotation_service, sample_client)
    quotation_service.delete_quotation(first.id)

    # One quotation left, but Q-INV0002 is still taken
    assert create(quotation_service, sample_client).quote_number == "Q-INV0003"


@pytest.mark.parametrize(
    "overrides",
    [
        {"items": []},
        {"items": items(("  ", 1, 10))},
        {"items": items(("Design", 0, 10))},
        {"items": items(("Design", 1, -10))},
        {"tax_rate": Decimal("101")},
        {"discount_value": Decimal("-1")},
        {"discount_value": Decimal("150")},
        {"discount_type": DiscountType.FIXED, "discount_value": Decimal("5000")},
        {"issue_date": date(2024, 3, 10), "expiry_date": date(2024, 3, 1)},
    ],
)
def test_create_rejects_invalid_input(quotation_service, sample_client, overrides):
    with pytest.raises(ValidationError):
        create(quotation_service, sample_client, **overrides)


def test_create_for_client_of_other_company(temp_db, other_session, sample_client):
    with pytest.raises(NotFoundError):
        QuotationService(temp_db, other_session).create_quotation(
            QuotationForm(client_id=sample_client.id, items=items(("Design", 1, 10)))
        )


def test_other_company_cannot_read_quotation(temp_db, other_session, quotation_service, sample_client):
    quotation = create(quotation_service, sample_client)

    with pytest.raises(NotFoundError):
        QuotationService(temp_db, other_session).get_quotation(quotation.id)


def test_lifecycle(quotation_service, sample_client):
    quotation = create(quotation_service, sample_client)

    with pytest.raises(ConflictError, match="cannot move from 'draft' to 'accepted'"):
        quotation_service.accept(quotation.id)

    assert quotation_service.mark_sent(quotation.id).status == QuotationStatus.SENT
    assert quotation_service.reject(quotation.id).status == QuotationStatus.REJECTED

    with pytest.raises(ConflictError):
        quotation_service.accept(quotation.id)


def test_transition_cannot_skip_conversion(quotation_service, sample_client):
    quotation = accepted(quotation_service, sample_client)

    with pytest.raises(ConflictError):
        quotation_service.transition(quotation.id, QuotationStatus.CONVERTED)


def test_list_filters_and_counts(quotation_service, sample_client, client_service):
    other_client = client_service.get_client(client_service.create_client("Globex"))
    create(quotation_service, sample_client)
    sent = create(quotation_service, other_client)
    quotation_service.mark_sent(sent.id)

    assert [q.id for q in quotation_service.list_quotations(status="sent")] == [sent.id]
    assert [q.client_name for q in quotation_service.list_quotations(search="glob")] == ["Globex"]
    assert len(quotation_service.list_quotations(search="q-inv")) == 2

    counts = quotation_service.status_counts()
    assert counts[QuotationStatus.DRAFT] == 1
    assert counts[QuotationStatus.SENT] == 1
    assert counts[QuotationStatus.ACCEPTED] == 0

    with pytest.raises(ValidationError):
        quotation_service.list_quotations(status="pending")


def test_expired_only_while_open(quotation_service, sample_client):
    quotation = create(
        quotation_service, sample_client, issue_date=date(2024, 1, 1), expiry_date=date(2024, 1, 31)
    )

    assert quotation.is_expired(date(2024, 2, 1))
    assert not quotation.is_expired(date(2024, 1, 31))

    quotation_service.mark_sent(quotation.id)
    assert not quotation_service.accept(quotation.id).is_expired(date(2024, 2, 1))


def test_convert_accepted_quotation(quotation_service, invoice_service, sample_client):
    quotation = accepted(
        quotation_service,
        sample_client,
        tax_rate=Decimal("10"),
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("100"),
        notes="Phase one",
    )

    invoice_id = quotation_service.convert_to_invoice(quotation.id, due_date=date.today() + timedelta(days=14))

    invoice = invoice_service.get_invoice(invoice_id)
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.invoice_number == "INV-0001"
    assert invoice.subtotal == Decimal("900.00")
    assert invoice.total == Decimal("990.00")
    assert invoice.due_date == date.today() + timedelta(days=14)
    assert invoice.notes == f"Converted from quotation {quotation.quote_number}\nPhase one"

    converted = quotation_service.get_quotation(quotation.id)
    assert converted.status == QuotationStatus.CONVERTED
    assert converted.invoice_id == invoice_id


def test_convert_only_once_and_only_when_accepted(quotation_service, invoice_service, sample_client):
    draft = create(quotation_service, sample_client)
    with pytest.raises(ConflictError, match="cannot move from 'draft' to 'converted'"):
        quotation_service.convert_to_invoice(draft.id)

    quotation = accepted(quotation_service, sample_client)
    quotation_service.convert_to_invoice(quotation.id)
    with pytest.raises(ConflictError):
        quotation_service.convert_to_invoice(quotation.id)

    assert len(invoice_service.list_invoices()) == 1


def test_delete(quotation_service, sample_client, temp_db):
    quotation = create(quotation_service, sample_client)
    quotation_service.delete_quotation(quotation.id)

    assert temp_db.get_quotation(quotation.id) is None
    with pytest.raises(NotFoundError):
        quotation_service.delete_quotation(quotation.id)


def test_delete_converted_quotation_is_refused(quotation_service, sample_client):
    quotation = accepted(quotation_service, sample_client)
    quotation_service.convert_to_invoice(quotation.id)

    with pytest.raises(ConflictError, match="cannot be deleted"):
        quotation_service.delete_quotation(quotation.id)


def test_client_with_quotation_cannot_be_deleted(client_service, quotation_service, sample_client):
    create(quotation_service, sample_client)

    with pytest.raises(ConflictError, match="1 quotation"):
        client_service.delete_client(sample_client.id)
