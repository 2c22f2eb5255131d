"""Tests for the HTTP functions."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from billsense.domain.entities import InvoiceStatus
from billsense.domain.invoice import InvoiceForm
import billsense.server.app as server_app
from billsense.server.app import create_app


@pytest.fixture
def post():
    with patch("billsense.email.providers.requests.post") as post:
        post.return_value = MagicMock(ok=True, status_code=201)
        yield post


# Requests are served on worker threads; the test thread drops its session
# before reading rows those threads wrote.
@pytest.fixture
def http(temp_db, config):
    with TestClient(create_app(db=temp_db, config=config)) as client:
        yield client


@pytest.fixture
def invoice(invoice_service, sample_client):
    invoice_id = invoice_service.create_invoice(
        InvoiceForm(client_id=sample_client.id, subtotal=Decimal("250"), due_date=date.today())
    )
    return invoice_service.get_invoice(invoice_id)


def test_health(http):
    response = http.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_send_invoice_email(post, http, temp_db, invoice):
    response = http.post(
        "/functions/send-invoice-email",
        json={"invoiceId": invoice.id, "recipientEmail": "ap@acme.test", "recipientName": "Acme AP"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Invoice email sent successfully"}
    temp_db.release_session()
    assert temp_db.get_invoice(invoice.id).status == InvoiceStatus.SENT


def test_send_invoice_email_missing_fields(http):
    response = http.post("/functions/send-invoice-email", json={"invoiceId": 1})

    assert response.status_code == 400
    assert "Missing required fields" in response.json()["error"]


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"json": {"invoiceId": "abc", "recipientEmail": "ap@acme.test"}}, "invoiceId"),
        ({"json": {"invoiceId": 1, "recipientEmail": ["ap@acme.test"]}}, "recipientEmail"),
    ],
)
def test_send_invoice_email_bad_field_types(http, kwargs, field):
    response = http.post("/functions/send-invoice-email", **kwargs)

    assert response.status_code == 400
    assert list(response.json()) == ["error"]
    assert response.json()["error"].startswith(f"Invalid {field}:")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": ["not", "an", "object"]},
        {"content": b"{not json", "headers": {"Content-Type": "application/json"}},
    ],
)
def test_send_invoice_email_malformed_body(http, kwargs):
    response = http.post("/functions/send-invoice-email", **kwargs)

    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be a JSON object"}


def test_send_invoice_email_provider_error(post, http, temp_db, invoice):
    post.return_value = MagicMock(ok=False, status_code=401, reason="Unauthorized", text="bad key")

    response = http.post(
        "/functions/send-invoice-email",
        json={"invoiceId": invoice.id, "recipientEmail": "ap@acme.test"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Brevo API error: Unauthorized - bad key"}
    temp_db.release_session()
    assert temp_db.get_invoice(invoice.id).status == InvoiceStatus.DRAFT


def test_invite_client_user(post, http, temp_db, sample_client):
    response = http.post(
        "/functions/invite-client-user",
        json={"client_id": sample_client.id, "email": "portal@acme.test", "is_resend": False},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Invitation sent successfully!"
    temp_db.release_session()
    assert temp_db.get_client_user_by_email("portal@acme.test") is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"email": "portal@acme.test"}},
        {"json": {"client_id": "abc", "email": "portal@acme.test"}},
        {"json": {"client_id": 404, "email": "portal@acme.test"}},
        {"json": ["not", "an", "object"]},
        {"content": b"{not json", "headers": {"Content-Type": "application/json"}},
    ],
)
def test_invite_errors_still_return_200(post, http, kwargs):
    response = http.post("/functions/invite-client-user", **kwargs)

    assert response.status_code == 200
    assert "error" in response.json()


def test_module_app_is_built_once(monkeypatch):
    built = []

    def fake_create_app():
        built.append(object())
        return built[-1]

    monkeypatch.setattr(server_app, "_app", None)
    monkeypatch.setattr(server_app, "create_app", fake_create_app)

    first = server_app.app
    second = server_app.app

    assert first is second
    assert len(built) == 1
