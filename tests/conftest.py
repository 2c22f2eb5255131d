"""Shared pytest fixtures for billsense tests."""

import tempfile
import os
from datetime import datetime, timedelta
from decimal import Decimal
import pytest

from billsense.config.settings import BillSenseSettings
from billsense.database.factories import create_sqlite_database
from billsense.domain.client import ClientService
from billsense.domain.company import CompanyService
from billsense.domain.expense import ExpenseService
from billsense.domain.invoice import InvoiceService
from billsense.domain.project import ProjectForm, ProjectService
from billsense.domain.session import SessionContext


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def config():
    """Settings with explicit values, independent of the environment."""
    return BillSenseSettings(
        _env_file=None,
        site_url="https://app.billsense.test",
        system_sender_name="BillSense",
        system_sender_email="noreply@billsense.test",
        system_brevo_api_key="system-brevo-key",
        resend_api_url="https://resend.test/emails",
        brevo_api_url="https://brevo.test/v3/smtp/email",
        http_timeout=5.0,
        profile_fetch_timeout=2.0,
        dashboard_workers=4,
    )


@pytest.fixture
def company_service(temp_db):
    """Create a CompanyService with a temporary database."""
    return CompanyService(temp_db)


@pytest.fixture
def user_id(company_service):
    """A registered user whose profile belongs to a company."""
    user_id = company_service.register_user("jane@example.com", "Jane Doe")
    company_service.onboard(user_id, "Jane Builds", currency="USD")
    return user_id


@pytest.fixture
def company_id(temp_db, user_id):
    """The seeded user's company ID."""
    return temp_db.get_profile(user_id).company_id


@pytest.fixture
def session(temp_db, user_id, config):
    """Session context for the seeded user."""
    session = SessionContext(temp_db, user_id, config)
    yield session
    session.close()


@pytest.fixture
def other_session(temp_db, company_service, config):
    """Session context for a user of a second company."""
    other_id = company_service.register_user("bob@example.com", "Bob Other")
    company_service.onboard(other_id, "Other Co")
    session = SessionContext(temp_db, other_id, config)
    yield session
    session.close()


@pytest.fixture
def clock():
    """Fake clock fixed at a Wednesday afternoon."""
    return FakeClock(datetime(2024, 3, 13, 14, 30, 0))


@pytest.fixture
def client_service(temp_db, session):
    """Create a ClientService for the seeded user."""
    return ClientService(temp_db, session)


@pytest.fixture
def project_service(temp_db, session):
    """Create a ProjectService for the seeded user."""
    return ProjectService(temp_db, session)


@pytest.fixture
def expense_service(temp_db, session):
    """Create an ExpenseService for the seeded user."""
    return ExpenseService(temp_db, session)


@pytest.fixture
def invoice_service(temp_db, session):
    """Create an InvoiceService for the seeded user."""
    return InvoiceService(temp_db, session)


@pytest.fixture
def sample_client(client_service):
    """Create a sample client for testing."""
    client_id = client_service.create_client("Acme Corp", email="billing@acme.test")
    return client_service.get_client(client_id)


@pytest.fixture
def sample_project(project_service, sample_client):
    """Create a sample hourly project for testing."""
    project_id = project_service.save(
        ProjectForm(name="Website", client_id=sample_client.id, hourly_rate=Decimal("85"))
    )
    return project_service.get_project(project_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def make_entry():
    """Build TimeEntry entities without touching the database."""
    from billsense.domain.entities import TimeEntry

    def build(id, start_time, duration=None, task_id=None, project_name="Website", description=None,
              created_at=None):
        end_time = start_time + timedelta(seconds=duration) if duration is not None else None
        return TimeEntry(
            id=id,
            user_id=1,
            company_id=1,
            project_id=1,
            task_id=task_id,
            description=description,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            is_running=duration is None,
            is_billable=True,
            created_at=created_at or start_time,
            project_name=project_name,
        )

    return build


@pytest.fixture
def make_invoice():
    """Build Invoice entities without touching the database."""
    from billsense.domain.entities import Invoice, InvoiceStatus

    def build(id, total, status="draft", created_at=None, updated_at=None, due_date=None,
              client_name="Acme Corp"):
        created_at = created_at or datetime(2024, 3, 1, 9, 0)
        return Invoice(
            id=id,
            company_id=1,
            user_id=1,
            client_id=1,
            project_id=None,
            invoice_number=f"INV-{id:04d}",
            issue_date=created_at.date(),
            due_date=due_date,
            subtotal=Decimal(str(total)),
            tax_rate=Decimal("0"),
            tax_amount=Decimal("0"),
            total=Decimal(str(total)),
            currency="USD",
            status=InvoiceStatus(status),
            notes=None,
            payment_link=None,
            created_at=created_at,
            updated_at=updated_at or created_at,
            client_name=client_name,
        )

    return build


@pytest.fixture
def make_expense():
    """Build Expense entities without touching the database."""
    from billsense.domain.entities import Expense

    def build(id, amount, expense_date, category="Software"):
        return Expense(
            id=id,
            company_id=1,
            project_id=None,
            category=category,
            amount=Decimal(str(amount)),
            currency="USD",
            expense_date=expense_date,
            description=None,
            receipt_url=None,
            is_billable=False,
            is_invoiced=False,
            created_at=datetime.combine(expense_date, datetime.min.time()),
        )

    return build
