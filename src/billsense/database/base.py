"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from billsense.domain.entities import (
    AuthUser,
    Client,
    ClientUser,
    Company,
    EmailSettings,
    Expense,
    Invoice,
    Notification,
    Profile,
    Project,
    Quotation,
    QuotationItem,
    TimeEntry,
)
from billsense.database.channel import NotificationCallback, Subscription


class Database(ABC):
    """Abstract database interface for billsense.

    Every read returns domain entities; every row is scoped to a company
    except profiles and the auth directory.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    def release_session(self) -> None:
        """Release any per-thread resources held for the calling thread."""
        pass

    # Company and profile operations
    @abstractmethod
    def create_company(
        self,
        name: str,
        email: Optional[str] = None,
        currency: str = "USD",
        invoice_prefix: str = "INV-",
    ) -> int:
        """Create a company. Returns company ID."""
        pass

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def next_invoice_number(self, company_id: int) -> str:
        """Reserve and return the next invoice number for a company."""
        pass

    @abstractmethod
    def create_profile(self, email: str, full_name: str, company_id: Optional[int] = None) -> int:
        """Create a profile. Returns profile (user) ID."""
        pass

    @abstractmethod
    def get_profile(self, user_id: int) -> Optional[Profile]:
        """Get profile by user ID."""
        pass

    @abstractmethod
    def get_profile_by_email(self, email: str) -> Optional[Profile]:
        """Get profile by e-mail address."""
        pass

    @abstractmethod
    def set_profile_company(self, user_id: int, company_id: int) -> None:
        """Attach a profile to a company."""
        pass

    # Settings operations
    @abstractmethod
    def get_email_settings(self, company_id: int) -> EmailSettings:
        """Get e-mail settings for a company (system default when unset)."""
        pass

    @abstractmethod
    def save_email_settings(self, company_id: int, settings: EmailSettings) -> None:
        """Create or replace e-mail settings for a company."""
        pass

    # Client operations
    @abstractmethod
    def create_client(
        self, company_id: int, name: str, email: Optional[str] = None, currency: str = "USD"
    ) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def list_clients(self, company_id: int) -> list[Client]:
        """List clients of a company, newest first."""
        pass

    @abstractmethod
    def update_client(self, client_id: int, name: str, email: Optional[str], currency: str) -> None:
        """Replace client fields."""
        pass

    @abstractmethod
    def delete_client(self, client_id: int) -> None:
        """Delete a client."""
        pass

    @abstractmethod
    def count_clients(self, company_id: int) -> int:
        """Count clients of a company."""
        pass

    # Project operations
    @abstractmethod
    def create_project(
        self,
        company_id: int,
        name: str,
        client_id: Optional[int] = None,
        description: Optional[str] = None,
        project_type: str = "hourly",
        hourly_rate: Decimal = Decimal("0"),
        fixed_price: Decimal = Decimal("0"),
        currency: str = "USD",
        status: str = "active",
    ) -> int:
        """Create a project. Returns project ID."""
        pass

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[Project]:
        """Get project by ID."""
        pass

    @abstractmethod
    def list_projects(self, company_id: int, status: Optional[str] = None) -> list[Project]:
        """List projects of a company ordered by name."""
        pass

    @abstractmethod
    def update_project(
        self,
        project_id: int,
        name: str,
        client_id: Optional[int],
        description: Optional[str],
        project_type: str,
        hourly_rate: Decimal,
        fixed_price: Decimal,
        currency: str,
        status: str,
    ) -> None:
        """Replace project fields."""
        pass

    @abstractmethod
    def delete_project(self, project_id: int) -> None:
        """Delete a project."""
        pass

    @abstractmethod
    def count_projects(self, company_id: int, status: Optional[str] = None) -> int:
        """Count projects of a company, optionally by status."""
        pass

    # Time entry operations
    @abstractmethod
    def create_time_entry(
        self,
        user_id: int,
        company_id: int,
        project_id: int,
        start_time: datetime,
        description: Optional[str] = None,
        is_billable: bool = True,
        is_running: bool = True,
        task_id: Optional[int] = None,
        end_time: Optional[datetime] = None,
        duration: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a time entry. Returns entry ID.

        Raises:
            ConflictError: If a second running entry would exist for the user
        """
        pass

    @abstractmethod
    def get_time_entry(self, entry_id: int) -> Optional[TimeEntry]:
        """Get time entry by ID."""
        pass

    @abstractmethod
    def get_running_time_entry(self, user_id: int) -> Optional[TimeEntry]:
        """Get the running time entry of a user, if any."""
        pass

    @abstractmethod
    def finish_time_entry(self, entry_id: int, end_time: datetime, duration: int) -> None:
        """Mark a running entry as stopped.

        Raises:
            ConflictError: If the entry is no longer running
        """
        pass

    @abstractmethod
    def list_time_entries(
        self,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        created_since: Optional[datetime] = None,
        completed_only: bool = False,
        order_by: str = "start_time",
        limit: Optional[int] = None,
    ) -> list[TimeEntry]:
        """List time entries with optional filters, newest first.

        Args:
            company_id: Optional company filter
            user_id: Optional owning user filter
            start_from: Optional inclusive lower bound on start_time
            start_to: Optional inclusive upper bound on start_time
            created_since: Optional inclusive lower bound on created_at
            completed_only: If True, only entries with a recorded duration
            order_by: "start_time" or "created_at" (descending)
            limit: Optional maximum number of rows
        """
        pass

    @abstractmethod
    def delete_time_entry(self, entry_id: int) -> None:
        """Delete a time entry."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        company_id: int,
        user_id: int,
        client_id: int,
        invoice_number: str,
        issue_date: date,
        due_date: Optional[date],
        subtotal: Decimal,
        tax_rate: Decimal,
        tax_amount: Decimal,
        total: Decimal,
        currency: str = "USD",
        status: str = "draft",
        notes: Optional[str] = None,
        project_id: Optional[int] = None,
        payment_link: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create an invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def get_invoice_by_payment_link(self, payment_link: str) -> Optional[Invoice]:
        """Get invoice by its public payment link token."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        company_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters, newest created first."""
        pass

    @abstractmethod
    def update_invoice_status(self, invoice_id: int, status: str) -> None:
        """Set invoice status."""
        pass

    @abstractmethod
    def set_invoice_payment_link(self, invoice_id: int, payment_link: str) -> None:
        """Set the public payment link token of an invoice."""
        pass

    @abstractmethod
    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice."""
        pass

    # Quotation operations
    @abstractmethod
    def create_quotation(
        self,
        company_id: int,
        client_id: int,
        quote_number: str,
        issue_date: date,
        expiry_date: Optional[date],
        items: list[QuotationItem],
        subtotal: Decimal,
        tax_rate: Decimal,
        tax_amount: Decimal,
        discount_type: str,
        discount_value: Decimal,
        discount_amount: Decimal,
        total: Decimal,
        currency: str = "USD",
        notes: Optional[str] = None,
        terms: Optional[str] = None,
    ) -> int:
        """Create a draft quotation with its line items. Returns quotation ID."""
        pass

    @abstractmethod
    def get_quotation(self, quotation_id: int) -> Optional[Quotation]:
        """Get quotation by ID, items included."""
        pass

    @abstractmethod
    def list_quotations(self, company_id: int, status: Optional[str] = None) -> list[Quotation]:
        """List company quotations, newest created first."""
        pass

    @abstractmethod
    def count_quotations(self, company_id: int) -> int:
        """Count all quotations ever kept for a company."""
        pass

    @abstractmethod
    def update_quotation_status(
        self, quotation_id: int, status: str, invoice_id: Optional[int] = None
    ) -> None:
        """Set quotation status, linking the invoice it was converted into when given."""
        pass

    @abstractmethod
    def delete_quotation(self, quotation_id: int) -> None:
        """Delete a quotation and its line items."""
        pass

    # Expense operations
    @abstractmethod
    def create_expense(
        self,
        company_id: int,
        category: str,
        amount: Decimal,
        expense_date: date,
        currency: str = "USD",
        description: Optional[str] = None,
        project_id: Optional[int] = None,
        is_billable: bool = False,
        receipt_url: Optional[str] = None,
    ) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        pass

    @abstractmethod
    def update_expense(
        self,
        expense_id: int,
        category: str,
        amount: Decimal,
        expense_date: date,
        currency: str,
        description: Optional[str],
        project_id: Optional[int],
        is_billable: bool,
        receipt_url: Optional[str],
    ) -> None:
        """Replace expense fields."""
        pass

    @abstractmethod
    def set_expense_flags(
        self,
        expense_id: int,
        is_billable: Optional[bool] = None,
        is_invoiced: Optional[bool] = None,
    ) -> None:
        """Toggle billable/invoiced flags independently."""
        pass

    @abstractmethod
    def list_expenses(
        self,
        company_id: int,
        since: Optional[date] = None,
        category: Optional[str] = None,
    ) -> list[Expense]:
        """List expenses of a company, newest expense date first."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense."""
        pass

    # Notification operations
    @abstractmethod
    def create_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        company_id: Optional[int] = None,
    ) -> int:
        """Create a notification and publish it to subscribers. Returns ID."""
        pass

    @abstractmethod
    def list_notifications(self, user_id: int, limit: int = 20) -> list[Notification]:
        """List notifications of a user, newest first."""
        pass

    @abstractmethod
    def mark_notifications_read(self, notification_ids: list[int]) -> None:
        """Mark the given notifications as read in one update."""
        pass

    @abstractmethod
    def subscribe_notifications(self, user_id: int, callback: NotificationCallback) -> Subscription:
        """Subscribe to notification inserts for a user."""
        pass

    # Auth directory and client portal operations
    @abstractmethod
    def get_auth_user_by_email(self, email: str) -> Optional[AuthUser]:
        """Get auth user by e-mail address."""
        pass

    @abstractmethod
    def create_auth_user(self, email: str, invited_for_client: Optional[int] = None) -> int:
        """Create an auth user. Returns auth user ID."""
        pass

    @abstractmethod
    def upsert_client_user(self, client_id: int, email: str, auth_user_id: int) -> int:
        """Create or update the client portal link keyed on e-mail. Returns link ID."""
        pass

    @abstractmethod
    def get_client_user_by_email(self, email: str) -> Optional[ClientUser]:
        """Get client portal link by e-mail address."""
        pass
