"""Domain model entities for billsense.

These are pure data classes representing business concepts, independent of
database schema. Joined reads are decoded into these types right after the
fetch, with defaults for missing relations applied there.
"""

from dataclasses import dataclass, field
from datetime import datetime, date, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_CLIENT = "Unknown Client"

EXPENSE_CATEGORIES = (
    "Travel",
    "Meals",
    "Office Supplies",
    "Software",
    "Hardware",
    "Utilities",
    "Rent",
    "Professional Services",
    "Advertising",
    "Other",
)


class InvoiceStatus(str, Enum):
    """Stored invoice status. Overdue is derived, never stored."""

    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"


UNPAID_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.PARTIAL})


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONVERTED = "converted"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ProjectType(str, Enum):
    HOURLY = "hourly"
    FIXED = "fixed"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class ActivityType(str, Enum):
    """Kinds of entries in the recent activity feed."""

    TIME_START = "time_start"
    TIME_STOP = "time_stop"
    INVOICE_CREATED = "invoice_created"
    INVOICE_SENT = "invoice_sent"
    INVOICE_PAID = "invoice_paid"


class EmailProviderName(str, Enum):
    SYSTEM = "system"
    RESEND = "resend"
    BREVO = "brevo"


@dataclass(frozen=True)
class Company:
    """Company (tenant) domain entity."""

    id: int
    name: str
    email: Optional[str]
    currency: str
    invoice_prefix: str
    invoice_next_number: int
    created_at: datetime


@dataclass(frozen=True)
class Profile:
    """Profile of an acting user."""

    id: int
    email: str
    full_name: str
    company_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Client:
    """Client domain entity."""

    id: int
    company_id: int
    name: str
    email: Optional[str]
    currency: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Project:
    """Project domain entity."""

    id: int
    company_id: int
    client_id: Optional[int]
    name: str
    description: Optional[str]
    project_type: ProjectType
    hourly_rate: Decimal
    fixed_price: Decimal
    currency: str
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime
    client_name: Optional[str] = None


@dataclass(frozen=True)
class TimeEntry:
    """Time entry domain entity."""

    id: int
    user_id: int
    company_id: int
    project_id: int
    task_id: Optional[int]
    description: Optional[str]
    start_time: datetime
    end_time: Optional[datetime]
    duration: Optional[int]
    is_running: bool
    is_billable: bool
    created_at: datetime
    project_name: str = UNKNOWN_PROJECT


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity."""

    id: int
    company_id: int
    user_id: int
    client_id: int
    project_id: Optional[int]
    invoice_number: str
    issue_date: date
    due_date: Optional[date]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    currency: str
    status: InvoiceStatus
    notes: Optional[str]
    payment_link: Optional[str]
    created_at: datetime
    updated_at: datetime
    client_name: str = UNKNOWN_CLIENT

    def is_overdue(self, now: datetime) -> bool:
        """Sent invoices are overdue once the start of their due date has passed."""
        return (
            self.status == InvoiceStatus.SENT
            and self.due_date is not None
            and datetime.combine(self.due_date, time.min) < now
        )


@dataclass(frozen=True)
class QuotationItem:
    """One priced line of a quotation."""

    description: str
    quantity: Decimal
    rate: Decimal

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.rate


@dataclass(frozen=True)
class Quotation:
    """Quotation (estimate) domain entity."""

    id: int
    company_id: int
    client_id: int
    quote_number: str
    issue_date: date
    expiry_date: Optional[date]
    status: QuotationStatus
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    total: Decimal
    currency: str
    notes: Optional[str]
    terms: Optional[str]
    invoice_id: Optional[int]
    created_at: datetime
    items: tuple[QuotationItem, ...] = ()
    client_name: str = UNKNOWN_CLIENT

    def is_expired(self, today: date) -> bool:
        return (
            self.status in (QuotationStatus.DRAFT, QuotationStatus.SENT)
            and self.expiry_date is not None
            and self.expiry_date < today
        )


@dataclass(frozen=True)
class Expense:
    """Expense domain entity."""

    id: int
    company_id: int
    project_id: Optional[int]
    category: str
    amount: Decimal
    currency: str
    expense_date: date
    description: Optional[str]
    receipt_url: Optional[str]
    is_billable: bool
    is_invoiced: bool
    created_at: datetime
    project_name: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    """Notification domain entity."""

    id: int
    user_id: int
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and sender identity for one e-mail provider."""

    api_key: Optional[str] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None


@dataclass(frozen=True)
class EmailSettings:
    """Per-company e-mail provider configuration."""

    provider: EmailProviderName = EmailProviderName.SYSTEM
    resend_config: ProviderConfig = field(default_factory=ProviderConfig)
    brevo_config: ProviderConfig = field(default_factory=ProviderConfig)


@dataclass(frozen=True)
class AuthUser:
    """User known to the authentication directory."""

    id: int
    email: str
    invited_for_client: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class ClientUser:
    """Link between a client and its portal user."""

    id: int
    client_id: int
    email: str
    auth_user_id: Optional[int]
    is_active: bool
    invited_at: Optional[datetime]


@dataclass(frozen=True)
class Activity:
    """Derived activity feed entry; never persisted."""

    id: str
    type: ActivityType
    description: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UnpaidInvoiceSummary:
    count: int = 0
    value: Decimal = Decimal("0")
    overdue: Decimal = Decimal("0")


@dataclass(frozen=True)
class DashboardStats:
    """Headline numbers for the dashboard."""

    hours_this_week: float = 0.0
    total_hours_this_month: float = 0.0
    billable_hours: float = 0.0
    unpaid_invoices: UnpaidInvoiceSummary = field(default_factory=UnpaidInvoiceSummary)
    total_invoices: int = 0
    total_projects: int = 0
    monthly_earnings: Decimal = Decimal("0")
    yearly_earnings: Decimal = Decimal("0")
    total_clients: int = 0
    total_expenses: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")


@dataclass(frozen=True)
class RevenueBucket:
    """One calendar month in the revenue/expense series."""

    month: str
    start: date
    revenue: Decimal
    expenses: Decimal

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.expenses


@dataclass(frozen=True)
class InvoiceStatusSlice:
    """One non-zero slice of the invoice status breakdown."""

    name: str
    value: int
    color: str


class ReportPeriod(str, Enum):
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    THIS_YEAR = "this-year"
    ALL_TIME = "all-time"


@dataclass(frozen=True)
class FinancialReport:
    """Revenue, outstanding and expense totals over one reporting period."""

    period: ReportPeriod
    start: Optional[date]
    end: Optional[date]
    total_revenue: Decimal = Decimal("0")
    outstanding_amount: Decimal = Decimal("0")
    unpaid_count: int = 0
    total_expenses: Decimal = Decimal("0")

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    @property
    def expense_ratio(self) -> float:
        """Expenses as a percentage of revenue; zero without revenue."""
        if not self.total_revenue:
            return 0.0
        return float(self.total_expenses / self.total_revenue * 100)
