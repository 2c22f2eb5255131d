"""Mapper functions to convert between domain models and SQLAlchemy models.

Joined relations (project name, client name) are resolved here so that the
rest of the application only ever sees fully-populated domain entities.
"""

from decimal import Decimal
from typing import Any, Optional

from billsense.domain import entities as domain
from billsense.database.models import (
    AuthUser as ORMAuthUser,
    Client as ORMClient,
    ClientUser as ORMClientUser,
    Company as ORMCompany,
    Expense as ORMExpense,
    Invoice as ORMInvoice,
    Notification as ORMNotification,
    Profile as ORMProfile,
    Project as ORMProject,
    Quotation as ORMQuotation,
    TimeEntry as ORMTimeEntry,
)


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        id=orm_company.id,
        name=orm_company.name,
        email=orm_company.email,
        currency=orm_company.currency,
        invoice_prefix=orm_company.invoice_prefix,
        invoice_next_number=orm_company.invoice_next_number,
        created_at=orm_company.created_at,
    )


def profile_to_domain(orm_profile: ORMProfile) -> domain.Profile:
    """Convert SQLAlchemy Profile model to domain Profile entity."""
    return domain.Profile(
        id=orm_profile.id,
        email=orm_profile.email,
        full_name=orm_profile.full_name,
        company_id=orm_profile.company_id,
        created_at=orm_profile.created_at,
    )


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        company_id=orm_client.company_id,
        name=orm_client.name,
        email=orm_client.email,
        currency=orm_client.currency,
        created_at=orm_client.created_at,
        updated_at=orm_client.updated_at,
    )


def project_to_domain(orm_project: ORMProject) -> domain.Project:
    """Convert SQLAlchemy Project model to domain Project entity."""
    return domain.Project(
        id=orm_project.id,
        company_id=orm_project.company_id,
        client_id=orm_project.client_id,
        name=orm_project.name,
        description=orm_project.description,
        project_type=domain.ProjectType(orm_project.project_type),
        hourly_rate=_decimal(orm_project.hourly_rate),
        fixed_price=_decimal(orm_project.fixed_price),
        currency=orm_project.currency,
        status=domain.ProjectStatus(orm_project.status),
        created_at=orm_project.created_at,
        updated_at=orm_project.updated_at,
        client_name=orm_project.client.name if orm_project.client is not None else None,
    )


def time_entry_to_domain(orm_entry: ORMTimeEntry) -> domain.TimeEntry:
    """Convert SQLAlchemy TimeEntry model to domain TimeEntry entity."""
    project_name = domain.UNKNOWN_PROJECT
    if orm_entry.project is not None and orm_entry.project.name:
        project_name = orm_entry.project.name

    return domain.TimeEntry(
        id=orm_entry.id,
        user_id=orm_entry.user_id,
        company_id=orm_entry.company_id,
        project_id=orm_entry.project_id,
        task_id=orm_entry.task_id,
        description=orm_entry.description,
        start_time=orm_entry.start_time,
        end_time=orm_entry.end_time,
        duration=orm_entry.duration,
        is_running=bool(orm_entry.is_running),
        is_billable=bool(orm_entry.is_billable),
        created_at=orm_entry.created_at,
        project_name=project_name,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    client_name = domain.UNKNOWN_CLIENT
    if orm_invoice.client is not None and orm_invoice.client.name:
        client_name = orm_invoice.client.name

    return domain.Invoice(
        id=orm_invoice.id,
        company_id=orm_invoice.company_id,
        user_id=orm_invoice.user_id,
        client_id=orm_invoice.client_id,
        project_id=orm_invoice.project_id,
        invoice_number=orm_invoice.invoice_number,
        issue_date=orm_invoice.issue_date,
        due_date=orm_invoice.due_date,
        subtotal=_decimal(orm_invoice.subtotal),
        tax_rate=_decimal(orm_invoice.tax_rate),
        tax_amount=_decimal(orm_invoice.tax_amount),
        total=_decimal(orm_invoice.total),
        currency=orm_invoice.currency,
        status=domain.InvoiceStatus(orm_invoice.status),
        notes=orm_invoice.notes,
        payment_link=orm_invoice.payment_link,
        created_at=orm_invoice.created_at,
        updated_at=orm_invoice.updated_at,
        client_name=client_name,
    )


def quotation_to_domain(orm_quote: ORMQuotation) -> domain.Quotation:
    """Convert SQLAlchemy Quotation model, items included, to a domain Quotation."""
    client_name = domain.UNKNOWN_CLIENT
    if orm_quote.client is not None and orm_quote.client.name:
        client_name = orm_quote.client.name

    items = tuple(
        domain.QuotationItem(
            description=item.description,
            quantity=_decimal(item.quantity),
            rate=_decimal(item.rate),
        )
        for item in orm_quote.items
    )
    return domain.Quotation(
        id=orm_quote.id,
        company_id=orm_quote.company_id,
        client_id=orm_quote.client_id,
        quote_number=orm_quote.quote_number,
        issue_date=orm_quote.issue_date,
        expiry_date=orm_quote.expiry_date,
        status=domain.QuotationStatus(orm_quote.status),
        subtotal=_decimal(orm_quote.subtotal),
        tax_rate=_decimal(orm_quote.tax_rate),
        tax_amount=_decimal(orm_quote.tax_amount),
        discount_type=domain.DiscountType(orm_quote.discount_type),
        discount_value=_decimal(orm_quote.discount_value),
        discount_amount=_decimal(orm_quote.discount_amount),
        total=_decimal(orm_quote.total),
        currency=orm_quote.currency,
        notes=orm_quote.notes,
        terms=orm_quote.terms,
        invoice_id=orm_quote.invoice_id,
        created_at=orm_quote.created_at,
        items=items,
        client_name=client_name,
    )

def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        company_id=orm_expense.company_id,
        project_id=orm_expense.project_id,
        category=orm_expense.category,
        amount=_decimal(orm_expense.amount),
        currency=orm_expense.currency,
        expense_date=orm_expense.expense_date,
        description=orm_expense.description,
        receipt_url=orm_expense.receipt_url,
        is_billable=bool(orm_expense.is_billable),
        is_invoiced=bool(orm_expense.is_invoiced),
        created_at=orm_expense.created_at,
        project_name=orm_expense.project.name if orm_expense.project is not None else None,
    )


def notification_to_domain(orm_notification: ORMNotification) -> domain.Notification:
    """Convert SQLAlchemy Notification model to domain Notification entity."""
    return domain.Notification(
        id=orm_notification.id,
        user_id=orm_notification.user_id,
        type=orm_notification.type,
        title=orm_notification.title,
        message=orm_notification.message,
        is_read=bool(orm_notification.is_read),
        created_at=orm_notification.created_at,
    )


def auth_user_to_domain(orm_user: ORMAuthUser) -> domain.AuthUser:
    """Convert SQLAlchemy AuthUser model to domain AuthUser entity."""
    return domain.AuthUser(
        id=orm_user.id,
        email=orm_user.email,
        invited_for_client=orm_user.invited_for_client,
        created_at=orm_user.created_at,
    )


def client_user_to_domain(orm_link: ORMClientUser) -> domain.ClientUser:
    """Convert SQLAlchemy ClientUser model to domain ClientUser entity."""
    return domain.ClientUser(
        id=orm_link.id,
        client_id=orm_link.client_id,
        email=orm_link.email,
        auth_user_id=orm_link.auth_user_id,
        is_active=bool(orm_link.is_active),
        invited_at=orm_link.invited_at,
    )


def _provider_config(raw: Optional[dict[str, Any]]) -> domain.ProviderConfig:
    raw = raw or {}
    return domain.ProviderConfig(
        api_key=raw.get("api_key") or None,
        sender_name=raw.get("sender_name") or None,
        sender_email=raw.get("sender_email") or None,
    )


def email_settings_to_domain(raw: Optional[dict[str, Any]]) -> domain.EmailSettings:
    """Decode the stored email_settings JSON, defaulting to the system provider."""
    if not raw:
        return domain.EmailSettings()

    try:
        provider = domain.EmailProviderName(raw.get("provider", "system"))
    except ValueError:
        provider = domain.EmailProviderName.SYSTEM

    return domain.EmailSettings(
        provider=provider,
        resend_config=_provider_config(raw.get("resend_config")),
        brevo_config=_provider_config(raw.get("brevo_config")),
    )


def email_settings_to_storage(settings: domain.EmailSettings) -> dict[str, Any]:
    """Encode EmailSettings for the JSON column."""

    def encode(config: domain.ProviderConfig) -> dict[str, Optional[str]]:
        return {
            "api_key": config.api_key,
            "sender_name": config.sender_name,
            "sender_email": config.sender_email,
        }

    return {
        "provider": settings.provider.value,
        "resend_config": encode(settings.resend_config),
        "brevo_config": encode(settings.brevo_config),
    }
