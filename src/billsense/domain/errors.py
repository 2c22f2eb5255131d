"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity or prerequisite row does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or illegal transitions."""


class ProviderError(DomainError):
    """External e-mail provider returned a non-success response."""


class ProfileTimeoutError(DomainError, TimeoutError):
    """Profile lookup exceeded its time bound."""


def company_profile_not_found() -> str:
    """Return message for a profile without a company."""
    return "Company profile not found. Please complete company setup first."


def profile_not_found(user_id: int) -> str:
    """Return message for missing profile."""
    return f"Profile {user_id} not found"


def client_not_found(client_id: int) -> str:
    """Return message for missing client."""
    return f"Client {client_id} not found"


def project_not_found(project_id: int) -> str:
    """Return message for missing project."""
    return f"Project {project_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def expense_not_found(expense_id: int) -> str:
    """Return message for missing expense."""
    return f"Expense {expense_id} not found"


def time_entry_not_found(entry_id: int) -> str:
    """Return message for missing time entry."""
    return f"Time entry {entry_id} not found"


def notification_not_found(notification_id: int) -> str:
    """Return message for missing notification."""
    return f"Notification {notification_id} not found"


def timer_already_running(user_id: int) -> str:
    """Return message when a second running timer would be created."""
    return f"A timer is already running for user {user_id}"


def time_entry_not_running(entry_id: int) -> str:
    """Return message when stopping an entry that was already stopped."""
    return f"Time entry {entry_id} is no longer running"


def illegal_invoice_transition(invoice_number: str, current: str, target: str) -> str:
    """Return message for a status change the invoice lifecycle forbids."""
    return f"Invoice {invoice_number} cannot move from '{current}' to '{target}'"


def quotation_not_found(quotation_id: int) -> str:
    """Return message for missing quotation."""
    return f"Quotation {quotation_id} not found"


def illegal_quotation_transition(quote_number: str, current: str, target: str) -> str:
    """Return message for a status change the quotation lifecycle forbids."""
    return f"Quotation {quote_number} cannot move from '{current}' to '{target}'"
