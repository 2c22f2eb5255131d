"""Domain layer for billsense application.

Services are exported lazily: the database layer imports domain entities,
and the services import the database layer.
"""

from importlib import import_module

_SERVICES = {
    "SessionContext": "billsense.domain.session",
    "TimerService": "billsense.domain.timer",
    "ActivityService": "billsense.domain.activity",
    "DashboardService": "billsense.domain.dashboard",
    "ExpenseService": "billsense.domain.expense",
    "ClientService": "billsense.domain.client",
    "ProjectService": "billsense.domain.project",
    "InvoiceService": "billsense.domain.invoice",
    "QuotationService": "billsense.domain.quotation",
    "CompanyService": "billsense.domain.company",
    "NotificationFeed": "billsense.domain.notifications",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    module = _SERVICES.get(name)
    if module is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    return getattr(import_module(module), name)
