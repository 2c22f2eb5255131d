"""Client domain service."""

from typing import Optional

from billsense.database.base import Database
from billsense.domain.entities import Client
from billsense.domain.errors import ConflictError, NotFoundError, ValidationError, client_not_found
from billsense.domain.session import SessionContext


class ClientService:
    """Service for managing clients."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize client service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def create_client(self, name: str, email: Optional[str] = None, currency: str = "USD") -> int:
        """Create a new client.

        Args:
            name: Client name
            email: Optional billing e-mail
            currency: ISO currency code

        Returns:
            Client ID

        Raises:
            ValidationError: If name is empty
            ConflictError: If a client with the same name exists
        """
        name = self._validate_name(name)
        company_id = self.session.require_company_id()

        for client in self.db.list_clients(company_id):
            if client.name.lower() == name.lower():
                raise ConflictError(f"Client with name '{name}' already exists")

        return self.db.create_client(
            company_id=company_id,
            name=name,
            email=(email or "").strip() or None,
            currency=(currency or "USD").upper(),
        )

    def get_client(self, client_id: int) -> Client:
        """Get a client of the acting user's company.

        Raises:
            NotFoundError: If not found in the company
        """
        client = self.db.get_client(client_id)
        if client is None or client.company_id != self.session.require_company_id():
            raise NotFoundError(client_not_found(client_id))
        return client

    def list_clients(self) -> list[Client]:
        """List clients of the acting user's company."""
        return self.db.list_clients(self.session.require_company_id())

    def update_client(
        self,
        client_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> None:
        """Update a client; omitted fields keep their value."""
        client = self.get_client(client_id)
        new_name = self._validate_name(name) if name is not None else client.name

        for other in self.list_clients():
            if other.id != client_id and other.name.lower() == new_name.lower():
                raise ConflictError(f"Client with name '{new_name}' already exists")

        new_email = client.email if email is None else (email.strip() or None)
        self.db.update_client(
            client_id,
            name=new_name,
            email=new_email,
            currency=(currency or client.currency).upper(),
        )

    def delete_client(self, client_id: int) -> None:
        """Delete a client.

        Raises:
            ConflictError: If projects, invoices or quotations still reference the client
        """
        client = self.get_client(client_id)
        company_id = client.company_id

        project_count = sum(1 for p in self.db.list_projects(company_id) if p.client_id == client_id)
        invoice_count = sum(1 for i in self.db.list_invoices(company_id=company_id) if i.client_id == client_id)
        quote_count = sum(1 for q in self.db.list_quotations(company_id) if q.client_id == client_id)
        if project_count or invoice_count or quote_count:
            parts = []
            if project_count:
                parts.append(f"{project_count} project{'s' if project_count != 1 else ''}")
            if invoice_count:
                parts.append(f"{invoice_count} invoice{'s' if invoice_count != 1 else ''}")
            if quote_count:
                parts.append(f"{quote_count} quotation{'s' if quote_count != 1 else ''}")
            raise ConflictError(
                f"Cannot delete client '{client.name}': it has {', '.join(parts)}. "
                f"Please reassign or delete them first."
            )

        self.db.delete_client(client_id)

    @staticmethod
    def _validate_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Client name is required")
        return name
