"""Project domain service."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from billsense.database.base import Database
from billsense.domain.entities import Project, ProjectStatus, ProjectType
from billsense.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    client_not_found,
    project_not_found,
)
from billsense.domain.session import SessionContext


@dataclass
class ProjectForm:
    """User input for creating or editing a project."""

    name: str
    client_id: Optional[int] = None
    description: Optional[str] = None
    project_type: str = ProjectType.HOURLY.value
    hourly_rate: Decimal = Decimal("0")
    fixed_price: Decimal = Decimal("0")
    currency: str = "USD"
    status: str = ProjectStatus.ACTIVE.value
    project_id: Optional[int] = None


class ProjectService:
    """Service for managing projects."""

    def __init__(self, db: Database, session: SessionContext):
        """Initialize project service.

        Args:
            db: Database instance
            session: Acting-user session
        """
        self.db = db
        self.session = session

    def normalize(self, form: ProjectForm) -> dict:
        """Validate a project form and return the row to store.

        Hourly projects store no fixed price; fixed projects store no hourly rate.

        Raises:
            ValidationError: On missing name, unknown type/status or negative rates
        """
        name = (form.name or "").strip()
        if not name:
            raise ValidationError("Project name is required")

        try:
            project_type = ProjectType(form.project_type)
        except ValueError:
            raise ValidationError(
                f"Invalid project type '{form.project_type}'. Must be 'hourly' or 'fixed'"
            )
        try:
            status = ProjectStatus(form.status)
        except ValueError:
            valid = ", ".join(s.value for s in ProjectStatus)
            raise ValidationError(f"Invalid project status '{form.status}'. Must be one of: {valid}")

        hourly_rate = form.hourly_rate or Decimal("0")
        fixed_price = form.fixed_price or Decimal("0")
        if hourly_rate < 0 or fixed_price < 0:
            raise ValidationError("Rates cannot be negative")

        if project_type == ProjectType.HOURLY:
            fixed_price = Decimal("0")
        else:
            hourly_rate = Decimal("0")

        return dict(
            name=name,
            client_id=form.client_id or None,
            description=(form.description or "").strip() or None,
            project_type=project_type.value,
            hourly_rate=hourly_rate,
            fixed_price=fixed_price,
            currency=(form.currency or "USD").upper(),
            status=status.value,
        )

    def save(self, form: ProjectForm) -> int:
        """Insert a new project or update an existing one.

        Returns:
            Project ID
        """
        fields = self.normalize(form)
        company_id = self.session.require_company_id()

        if fields["client_id"] is not None:
            client = self.db.get_client(fields["client_id"])
            if client is None or client.company_id != company_id:
                raise NotFoundError(client_not_found(fields["client_id"]))

        if form.project_id is not None:
            self.get_project(form.project_id)
            self.db.update_project(form.project_id, **fields)
            return form.project_id

        return self.db.create_project(company_id=company_id, **fields)

    def get_project(self, project_id: int) -> Project:
        """Get a project of the acting user's company.

        Raises:
            NotFoundError: If not found in the company
        """
        project = self.db.get_project(project_id)
        if project is None or project.company_id != self.session.require_company_id():
            raise NotFoundError(project_not_found(project_id))
        return project

    def list_projects(self, status: Optional[str] = None) -> list[Project]:
        """List projects of the acting user's company, optionally by status."""
        return self.db.list_projects(self.session.require_company_id(), status=status)

    def form_for(self, project_id: int) -> ProjectForm:
        """Pre-filled form for editing an existing project."""
        project = self.get_project(project_id)
        return ProjectForm(
            name=project.name,
            client_id=project.client_id,
            description=project.description,
            project_type=project.project_type.value,
            hourly_rate=project.hourly_rate,
            fixed_price=project.fixed_price,
            currency=project.currency,
            status=project.status.value,
            project_id=project.id,
        )

    def delete_project(self, project_id: int) -> None:
        """Delete a project.

        Raises:
            ConflictError: If time entries or expenses reference the project
        """
        project = self.get_project(project_id)
        entries = [
            e for e in self.db.list_time_entries(company_id=project.company_id)
            if e.project_id == project_id
        ]
        expenses = [e for e in self.db.list_expenses(project.company_id) if e.project_id == project_id]
        if entries or expenses:
            raise ConflictError(
                f"Cannot delete project '{project.name}': it has "
                f"{len(entries)} time entr{'ies' if len(entries) != 1 else 'y'} and "
                f"{len(expenses)} expense{'s' if len(expenses) != 1 else ''}."
            )
        self.db.delete_project(project_id)
