"""Tests for client and project services."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from billsense.domain.client import ClientService
from billsense.domain.entities import ProjectStatus, ProjectType
from billsense.domain.errors import ConflictError, NotFoundError, ValidationError
from billsense.domain.project import ProjectForm, ProjectService


class TestClientService:
    def test_create_and_get(self, client_service):
        client_id = client_service.create_client("Globex", email=" ap@globex.test ", currency="eur")
        client = client_service.get_client(client_id)

        assert client.name == "Globex"
        assert client.email == "ap@globex.test"
        assert client.currency == "EUR"

    def test_duplicate_name_is_case_insensitive(self, client_service, sample_client):
        with pytest.raises(ConflictError, match="already exists"):
            client_service.create_client("ACME corp")

    def test_empty_name_rejected(self, client_service):
        with pytest.raises(ValidationError):
            client_service.create_client("   ")

    def test_update_keeps_omitted_fields(self, client_service, sample_client):
        client_service.update_client(sample_client.id, currency="gbp")
        client = client_service.get_client(sample_client.id)

        assert client.name == "Acme Corp"
        assert client.email == "billing@acme.test"
        assert client.currency == "GBP"

    def test_update_to_existing_name_conflicts(self, client_service, sample_client):
        other = client_service.create_client("Globex")
        with pytest.raises(ConflictError):
            client_service.update_client(other, name="acme corp")

    def test_clients_are_scoped_to_company(self, temp_db, other_session, sample_client):
        other = ClientService(temp_db, other_session)

        assert other.list_clients() == []
        with pytest.raises(NotFoundError):
            other.get_client(sample_client.id)

    def test_delete_blocked_by_projects(self, client_service, sample_project, sample_client):
        with pytest.raises(ConflictError, match="1 project"):
            client_service.delete_client(sample_client.id)

    def test_delete_unreferenced_client(self, client_service):
        client_id = client_service.create_client("Temp")
        client_service.delete_client(client_id)

        with pytest.raises(NotFoundError):
            client_service.get_client(client_id)


class TestProjectService:
    def test_hourly_project_drops_fixed_price(self, project_service, sample_client):
        project_id = project_service.save(
            ProjectForm(
                name="Retainer",
                client_id=sample_client.id,
                hourly_rate=Decimal("90"),
                fixed_price=Decimal("5000"),
            )
        )
        project = project_service.get_project(project_id)

        assert project.project_type == ProjectType.HOURLY
        assert project.hourly_rate == Decimal("90")
        assert project.fixed_price == Decimal("0")
        assert project.client_name == "Acme Corp"

    def test_fixed_project_drops_hourly_rate(self, project_service):
        project_id = project_service.save(
            ProjectForm(name="Logo", project_type="fixed", hourly_rate=Decimal("90"), fixed_price=Decimal("1200"))
        )
        project = project_service.get_project(project_id)

        assert project.project_type == ProjectType.FIXED
        assert project.hourly_rate == Decimal("0")
        assert project.fixed_price == Decimal("1200")

    @pytest.mark.parametrize(
        "form, message",
        [
            (ProjectForm(name=""), "Project name is required"),
            (ProjectForm(name="X", project_type="daily"), "Invalid project type"),
            (ProjectForm(name="X", status="archived"), "Invalid project status"),
            (ProjectForm(name="X", hourly_rate=Decimal("-1")), "cannot be negative"),
        ],
    )
    def test_invalid_forms(self, project_service, form, message):
        with pytest.raises(ValidationError, match=message):
            project_service.save(form)

    def test_unknown_client_rejected(self, project_service):
        with pytest.raises(NotFoundError):
            project_service.save(ProjectForm(name="Orphan", client_id=999))

    def test_edit_through_form(self, project_service, sample_project):
        form = project_service.form_for(sample_project.id)
        form.status = ProjectStatus.ON_HOLD.value
        form.name = "Website v2"
        project_service.save(form)

        project = project_service.get_project(sample_project.id)
        assert project.name == "Website v2"
        assert project.status == ProjectStatus.ON_HOLD
        assert project_service.list_projects(status="active") == []

    def test_list_ordered_by_name(self, project_service):
        for name in ["Zeta", "Alpha", "Mid"]:
            project_service.save(ProjectForm(name=name))

        assert [p.name for p in project_service.list_projects()] == ["Alpha", "Mid", "Zeta"]

    def test_delete_blocked_by_time_entries(self, project_service, temp_db, session, company_id, sample_project):
        temp_db.create_time_entry(
            user_id=session.user_id,
            company_id=company_id,
            project_id=sample_project.id,
            start_time=datetime(2024, 3, 13, 9, 0),
            end_time=datetime(2024, 3, 13, 10, 0),
            duration=3600,
            is_running=False,
        )
        with pytest.raises(ConflictError, match="1 time entry"):
            project_service.delete_project(sample_project.id)

    def test_delete_blocked_by_expenses(self, project_service, temp_db, company_id, sample_project):
        temp_db.create_expense(company_id, "Travel", Decimal("80"), date(2024, 3, 1), project_id=sample_project.id)
        with pytest.raises(ConflictError, match="1 expense"):
            project_service.delete_project(sample_project.id)

    def test_delete_unreferenced_project(self, project_service, sample_project):
        project_service.delete_project(sample_project.id)
        with pytest.raises(NotFoundError):
            project_service.get_project(sample_project.id)
