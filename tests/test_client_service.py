"""
Tests for the client service.
"""

import uuid
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from petcare_core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    NotFoundException,
    ReferentialIntegrityException,
    SchemaValidationException,
)
from petcare_core.models import Client, MedicalRecord, ServiceSegment, Vaccination
from petcare_core.services import ClientService


def _client_data(**overrides):
    data = {
        "name": "  Maria   Fernanda Lopez ",
        "email": "Maria.Lopez@Example.com",
        "phone": "300 123 4567",
        "address": "Carrera 7 # 45-10",
        "identification_type": "CC",
        "identification_number": "1020304050",
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(async_session, service_kwargs):
    return ClientService(async_session, **service_kwargs)


@pytest.mark.asyncio
class TestCreateClient:
    """Test cases for client registration."""

    async def test_create_normalizes_input(self, service, hotel_employee):
        client = await service.create(hotel_employee, _client_data())

        assert client.id is not None
        assert client.name == "Maria Fernanda Lopez"
        assert client.email == "maria.lopez@example.com"
        assert client.created_by == hotel_employee.id

    async def test_duplicate_email_is_rejected(self, service, hotel_employee, client):
        with pytest.raises(BusinessRuleException) as exc_info:
            await service.create(hotel_employee, _client_data(email=client.email))

        exc = exc_info.value
        assert exc.field == "email"
        assert exc.input_data["email"] == client.email

    async def test_duplicate_document_is_rejected(self, service, hotel_employee, client):
        with pytest.raises(BusinessRuleException) as exc_info:
            await service.create(
                hotel_employee,
                _client_data(identification_number=client.identification_number),
            )

        assert exc_info.value.field == "identification_number"

    async def test_invalid_data_reports_fields(self, service, hotel_employee, async_session):
        with pytest.raises(SchemaValidationException) as exc_info:
            await service.create(hotel_employee, _client_data(email="not-an-email", phone="abc"))

        errors = exc_info.value.validation_errors
        assert "email" in errors
        assert "phone" in errors
        assert exc_info.value.input_data["phone"] == "abc"
        count = (await async_session.execute(select(func.count()).select_from(Client))).scalar_one()
        assert count == 0

    async def test_manager_cannot_create_clients(self, service, manager):
        with pytest.raises(AuthorizationException):
            await service.create(manager, _client_data())

    async def test_anonymous_cannot_create_clients(self, service):
        with pytest.raises(AuthorizationException):
            await service.create(None, _client_data())


@pytest.mark.asyncio
class TestReadClients:
    """Test cases for listing, lookup and autocomplete."""

    async def test_list_paginates_with_exact_total(
        self, service, manager, client_factory, async_session
    ):
        for i in range(7):
            await client_factory.create(async_session, name=f"Client {i:02d}")

        first = await service.list(manager, {})
        second = await service.list(manager, {"page": 2})

        assert first.total == 7
        assert len(first.items) == 5
        assert first.pages == 2
        assert first.has_next
        assert [c.name for c in second.items] == ["Client 05", "Client 06"]

    async def test_list_search(self, service, manager, client_factory, async_session):
        wanted = await client_factory.create(async_session, name="Valentina Rios")
        await client_factory.create(async_session, name="Andres Mora")

        page = await service.list(manager, {"search": "rios"})

        assert [c.id for c in page.items] == [wanted.id]

    async def test_get_missing_client(self, service, manager):
        with pytest.raises(NotFoundException):
            await service.get(manager, uuid.uuid4())

    async def test_public_user_cannot_read(self, service, public_user, client):
        with pytest.raises(AuthorizationException):
            await service.get(public_user, client.id)

    async def test_search_blank_term_returns_nothing(self, service, manager, client):
        assert await service.search(manager, "  ") == []

    async def test_search_by_document(self, service, manager, client_factory, async_session):
        wanted = await client_factory.create(async_session, identification_number="99887766")

        found = await service.search(manager, "998877")

        assert [c.id for c in found] == [wanted.id]


@pytest.mark.asyncio
class TestUpdateClient:
    """Test cases for client updates."""

    async def test_partial_update(self, service, spa_assistant, client):
        original_email = client.email

        updated = await service.update(spa_assistant, client.id, {"phone": "3205551234"})

        assert updated.phone == "3205551234"
        assert updated.email == original_email
        assert updated.updated_by == spa_assistant.id

    async def test_update_keeping_own_email_is_allowed(self, service, spa_assistant, client):
        updated = await service.update(spa_assistant, client.id, {"email": client.email})

        assert updated.email == client.email

    async def test_update_to_taken_email_is_rejected(
        self, service, spa_assistant, client, client_factory, async_session
    ):
        other = await client_factory.create(async_session)

        with pytest.raises(BusinessRuleException):
            await service.update(spa_assistant, client.id, {"email": other.email})

    async def test_empty_update_is_rejected(self, service, spa_assistant, client):
        with pytest.raises(SchemaValidationException):
            await service.update(spa_assistant, client.id, {})


@pytest.mark.asyncio
class TestDeleteClient:
    """Test cases for client deletion."""

    async def test_delete_client_without_dependents(
        self, service, clinic_admin, client, async_session
    ):
        await service.delete(clinic_admin, client.id)

        assert await async_session.get(Client, client.id) is None

    async def test_delete_with_pets_is_blocked(self, service, clinic_admin, pet, async_session):
        with pytest.raises(ReferentialIntegrityException) as exc_info:
            await service.delete(clinic_admin, pet.client_id)

        assert exc_info.value.dependents == {"pets": 1}
        assert await async_session.get(Client, pet.client_id) is not None


@pytest.mark.asyncio
class TestClientHistory:
    """Test cases for the client history view."""

    @pytest_asyncio.fixture
    async def populated(
        self, async_session, pet, services, manager, appointment_factory, hotel_stay_factory
    ):
        for segment in (ServiceSegment.CLINIC, ServiceSegment.SPA):
            await appointment_factory.create(async_session, pet, services[segment], manager)
        await hotel_stay_factory.create(async_session, pet)
        async_session.add(
            MedicalRecord(
                pet_id=pet.id, veterinarian_id=manager.id, diagnosis="Otitis", treatment="Drops"
            )
        )
        async_session.add(
            Vaccination(pet_id=pet.id, vaccine_name="Rabies", application_date=date(2024, 5, 1))
        )
        await async_session.flush()
        return pet

    async def test_manager_sees_everything(self, service, manager, populated):
        history = await service.history(manager, populated.client_id)

        assert [p.id for p in history.pets] == [populated.id]
        assert len(history.appointments) == 2
        assert len(history.hotel_stays) == 1
        assert len(history.medical_records) == 1
        assert len(history.vaccinations) == 1

    async def test_spa_assistant_sees_only_spa_sections(self, service, spa_assistant, populated):
        history = await service.history(spa_assistant, populated.client_id)

        assert [a.service.segment for a in history.appointments] == [ServiceSegment.SPA]
        assert history.hotel_stays == []
        assert history.medical_records == []
        assert history.vaccinations == []

    async def test_history_requires_permission(self, service, hotel_employee, client):
        with pytest.raises(AuthorizationException):
            await service.history(hotel_employee, client.id)
