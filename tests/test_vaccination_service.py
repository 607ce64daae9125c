"""
Tests for the vaccination service.
"""

import uuid
from datetime import timedelta

import pytest
import pytest_asyncio

from petcare_core.exceptions import (
    AuthorizationException,
    NotFoundException,
    SchemaValidationException,
    ValidationException,
)
from petcare_core.models import Vaccination
from petcare_core.services import VaccinationService
from petcare_core.utils.datetime_utils import get_current_date


@pytest.fixture
def vaccinations(async_session, service_kwargs):
    return VaccinationService(async_session, **service_kwargs)


async def _vaccinate(session, pet, **kwargs):
    today = get_current_date()
    defaults = {
        "pet_id": pet.id,
        "vaccine_name": "Rabies",
        "application_date": today - timedelta(days=300),
        "next_dose_date": today + timedelta(days=65),
    }
    defaults.update(kwargs)
    vaccination = Vaccination(**defaults)
    session.add(vaccination)
    await session.flush()
    await session.refresh(vaccination)
    return vaccination


@pytest.mark.asyncio
class TestRecordVaccination:
    """Test cases for recording vaccines."""

    async def test_create(self, vaccinations, clinic_admin, pet):
        today = get_current_date()

        vaccination = await vaccinations.create(
            clinic_admin,
            {
                "pet_id": str(pet.id),
                "vaccine_name": " Parvovirus ",
                "application_date": today.isoformat(),
                "next_dose_date": (today + timedelta(days=365)).isoformat(),
            },
        )

        assert vaccination.vaccine_name == "Parvovirus"
        assert vaccination.created_by == clinic_admin.id

    async def test_future_application_is_rejected(self, vaccinations, clinic_admin, pet):
        tomorrow = get_current_date() + timedelta(days=1)

        with pytest.raises(SchemaValidationException) as exc_info:
            await vaccinations.create(
                clinic_admin,
                {
                    "pet_id": str(pet.id),
                    "vaccine_name": "Rabies",
                    "application_date": tomorrow.isoformat(),
                },
            )

        assert "application_date" in exc_info.value.validation_errors

    async def test_next_dose_before_application_is_rejected(
        self, vaccinations, clinic_admin, pet
    ):
        today = get_current_date()

        with pytest.raises(SchemaValidationException):
            await vaccinations.create(
                clinic_admin,
                {
                    "pet_id": str(pet.id),
                    "vaccine_name": "Rabies",
                    "application_date": today.isoformat(),
                    "next_dose_date": today.isoformat(),
                },
            )

    async def test_unknown_pet(self, vaccinations, clinic_admin):
        with pytest.raises(ValidationException) as exc_info:
            await vaccinations.create(
                clinic_admin,
                {
                    "pet_id": str(uuid.uuid4()),
                    "vaccine_name": "Rabies",
                    "application_date": get_current_date().isoformat(),
                },
            )

        assert exc_info.value.field == "pet_id"

    async def test_hotel_employee_cannot_record(self, vaccinations, hotel_employee, pet):
        with pytest.raises(AuthorizationException):
            await vaccinations.create(
                hotel_employee,
                {
                    "pet_id": str(pet.id),
                    "vaccine_name": "Rabies",
                    "application_date": get_current_date().isoformat(),
                },
            )


@pytest.mark.asyncio
class TestVaccinationChanges:
    """Test cases for updates and deletion."""

    @pytest_asyncio.fixture
    async def vaccination(self, async_session, pet):
        return await _vaccinate(async_session, pet)

    async def test_move_next_dose(self, vaccinations, clinic_admin, vaccination):
        new_date = get_current_date() + timedelta(days=90)

        updated = await vaccinations.update(
            clinic_admin, vaccination.id, {"next_dose_date": new_date.isoformat()}
        )

        assert updated.next_dose_date == new_date

    async def test_next_dose_checked_against_stored_application(
        self, vaccinations, clinic_admin, vaccination
    ):
        too_early = vaccination.application_date - timedelta(days=1)

        with pytest.raises(ValidationException) as exc_info:
            await vaccinations.update(
                clinic_admin, vaccination.id, {"next_dose_date": too_early.isoformat()}
            )

        assert exc_info.value.field == "next_dose_date"

    async def test_application_checked_against_stored_next_dose(
        self, vaccinations, clinic_admin, pet, async_session
    ):
        today = get_current_date()
        overdue = await _vaccinate(async_session, pet, next_dose_date=today - timedelta(days=10))

        with pytest.raises(ValidationException):
            await vaccinations.update(
                clinic_admin,
                overdue.id,
                {"application_date": (today - timedelta(days=5)).isoformat()},
            )

    async def test_delete(self, vaccinations, clinic_admin, vaccination, async_session):
        await vaccinations.delete(clinic_admin, vaccination.id)

        assert await async_session.get(Vaccination, vaccination.id) is None


@pytest.mark.asyncio
class TestVaccinationReads:
    """Test cases for per-pet listings and upcoming doses."""

    async def test_list_by_pet_newest_first(self, vaccinations, hotel_employee, pet, async_session):
        today = get_current_date()
        older = await _vaccinate(async_session, pet, application_date=today - timedelta(days=400))
        newer = await _vaccinate(async_session, pet, application_date=today - timedelta(days=20))

        found = await vaccinations.list_by_pet(hotel_employee, pet.id)

        assert [v.id for v in found] == [newer.id, older.id]

    async def test_list_by_missing_pet(self, vaccinations, hotel_employee):
        with pytest.raises(NotFoundException):
            await vaccinations.list_by_pet(hotel_employee, uuid.uuid4())

    async def test_manager_reads_through_pet_history(self, vaccinations, manager, pet):
        assert await vaccinations.list_by_pet(manager, pet.id) == []

    async def test_spa_assistant_cannot_read(self, vaccinations, spa_assistant, pet):
        with pytest.raises(AuthorizationException):
            await vaccinations.list_by_pet(spa_assistant, pet.id)

    async def test_upcoming_window(self, vaccinations, clinic_admin, pet, async_session):
        today = get_current_date()
        due_today = await _vaccinate(async_session, pet, next_dose_date=today)
        due_soon = await _vaccinate(async_session, pet, next_dose_date=today + timedelta(days=12))
        await _vaccinate(async_session, pet, next_dose_date=today + timedelta(days=31))
        await _vaccinate(async_session, pet, next_dose_date=today - timedelta(days=1))
        await _vaccinate(async_session, pet, next_dose_date=None)

        found = await vaccinations.upcoming(clinic_admin)

        assert [v.id for v in found] == [due_today.id, due_soon.id]

    async def test_upcoming_custom_days(self, vaccinations, clinic_admin, pet, async_session):
        today = get_current_date()
        await _vaccinate(async_session, pet, next_dose_date=today + timedelta(days=31))

        assert len(await vaccinations.upcoming(clinic_admin, days=60)) == 1
        assert await vaccinations.upcoming(clinic_admin, days=0) == []

    async def test_negative_days(self, vaccinations, clinic_admin):
        with pytest.raises(ValueError):
            await vaccinations.upcoming(clinic_admin, days=-1)
