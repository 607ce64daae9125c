"""
Tests for the user service.
"""

import uuid

import pytest

from petcare_core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    NotFoundException,
    SchemaValidationException,
)
from petcare_core.models import UserRole
from petcare_core.services import UserService


@pytest.fixture
def users(async_session, service_kwargs):
    return UserService(async_session, **service_kwargs)


def _user_data(**overrides):
    data = {
        "name": "Daniela Perez",
        "email": "Daniela.Perez@PetCare.co",
        "phone": "3109876543",
        "position": "Groomer",
        "role": "spa_assistant",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
class TestCreateUser:
    """Test cases for staff account creation."""

    async def test_create(self, users, manager):
        created = await users.create(manager, _user_data())

        assert created.role == UserRole.SPA_ASSISTANT
        assert created.email == "daniela.perez@petcare.co"
        assert created.is_active is True

    async def test_role_defaults_to_public(self, users, manager):
        data = _user_data()
        del data["role"]

        created = await users.create(manager, data)

        assert created.role == UserRole.PUBLIC

    async def test_duplicate_email(self, users, manager, spa_assistant):
        with pytest.raises(BusinessRuleException) as exc_info:
            await users.create(manager, _user_data(email=spa_assistant.email.upper()))

        assert exc_info.value.rule_name == "unique_user_email"
        assert exc_info.value.field == "email"

    async def test_unknown_role(self, users, manager):
        with pytest.raises(SchemaValidationException) as exc_info:
            await users.create(manager, _user_data(role="veterinarian"))

        assert "role" in exc_info.value.validation_errors

    async def test_requires_manage_users(self, users, clinic_admin):
        with pytest.raises(AuthorizationException):
            await users.create(clinic_admin, _user_data())

    async def test_inactive_manager_is_denied(self, users, inactive_manager):
        with pytest.raises(AuthorizationException):
            await users.create(inactive_manager, _user_data())


@pytest.mark.asyncio
class TestUpdateUser:
    """Test cases for account updates and deactivation."""

    async def test_change_role(self, users, manager, spa_assistant):
        updated = await users.update(manager, spa_assistant.id, {"role": "clinic_admin"})

        assert updated.role == UserRole.CLINIC_ADMIN
        assert updated.updated_by == manager.id

    async def test_email_taken_by_other_user(self, users, manager, spa_assistant, clinic_admin):
        with pytest.raises(BusinessRuleException):
            await users.update(manager, spa_assistant.id, {"email": clinic_admin.email})

    async def test_keep_own_email(self, users, manager, spa_assistant):
        updated = await users.update(manager, spa_assistant.id, {"email": spa_assistant.email})

        assert updated.email == spa_assistant.email

    async def test_cannot_deactivate_self_through_update(self, users, manager):
        with pytest.raises(BusinessRuleException) as exc_info:
            await users.update(manager, manager.id, {"is_active": False})

        assert exc_info.value.rule_name == "no_self_deactivation"

    async def test_deactivate(self, users, manager, spa_assistant):
        target = await users.deactivate(manager, spa_assistant.id)

        assert target.is_active is False

    async def test_deactivate_twice_is_harmless(self, users, manager, spa_assistant):
        await users.deactivate(manager, spa_assistant.id)
        target = await users.deactivate(manager, spa_assistant.id)

        assert target.is_active is False

    async def test_cannot_deactivate_self(self, users, manager):
        with pytest.raises(BusinessRuleException) as exc_info:
            await users.deactivate(manager, manager.id)

        assert exc_info.value.rule_name == "no_self_deactivation"

    async def test_deactivate_missing(self, users, manager):
        with pytest.raises(NotFoundException):
            await users.deactivate(manager, uuid.uuid4())


@pytest.mark.asyncio
class TestUserQueries:
    """Test cases for listings and pickers."""

    async def test_list_by_role(self, users, manager, hotel_employee, spa_assistant):
        page = await users.list(manager, {"role": "hotel_employee"})

        assert [u.id for u in page.items] == [hotel_employee.id]

    async def test_list_inactive(self, users, manager, inactive_manager):
        page = await users.list(manager, {"is_active": False})

        assert [u.id for u in page.items] == [inactive_manager.id]

    async def test_list_search(self, users, manager, spa_assistant):
        page = await users.list(manager, {"search": "sofia"})

        assert [u.id for u in page.items] == [spa_assistant.id]

    async def test_list_requires_view_users(self, users, hotel_employee):
        with pytest.raises(AuthorizationException):
            await users.list(hotel_employee)

    async def test_veterinarians_are_active_clinical_users(
        self,
        users,
        clinic_admin,
        manager,
        hotel_employee,
        spa_assistant,
        inactive_manager,
    ):
        found = await users.list_veterinarians(clinic_admin)

        assert [u.id for u in found] == [clinic_admin.id, manager.id]

    async def test_assignable_users_are_active(
        self, users, spa_assistant, manager, public_user, inactive_manager
    ):
        found = await users.list_assignable(spa_assistant)

        assert inactive_manager.id not in {u.id for u in found}
        assert {manager.id, public_user.id, spa_assistant.id} <= {u.id for u in found}

    async def test_public_user_cannot_list_assignable(self, users, public_user):
        with pytest.raises(AuthorizationException):
            await users.list_assignable(public_user)
