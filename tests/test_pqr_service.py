"""
Tests for the PQR service.
"""

import dataclasses
import uuid

import pytest
import pytest_asyncio

from petcare_core.authz import PermissionGuard, SegmentFilter
from petcare_core.authz.roles import Permission, RoleRegistry, default_registry
from petcare_core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    InvalidStatusTransitionException,
    NotFoundException,
    SchemaValidationException,
    ValidationException,
)
from petcare_core.models import Pqr, PqrStatus, PqrType, UserRole
from petcare_core.services import PqrService


def _submission(**overrides):
    data = {
        "client_name": "Laura Gomez",
        "client_email": "Laura.Gomez@Example.com",
        "client_phone": "3001234567",
        "type": "queja",
        "subject": "Late pickup",
        "description": "My dog was ready two hours after the agreed time.",
    }
    data.update(overrides)
    return data


@pytest.fixture
def pqrs(async_session, service_kwargs):
    return PqrService(async_session, **service_kwargs)


@pytest.fixture
def responder_pqrs(async_session, settings):
    """A service whose hotel employees may view and answer PQRs."""
    base = default_registry()
    definitions = [base.get(role) for role in UserRole]
    hotel = base.get(UserRole.HOTEL_EMPLOYEE)
    definitions[definitions.index(hotel)] = dataclasses.replace(
        hotel,
        permissions=hotel.permissions | {Permission.VIEW_PQRS, Permission.RESPOND_PQRS},
    )
    guard = PermissionGuard(RoleRegistry(definitions))
    return PqrService(
        async_session, guard=guard, segment_filter=SegmentFilter(guard), settings=settings
    )


@pytest_asyncio.fixture
async def submitted(pqrs):
    return await pqrs.submit(_submission())


@pytest.mark.asyncio
class TestSubmitPqr:
    """Test cases for the public submission."""

    async def test_submit(self, pqrs):
        pqr = await pqrs.submit(_submission())

        assert pqr.status == PqrStatus.PENDING
        assert pqr.type == PqrType.QUEJA
        assert pqr.client_email == "laura.gomez@example.com"
        assert pqr.assigned_to is None
        assert pqr.created_by is None

    async def test_invalid_type(self, pqrs):
        with pytest.raises(SchemaValidationException) as exc_info:
            await pqrs.submit(_submission(type="complaint"))

        assert "type" in exc_info.value.validation_errors

    async def test_missing_description(self, pqrs):
        data = _submission()
        del data["description"]

        with pytest.raises(SchemaValidationException):
            await pqrs.submit(data)


@pytest.mark.asyncio
class TestPqrListings:
    """Test cases for listings and per-user views."""

    async def test_manager_lists_everything(self, pqrs, manager, submitted):
        await pqrs.submit(_submission(type="sugerencia", subject="More parking"))

        page = await pqrs.list(manager)

        assert page.total == 2

    async def test_list_filters(self, pqrs, manager, submitted):
        await pqrs.submit(_submission(type="sugerencia", subject="More parking"))

        by_type = await pqrs.list(manager, {"type": "queja"})
        by_search = await pqrs.list(manager, {"search": "parking"})

        assert [p.id for p in by_type.items] == [submitted.id]
        assert by_search.total == 1

    async def test_list_by_assignee(self, pqrs, manager, hotel_employee, submitted):
        await pqrs.submit(_submission())
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        page = await pqrs.list(manager, {"assigned_to": str(hotel_employee.id)})

        assert [p.id for p in page.items] == [submitted.id]

    async def test_list_requires_view_pqrs(self, pqrs, hotel_employee):
        with pytest.raises(AuthorizationException):
            await pqrs.list(hotel_employee)

    async def test_non_manager_lists_only_assigned(
        self, pqrs, responder_pqrs, manager, hotel_employee, submitted
    ):
        await pqrs.submit(_submission())
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        page = await responder_pqrs.list(hotel_employee)

        assert [p.id for p in page.items] == [submitted.id]

    async def test_my_pqrs_without_view_permission(
        self, pqrs, manager, hotel_employee, submitted
    ):
        await pqrs.submit(_submission())
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        page = await pqrs.my_pqrs(hotel_employee)

        assert [p.id for p in page.items] == [submitted.id]

    async def test_my_pqrs_includes_unassigned_for_viewers(
        self, pqrs, manager, spa_assistant, submitted
    ):
        other = await pqrs.submit(_submission())
        await pqrs.assign(manager, other.id, {"assigned_to": str(spa_assistant.id)})

        page = await pqrs.my_pqrs(manager)

        assert [p.id for p in page.items] == [submitted.id]

    async def test_my_pqrs_requires_login(self, pqrs):
        with pytest.raises(AuthorizationException):
            await pqrs.my_pqrs(None)


@pytest.mark.asyncio
class TestPqrAccess:
    """Test cases for reading single PQRs."""

    async def test_manager_reads_any(self, pqrs, manager, submitted):
        assert (await pqrs.get(manager, submitted.id)).id == submitted.id

    async def test_assignee_reads_own(self, pqrs, manager, hotel_employee, submitted):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        assert (await pqrs.get(hotel_employee, submitted.id)).id == submitted.id

    async def test_non_manager_reading_another_users_pqr_is_denied(
        self, pqrs, manager, hotel_employee, spa_assistant, submitted
    ):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})

        with pytest.raises(AuthorizationException, match="assigned to another user"):
            await pqrs.get(hotel_employee, submitted.id)

    async def test_unassigned_is_hidden_from_non_managers(self, pqrs, clinic_admin, submitted):
        with pytest.raises(AuthorizationException):
            await pqrs.get(clinic_admin, submitted.id)

    async def test_missing(self, pqrs, manager):
        with pytest.raises(NotFoundException):
            await pqrs.get(manager, uuid.uuid4())


@pytest.mark.asyncio
class TestPqrHandling:
    """Test cases for assignment, answers and status changes."""

    async def test_assign_moves_pending_to_in_process(
        self, pqrs, manager, hotel_employee, submitted
    ):
        pqr = await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        assert pqr.assigned_to == hotel_employee.id
        assert pqr.status == PqrStatus.IN_PROCESS
        assert pqr.updated_by == manager.id

    async def test_assign_to_inactive_user(self, pqrs, manager, inactive_manager, submitted):
        with pytest.raises(BusinessRuleException) as exc_info:
            await pqrs.assign(manager, submitted.id, {"assigned_to": str(inactive_manager.id)})

        assert exc_info.value.rule_name == "active_assignee"
        assert exc_info.value.field == "assigned_to"

    async def test_assign_to_unknown_user(self, pqrs, manager, submitted):
        with pytest.raises(ValidationException) as exc_info:
            await pqrs.assign(manager, submitted.id, {"assigned_to": str(uuid.uuid4())})

        assert exc_info.value.field == "assigned_to"

    async def test_assign_requires_manage_pqrs(self, pqrs, hotel_employee, submitted):
        with pytest.raises(AuthorizationException):
            await pqrs.assign(
                hotel_employee, submitted.id, {"assigned_to": str(hotel_employee.id)}
            )

    async def test_closed_pqr_cannot_be_reassigned(
        self, pqrs, manager, spa_assistant, submitted
    ):
        await pqrs.update(manager, submitted.id, {"status": "closed"})

        with pytest.raises(InvalidStatusTransitionException):
            await pqrs.assign(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})

    async def test_update_assignment_moves_pending_to_in_process(
        self, pqrs, manager, hotel_employee, submitted
    ):
        pqr = await pqrs.update(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        assert pqr.assigned_to == hotel_employee.id
        assert pqr.status == PqrStatus.IN_PROCESS

    async def test_update_assignment_keeps_explicit_status(
        self, pqrs, manager, hotel_employee, submitted
    ):
        pqr = await pqrs.update(
            manager,
            submitted.id,
            {"status": "resolved", "assigned_to": str(hotel_employee.id)},
        )

        assert pqr.status == PqrStatus.RESOLVED
        assert pqr.resolved_at is not None

    async def test_update_cannot_reassign_closed_pqr(
        self, pqrs, manager, spa_assistant, submitted
    ):
        await pqrs.update(manager, submitted.id, {"status": "closed"})

        with pytest.raises(InvalidStatusTransitionException):
            await pqrs.update(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})

    async def test_update_cannot_unassign_closed_pqr(
        self, pqrs, manager, spa_assistant, submitted
    ):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})
        await pqrs.update(manager, submitted.id, {"status": "closed"})

        with pytest.raises(InvalidStatusTransitionException):
            await pqrs.update(manager, submitted.id, {"assigned_to": None})

    async def test_update_unassigns_open_pqr(self, pqrs, manager, spa_assistant, submitted):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})

        pqr = await pqrs.update(manager, submitted.id, {"assigned_to": None})

        assert pqr.assigned_to is None
        assert pqr.status == PqrStatus.IN_PROCESS

    async def test_respond_resolves(self, pqrs, manager, submitted):
        pqr = await pqrs.respond(
            manager, submitted.id, {"response": "We apologise, a discount was applied."}
        )

        assert pqr.status == PqrStatus.RESOLVED
        assert pqr.resolved_at is not None
        assert pqr.response.startswith("We apologise")

    async def test_responder_cannot_answer_others_pqr(
        self, pqrs, responder_pqrs, manager, hotel_employee, spa_assistant, submitted
    ):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(spa_assistant.id)})

        with pytest.raises(AuthorizationException):
            await responder_pqrs.respond(hotel_employee, submitted.id, {"response": "Done"})

    async def test_responder_answers_own_pqr(
        self, pqrs, responder_pqrs, manager, hotel_employee, submitted
    ):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        pqr = await responder_pqrs.respond(hotel_employee, submitted.id, {"response": "Done"})

        assert pqr.status == PqrStatus.RESOLVED

    async def test_responder_cannot_reassign(
        self, pqrs, responder_pqrs, manager, hotel_employee, spa_assistant, submitted
    ):
        await pqrs.assign(manager, submitted.id, {"assigned_to": str(hotel_employee.id)})

        with pytest.raises(AuthorizationException):
            await responder_pqrs.update(
                hotel_employee, submitted.id, {"assigned_to": str(spa_assistant.id)}
            )

    async def test_status_never_moves_back(self, pqrs, manager, submitted):
        await pqrs.update(manager, submitted.id, {"status": "resolved"})

        with pytest.raises(InvalidStatusTransitionException):
            await pqrs.update(manager, submitted.id, {"status": "pending"})

    async def test_resolved_at_only_stamped_on_resolution(self, pqrs, manager, submitted):
        in_process = await pqrs.update(manager, submitted.id, {"status": "in_process"})
        assert in_process.resolved_at is None

        resolved = await pqrs.update(manager, submitted.id, {"status": "resolved"})
        stamped = resolved.resolved_at

        closed = await pqrs.update(manager, submitted.id, {"status": "closed"})
        assert closed.resolved_at == stamped

    async def test_delete(self, pqrs, manager, submitted, async_session):
        await pqrs.delete(manager, submitted.id)

        assert await async_session.get(Pqr, submitted.id) is None
