"""
Appointment service.

Appointments are scoped by the segment of their service: a user never
reads or writes an appointment whose service lies outside their segments.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional

from ..authz.query import DateTimeRange, Equals, QuerySpec, Related, TextSearch, Where
from ..authz.roles import Permission
from ..exceptions import BusinessRuleException
from ..models.appointment import Appointment
from ..models.client import Client
from ..models.medical_record import MedicalRecord
from ..models.pet import Pet
from ..models.service import Service, ServiceSegment
from ..models.user import User
from ..schemas.appointment import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from ..utils.datetime_utils import month_bounds
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)


class AppointmentService(EntityService):
    """Booking, status changes and calendar views of appointments."""

    SEARCH_FIELDS = (
        Related((Appointment.client,), Client.name),
        Related((Appointment.pet,), Pet.name),
    )

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Appointment]:
        """List appointments in the user's segments, newest first."""
        self.guard.require(user, Permission.VIEW_APPOINTMENTS)
        filters = self._validate(AppointmentFilters, params or {})

        spec = QuerySpec(Appointment).where(
            TextSearch(filters.search, self.SEARCH_FIELDS),
            Equals(Appointment.status, filters.status) if filters.status else None,
            Equals(Appointment.service_id, filters.service_id) if filters.service_id else None,
            (
                DateTimeRange(Appointment.appointment_date, filters.date_from, filters.date_to)
                if filters.date_from or filters.date_to
                else None
            ),
        ).ordered_by(Appointment.appointment_date.desc(), Appointment.id)
        return await self._paginate(self.segments.scope_query(spec, user), filters)

    async def get(self, user: Optional[User], appointment_id: uuid.UUID) -> Appointment:
        """
        Raises:
            NotFoundException: If the appointment does not exist
            AuthorizationException: If its service segment is not visible
        """
        self.guard.require(user, Permission.VIEW_APPOINTMENTS)
        return await self._get_visible(user, appointment_id)

    async def create(self, user: Optional[User], data: InputData) -> Appointment:
        """
        Book an appointment.

        Raises:
            AuthorizationException: Without manage_appointments or access
                to the service's segment
            SchemaValidationException: If the data is invalid or the date
                is not in the future
            ValidationException: If a referenced row does not exist
            BusinessRuleException: If the pet belongs to another client, the
                assigned user is inactive, or a clinic service is assigned to
                a user without a clinical role
        """
        self.guard.require(user, Permission.MANAGE_APPOINTMENTS)
        raw = self._raw_input(data)
        payload = self._validate(AppointmentCreate, data)

        await self._resolve_pet_for_client(payload.pet_id, payload.client_id, raw)
        service = await self._check_service(user, payload.service_id, raw)
        assignee = await self._check_assignee(payload.user_id, raw)
        self._check_clinic_assignee(service, assignee, raw)

        appointment = await self._add(Appointment(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", appointment, user)
        return appointment

    async def update(
        self, user: Optional[User], appointment_id: uuid.UUID, data: InputData
    ) -> Appointment:
        """
        Update an appointment.

        Changed references are checked like on create. A status in the
        data goes through the same transition rules as ``update_status``.
        """
        self.guard.require(user, Permission.MANAGE_APPOINTMENTS)
        appointment = await self._get_visible(user, appointment_id)
        raw = self._raw_input(data)
        changes = self._validate(AppointmentUpdate, data).changes()
        status = changes.pop("status", None)

        if "pet_id" in changes or "client_id" in changes:
            await self._resolve_pet_for_client(
                changes.get("pet_id", appointment.pet_id),
                changes.get("client_id", appointment.client_id),
                raw,
            )
        service = appointment.service
        assignee = appointment.user
        if "service_id" in changes:
            service = await self._check_service(user, changes["service_id"], raw)
        if "user_id" in changes:
            assignee = await self._check_assignee(changes["user_id"], raw)
        if "service_id" in changes or "user_id" in changes:
            self._check_clinic_assignee(service, assignee, raw)

        if status is not None:
            appointment.transition_to(status)
        appointment = await self._apply(appointment, changes, user, input_data=raw)
        self._log_write("Updated", appointment, user)
        return appointment

    async def update_status(
        self, user: Optional[User], appointment_id: uuid.UUID, data: InputData
    ) -> Appointment:
        """
        Raises:
            InvalidStatusTransitionException: If the move is not allowed
        """
        self.guard.require(user, Permission.MANAGE_APPOINTMENTS)
        appointment = await self._get_visible(user, appointment_id)
        payload = self._validate(AppointmentStatusUpdate, data)

        old_status = appointment.status
        if appointment.transition_to(payload.status):
            appointment = await self._apply(appointment, {}, user)
            logger.info(
                f"Appointment {appointment.id} moved from {old_status.value} "
                f"to {appointment.status.value}",
                extra={"user_id": str(user.id)},
            )
        return appointment

    async def delete(self, user: Optional[User], appointment_id: uuid.UUID) -> None:
        """
        Raises:
            ReferentialIntegrityException: If medical records reference it
        """
        self.guard.require(user, Permission.MANAGE_APPOINTMENTS)
        appointment = await self._get_visible(user, appointment_id)
        await self._ensure_deletable(
            "appointment",
            appointment.id,
            {
                "medical_records": (
                    MedicalRecord,
                    MedicalRecord.appointment_id == appointment.id,
                )
            },
        )
        await self._delete(appointment)
        self._log_write("Deleted", appointment, user)

    async def calendar(self, user: Optional[User], year: int, month: int) -> List[Appointment]:
        """Appointments of one month in the user's segments, by date."""
        self.guard.require(user, Permission.VIEW_APPOINTMENTS)
        start, end = month_bounds(year, month)
        spec = QuerySpec(Appointment).where(
            Where(Appointment.appointment_date >= start),
            Where(Appointment.appointment_date < end),
        ).ordered_by(Appointment.appointment_date)
        return await self._all(self.segments.scope_query(spec, user))

    async def _get_visible(self, user: Optional[User], appointment_id: uuid.UUID) -> Appointment:
        appointment = await self._get_or_404(Appointment, appointment_id, "Appointment")
        self.segments.require_segment_for(user, appointment.service.segment)
        return appointment

    async def _check_service(
        self, user: Optional[User], service_id: uuid.UUID, input_data: Mapping[str, Any]
    ) -> Service:
        service = await self._resolve(Service, service_id, "service_id", "service", input_data)
        self.segments.require_segment_for(user, service.segment)
        return service

    async def _check_assignee(self, user_id: uuid.UUID, input_data: Mapping[str, Any]) -> User:
        assignee = await self._resolve(User, user_id, "user_id", "user", input_data)
        if not assignee.is_active:
            raise BusinessRuleException(
                "The selected user is inactive",
                rule_name="active_assignee",
                context={"user_id": str(assignee.id)},
                field="user_id",
                input_data=input_data,
            )
        return assignee

    def _check_clinic_assignee(
        self, service: Service, assignee: User, input_data: Mapping[str, Any]
    ) -> None:
        """Clinic services are attended by users able to act as veterinarian."""
        if service.segment == ServiceSegment.CLINIC and not self.guard.is_clinical(assignee):
            raise BusinessRuleException(
                "Clinic appointments must be assigned to a veterinarian",
                rule_name="clinical_veterinarian",
                context={"user_id": str(assignee.id), "role": assignee.role.value},
                field="user_id",
                input_data=input_data,
            )
