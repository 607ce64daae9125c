"""
Medical record service.

Reading medical records needs a clinical role. Every record is written by
an active user with a clinical role, and a record tied to an appointment
must be about that appointment's pet and client.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional

from ..authz.query import DateTimeRange, Equals, QuerySpec, Related, TextSearch
from ..authz.roles import Permission
from ..exceptions import BusinessRuleException
from ..models.appointment import Appointment
from ..models.client import Client
from ..models.medical_record import MedicalRecord
from ..models.pet import Pet
from ..models.user import User
from ..schemas.medical_record import (
    MedicalRecordCreate,
    MedicalRecordFilters,
    MedicalRecordUpdate,
)
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)


class MedicalRecordService(EntityService):
    """Clinical records written by veterinarians."""

    SEARCH_FIELDS = (
        MedicalRecord.diagnosis,
        Related((MedicalRecord.pet,), Pet.name),
        Related((MedicalRecord.pet, Pet.client), Client.name),
    )

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[MedicalRecord]:
        self.guard.require_clinical(user)
        filters = self._validate(MedicalRecordFilters, params or {})

        spec = QuerySpec(MedicalRecord).where(
            TextSearch(filters.search, self.SEARCH_FIELDS),
            Equals(MedicalRecord.pet_id, filters.pet_id) if filters.pet_id else None,
            (
                Equals(MedicalRecord.veterinarian_id, filters.veterinarian_id)
                if filters.veterinarian_id
                else None
            ),
            (
                DateTimeRange(MedicalRecord.created_at, filters.date_from, filters.date_to)
                if filters.date_from or filters.date_to
                else None
            ),
        ).ordered_by(MedicalRecord.created_at.desc(), MedicalRecord.id)
        return await self._paginate(spec, filters)

    async def get(self, user: Optional[User], record_id: uuid.UUID) -> MedicalRecord:
        self.guard.require_clinical(user)
        return await self._get_or_404(MedicalRecord, record_id, "Medical record")

    async def by_pet(self, user: Optional[User], pet_id: uuid.UUID) -> List[MedicalRecord]:
        """All records of a pet, newest first."""
        self.guard.require_clinical(user)
        pet = await self._get_or_404(Pet, pet_id, "Pet")
        spec = QuerySpec(MedicalRecord).where(
            Equals(MedicalRecord.pet_id, pet.id)
        ).ordered_by(MedicalRecord.created_at.desc())
        return await self._all(spec)

    async def create(self, user: Optional[User], data: InputData) -> MedicalRecord:
        """
        Write a medical record.

        Raises:
            AuthorizationException: Without manage_medical_records
            ValidationException: If the pet, veterinarian or appointment
                does not exist
            BusinessRuleException: If the veterinarian is inactive or not
                clinical, or the appointment is for another pet or client
        """
        self.guard.require(user, Permission.MANAGE_MEDICAL_RECORDS)
        raw = self._raw_input(data)
        payload = self._validate(MedicalRecordCreate, data)

        pet = await self._resolve(Pet, payload.pet_id, "pet_id", "pet", raw)
        await self._check_veterinarian(payload.veterinarian_id, raw)
        if payload.appointment_id is not None:
            await self._check_appointment(payload.appointment_id, pet, raw)

        record = await self._add(MedicalRecord(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", record, user)
        return record

    async def update(
        self, user: Optional[User], record_id: uuid.UUID, data: InputData
    ) -> MedicalRecord:
        self.guard.require(user, Permission.MANAGE_MEDICAL_RECORDS)
        record = await self._get_or_404(MedicalRecord, record_id, "Medical record")
        raw = self._raw_input(data)
        changes = self._validate(MedicalRecordUpdate, data).changes()

        pet = record.pet
        if "pet_id" in changes:
            pet = await self._resolve(Pet, changes["pet_id"], "pet_id", "pet", raw)
        if "veterinarian_id" in changes:
            await self._check_veterinarian(changes["veterinarian_id"], raw)
        appointment_id = changes.get("appointment_id", record.appointment_id)
        if appointment_id is not None and ("pet_id" in changes or "appointment_id" in changes):
            await self._check_appointment(appointment_id, pet, raw)

        record = await self._apply(record, changes, user, input_data=raw)
        self._log_write("Updated", record, user)
        return record

    async def delete(self, user: Optional[User], record_id: uuid.UUID) -> None:
        self.guard.require(user, Permission.MANAGE_MEDICAL_RECORDS)
        record = await self._get_or_404(MedicalRecord, record_id, "Medical record")
        await self._delete(record)
        self._log_write("Deleted", record, user)

    async def _check_veterinarian(
        self, veterinarian_id: uuid.UUID, input_data: Mapping[str, Any]
    ) -> User:
        veterinarian = await self._resolve(
            User, veterinarian_id, "veterinarian_id", "veterinarian", input_data
        )
        if not self.guard.is_clinical(veterinarian):
            raise BusinessRuleException(
                "The selected veterinarian must be an active user with a clinical role",
                rule_name="clinical_veterinarian",
                context={
                    "veterinarian_id": str(veterinarian.id),
                    "role": veterinarian.role.value,
                    "is_active": veterinarian.is_active,
                },
                field="veterinarian_id",
                input_data=input_data,
            )
        return veterinarian

    async def _check_appointment(
        self, appointment_id: uuid.UUID, pet: Pet, input_data: Mapping[str, Any]
    ) -> Appointment:
        appointment = await self._resolve(
            Appointment, appointment_id, "appointment_id", "appointment", input_data
        )
        if appointment.pet_id != pet.id or appointment.client_id != pet.client_id:
            raise BusinessRuleException(
                "The selected appointment is for a different pet or client",
                rule_name="appointment_matches_pet",
                context={"appointment_id": str(appointment.id), "pet_id": str(pet.id)},
                field="appointment_id",
                input_data=input_data,
            )
        return appointment
