"""
Vaccination service.
"""

import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from ..authz.query import DateRange, Equals, QuerySpec
from ..authz.roles import Permission
from ..exceptions import ValidationException
from ..models.medical_record import Vaccination
from ..models.pet import Pet
from ..models.user import User
from ..schemas.medical_record import VaccinationCreate, VaccinationUpdate
from ..utils.datetime_utils import get_current_date
from .base import EntityService, InputData

logger = logging.getLogger(__name__)

DEFAULT_UPCOMING_DAYS = 30


class VaccinationService(EntityService):
    """Vaccines applied to pets and their upcoming doses."""

    def _require_read(self, user: Optional[User]) -> None:
        self.guard.require_any(user, Permission.VIEW_VACCINATIONS, Permission.VIEW_PET_HISTORY)

    async def list_by_pet(self, user: Optional[User], pet_id: uuid.UUID) -> List[Vaccination]:
        """Vaccinations of a pet, latest application first."""
        self._require_read(user)
        pet = await self._get_or_404(Pet, pet_id, "Pet")
        spec = QuerySpec(Vaccination).where(
            Equals(Vaccination.pet_id, pet.id)
        ).ordered_by(Vaccination.application_date.desc(), Vaccination.id)
        return await self._all(spec)

    async def get(self, user: Optional[User], vaccination_id: uuid.UUID) -> Vaccination:
        self._require_read(user)
        return await self._get_or_404(Vaccination, vaccination_id, "Vaccination")

    async def upcoming(
        self, user: Optional[User], days: int = DEFAULT_UPCOMING_DAYS
    ) -> List[Vaccination]:
        """
        Doses due from today through ``days`` days ahead, soonest first.

        Raises:
            ValueError: If days is negative
        """
        self._require_read(user)
        if days < 0:
            raise ValueError(f"days must not be negative, got {days}")
        today = get_current_date()
        spec = QuerySpec(Vaccination).where(
            DateRange(Vaccination.next_dose_date, today, today + timedelta(days=days))
        ).ordered_by(Vaccination.next_dose_date, Vaccination.id)
        return await self._all(spec)

    async def create(self, user: Optional[User], data: InputData) -> Vaccination:
        self.guard.require(user, Permission.MANAGE_VACCINATIONS)
        raw = self._raw_input(data)
        payload = self._validate(VaccinationCreate, data)
        await self._resolve(Pet, payload.pet_id, "pet_id", "pet", raw)

        vaccination = await self._add(Vaccination(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", vaccination, user)
        return vaccination

    async def update(
        self, user: Optional[User], vaccination_id: uuid.UUID, data: InputData
    ) -> Vaccination:
        """
        Raises:
            ValidationException: If the resulting next dose date is not
                after the resulting application date
        """
        self.guard.require(user, Permission.MANAGE_VACCINATIONS)
        vaccination = await self._get_or_404(Vaccination, vaccination_id, "Vaccination")
        raw = self._raw_input(data)
        changes = self._validate(VaccinationUpdate, data).changes()

        applied = changes.get("application_date", vaccination.application_date)
        next_dose = changes.get("next_dose_date", vaccination.next_dose_date)
        if next_dose is not None and next_dose <= applied:
            message = "Next dose date must be after the application date"
            raise ValidationException(
                message,
                field="next_dose_date",
                value=next_dose,
                validation_errors={"next_dose_date": [message]},
                input_data=raw,
            )

        vaccination = await self._apply(vaccination, changes, user, input_data=raw)
        self._log_write("Updated", vaccination, user)
        return vaccination

    async def delete(self, user: Optional[User], vaccination_id: uuid.UUID) -> None:
        self.guard.require(user, Permission.MANAGE_VACCINATIONS)
        vaccination = await self._get_or_404(Vaccination, vaccination_id, "Vaccination")
        await self._delete(vaccination)
        self._log_write("Deleted", vaccination, user)
