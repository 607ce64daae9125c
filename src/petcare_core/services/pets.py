"""
Pet service.

Pets carry an optional photo kept in a :class:`PhotoStorage`. The database
row is the source of truth: photo deletions are best-effort and a storage
failure never blocks a pet update or delete.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Union

from sqlalchemy import delete, select

from ..authz.query import Equals, QuerySpec, Related, TextSearch
from ..authz.roles import Permission
from ..exceptions import PetCareException, ValidationException
from ..models.appointment import Appointment
from ..models.client import Client
from ..models.hotel_stay import HotelStay
from ..models.medical_record import MedicalRecord, Vaccination
from ..models.pet import Pet
from ..models.user import User
from ..schemas.pet import PetCreate, PetFilters, PetUpdate, PhotoUpload
from .base import EntityService, InputData, Page
from .storage import LocalPhotoStorage, PhotoStorage

logger = logging.getLogger(__name__)

AUTOCOMPLETE_LIMIT = 10

PhotoInput = Union[PhotoUpload, Mapping]


@dataclass
class PetMedicalHistory:
    """Clinical history of a pet, newest first."""

    pet: Pet
    medical_records: List[MedicalRecord] = field(default_factory=list)
    vaccinations: List[Vaccination] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)


class PetService(EntityService):
    """CRUD, photo handling and history for pets."""

    SEARCH_FIELDS = (
        Pet.name,
        Pet.species,
        Pet.breed,
        Related((Pet.client,), Client.name),
    )

    def __init__(self, *args, storage: Optional[PhotoStorage] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.storage = storage or LocalPhotoStorage(self.settings.photo_dir)

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Pet]:
        self.guard.require(user, Permission.VIEW_PETS)
        filters = self._validate(PetFilters, params or {})

        spec = QuerySpec(Pet).where(
            TextSearch(filters.search, self.SEARCH_FIELDS),
            Equals(Pet.species, filters.species.lower()) if filters.species else None,
            Equals(Pet.client_id, filters.client_id) if filters.client_id else None,
        ).ordered_by(Pet.name, Pet.id)
        return await self._paginate(spec, filters)

    async def get(self, user: Optional[User], pet_id: uuid.UUID) -> Pet:
        self.guard.require(user, Permission.VIEW_PETS)
        return await self._get_or_404(Pet, pet_id, "Pet")

    async def create(
        self,
        user: Optional[User],
        data: InputData,
        photo: Optional[PhotoInput] = None,
    ) -> Pet:
        """
        Register a pet, optionally with a photo.

        Raises:
            AuthorizationException: Without manage_pets
            SchemaValidationException: If the data or photo is invalid
            ValidationException: If the owner does not exist or the photo
                is too large
        """
        self.guard.require(user, Permission.MANAGE_PETS)
        raw = self._raw_input(data)
        payload = self._validate(PetCreate, data)
        await self._resolve(Client, payload.client_id, "client_id", "client", raw)
        upload = self._check_photo(photo, raw)

        pet = Pet(**payload.model_dump())
        if upload is not None:
            pet.photo = await self.storage.save(upload.content, upload.extension)

        try:
            pet = await self._add(pet, user, input_data=raw)
        except PetCareException:
            if pet.photo:
                await self._discard_photo(pet.photo)
            raise

        self._log_write("Created", pet, user)
        return pet

    async def update(
        self,
        user: Optional[User],
        pet_id: uuid.UUID,
        data: InputData,
        photo: Optional[PhotoInput] = None,
    ) -> Pet:
        """
        Update a pet. A new photo replaces the old one, which is deleted
        best-effort after the change is flushed.
        """
        self.guard.require(user, Permission.MANAGE_PETS)
        pet = await self._get_or_404(Pet, pet_id, "Pet")
        raw = self._raw_input(data)
        if photo is not None and not raw:
            changes = {}
        else:
            changes = self._validate(PetUpdate, data).changes()
        if "client_id" in changes:
            await self._resolve(Client, changes["client_id"], "client_id", "client", raw)
        upload = self._check_photo(photo, raw)

        old_photo = pet.photo
        if upload is not None:
            changes["photo"] = await self.storage.save(upload.content, upload.extension)

        pet = await self._apply(pet, changes, user, input_data=raw)
        if upload is not None and old_photo:
            await self._discard_photo(old_photo)

        self._log_write("Updated", pet, user)
        return pet

    async def delete(self, user: Optional[User], pet_id: uuid.UUID) -> None:
        """
        Delete a pet and its vaccinations.

        Raises:
            ReferentialIntegrityException: If the pet has appointments,
                hotel stays or medical records
        """
        self.guard.require(user, Permission.MANAGE_PETS)
        pet = await self._get_or_404(Pet, pet_id, "Pet")
        await self._ensure_deletable(
            "pet",
            pet.id,
            {
                "appointments": (Appointment, Appointment.pet_id == pet.id),
                "hotel_stays": (HotelStay, HotelStay.pet_id == pet.id),
                "medical_records": (MedicalRecord, MedicalRecord.pet_id == pet.id),
            },
        )

        photo = pet.photo
        await self.session.execute(delete(Vaccination).where(Vaccination.pet_id == pet.id))
        await self._delete(pet)
        if photo:
            await self._discard_photo(photo)
        self._log_write("Deleted", pet, user)

    async def search(
        self,
        user: Optional[User],
        term: str,
        client_id: Optional[uuid.UUID] = None,
    ) -> List[Pet]:
        """Autocomplete by pet name, optionally within one owner's pets."""
        self.guard.require(user, Permission.VIEW_PETS)
        if not term or not term.strip():
            return []
        spec = QuerySpec(Pet).where(
            TextSearch(term, (Pet.name,)),
            Equals(Pet.client_id, client_id) if client_id else None,
        ).ordered_by(Pet.name)
        return await self._all(spec, limit=AUTOCOMPLETE_LIMIT)

    async def medical_history(self, user: Optional[User], pet_id: uuid.UUID) -> PetMedicalHistory:
        """
        Records, vaccinations and segment-scoped appointments of a pet.

        Raises:
            AuthorizationException: Without view_pet_history or view_medical_records
        """
        self.guard.require_any(
            user, Permission.VIEW_PET_HISTORY, Permission.VIEW_MEDICAL_RECORDS
        )
        pet = await self._get_or_404(Pet, pet_id, "Pet")

        appointments = QuerySpec(Appointment).where(
            Equals(Appointment.pet_id, pet.id)
        ).ordered_by(Appointment.appointment_date.desc())

        return PetMedicalHistory(
            pet=pet,
            medical_records=await self._all(
                QuerySpec(MedicalRecord)
                .where(Equals(MedicalRecord.pet_id, pet.id))
                .ordered_by(MedicalRecord.created_at.desc())
            ),
            vaccinations=await self._all(
                QuerySpec(Vaccination)
                .where(Equals(Vaccination.pet_id, pet.id))
                .ordered_by(Vaccination.application_date.desc())
            ),
            appointments=await self._all(self.segments.scope_query(appointments, user)),
        )

    async def species(self, user: Optional[User]) -> List[str]:
        """Distinct species on record, alphabetically."""
        self.guard.require(user, Permission.VIEW_PETS)
        result = await self.session.execute(
            select(Pet.species).distinct().order_by(Pet.species)
        )
        return list(result.scalars().all())

    def _check_photo(
        self, photo: Optional[PhotoInput], input_data: Mapping
    ) -> Optional[PhotoUpload]:
        if photo is None:
            return None
        upload = self._validate(PhotoUpload, photo)
        if upload.size_kb > self.settings.photo_max_kb:
            message = f"Photo cannot exceed {self.settings.photo_max_kb} KB"
            raise ValidationException(
                message,
                field="photo",
                validation_errors={"photo": [message]},
                input_data=input_data,
            )
        return upload

    async def _discard_photo(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not delete pet photo {key}: {e}")
