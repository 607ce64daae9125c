"""
Client service.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from sqlalchemy import ColumnElement, select

from ..authz.query import Equals, OneOf, QuerySpec, TextSearch
from ..authz.roles import Permission
from ..exceptions import BusinessRuleException
from ..models.appointment import Appointment
from ..models.client import Client
from ..models.hotel_stay import HotelStay
from ..models.medical_record import MedicalRecord, Vaccination
from ..models.pet import Pet
from ..models.service import ServiceSegment
from ..models.user import User
from ..schemas.client import ClientCreate, ClientFilters, ClientUpdate
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)

AUTOCOMPLETE_LIMIT = 10


@dataclass
class ClientHistory:
    """
    Everything on record for a client, limited to what the viewer may see.

    Sections the viewer has no access to are left empty.
    """

    client: Client
    pets: List[Pet] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)
    hotel_stays: List[HotelStay] = field(default_factory=list)
    medical_records: List[MedicalRecord] = field(default_factory=list)
    vaccinations: List[Vaccination] = field(default_factory=list)


class ClientService(EntityService):
    """CRUD, history and autocomplete for clients."""

    SEARCH_FIELDS = (Client.name, Client.email, Client.phone, Client.identification_number)

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Client]:
        self.guard.require(user, Permission.VIEW_CLIENTS)
        filters = self._validate(ClientFilters, params or {})

        spec = QuerySpec(Client).where(
            TextSearch(filters.search, self.SEARCH_FIELDS),
            (
                Equals(Client.identification_type, filters.identification_type)
                if filters.identification_type
                else None
            ),
        ).ordered_by(Client.name, Client.id)
        return await self._paginate(spec, filters)

    async def get(self, user: Optional[User], client_id: uuid.UUID) -> Client:
        self.guard.require(user, Permission.VIEW_CLIENTS)
        return await self._get_or_404(Client, client_id, "Client")

    async def create(self, user: Optional[User], data: InputData) -> Client:
        """
        Register a client.

        Raises:
            AuthorizationException: Without manage_clients
            SchemaValidationException: If the data is invalid
            BusinessRuleException: If the email or document is already used
        """
        self.guard.require(user, Permission.MANAGE_CLIENTS)
        raw = self._raw_input(data)
        payload = self._validate(ClientCreate, data)

        await self._check_unique(payload.email, payload.identification_number, raw)
        client = await self._add(
            Client(**payload.model_dump()),
            user,
            conflict_message="Client email or identification number already registered",
            input_data=raw,
        )
        self._log_write("Created", client, user)
        return client

    async def update(
        self, user: Optional[User], client_id: uuid.UUID, data: InputData
    ) -> Client:
        self.guard.require(user, Permission.MANAGE_CLIENTS)
        client = await self._get_or_404(Client, client_id, "Client")
        raw = self._raw_input(data)
        changes = self._validate(ClientUpdate, data).changes()

        await self._check_unique(
            changes.get("email"),
            changes.get("identification_number"),
            raw,
            exclude_id=client.id,
        )
        client = await self._apply(
            client,
            changes,
            user,
            conflict_message="Client email or identification number already registered",
            input_data=raw,
        )
        self._log_write("Updated", client, user)
        return client

    async def delete(self, user: Optional[User], client_id: uuid.UUID) -> None:
        """
        Delete a client without pets, appointments or hotel stays.

        Raises:
            ReferentialIntegrityException: If any dependent exists
        """
        self.guard.require(user, Permission.MANAGE_CLIENTS)
        client = await self._get_or_404(Client, client_id, "Client")
        await self._ensure_deletable(
            "client",
            client.id,
            {
                "pets": (Pet, Pet.client_id == client.id),
                "appointments": (Appointment, Appointment.client_id == client.id),
                "hotel_stays": (HotelStay, HotelStay.client_id == client.id),
            },
        )
        await self._delete(client)
        self._log_write("Deleted", client, user)

    async def history(self, user: Optional[User], client_id: uuid.UUID) -> ClientHistory:
        """
        Full history of a client.

        Appointments are limited to the viewer's segments. Hotel stays need
        the hotel segment, medical records a clinical role and vaccinations
        a vaccination or pet history permission.
        """
        self.guard.require(user, Permission.VIEW_CLIENT_HISTORY)
        client = await self._get_or_404(Client, client_id, "Client")
        history = ClientHistory(client=client)

        history.pets = await self._all(
            QuerySpec(Pet).where(Equals(Pet.client_id, client.id)).ordered_by(Pet.name)
        )
        pet_ids = [pet.id for pet in history.pets]

        appointments = QuerySpec(Appointment).where(
            Equals(Appointment.client_id, client.id)
        ).ordered_by(Appointment.appointment_date.desc())
        history.appointments = await self._all(self.segments.scope_query(appointments, user))

        if self.segments.is_allowed(user, ServiceSegment.HOTEL):
            history.hotel_stays = await self._all(
                QuerySpec(HotelStay)
                .where(Equals(HotelStay.client_id, client.id))
                .ordered_by(HotelStay.check_in_date.desc())
            )

        if self.guard.is_clinical(user):
            history.medical_records = await self._all(
                QuerySpec(MedicalRecord)
                .where(OneOf(MedicalRecord.pet_id, pet_ids))
                .ordered_by(MedicalRecord.created_at.desc())
            )

        if self.guard.authorize(user, Permission.VIEW_VACCINATIONS) or self.guard.authorize(
            user, Permission.VIEW_PET_HISTORY
        ):
            history.vaccinations = await self._all(
                QuerySpec(Vaccination)
                .where(OneOf(Vaccination.pet_id, pet_ids))
                .ordered_by(Vaccination.application_date.desc())
            )

        return history

    async def search(self, user: Optional[User], term: str) -> List[Client]:
        """Autocomplete by name, email or document. Blank terms return nothing."""
        self.guard.require(user, Permission.VIEW_CLIENTS)
        if not term or not term.strip():
            return []
        spec = QuerySpec(Client).where(
            TextSearch(term, (Client.name, Client.email, Client.identification_number))
        ).ordered_by(Client.name)
        return await self._all(spec, limit=AUTOCOMPLETE_LIMIT)

    async def _check_unique(
        self,
        email: Optional[str],
        identification_number: Optional[str],
        input_data: Mapping[str, Any],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        checks = (
            ("email", Client.email, email, "This email is already registered"),
            (
                "identification_number",
                Client.identification_number,
                identification_number,
                "This identification number is already registered",
            ),
        )
        for field_name, column, value, message in checks:
            if value is None:
                continue
            criteria: List[ColumnElement] = [column == value]
            if exclude_id is not None:
                criteria.append(Client.id != exclude_id)
            existing = await self.session.execute(select(Client.id).where(*criteria).limit(1))
            if existing.first() is not None:
                raise BusinessRuleException(
                    message,
                    rule_name="unique_client",
                    field=field_name,
                    input_data=input_data,
                )
