"""
Hotel stay service.

Every operation needs access to the hotel segment in addition to its
permission. ``total_cost`` is never taken from the caller: it is derived
from the daily rate and the dates on create and on every update that
touches them.
"""

import logging
import uuid
from typing import List, Optional

from ..authz.query import DateRange, Equals, QuerySpec, Related, TextSearch, Where
from ..authz.roles import Permission
from ..exceptions import ValidationException
from ..models.client import Client
from ..models.hotel_stay import HotelStay
from ..models.pet import Pet
from ..models.service import ServiceSegment
from ..models.user import User
from ..schemas.hotel_stay import HotelStayCreate, HotelStayFilters, HotelStayUpdate
from ..utils.datetime_utils import month_bounds
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)

COST_FIELDS = frozenset({"check_in_date", "check_out_date", "daily_rate"})


class HotelStayService(EntityService):
    """Reservations, check-in and check-out of hotel stays."""

    SEARCH_FIELDS = (
        Related((HotelStay.client,), Client.name),
        Related((HotelStay.pet,), Pet.name),
    )

    def _require_read(self, user: Optional[User]) -> None:
        self.guard.require_any(user, Permission.VIEW_HOTEL_STAYS, Permission.VIEW_HOTEL_SERVICES)
        self.guard.require_segment(user, ServiceSegment.HOTEL)

    def _require_write(self, user: Optional[User]) -> None:
        self.guard.require(user, Permission.MANAGE_HOTEL_STAYS)
        self.guard.require_segment(user, ServiceSegment.HOTEL)

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[HotelStay]:
        self._require_read(user)
        filters = self._validate(HotelStayFilters, params or {})

        spec = QuerySpec(HotelStay).where(
            TextSearch(filters.search, self.SEARCH_FIELDS),
            Equals(HotelStay.status, filters.status) if filters.status else None,
            Equals(HotelStay.room_type, filters.room_type) if filters.room_type else None,
            (
                DateRange(HotelStay.check_in_date, filters.check_in_from, filters.check_in_to)
                if filters.check_in_from or filters.check_in_to
                else None
            ),
        ).ordered_by(HotelStay.check_in_date.desc(), HotelStay.id)
        return await self._paginate(spec, filters)

    async def get(self, user: Optional[User], stay_id: uuid.UUID) -> HotelStay:
        self._require_read(user)
        return await self._get_or_404(HotelStay, stay_id, "Hotel stay")

    async def create(self, user: Optional[User], data: InputData) -> HotelStay:
        """
        Reserve a room.

        Raises:
            AuthorizationException: Without manage_hotel_stays or the hotel segment
            SchemaValidationException: If check-in is in the past or
                check-out is not after check-in
            BusinessRuleException: If the pet belongs to another client
        """
        self._require_write(user)
        raw = self._raw_input(data)
        payload = self._validate(HotelStayCreate, data)
        await self._resolve_pet_for_client(payload.pet_id, payload.client_id, raw)

        stay = await self._add(HotelStay(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", stay, user)
        return stay

    async def update(
        self, user: Optional[User], stay_id: uuid.UUID, data: InputData
    ) -> HotelStay:
        """
        Update a stay, recomputing total_cost when the dates or rate change.

        Raises:
            ValidationException: If the resulting check-out is not after
                the resulting check-in
            InvalidStatusTransitionException: If a status in the data is
                not reachable
        """
        self._require_write(user)
        stay = await self._get_or_404(HotelStay, stay_id, "Hotel stay")
        raw = self._raw_input(data)
        changes = self._validate(HotelStayUpdate, data).changes()
        status = changes.pop("status", None)

        if "pet_id" in changes or "client_id" in changes:
            await self._resolve_pet_for_client(
                changes.get("pet_id", stay.pet_id),
                changes.get("client_id", stay.client_id),
                raw,
            )

        check_in = changes.get("check_in_date", stay.check_in_date)
        check_out = changes.get("check_out_date", stay.check_out_date)
        if check_out <= check_in:
            message = "Check-out date must be after check-in date"
            raise ValidationException(
                message,
                field="check_out_date",
                value=check_out,
                validation_errors={"check_out_date": [message]},
                input_data=raw,
            )

        if status is not None:
            stay.transition_to(status)
        stay.update_fields(**changes)
        if COST_FIELDS.intersection(changes):
            old_cost = stay.total_cost
            stay.recalculate_total_cost()
            logger.debug(f"Hotel stay {stay.id} cost changed from {old_cost} to {stay.total_cost}")

        stay = await self._apply(stay, {}, user, input_data=raw)
        self._log_write("Updated", stay, user)
        return stay

    async def check_in(self, user: Optional[User], stay_id: uuid.UUID) -> HotelStay:
        """
        Raises:
            InvalidStatusTransitionException: If the stay is not reserved
        """
        self._require_write(user)
        stay = await self._get_or_404(HotelStay, stay_id, "Hotel stay")
        stay.check_in()
        stay = await self._apply(stay, {}, user)
        self._log_write("Checked in", stay, user)
        return stay

    async def check_out(self, user: Optional[User], stay_id: uuid.UUID) -> HotelStay:
        """
        Raises:
            InvalidStatusTransitionException: If the stay is not active
        """
        self._require_write(user)
        stay = await self._get_or_404(HotelStay, stay_id, "Hotel stay")
        stay.check_out()
        stay = await self._apply(stay, {}, user)
        self._log_write("Checked out", stay, user)
        return stay

    async def cancel(self, user: Optional[User], stay_id: uuid.UUID) -> HotelStay:
        self._require_write(user)
        stay = await self._get_or_404(HotelStay, stay_id, "Hotel stay")
        stay.cancel()
        stay = await self._apply(stay, {}, user)
        self._log_write("Cancelled", stay, user)
        return stay

    async def delete(self, user: Optional[User], stay_id: uuid.UUID) -> None:
        self._require_write(user)
        stay = await self._get_or_404(HotelStay, stay_id, "Hotel stay")
        await self._delete(stay)
        self._log_write("Deleted", stay, user)

    async def calendar(self, user: Optional[User], year: int, month: int) -> List[HotelStay]:
        """Stays overlapping one month, by check-in date."""
        self._require_read(user)
        start, end = month_bounds(year, month)
        spec = QuerySpec(HotelStay).where(
            Where(HotelStay.check_in_date < end.date()),
            Where(HotelStay.check_out_date > start.date()),
        ).ordered_by(HotelStay.check_in_date, HotelStay.id)
        return await self._all(spec)
