"""
Service catalog: service categories and the services within them.

Every staff read is narrowed to the user's segments. The public catalog
needs no user at all and shows active services only.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select

from ..authz.query import Equals, QuerySpec, SegmentIn, TextSearch
from ..authz.roles import Permission
from ..models.appointment import Appointment
from ..models.service import Service, ServiceCategory, ServiceSegment
from ..models.user import User
from ..schemas.service import (
    PriceUpdate,
    ServiceCategoryCreate,
    ServiceCreate,
    ServiceFilters,
    ServiceUpdate,
)
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)


class CatalogService(EntityService):
    """Services and service categories."""

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Service]:
        """
        List services visible to the user.

        A category or segment filter outside the user's segments simply
        matches nothing.
        """
        self.guard.require(user, Permission.VIEW_SERVICES)
        filters = self._validate(ServiceFilters, params or {})

        spec = QuerySpec(Service).where(
            TextSearch(filters.search, (Service.name, Service.description)),
            (
                Equals(Service.service_category_id, filters.category_id)
                if filters.category_id
                else None
            ),
            SegmentIn((Service.category,), {filters.segment}) if filters.segment else None,
            Equals(Service.is_active, filters.is_active) if filters.is_active is not None else None,
        ).ordered_by(Service.name, Service.id)
        return await self._paginate(self.segments.scope_query(spec, user), filters)

    async def get(self, user: Optional[User], service_id: uuid.UUID) -> Service:
        """
        Raises:
            NotFoundException: If the service does not exist
            AuthorizationException: If its segment is outside the user's set
        """
        self.guard.require(user, Permission.VIEW_SERVICES)
        service = await self._get_or_404(Service, service_id, "Service")
        self.segments.require_segment_for(user, service.segment)
        return service

    async def create(self, user: Optional[User], data: InputData) -> Service:
        self.guard.require(user, Permission.MANAGE_SERVICES)
        raw = self._raw_input(data)
        payload = self._validate(ServiceCreate, data)
        category = await self._resolve(
            ServiceCategory, payload.service_category_id, "service_category_id", "category", raw
        )
        self.segments.require_segment_for(user, category.segment)

        service = await self._add(Service(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", service, user)
        return service

    async def update(
        self, user: Optional[User], service_id: uuid.UUID, data: InputData
    ) -> Service:
        """Update a service. Moving it to another category needs access to both segments."""
        self.guard.require(user, Permission.MANAGE_SERVICES)
        service = await self._get_or_404(Service, service_id, "Service")
        self.segments.require_segment_for(user, service.segment)
        raw = self._raw_input(data)
        changes = self._validate(ServiceUpdate, data).changes()

        if "service_category_id" in changes:
            category = await self._resolve(
                ServiceCategory,
                changes["service_category_id"],
                "service_category_id",
                "category",
                raw,
            )
            self.segments.require_segment_for(user, category.segment)

        service = await self._apply(service, changes, user, input_data=raw)
        self._log_write("Updated", service, user)
        return service

    async def update_price(
        self, user: Optional[User], service_id: uuid.UUID, data: InputData
    ) -> Service:
        self.guard.require(user, Permission.MANAGE_PRICES)
        service = await self._get_or_404(Service, service_id, "Service")
        self.segments.require_segment_for(user, service.segment)
        payload = self._validate(PriceUpdate, data)

        old_price = service.price
        service = await self._apply(service, {"price": payload.price}, user)
        logger.info(
            f"Changed price of service {service.id} from {old_price} to {service.price}",
            extra={"user_id": str(user.id)},
        )
        return service

    async def delete(self, user: Optional[User], service_id: uuid.UUID) -> None:
        """
        Raises:
            ReferentialIntegrityException: If the service has appointments
        """
        self.guard.require(user, Permission.MANAGE_SERVICES)
        service = await self._get_or_404(Service, service_id, "Service")
        self.segments.require_segment_for(user, service.segment)
        await self._ensure_deletable(
            "service",
            service.id,
            {"appointments": (Appointment, Appointment.service_id == service.id)},
        )
        await self._delete(service)
        self._log_write("Deleted", service, user)

    async def list_categories(self, user: Optional[User]) -> List[ServiceCategory]:
        self.guard.require(user, Permission.VIEW_SERVICES)
        spec = QuerySpec(ServiceCategory).ordered_by(ServiceCategory.name)
        return await self._all(self.segments.scope_query(spec, user))

    async def create_category(self, user: Optional[User], data: InputData) -> ServiceCategory:
        self.guard.require(user, Permission.MANAGE_SERVICES)
        raw = self._raw_input(data)
        payload = self._validate(ServiceCategoryCreate, data)
        self.segments.require_segment_for(user, payload.segment)

        category = await self._add(ServiceCategory(**payload.model_dump()), user, input_data=raw)
        self._log_write("Created", category, user)
        return category

    async def delete_category(self, user: Optional[User], category_id: uuid.UUID) -> None:
        """
        Raises:
            ReferentialIntegrityException: If the category still has services
        """
        self.guard.require(user, Permission.MANAGE_SERVICES)
        category = await self._get_or_404(ServiceCategory, category_id, "Service category")
        self.segments.require_segment_for(user, category.segment)
        await self._ensure_deletable(
            "service category",
            category.id,
            {"services": (Service, Service.service_category_id == category.id)},
        )
        await self._delete(category)
        self._log_write("Deleted", category, user)

    async def public_catalog(self, segment: Optional[ServiceSegment] = None) -> List[Service]:
        """Active services for anyone, optionally of one segment, by name."""
        spec = QuerySpec(Service).where(
            Equals(Service.is_active, True),
            SegmentIn((Service.category,), {segment}) if segment else None,
        ).ordered_by(Service.name)
        return await self._all(spec)

    async def public_segments(self) -> List[ServiceSegment]:
        """Segments that have at least one category."""
        result = await self.session.execute(select(ServiceCategory.segment).distinct())
        found = set(result.scalars().all())
        return [segment for segment in ServiceSegment if segment in found]

