"""
Shared machinery for the entity services.

Every service works on the caller's ``AsyncSession`` and never commits:
writes are flushed so constraint violations surface inside the call, and
the caller's transaction decides whether they are kept.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError
from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..authz.guard import PermissionGuard
from ..authz.query import QuerySpec
from ..authz.roles import default_registry
from ..authz.segments import SegmentFilter
from ..exceptions import (
    BusinessRuleException,
    NotFoundException,
    ReferentialIntegrityException,
    SchemaValidationException,
    ValidationException,
)
from ..models.base import BaseModel
from ..models.client import Client
from ..models.pet import Pet
from ..models.user import User
from ..schemas.common import ListParams
from ..utils.config import AppSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S", bound=PydanticModel)
M = TypeVar("M", bound=BaseModel)

InputData = Union[Mapping[str, Any], PydanticModel]

# Dependents checked before a delete: label -> (model, criterion)
Dependents = Dict[str, Tuple[Type[BaseModel], ColumnElement]]


@dataclass
class Page(Generic[T]):
    """
    One page of a listing.

    Attributes:
        items: Rows on this page
        total: Number of rows matching the query across all pages
        page: 1-based page number
        per_page: Page size used
    """

    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Number of pages, at least 1."""
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    def map(self, fn: Callable[[T], Any]) -> "Page[Any]":
        """Return the same page with every item converted by ``fn``."""
        return Page([fn(item) for item in self.items], self.total, self.page, self.per_page)


class EntityService:
    """
    Base class for the entity services.

    Args:
        session: Caller's session, usually from ``SessionManager.get_transaction``
        guard: Permission guard, defaults to one over the default registry
        segment_filter: Segment filter, defaults to one over ``guard``
        settings: Application settings (page size, photo limits)
    """

    def __init__(
        self,
        session: AsyncSession,
        guard: Optional[PermissionGuard] = None,
        segment_filter: Optional[SegmentFilter] = None,
        settings: Optional[AppSettings] = None,
    ):
        self.session = session
        self.guard = guard or PermissionGuard(default_registry())
        self.segments = segment_filter or SegmentFilter(self.guard)
        self.settings = settings or AppSettings()

    # Validation

    @staticmethod
    def _raw_input(data: InputData) -> Dict[str, Any]:
        if isinstance(data, PydanticModel):
            return data.model_dump(exclude_unset=True)
        return dict(data)

    def _validate(self, schema_cls: Type[S], data: InputData) -> S:
        """
        Validate caller input against a schema.

        Raises:
            SchemaValidationException: With field-level messages and the
                submitted input
        """
        if isinstance(data, schema_cls):
            return data
        raw = self._raw_input(data)
        try:
            return schema_cls.model_validate(raw)
        except ValidationError as e:
            raise SchemaValidationException.from_pydantic(
                e, schema_cls.__name__, input_data=raw
            ) from e

    # Lookups

    async def _get_or_404(
        self, model: Type[M], entity_id: uuid.UUID, entity: Optional[str] = None
    ) -> M:
        """
        Load a row by primary key.

        Raises:
            NotFoundException: If no row has that id
        """
        obj = await self.session.get(model, entity_id)
        if obj is None:
            raise NotFoundException(entity or model.__name__, entity_id)
        return obj

    async def _resolve(
        self,
        model: Type[M],
        entity_id: uuid.UUID,
        field: str,
        label: str,
        input_data: Optional[Mapping[str, Any]] = None,
    ) -> M:
        """
        Load a row referenced by submitted data.

        A missing reference is the caller's input error, not a missing
        resource, so it is reported against the field.

        Raises:
            ValidationException: If the referenced row does not exist
        """
        obj = await self.session.get(model, entity_id)
        if obj is None:
            raise ValidationException(
                f"Selected {label} does not exist",
                field=field,
                value=entity_id,
                validation_errors={field: [f"Selected {label} does not exist"]},
                input_data=input_data,
            )
        return obj

    async def _resolve_pet_for_client(
        self,
        pet_id: uuid.UUID,
        client_id: uuid.UUID,
        input_data: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Pet, Client]:
        """
        Load a pet and a client and check that the client owns the pet.

        Raises:
            ValidationException: If either does not exist
            BusinessRuleException: If the pet belongs to another client
        """
        client = await self._resolve(Client, client_id, "client_id", "client", input_data)
        pet = await self._resolve(Pet, pet_id, "pet_id", "pet", input_data)
        if not pet.belongs_to(client.id):
            raise BusinessRuleException(
                "The selected pet does not belong to the selected client",
                rule_name="pet_belongs_to_client",
                context={"pet_id": str(pet.id), "client_id": str(client.id)},
                field="pet_id",
                input_data=input_data,
            )
        return pet, client

    async def _count(self, model: Type[BaseModel], *criteria: ColumnElement) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return (await self.session.execute(stmt)).scalar_one()

    async def _exists(self, model: Type[BaseModel], *criteria: ColumnElement) -> bool:
        return await self._count(model, *criteria) > 0

    # Listings

    def _per_page(self, params: Optional[ListParams]) -> int:
        if params is not None and params.per_page:
            return params.per_page
        return self.settings.page_size

    async def _paginate(self, spec: QuerySpec, params: Optional[ListParams] = None) -> Page:
        """Run a query spec and return one page of results with the exact total."""
        page = params.page if params is not None else 1
        per_page = self._per_page(params)

        total = (await self.session.execute(spec.count_statement())).scalar_one()
        stmt = spec.statement().limit(per_page).offset((page - 1) * per_page)
        items = list((await self.session.execute(stmt)).scalars().all())
        return Page(items, total, page, per_page)

    async def _all(self, spec: QuerySpec, limit: Optional[int] = None) -> List[Any]:
        stmt = spec.statement()
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.session.execute(stmt)).scalars().all())

    # Writes

    async def _flush(
        self,
        conflict_message: str = "A record with the same unique values already exists",
        field: Optional[str] = None,
        input_data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Flush pending changes, reporting constraint violations as input errors.

        Raises:
            BusinessRuleException: If a unique or check constraint fails
        """
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(f"Integrity error on flush: {e.orig}")
            raise BusinessRuleException(
                conflict_message,
                rule_name="integrity",
                field=field,
                input_data=input_data,
            ) from e

    async def _add(self, obj: M, user: Optional[User], **flush_kwargs: Any) -> M:
        """Insert a new row stamped with its creator and reload its relationships."""
        if user is not None:
            obj.created_by = user.id
            obj.updated_by = user.id
        self.session.add(obj)
        await self._flush(**flush_kwargs)
        await self.session.refresh(obj)
        return obj

    async def _apply(
        self,
        obj: M,
        changes: Mapping[str, Any],
        user: Optional[User],
        **flush_kwargs: Any,
    ) -> M:
        """Apply validated changes to a row, flush and reload it."""
        obj.update_fields(updated_by=user.id if user is not None else None, **changes)
        await self._flush(**flush_kwargs)
        await self.session.refresh(obj)
        return obj

    async def _ensure_deletable(
        self, entity: str, entity_id: uuid.UUID, dependents: Dependents
    ) -> None:
        """
        Refuse a delete while dependent rows exist.

        Raises:
            ReferentialIntegrityException: Listing each dependent kind and count
        """
        found: Dict[str, int] = {}
        for label, (model, criterion) in dependents.items():
            count = await self._count(model, criterion)
            if count:
                found[label] = count
        if found:
            raise ReferentialIntegrityException(entity, entity_id, found)

    async def _delete(self, obj: BaseModel) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    @staticmethod
    def _log_write(action: str, obj: BaseModel, user: Optional[User]) -> None:
        logger.info(
            f"{action} {obj.__class__.__name__} {obj.id}",
            extra={"user_id": str(user.id) if user is not None else None},
        )
