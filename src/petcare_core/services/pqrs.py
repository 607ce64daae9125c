"""
PQR service.

Anyone may submit a PQR. Staff holding ``manage_pqrs`` see and handle all
of them; everyone else only sees the PQRs assigned to them.
"""

import logging
import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import or_

from ..authz.query import DateTimeRange, Equals, QuerySpec, TextSearch, Where
from ..authz.roles import Permission
from ..exceptions import BusinessRuleException
from ..models.pqr import Pqr
from ..models.user import User
from ..schemas.pqr import PqrAssign, PqrCreate, PqrFilters, PqrRespond, PqrUpdate
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)


class PqrService(EntityService):
    """Requests, complaints, claims and suggestions."""

    SEARCH_FIELDS = (Pqr.client_name, Pqr.client_email, Pqr.subject, Pqr.description)

    async def submit(self, data: InputData) -> Pqr:
        """
        Register a PQR from the public form. No user is involved.

        Raises:
            SchemaValidationException: If the submission is invalid
        """
        raw = self._raw_input(data)
        payload = self._validate(PqrCreate, data)
        pqr = await self._add(Pqr(**payload.model_dump()), None, input_data=raw)
        logger.info(f"Received {pqr.type.value} PQR {pqr.id}")
        return pqr

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Pqr]:
        """List PQRs, newest first. Non-managers only get their own."""
        self.guard.require(user, Permission.VIEW_PQRS)
        filters = self._validate(PqrFilters, params or {})

        spec = self._filtered(filters)
        if not self._is_manager(user):
            spec = spec.where(Equals(Pqr.assigned_to, user.id))
        return await self._paginate(spec, filters)

    async def my_pqrs(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[Pqr]:
        """
        PQRs assigned to the user. Users who may view PQRs also see the
        unassigned ones waiting to be picked up.
        """
        self.guard.require_active(user)
        filters = self._validate(PqrFilters, params or {})

        mine = Pqr.assigned_to == user.id
        if self.guard.authorize(user, Permission.VIEW_PQRS):
            mine = or_(mine, Pqr.assigned_to.is_(None))
        return await self._paginate(self._filtered(filters).where(Where(mine)), filters)

    async def get(self, user: Optional[User], pqr_id: uuid.UUID) -> Pqr:
        """
        Raises:
            AuthorizationException: If a non-manager reads a PQR assigned
                to someone else
        """
        self.guard.require_active(user)
        pqr = await self._get_or_404(Pqr, pqr_id, "PQR")
        self._check_access(user, pqr)
        return pqr

    async def update(self, user: Optional[User], pqr_id: uuid.UUID, data: InputData) -> Pqr:
        """
        Change status, response or assignee.

        Only managers may reassign. Status changes follow the PQR's
        forward-only lifecycle.
        """
        self.guard.require_any(user, Permission.MANAGE_PQRS, Permission.RESPOND_PQRS)
        pqr = await self._get_or_404(Pqr, pqr_id, "PQR")
        self._check_access(user, pqr)
        raw = self._raw_input(data)
        changes = self._validate(PqrUpdate, data).changes()

        reassign = "assigned_to" in changes
        assignee_id = changes.pop("assigned_to", None)
        if reassign:
            self.guard.require(user, Permission.MANAGE_PQRS)
            if assignee_id is not None:
                await self._check_assignee(assignee_id, raw)
        status = changes.pop("status", None)
        if status is not None:
            pqr.transition_to(status)
        if reassign:
            pqr.assign(assignee_id)

        pqr = await self._apply(pqr, changes, user, input_data=raw)
        self._log_write("Updated", pqr, user)
        return pqr

    async def assign(self, user: Optional[User], pqr_id: uuid.UUID, data: InputData) -> Pqr:
        """
        Assign a PQR to an active staff member. Pending PQRs move to in_process.

        Raises:
            InvalidStatusTransitionException: If the PQR is closed
        """
        self.guard.require(user, Permission.MANAGE_PQRS)
        pqr = await self._get_or_404(Pqr, pqr_id, "PQR")
        raw = self._raw_input(data)
        payload = self._validate(PqrAssign, data)
        assignee = await self._check_assignee(payload.assigned_to, raw)

        pqr.assign(assignee.id)
        pqr = await self._apply(pqr, {}, user)
        logger.info(
            f"Assigned PQR {pqr.id} to user {assignee.id}",
            extra={"user_id": str(user.id)},
        )
        return pqr

    async def respond(self, user: Optional[User], pqr_id: uuid.UUID, data: InputData) -> Pqr:
        """Answer a PQR, which marks it resolved."""
        self.guard.require(user, Permission.RESPOND_PQRS)
        pqr = await self._get_or_404(Pqr, pqr_id, "PQR")
        self._check_access(user, pqr)
        payload = self._validate(PqrRespond, data)

        pqr.respond(payload.response)
        pqr = await self._apply(pqr, {}, user)
        self._log_write("Responded to", pqr, user)
        return pqr

    async def delete(self, user: Optional[User], pqr_id: uuid.UUID) -> None:
        self.guard.require(user, Permission.MANAGE_PQRS)
        pqr = await self._get_or_404(Pqr, pqr_id, "PQR")
        await self._delete(pqr)
        self._log_write("Deleted", pqr, user)

    def _is_manager(self, user: Optional[User]) -> bool:
        return bool(self.guard.authorize(user, Permission.MANAGE_PQRS))

    def _check_access(self, user: Optional[User], pqr: Pqr) -> None:
        if not self._is_manager(user) and not pqr.is_assigned_to(user.id):
            self.guard.deny(user, "PQR is assigned to another user")

    @staticmethod
    def _filtered(filters: PqrFilters) -> QuerySpec:
        return QuerySpec(Pqr).where(
            TextSearch(filters.search, PqrService.SEARCH_FIELDS),
            Equals(Pqr.status, filters.status) if filters.status else None,
            Equals(Pqr.type, filters.type) if filters.type else None,
            Equals(Pqr.assigned_to, filters.assigned_to) if filters.assigned_to else None,
            (
                DateTimeRange(Pqr.created_at, filters.date_from, filters.date_to)
                if filters.date_from or filters.date_to
                else None
            ),
        ).ordered_by(Pqr.created_at.desc(), Pqr.id)

    async def _check_assignee(self, user_id: uuid.UUID, input_data: Mapping[str, Any]) -> User:
        assignee = await self._resolve(User, user_id, "assigned_to", "user", input_data)
        if not assignee.is_active:
            raise BusinessRuleException(
                "PQRs can only be assigned to active users",
                rule_name="active_assignee",
                context={"user_id": str(assignee.id)},
                field="assigned_to",
                input_data=input_data,
            )
        return assignee
