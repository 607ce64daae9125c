"""
User service.

Users are staff accounts. They are deactivated rather than deleted so the
appointments, records and PQRs they worked on keep their references.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional

from sqlalchemy import select

from ..authz.query import Equals, OneOf, QuerySpec, TextSearch
from ..authz.roles import Permission
from ..exceptions import BusinessRuleException
from ..models.user import User, UserRole
from ..schemas.user import UserCreate, UserFilters, UserUpdate
from .base import EntityService, InputData, Page

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "This email is already registered"


class UserService(EntityService):
    """Staff accounts and the pickers built from them."""

    async def list(
        self, user: Optional[User], params: Optional[InputData] = None
    ) -> Page[User]:
        self.guard.require(user, Permission.VIEW_USERS)
        filters = self._validate(UserFilters, params or {})

        spec = QuerySpec(User).where(
            TextSearch(filters.search, (User.name, User.email, User.position)),
            Equals(User.role, filters.role) if filters.role else None,
            Equals(User.is_active, filters.is_active) if filters.is_active is not None else None,
        ).ordered_by(User.name, User.id)
        return await self._paginate(spec, filters)

    async def get(self, user: Optional[User], user_id: uuid.UUID) -> User:
        self.guard.require(user, Permission.VIEW_USERS)
        return await self._get_or_404(User, user_id, "User")

    async def create(self, user: Optional[User], data: InputData) -> User:
        """
        Raises:
            BusinessRuleException: If the email is already registered
        """
        self.guard.require(user, Permission.MANAGE_USERS)
        raw = self._raw_input(data)
        payload = self._validate(UserCreate, data)
        await self._check_email(payload.email, raw)

        created = await self._add(
            User(**payload.model_dump()),
            user,
            conflict_message=DUPLICATE_EMAIL,
            field="email",
            input_data=raw,
        )
        self._log_write("Created", created, user)
        return created

    async def update(self, user: Optional[User], user_id: uuid.UUID, data: InputData) -> User:
        self.guard.require(user, Permission.MANAGE_USERS)
        target = await self._get_or_404(User, user_id, "User")
        raw = self._raw_input(data)
        changes = self._validate(UserUpdate, data).changes()

        if "email" in changes:
            await self._check_email(changes["email"], raw, exclude_id=target.id)
        if changes.get("is_active") is False:
            self._check_not_self(user, target, raw)

        target = await self._apply(
            target,
            changes,
            user,
            conflict_message=DUPLICATE_EMAIL,
            field="email",
            input_data=raw,
        )
        self._log_write("Updated", target, user)
        return target

    async def deactivate(self, user: Optional[User], user_id: uuid.UUID) -> User:
        """
        Deactivate an account. Inactive users are denied every operation.

        Raises:
            BusinessRuleException: If users try to deactivate themselves
        """
        self.guard.require(user, Permission.MANAGE_USERS)
        target = await self._get_or_404(User, user_id, "User")
        self._check_not_self(user, target, {})

        if target.is_active:
            target = await self._apply(target, {"is_active": False}, user)
            self._log_write("Deactivated", target, user)
        return target

    async def list_veterinarians(self, user: Optional[User]) -> List[User]:
        """Active users with a clinical role, by name."""
        self.guard.require_any(user, Permission.MANAGE_MEDICAL_RECORDS, Permission.VIEW_USERS)
        clinical_roles = [role for role in UserRole if self.guard.registry.is_clinical(role)]
        spec = QuerySpec(User).where(
            Equals(User.is_active, True),
            OneOf(User.role, clinical_roles),
        ).ordered_by(User.name)
        return await self._all(spec)

    async def list_assignable(self, user: Optional[User]) -> List[User]:
        """Active users that appointments and PQRs can be assigned to, by name."""
        self.guard.require_any(
            user,
            Permission.MANAGE_PQRS,
            Permission.MANAGE_APPOINTMENTS,
            Permission.VIEW_USERS,
        )
        spec = QuerySpec(User).where(Equals(User.is_active, True)).ordered_by(User.name)
        return await self._all(spec)

    async def _check_email(
        self,
        email: str,
        input_data: Mapping[str, Any],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if (await self.session.execute(stmt.limit(1))).first() is not None:
            raise BusinessRuleException(
                DUPLICATE_EMAIL,
                rule_name="unique_user_email",
                field="email",
                input_data=input_data,
            )

    @staticmethod
    def _check_not_self(
        user: Optional[User], target: User, input_data: Mapping[str, Any]
    ) -> None:
        if user is not None and user.id == target.id:
            raise BusinessRuleException(
                "Users cannot deactivate their own account",
                rule_name="no_self_deactivation",
                field="is_active",
                input_data=input_data,
            )
