"""
Permission guard.

Decides whether a user may perform an action. Anonymous callers and
inactive users are always denied; public operations simply never consult
the guard.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from ..exceptions import AuthorizationException
from ..models.service import ServiceSegment
from ..models.user import User
from .roles import Permission, PermissionLike, RoleRegistry, to_permission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AuthorizationDecision(True)


def _deny(reason: str) -> AuthorizationDecision:
    return AuthorizationDecision(False, reason)


class PermissionGuard:
    """
    Gate consulted before every protected read and write.

    Args:
        registry: Role registry holding the role configuration
    """

    def __init__(self, registry: RoleRegistry):
        self.registry = registry

    def _check_identity(self, user: Optional[User]) -> AuthorizationDecision:
        if user is None:
            return _deny("Authentication required")
        if not user.is_active:
            return _deny("User account is inactive")
        if user.role not in self.registry:
            return _deny(f"Unknown role '{user.role}'")
        return ALLOW

    def authorize(
        self, user: Optional[User], permission: PermissionLike
    ) -> AuthorizationDecision:
        """
        Decide whether the user holds a permission.

        Args:
            user: Acting user, or None for anonymous callers
            permission: Permission to check

        Returns:
            AuthorizationDecision, truthy when allowed
        """
        permission = to_permission(permission)
        decision = self._check_identity(user)
        if not decision:
            return decision
        if not self.registry.has_permission(user.role, permission):
            return _deny(
                f"Role '{user.role.value}' lacks permission '{permission.value}'"
            )
        return ALLOW

    def authorize_segment(
        self, user: Optional[User], segment: ServiceSegment
    ) -> AuthorizationDecision:
        """Decide whether the user may see data of a service segment."""
        decision = self._check_identity(user)
        if not decision:
            return decision
        allowed = self.registry.allowed_segments(user.role)
        if allowed is not None and segment not in allowed:
            return _deny(
                f"Role '{user.role.value}' cannot access the {segment.value} segment"
            )
        return ALLOW

    def allowed_segments(
        self, user: Optional[User]
    ) -> Optional[FrozenSet[ServiceSegment]]:
        """
        Segments visible to the user.

        Returns:
            None when unrestricted, otherwise the allowed set. Anonymous
            and inactive users get an empty set.
        """
        if not self._check_identity(user):
            return frozenset()
        return self.registry.allowed_segments(user.role)

    def is_clinical(self, user: Optional[User]) -> bool:
        """Whether the user may act as a veterinarian."""
        return bool(self._check_identity(user)) and self.registry.is_clinical(user.role)

    def require_active(self, user: Optional[User]) -> User:
        """
        Require an authenticated, active user with a known role.

        Raises:
            AuthorizationException: Otherwise
        """
        decision = self._check_identity(user)
        if not decision:
            self._raise(user, decision)
        return user

    def require(self, user: Optional[User], permission: PermissionLike) -> User:
        """
        Require a permission.

        Returns:
            The user, for chaining

        Raises:
            AuthorizationException: If the permission is not held
        """
        permission = to_permission(permission)
        decision = self.authorize(user, permission)
        if not decision:
            self._raise(user, decision, permission=permission)
        return user

    def require_any(self, user: Optional[User], *permissions: PermissionLike) -> User:
        """
        Require at least one of several permissions.

        Raises:
            AuthorizationException: If none of the permissions is held
        """
        decision = _deny("No permission given")
        for permission in permissions:
            decision = self.authorize(user, permission)
            if decision:
                return user
        names = ", ".join(to_permission(p).value for p in permissions)
        self._raise(user, decision, permission=names)

    def require_segment(self, user: Optional[User], segment: ServiceSegment) -> User:
        """
        Require access to a service segment.

        Raises:
            AuthorizationException: If the segment is outside the user's set
        """
        decision = self.authorize_segment(user, segment)
        if not decision:
            self._raise(user, decision, segment=segment)
        return user

    def require_clinical(self, user: Optional[User]) -> User:
        """
        Require a clinical role.

        Raises:
            AuthorizationException: If the user is not clinical
        """
        decision = self._check_identity(user)
        if decision and not self.registry.is_clinical(user.role):
            decision = _deny(f"Role '{user.role.value}' is not a clinical role")
        if not decision:
            self._raise(user, decision)
        return user

    def _raise(
        self,
        user: Optional[User],
        decision: AuthorizationDecision,
        permission: Optional[PermissionLike] = None,
        segment: Optional[ServiceSegment] = None,
    ) -> None:
        if isinstance(permission, Permission):
            permission = permission.value
        user_id = user.id if user is not None else None
        role = user.role.value if user is not None else None
        logger.warning(
            f"Authorization denied: {decision.reason}",
            extra={
                "user_id": str(user_id) if user_id else None,
                "role": role,
                "permission": permission,
                "segment": segment.value if segment else None,
            },
        )
        raise AuthorizationException(
            message=decision.reason or "Forbidden",
            permission=permission,
            user_id=user_id,
            role=role,
            segment=segment.value if segment else None,
        )

    def deny(self, user: Optional[User], reason: str) -> None:
        """
        Deny a request for a rule that is decided outside the guard.

        Raises:
            AuthorizationException: Always
        """
        self._raise(user, _deny(reason))
