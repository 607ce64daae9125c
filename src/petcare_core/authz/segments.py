"""
Segment filter.

Narrows queries over service-derived data (service categories, services
and appointments) to the segments the acting user's role may see. The
narrowing is one more AND predicate on the query spec and never replaces
the caller's own filters.
"""

import logging
from typing import Any, Dict, FrozenSet, Optional, Type

from ..models.appointment import Appointment
from ..models.service import Service, ServiceCategory, ServiceSegment
from ..models.user import User
from .guard import PermissionGuard
from .query import QuerySpec, RelationshipPath, SegmentIn

logger = logging.getLogger(__name__)

# Relationship path from each segment-scoped model to ServiceCategory
SEGMENT_PATHS: Dict[Type[Any], RelationshipPath] = {
    ServiceCategory: (),
    Service: (Service.category,),
    Appointment: (Appointment.service, Service.category),
}


class SegmentFilter:
    """
    Applies role segment restrictions to query specs.

    Args:
        guard: Permission guard used to resolve the user's segments
    """

    def __init__(self, guard: PermissionGuard):
        self.guard = guard

    def allowed_segments(self, user: Optional[User]) -> Optional[FrozenSet[ServiceSegment]]:
        """Segments visible to the user, or None when unrestricted."""
        return self.guard.allowed_segments(user)

    def is_allowed(self, user: Optional[User], segment: ServiceSegment) -> bool:
        allowed = self.allowed_segments(user)
        return allowed is None or segment in allowed

    def predicate_for(self, model: Type[Any], user: Optional[User]) -> Optional[SegmentIn]:
        """
        Segment predicate for a model, or None when the user is unrestricted.

        Raises:
            ValueError: If the model has no path to a service category
        """
        try:
            path = SEGMENT_PATHS[model]
        except KeyError:
            raise ValueError(f"{model.__name__} is not scoped by service segment")

        allowed = self.allowed_segments(user)
        if allowed is None:
            return None
        return SegmentIn(path, allowed)

    def scope_query(self, query: QuerySpec, user: Optional[User]) -> QuerySpec:
        """
        Narrow a query spec to the user's segments.

        Args:
            query: Spec over ServiceCategory, Service or Appointment
            user: Acting user

        Returns:
            The same spec for unrestricted users, otherwise a new spec with
            a segment predicate appended
        """
        predicate = self.predicate_for(query.model, user)
        if predicate is None:
            return query
        logger.debug(
            f"Scoping {query.model.__name__} query to segments "
            f"{sorted(s.value for s in predicate.segments)}"
        )
        return query.where(predicate)

    def require_segment_for(self, user: Optional[User], segment: ServiceSegment) -> None:
        """
        Require access to a single row's segment.

        Raises:
            AuthorizationException: If the segment is outside the user's set
        """
        self.guard.require_segment(user, segment)
