"""
Authorization core: role registry, permission guard, query specifications
and the segment filter.
"""

from .guard import ALLOW, AuthorizationDecision, PermissionGuard
from .query import (
    DateRange,
    DateTimeRange,
    Equals,
    OneOf,
    Predicate,
    QuerySpec,
    Related,
    SegmentIn,
    TextSearch,
    Where,
    through,
)
from .roles import (
    Permission,
    RoleDefinition,
    RoleRegistry,
    default_registry,
    to_permission,
)
from .segments import SEGMENT_PATHS, SegmentFilter

__all__ = [
    # Roles
    "Permission",
    "RoleDefinition",
    "RoleRegistry",
    "default_registry",
    "to_permission",
    # Guard
    "AuthorizationDecision",
    "ALLOW",
    "PermissionGuard",
    # Query specifications
    "QuerySpec",
    "Predicate",
    "Where",
    "Equals",
    "OneOf",
    "Related",
    "TextSearch",
    "DateRange",
    "DateTimeRange",
    "SegmentIn",
    "through",
    # Segment filter
    "SegmentFilter",
    "SEGMENT_PATHS",
]
