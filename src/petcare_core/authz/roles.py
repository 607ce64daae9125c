"""
Role registry.

Static, immutable configuration mapping each role to the permissions it
holds, the service segments it may see and whether it is clinical (may
act as veterinarian and read medical records).

The registry is built once with :func:`default_registry` and handed to
the permission guard and segment filter at construction.
"""

import enum
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Union

from ..exceptions import ConfigurationException
from ..models.service import ServiceSegment
from ..models.user import UserRole


class Permission(str, enum.Enum):
    """Named permissions that can be granted to roles."""

    MANAGE_USERS = "manage_users"
    VIEW_USERS = "view_users"
    MANAGE_SERVICES = "manage_services"
    VIEW_SERVICES = "view_services"
    MANAGE_PRICES = "manage_prices"
    VIEW_PRICES = "view_prices"
    MANAGE_CLIENTS = "manage_clients"
    VIEW_CLIENTS = "view_clients"
    MANAGE_PETS = "manage_pets"
    VIEW_PETS = "view_pets"
    MANAGE_APPOINTMENTS = "manage_appointments"
    VIEW_APPOINTMENTS = "view_appointments"
    MANAGE_CLINIC_SERVICES = "manage_clinic_services"
    VIEW_CLINIC_SERVICES = "view_clinic_services"
    MANAGE_MEDICAL_RECORDS = "manage_medical_records"
    VIEW_MEDICAL_RECORDS = "view_medical_records"
    MANAGE_VACCINATIONS = "manage_vaccinations"
    VIEW_VACCINATIONS = "view_vaccinations"
    MANAGE_HOTEL_SERVICES = "manage_hotel_services"
    VIEW_HOTEL_SERVICES = "view_hotel_services"
    MANAGE_HOTEL_STAYS = "manage_hotel_stays"
    VIEW_HOTEL_STAYS = "view_hotel_stays"
    MANAGE_SPA_SERVICES = "manage_spa_services"
    VIEW_SPA_SERVICES = "view_spa_services"
    MANAGE_PQRS = "manage_pqrs"
    VIEW_PQRS = "view_pqrs"
    RESPOND_PQRS = "respond_pqrs"
    VIEW_REPORTS = "view_reports"
    CREATE_REPORTS = "create_reports"
    VIEW_PQR_REPORTS = "view_pqr_reports"
    VIEW_SERVICE_REPORTS = "view_service_reports"
    VIEW_BREED_REPORTS = "view_breed_reports"
    VIEW_FINANCIAL_REPORTS = "view_financial_reports"
    VIEW_PET_HISTORY = "view_pet_history"
    VIEW_CLIENT_HISTORY = "view_client_history"
    VIEW_DASHBOARD = "view_dashboard"


PermissionLike = Union[Permission, str]


def to_permission(value: PermissionLike) -> Permission:
    """
    Normalize a permission name.

    Raises:
        ConfigurationException: If the name is not a known permission
    """
    try:
        return Permission(value)
    except ValueError:
        raise ConfigurationException(
            f"Unknown permission '{value}'",
            config_key="permission",
            config_value=str(value),
        )


@dataclass(frozen=True)
class RoleDefinition:
    """
    Configuration of a single role.

    Attributes:
        role: The role being defined
        permissions: Permissions the role holds
        segments: Segments the role may see, or None for every segment
        clinical: Whether the role may act as veterinarian
    """

    role: UserRole
    permissions: FrozenSet[Permission]
    segments: Optional[FrozenSet[ServiceSegment]]
    clinical: bool = False

    @property
    def is_unrestricted(self) -> bool:
        return self.segments is None


class RoleRegistry:
    """
    Immutable lookup of role definitions.

    Every :class:`UserRole` must be defined exactly once.
    """

    def __init__(self, definitions: Iterable[RoleDefinition]):
        by_role = {}
        for definition in definitions:
            if definition.role in by_role:
                raise ConfigurationException(
                    f"Role '{definition.role.value}' is defined more than once",
                    config_key="role",
                    config_value=definition.role.value,
                )
            by_role[definition.role] = definition

        missing = [role.value for role in UserRole if role not in by_role]
        if missing:
            raise ConfigurationException(
                f"Roles without a definition: {', '.join(missing)}",
                config_key="role",
            )

        self._definitions: Mapping[UserRole, RoleDefinition] = MappingProxyType(by_role)

    def __contains__(self, role: object) -> bool:
        return role in self._definitions

    def get(self, role: UserRole) -> RoleDefinition:
        return self._definitions[role]

    @property
    def roles(self) -> FrozenSet[UserRole]:
        return frozenset(self._definitions)

    def permissions_for(self, role: UserRole) -> FrozenSet[Permission]:
        return self._definitions[role].permissions

    def has_permission(self, role: UserRole, permission: PermissionLike) -> bool:
        return to_permission(permission) in self._definitions[role].permissions

    def allowed_segments(self, role: UserRole) -> Optional[FrozenSet[ServiceSegment]]:
        """Segments the role may see. None means every segment."""
        return self._definitions[role].segments

    def is_clinical(self, role: UserRole) -> bool:
        return self._definitions[role].clinical


def _grant(*names: str) -> FrozenSet[Permission]:
    return frozenset(to_permission(name) for name in names)


_GENERAL_MANAGER = _grant(
    "manage_users",
    "view_users",
    "manage_services",
    "view_services",
    "manage_prices",
    "view_prices",
    "view_clients",
    "view_pets",
    "view_appointments",
    "view_clinic_services",
    "view_hotel_services",
    "view_spa_services",
    "manage_pqrs",
    "view_pqrs",
    "respond_pqrs",
    "view_reports",
    "create_reports",
    "view_pqr_reports",
    "view_service_reports",
    "view_breed_reports",
    "view_financial_reports",
    "view_pet_history",
    "view_client_history",
    "view_dashboard",
)

_HOTEL_EMPLOYEE = _grant(
    "manage_clients",
    "view_clients",
    "manage_pets",
    "view_pets",
    "manage_appointments",
    "view_appointments",
    "manage_hotel_services",
    "view_hotel_services",
    "manage_hotel_stays",
    "view_hotel_stays",
    "view_clinic_services",
    "view_medical_records",
    "view_vaccinations",
    "view_services",
    "view_prices",
    "view_service_reports",
    "view_breed_reports",
    "view_dashboard",
)

_CLINIC_ADMIN = _grant(
    "manage_clients",
    "view_clients",
    "manage_pets",
    "view_pets",
    "manage_appointments",
    "view_appointments",
    "manage_clinic_services",
    "view_clinic_services",
    "manage_medical_records",
    "view_medical_records",
    "manage_vaccinations",
    "view_vaccinations",
    "view_spa_services",
    "view_services",
    "view_prices",
    "view_service_reports",
    "view_pet_history",
    "view_dashboard",
)

_SPA_ASSISTANT = _grant(
    "manage_clients",
    "view_clients",
    "manage_pets",
    "view_pets",
    "manage_appointments",
    "view_appointments",
    "manage_spa_services",
    "view_spa_services",
    "manage_services",
    "view_services",
    "manage_prices",
    "view_prices",
    "view_service_reports",
    "view_client_history",
    "view_dashboard",
)

_PUBLIC = _grant("view_services", "view_prices")


@lru_cache(maxsize=None)
def default_registry() -> RoleRegistry:
    """Return the standard role registry, built once per process."""
    return RoleRegistry(
        [
            RoleDefinition(
                role=UserRole.GENERAL_MANAGER,
                permissions=_GENERAL_MANAGER,
                segments=None,
                clinical=True,
            ),
            RoleDefinition(
                role=UserRole.HOTEL_EMPLOYEE,
                permissions=_HOTEL_EMPLOYEE,
                segments=frozenset({ServiceSegment.HOTEL, ServiceSegment.CLINIC}),
            ),
            RoleDefinition(
                role=UserRole.CLINIC_ADMIN,
                permissions=_CLINIC_ADMIN,
                segments=frozenset({ServiceSegment.CLINIC, ServiceSegment.SPA}),
                clinical=True,
            ),
            RoleDefinition(
                role=UserRole.SPA_ASSISTANT,
                permissions=_SPA_ASSISTANT,
                segments=frozenset({ServiceSegment.SPA}),
            ),
            RoleDefinition(
                role=UserRole.PUBLIC,
                permissions=_PUBLIC,
                segments=frozenset(),
            ),
        ]
    )
