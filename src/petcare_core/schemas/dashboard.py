"""
Dashboard response schemas.

Role-specific statistics are optional fields. Each is filled only for the
roles it applies to and left as None otherwise.
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.user import UserRole
from .appointment import AppointmentResponse


class DashboardStats(BaseModel):
    """General counters plus the acting role's own statistics."""

    model_config = ConfigDict(use_enum_values=True)

    total_clients: int = 0
    total_pets: int = 0
    appointments_today: int = 0
    pending_pqrs: int = 0

    # general manager
    monthly_revenue: Optional[Decimal] = None
    active_hotel_stays: Optional[int] = None
    total_services: Optional[int] = None

    # hotel employee
    active_stays: Optional[int] = None
    checkins_today: Optional[int] = None
    checkouts_today: Optional[int] = None

    # clinic admin
    clinic_appointments_today: Optional[int] = None
    pending_medical_records: Optional[int] = None

    # spa assistant
    spa_appointments_today: Optional[int] = None
    spa_revenue_month: Optional[Decimal] = None


class PopularService(BaseModel):
    """Service ranked by appointment count."""

    service_id: UUID
    name: str
    appointment_count: int = Field(..., ge=0)


class DashboardResponse(BaseModel):
    """Everything shown on a user's dashboard."""

    model_config = ConfigDict(use_enum_values=True)

    role: UserRole
    stats: DashboardStats
    upcoming_appointments: List[AppointmentResponse] = Field(default_factory=list)
    popular_services: List[PopularService] = Field(default_factory=list)
