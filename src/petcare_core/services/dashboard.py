"""
Dashboard aggregator.

Read-only statistics for the acting user's dashboard. Every aggregate over
appointments and services is narrowed to the user's segments, and empty
data yields zeros rather than errors.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_, exists, func, select

from ..authz.query import Equals, QuerySpec, SegmentIn, Where
from ..authz.roles import Permission
from ..models.appointment import Appointment, AppointmentStatus
from ..models.client import Client
from ..models.hotel_stay import MONEY_QUANTUM, HotelStay, HotelStayStatus
from ..models.medical_record import MedicalRecord
from ..models.pet import Pet
from ..models.pqr import Pqr, PqrStatus
from ..models.service import Service, ServiceSegment
from ..models.user import User, UserRole
from ..schemas.appointment import AppointmentResponse
from ..schemas.dashboard import DashboardResponse, DashboardStats, PopularService
from ..utils.datetime_utils import day_bounds, get_current_date, get_current_utc, month_bounds
from .base import EntityService

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5
POPULAR_LIMIT = 5
POPULAR_WINDOW_DAYS = 30

APPOINTMENT_SEGMENT_PATH = (Appointment.service, Service.category)


class DashboardService(EntityService):
    """Builds the dashboard for a user's role."""

    async def get_dashboard(self, user: Optional[User]) -> DashboardResponse:
        """
        Raises:
            AuthorizationException: Without view_dashboard
        """
        self.guard.require(user, Permission.VIEW_DASHBOARD)

        values = {
            "total_clients": await self._count(Client),
            "total_pets": await self._count(Pet),
            "appointments_today": await self._count_spec(self._appointments_today(user)),
            "pending_pqrs": await self._count(Pqr, Pqr.status == PqrStatus.PENDING),
        }
        role_stats = self._ROLE_STATS.get(user.role)
        if role_stats is not None:
            values.update(await role_stats(self, user))

        upcoming = await self._upcoming_appointments(user)
        popular = await self._popular_services(user)
        logger.debug(f"Built dashboard for user {user.id} ({user.role.value})")

        return DashboardResponse(
            role=user.role,
            stats=DashboardStats(**values),
            upcoming_appointments=[AppointmentResponse.model_validate(a) for a in upcoming],
            popular_services=popular,
        )

    # Role statistics

    async def _manager_stats(self, user: User) -> Dict[str, object]:
        return {
            "monthly_revenue": await self._revenue(self._completed_this_month(user)),
            "active_hotel_stays": await self._count(
                HotelStay, HotelStay.status == HotelStayStatus.ACTIVE
            ),
            "total_services": await self._count_spec(
                self.segments.scope_query(
                    QuerySpec(Service).where(Equals(Service.is_active, True)), user
                )
            ),
        }

    async def _hotel_stats(self, user: User) -> Dict[str, object]:
        today = get_current_date()
        return {
            "active_stays": await self._count(
                HotelStay, HotelStay.status == HotelStayStatus.ACTIVE
            ),
            "checkins_today": await self._count(HotelStay, HotelStay.check_in_date == today),
            "checkouts_today": await self._count(HotelStay, HotelStay.check_out_date == today),
        }

    async def _clinic_stats(self, user: User) -> Dict[str, object]:
        clinic = SegmentIn(APPOINTMENT_SEGMENT_PATH, {ServiceSegment.CLINIC})
        without_record = ~exists().where(MedicalRecord.appointment_id == Appointment.id)
        pending_records = self.segments.scope_query(
            QuerySpec(Appointment).where(
                clinic,
                Equals(Appointment.status, AppointmentStatus.COMPLETED),
                Where(without_record),
            ),
            user,
        )
        return {
            "clinic_appointments_today": await self._count_spec(
                self._appointments_today(user).where(clinic)
            ),
            "pending_medical_records": await self._count_spec(pending_records),
        }

    async def _spa_stats(self, user: User) -> Dict[str, object]:
        spa = SegmentIn(APPOINTMENT_SEGMENT_PATH, {ServiceSegment.SPA})
        return {
            "spa_appointments_today": await self._count_spec(
                self._appointments_today(user).where(spa)
            ),
            "spa_revenue_month": await self._revenue(self._completed_this_month(user).where(spa)),
        }

    _ROLE_STATS: Dict[UserRole, Callable] = {
        UserRole.GENERAL_MANAGER: _manager_stats,
        UserRole.HOTEL_EMPLOYEE: _hotel_stats,
        UserRole.CLINIC_ADMIN: _clinic_stats,
        UserRole.SPA_ASSISTANT: _spa_stats,
    }

    # Lists

    async def _upcoming_appointments(self, user: User) -> List[Appointment]:
        spec = QuerySpec(Appointment).where(
            Where(Appointment.appointment_date >= get_current_utc())
        ).ordered_by(Appointment.appointment_date, Appointment.id)
        return await self._all(self.segments.scope_query(spec, user), limit=UPCOMING_LIMIT)

    async def _popular_services(self, user: User) -> List[PopularService]:
        """Services with the most appointments booked in the trailing window."""
        since = get_current_utc() - timedelta(days=POPULAR_WINDOW_DAYS)
        scoped = self.segments.scope_query(
            QuerySpec(Appointment).where(Where(Appointment.created_at >= since)), user
        )
        appointment_count = func.count(Appointment.id).label("appointment_count")
        stmt = (
            select(Service.id, Service.name, appointment_count)
            .join(Appointment, Appointment.service_id == Service.id)
            .where(and_(*scoped.clauses()))
            .group_by(Service.id, Service.name)
            .order_by(appointment_count.desc(), Service.name)
            .limit(POPULAR_LIMIT)
        )
        rows = (await self.session.execute(stmt)).all()
        return [
            PopularService(service_id=row.id, name=row.name, appointment_count=row.appointment_count)
            for row in rows
        ]

    # Helpers

    def _appointments_today(self, user: User) -> QuerySpec:
        start, end = day_bounds(get_current_date())
        spec = QuerySpec(Appointment).where(
            Where(Appointment.appointment_date >= start),
            Where(Appointment.appointment_date < end),
        )
        return self.segments.scope_query(spec, user)

    def _completed_this_month(self, user: User) -> QuerySpec:
        today = get_current_date()
        start, end = month_bounds(today.year, today.month)
        spec = QuerySpec(Appointment).where(
            Equals(Appointment.status, AppointmentStatus.COMPLETED),
            Where(Appointment.appointment_date >= start),
            Where(Appointment.appointment_date < end),
        )
        return self.segments.scope_query(spec, user)

    async def _count_spec(self, spec: QuerySpec) -> int:
        return (await self.session.execute(spec.count_statement())).scalar_one()

    async def _revenue(self, spec: QuerySpec) -> Decimal:
        stmt = select(func.coalesce(func.sum(Appointment.final_price), 0)).select_from(
            Appointment
        )
        clauses = spec.clauses()
        if clauses:
            stmt = stmt.where(*clauses)
        total = (await self.session.execute(stmt)).scalar_one()
        return Decimal(str(total)).quantize(MONEY_QUANTUM)
