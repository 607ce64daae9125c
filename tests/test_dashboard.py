"""
Tests for the dashboard aggregator.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from petcare_core.exceptions import AuthorizationException
from petcare_core.models import AppointmentStatus, HotelStayStatus, MedicalRecord, ServiceSegment
from petcare_core.services import DashboardService, PqrService
from petcare_core.utils.datetime_utils import get_current_date, get_current_utc, month_bounds


@pytest.fixture
def dashboard(async_session, service_kwargs):
    return DashboardService(async_session, **service_kwargs)


@pytest.fixture
def completed(appointment_factory, async_session, pet, manager):
    """Create a completed appointment charged at the given price."""

    async def _create(service, price, **kwargs):
        return await appointment_factory.create(
            async_session,
            pet,
            service,
            manager,
            status=AppointmentStatus.COMPLETED,
            final_price=Decimal(price),
            **kwargs,
        )

    return _create


@pytest.mark.asyncio
class TestDashboardBasics:
    """Test cases shared by every role."""

    async def test_empty_database_yields_zeros(self, dashboard, manager):
        response = await dashboard.get_dashboard(manager)

        assert response.role == "general_manager"
        assert response.stats.total_clients == 0
        assert response.stats.appointments_today == 0
        assert response.stats.monthly_revenue == Decimal("0.00")
        assert response.upcoming_appointments == []
        assert response.popular_services == []

    async def test_public_user_has_no_dashboard(self, dashboard, public_user):
        with pytest.raises(AuthorizationException):
            await dashboard.get_dashboard(public_user)

    async def test_anonymous_has_no_dashboard(self, dashboard):
        with pytest.raises(AuthorizationException):
            await dashboard.get_dashboard(None)

    async def test_general_counters(
        self, dashboard, spa_assistant, pet, pet_factory, async_session, service_kwargs
    ):
        await pet_factory.create(async_session, client=pet.client)
        await PqrService(async_session, **service_kwargs).submit(
            {
                "client_name": "Laura Gomez",
                "client_email": "laura@example.com",
                "type": "sugerencia",
                "subject": "Longer hours",
                "description": "Please open on Sundays.",
            }
        )

        stats = (await dashboard.get_dashboard(spa_assistant)).stats

        assert stats.total_clients == 1
        assert stats.total_pets == 2
        assert stats.pending_pqrs == 1

    async def test_other_roles_stats_are_absent(self, dashboard, spa_assistant):
        stats = (await dashboard.get_dashboard(spa_assistant)).stats

        assert stats.spa_appointments_today == 0
        assert stats.monthly_revenue is None
        assert stats.active_stays is None
        assert stats.pending_medical_records is None


@pytest.mark.asyncio
class TestSegmentScopedCounts:
    """Test cases for appointment aggregates narrowed to segments."""

    async def test_appointments_today_by_segment(
        self, dashboard, spa_assistant, manager, pet, services, appointment_factory, async_session
    ):
        now = get_current_utc()
        for segment in ServiceSegment:
            await appointment_factory.create(
                async_session, pet, services[segment], manager, appointment_date=now
            )

        spa_stats = (await dashboard.get_dashboard(spa_assistant)).stats
        manager_stats = (await dashboard.get_dashboard(manager)).stats

        assert spa_stats.appointments_today == 1
        assert spa_stats.spa_appointments_today == 1
        assert manager_stats.appointments_today == 3

    async def test_upcoming_is_scoped_and_limited(
        self, dashboard, spa_assistant, manager, pet, services, appointment_factory, async_session
    ):
        start = get_current_utc() + timedelta(hours=2)
        for offset in range(7):
            await appointment_factory.create(
                async_session,
                pet,
                services[ServiceSegment.SPA],
                manager,
                appointment_date=start + timedelta(days=offset),
            )
        await appointment_factory.create(
            async_session, pet, services[ServiceSegment.CLINIC], manager, appointment_date=start
        )
        await appointment_factory.create(
            async_session,
            pet,
            services[ServiceSegment.SPA],
            manager,
            appointment_date=get_current_utc() - timedelta(days=1),
        )

        upcoming = (await dashboard.get_dashboard(spa_assistant)).upcoming_appointments

        assert len(upcoming) == 5
        assert upcoming[0].appointment_date == start
        assert {a.service_id for a in upcoming} == {services[ServiceSegment.SPA].id}

    async def test_popular_services(
        self, dashboard, manager, pet, services, appointment_factory, async_session
    ):
        for _ in range(3):
            await appointment_factory.create(
                async_session, pet, services[ServiceSegment.SPA], manager
            )
        await appointment_factory.create(
            async_session, pet, services[ServiceSegment.HOTEL], manager
        )

        popular = (await dashboard.get_dashboard(manager)).popular_services

        assert [(p.name, p.appointment_count) for p in popular] == [
            ("Spa basic", 3),
            ("Hotel basic", 1),
        ]

    async def test_popular_services_hide_other_segments(
        self, dashboard, spa_assistant, manager, pet, services, appointment_factory, async_session
    ):
        await appointment_factory.create(
            async_session, pet, services[ServiceSegment.HOTEL], manager
        )

        assert (await dashboard.get_dashboard(spa_assistant)).popular_services == []


@pytest.mark.asyncio
class TestRoleStatistics:
    """Test cases for per-role statistics."""

    async def test_manager_revenue_counts_completed_this_month(
        self, dashboard, manager, pet, services, completed, appointment_factory, async_session
    ):
        now = get_current_utc()
        month_start, _ = month_bounds(now.year, now.month)
        await completed(services[ServiceSegment.SPA], "45000.50", appointment_date=now)
        await completed(services[ServiceSegment.CLINIC], "80000", appointment_date=now)
        await completed(
            services[ServiceSegment.CLINIC],
            "99999",
            appointment_date=month_start - timedelta(days=1),
        )
        await appointment_factory.create(
            async_session,
            pet,
            services[ServiceSegment.SPA],
            manager,
            appointment_date=now,
            final_price=Decimal("1000"),
        )

        stats = (await dashboard.get_dashboard(manager)).stats

        assert stats.monthly_revenue == Decimal("125000.50")
        assert stats.total_services == 3

    async def test_manager_active_stays(
        self, dashboard, manager, pet, hotel_stay_factory, async_session
    ):
        await hotel_stay_factory.create(async_session, pet, status=HotelStayStatus.ACTIVE)
        await hotel_stay_factory.create(async_session, pet)

        stats = (await dashboard.get_dashboard(manager)).stats

        assert stats.active_hotel_stays == 1

    async def test_hotel_movements_today(
        self, dashboard, hotel_employee, pet, hotel_stay_factory, async_session
    ):
        today = get_current_date()
        await hotel_stay_factory.create(
            async_session, pet, check_in_date=today, check_out_date=today + timedelta(days=2)
        )
        await hotel_stay_factory.create(
            async_session,
            pet,
            check_in_date=today - timedelta(days=3),
            check_out_date=today,
            status=HotelStayStatus.ACTIVE,
        )

        stats = (await dashboard.get_dashboard(hotel_employee)).stats

        assert stats.active_stays == 1
        assert stats.checkins_today == 1
        assert stats.checkouts_today == 1

    async def test_clinic_pending_medical_records(
        self, dashboard, clinic_admin, pet, services, completed, async_session
    ):
        recorded = await completed(services[ServiceSegment.CLINIC], "60000")
        await completed(services[ServiceSegment.CLINIC], "60000")
        await completed(services[ServiceSegment.SPA], "30000")
        async_session.add(
            MedicalRecord(
                pet_id=pet.id,
                appointment_id=recorded.id,
                veterinarian_id=clinic_admin.id,
                diagnosis="Healthy",
                treatment="None",
            )
        )
        await async_session.flush()

        stats = (await dashboard.get_dashboard(clinic_admin)).stats

        assert stats.pending_medical_records == 1

    async def test_spa_revenue_ignores_other_segments(
        self, dashboard, spa_assistant, services, completed
    ):
        now = get_current_utc()
        await completed(services[ServiceSegment.SPA], "30000", appointment_date=now)
        await completed(services[ServiceSegment.CLINIC], "70000", appointment_date=now)

        stats = (await dashboard.get_dashboard(spa_assistant)).stats

        assert stats.spa_revenue_month == Decimal("30000.00")
