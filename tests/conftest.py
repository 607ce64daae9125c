"""
Pytest configuration and fixtures for petcare-core tests.

This module provides common fixtures for all tests in the petcare-core
package: an in-memory SQLite database with foreign keys enforced, one user
per role, factory classes for test data and a small service catalog with
one category per segment.
"""

import uuid
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from petcare_core.authz import PermissionGuard, SegmentFilter, default_registry
from petcare_core.database.connection import create_engine
from petcare_core.database.session import SessionManager
from petcare_core.models import (
    Appointment,
    AppointmentStatus,
    Client,
    HotelStay,
    Pet,
    PetGender,
    RoomType,
    Service,
    ServiceCategory,
    ServiceSegment,
    User,
    UserRole,
)
from petcare_core.models.base import Base
from petcare_core.utils.config import AppSettings
from petcare_core.utils.datetime_utils import get_current_date, get_current_utc

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(TEST_DATABASE_URL)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_manager(
    test_engine: AsyncEngine,
) -> AsyncGenerator[SessionManager, None]:
    """Session manager over a freshly created schema."""
    manager = SessionManager(test_engine)
    await manager.initialize_database(Base.metadata)
    yield manager


@pytest_asyncio.fixture
async def async_session(
    test_session_manager: SessionManager,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide an async database session for testing.

    Services only flush, so nothing outlives the test's database.
    """
    async with test_session_manager.get_session() as session:
        yield session


@pytest.fixture
def guard() -> PermissionGuard:
    return PermissionGuard(default_registry())


@pytest.fixture
def segment_filter(guard: PermissionGuard) -> SegmentFilter:
    return SegmentFilter(guard)


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Settings with a small page size and photos under a temp directory."""
    return AppSettings(page_size=5, photo_dir=str(tmp_path / "photos"), photo_max_kb=64)


@pytest.fixture
def service_kwargs(guard, segment_filter, settings) -> Dict[str, object]:
    """Keyword arguments shared by every entity service under test."""
    return {"guard": guard, "segment_filter": segment_filter, "settings": settings}


# Factory classes for creating test entities
class UserFactory:
    """Factory for creating test User instances."""

    @staticmethod
    def build(**kwargs) -> User:
        """Build a User instance without saving to database."""
        defaults = {
            "name": "Test User",
            "email": f"user_{uuid.uuid4().hex[:8]}@example.com",
            "phone": "3001234567",
            "position": "Staff",
            "role": UserRole.PUBLIC,
            "is_active": True,
        }
        defaults.update(kwargs)
        return User(**defaults)

    @staticmethod
    async def create(session: AsyncSession, **kwargs) -> User:
        """Create and save a User instance to the database."""
        user = UserFactory.build(**kwargs)
        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user


class ClientFactory:
    """Factory for creating test Client instances."""

    @staticmethod
    def build(**kwargs) -> Client:
        defaults = {
            "name": "Laura Gomez",
            "email": f"client_{uuid.uuid4().hex[:8]}@example.com",
            "phone": "3109876543",
            "address": "Calle 10 # 5-20",
            "identification_number": str(uuid.uuid4().int)[:10],
        }
        defaults.update(kwargs)
        return Client(**defaults)

    @staticmethod
    async def create(session: AsyncSession, **kwargs) -> Client:
        client = ClientFactory.build(**kwargs)
        session.add(client)
        await session.flush()
        await session.refresh(client)
        return client


class PetFactory:
    """Factory for creating test Pet instances."""

    @staticmethod
    def build(client_id: Optional[uuid.UUID] = None, **kwargs) -> Pet:
        defaults = {
            "client_id": client_id or uuid.uuid4(),
            "name": "Max",
            "species": "perro",
            "breed": "Labrador",
            "gender": PetGender.MALE,
            "weight": Decimal("25.50"),
        }
        defaults.update(kwargs)
        return Pet(**defaults)

    @staticmethod
    async def create(
        session: AsyncSession, client: Optional[Client] = None, **kwargs
    ) -> Pet:
        """Create and save a Pet, creating an owner when none is given."""
        if client is None:
            client = await ClientFactory.create(session)
        pet = PetFactory.build(client_id=client.id, **kwargs)
        session.add(pet)
        await session.flush()
        await session.refresh(pet)
        return pet


class CatalogFactory:
    """Factory for service categories and services."""

    @staticmethod
    async def create_category(
        session: AsyncSession, segment: ServiceSegment, **kwargs
    ) -> ServiceCategory:
        defaults = {"name": f"{segment.value.title()} services", "segment": segment}
        defaults.update(kwargs)
        category = ServiceCategory(**defaults)
        session.add(category)
        await session.flush()
        await session.refresh(category)
        return category

    @staticmethod
    async def create_service(
        session: AsyncSession, category: ServiceCategory, **kwargs
    ) -> Service:
        defaults = {
            "service_category_id": category.id,
            "name": f"{category.segment.value.title()} service {uuid.uuid4().hex[:4]}",
            "price": Decimal("50000.00"),
        }
        defaults.update(kwargs)
        service = Service(**defaults)
        session.add(service)
        await session.flush()
        await session.refresh(service)
        return service


class AppointmentFactory:
    """
    Factory for appointments.

    Rows are inserted directly so tests can place appointments in the
    past, which the service refuses to book.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        pet: Pet,
        service: Service,
        user: User,
        **kwargs,
    ) -> Appointment:
        defaults = {
            "client_id": pet.client_id,
            "pet_id": pet.id,
            "service_id": service.id,
            "user_id": user.id,
            "appointment_date": get_current_utc() + timedelta(days=1),
            "status": AppointmentStatus.SCHEDULED,
        }
        defaults.update(kwargs)
        appointment = Appointment(**defaults)
        session.add(appointment)
        await session.flush()
        await session.refresh(appointment)
        return appointment


class HotelStayFactory:
    """Factory for hotel stays. total_cost is derived by the model."""

    @staticmethod
    async def create(session: AsyncSession, pet: Pet, **kwargs) -> HotelStay:
        check_in = get_current_date() + timedelta(days=1)
        defaults = {
            "client_id": pet.client_id,
            "pet_id": pet.id,
            "check_in_date": check_in,
            "check_out_date": check_in + timedelta(days=3),
            "room_type": RoomType.STANDARD,
            "daily_rate": Decimal("40000.00"),
        }
        defaults.update(kwargs)
        stay = HotelStay(**defaults)
        session.add(stay)
        await session.flush()
        await session.refresh(stay)
        return stay


# Users, one per role
@pytest_asyncio.fixture
async def manager(async_session: AsyncSession) -> User:
    return await UserFactory.create(
        async_session, name="Gloria Manager", role=UserRole.GENERAL_MANAGER
    )


@pytest_asyncio.fixture
async def hotel_employee(async_session: AsyncSession) -> User:
    return await UserFactory.create(
        async_session, name="Hector Hotel", role=UserRole.HOTEL_EMPLOYEE
    )


@pytest_asyncio.fixture
async def clinic_admin(async_session: AsyncSession) -> User:
    return await UserFactory.create(
        async_session, name="Carla Clinic", role=UserRole.CLINIC_ADMIN
    )


@pytest_asyncio.fixture
async def spa_assistant(async_session: AsyncSession) -> User:
    return await UserFactory.create(
        async_session, name="Sofia Spa", role=UserRole.SPA_ASSISTANT
    )


@pytest_asyncio.fixture
async def public_user(async_session: AsyncSession) -> User:
    return await UserFactory.create(async_session, name="Pablo Public", role=UserRole.PUBLIC)


@pytest_asyncio.fixture
async def inactive_manager(async_session: AsyncSession) -> User:
    return await UserFactory.create(
        async_session,
        name="Ivan Inactive",
        role=UserRole.GENERAL_MANAGER,
        is_active=False,
    )


# Shared records
@pytest_asyncio.fixture
async def client(async_session: AsyncSession) -> Client:
    return await ClientFactory.create(async_session)


@pytest_asyncio.fixture
async def pet(async_session: AsyncSession, client: Client) -> Pet:
    return await PetFactory.create(async_session, client=client)


@pytest_asyncio.fixture
async def categories(async_session: AsyncSession) -> Dict[ServiceSegment, ServiceCategory]:
    """One category per segment."""
    return {
        segment: await CatalogFactory.create_category(async_session, segment)
        for segment in ServiceSegment
    }


@pytest_asyncio.fixture
async def services(
    async_session: AsyncSession, categories: Dict[ServiceSegment, ServiceCategory]
) -> Dict[ServiceSegment, Service]:
    """One active service per segment."""
    return {
        segment: await CatalogFactory.create_service(
            async_session, category, name=f"{segment.value.title()} basic"
        )
        for segment, category in categories.items()
    }


# Factory fixtures
@pytest.fixture
def user_factory() -> UserFactory:
    """Provide UserFactory for tests."""
    return UserFactory


@pytest.fixture
def client_factory() -> ClientFactory:
    return ClientFactory


@pytest.fixture
def pet_factory() -> PetFactory:
    return PetFactory


@pytest.fixture
def catalog_factory() -> CatalogFactory:
    return CatalogFactory


@pytest.fixture
def appointment_factory() -> AppointmentFactory:
    return AppointmentFactory


@pytest.fixture
def hotel_stay_factory() -> HotelStayFactory:
    return HotelStayFactory
