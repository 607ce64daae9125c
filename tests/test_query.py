"""
Tests for query specifications run against the test database.
"""

from datetime import timedelta

import pytest

from petcare_core.authz.query import (
    DateTimeRange,
    Equals,
    OneOf,
    QuerySpec,
    Related,
    SegmentIn,
    TextSearch,
)
from petcare_core.authz.segments import SEGMENT_PATHS
from petcare_core.models import Appointment, Client, Pet, Service, ServiceSegment
from petcare_core.utils.datetime_utils import get_current_date, get_current_utc


async def _ids(session, spec: QuerySpec):
    result = await session.execute(spec.statement())
    return {row.id for row in result.scalars().all()}


async def _count(session, spec: QuerySpec) -> int:
    return (await session.execute(spec.count_statement())).scalar_one()


class TestQuerySpecBuilding:
    """Test cases for spec composition."""

    def test_where_returns_new_spec(self):
        spec = QuerySpec(Client)
        narrowed = spec.where(Equals(Client.name, "Ana"), None)

        assert spec.predicates == ()
        assert len(narrowed.predicates) == 1

    def test_ordered_by_keeps_predicates(self):
        spec = QuerySpec(Client).where(Equals(Client.name, "Ana")).ordered_by(Client.name)

        assert len(spec.predicates) == 1
        assert len(spec.order) == 1


@pytest.mark.asyncio
class TestPredicates:
    """Test cases for predicate semantics."""

    async def test_text_search_is_case_insensitive(self, async_session, client_factory):
        ana = await client_factory.create(async_session, name="Ana Maria Ruiz")
        await client_factory.create(async_session, name="Pedro Lopez")

        spec = QuerySpec(Client).where(TextSearch("mARIa", (Client.name, Client.email)))

        assert await _ids(async_session, spec) == {ana.id}

    async def test_blank_search_matches_everything(self, async_session, client_factory):
        await client_factory.create(async_session)
        await client_factory.create(async_session)

        spec = QuerySpec(Client).where(TextSearch("   ", (Client.name,)))

        assert await _count(async_session, spec) == 2

    async def test_search_wildcards_are_literal(self, async_session, client_factory):
        await client_factory.create(async_session, name="Ana Ruiz")
        percent = await client_factory.create(async_session, name="100% Ruiz")

        spec = QuerySpec(Client).where(TextSearch("%", (Client.name,)))

        assert await _ids(async_session, spec) == {percent.id}

    async def test_search_through_relationship(self, async_session, client_factory, pet_factory):
        owner = await client_factory.create(async_session, name="Camila Torres")
        luna = await pet_factory.create(async_session, client=owner, name="Luna")
        await pet_factory.create(async_session, name="Rocky")

        spec = QuerySpec(Pet).where(TextSearch("camila", (Related((Pet.client,), Client.name),)))

        assert await _ids(async_session, spec) == {luna.id}

    async def test_empty_one_of_matches_nothing(self, async_session, client):
        spec = QuerySpec(Client).where(OneOf(Client.id, []))

        assert await _count(async_session, spec) == 0

    async def test_datetime_range_covers_whole_days(
        self, async_session, pet, services, manager, appointment_factory
    ):
        today = get_current_date()
        tomorrow = await appointment_factory.create(
            async_session, pet, services[ServiceSegment.SPA], manager,
            appointment_date=get_current_utc() + timedelta(days=1),
        )
        await appointment_factory.create(
            async_session, pet, services[ServiceSegment.SPA], manager,
            appointment_date=get_current_utc() + timedelta(days=10),
        )

        day = today + timedelta(days=1)
        spec = QuerySpec(Appointment).where(
            DateTimeRange(Appointment.appointment_date, day, day)
        )

        assert await _ids(async_session, spec) == {tomorrow.id}


@pytest.mark.asyncio
class TestSegmentPredicate:
    """Test cases for segment narrowing through relationships."""

    async def test_services_by_segment(self, async_session, services):
        spec = QuerySpec(Service).where(
            SegmentIn(SEGMENT_PATHS[Service], {ServiceSegment.SPA, ServiceSegment.HOTEL})
        )

        assert await _ids(async_session, spec) == {
            services[ServiceSegment.SPA].id,
            services[ServiceSegment.HOTEL].id,
        }

    async def test_empty_segment_set_matches_nothing(self, async_session, services):
        spec = QuerySpec(Service).where(SegmentIn(SEGMENT_PATHS[Service], frozenset()))

        assert await _count(async_session, spec) == 0

    async def test_appointments_count_once_per_row(
        self, async_session, pet, services, manager, appointment_factory
    ):
        for _ in range(3):
            await appointment_factory.create(
                async_session, pet, services[ServiceSegment.CLINIC], manager
            )
        await appointment_factory.create(async_session, pet, services[ServiceSegment.SPA], manager)

        spec = QuerySpec(Appointment).where(
            SegmentIn(SEGMENT_PATHS[Appointment], {ServiceSegment.CLINIC})
        )

        assert await _count(async_session, spec) == 3

    async def test_scope_query_keeps_caller_filters(
        self, async_session, segment_filter, spa_assistant, services, categories
    ):
        # A caller filter on a clinic category combined with a spa-only user
        spec = QuerySpec(Service).where(
            Equals(Service.service_category_id, categories[ServiceSegment.CLINIC].id)
        )

        scoped = segment_filter.scope_query(spec, spa_assistant)

        assert await _count(async_session, scoped) == 0
        assert await _count(async_session, spec) == 1
