"""
Composable query specifications.

A :class:`QuerySpec` is an immutable description of a listing query: the
model being listed, a tuple of predicates that are ANDed together and an
ordering. Callers add their search and filter predicates, the segment
filter adds its own, and neither replaces the other.

Predicates reach related tables through relationship paths rendered as
EXISTS subqueries, so they never multiply rows and counts stay exact.

Example:
    >>> spec = QuerySpec(Appointment).where(
    ...     Equals(Appointment.status, AppointmentStatus.SCHEDULED),
    ...     TextSearch("luna", (Related((Appointment.pet,), Pet.name),)),
    ... )
    >>> stmt = spec.statement()
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Collection, List, Optional, Sequence, Tuple, Type, Union

from sqlalchemy import ColumnElement, Select, and_, false, func, or_, select, true
from sqlalchemy.orm import InstrumentedAttribute

from ..models.service import ServiceCategory
from ..utils.datetime_utils import day_bounds
from ..utils.validation import escape_like

RelationshipPath = Tuple[InstrumentedAttribute, ...]


def through(path: Sequence[InstrumentedAttribute], clause: ColumnElement) -> ColumnElement:
    """
    Wrap a clause so it applies at the end of a many-to-one relationship path.

    ``through((Appointment.service, Service.category), criterion)`` renders
    as ``EXISTS (service ... AND EXISTS (category ... AND criterion))``.
    """
    for relationship_attr in reversed(path):
        clause = relationship_attr.has(clause)
    return clause


class Predicate:
    """Base class for filter predicates."""

    def clause(self) -> ColumnElement:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class Where(Predicate):
    """Arbitrary SQL expression used as a predicate."""

    expression: ColumnElement

    def clause(self) -> ColumnElement:
        return self.expression


@dataclass(frozen=True, eq=False)
class Equals(Predicate):
    """Column equals a value. A None value matches NULL."""

    column: InstrumentedAttribute
    value: Any

    def clause(self) -> ColumnElement:
        if self.value is None:
            return self.column.is_(None)
        return self.column == self.value


@dataclass(frozen=True, eq=False)
class OneOf(Predicate):
    """Column value is in a collection. An empty collection matches nothing."""

    column: InstrumentedAttribute
    values: Collection[Any]

    def clause(self) -> ColumnElement:
        if not self.values:
            return false()
        return self.column.in_(list(self.values))


@dataclass(frozen=True, eq=False)
class Related:
    """A column reached through a relationship path."""

    path: RelationshipPath
    column: InstrumentedAttribute


SearchField = Union[InstrumentedAttribute, Related]


@dataclass(frozen=True, eq=False)
class TextSearch(Predicate):
    """
    Case-insensitive substring match on any of several fields.

    A blank term matches everything.
    """

    term: str
    fields: Tuple[SearchField, ...]

    def clause(self) -> ColumnElement:
        term = (self.term or "").strip()
        if not term or not self.fields:
            return true()
        pattern = f"%{escape_like(term)}%"
        clauses = []
        for search_field in self.fields:
            if isinstance(search_field, Related):
                clauses.append(
                    through(
                        search_field.path,
                        search_field.column.ilike(pattern, escape="\\"),
                    )
                )
            else:
                clauses.append(search_field.ilike(pattern, escape="\\"))
        return or_(*clauses)


@dataclass(frozen=True, eq=False)
class DateRange(Predicate):
    """Inclusive range on a DATE column. Open ends are unbounded."""

    column: InstrumentedAttribute
    start: Optional[date] = None
    end: Optional[date] = None

    def clause(self) -> ColumnElement:
        clauses = []
        if self.start is not None:
            clauses.append(self.column >= self.start)
        if self.end is not None:
            clauses.append(self.column <= self.end)
        return and_(true(), *clauses)


@dataclass(frozen=True, eq=False)
class DateTimeRange(Predicate):
    """
    Range of whole days on a timestamp column.

    ``start`` and ``end`` are calendar days and both are inclusive.
    """

    column: InstrumentedAttribute
    start: Optional[date] = None
    end: Optional[date] = None

    def clause(self) -> ColumnElement:
        clauses = []
        if self.start is not None:
            clauses.append(self.column >= day_bounds(self.start)[0])
        if self.end is not None:
            clauses.append(self.column < day_bounds(self.end)[1])
        return and_(true(), *clauses)


@dataclass(frozen=True, eq=False)
class SegmentIn(Predicate):
    """
    Row's service category segment is one of the given segments.

    ``path`` leads from the queried model to :class:`ServiceCategory`; it
    is empty when the categories themselves are queried.
    """

    path: RelationshipPath
    segments: Collection[Any]

    def clause(self) -> ColumnElement:
        if not self.segments:
            return false()
        return through(self.path, ServiceCategory.segment.in_(list(self.segments)))


@dataclass(frozen=True, eq=False)
class QuerySpec:
    """
    Immutable listing query.

    Attributes:
        model: Mapped class being queried
        predicates: Filters, all of which must hold
        order: ORDER BY expressions
    """

    model: Type[Any]
    predicates: Tuple[Predicate, ...] = ()
    order: Tuple[Any, ...] = field(default=())

    def where(self, *predicates: Optional[Predicate]) -> "QuerySpec":
        """Return a new spec with extra predicates. None entries are skipped."""
        added = tuple(p for p in predicates if p is not None)
        return QuerySpec(self.model, self.predicates + added, self.order)

    def ordered_by(self, *order: Any) -> "QuerySpec":
        """Return a new spec with a replaced ordering."""
        return QuerySpec(self.model, self.predicates, tuple(order))

    def clauses(self) -> List[ColumnElement]:
        return [predicate.clause() for predicate in self.predicates]

    def statement(self) -> Select:
        """SELECT of the model rows matching every predicate."""
        stmt = select(self.model)
        if self.predicates:
            stmt = stmt.where(*self.clauses())
        if self.order:
            stmt = stmt.order_by(*self.order)
        return stmt

    def count_statement(self) -> Select:
        """SELECT COUNT(*) of the matching rows."""
        stmt = select(func.count()).select_from(self.model)
        if self.predicates:
            stmt = stmt.where(*self.clauses())
        return stmt
