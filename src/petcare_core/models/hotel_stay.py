"""
Hotel stay model for the petcare-core package.

A stay books a room for a client's pet between a check-in and a check-out
date. ``total_cost`` is always ``daily_rate`` times the number of whole
days between those dates and is recomputed whenever either changes.

Status moves forward only:

    reserved -> active (check-in) -> completed (check-out)
    reserved | active -> cancelled
"""

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..exceptions import InvalidStatusTransitionException
from ..utils.datetime_utils import whole_days_between
from .base import BaseModel, enum_column_type
from .client import Client
from .pet import Pet


class RoomType(enum.Enum):
    """Room categories available in the hotel."""

    STANDARD = "standard"
    PREMIUM = "premium"
    DELUXE = "deluxe"


class HotelStayStatus(enum.Enum):
    """Enumeration of hotel stay statuses."""

    RESERVED = "reserved"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


HOTEL_STAY_TRANSITIONS: Dict[HotelStayStatus, FrozenSet[HotelStayStatus]] = {
    HotelStayStatus.RESERVED: frozenset(
        {HotelStayStatus.ACTIVE, HotelStayStatus.CANCELLED}
    ),
    HotelStayStatus.ACTIVE: frozenset(
        {HotelStayStatus.COMPLETED, HotelStayStatus.CANCELLED}
    ),
    HotelStayStatus.COMPLETED: frozenset(),
    HotelStayStatus.CANCELLED: frozenset(),
}

MONEY_QUANTUM = Decimal("0.01")


def calculate_total_cost(
    daily_rate: Decimal, check_in_date: date, check_out_date: date
) -> Decimal:
    """
    Total price of a stay.

    Args:
        daily_rate: Price per day
        check_in_date: First day of the stay
        check_out_date: Day the pet leaves

    Returns:
        daily_rate times whole days, rounded to cents

    Example:
        >>> calculate_total_cost(Decimal("40000"), date(2025, 6, 1), date(2025, 6, 4))
        Decimal('120000.00')
    """
    days = whole_days_between(check_in_date, check_out_date)
    return (Decimal(daily_rate) * days).quantize(MONEY_QUANTUM)


class HotelStay(BaseModel):
    """Boarding of a pet in the hotel."""

    __tablename__ = "hotel_stays"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = HotelStayStatus.RESERVED
        super().__init__(**kwargs)
        if self.total_cost is None and None not in (
            self.daily_rate,
            self.check_in_date,
            self.check_out_date,
        ):
            self.recalculate_total_cost()

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)

    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)

    room_type: Mapped[RoomType] = mapped_column(
        enum_column_type(RoomType, "room_type"),
        nullable=False,
    )

    special_requirements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    daily_rate: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)

    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="daily_rate times whole days of the stay",
    )

    status: Mapped[HotelStayStatus] = mapped_column(
        enum_column_type(HotelStayStatus, "hotel_stay_status"),
        nullable=False,
        default=HotelStayStatus.RESERVED,
    )

    client: Mapped[Client] = relationship(lazy="selectin")
    pet: Mapped[Pet] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="check_out_after_check_in"),
        CheckConstraint("daily_rate >= 0", name="daily_rate_non_negative"),
        Index("idx_hotel_stays_status", "status"),
        Index("idx_hotel_stays_dates", "check_in_date", "check_out_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<HotelStay(id={self.id}, pet_id={self.pet_id}, "
            f"check_in={self.check_in_date}, status='{self.status.value}')>"
        )

    @property
    def duration_days(self) -> int:
        """Length of the stay in whole days."""
        return whole_days_between(self.check_in_date, self.check_out_date)

    def recalculate_total_cost(self) -> Decimal:
        """Recompute and store total_cost from the current rate and dates."""
        self.total_cost = calculate_total_cost(
            self.daily_rate, self.check_in_date, self.check_out_date
        )
        return self.total_cost

    def _move_to(self, status: HotelStayStatus, message: Optional[str] = None) -> None:
        if status not in HOTEL_STAY_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionException(
                "hotel stay", self.status.value, status.value, message=message
            )
        self.status = status

    def check_in(self) -> None:
        """Register the pet's arrival. Only reserved stays can check in."""
        if self.status != HotelStayStatus.RESERVED:
            raise InvalidStatusTransitionException(
                "hotel stay",
                self.status.value,
                HotelStayStatus.ACTIVE.value,
                message="Only reserved stays can be checked in",
            )
        self._move_to(HotelStayStatus.ACTIVE)

    def check_out(self) -> None:
        """Register the pet's departure. Only active stays can check out."""
        if self.status != HotelStayStatus.ACTIVE:
            raise InvalidStatusTransitionException(
                "hotel stay",
                self.status.value,
                HotelStayStatus.COMPLETED.value,
                message="Only active stays can be checked out",
            )
        self._move_to(HotelStayStatus.COMPLETED)

    def cancel(self) -> None:
        """Cancel a reserved or active stay."""
        self._move_to(HotelStayStatus.CANCELLED)

    def transition_to(self, status: HotelStayStatus) -> bool:
        """
        Move the stay to a new status through the matching operation.

        Returns:
            True if the status changed
        """
        if status == self.status:
            if HOTEL_STAY_TRANSITIONS[self.status]:
                return False
            raise InvalidStatusTransitionException(
                "hotel stay",
                self.status.value,
                status.value,
                message=f"Hotel stay is already {status.value}",
            )
        if status == HotelStayStatus.ACTIVE:
            self.check_in()
        elif status == HotelStayStatus.COMPLETED:
            self.check_out()
        else:
            self._move_to(status)
        return True
