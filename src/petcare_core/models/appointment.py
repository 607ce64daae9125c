"""
Appointment model for the petcare-core package.

An appointment books a service for a client's pet with an assigned staff
member. Its status moves forward only:

    scheduled -> in_progress -> completed
    scheduled | in_progress -> cancelled

Completed and cancelled appointments are final. Re-setting the current
status of an open appointment is a no-op.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..exceptions import InvalidStatusTransitionException
from .base import BaseModel, enum_column_type
from .client import Client
from .pet import Pet
from .service import Service
from .user import User


class AppointmentStatus(enum.Enum):
    """Enumeration of appointment statuses."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


APPOINTMENT_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


class Appointment(BaseModel):
    """
    Booking of a service for a pet.

    ``final_price`` is what was actually charged and feeds revenue
    statistics once the appointment is completed.
    """

    __tablename__ = "appointments"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = AppointmentStatus.SCHEDULED
        super().__init__(**kwargs)

    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Staff member assigned to the appointment",
    )

    appointment_date: Mapped[datetime] = mapped_column(
        nullable=False,
        comment="Scheduled date and time (UTC)",
    )

    status: Mapped[AppointmentStatus] = mapped_column(
        enum_column_type(AppointmentStatus, "appointment_status"),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    final_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Amount charged",
    )

    client: Mapped[Client] = relationship(lazy="selectin")
    pet: Mapped[Pet] = relationship(lazy="selectin")
    service: Mapped[Service] = relationship(lazy="selectin")
    user: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "final_price IS NULL OR final_price >= 0",
            name="final_price_non_negative",
        ),
        Index("idx_appointments_status_date", "status", "appointment_date"),
        Index("idx_appointments_date", "appointment_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, pet_id={self.pet_id}, "
            f"date={self.appointment_date}, status='{self.status.value}')>"
        )

    @property
    def is_final(self) -> bool:
        """Whether the appointment can no longer change status."""
        return not APPOINTMENT_TRANSITIONS[self.status]

    def can_transition_to(self, status: AppointmentStatus) -> bool:
        """Check if the appointment may move to the given status."""
        if status == self.status:
            return not self.is_final
        return status in APPOINTMENT_TRANSITIONS[self.status]

    def transition_to(self, status: AppointmentStatus) -> bool:
        """
        Move the appointment to a new status.

        Setting the current status again is accepted and changes nothing,
        except on a final appointment where any status change is rejected.

        Returns:
            True if the status changed

        Raises:
            InvalidStatusTransitionException: If the move is not allowed
        """
        if status == self.status and not self.is_final:
            return False
        if status not in APPOINTMENT_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionException(
                "appointment", self.status.value, status.value
            )
        self.status = status
        return True

