"""
PQR model for the petcare-core package.

A PQR (petición, queja, reclamo, sugerencia) is a request or complaint
submitted by anyone, including people who are not registered clients.
It stores the submitter's contact data as plain fields.

Status only moves forward, possibly skipping states:

    pending -> in_process -> resolved -> closed

``resolved_at`` is stamped whenever the PQR enters ``resolved`` from
another status. Re-saving an already resolved PQR keeps its timestamp.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..exceptions import InvalidStatusTransitionException
from ..utils.datetime_utils import get_current_utc
from .base import BaseModel, enum_column_type
from .user import User


class PqrType(enum.Enum):
    """Kinds of PQR."""

    PETICION = "peticion"
    QUEJA = "queja"
    RECLAMO = "reclamo"
    SUGERENCIA = "sugerencia"


class PqrStatus(enum.Enum):
    """Enumeration of PQR statuses, in lifecycle order."""

    PENDING = "pending"
    IN_PROCESS = "in_process"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = list(PqrStatus)


class Pqr(BaseModel):
    """Customer request, complaint, claim or suggestion."""

    __tablename__ = "pqrs"

    def __init__(self, **kwargs):
        if "status" not in kwargs:
            kwargs["status"] = PqrStatus.PENDING
        super().__init__(**kwargs)

    client_name: Mapped[str] = mapped_column(String(255), nullable=False)

    client_email: Mapped[str] = mapped_column(String(255), nullable=False)

    client_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    type: Mapped[PqrType] = mapped_column(
        enum_column_type(PqrType, "pqr_type"),
        nullable=False,
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[PqrStatus] = mapped_column(
        enum_column_type(PqrStatus, "pqr_status"),
        nullable=False,
        default=PqrStatus.PENDING,
    )

    response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    assigned_to: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Staff member handling the PQR",
    )

    resolved_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    assignee: Mapped[Optional[User]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_pqrs_status_created", "status", "created_at"),
        Index("idx_pqrs_type", "type"),
    )

    def __repr__(self) -> str:
        return f"<Pqr(id={self.id}, type='{self.type.value}', status='{self.status.value}')>"

    @property
    def is_closed(self) -> bool:
        return self.status == PqrStatus.CLOSED

    def is_assigned_to(self, user_id: uuid.UUID) -> bool:
        """Check whether the PQR is assigned to the given user."""
        return self.assigned_to is not None and self.assigned_to == user_id

    def can_transition_to(self, status: PqrStatus) -> bool:
        """Statuses may be kept or moved forward, never back."""
        return status.rank >= self.status.rank

    def transition_to(
        self, status: PqrStatus, now: Optional[datetime] = None
    ) -> bool:
        """
        Move the PQR to a new status.

        Args:
            status: Target status
            now: Timestamp to use for resolved_at (defaults to current UTC)

        Returns:
            True if the status changed

        Raises:
            InvalidStatusTransitionException: If the move goes backward
        """
        if status == self.status:
            return False
        if not self.can_transition_to(status):
            raise InvalidStatusTransitionException(
                "PQR", self.status.value, status.value
            )
        self.status = status
        if status == PqrStatus.RESOLVED:
            self.resolved_at = now or get_current_utc()
        return True

    def assign(self, user_id: Optional[uuid.UUID]) -> None:
        """
        Assign the PQR to a staff member, or clear the assignee with None.

        A pending PQR moves to in_process when assigned. Later statuses are
        kept.

        Raises:
            InvalidStatusTransitionException: If the PQR is closed
        """
        if self.is_closed:
            raise InvalidStatusTransitionException(
                "PQR",
                self.status.value,
                self.status.value,
                message="Closed PQRs cannot be reassigned",
            )
        self.assigned_to = user_id
        if user_id is not None and self.status == PqrStatus.PENDING:
            self.status = PqrStatus.IN_PROCESS

    def respond(self, response: str, now: Optional[datetime] = None) -> None:
        """
        Record the answer to the PQR and mark it resolved.

        Raises:
            InvalidStatusTransitionException: If the PQR is closed
        """
        if self.is_closed:
            raise InvalidStatusTransitionException(
                "PQR",
                self.status.value,
                PqrStatus.RESOLVED.value,
                message="Closed PQRs cannot be answered",
            )
        self.response = response
        self.transition_to(PqrStatus.RESOLVED, now=now)
