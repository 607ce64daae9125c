"""
Medical record and vaccination models for the petcare-core package.
"""

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..utils.datetime_utils import get_current_date
from .appointment import Appointment
from .base import BaseModel
from .pet import Pet
from .user import User


class MedicalRecord(BaseModel):
    """
    Clinical note written by a veterinarian about a pet.

    The record may reference the appointment it came from. When it does,
    the appointment must be for the same pet.
    """

    __tablename__ = "medical_records"

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    appointment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
        comment="Appointment the record was written for, if any",
    )

    veterinarian_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="User with a clinical role who wrote the record",
    )

    diagnosis: Mapped[str] = mapped_column(Text, nullable=False)

    treatment: Mapped[str] = mapped_column(Text, nullable=False)

    medications: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    next_visit: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    pet: Mapped[Pet] = relationship(lazy="selectin")
    appointment: Mapped[Optional[Appointment]] = relationship(lazy="selectin")
    veterinarian: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (Index("idx_medical_records_pet_created", "pet_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<MedicalRecord(id={self.id}, pet_id={self.pet_id}, veterinarian_id={self.veterinarian_id})>"


class Vaccination(BaseModel):
    """Vaccine applied to a pet. Removed together with the pet."""

    __tablename__ = "vaccinations"

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    vaccine_name: Mapped[str] = mapped_column(String(255), nullable=False)

    application_date: Mapped[date] = mapped_column(Date, nullable=False)

    next_dose_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    pet: Mapped[Pet] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "next_dose_date IS NULL OR next_dose_date > application_date",
            name="next_dose_after_application",
        ),
        Index("idx_vaccinations_next_dose", "next_dose_date"),
    )

    def __repr__(self) -> str:
        return f"<Vaccination(id={self.id}, pet_id={self.pet_id}, vaccine='{self.vaccine_name}')>"

    def is_overdue(self, reference_date: Optional[date] = None) -> bool:
        """Whether the next dose date has passed."""
        if self.next_dose_date is None:
            return False
        return self.next_dose_date < (reference_date or get_current_date())
