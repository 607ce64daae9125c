"""
Pet model for the petcare-core package.

Every pet belongs to exactly one client. Appointments, hotel stays and
medical records that reference a pet must reference its owner as well;
the entity services check this at write time.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..utils.datetime_utils import calculate_pet_age, format_pet_age
from .base import BaseModel, enum_column_type
from .client import Client


class PetGender(enum.Enum):
    """Enumeration of pet genders."""

    MALE = "male"
    FEMALE = "female"


class Pet(BaseModel):
    """
    Pet owned by a client.

    Species and breed are free text. Weight is in kilograms, between 0 and
    999.99. ``photo`` holds a storage key, not the image itself.
    """

    __tablename__ = "pets"

    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Owner of the pet",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    species: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Species, e.g. perro or gato",
    )

    breed: Mapped[str] = mapped_column(String(100), nullable=False)

    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    gender: Mapped[PetGender] = mapped_column(
        enum_column_type(PetGender, "pet_gender"),
        nullable=False,
    )

    weight: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(8, 2),
        nullable=True,
        comment="Weight in kilograms",
    )

    medical_observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    photo: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Storage key of the pet photo",
    )

    client: Mapped[Client] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "weight IS NULL OR (weight >= 0 AND weight <= 999.99)",
            name="weight_range",
        ),
        Index("idx_pets_species", "species"),
        Index("idx_pets_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Pet(id={self.id}, name='{self.name}', species='{self.species}', client_id={self.client_id})>"

    @property
    def age(self) -> Optional[int]:
        """Age in whole years, or None when the birth date is unknown."""
        if self.birth_date is None:
            return None
        return calculate_pet_age(self.birth_date)["years"]

    @property
    def age_display(self) -> str:
        """Get a human-readable age display."""
        if self.birth_date is None:
            return "Unknown"
        return format_pet_age(calculate_pet_age(self.birth_date))

    def belongs_to(self, client_id: uuid.UUID) -> bool:
        """Check whether the pet is owned by the given client."""
        return self.client_id == client_id
