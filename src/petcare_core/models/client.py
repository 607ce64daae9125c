"""
Client model for the petcare-core package.
"""

import enum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, enum_column_type


class IdentificationType(enum.Enum):
    """Kinds of identity document a client can register with."""

    CC = "CC"  # cédula de ciudadanía
    CE = "CE"  # cédula de extranjería
    NIT = "NIT"
    PP = "PP"  # passport


class Client(BaseModel):
    """
    Pet owner and customer of the business.

    Email and identification number are unique across clients. A client
    owns pets, appointments and hotel stays and cannot be deleted while
    any of them exist.
    """

    __tablename__ = "clients"

    def __init__(self, **kwargs):
        if "identification_type" not in kwargs:
            kwargs["identification_type"] = IdentificationType.CC
        super().__init__(**kwargs)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Client full name",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Contact email, unique per client",
    )

    phone: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Contact phone number",
    )

    address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Postal address",
    )

    identification_type: Mapped[IdentificationType] = mapped_column(
        enum_column_type(IdentificationType, "identification_type"),
        nullable=False,
        default=IdentificationType.CC,
        comment="Type of identity document",
    )

    identification_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        comment="Identity document number, unique per client",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.name}', email='{self.email}')>"
