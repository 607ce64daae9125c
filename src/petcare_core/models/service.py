"""
Service catalog models for the petcare-core package.

Services are grouped into categories, and each category carries the
business segment (clinic, hotel or spa) that decides which roles can see
the services and everything derived from them.
"""

import enum
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, enum_column_type


class ServiceSegment(enum.Enum):
    """Business lines a service category can belong to."""

    CLINIC = "clinic"
    HOTEL = "hotel"
    SPA = "spa"


class ServiceCategory(BaseModel):
    """Group of services within one segment."""

    __tablename__ = "service_categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    segment: Mapped[ServiceSegment] = mapped_column(
        enum_column_type(ServiceSegment, "service_segment"),
        nullable=False,
        index=True,
        comment="Business line that gates visibility by role",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ServiceCategory(id={self.id}, name='{self.name}', segment='{self.segment.value}')>"


class Service(BaseModel):
    """
    Priced service offered to clients.

    Only active services appear in the public catalog.
    """

    __tablename__ = "services"

    def __init__(self, **kwargs):
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        super().__init__(**kwargs)

    service_category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="List price",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    category: Mapped[ServiceCategory] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        Index("idx_services_active_name", "is_active", "name"),
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', price={self.price})>"

    @property
    def segment(self) -> ServiceSegment:
        """Segment of the service's category."""
        return self.category.segment
