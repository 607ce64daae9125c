"""
Hotel stay Pydantic schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from ..models.hotel_stay import HotelStayStatus, RoomType
from ..utils.datetime_utils import get_current_date, whole_days_between
from ..utils.validation import sanitize_text
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    ClientSummary,
    ListParams,
    PetSummary,
    UpdateSchema,
)

MAX_DAILY_RATE = Decimal("999999.99")


class HotelStayBase(BaseModel):
    """Base HotelStay schema with common fields."""

    model_config = WRITE_CONFIG

    client_id: UUID = Field(..., description="Client owning the pet")
    pet_id: UUID = Field(..., description="Pet staying in the hotel")
    check_in_date: date = Field(..., description="Arrival day")
    check_out_date: date = Field(..., description="Departure day")
    room_type: RoomType = Field(..., description="Room category")
    daily_rate: Decimal = Field(
        ..., description="Price per day", ge=0, le=MAX_DAILY_RATE, decimal_places=2
    )
    special_requirements: Optional[str] = Field(
        None, description="Diet, medication or handling instructions"
    )

    @field_validator("special_requirements")
    @classmethod
    def validate_special_requirements(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @model_validator(mode="after")
    def validate_dates(self) -> "HotelStayBase":
        """Check-out must come after check-in."""
        if self.check_out_date <= self.check_in_date:
            raise ValueError("Check-out date must be after check-in date")
        return self


class HotelStayCreate(HotelStayBase):
    """Schema for booking a new hotel stay."""

    @field_validator("check_in_date")
    @classmethod
    def validate_check_in_date(cls, v: date) -> date:
        if v < get_current_date():
            raise ValueError("Check-in date cannot be in the past")
        return v


class HotelStayUpdate(UpdateSchema):
    """
    Schema for updating an existing stay.

    Date ordering against the stored values is checked by the service,
    since either date may be omitted here.
    """

    client_id: Optional[UUID] = None
    pet_id: Optional[UUID] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    room_type: Optional[RoomType] = None
    daily_rate: Optional[Decimal] = Field(
        None, ge=0, le=MAX_DAILY_RATE, decimal_places=2
    )
    status: Optional[HotelStayStatus] = None
    special_requirements: Optional[str] = None

    @field_validator("special_requirements")
    @classmethod
    def validate_special_requirements(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator(
        "client_id",
        "pet_id",
        "check_in_date",
        "check_out_date",
        "room_type",
        "daily_rate",
        "status",
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "HotelStayUpdate":
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date <= self.check_in_date
        ):
            raise ValueError("Check-out date must be after check-in date")
        return self


class HotelStayResponse(BaseModel):
    """Schema for hotel stay response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    client_id: UUID
    pet_id: UUID
    client: ClientSummary
    pet: PetSummary
    check_in_date: date
    check_out_date: date
    room_type: RoomType
    daily_rate: Decimal
    total_cost: Decimal
    status: HotelStayStatus
    special_requirements: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def duration_days(self) -> int:
        return whole_days_between(self.check_in_date, self.check_out_date)


class HotelStayFilters(ListParams):
    """
    Hotel stay listing filters.

    Search covers client and pet names. The check-in window is inclusive.
    """

    status: Optional[HotelStayStatus] = None
    room_type: Optional[RoomType] = None
    check_in_from: Optional[date] = None
    check_in_to: Optional[date] = None

    @model_validator(mode="after")
    def validate_check_in_window(self) -> "HotelStayFilters":
        if self.check_in_from and self.check_in_to and self.check_in_to < self.check_in_from:
            raise ValueError("check_in_to must be on or after check_in_from")
        return self
