"""
Appointment Pydantic schemas for validation and serialization.

This module contains Pydantic schemas for Appointment validation,
including create, update, status change, response and listing schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models.appointment import AppointmentStatus
from ..utils.datetime_utils import get_current_utc
from ..utils.validation import sanitize_text
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    ClientSummary,
    DateWindowParams,
    PetSummary,
    UpdateSchema,
    UserSummary,
    require_aware,
)
from .service import ServiceResponse

MAX_PRICE = Decimal("99999999.99")


class AppointmentBase(BaseModel):
    """Base Appointment schema with common fields."""

    model_config = WRITE_CONFIG

    client_id: UUID = Field(..., description="Client booking the appointment")
    pet_id: UUID = Field(..., description="Pet being attended")
    service_id: UUID = Field(..., description="Service booked")
    user_id: UUID = Field(..., description="Staff member assigned")
    appointment_date: datetime = Field(
        ..., description="Scheduled date and time (timezone-aware)"
    )
    notes: Optional[str] = Field(None, description="Additional notes")
    final_price: Optional[Decimal] = Field(
        None, description="Amount charged", ge=0, le=MAX_PRICE, decimal_places=2
    )

    @field_validator("appointment_date")
    @classmethod
    def validate_appointment_date(cls, v: datetime) -> datetime:
        return require_aware(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class AppointmentCreate(AppointmentBase):
    """
    Schema for booking a new appointment.

    New appointments always start as scheduled and must be in the future.
    """

    @field_validator("appointment_date")
    @classmethod
    def validate_future_date(cls, v: datetime) -> datetime:
        v = require_aware(v)
        if v <= get_current_utc():
            raise ValueError("Appointment date must be in the future")
        return v


class AppointmentUpdate(UpdateSchema):
    """
    Schema for updating an existing appointment.

    A status given here goes through the same transition rules as
    :class:`AppointmentStatusUpdate`.
    """

    client_id: Optional[UUID] = None
    pet_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    appointment_date: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None
    final_price: Optional[Decimal] = Field(None, ge=0, le=MAX_PRICE, decimal_places=2)

    @field_validator("appointment_date")
    @classmethod
    def validate_appointment_date(cls, v: Optional[datetime]) -> datetime:
        if v is None:
            raise ValueError("Appointment date cannot be null")
        return require_aware(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("client_id", "pet_id", "service_id", "user_id", "status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class AppointmentStatusUpdate(BaseModel):
    """Schema for moving an appointment to a new status."""

    model_config = WRITE_CONFIG

    status: AppointmentStatus = Field(..., description="New appointment status")


class AppointmentResponse(BaseModel):
    """Schema for appointment response data."""

    model_config = RESPONSE_CONFIG

    id: UUID = Field(..., description="Appointment's unique identifier")
    client_id: UUID
    pet_id: UUID
    service_id: UUID
    user_id: UUID
    client: ClientSummary
    pet: PetSummary
    service: ServiceResponse
    user: UserSummary
    appointment_date: datetime = Field(..., description="Scheduled date and time")
    status: AppointmentStatus = Field(..., description="Current appointment status")
    notes: Optional[str] = None
    final_price: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime


class AppointmentFilters(DateWindowParams):
    """
    Appointment listing filters.

    Search covers client and pet names. The date window applies to the
    appointment date.
    """

    status: Optional[AppointmentStatus] = None
    service_id: Optional[UUID] = None
