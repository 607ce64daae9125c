"""
Medical record and vaccination Pydantic schemas.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from ..utils.datetime_utils import get_current_date
from ..utils.validation import sanitize_text
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    DateWindowParams,
    PetSummary,
    UpdateSchema,
    UserSummary,
    clean_name,
    clean_required_text,
)


def _future_visit(v: Optional[date]) -> Optional[date]:
    if v is not None and v <= get_current_date():
        raise ValueError("Next visit must be after today")
    return v


class MedicalRecordBase(BaseModel):
    """Base MedicalRecord schema with common fields."""

    model_config = WRITE_CONFIG

    pet_id: UUID = Field(..., description="Pet the record is about")
    appointment_id: Optional[UUID] = Field(
        None, description="Appointment the record was written for"
    )
    veterinarian_id: UUID = Field(..., description="Veterinarian writing the record")
    diagnosis: str = Field(..., description="Diagnosis", min_length=1)
    treatment: str = Field(..., description="Prescribed treatment", min_length=1)
    medications: Optional[str] = Field(None, description="Medications and dosage")
    observations: Optional[str] = Field(None, description="Additional observations")
    next_visit: Optional[date] = Field(None, description="Suggested follow-up day")

    @field_validator("diagnosis")
    @classmethod
    def validate_diagnosis(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Diagnosis is required")
        return clean_required_text(v, "Diagnosis")

    @field_validator("treatment")
    @classmethod
    def validate_treatment(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Treatment is required")
        return clean_required_text(v, "Treatment")

    @field_validator("medications", "observations")
    @classmethod
    def validate_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("next_visit")
    @classmethod
    def validate_next_visit(cls, v: Optional[date]) -> Optional[date]:
        return _future_visit(v)


class MedicalRecordCreate(MedicalRecordBase):
    """Schema for writing a new medical record."""


class MedicalRecordUpdate(UpdateSchema):
    """Schema for updating a medical record."""

    pet_id: Optional[UUID] = None
    appointment_id: Optional[UUID] = None
    veterinarian_id: Optional[UUID] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    medications: Optional[str] = None
    observations: Optional[str] = None
    next_visit: Optional[date] = None

    @field_validator("diagnosis")
    @classmethod
    def validate_diagnosis(cls, v: Optional[str]) -> str:
        return MedicalRecordBase.validate_diagnosis(v)

    @field_validator("treatment")
    @classmethod
    def validate_treatment(cls, v: Optional[str]) -> str:
        return MedicalRecordBase.validate_treatment(v)

    @field_validator("medications", "observations")
    @classmethod
    def validate_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("next_visit")
    @classmethod
    def validate_next_visit(cls, v: Optional[date]) -> Optional[date]:
        return _future_visit(v)

    @field_validator("pet_id", "veterinarian_id")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class MedicalRecordResponse(BaseModel):
    """Schema for medical record response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    pet_id: UUID
    appointment_id: Optional[UUID] = None
    veterinarian_id: UUID
    pet: PetSummary
    veterinarian: UserSummary
    diagnosis: str
    treatment: str
    medications: Optional[str] = None
    observations: Optional[str] = None
    next_visit: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class MedicalRecordFilters(DateWindowParams):
    """
    Medical record listing filters.

    Search covers pet name, owner name and diagnosis. The date window
    applies to the record's creation time.
    """

    pet_id: Optional[UUID] = None
    veterinarian_id: Optional[UUID] = None


class VaccinationBase(BaseModel):
    """Base Vaccination schema with common fields."""

    model_config = WRITE_CONFIG

    vaccine_name: str = Field(..., description="Vaccine applied", min_length=1, max_length=255)
    application_date: date = Field(..., description="Day the vaccine was applied")
    next_dose_date: Optional[date] = Field(None, description="Day the next dose is due")
    observations: Optional[str] = Field(None, description="Reactions or batch notes")

    @field_validator("vaccine_name")
    @classmethod
    def validate_vaccine_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Vaccine name is required")
        return clean_name(v, "Vaccine name")

    @field_validator("application_date")
    @classmethod
    def validate_application_date(cls, v: Optional[date]) -> date:
        if v is None:
            raise ValueError("Application date is required")
        if v > get_current_date():
            raise ValueError("Application date cannot be in the future")
        return v

    @field_validator("observations")
    @classmethod
    def validate_observations(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @model_validator(mode="after")
    def validate_next_dose(self) -> "VaccinationBase":
        if self.next_dose_date is not None and self.next_dose_date <= self.application_date:
            raise ValueError("Next dose date must be after the application date")
        return self


class VaccinationCreate(VaccinationBase):
    """Schema for recording a vaccine."""

    pet_id: UUID = Field(..., description="Vaccinated pet")


class VaccinationUpdate(UpdateSchema):
    """
    Schema for updating a vaccination.

    The next dose ordering against a stored application date is checked by
    the service.
    """

    vaccine_name: Optional[str] = Field(None, max_length=255)
    application_date: Optional[date] = None
    next_dose_date: Optional[date] = None
    observations: Optional[str] = None

    @field_validator("vaccine_name")
    @classmethod
    def validate_vaccine_name(cls, v: Optional[str]) -> str:
        return VaccinationBase.validate_vaccine_name(v)

    @field_validator("application_date")
    @classmethod
    def validate_application_date(cls, v: Optional[date]) -> date:
        return VaccinationBase.validate_application_date(v)

    @field_validator("observations")
    @classmethod
    def validate_observations(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class VaccinationResponse(BaseModel):
    """Schema for vaccination response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    pet_id: UUID
    pet: PetSummary
    vaccine_name: str
    application_date: date
    next_dose_date: Optional[date] = None
    observations: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def is_overdue(self) -> bool:
        return self.next_dose_date is not None and self.next_dose_date < get_current_date()
