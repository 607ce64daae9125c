"""
Pet Pydantic schemas for validation and serialization.

This module contains the create, update and response schemas for pets,
plus the photo upload payload accepted alongside a create or update.
"""

import os
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from ..models.pet import PetGender
from ..utils.datetime_utils import calculate_pet_age, get_current_date
from ..utils.validation import sanitize_text
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    ClientSummary,
    ListParams,
    UpdateSchema,
    clean_name,
)

ALLOWED_PHOTO_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif"})
ALLOWED_PHOTO_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})


class PhotoUpload(BaseModel):
    """
    Uploaded pet photo.

    The size limit depends on configuration and is checked by the pet
    service, not here.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    filename: str = Field(..., description="Original file name", min_length=1, max_length=255)
    content_type: str = Field(..., description="MIME type reported by the client")
    content: bytes = Field(..., description="Raw image bytes")

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Only jpeg, jpg, png and gif files are accepted."""
        extension = os.path.splitext(v)[1].lstrip(".").lower()
        if extension not in ALLOWED_PHOTO_EXTENSIONS:
            raise ValueError(
                f"Photo must be one of: {', '.join(sorted(ALLOWED_PHOTO_EXTENSIONS))}"
            )
        return os.path.basename(v)

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        v = v.lower()
        if v not in ALLOWED_PHOTO_CONTENT_TYPES:
            raise ValueError("Photo must be an image")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("Photo file is empty")
        return v

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lstrip(".").lower()

    @property
    def size_kb(self) -> float:
        return len(self.content) / 1024


class PetBase(BaseModel):
    """Base Pet schema with common fields."""

    model_config = WRITE_CONFIG

    name: str = Field(..., description="Pet's name", min_length=1, max_length=100)
    species: str = Field(..., description="Species, e.g. perro or gato", min_length=1, max_length=50)
    breed: str = Field(..., description="Pet's breed", min_length=1, max_length=100)
    birth_date: Optional[date] = Field(None, description="Pet's birth date")
    gender: PetGender = Field(..., description="Pet's gender")
    weight: Optional[Decimal] = Field(
        None,
        description="Weight in kilograms",
        ge=0,
        le=Decimal("999.99"),
        decimal_places=2,
    )
    medical_observations: Optional[str] = Field(
        None, description="Known conditions, allergies and other notes"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        """Validate pet name."""
        if v is None:
            raise ValueError("Pet name is required")
        return clean_name(v, "Pet name", max_length=100)

    @field_validator("species")
    @classmethod
    def validate_species(cls, v: Optional[str]) -> str:
        """Species are stored lowercase so listings group them together."""
        if v is None:
            raise ValueError("Species is required")
        return clean_name(v, "Species", max_length=50).lower()

    @field_validator("breed")
    @classmethod
    def validate_breed(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Breed is required")
        return clean_name(v, "Breed", max_length=100)

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        """Birth date must be before today."""
        if v is not None and v >= get_current_date():
            raise ValueError("Birth date must be in the past")
        return v

    @field_validator("medical_observations")
    @classmethod
    def validate_medical_observations(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class PetCreate(PetBase):
    """Schema for registering a new pet."""

    client_id: UUID = Field(..., description="Owner's unique identifier")


class PetUpdate(UpdateSchema):
    """Schema for updating an existing pet."""

    client_id: Optional[UUID] = Field(None, description="New owner")
    name: Optional[str] = Field(None, max_length=100)
    species: Optional[str] = Field(None, max_length=50)
    breed: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[date] = None
    gender: Optional[PetGender] = None
    weight: Optional[Decimal] = Field(None, ge=0, le=Decimal("999.99"), decimal_places=2)
    medical_observations: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return PetBase.validate_name(v)

    @field_validator("species")
    @classmethod
    def validate_species(cls, v: Optional[str]) -> str:
        return PetBase.validate_species(v)

    @field_validator("breed")
    @classmethod
    def validate_breed(cls, v: Optional[str]) -> str:
        return PetBase.validate_breed(v)

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        return PetBase.validate_birth_date(v)

    @field_validator("medical_observations")
    @classmethod
    def validate_medical_observations(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("client_id", "gender")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class PetResponse(BaseModel):
    """Schema for pet response data."""

    model_config = RESPONSE_CONFIG

    id: UUID = Field(..., description="Pet's unique identifier")
    client_id: UUID = Field(..., description="Owner's unique identifier")
    client: Optional[ClientSummary] = Field(None, description="Owner")
    name: str
    species: str
    breed: str
    birth_date: Optional[date] = None
    gender: PetGender
    weight: Optional[Decimal] = None
    medical_observations: Optional[str] = None
    photo: Optional[str] = Field(None, description="Storage key of the photo")
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def age(self) -> Optional[int]:
        """Age in whole years."""
        if self.birth_date is None:
            return None
        return calculate_pet_age(self.birth_date)["years"]


class PetFilters(ListParams):
    """Pet listing filters. Search covers name, species, breed and owner name."""

    species: Optional[str] = Field(None, max_length=50)
    client_id: Optional[UUID] = None
