"""
Client Pydantic schemas for validation and serialization.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.client import IdentificationType
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    ListParams,
    UpdateSchema,
    clean_name,
    clean_phone,
)

IDENTIFICATION_PATTERN = re.compile(r"^[A-Za-z0-9\-]{3,50}$")


class ClientBase(BaseModel):
    """Base Client schema with common fields."""

    model_config = WRITE_CONFIG

    name: str = Field(..., description="Client full name", min_length=1, max_length=255)
    email: EmailStr = Field(..., description="Contact email", max_length=255)
    phone: str = Field(..., description="Contact phone number", max_length=20)
    address: str = Field(..., description="Postal address", min_length=1, max_length=1000)
    identification_type: IdentificationType = Field(
        IdentificationType.CC, description="Identity document type"
    )
    identification_number: str = Field(
        ..., description="Identity document number", max_length=50
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Name is required")
        return clean_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Email is required")
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> str:
        phone = clean_phone(v)
        if phone is None:
            raise ValueError("Phone number is required")
        return phone

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Address is required")
        return clean_name(v, "Address", max_length=1000)

    @field_validator("identification_number")
    @classmethod
    def validate_identification_number(cls, v: Optional[str]) -> str:
        """Document numbers are letters, digits and dashes."""
        if v is None:
            raise ValueError("Identification number is required")
        v = v.strip().upper()
        if not IDENTIFICATION_PATTERN.match(v):
            raise ValueError(
                "Identification number must be 3-50 letters, digits or dashes"
            )
        return v


class ClientCreate(ClientBase):
    """Schema for registering a new client."""


class ClientUpdate(UpdateSchema):
    """Schema for updating an existing client."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=1000)
    identification_type: Optional[IdentificationType] = None
    identification_number: Optional[str] = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return ClientBase.validate_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> str:
        return ClientBase.normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> str:
        return ClientBase.validate_phone(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> str:
        return ClientBase.validate_address(v)

    @field_validator("identification_number")
    @classmethod
    def validate_identification_number(cls, v: Optional[str]) -> str:
        return ClientBase.validate_identification_number(v)

    @field_validator("identification_type")
    @classmethod
    def reject_null_type(cls, v: Optional[IdentificationType]) -> IdentificationType:
        if v is None:
            raise ValueError("Identification type is required")
        return v


class ClientResponse(BaseModel):
    """Schema for client response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    name: str
    email: str
    phone: str
    address: str
    identification_type: IdentificationType
    identification_number: str
    created_at: datetime
    updated_at: datetime


class ClientFilters(ListParams):
    """Client listing filters. Search covers name, email, phone and document."""

    identification_type: Optional[IdentificationType] = None
