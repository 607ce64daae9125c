"""
User Pydantic schemas for validation and serialization.

This module contains Pydantic schemas for staff accounts, including
create, update and response schemas. Role changes are validated against
the role enum only; who may assign roles is decided by the permission
guard.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.user import UserRole
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    ListParams,
    UpdateSchema,
    clean_name,
    clean_phone,
)


class UserBase(BaseModel):
    """Base User schema with common fields."""

    model_config = WRITE_CONFIG

    name: str = Field(..., description="User's full name", min_length=1, max_length=255)
    email: EmailStr = Field(..., description="User's email address", max_length=255)
    phone: Optional[str] = Field(None, description="User's phone number", max_length=20)
    position: Optional[str] = Field(None, description="Job title", max_length=100)
    role: UserRole = Field(UserRole.PUBLIC, description="Role granting permissions")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Name is required")
        return clean_name(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: Optional[str]) -> str:
        """Validate email format."""
        if v is None:
            raise ValueError("Email is required")
        if ".." in v:
            raise ValueError("Email cannot contain consecutive dots")
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return clean_phone(v)

    @field_validator("position")
    @classmethod
    def validate_position(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return clean_name(v, "Position", max_length=100)


class UserCreate(UserBase):
    """Schema for creating a staff account."""

    is_active: bool = Field(True, description="Whether the account can act")


class UserUpdate(UpdateSchema):
    """Schema for updating a staff account."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    position: Optional[str] = Field(None, max_length=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return UserBase.validate_name(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: Optional[str]) -> str:
        return UserBase.validate_email_format(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return clean_phone(v)

    @field_validator("position")
    @classmethod
    def validate_position(cls, v: Optional[str]) -> Optional[str]:
        return UserBase.validate_position(v)

    @field_validator("role", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class UserResponse(BaseModel):
    """Schema for user response data."""

    model_config = RESPONSE_CONFIG

    id: UUID = Field(..., description="User's unique identifier")
    name: str
    email: str
    phone: Optional[str] = None
    position: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserFilters(ListParams):
    """User listing filters. Search covers name, email and position."""

    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
