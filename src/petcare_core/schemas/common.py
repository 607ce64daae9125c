"""
Shared schema building blocks.

Write schemas keep enum members (no ``use_enum_values``) so validated
data can be assigned to model attributes directly. Response schemas
serialize enums as their values.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.user import UserRole
from ..utils.datetime_utils import to_utc
from ..utils.validation import sanitize_string, sanitize_text

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-()]{5,18}$")

WRITE_CONFIG = ConfigDict(
    from_attributes=True,
    validate_assignment=True,
    str_strip_whitespace=True,
)

RESPONSE_CONFIG = ConfigDict(
    from_attributes=True,
    use_enum_values=True,
)


def clean_name(value: str, field_label: str = "Name", max_length: int = 255) -> str:
    """Sanitize a single-line name, rejecting blank values."""
    cleaned = sanitize_string(value, max_length=max_length)
    if not cleaned:
        raise ValueError(f"{field_label} cannot be empty")
    return cleaned


def clean_required_text(value: str, field_label: str) -> str:
    """Sanitize required multi-line text."""
    cleaned = sanitize_text(value)
    if cleaned is None:
        raise ValueError(f"{field_label} cannot be empty")
    return cleaned


def clean_phone(value: Optional[str]) -> Optional[str]:
    """Validate a phone number made of digits, spaces, dashes and parentheses."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number contains invalid characters")
    return value


def require_aware(value: datetime) -> datetime:
    """Reject naive datetimes and normalize aware ones to UTC."""
    if value.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return to_utc(value)


class UpdateSchema(BaseModel):
    """Base for partial update schemas. At least one field must be given."""

    model_config = WRITE_CONFIG

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "UpdateSchema":
        """Ensure at least one field is provided for update."""
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)


class ListParams(BaseModel):
    """Pagination and free-text search shared by every listing."""

    model_config = ConfigDict(str_strip_whitespace=True)

    search: Optional[str] = Field(None, description="Free-text search", max_length=255)
    page: int = Field(1, description="1-based page number", ge=1)
    per_page: Optional[int] = Field(
        None, description="Rows per page, defaults to the configured page size", ge=1, le=100
    )


class DateWindowParams(ListParams):
    """Listing parameters with an inclusive date window."""

    date_from: Optional[date] = Field(None, description="First day, inclusive")
    date_to: Optional[date] = Field(None, description="Last day, inclusive")

    @model_validator(mode="after")
    def validate_date_window(self) -> "DateWindowParams":
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to must be on or after date_from")
        return self


class ClientSummary(BaseModel):
    model_config = RESPONSE_CONFIG

    id: UUID
    name: str


class PetSummary(BaseModel):
    model_config = RESPONSE_CONFIG

    id: UUID
    name: str
    species: str


class UserSummary(BaseModel):
    model_config = RESPONSE_CONFIG

    id: UUID
    name: str
    role: UserRole
