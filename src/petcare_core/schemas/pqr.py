"""
PQR Pydantic schemas.

Submissions come from anyone, so the submitter's contact data is
validated here rather than looked up.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.pqr import PqrStatus, PqrType
from ..utils.validation import sanitize_text
from .common import (
    RESPONSE_CONFIG,
    WRITE_CONFIG,
    DateWindowParams,
    UpdateSchema,
    UserSummary,
    clean_name,
    clean_phone,
    clean_required_text,
)


class PqrCreate(BaseModel):
    """Schema for a public PQR submission."""

    model_config = WRITE_CONFIG

    client_name: str = Field(..., description="Submitter name", min_length=1, max_length=255)
    client_email: EmailStr = Field(..., description="Submitter email", max_length=255)
    client_phone: Optional[str] = Field(None, description="Submitter phone", max_length=20)
    type: PqrType = Field(..., description="Kind of PQR")
    subject: str = Field(..., description="Short subject", min_length=1, max_length=255)
    description: str = Field(..., description="Full description", min_length=1)

    @field_validator("client_name")
    @classmethod
    def validate_client_name(cls, v: str) -> str:
        return clean_name(v)

    @field_validator("client_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("client_phone")
    @classmethod
    def validate_client_phone(cls, v: Optional[str]) -> Optional[str]:
        return clean_phone(v)

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        return clean_name(v, "Subject")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return clean_required_text(v, "Description")


class PqrUpdate(UpdateSchema):
    """Schema for staff updates of status, response or assignee."""

    status: Optional[PqrStatus] = None
    response: Optional[str] = None
    assigned_to: Optional[UUID] = None

    @field_validator("response")
    @classmethod
    def validate_response(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("status")
    @classmethod
    def reject_null_status(cls, v: Optional[PqrStatus]) -> PqrStatus:
        if v is None:
            raise ValueError("Status cannot be null")
        return v


class PqrAssign(BaseModel):
    """Schema for assigning a PQR to a staff member."""

    model_config = WRITE_CONFIG

    assigned_to: UUID = Field(..., description="User who will handle the PQR")


class PqrRespond(BaseModel):
    """Schema for answering a PQR."""

    model_config = WRITE_CONFIG

    response: str = Field(..., description="Answer sent to the submitter", min_length=1)

    @field_validator("response")
    @classmethod
    def validate_response(cls, v: str) -> str:
        return clean_required_text(v, "Response")


class PqrResponse(BaseModel):
    """Schema for PQR response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    type: PqrType
    subject: str
    description: str
    status: PqrStatus
    response: Optional[str] = None
    assigned_to: Optional[UUID] = None
    assignee: Optional[UserSummary] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PqrFilters(DateWindowParams):
    """
    PQR listing filters.

    Search covers the submitter name and email, subject and description.
    The date window applies to the submission time.
    """

    status: Optional[PqrStatus] = None
    type: Optional[PqrType] = None
    assigned_to: Optional[UUID] = None
