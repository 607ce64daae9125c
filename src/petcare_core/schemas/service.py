"""
Service catalog Pydantic schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models.service import ServiceSegment
from ..utils.validation import sanitize_text
from .common import RESPONSE_CONFIG, WRITE_CONFIG, ListParams, UpdateSchema, clean_name

MAX_PRICE = Decimal("99999999.99")


class ServiceCategoryCreate(BaseModel):
    """Schema for creating a service category."""

    model_config = WRITE_CONFIG

    name: str = Field(..., description="Category name", min_length=1, max_length=255)
    segment: ServiceSegment = Field(..., description="Business line of the category")
    description: Optional[str] = Field(None, description="Category description")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return clean_name(v, "Category name")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class ServiceCategoryResponse(BaseModel):
    model_config = RESPONSE_CONFIG

    id: UUID
    name: str
    segment: ServiceSegment
    description: Optional[str] = None


class ServiceBase(BaseModel):
    """Base Service schema with common fields."""

    model_config = WRITE_CONFIG

    name: str = Field(..., description="Service name", min_length=1, max_length=255)
    description: Optional[str] = Field(None, description="Service description")
    price: Decimal = Field(
        ..., description="List price", ge=0, le=MAX_PRICE, decimal_places=2
    )
    is_active: bool = Field(True, description="Whether the service is offered")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Service name is required")
        return clean_name(v, "Service name")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class ServiceCreate(ServiceBase):
    """Schema for creating a service."""

    service_category_id: UUID = Field(..., description="Category of the service")


class ServiceUpdate(UpdateSchema):
    """Schema for updating a service. Price changes go through PriceUpdate."""

    service_category_id: Optional[UUID] = None
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        return ServiceBase.validate_name(v)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)

    @field_validator("service_category_id", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class PriceUpdate(BaseModel):
    """Schema for changing a service's list price."""

    model_config = WRITE_CONFIG

    price: Decimal = Field(..., description="New price", ge=0, le=MAX_PRICE, decimal_places=2)


class ServiceResponse(BaseModel):
    """Schema for service response data."""

    model_config = RESPONSE_CONFIG

    id: UUID
    service_category_id: UUID
    category: ServiceCategoryResponse
    name: str
    description: Optional[str] = None
    price: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ServiceFilters(ListParams):
    """Service listing filters. Search covers name and description."""

    category_id: Optional[UUID] = None
    segment: Optional[ServiceSegment] = None
    is_active: Optional[bool] = None
