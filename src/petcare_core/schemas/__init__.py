"""
Pydantic schemas for data validation and serialization.

This module contains the create, update, response and listing filter
schemas for every entity of the pet-care platform.
"""

from .appointment import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from .client import ClientCreate, ClientFilters, ClientResponse, ClientUpdate
from .common import (
    ClientSummary,
    DateWindowParams,
    ListParams,
    PetSummary,
    UpdateSchema,
    UserSummary,
)
from .dashboard import DashboardResponse, DashboardStats, PopularService
from .hotel_stay import (
    HotelStayCreate,
    HotelStayFilters,
    HotelStayResponse,
    HotelStayUpdate,
)
from .medical_record import (
    MedicalRecordCreate,
    MedicalRecordFilters,
    MedicalRecordResponse,
    MedicalRecordUpdate,
    VaccinationCreate,
    VaccinationResponse,
    VaccinationUpdate,
)
from .pet import PetCreate, PetFilters, PetResponse, PetUpdate, PhotoUpload
from .pqr import (
    PqrAssign,
    PqrCreate,
    PqrFilters,
    PqrRespond,
    PqrResponse,
    PqrUpdate,
)
from .service import (
    PriceUpdate,
    ServiceCategoryCreate,
    ServiceCategoryResponse,
    ServiceCreate,
    ServiceFilters,
    ServiceResponse,
    ServiceUpdate,
)
from .user import UserCreate, UserFilters, UserResponse, UserUpdate

__all__ = [
    # Shared
    "ListParams",
    "DateWindowParams",
    "UpdateSchema",
    "ClientSummary",
    "PetSummary",
    "UserSummary",
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserFilters",
    # Client schemas
    "ClientCreate",
    "ClientUpdate",
    "ClientResponse",
    "ClientFilters",
    # Pet schemas
    "PetCreate",
    "PetUpdate",
    "PetResponse",
    "PetFilters",
    "PhotoUpload",
    # Service catalog schemas
    "ServiceCategoryCreate",
    "ServiceCategoryResponse",
    "ServiceCreate",
    "ServiceUpdate",
    "PriceUpdate",
    "ServiceResponse",
    "ServiceFilters",
    # Appointment schemas
    "AppointmentCreate",
    "AppointmentUpdate",
    "AppointmentStatusUpdate",
    "AppointmentResponse",
    "AppointmentFilters",
    # Hotel stay schemas
    "HotelStayCreate",
    "HotelStayUpdate",
    "HotelStayResponse",
    "HotelStayFilters",
    # Medical record schemas
    "MedicalRecordCreate",
    "MedicalRecordUpdate",
    "MedicalRecordResponse",
    "MedicalRecordFilters",
    "VaccinationCreate",
    "VaccinationUpdate",
    "VaccinationResponse",
    # PQR schemas
    "PqrCreate",
    "PqrUpdate",
    "PqrAssign",
    "PqrRespond",
    "PqrResponse",
    "PqrFilters",
    # Dashboard schemas
    "DashboardStats",
    "PopularService",
    "DashboardResponse",
]
