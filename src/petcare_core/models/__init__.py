"""
Database models for the petcare core package.

This module contains SQLAlchemy models for all business entities: staff
users, clients and their pets, the service catalog, appointments, hotel
stays, medical records, vaccinations and PQRs.
"""

# Base model will be imported by all other models
from .base import Base, BaseModel

# Core entity models
from .appointment import APPOINTMENT_TRANSITIONS, Appointment, AppointmentStatus
from .client import Client, IdentificationType
from .hotel_stay import (
    HOTEL_STAY_TRANSITIONS,
    HotelStay,
    HotelStayStatus,
    RoomType,
    calculate_total_cost,
)
from .medical_record import MedicalRecord, Vaccination
from .pet import Pet, PetGender
from .pqr import Pqr, PqrStatus, PqrType
from .service import Service, ServiceCategory, ServiceSegment
from .user import User, UserRole

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "Client",
    "IdentificationType",
    "Pet",
    "PetGender",
    "ServiceCategory",
    "Service",
    "ServiceSegment",
    "Appointment",
    "AppointmentStatus",
    "APPOINTMENT_TRANSITIONS",
    "HotelStay",
    "HotelStayStatus",
    "RoomType",
    "HOTEL_STAY_TRANSITIONS",
    "calculate_total_cost",
    "MedicalRecord",
    "Vaccination",
    "Pqr",
    "PqrStatus",
    "PqrType",
]
