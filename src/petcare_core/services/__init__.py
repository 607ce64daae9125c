"""
Entity services.

Each service wraps a caller-owned ``AsyncSession`` and checks permissions
and segments before reading or writing. Services flush but never commit.

Example:
    >>> async with get_transaction() as session:
    ...     clients = ClientService(session)
    ...     page = await clients.list(user, {"search": "garcia"})
"""

from .appointments import AppointmentService
from .base import EntityService, Page
from .catalog import CatalogService
from .clients import ClientHistory, ClientService
from .dashboard import DashboardService
from .hotel_stays import HotelStayService
from .medical_records import MedicalRecordService
from .pets import PetMedicalHistory, PetService
from .pqrs import PqrService
from .storage import LocalPhotoStorage, PhotoStorage
from .users import UserService
from .vaccinations import VaccinationService

__all__ = [
    # Base
    "EntityService",
    "Page",
    # Storage
    "PhotoStorage",
    "LocalPhotoStorage",
    # Services
    "ClientService",
    "ClientHistory",
    "PetService",
    "PetMedicalHistory",
    "CatalogService",
    "AppointmentService",
    "HotelStayService",
    "MedicalRecordService",
    "VaccinationService",
    "PqrService",
    "UserService",
    "DashboardService",
]
