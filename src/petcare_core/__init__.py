"""
Petcare Core Package

Business core of a pet-care company with three service segments: clinic,
hotel and spa. It holds the data model, validation schemas, role-based
authorization and the entity services built on them.

The package includes:

- SQLAlchemy models for clients, pets, services, appointments, hotel stays,
  medical records, vaccinations, PQRs and staff users
- Pydantic schemas for input validation and response serialization
- A role registry, permission guard and segment filter deciding what each
  role may see and change
- Entity services enforcing cross-entity rules on top of an async session
- Database connection utilities with async SQLAlchemy engine configuration
- Migration support through Alembic integration

Quick Start:
    >>> from petcare_core.database import create_engine, get_transaction
    >>> from petcare_core.database import initialize_session_manager
    >>> from petcare_core.services import ClientService

    >>> initialize_session_manager(create_engine("sqlite:///petcare.db"))
    >>> async with get_transaction() as session:
    ...     client = await ClientService(session).create(user, {
    ...         "name": "Laura Gomez",
    ...         "email": "laura@example.com",
    ...         "phone": "3001234567",
    ...         "address": "Calle 10 # 5-20",
    ...         "identification_type": "CC",
    ...         "identification_number": "1020304050",
    ...     })

Requirements:
    - Python 3.11+
    - PostgreSQL 13+ (SQLite for tests and local use)
    - SQLAlchemy 2.0+
    - Pydantic 2.5+
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Import implemented modules
from . import authz
from . import database
from . import exceptions
from . import models
from . import schemas
from . import services
from . import utils

# Convenience imports for common usage patterns
from .authz import Permission, PermissionGuard, SegmentFilter, default_registry
from .database import create_engine, get_session, get_transaction
from .exceptions import (
    AuthorizationException,
    NotFoundException,
    PetCareException,
    ValidationException,
)
from .models import Client, Pet, User, UserRole

__all__ = [
    # Version and metadata
    "__version__",
    "__license__",
    # Core modules
    "authz",
    "database",
    "exceptions",
    "models",
    "schemas",
    "services",
    "utils",
    # Convenience imports
    "get_session",
    "get_transaction",
    "create_engine",
    "Permission",
    "PermissionGuard",
    "SegmentFilter",
    "default_registry",
    "PetCareException",
    "ValidationException",
    "AuthorizationException",
    "NotFoundException",
    "User",
    "UserRole",
    "Client",
    "Pet",
]
