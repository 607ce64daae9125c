"""
Base model class for all SQLAlchemy models in the petcare-core package.

This module provides the declarative base and the abstract model class that
all entities inherit from, with common audit fields and utility methods.

The BaseModel class follows modern SQLAlchemy 2.0 patterns with:
- UUID primary keys generated in Python so they work on every backend
- Automatic timestamp management for audit trails
- Common utility methods for data conversion and partial updates

Example:
    >>> from petcare_core.models.base import BaseModel
    >>> from sqlalchemy.orm import Mapped, mapped_column
    >>> from sqlalchemy import String

    >>> class MyModel(BaseModel):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(String(100))

    >>> instance = MyModel(name="Test")
    >>> data = instance.to_dict()
    >>> print(data['name'])  # "Test"
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import Enum, MetaData, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

from ..database.types import UTCDateTime
from ..utils.datetime_utils import get_current_utc

# Type variable for model classes
T = TypeVar("T", bound="BaseModel")

# Deterministic constraint names keep Alembic autogenerate stable
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _enum_values(enum_cls: Type[enum.Enum]) -> List[str]:
    return [member.value for member in enum_cls]


def enum_column_type(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """
    Build an Enum column type that stores member values rather than names.

    Args:
        enum_cls: The Python enum class
        name: Name of the database enum type

    Returns:
        SQLAlchemy Enum type
    """
    return Enum(
        enum_cls,
        name=name,
        values_callable=_enum_values,
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """
    Base declarative class for all SQLAlchemy models.

    Attributes:
        metadata: Shared metadata with a constraint naming convention
        type_annotation_map: Maps Python types to SQLAlchemy column types
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map = {
        uuid.UUID: Uuid(as_uuid=True),
        datetime: UTCDateTime(),
    }


class BaseModel(Base):
    """
    Abstract base model class providing common functionality for all entities.

    - **UUID Primary Keys**: UUID4 generated on the Python side
    - **Audit Fields**: creation and modification times and users
    - **Utility Methods**: dictionary conversion and validated partial updates

    Attributes:
        id (UUID): Primary key, automatically generated UUID4
        created_at (datetime): Timestamp when record was created (UTC)
        updated_at (datetime): Timestamp when record was last updated (UTC)
        created_by (UUID, optional): ID of user who created the record
        updated_by (UUID, optional): ID of user who last updated the record

    Note:
        This is an abstract base class and cannot be instantiated directly.
        All concrete models must define a __tablename__ attribute.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=get_current_utc,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=get_current_utc,
        server_default=func.now(),
        onupdate=get_current_utc,
    )

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)

    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        """
        Return string representation of the model instance.

        Returns:
            String in format: <ModelName(id=uuid)>
        """
        return f"<{self.__class__.__name__}(id={self.id})>"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model instance to dictionary representation.

        Converts all column values to JSON-serializable types:
        - datetime and date objects to ISO format strings
        - UUID objects to string representation
        - Decimal objects to strings, keeping their precision
        - Enum members to their values

        Returns:
            Dictionary with column names as keys and serialized values.
        """
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.key] = str(value)
            elif isinstance(value, Decimal):
                result[column.key] = str(value)
            elif isinstance(value, enum.Enum):
                result[column.key] = value.value
            else:
                result[column.key] = value
        return result

    @classmethod
    def get_table_name(cls) -> str:
        """Get the database table name for this model."""
        return cls.__tablename__

    def update_fields(self, updated_by: Optional[uuid.UUID] = None, **kwargs) -> None:
        """
        Update multiple fields on the model instance in a single operation.

        Args:
            updated_by: ID of the user making the change
            **kwargs: Field names as keys and new values as values.
                     Only mapped columns can be updated.

        Raises:
            AttributeError: If any field name is not a column of the model.

        Example:
            >>> client = Client(name="Old", email="old@example.com")
            >>> client.update_fields(name="New", phone="3001234567")

        Note:
            This method only modifies the instance. The caller must flush
            or commit to persist changes.
        """
        columns = set(self.__table__.columns.keys())
        for field in kwargs:
            if field not in columns or field in ("id", "created_at", "created_by"):
                raise AttributeError(
                    f"'{self.__class__.__name__}' has no updatable attribute '{field}'"
                )
        for field, value in kwargs.items():
            setattr(self, field, value)
        if updated_by is not None:
            self.updated_by = updated_by
