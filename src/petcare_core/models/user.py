"""
User model for the petcare-core package.

Users are staff accounts. Each holds exactly one role; what the role may
do is decided by the role registry in ``petcare_core.authz``, not by the
model itself.
"""

import enum
from typing import Optional

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, enum_column_type


class UserRole(enum.Enum):
    """Enumeration of staff roles."""

    GENERAL_MANAGER = "general_manager"
    HOTEL_EMPLOYEE = "hotel_employee"
    CLINIC_ADMIN = "clinic_admin"
    SPA_ASSISTANT = "spa_assistant"
    PUBLIC = "public"


class User(BaseModel):
    """
    Staff user with a single role and an active flag.

    A user can be the assigned employee on appointments, the veterinarian
    on medical records and the assignee of PQRs.
    """

    __tablename__ = "users"

    def __init__(self, **kwargs):
        """Initialize User with default values."""
        if "role" not in kwargs:
            kwargs["role"] = UserRole.PUBLIC
        if "is_active" not in kwargs:
            kwargs["is_active"] = True
        super().__init__(**kwargs)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Full name",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Login email address",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Contact phone number",
    )

    position: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Job title shown to other staff",
    )

    role: Mapped[UserRole] = mapped_column(
        enum_column_type(UserRole, "user_role"),
        nullable=False,
        default=UserRole.PUBLIC,
        comment="Role that determines permissions and visible segments",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Inactive users are denied every operation",
    )

    __table_args__ = (Index("idx_users_role_active", "role", "is_active"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
