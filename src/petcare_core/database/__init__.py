"""
Database connection and session management.

This module provides async SQLAlchemy engine configuration, session and
transaction management, and the column types shared by the models.
"""

from .connection import (
    DatabaseConfig,
    check_connection,
    close_engine,
    create_engine,
    create_engine_from_settings,
    get_database_url,
    wait_for_database,
)
from .session import (
    SessionManager,
    execute_with_retry,
    get_engine,
    get_session,
    get_session_manager,
    get_transaction,
    health_check,
    initialize_session_manager,
)
from .types import UTCDateTime

__all__ = [
    # Connection utilities
    "DatabaseConfig",
    "create_engine",
    "create_engine_from_settings",
    "get_database_url",
    "check_connection",
    "close_engine",
    "wait_for_database",
    # Session management
    "SessionManager",
    "initialize_session_manager",
    "get_session_manager",
    "get_engine",
    "get_session",
    "get_transaction",
    "execute_with_retry",
    "health_check",
    # Column types
    "UTCDateTime",
]
