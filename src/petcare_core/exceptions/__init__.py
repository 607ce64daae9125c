"""
Custom exceptions for the petcare core package.

This module defines the exception hierarchy raised by the entity services,
the permission guard and the database utilities.
"""

from .core_exceptions import (
    AuthorizationException,
    BusinessRuleException,
    ConfigurationException,
    ConnectionException,
    DatabaseConfigException,
    DatabaseException,
    EnvironmentException,
    InvalidStatusTransitionException,
    NotFoundException,
    PetCareException,
    ReferentialIntegrityException,
    SchemaValidationException,
    TransactionException,
    ValidationException,
    create_error_response,
    format_validation_errors,
    handle_database_retry,
    log_exception_context,
)

__all__ = [
    # Exception classes
    "PetCareException",
    "DatabaseException",
    "ConnectionException",
    "TransactionException",
    "ValidationException",
    "SchemaValidationException",
    "BusinessRuleException",
    "InvalidStatusTransitionException",
    "AuthorizationException",
    "NotFoundException",
    "ReferentialIntegrityException",
    "ConfigurationException",
    "DatabaseConfigException",
    "EnvironmentException",
    # Utility functions
    "format_validation_errors",
    "create_error_response",
    "handle_database_retry",
    "log_exception_context",
]
