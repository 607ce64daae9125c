"""
Core exceptions for the petcare-core package.

This module defines the exception hierarchy raised by the entity services,
the permission guard and the database utilities. Every exception carries a
human-readable message, a machine-readable error code and a details mapping
so that the presentation layer can report the failure back to the caller
with enough context to correct and retry.
"""

import asyncio
import logging
import time
import traceback
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse, urlunparse


class PetCareException(Exception):
    """
    Base exception class for all petcare-core exceptions.

    Provides a consistent interface for error handling across the package.

    Attributes:
        status_code: HTTP-equivalent status for the presentation layer
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": time.time(),
        }

    def get_debug_info(self) -> Dict[str, Any]:
        """
        Get detailed debug information for the exception.

        Returns:
            Dictionary with debug information including traceback
        """
        formatted = traceback.format_exc()
        debug_info = self.to_dict()
        debug_info.update(
            {
                "traceback": (
                    formatted if formatted.strip() != "NoneType: None" else None
                ),
                "module": self.__class__.__module__,
                "class_name": self.__class__.__name__,
            }
        )
        return debug_info

    def log_error(
        self, logger: Optional[logging.Logger] = None, level: int = logging.ERROR
    ) -> None:
        """
        Log the exception with appropriate level and context.

        Args:
            logger: Logger instance to use (creates default if None)
            level: Logging level to use
        """
        if logger is None:
            logger = logging.getLogger(__name__)

        log_data = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

        logger.log(
            level,
            f"Exception occurred: {self.message}",
            extra={"exception_data": log_data},
        )

    def __str__(self) -> str:
        """String representation of the exception."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DatabaseException(PetCareException):
    """Base exception for database-related errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
        retry_count: int = 0,
        max_retries: int = 3,
    ):
        """
        Initialize database exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error details
            original_error: Original exception that caused this error
            retry_count: Current retry attempt count
            max_retries: Maximum number of retry attempts
        """
        super().__init__(message, error_code, details)
        self.original_error = original_error
        self.retry_count = retry_count
        self.max_retries = max_retries

        if original_error and "original_error" not in self.details:
            self.details["original_error"] = str(original_error)

        self.details.update(
            {
                "retry_count": retry_count,
                "max_retries": max_retries,
                "retryable": self.is_retryable(),
            }
        )

    def is_retryable(self) -> bool:
        """Whether another attempt is allowed."""
        return self.retry_count < self.max_retries

    def get_retry_delay(self) -> float:
        """
        Calculate the delay before the next retry attempt using exponential backoff.

        Returns:
            Delay in seconds before next retry
        """
        if not self.is_retryable():
            return 0.0
        return 1.0 * (2**self.retry_count)

    def increment_retry(self) -> "DatabaseException":
        """
        Create a new exception instance with incremented retry count.

        Returns:
            New exception instance with incremented retry count
        """
        details = {
            key: value
            for key, value in self.details.items()
            if key not in ("retry_count", "max_retries", "retryable")
        }
        return DatabaseException(
            message=self.message,
            error_code=self.error_code,
            details=details,
            original_error=self.original_error,
            retry_count=self.retry_count + 1,
            max_retries=self.max_retries,
        )


class ConnectionException(DatabaseException):
    """Exception raised when database connection fails."""

    def __init__(
        self,
        message: str = "Database connection failed",
        database_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        retry_count: int = 0,
        max_retries: int = 3,
    ):
        """
        Initialize connection exception.

        Args:
            message: Error message
            database_url: Database URL (will be sanitized)
            original_error: Original exception
            retry_count: Current retry attempt count
            max_retries: Maximum number of retry attempts
        """
        details = {}
        if database_url:
            details["database_url"] = self._sanitize_url(database_url)

        super().__init__(
            message=message,
            error_code="DATABASE_CONNECTION_ERROR",
            details=details,
            original_error=original_error,
            retry_count=retry_count,
            max_retries=max_retries,
        )

    @staticmethod
    def _sanitize_url(url: str) -> str:
        """Remove credentials from database URL for logging."""
        try:
            parsed = urlparse(url)
            if not parsed.hostname:
                return url
            netloc = parsed.hostname
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
        except (ValueError, AttributeError) as e:
            return f"[URL_PARSE_ERROR: {e}]"

    def is_retryable(self) -> bool:
        """
        Determine if this connection error is retryable.

        Authentication and missing-database failures are never retried.
        """
        if not super().is_retryable():
            return False

        if self.original_error:
            error_str = str(self.original_error).lower()
            non_retryable_patterns = [
                "authentication failed",
                "invalid credentials",
                "access denied",
                "permission denied",
                "database does not exist",
                "role does not exist",
            ]
            if any(pattern in error_str for pattern in non_retryable_patterns):
                return False

        return True

    def increment_retry(self) -> "ConnectionException":
        return ConnectionException(
            message=self.message,
            database_url=self.details.get("database_url"),
            original_error=self.original_error,
            retry_count=self.retry_count + 1,
            max_retries=self.max_retries,
        )


class TransactionException(DatabaseException):
    """Exception raised when database transaction fails."""

    def __init__(
        self,
        message: str = "Database transaction failed",
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            error_code="DATABASE_TRANSACTION_ERROR",
            details=details,
            original_error=original_error,
        )


class ValidationException(PetCareException):
    """
    Base exception for data validation errors.

    The submitted input is kept on ``input_data`` so the caller can
    re-present it for correction.
    """

    status_code = 422

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        validation_errors: Optional[Dict[str, Any]] = None,
        input_data: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: Field that failed validation
            value: Value that failed validation
            validation_errors: Field-level errors, field name to messages
            input_data: Original input as submitted by the caller
        """
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
        )
        self.field = field
        self.validation_errors = validation_errors or {}
        self.input_data = dict(input_data) if input_data is not None else None


class SchemaValidationException(ValidationException):
    """Exception raised when Pydantic schema validation fails."""

    def __init__(
        self,
        message: str = "Schema validation failed",
        schema_name: Optional[str] = None,
        validation_errors: Optional[Dict[str, Any]] = None,
        input_data: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            validation_errors=validation_errors,
            input_data=input_data,
        )
        self.error_code = "SCHEMA_VALIDATION_ERROR"
        if schema_name:
            self.details["schema_name"] = schema_name

    @classmethod
    def from_pydantic(
        cls,
        error: Any,
        schema_name: Optional[str] = None,
        input_data: Optional[Mapping[str, Any]] = None,
    ) -> "SchemaValidationException":
        """
        Build the exception from a ``pydantic.ValidationError``.

        Args:
            error: The pydantic validation error
            schema_name: Name of the schema that rejected the input
            input_data: Original input as submitted

        Returns:
            SchemaValidationException with field-level messages
        """
        return cls(
            message=f"Invalid data for {schema_name or 'schema'}",
            schema_name=schema_name,
            validation_errors=format_validation_errors(error.errors()),
            input_data=input_data,
        )


class BusinessRuleException(ValidationException):
    """
    Exception raised when a cross-entity business rule fails.

    Examples are a pet that does not belong to the submitted client, a
    veterinarian without a clinical role or a duplicate client email.
    These are user-correctable and reported like validation errors.
    """

    def __init__(
        self,
        message: str = "Business rule validation failed",
        rule_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        input_data: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize business rule exception.

        Args:
            message: Error message
            rule_name: Name of the business rule that failed
            context: Additional context about the failure
            field: Field the caller should correct, if any
            input_data: Original input as submitted
        """
        super().__init__(
            message=message,
            field=field,
            validation_errors={field: [message]} if field else None,
            input_data=input_data,
        )
        self.error_code = "BUSINESS_RULE_ERROR"
        self.rule_name = rule_name
        if rule_name:
            self.details["rule_name"] = rule_name
        if context:
            self.details["context"] = context


class InvalidStatusTransitionException(BusinessRuleException):
    """Exception raised when a status change is not allowed by a state machine."""

    def __init__(
        self,
        entity: str,
        current_status: str,
        target_status: str,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message
            or f"Cannot change {entity} status from {current_status} to {target_status}",
            rule_name="status_transition",
            context={
                "entity": entity,
                "current_status": current_status,
                "target_status": target_status,
            },
            field="status",
        )
        self.error_code = "INVALID_STATUS_TRANSITION"
        self.current_status = current_status
        self.target_status = target_status


class AuthorizationException(PetCareException):
    """
    Exception raised when the acting user may not perform an operation.

    Terminal for the request. No data is returned and nothing is written.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        permission: Optional[str] = None,
        user_id: Optional[Any] = None,
        role: Optional[str] = None,
        segment: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if permission:
            details["permission"] = permission
        if user_id is not None:
            details["user_id"] = str(user_id)
        if role:
            details["role"] = role
        if segment:
            details["segment"] = segment

        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            details=details,
        )
        self.permission = permission


class NotFoundException(PetCareException):
    """Exception raised when a requested record does not exist."""

    status_code = 404

    def __init__(
        self,
        entity: str,
        entity_id: Optional[Any] = None,
        message: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"entity": entity}
        if entity_id is not None:
            details["entity_id"] = str(entity_id)

        super().__init__(
            message=message or f"{entity} not found",
            error_code="NOT_FOUND",
            details=details,
        )
        self.entity = entity


class ReferentialIntegrityException(PetCareException):
    """
    Exception raised when a delete is blocked by dependent records.

    The entity is left intact. ``dependents`` maps the dependent
    relation name to the number of rows that block the delete.
    """

    status_code = 409

    def __init__(
        self,
        entity: str,
        entity_id: Optional[Any] = None,
        dependents: Optional[Dict[str, int]] = None,
        message: Optional[str] = None,
    ):
        dependents = dict(dependents or {})
        if message is None:
            listed = ", ".join(sorted(dependents)) or "other records"
            message = f"Cannot delete {entity}: it has associated {listed}"

        details: Dict[str, Any] = {"entity": entity, "dependents": dependents}
        if entity_id is not None:
            details["entity_id"] = str(entity_id)

        super().__init__(
            message=message,
            error_code="REFERENTIAL_INTEGRITY_ERROR",
            details=details,
        )
        self.dependents = dependents


class ConfigurationException(PetCareException):
    """Base exception for configuration-related errors."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        """
        Initialize configuration exception.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            config_value: Configuration value (will be sanitized)
        """
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value:
            details["config_value"] = self._sanitize_config_value(
                config_key, config_value
            )

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )

    @staticmethod
    def _sanitize_config_value(key: Optional[str], value: str) -> str:
        """Sanitize configuration values to avoid exposing secrets."""
        if not key:
            return "[REDACTED]"

        sensitive_keys = ["password", "secret", "key", "token", "credential"]
        if any(sensitive in key.lower() for sensitive in sensitive_keys):
            return "[REDACTED]"

        return value


class DatabaseConfigException(ConfigurationException):
    """Exception raised when database configuration is invalid."""

    def __init__(
        self,
        message: str = "Database configuration error",
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        super().__init__(message, config_key, config_value)
        self.error_code = "DATABASE_CONFIG_ERROR"


class EnvironmentException(ConfigurationException):
    """Exception raised when environment configuration is invalid."""

    def __init__(
        self,
        message: str = "Environment configuration error",
        env_var: Optional[str] = None,
        env_value: Optional[str] = None,
    ):
        super().__init__(message, env_var, env_value)
        self.error_code = "ENVIRONMENT_ERROR"


# Utility functions for exception handling and error formatting


def format_validation_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Format Pydantic validation errors into a user-friendly structure.

    Args:
        errors: List of Pydantic validation errors

    Returns:
        Dictionary mapping field names to lists of error messages
    """
    formatted_errors: Dict[str, List[str]] = {}

    for error in errors:
        field_path = ".".join(str(loc) for loc in error.get("loc", []))
        if not field_path:
            field_path = "root"

        message = error.get("msg", "Validation error")
        error_type = error.get("type", "unknown")

        if error_type == "value_error":
            formatted_message = message.removeprefix("Value error, ")
        elif error_type == "missing":
            formatted_message = "This field is required"
        else:
            formatted_message = f"{message} (type: {error_type})"

        formatted_errors.setdefault(field_path, []).append(formatted_message)

    return formatted_errors


def create_error_response(
    exception: PetCareException,
    include_debug: bool = False,
    include_traceback: bool = False,
) -> Dict[str, Any]:
    """
    Create a standardized error response from an exception.

    Validation failures echo the submitted input back under ``input`` so
    a form can be re-populated.

    Args:
        exception: The exception to format
        include_debug: Whether to include debug information
        include_traceback: Whether to include traceback information

    Returns:
        Standardized error response dictionary
    """
    response: Dict[str, Any] = {
        "success": False,
        "status": exception.status_code,
        "error": {
            "type": exception.__class__.__name__,
            "code": exception.error_code,
            "message": exception.message,
        },
    }

    if exception.details:
        response["error"]["details"] = exception.details

    if isinstance(exception, ValidationException) and exception.input_data is not None:
        response["input"] = exception.input_data

    if include_debug:
        debug_info = exception.get_debug_info()
        response["debug"] = {
            "timestamp": debug_info["timestamp"],
            "module": debug_info["module"],
            "class_name": debug_info["class_name"],
        }

        if include_traceback and debug_info.get("traceback"):
            response["debug"]["traceback"] = debug_info["traceback"]

    return response


def handle_database_retry(
    operation_name: str,
    max_retries: int = 3,
    base_delay: float = 1.0,
    logger: Optional[logging.Logger] = None,
):
    """
    Decorator for retrying async database operations on retryable failures.

    Args:
        operation_name: Name of the operation for logging
        max_retries: Maximum number of retry attempts
        base_delay: Base delay for exponential backoff
        logger: Logger instance to use

    Returns:
        Decorator function
    """

    def decorator(func):
        async def wrapper(*args, **kwargs):
            operation_logger = logger or logging.getLogger(__name__)

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except DatabaseException as e:
                    if not e.is_retryable() or attempt == max_retries:
                        operation_logger.error(
                            f"Database operation '{operation_name}' failed after {attempt + 1} attempts",
                            extra={"exception_data": e.to_dict()},
                        )
                        raise

                    delay = base_delay * (2**attempt)
                    operation_logger.warning(
                        f"Database operation '{operation_name}' failed (attempt {attempt + 1}/{max_retries + 1}), "
                        f"retrying in {delay}s",
                        extra={"exception_data": e.to_dict()},
                    )
                    await asyncio.sleep(delay)

        wrapper.__name__ = getattr(func, "__name__", operation_name)
        wrapper.__doc__ = func.__doc__
        return wrapper

    return decorator


def log_exception_context(
    exception: Exception,
    context: Dict[str, Any],
    logger: Optional[logging.Logger] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with additional context information.

    Args:
        exception: The exception to log
        context: Additional context information
        logger: Logger instance to use
        level: Logging level
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    if isinstance(exception, PetCareException):
        log_data = exception.to_dict()
        log_data["context"] = context
        logger.log(
            level,
            f"Exception with context: {exception.message}",
            extra={"exception_data": log_data},
        )
    else:
        logger.log(
            level,
            f"Unhandled exception: {exception}",
            extra={
                "exception_type": exception.__class__.__name__,
                "exception_message": str(exception),
                "context": context,
            },
        )
