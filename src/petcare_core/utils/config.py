"""
Configuration management utilities.

This module provides environment variable handling with type conversion,
database URL validation, logging configuration and the immutable
application settings consumed by the database and service layers.
"""

import logging
import logging.config
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qs, urlparse

from ..exceptions import EnvironmentException

ENV_PREFIX = "PETCARE_"


class ConfigError(EnvironmentException):
    """Exception raised for configuration-related errors."""


class LogLevel(Enum):
    """Enumeration for log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentConfig:
    """Utility class for handling environment variables with type conversion."""

    @staticmethod
    def get_str(
        key: str, default: Optional[str] = None, required: bool = False
    ) -> Optional[str]:
        """
        Get a string environment variable.

        Args:
            key: Environment variable key
            default: Default value if not found
            required: Whether the variable is required

        Returns:
            String value or default

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key, default)

        if required and value is None:
            raise ConfigError(
                f"Required environment variable '{key}' is not set", env_var=key
            )

        return value

    @staticmethod
    def get_int(
        key: str, default: Optional[int] = None, required: bool = False
    ) -> Optional[int]:
        """
        Get an integer environment variable.

        Raises:
            ConfigError: If required variable is missing or invalid
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(
                    f"Required environment variable '{key}' is not set", env_var=key
                )
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigError(
                f"Environment variable '{key}' must be an integer, got: {value}",
                env_var=key,
                env_value=value,
            )

    @staticmethod
    def get_bool(
        key: str, default: Optional[bool] = None, required: bool = False
    ) -> Optional[bool]:
        """
        Get a boolean environment variable.

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(
                    f"Required environment variable '{key}' is not set", env_var=key
                )
            return default

        return value.lower() in ("true", "1", "yes", "on", "enabled")

    @staticmethod
    def get_list(
        key: str,
        separator: str = ",",
        default: Optional[List[str]] = None,
        required: bool = False,
    ) -> Optional[List[str]]:
        """
        Get a list environment variable.

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(
                    f"Required environment variable '{key}' is not set", env_var=key
                )
            return default or []

        return [item.strip() for item in value.split(separator) if item.strip()]


class DatabaseURLValidator:
    """Utility class for validating database URLs."""

    SUPPORTED_DRIVERS = {
        "postgresql": ["postgresql", "postgresql+asyncpg"],
        "sqlite": ["sqlite", "sqlite+aiosqlite"],
    }

    @classmethod
    def validate_url(cls, url: str) -> Dict[str, Any]:
        """
        Validate a database URL and return parsed components.

        Args:
            url: Database URL to validate

        Returns:
            Dictionary with validation results and parsed components

        Raises:
            ConfigError: If URL is invalid
        """
        if not url:
            raise ConfigError("Database URL cannot be empty")

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ConfigError(f"Invalid URL format: {e}")

        if not parsed.scheme:
            raise ConfigError(
                "Database URL must include a scheme (e.g., postgresql+asyncpg://)"
            )

        backend = cls.get_backend(parsed.scheme)
        if backend is None:
            supported_list = [
                driver for drivers in cls.SUPPORTED_DRIVERS.values() for driver in drivers
            ]
            raise ConfigError(
                f"Unsupported database driver '{parsed.scheme}'. Supported: {', '.join(supported_list)}"
            )

        if backend != "sqlite":
            if not parsed.hostname:
                raise ConfigError("Database URL must include a hostname")
            if not parsed.path.lstrip("/"):
                raise ConfigError("Database URL must include a database name")

        return {
            "valid": True,
            "backend": backend,
            "scheme": parsed.scheme,
            "hostname": parsed.hostname,
            "port": parsed.port,
            "database": parsed.path.lstrip("/") if parsed.path else "",
            "username": parsed.username,
            "password": parsed.password,
            "query": dict(parse_qs(parsed.query)),
        }

    @classmethod
    def get_backend(cls, scheme: str) -> Optional[str]:
        """Return the backend name for a URL scheme, or None if unsupported."""
        for backend, drivers in cls.SUPPORTED_DRIVERS.items():
            if scheme in drivers:
                return backend
        return None


class LoggingConfigurator:
    """Utility class for configuring logging."""

    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @staticmethod
    def configure_basic_logging(
        level: Union[str, LogLevel] = LogLevel.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[str] = None,
    ) -> None:
        """
        Configure basic logging for the application.

        Args:
            level: Logging level
            format_string: Custom format string
            log_file: Optional log file path
        """
        if isinstance(level, LogLevel):
            level = level.value

        basic_config_args: Dict[str, Any] = {
            "level": level,
            "format": format_string or LoggingConfigurator.DEFAULT_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
        if log_file:
            basic_config_args["filename"] = log_file
            basic_config_args["filemode"] = "a"

        logging.basicConfig(**basic_config_args)

    @staticmethod
    def configure_structured_logging(
        config_dict: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None,
        level: Union[str, LogLevel] = LogLevel.INFO,
    ) -> None:
        """
        Configure structured logging using a dictionary or file.

        Args:
            config_dict: Logging configuration dictionary
            config_file: Path to logging configuration file
            level: Level for the petcare_core logger in the default config
        """
        if isinstance(level, LogLevel):
            level = level.value

        if config_file and Path(config_file).exists():
            logging.config.fileConfig(config_file)
        elif config_dict:
            logging.config.dictConfig(config_dict)
        else:
            logging.config.dictConfig(LoggingConfigurator.default_config(level))

    @staticmethod
    def default_config(level: str = "INFO") -> Dict[str, Any]:
        """Return the default dictConfig used by configure_structured_logging."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": LoggingConfigurator.DEFAULT_FORMAT},
                "detailed": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(message)s"
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                }
            },
            "loggers": {
                "petcare_core": {
                    "level": level,
                    "handlers": ["console"],
                    "propagate": False,
                }
            },
            "root": {"level": "WARNING", "handlers": ["console"]},
        }


@dataclass(frozen=True)
class AppSettings:
    """
    Immutable application settings.

    Built once at process start, usually from the environment, and handed
    to the engine factory and the entity services.

    Attributes:
        database_url: SQLAlchemy async database URL
        pool_size: Connection pool size for server databases
        echo_sql: Whether the engine logs SQL statements
        page_size: Default number of rows per listing page
        photo_dir: Directory where pet photos are stored
        photo_max_kb: Maximum accepted pet photo size in kilobytes
        log_level: Level for the petcare_core logger
    """

    database_url: Optional[str] = None
    pool_size: int = 5
    echo_sql: bool = False
    page_size: int = 15
    photo_dir: str = "storage/pets"
    photo_max_kb: int = 2048
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ConfigError(
                "Page size must be at least 1",
                env_var=f"{ENV_PREFIX}PAGE_SIZE",
                env_value=str(self.page_size),
            )
        if self.photo_max_kb < 1:
            raise ConfigError(
                "Photo size limit must be at least 1 KB",
                env_var=f"{ENV_PREFIX}PHOTO_MAX_KB",
                env_value=str(self.photo_max_kb),
            )
        if self.database_url:
            DatabaseURLValidator.validate_url(self.database_url)

    @classmethod
    def from_environment(cls, prefix: str = ENV_PREFIX) -> "AppSettings":
        """
        Load settings from ``PETCARE_*`` environment variables.

        Raises:
            ConfigError: If a variable holds an invalid value
        """
        level_name = (EnvironmentConfig.get_str(f"{prefix}LOG_LEVEL") or "INFO").upper()
        try:
            log_level = LogLevel(level_name)
        except ValueError:
            raise ConfigError(
                f"Unknown log level '{level_name}'",
                env_var=f"{prefix}LOG_LEVEL",
                env_value=level_name,
            )

        return cls(
            database_url=EnvironmentConfig.get_str(f"{prefix}DATABASE_URL"),
            pool_size=EnvironmentConfig.get_int(f"{prefix}DB_POOL_SIZE", 5),
            echo_sql=EnvironmentConfig.get_bool(f"{prefix}DB_ECHO", False),
            page_size=EnvironmentConfig.get_int(f"{prefix}PAGE_SIZE", 15),
            photo_dir=EnvironmentConfig.get_str(f"{prefix}PHOTO_DIR", "storage/pets"),
            photo_max_kb=EnvironmentConfig.get_int(f"{prefix}PHOTO_MAX_KB", 2048),
            log_level=log_level,
        )

    def require_database_url(self) -> str:
        """Return the database URL or raise if it is not configured."""
        if not self.database_url:
            raise ConfigError(
                "Database URL is not configured",
                env_var=f"{ENV_PREFIX}DATABASE_URL",
            )
        return self.database_url

    def configure_logging(self) -> None:
        """Apply the default structured logging config at the configured level."""
        LoggingConfigurator.configure_structured_logging(level=self.log_level)
