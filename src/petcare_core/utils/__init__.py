"""
Utility functions and helper modules.

This module provides common utility functions for datetime handling,
text sanitizing and configuration management.
"""

from .config import (
    AppSettings,
    ConfigError,
    DatabaseURLValidator,
    EnvironmentConfig,
    LoggingConfigurator,
    LogLevel,
)
from .datetime_utils import (
    calculate_pet_age,
    day_bounds,
    format_pet_age,
    get_current_date,
    get_current_utc,
    month_bounds,
    to_utc,
    whole_days_between,
)
from .validation import escape_like, sanitize_string, sanitize_text

__all__ = [
    # DateTime utilities
    "get_current_utc",
    "get_current_date",
    "to_utc",
    "day_bounds",
    "month_bounds",
    "whole_days_between",
    "calculate_pet_age",
    "format_pet_age",
    # Text helpers
    "sanitize_string",
    "sanitize_text",
    "escape_like",
    # Configuration utilities
    "ConfigError",
    "LogLevel",
    "EnvironmentConfig",
    "DatabaseURLValidator",
    "LoggingConfigurator",
    "AppSettings",
]
