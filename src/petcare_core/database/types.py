"""
Database-agnostic column types for petcare-core.

SQLite keeps no timezone on stored datetimes while PostgreSQL does. The
types here make both backends hand back timezone-aware UTC values.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, TypeDecorator
from sqlalchemy.engine import Dialect

from ..utils.datetime_utils import UTC, to_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column normalized to UTC.

    Values are converted to UTC before they are stored. Values read back
    without timezone information (SQLite) are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        """Convert the value to UTC before storing."""
        if value is None:
            return None
        value = to_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        """Return an aware UTC datetime."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

