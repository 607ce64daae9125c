"""
DateTime utilities for pet-care operations.

This module provides timezone-aware datetime handling, the day and month
windows used by listings and dashboard statistics, hotel stay duration
and pet age calculation.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def get_current_utc() -> datetime:
    """Get the current UTC datetime."""
    return datetime.now(UTC)


def get_current_date() -> date:
    """Get the current date in UTC."""
    return get_current_utc().date()


def to_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are taken to already be in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """
    Return the half-open UTC interval [start, end) covering a calendar day.

    Args:
        day: The calendar day

    Returns:
        Tuple of (start of day, start of next day)
    """
    start = datetime.combine(day, time.min, tzinfo=UTC)
    return start, start + timedelta(days=1)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Return the half-open UTC interval [start, end) covering a month.

    Raises:
        ValueError: If month is not between 1 and 12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    start = datetime(year, month, 1, tzinfo=UTC)
    last_day = calendar.monthrange(year, month)[1]
    return start, start + timedelta(days=last_day)


def whole_days_between(start: date, end: date) -> int:
    """
    Number of whole days from start to end.

    Datetimes are reduced to their dates first, so 2025-06-01 23:00 to
    2025-06-02 01:00 counts as one day.
    """
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    return (end - start).days


def calculate_pet_age(
    birth_date: date, reference_date: Optional[date] = None
) -> Dict[str, int]:
    """
    Calculate a pet's age in years, months, and days.

    Args:
        birth_date: The pet's birth date
        reference_date: The date to calculate age from (defaults to today)

    Returns:
        Dictionary with 'years', 'months', and 'days' keys

    Raises:
        ValueError: If the birth date is after the reference date
    """
    if reference_date is None:
        reference_date = get_current_date()

    if birth_date > reference_date:
        raise ValueError("Birth date cannot be in the future")

    years = reference_date.year - birth_date.year
    months = reference_date.month - birth_date.month
    days = reference_date.day - birth_date.day

    if days < 0:
        months -= 1
        if reference_date.month == 1:
            prev_month_last_day = calendar.monthrange(reference_date.year - 1, 12)[1]
        else:
            prev_month_last_day = calendar.monthrange(
                reference_date.year, reference_date.month - 1
            )[1]
        days += prev_month_last_day

    if months < 0:
        years -= 1
        months += 12

    return {"years": years, "months": months, "days": days}


def format_pet_age(age_dict: Dict[str, int]) -> str:
    """
    Format a pet's age dictionary into a human-readable string.

    Args:
        age_dict: Dictionary with 'years', 'months', and 'days' keys

    Returns:
        Formatted age string
    """
    years = age_dict["years"]
    months = age_dict["months"]
    days = age_dict["days"]

    parts = []

    if years > 0:
        parts.append(f"{years} year{'s' if years != 1 else ''}")

    if months > 0:
        parts.append(f"{months} month{'s' if months != 1 else ''}")

    if days > 0 and years == 0:
        parts.append(f"{days} day{'s' if days != 1 else ''}")

    if not parts:
        return "0 days"

    return ", ".join(parts)
