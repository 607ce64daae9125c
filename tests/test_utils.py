"""
Tests for datetime and text utilities.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from petcare_core.utils import (
    calculate_pet_age,
    day_bounds,
    escape_like,
    format_pet_age,
    get_current_utc,
    month_bounds,
    sanitize_string,
    sanitize_text,
    to_utc,
    whole_days_between,
)


class TestDatetimeUtils:
    """Test cases for timezone handling and date windows."""

    def test_current_utc_is_aware(self):
        assert get_current_utc().utcoffset() == timedelta(0)

    def test_to_utc_treats_naive_as_utc(self):
        naive = datetime(2025, 6, 1, 10, 30)

        assert to_utc(naive).utcoffset() == timedelta(0)
        assert to_utc(naive).hour == 10

    def test_to_utc_converts_offsets(self):
        bogota = timezone(timedelta(hours=-5))

        converted = to_utc(datetime(2025, 6, 1, 22, 0, tzinfo=bogota))

        assert (converted.day, converted.hour) == (2, 3)

    def test_day_bounds(self):
        start, end = day_bounds(date(2025, 12, 31))

        assert start == datetime(2025, 12, 31, tzinfo=timezone.utc)
        assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_month_bounds_handles_leap_years(self):
        start, end = month_bounds(2028, 2)

        assert start == datetime(2028, 2, 1, tzinfo=timezone.utc)
        assert end == datetime(2028, 3, 1, tzinfo=timezone.utc)

    def test_month_bounds_december(self):
        _, end = month_bounds(2025, 12)

        assert end == datetime(2026, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_bounds_rejects_invalid_month(self, month):
        with pytest.raises(ValueError, match="Month must be between 1 and 12"):
            month_bounds(2025, month)

    def test_whole_days_between_ignores_time(self):
        start = datetime(2025, 6, 1, 23, 0, tzinfo=timezone.utc)
        end = datetime(2025, 6, 2, 1, 0, tzinfo=timezone.utc)

        assert whole_days_between(start, end) == 1
        assert whole_days_between(date(2025, 6, 1), date(2025, 6, 4)) == 3


class TestPetAge:
    """Test cases for pet age calculation and formatting."""

    def test_exact_years(self):
        age = calculate_pet_age(date(2020, 3, 15), date(2024, 3, 15))

        assert age == {"years": 4, "months": 0, "days": 0}

    def test_borrows_days_from_previous_month(self):
        age = calculate_pet_age(date(2023, 1, 20), date(2023, 3, 5))

        assert age == {"years": 0, "months": 1, "days": 13}

    def test_borrows_across_new_year(self):
        age = calculate_pet_age(date(2023, 12, 20), date(2024, 1, 5))

        assert age == {"years": 0, "months": 0, "days": 16}

    def test_future_birth_date(self):
        with pytest.raises(ValueError):
            calculate_pet_age(date(2030, 1, 1), date(2025, 1, 1))

    @pytest.mark.parametrize(
        "age, expected",
        [
            ({"years": 2, "months": 3, "days": 10}, "2 years, 3 months"),
            ({"years": 1, "months": 0, "days": 4}, "1 year"),
            ({"years": 0, "months": 1, "days": 1}, "1 month, 1 day"),
            ({"years": 0, "months": 0, "days": 0}, "0 days"),
        ],
    )
    def test_format_pet_age(self, age, expected):
        assert format_pet_age(age) == expected


class TestTextHelpers:
    """Test cases for text sanitizing."""

    def test_sanitize_string_collapses_whitespace(self):
        assert sanitize_string("  Maria \t  Fernanda\n Lopez ") == "Maria Fernanda Lopez"

    def test_sanitize_string_truncates(self):
        assert sanitize_string("Bath and haircut", max_length=9) == "Bath and"

    def test_sanitize_string_normalizes_unicode(self):
        assert sanitize_string("Ｌｕｎａ") == "Luna"

    def test_sanitize_text_keeps_line_breaks(self):
        assert sanitize_text("  Ear drops \n\n  twice   a day  ") == "Ear drops\n\ntwice a day"

    def test_sanitize_text_blank_becomes_none(self):
        assert sanitize_text(" \n\t ") is None
        assert sanitize_text(None) is None

    def test_escape_like(self):
        assert escape_like("100%_off\\") == "100\\%\\_off\\\\"
