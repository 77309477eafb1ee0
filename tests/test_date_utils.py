"""Tests for statement date normalization and month arithmetic."""

from datetime import date

import pytest

from statement_planner.utils.date_utils import (
    add_months,
    format_month_year,
    generate_period_range,
    month_difference,
    normalize_date,
    parse_period,
    shift_period,
)


class TestNormalizeDate:
    """Tests for normalize_date."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("15-mar-24", "2024-03-15"),
            ("15-Mar-24", "2024-03-15"),
            ("05/ENE/2024", "2024-01-05"),
            ("1 dic 2023", "2023-12-01"),
            ("15/03/2024", "2024-03-15"),
            ("15.03.24", "2024-03-15"),
            ("2024-03-15", "2024-03-15"),
            ("2024-03-15T10:30:00", "2024-03-15"),
            ("Jan 15, 2024", "2024-01-15"),
            ("  10-04-2024  ", "2024-04-10"),
            ("03/15/2024", "2024-03-15"),
        ],
    )
    def test_known_formats(self, raw: str, expected: str) -> None:
        """Test that common statement formats become ISO dates."""
        assert normalize_date(raw) == expected

    def test_unparseable_returns_trimmed_original(self) -> None:
        """Test that garbage is returned trimmed instead of raising."""
        assert normalize_date("  sin fecha ") == "sin fecha"

    def test_day_first_preferred_when_ambiguous(self) -> None:
        """Test that 03/04/2024 is read as 3 April, not March 4."""
        assert normalize_date("03/04/2024") == "2024-04-03"

    def test_invalid_calendar_day_is_not_invented(self) -> None:
        """Test that 31/02 is not silently turned into another date."""
        assert normalize_date("31/02/2024") == "31/02/2024"

    @pytest.mark.parametrize("value", [None, "", "   ", 20240315])
    def test_empty_or_non_string(self, value: object) -> None:
        """Test that empty and non-string input yields an empty string."""
        assert normalize_date(value) == ""

    @pytest.mark.parametrize(
        "raw",
        ["15-mar-24", "15/03/2024", "03/15/2024", "2024-03-15", "sin fecha", "Jan 15, 2024", "31/02/2024", "Q3"],
    )
    def test_idempotent(self, raw: str) -> None:
        """Test that normalizing twice equals normalizing once."""
        once = normalize_date(raw)
        assert normalize_date(once) == once


class TestMonthArithmetic:
    """Tests for period keys and month shifting."""

    def test_add_months_clamps_day(self) -> None:
        """Test that month-end days are clamped to the target month."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_add_months_across_years(self) -> None:
        """Test shifting forward and backward over a year boundary."""
        assert add_months(date(2024, 11, 10), 3) == date(2025, 2, 10)
        assert add_months(date(2024, 2, 10), -3) == date(2023, 11, 10)

    def test_shift_period(self) -> None:
        """Test shifting period keys."""
        assert shift_period("2024-12", 1) == "2025-01"
        assert shift_period("2024-01", -1) == "2023-12"

    def test_shift_period_invalid(self) -> None:
        """Test that an invalid key raises ValueError."""
        with pytest.raises(ValueError, match="Invalid period key"):
            shift_period("Unknown", 1)

    def test_month_difference(self) -> None:
        """Test month difference between period keys and full dates."""
        assert month_difference("2024-04", "2024-06") == 2
        assert month_difference("2024-11", "2025-02") == 3
        assert month_difference("2024-06", "2024-04") == -2
        assert month_difference("2024-04-30", "2024-05-01") == 1

    def test_month_difference_invalid(self) -> None:
        """Test that invalid keys yield None."""
        assert month_difference("Unknown", "2024-06") is None

    def test_parse_period_rejects_bad_month(self) -> None:
        """Test that month 13 is not a period."""
        assert parse_period("2024-13") is None
        assert parse_period("2024-06") == (2024, 6)

    def test_generate_period_range(self) -> None:
        """Test consecutive period generation including the start."""
        assert generate_period_range("2024-11", 3) == ["2024-11", "2024-12", "2025-01"]

    def test_format_month_year(self) -> None:
        """Test human month labels."""
        assert format_month_year("2024-06") == "June 2024"
        assert format_month_year("Unknown") == "Unknown"
