"""Tests for the ledger date normalizer and numeric sanitizer."""

import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from supply_ledger.normalization import (
    is_iso_date,
    normalize_date,
    parse_ledger_date,
    sanitize_number,
)


class TestDateNormalizer:
    """Tests for normalize_date / parse_ledger_date."""

    def test_serial_date(self):
        """Test spreadsheet serial numbers become ISO dates."""
        assert normalize_date(44910) == "2022-12-15"
        assert is_iso_date(normalize_date(44910))

    def test_serial_date_as_text(self):
        """Test numeric text is treated as a serial number."""
        assert normalize_date("45000") == "2023-03-15"

    def test_fractional_serial_keeps_day(self):
        """Test a time-of-day fraction does not move the date."""
        assert normalize_date(45000.75) == "2023-03-15"

    def test_text_month_two_digit_year(self):
        """Test DD-Mon-YY dates."""
        assert normalize_date("15-Dec-22") == "2022-12-15"

    def test_text_month_is_case_insensitive_and_pads_day(self):
        """Test month lookup ignores case and single-digit days are padded."""
        assert normalize_date("5-JAN-2024") == "2024-01-05"
        assert normalize_date("05-sep-24") == "2024-09-05"

    def test_text_month_rejects_impossible_day(self):
        """Test 31-Feb does not produce a fake ISO date."""
        result = parse_ledger_date("31-Feb-24")
        assert not result.parsed
        assert result.value == "31-Feb-24"

    def test_generic_parser(self):
        """Test free-form dates go through the generic parser."""
        result = parse_ledger_date("2024-03-01")
        assert result.parsed
        assert result.value == "2024-03-01"
        assert normalize_date("March 4, 2024") == "2024-03-04"

    def test_generic_parser_month_first_by_default(self):
        """Test ambiguous slashed dates are month-first unless asked."""
        assert normalize_date("03/04/2023") == "2023-03-04"
        assert normalize_date("03/04/2023", dayfirst=True) == "2023-04-03"

    def test_native_dates(self):
        """Test openpyxl-typed cells pass straight through."""
        assert normalize_date(datetime(2024, 6, 30, 18, 45)) == "2024-06-30"
        assert normalize_date(date(2024, 6, 30)) == "2024-06-30"

    def test_unparseable_returns_input(self):
        """Test unparseable text is returned unchanged and flagged."""
        assert normalize_date("not a date") == "not a date"
        result = parse_ledger_date("  not a date ")
        assert result.parsed is False
        assert result.value == "not a date"

    def test_empty_input(self):
        """Test empty and missing values."""
        assert normalize_date("") == ""
        assert normalize_date(None) == ""
        assert parse_ledger_date(None).parsed is False

    def test_small_numbers_are_not_serials(self):
        """Test numbers outside the serial range are not read as dates."""
        assert parse_ledger_date(42).method != "serial"

    def test_is_iso_date(self):
        """Test ISO shape and calendar validity."""
        assert is_iso_date("2024-02-29")
        assert not is_iso_date("2023-02-29")
        assert not is_iso_date("15-Dec-22")
        assert not is_iso_date(None)


class TestNumericSanitizer:
    """Tests for sanitize_number."""

    @pytest.mark.parametrize("raw, expected", [
        ("1,23,456.00", 123456.0),
        ("123,456.50", 123456.5),
        ("₹ 2,650", 2650.0),
        ("Rs. 1,400", 1400.0),
        ("INR 40", 40.0),
        (" 7 000 ", 7000.0),
        ("1,500.00 Dr", 1500.0),
        (2650, 2650.0),
        (12.5, 12.5),
        (Decimal("99.99"), 99.99),
    ])
    def test_parses_amounts(self, raw, expected):
        """Test grouped, prefixed and suffixed amounts."""
        assert sanitize_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "-", "abc", "1.2.3", float("nan"), float("inf")])
    def test_degrades_to_zero(self, raw):
        """Test empty or garbage input gives 0, never NaN."""
        result = sanitize_number(raw)
        assert result == 0.0
        assert not math.isnan(result)

    def test_negative_is_clamped(self):
        """Test negative amounts become 0."""
        assert sanitize_number(-50) == 0.0
        assert sanitize_number("-1,000") == 0.0

    def test_booleans_are_not_numbers(self):
        """Test True is not read as 1."""
        assert sanitize_number(True) == 0.0
