"""
Tests for the address and value helpers.
"""

from datetime import date, datetime, time

import pytest

from sheetsnap.exceptions import CellRangeError
from sheetsnap.utils import format_cell_value, is_numeric, make_address, parse_range, split_address


class TestAddresses:
    """Tests for A1 address parsing."""

    def test_split_address(self) -> None:
        """Test parsing plain and absolute addresses."""
        assert split_address("A1") == (1, 1)
        assert split_address("b7") == (7, 2)
        assert split_address("$AA$10") == (10, 27)

    def test_make_address_roundtrip(self) -> None:
        """Test building an address back from its coordinates."""
        assert make_address(7, 2) == "B7"
        assert make_address(1, 16_384) == "XFD1"

    @pytest.mark.parametrize("address", ["", "A", "1", "A0", "ZZZZ1", "A1048577", "1A"])
    def test_split_address_invalid(self, address: str) -> None:
        """Test that malformed addresses raise CellRangeError."""
        with pytest.raises(CellRangeError) as exc_info:
            split_address(address)

        assert exc_info.value.error_code == "INVALID_CELL_RANGE"

    def test_parse_range_normalizes_corners(self) -> None:
        """Test that reversed ranges are normalized."""
        assert parse_range("C3:A1") == ((1, 1), (3, 3))
        assert parse_range("B2") == ((2, 2), (2, 2))

    def test_parse_range_invalid(self) -> None:
        """Test that ranges with too many parts are rejected."""
        with pytest.raises(CellRangeError):
            parse_range("A1:B2:C3")


class TestValues:
    """Tests for display value conversion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            ("text", "text"),
            (True, "TRUE"),
            (False, "FALSE"),
            (42, "42"),
            (3.0, "3"),
            (87.5, "87.5"),
            (0.1 + 0.2, "0.3"),
            (datetime(2025, 8, 1), "2025-08-01"),
            (datetime(2025, 8, 1, 9, 30), "2025-08-01 09:30:00"),
            (date(2025, 8, 1), "2025-08-01"),
            (time(9, 30), "09:30:00"),
        ],
    )
    def test_format_cell_value(self, value, expected: str) -> None:
        """Test conversion of every stored value type."""
        assert format_cell_value(value) == expected

    def test_is_numeric(self) -> None:
        """Test numeric detection used by general alignment."""
        assert is_numeric("123")
        assert is_numeric(" -1.5e3 ")
        assert not is_numeric("abc")
        assert not is_numeric("")
        assert not is_numeric("nan")
        assert not is_numeric("inf")
        assert is_numeric("1,234.50")
        assert is_numeric("12.5%")
        assert is_numeric("-$5.00")
        assert is_numeric("(3)")
        assert not is_numeric("12,34")
        assert not is_numeric("$")


class TestNumberFormats:
    """Tests for display values under a number format code."""

    @pytest.mark.parametrize(
        ("value", "code", "expected"),
        [
            (0.125, "0.0%", "12.5%"),
            (0.25, "0%", "25%"),
            (42, "0.00", "42.00"),
            (2.5, "0", "3"),
            (-5, "0.0", "-5.0"),
            (1234.5, "#,##0.00", "1,234.50"),
            (1234567, "#,##0,", "1,235"),
            (0.5, "#.##", ".5"),
            (12345, "0.00E+00", "1.23E+04"),
            (1500, '"$"#,##0', "$1,500"),
            (3.5, "[$€-407]#,##0.00", "€3.50"),
            (-1234.5, "#,##0.00;(#,##0.00)", "(1,234.50)"),
            (0, '0.00;-0.00;"-"', "-"),
            (7, "0 \"pcs\"", "7 pcs"),
        ],
    )
    def test_numbers(self, value, code: str, expected: str) -> None:
        """Test fixed decimals, grouping, percent, literals and sections."""
        assert format_cell_value(value, code) == expected

    @pytest.mark.parametrize(
        ("value", "code", "expected"),
        [
            (datetime(2025, 8, 1), "yyyy-mm-dd", "2025-08-01"),
            (45870, "yyyy-mm-dd", "2025-08-01"),
            (date(2025, 8, 1), "d mmm yyyy", "1 Aug 2025"),
            (time(9, 30), "h:mm", "9:30"),
            (datetime(2025, 8, 1, 15, 5), "h:mm AM/PM", "3:05 PM"),
            (datetime(2025, 8, 1, 15, 5, 9), "hh:mm:ss", "15:05:09"),
        ],
    )
    def test_dates(self, value, code: str, expected: str) -> None:
        """Test date and time tokens, including minutes next to hours."""
        assert format_cell_value(value, code) == expected

    @pytest.mark.parametrize(
        ("value", "code", "expected"),
        [
            (0.125, None, "0.125"),
            (0.125, "General", "0.125"),
            (42, "@", "42"),
            ("text", "0.00", "text"),
            (True, "0.00", "TRUE"),
        ],
    )
    def test_general_and_text(self, value, code, expected: str) -> None:
        """Test that general codes and non-numeric values keep the stored form."""
        assert format_cell_value(value, code) == expected
