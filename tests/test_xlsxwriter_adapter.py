"""
Tests for the XlsxWriterAdapter.

Workbooks are written with XlsxWriter and read back with openpyxl to check
what actually landed in the file.
"""

import os
from datetime import date
from pathlib import Path

import pytest
from openpyxl import load_workbook

from sheetsnap.adapters.xlsxwriter_adapter import DEMO_SHEET_NAME, XlsxWriterAdapter
from sheetsnap.exceptions import WriteError


class TestWriteSheet:
    """Tests for single sheet writing."""

    def test_write_plain_rows(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test writing rows without headers."""
        file_path = temp_dir / "plain.xlsx"

        result = xlsxwriter_adapter.write_sheet(str(file_path), [["a", 1], ["b", 2.5]])

        assert result["sheets_written"] == 1
        assert result["total_rows_written"] == 2
        assert os.path.exists(result["file_path"])
        assert result["file_size_bytes"] > 0

        sheet = load_workbook(file_path).active
        assert sheet.title == "Sheet1"
        assert sheet["B2"].value == 2.5

    def test_write_with_headers(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test that headers are written bold and bordered above the rows."""
        file_path = temp_dir / "headers.xlsx"

        result = xlsxwriter_adapter.write_sheet(
            str(file_path),
            [["Alice", 30]],
            sheet_name="Users",
            headers=["Name", "Age"],
        )

        assert result["total_rows_written"] == 2
        sheet = load_workbook(file_path)["Users"]
        assert sheet["A1"].value == "Name"
        assert sheet["A1"].font.b
        assert sheet["B1"].border.left.style == "thin"
        assert sheet["A2"].value == "Alice"

    def test_missing_extension_is_added(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test that the .xlsx extension is appended when missing."""
        result = xlsxwriter_adapter.write_sheet(str(temp_dir / "noext"), [["x"]])

        assert result["file_path"].endswith("noext.xlsx")

    def test_existing_file_without_overwrite(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test that an existing file is kept unless overwrite is set."""
        file_path = temp_dir / "exists.xlsx"
        xlsxwriter_adapter.write_sheet(str(file_path), [["first"]])

        with pytest.raises(WriteError) as exc_info:
            xlsxwriter_adapter.write_sheet(str(file_path), [["second"]])

        assert exc_info.value.error_code == "WRITE_ERROR"

        xlsxwriter_adapter.write_sheet(str(file_path), [["second"]], overwrite=True)
        assert load_workbook(file_path).active["A1"].value == "second"

    def test_creates_parent_directories(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test writing into a directory that does not exist yet."""
        file_path = temp_dir / "nested" / "deeper" / "book.xlsx"

        xlsxwriter_adapter.write_sheet(str(file_path), [["x"]])

        assert file_path.exists()


class TestWriteWorkbook:
    """Tests for declarative workbook writing."""

    def test_values_and_geometry(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test values, dates, formulas, start cell, widths and heights."""
        file_path = temp_dir / "book.xlsx"

        xlsxwriter_adapter.write_workbook(
            str(file_path),
            {
                "Data": {
                    "start_cell": "B2",
                    "rows": [["when", "total"], [date(2025, 8, 1), "=2*21"]],
                    "formula_results": {"C3": 42},
                    "col_widths": {"B": 14},
                    "row_heights": {2: 24},
                },
            },
        )

        sheet = load_workbook(file_path, data_only=True)["Data"]
        assert sheet["A1"].value is None
        assert sheet["B2"].value == "when"
        assert sheet["B3"].value.date() == date(2025, 8, 1)
        assert sheet["C3"].value == 42
        assert sheet.column_dimensions["B"].width > 14
        assert sheet.row_dimensions[2].height == 24

    def test_merges_blanks_and_formats(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test merged ranges, explicit blanks and formatted empty cells."""
        file_path = temp_dir / "styled.xlsx"

        xlsxwriter_adapter.write_workbook(
            str(file_path),
            {
                "Styled": {
                    "rows": [[None, "kept"]],
                    "formats": {"A1": {"bg_color": "#FF0000"}},
                    "blanks": ["D4"],
                    "merges": [("A6:B7", "Merged", {"bold": True})],
                },
            },
        )

        sheet = load_workbook(file_path)["Styled"]
        assert sheet["A1"].fill.fgColor.rgb == "FFFF0000"
        assert [str(merged) for merged in sheet.merged_cells.ranges] == ["A6:B7"]
        assert sheet["A6"].value == "Merged"
        assert sheet.max_row == 7
        assert (4, 4) in sheet._cells

    def test_empty_sheet(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test that an empty configuration gives an empty sheet."""
        file_path = temp_dir / "empty.xlsx"

        result = xlsxwriter_adapter.write_workbook(str(file_path), {"One": {"rows": [[1]]}, "Two": {}})

        assert result["sheets_written"] == 2
        book = load_workbook(file_path)
        assert book.sheetnames == ["One", "Two"]
        assert not book["Two"]._cells

    def test_invalid_sheet_name(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test that names Excel forbids surface as WriteError."""
        with pytest.raises(WriteError):
            xlsxwriter_adapter.write_workbook(str(temp_dir / "bad.xlsx"), {"Q3/Q4": {}})


class TestDemoWorkbook:
    """Tests for the demo workbook."""

    def test_demo_workbook(self, xlsxwriter_adapter: XlsxWriterAdapter, temp_dir: Path) -> None:
        """Test the content of the demo workbook."""
        file_path = temp_dir / "demo.xlsx"

        result = xlsxwriter_adapter.write_demo_workbook(str(file_path))

        assert result["sheets_written"] == 1
        sheet = load_workbook(file_path, data_only=True)[DEMO_SHEET_NAME]
        assert sheet["A1"].value == "销售明细"
        assert sorted(str(merged) for merged in sheet.merged_cells.ranges) == ["A1:E1", "A6:C6"]
        assert sheet["A2"].fill.fgColor.rgb == "FFBDD7EE"
        assert sheet["D3"].value == 42
        assert sheet["D6"].value == pytest.approx(42 + 25.2 + 31.6)
        assert sheet.row_dimensions[1].height == 28
