"""
Tests for the OpenpyxlAdapter.

Tests workbook opening and the WorkbookReader view openpyxl provides over
files written by XlsxWriter, plus a few in-memory workbooks for the cases
XlsxWriter cannot produce.
"""

import io
from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.styles.colors import Color
from PIL import Image

from sheetsnap.adapters.base import DEFAULT_COLUMN_WIDTH, DEFAULT_ROW_HEIGHT
from sheetsnap.adapters.openpyxl_adapter import OpenpyxlAdapter, OpenpyxlWorkbook, color_to_hex
from sheetsnap.exceptions import (
    ExcelFileNotFoundError,
    InvalidFileFormatError,
    SheetNotFoundError,
    StyleResolutionError,
)


class TestOpen:
    """Tests for opening and validating workbooks."""

    def test_get_sheet_names(self, openpyxl_adapter: OpenpyxlAdapter, multi_sheet_excel_file: Path) -> None:
        """Test that sheet names come back in workbook order."""
        assert openpyxl_adapter.get_sheet_names(str(multi_sheet_excel_file)) == ["Users", "Empty", "Q3|Q4"]

    def test_file_not_found(self, openpyxl_adapter: OpenpyxlAdapter, temp_dir: Path) -> None:
        """Test that a missing file raises ExcelFileNotFoundError."""
        with pytest.raises(ExcelFileNotFoundError) as exc_info:
            openpyxl_adapter.open(str(temp_dir / "missing.xlsx"))

        assert exc_info.value.error_code == "FILE_NOT_FOUND"

    def test_unsupported_extension(self, openpyxl_adapter: OpenpyxlAdapter, temp_dir: Path) -> None:
        """Test that formats other than xlsx and xlsm are rejected."""
        path = temp_dir / "legacy.xls"
        path.write_bytes(b"\xd0\xcf\x11\xe0")

        with pytest.raises(InvalidFileFormatError) as exc_info:
            openpyxl_adapter.open(str(path))

        assert ".xls" in exc_info.value.message

    def test_corrupt_file(self, openpyxl_adapter: OpenpyxlAdapter, temp_dir: Path) -> None:
        """Test that a file that is not a zip package is rejected."""
        path = temp_dir / "broken.xlsx"
        path.write_text("this is not a workbook")

        with pytest.raises(InvalidFileFormatError):
            openpyxl_adapter.open(str(path))

    def test_workbook_info(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test workbook metadata."""
        info = openpyxl_adapter.get_workbook_info(str(sample_excel_file))

        assert info.sheet_count == 1
        assert info.file_size_bytes > 0
        sheet = info.sheets[0]
        assert sheet.name == "Report"
        assert sheet.visible
        assert sheet.merge_count == 1
        assert sheet.image_count == 0
        assert (sheet.row_count, sheet.column_count) == (6, 5)

    def test_workbook_info_counts_pictures(self, openpyxl_adapter: OpenpyxlAdapter, picture_excel_file: Path) -> None:
        """Test that pictures are counted per sheet."""
        info = openpyxl_adapter.get_workbook_info(str(picture_excel_file))

        assert info.sheets[0].image_count == 1


class TestValues:
    """Tests for the row and column views."""

    def test_rows(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that rows end at their last value and merged members are empty."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            rows = workbook.get_rows("Report")

        assert rows == [
            ["Quarterly Report"],
            ["Name", "Score", "Note"],
            ["Alice", "93", "ok"],
            ["Bob", "87.5", "a rather long note that does not fit"],
        ]

    def test_columns_include_stored_blanks(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that the column view runs to the last stored cell, blank or not."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            columns = workbook.get_columns("Report")

        assert len(columns) == 5
        assert columns[0] == ["Quarterly Report", "Name", "Alice", "Bob"]
        assert columns[3] == []
        assert columns[4] == [""] * 6

    def test_declared_dimension(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that the dimension stored in the file is reported."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            assert workbook.get_dimension("Report") == "A1:E6"

    def test_empty_sheet(self, openpyxl_adapter: OpenpyxlAdapter, multi_sheet_excel_file: Path) -> None:
        """Test the views of a sheet without cells."""
        with openpyxl_adapter.open(str(multi_sheet_excel_file)) as workbook:
            assert workbook.get_rows("Empty") == []
            assert workbook.get_columns("Empty") == []
            assert workbook.get_dimension("Empty") == "A1:A1"

    def test_unknown_sheet(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that asking for a missing sheet raises SheetNotFoundError."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            with pytest.raises(SheetNotFoundError) as exc_info:
                workbook.get_rows("Missing")

        assert exc_info.value.details["available_sheets"] == ["Report"]

    def test_in_memory_dimension(self) -> None:
        """Test that in-memory workbooks compute the dimension from their cells."""
        book = Workbook()
        book.active["B3"] = "x"
        book.create_sheet("Blank")
        workbook = OpenpyxlWorkbook(book)

        assert workbook.get_dimension("Sheet") == "B3:B3"
        assert workbook.get_dimension("Blank") == ""

    def test_number_formats_are_applied(self) -> None:
        """Test that display values follow the cell number format."""
        book = Workbook()
        sheet = book.active
        sheet["A1"] = 0.125
        sheet["A1"].number_format = "0.0%"
        sheet["B1"] = 1234.5
        sheet["B1"].number_format = "#,##0.00"
        sheet["C1"] = 45870
        sheet["C1"].number_format = "yyyy-mm-dd"

        rows = OpenpyxlWorkbook(book).get_rows("Sheet")

        assert rows == [["12.5%", "1,234.50", "2025-08-01"]]

    def test_raw_values_skip_number_formats(self, openpyxl_adapter: OpenpyxlAdapter, temp_dir: Path) -> None:
        """Test that raw mode shows the stored values."""
        file_path = temp_dir / "formats.xlsx"
        book = Workbook()
        book.active["A1"] = 0.125
        book.active["A1"].number_format = "0.0%"
        book.save(file_path)

        with openpyxl_adapter.open(str(file_path), raw_values=True) as workbook:
            raw = workbook.get_rows("Sheet")
        with openpyxl_adapter.open(str(file_path)) as workbook:
            formatted = workbook.get_columns("Sheet")

        assert raw == [["0.125"]]
        assert formatted == [["12.5%"]]


class TestGeometry:
    """Tests for row heights, column widths and merges."""

    def test_column_widths(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test explicit and default column widths."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            assert workbook.get_column_width("Report", "A") > 20
            assert workbook.get_column_width("Report", "B") == DEFAULT_COLUMN_WIDTH

    def test_row_heights(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test explicit and default row heights."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            assert workbook.get_row_height("Report", 1) == 30
            assert workbook.get_row_height("Report", 3) == DEFAULT_ROW_HEIGHT
            assert workbook.get_row_height("Report", 500) == DEFAULT_ROW_HEIGHT

    def test_merge_ranges(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that merges are reported as corner pairs."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            assert workbook.get_merge_ranges("Report") == [("A1", "C1")]


class TestStyles:
    """Tests for style identifiers and raw style records."""

    def test_merged_title_style(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test the record of the bold, filled title."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            record = workbook.resolve_style(workbook.get_style_id("Report", "A1"))

        assert record["font"]["bold"] is True
        assert record["font"]["name"] == "Calibri"
        assert record["font"]["size"] == 11
        assert record["fill"] == "FFFFFF00"
        assert record["alignment"]["horizontal"] == "center"

    def test_header_borders(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that thin borders keep their style; automatic ones may carry no color."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            record = workbook.resolve_style(workbook.get_style_id("Report", "B2"))

        for side in ("left", "right", "top", "bottom"):
            assert record["border"][side]["style"] == "thin"
        assert record["border"]["left"]["color"] in ("FF000000", None)
        assert record["fill"] == "FFBDD7EE"

    def test_font_color(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test an explicit font color and alignment."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            record = workbook.resolve_style(workbook.get_style_id("Report", "B3"))

        assert record["font"]["color"] == "FFFF0000"
        assert record["alignment"]["horizontal"] == "center"
        assert record["fill"] is None

    def test_unstyled_address(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that an address without a cell or row style has style 0."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            assert workbook.get_style_id("Report", "D5") == 0

    def test_unknown_style_identifier(self, openpyxl_adapter: OpenpyxlAdapter, sample_excel_file: Path) -> None:
        """Test that an identifier outside the style table is rejected."""
        with openpyxl_adapter.open(str(sample_excel_file)) as workbook:
            with pytest.raises(StyleResolutionError):
                workbook.resolve_style(10_000)

    def test_row_and_column_styles_are_inherited(self) -> None:
        """Test that empty addresses take the row style, then the column style."""
        book = Workbook()
        sheet = book.active
        sheet["A1"] = "x"
        sheet.row_dimensions[2].fill = PatternFill("solid", fgColor="FF00FF00")
        sheet.column_dimensions["C"].font = Font(bold=True)
        workbook = OpenpyxlWorkbook(book)

        row_record = workbook.resolve_style(workbook.get_style_id("Sheet", "B2"))
        column_record = workbook.resolve_style(workbook.get_style_id("Sheet", "C5"))

        assert row_record["fill"] == "FF00FF00"
        assert column_record["font"]["bold"] is True
        assert workbook.get_style_id("Sheet", "A1") == 0


class TestPictures:
    """Tests for anchored pictures."""

    def test_picture_at_anchor(self, openpyxl_adapter: OpenpyxlAdapter, picture_excel_file: Path) -> None:
        """Test that a picture is reported at its anchor cell with its bytes."""
        with openpyxl_adapter.open(str(picture_excel_file)) as workbook:
            pictures = workbook.get_pictures("Pictures", "B2")
            elsewhere = workbook.get_pictures("Pictures", "A1")

        assert elsewhere == []
        assert len(pictures) == 1
        assert pictures[0].format == "png"
        assert Image.open(io.BytesIO(pictures[0].data)).size == (12, 8)

    def test_picture_anchors(self, openpyxl_adapter: OpenpyxlAdapter, picture_excel_file: Path) -> None:
        """Test that anchors are reported even outside the cells holding values."""
        with openpyxl_adapter.open(str(picture_excel_file)) as workbook:
            assert workbook.get_picture_anchors("Pictures") == [(2, 2)]
            assert workbook.get_dimension("Pictures") == "A1:A1"


class TestColorToHex:
    """Tests for openpyxl color conversion."""

    def test_rgb(self) -> None:
        assert color_to_hex(Color(rgb="FF112233")) == "FF112233"

    def test_indexed(self) -> None:
        assert color_to_hex(Color(indexed=2)) == "00FF0000"
        assert color_to_hex(Color(indexed=64)) == "FF000000"

    def test_theme_with_tint(self) -> None:
        assert color_to_hex(Color(theme=1)) == "FF000000"
        assert color_to_hex(Color(theme=0, tint=-0.5)) == "FF808080"

    def test_missing(self) -> None:
        assert color_to_hex(None) is None
        assert color_to_hex(Color(theme=42)) is None
