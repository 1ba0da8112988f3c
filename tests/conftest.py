"""
Test fixtures and utilities for the snapshot service tests.

This module provides shared fixtures including temporary directories,
XlsxWriter-built workbooks, an in-memory workbook reader and a font registry
shared by every rendering test.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from helpers import png_bytes

from sheetsnap.adapters.openpyxl_adapter import OpenpyxlAdapter
from sheetsnap.adapters.xlsxwriter_adapter import XlsxWriterAdapter
from sheetsnap.config import Settings
from sheetsnap.services.font_registry import FontRegistry
from sheetsnap.services.snapshot_service import SnapshotService


@pytest.fixture
def settings() -> Settings:
    """Default settings, unaffected by the environment of the test run."""
    return Settings(_env_file=None)


@pytest.fixture(scope="session")
def font_registry() -> FontRegistry:
    """
    Font registry shared by the whole session.

    Returns:
        FontRegistry over the system font directories.
    """
    return FontRegistry()


@pytest.fixture
def openpyxl_adapter() -> OpenpyxlAdapter:
    """
    Create an OpenpyxlAdapter instance for testing.

    Returns:
        OpenpyxlAdapter instance.
    """
    return OpenpyxlAdapter()


@pytest.fixture
def xlsxwriter_adapter() -> XlsxWriterAdapter:
    """
    Create an XlsxWriterAdapter instance for testing.

    Returns:
        XlsxWriterAdapter instance.
    """
    return XlsxWriterAdapter()


@pytest.fixture
def snapshot_service(settings: Settings, font_registry: FontRegistry) -> SnapshotService:
    """
    Create a SnapshotService that reuses the session font registry.

    Returns:
        SnapshotService instance.
    """
    return SnapshotService(settings, fonts=font_registry)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_excel_file(temp_dir: Path, xlsxwriter_adapter: XlsxWriterAdapter) -> Path:
    """
    Create a styled single-sheet workbook.

    Layout of "Report":
        A1:C1  merged, bold title on a yellow fill
        A2:C2  headers with thin borders
        A3:C4  data, numbers in column B, a long note in C4
        E6     explicitly stored blank cell
        column A is 20 wide, row 1 is 30 high

    Returns:
        Path to the workbook.
    """
    file_path = temp_dir / "sample.xlsx"
    header = {"bold": True, "border": 1, "bg_color": "#BDD7EE"}

    xlsxwriter_adapter.write_workbook(
        str(file_path),
        {
            "Report": {
                "rows": [
                    [],
                    ["Name", "Score", "Note"],
                    ["Alice", 93, "ok"],
                    ["Bob", 87.5, "a rather long note that does not fit"],
                ],
                "formats": {
                    "A2": header,
                    "B2": header,
                    "C2": header,
                    "B3": {"align": "center", "font_color": "#FF0000"},
                },
                "blanks": ["E6"],
                "merges": [
                    ("A1:C1", "Quarterly Report", {"bold": True, "bg_color": "#FFFF00", "align": "center"}),
                ],
                "col_widths": {"A": 20},
                "row_heights": {1: 30},
            },
        },
    )
    return file_path


@pytest.fixture
def multi_sheet_excel_file(temp_dir: Path, xlsxwriter_adapter: XlsxWriterAdapter) -> Path:
    """
    Create a workbook with two populated sheets and one empty sheet.

    Returns:
        Path to the workbook.
    """
    file_path = temp_dir / "multi_sheet.xlsx"

    xlsxwriter_adapter.write_workbook(
        str(file_path),
        {
            "Users": {"rows": [["Name", "Age"], ["Alice", 30], ["Bob", 25]]},
            "Empty": {},
            "Q3|Q4": {"rows": [["Product", "Price"], ["Widget", 10.99]]},
        },
    )
    return file_path


@pytest.fixture
def picture_excel_file(temp_dir: Path, xlsxwriter_adapter: XlsxWriterAdapter) -> Path:
    """
    Create a workbook with a 12x8 blue picture anchored at B2.

    Returns:
        Path to the workbook.
    """
    file_path = temp_dir / "pictures.xlsx"

    xlsxwriter_adapter.write_workbook(
        str(file_path),
        {
            "Pictures": {
                "rows": [["Logo"]],
                "images": [("B2", png_bytes((12, 8), (0, 0, 255)), None)],
            },
        },
    )
    return file_path
