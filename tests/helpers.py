"""
Test helpers shared by the test modules.

FakeWorkbook is an in-memory WorkbookReader, so the grid builder, layout
engine and renderer can be tested without writing workbooks to disk.
"""

import io
from typing import Any

from PIL import Image

from sheetsnap.adapters.base import DEFAULT_COLUMN_WIDTH, DEFAULT_ROW_HEIGHT
from sheetsnap.config import Settings
from sheetsnap.exceptions.snapshot_exceptions import SheetNotFoundError, StyleResolutionError
from sheetsnap.models.grid_models import PictureRecord, Sheet
from sheetsnap.services.grid_builder import SheetLoader
from sheetsnap.utils import split_address


class FakeWorkbook:
    """
    In-memory WorkbookReader.

    Each sheet is a dictionary with optional keys:

        rows: Row-major display values.
        columns: Column-major display values; derived from rows when absent.
        dimension: Declared used range.
        heights: Row number to height in points.
        widths: Column letter to width in characters.
        merges: List of (first, last) address pairs.
        style_ids: Address to style identifier.
        pictures: Address to list of PictureRecord.

    Style records are shared by the whole workbook, keyed by identifier.
    Identifiers without a record resolve to an empty record; identifiers
    listed in broken_styles raise StyleResolutionError.
    """

    def __init__(
        self,
        sheets: dict[str, dict[str, Any]],
        styles: dict[int, dict[str, Any]] | None = None,
        broken_styles: set[int] | None = None,
    ) -> None:
        self.sheets = sheets
        self.styles = styles or {}
        self.broken_styles = broken_styles or set()
        self.resolve_calls: list[int] = []

    def _sheet(self, sheet: str) -> dict[str, Any]:
        if sheet not in self.sheets:
            raise SheetNotFoundError(sheet_name=sheet, available_sheets=self.list_sheets())
        return self.sheets[sheet]

    def list_sheets(self) -> list[str]:
        return list(self.sheets)

    def get_rows(self, sheet: str) -> list[list[str]]:
        return [list(row) for row in self._sheet(sheet).get("rows", [])]

    def get_columns(self, sheet: str) -> list[list[str]]:
        data = self._sheet(sheet)
        if "columns" in data:
            return [list(column) for column in data["columns"]]

        rows = data.get("rows", [])
        width = max((len(row) for row in rows), default=0)
        columns = []
        for col in range(width):
            values = [row[col] if col < len(row) else "" for row in rows]
            while values and not values[-1]:
                values.pop()
            columns.append(values)
        return columns

    def get_dimension(self, sheet: str) -> str:
        return self._sheet(sheet).get("dimension", "")

    def get_row_height(self, sheet: str, row: int) -> float:
        return self._sheet(sheet).get("heights", {}).get(row, DEFAULT_ROW_HEIGHT)

    def get_column_width(self, sheet: str, column: str) -> float:
        return self._sheet(sheet).get("widths", {}).get(column, DEFAULT_COLUMN_WIDTH)

    def get_merge_ranges(self, sheet: str) -> list[tuple[str, str]]:
        return list(self._sheet(sheet).get("merges", []))

    def get_style_id(self, sheet: str, address: str) -> int:
        split_address(address)
        return self._sheet(sheet).get("style_ids", {}).get(address, 0)

    def resolve_style(self, style_id: int) -> dict[str, Any]:
        self.resolve_calls.append(style_id)
        if style_id in self.broken_styles:
            raise StyleResolutionError(style_id, reason="broken record")
        return self.styles.get(style_id, {})

    def get_picture_anchors(self, sheet: str) -> list[tuple[int, int]]:
        return sorted(split_address(address) for address in self._sheet(sheet).get("pictures", {}))

    def get_pictures(self, sheet: str, address: str) -> list[PictureRecord]:
        return list(self._sheet(sheet).get("pictures", {}).get(address, []))


def png_bytes(size: tuple[int, int] = (10, 10), color: tuple = (255, 0, 0), mode: str = "RGB") -> bytes:
    """Encode a solid-color image as PNG."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def load_fake(sheet: dict[str, Any], styles: dict[int, dict[str, Any]] | None = None, name: str = "Sheet1") -> Sheet:
    """Load one sheet of a FakeWorkbook with default settings."""
    reader = FakeWorkbook({name: sheet}, styles=styles)
    return SheetLoader(reader, settings=Settings(_env_file=None)).load(name)

