"""
Read-side contract between the core pipeline and a workbook backend.

The grid builder, style resolver and image loader only ever talk to a
WorkbookReader. OpenpyxlWorkbook is the production implementation; tests
use an in-memory one.
"""

from typing import Any, Protocol

from sheetsnap.models.grid_models import PictureRecord

DEFAULT_ROW_HEIGHT = 15.0
"""Row height in points reported for rows without an explicit height."""

DEFAULT_COLUMN_WIDTH = 9.140625
"""Column width in characters reported for columns without an explicit width."""


class WorkbookReader(Protocol):
    """
    Minimum workbook surface the snapshot pipeline needs.

    Every per-sheet method raises SheetNotFoundError for an unknown sheet.
    Cell values are already converted to display strings.
    """

    def list_sheets(self) -> list[str]: ...

    def get_rows(self, sheet: str) -> list[list[str]]:
        """Row-major values, each row trimmed after its last non-empty value."""
        ...

    def get_columns(self, sheet: str) -> list[list[str]]:
        """Column-major values, each column up to its last stored cell."""
        ...

    def get_dimension(self, sheet: str) -> str:
        """Declared used range, "A1:D10" or a single "D10"; "" when absent."""
        ...

    def get_row_height(self, sheet: str, row: int) -> float: ...

    def get_column_width(self, sheet: str, column: str) -> float: ...

    def get_merge_ranges(self, sheet: str) -> list[tuple[str, str]]: ...

    def get_style_id(self, sheet: str, address: str) -> int: ...

    def resolve_style(self, style_id: int) -> dict[str, Any]:
        """
        Raw style record with "font", "fill", "border" and "alignment" keys.

        Colors are hex strings (RGB or ARGB) or None.
        """
        ...

    def get_picture_anchors(self, sheet: str) -> list[tuple[int, int]]:
        """(row, col) anchor cells that have at least one picture."""
        ...

    def get_pictures(self, sheet: str, address: str) -> list[PictureRecord]: ...
