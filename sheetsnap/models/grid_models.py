"""
Cell grid models.

A Sheet is the result of loading one worksheet: a dense grid of Cell
entities keyed by (row, col), per-column widths and per-row heights in
Excel units, the decoded embedded pictures and the resolved style cache.
Cells do not point back at their sheet; anything that needs sheet context
takes the Sheet as an argument.
"""

from typing import Any

from openpyxl.utils import get_column_letter
from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from sheetsnap.models.style_models import ResolvedStyle
from sheetsnap.utils import is_numeric, make_address

CellKey = tuple[int, int]


class Cell(BaseModel):
    """
    One address of the dense grid.

    Members of a merge region all hold the very same ``merged_range`` tuple,
    listing the region's addresses in row-major order. Its first entry is
    the owner: the only member that is painted.

    Attributes:
        row: 1-based row number.
        col: 1-based column number.
        value: Display string ("" when empty).
        style_id: Workbook style identifier bound to this address.
        is_merged: Whether the cell belongs to a merge region.
        merged_range: Shared row-major address list of the region.
    """

    row: int = Field(ge=1, description="1-based row number")
    col: int = Field(ge=1, description="1-based column number")
    value: str = Field(default="", description="Display value")
    style_id: int = Field(default=0, ge=0, description="Workbook style identifier")
    is_merged: bool = Field(default=False, description="Member of a merge region")
    merged_range: tuple[CellKey, ...] | None = Field(
        default=None,
        description="Row-major addresses of the merge region",
    )

    @property
    def key(self) -> CellKey:
        return (self.row, self.col)

    @property
    def address(self) -> str:
        return make_address(self.row, self.col)

    @property
    def is_empty(self) -> bool:
        """True if the value is empty or whitespace only."""
        return not self.value.strip()

    @property
    def is_owner(self) -> bool:
        """True unless the cell is a non-top-left member of a merge region."""
        if not self.is_merged or not self.merged_range:
            return True
        return self.merged_range[0] == self.key

    @property
    def merge_end(self) -> CellKey:
        """Bottom-right address of the merge region, or the cell itself."""
        if self.is_merged and self.merged_range:
            return self.merged_range[-1]
        return self.key

    def is_numeric(self) -> bool:
        return is_numeric(self.value)

    def to_float(self) -> float:
        """
        Parse the value as a float.

        Raises:
            ValueError: If the value is not a number.
        """
        return float(self.value.strip())

    def to_int(self) -> int:
        """
        Parse the value as an integer.

        Raises:
            ValueError: If the value is not an integer literal.
        """
        return int(self.value.strip())


class PictureRecord(BaseModel):
    """
    A picture as reported by the workbook reader for one anchor address.

    Attributes:
        name: Picture name or path inside the package.
        data: Raw encoded bytes.
        format: Format tag such as "png" or "jpeg".
        offset_x: Horizontal offset inside the anchor cell, in EMU.
        offset_y: Vertical offset inside the anchor cell, in EMU.
        width: Explicit display width in pixels, 0 for natural size.
        height: Explicit display height in pixels, 0 for natural size.
    """

    name: str = Field(default="", description="Picture name")
    data: bytes = Field(default=b"", repr=False, description="Encoded picture bytes")
    format: str = Field(default="", description="Format tag")
    offset_x: int = Field(default=0, description="Horizontal offset in EMU")
    offset_y: int = Field(default=0, description="Vertical offset in EMU")
    width: int = Field(default=0, ge=0, description="Explicit width in pixels")
    height: int = Field(default=0, ge=0, description="Explicit height in pixels")


class ExcelImage(BaseModel):
    """
    A decoded embedded picture ready for compositing.

    Attributes:
        name: Picture name.
        data: Raw encoded bytes.
        format: Format tag (from the workbook, or detected while decoding).
        image: Decoded bitmap.
        row: Anchor row.
        col: Anchor column.
        offset_x: Horizontal offset inside the anchor cell, in EMU.
        offset_y: Vertical offset inside the anchor cell, in EMU.
        width: Explicit display width in pixels, 0 for natural size.
        height: Explicit display height in pixels, 0 for natural size.
        natural_width: Width of the decoded bitmap.
        natural_height: Height of the decoded bitmap.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = ""
    data: bytes = Field(default=b"", repr=False)
    format: str = ""
    image: Image.Image = Field(repr=False, exclude=True)
    row: int = Field(ge=1)
    col: int = Field(ge=1)
    offset_x: int = 0
    offset_y: int = 0
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    natural_width: int = Field(default=0, ge=0)
    natural_height: int = Field(default=0, ge=0)

    @property
    def address(self) -> str:
        return make_address(self.row, self.col)

    @property
    def display_size(self) -> tuple[int, int]:
        """Explicit size when both dimensions are set, natural size otherwise."""
        if self.width > 0 and self.height > 0:
            return self.width, self.height
        return self.natural_width, self.natural_height


class Sheet(BaseModel):
    """
    One loaded worksheet.

    Built once by SheetLoader.load; treated as read-only afterwards.

    Attributes:
        name: Worksheet name.
        index: 0-based position in the workbook.
        rows: Number of rows in the used range.
        cols: Number of columns in the used range.
        cells: Dense grid keyed by (row, col).
        col_widths: Column widths in character units keyed by column letter.
        row_heights: Row heights in points keyed by row number.
        images: Decoded embedded pictures.
        styles: Resolved styles keyed by style identifier.
        default_style: Style of cells whose identifier is not cached.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    index: int = Field(default=0, ge=0)
    rows: int = Field(default=0, ge=0)
    cols: int = Field(default=0, ge=0)
    cells: dict[CellKey, Cell] = Field(default_factory=dict)
    col_widths: dict[str, float] = Field(default_factory=dict)
    row_heights: dict[int, float] = Field(default_factory=dict)
    images: list[ExcelImage] = Field(default_factory=list)
    styles: dict[int, ResolvedStyle] = Field(default_factory=dict)
    default_style: ResolvedStyle = Field(default_factory=ResolvedStyle)

    @property
    def is_empty(self) -> bool:
        """True when the used range has no rows or no columns."""
        return self.rows == 0 or self.cols == 0

    @property
    def is_blank(self) -> bool:
        """True when no cell has a visible value and there are no pictures."""
        return not self.images and all(cell.is_empty for cell in self.cells.values())

    @property
    def merge_regions(self) -> list[tuple[CellKey, ...]]:
        """Distinct merge regions, in owner row-major order."""
        regions = {
            cell.merged_range
            for cell in self.cells.values()
            if cell.is_merged and cell.merged_range and cell.is_owner
        }
        return sorted(regions)

    def cell(self, row: int, col: int) -> Cell | None:
        return self.cells.get((row, col))

    def col_width(self, col: int) -> float:
        """Width of a 1-based column in character units (0 when unknown)."""
        return self.col_widths.get(get_column_letter(col), 0.0)

    def row_height(self, row: int) -> float:
        """Height of a 1-based row in points (0 when unknown)."""
        return self.row_heights.get(row, 0.0)

    def style_of(self, cell: Cell) -> ResolvedStyle:
        """Resolved style bound to a cell, or the default style if none is cached."""
        return self.styles.get(cell.style_id, self.default_style)

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "index": self.index,
            "rows": self.rows,
            "cols": self.cols,
            "cells": len(self.cells),
            "merges": len(self.merge_regions),
            "images": len(self.images),
            "styles": len(self.styles),
        }
