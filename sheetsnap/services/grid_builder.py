"""
Cell grid builder.

SheetLoader turns one worksheet of a WorkbookReader into a Sheet: a dense
grid of cells covering every address of the used range, with styles bound,
merge regions expanded and row/column geometry computed.

The used range is the union of three views the workbook reports, because
none of them is complete on its own: the row-major values drop explicitly
empty cells, the column-major values keep them, and the declared dimension
may reach further than either. Picture anchors extend it too, so a picture
below or right of the data still has a cell to sit in.
"""

import logging
import time
from dataclasses import dataclass

from openpyxl.utils import get_column_letter

from sheetsnap.adapters.base import WorkbookReader
from sheetsnap.config import Settings, get_settings
from sheetsnap.exceptions.snapshot_exceptions import CellRangeError
from sheetsnap.models.grid_models import Cell, CellKey, Sheet
from sheetsnap.models.style_models import ResolvedStyle
from sheetsnap.services.image_loader import load_images
from sheetsnap.services.layout_engine import compute_row_heights, optimize_column_widths
from sheetsnap.services.style_resolver import StyleResolver
from sheetsnap.utils import parse_range

logger = logging.getLogger(__name__)


@dataclass
class _Bounds:
    rows: int = 0
    cols: int = 0

    def grow(self, row: int, col: int) -> None:
        self.rows = max(self.rows, row)
        self.cols = max(self.cols, col)


class SheetLoader:
    """
    Builds Sheet objects from one workbook.

    Attributes:
        reader: Workbook the sheets are read from.
        resolver: Style resolver for the same workbook.

    Example:
        with OpenpyxlAdapter().open("book.xlsx") as workbook:
            loader = SheetLoader(workbook)
            sheet = loader.load("Sheet1")
    """

    def __init__(
        self,
        reader: WorkbookReader,
        resolver: StyleResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.reader = reader
        self.resolver = resolver or StyleResolver(
            reader,
            default_family=self.settings.default_font_family,
            default_size=self.settings.default_font_size,
        )

    def load(self, sheet_name: str, index: int = 0) -> Sheet:
        """
        Load one worksheet.

        Args:
            sheet_name: Name of the worksheet.
            index: 0-based position of the sheet, recorded on the result.

        Returns:
            The loaded Sheet.

        Raises:
            SheetNotFoundError: If the workbook has no such sheet.
        """
        start = time.perf_counter()
        cells: dict[CellKey, Cell] = {}
        bounds = _Bounds()

        self._add_row_view(sheet_name, cells, bounds)
        self._add_column_view(sheet_name, cells, bounds)
        self._add_dimension(sheet_name, cells, bounds)
        anchors = self._add_picture_anchors(sheet_name, bounds)
        self._fill_gaps(cells, bounds)

        sheet = Sheet(name=sheet_name, index=index, default_style=self.resolver.default_style)
        sheet.cells = cells
        stats = self._bind_styles(sheet, list(cells.values()))
        self._expand_merges(sheet, bounds, stats)
        self._bind_styles(sheet, self._fill_gaps(cells, bounds), stats)

        sheet.rows = bounds.rows
        sheet.cols = bounds.cols

        declared_widths = {
            get_column_letter(col): self.reader.get_column_width(sheet_name, get_column_letter(col))
            for col in range(1, sheet.cols + 1)
        }
        declared_heights = {
            row: self.reader.get_row_height(sheet_name, row)
            for row in range(1, sheet.rows + 1)
        }
        sheet.row_heights = compute_row_heights(sheet, declared_heights, declared_widths)
        sheet.col_widths = optimize_column_widths(sheet, declared_widths)
        sheet.images = load_images(self.reader, sheet_name, anchors)

        logger.info(
            "Loaded sheet %r: %d rows x %d cols, %d cells, %d style binds, "
            "%d style cache misses, %d images in %.1f ms",
            sheet_name,
            sheet.rows,
            sheet.cols,
            len(cells),
            stats["binds"],
            stats["misses"],
            len(sheet.images),
            (time.perf_counter() - start) * 1000,
        )
        return sheet

    # ==================== GRID ====================

    def _add_row_view(self, sheet_name: str, cells: dict[CellKey, Cell], bounds: _Bounds) -> None:
        rows = self.reader.get_rows(sheet_name)
        for row_number, values in enumerate(rows, start=1):
            for col_number, value in enumerate(values, start=1):
                cells[(row_number, col_number)] = Cell(row=row_number, col=col_number, value=value)
            bounds.grow(row_number, len(values))
        bounds.grow(len(rows), 0)

    def _add_column_view(self, sheet_name: str, cells: dict[CellKey, Cell], bounds: _Bounds) -> None:
        columns = self.reader.get_columns(sheet_name)
        for col_number, values in enumerate(columns, start=1):
            for row_number, value in enumerate(values, start=1):
                if (row_number, col_number) not in cells:
                    cells[(row_number, col_number)] = Cell(row=row_number, col=col_number, value=value)
            if values:
                bounds.grow(len(values), col_number)

    def _add_dimension(self, sheet_name: str, cells: dict[CellKey, Cell], bounds: _Bounds) -> None:
        dimension = self.reader.get_dimension(sheet_name)
        if not dimension:
            return

        try:
            (first_row, first_col), (last_row, last_col) = parse_range(dimension)
        except CellRangeError as e:
            logger.debug("Ignoring dimension %r of %r: %s", dimension, sheet_name, e.message)
            return

        # A single address covers everything from A1 up to it.
        if ":" not in dimension:
            first_row, first_col = 1, 1

        for row in range(first_row, last_row + 1):
            for col in range(first_col, last_col + 1):
                if (row, col) not in cells:
                    cells[(row, col)] = Cell(row=row, col=col)
        bounds.grow(last_row, last_col)

    def _add_picture_anchors(self, sheet_name: str, bounds: _Bounds) -> list[CellKey]:
        """Grow the used range so every picture anchor cell is part of the grid."""
        anchors = self.reader.get_picture_anchors(sheet_name)
        for row, col in anchors:
            bounds.grow(row, col)
        return anchors

    def _fill_gaps(self, cells: dict[CellKey, Cell], bounds: _Bounds) -> list[Cell]:
        """Insert an empty cell for every address of the used range still missing."""
        created = []
        for row in range(1, bounds.rows + 1):
            for col in range(1, bounds.cols + 1):
                if (row, col) not in cells:
                    cell = Cell(row=row, col=col)
                    cells[(row, col)] = cell
                    created.append(cell)
        return created

    # ==================== STYLES ====================

    def _style_for(self, sheet: Sheet, style_id: int, stats: dict[str, int]) -> ResolvedStyle:
        style = sheet.styles.get(style_id)
        if style is None:
            style = self.resolver.resolve(style_id)
            sheet.styles[style_id] = style
            stats["misses"] += 1
        return style

    def _bind_styles(
        self,
        sheet: Sheet,
        cells: list[Cell],
        stats: dict[str, int] | None = None,
    ) -> dict[str, int]:
        stats = stats if stats is not None else {"binds": 0, "misses": 0}
        for cell in cells:
            self._bind_style(sheet, cell, stats)
        return stats

    def _bind_style(self, sheet: Sheet, cell: Cell, stats: dict[str, int]) -> None:
        cell.style_id = self.reader.get_style_id(sheet.name, cell.address)
        self._style_for(sheet, cell.style_id, stats)
        stats["binds"] += 1

    # ==================== MERGES ====================

    def _expand_merges(self, sheet: Sheet, bounds: _Bounds, stats: dict[str, int]) -> None:
        bound: set[CellKey] = set(sheet.cells)

        for first, last in self.reader.get_merge_ranges(sheet.name):
            try:
                (first_row, first_col), (last_row, last_col) = parse_range(f"{first}:{last}")
            except CellRangeError as e:
                logger.debug("Ignoring merge %s:%s on %r: %s", first, last, sheet.name, e.message)
                continue

            region = tuple(
                (row, col)
                for row in range(first_row, last_row + 1)
                for col in range(first_col, last_col + 1)
            )
            for row, col in region:
                cell = sheet.cells.get((row, col))
                if cell is None:
                    cell = Cell(row=row, col=col)
                    sheet.cells[(row, col)] = cell
                cell.is_merged = True
                cell.merged_range = region

            owner = sheet.cells[region[0]]
            if region[0] not in bound:
                self._bind_style(sheet, owner, stats)
                bound.add(region[0])
            bounds.grow(last_row, last_col)

        merged = sum(1 for cell in sheet.cells.values() if cell.is_merged)
        if merged:
            logger.debug("Sheet %r: %d merged cells", sheet.name, merged)

