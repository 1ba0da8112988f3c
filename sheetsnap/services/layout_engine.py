"""
Layout engine.

Sizes rows and columns and places every cell address on a logical pixel
canvas. Widths are kept in Excel character units and heights in points
until compute_layout converts them to logical pixels.

Rows and columns that still carry the application default size are sized
from their content; anything the author set explicitly is kept (row heights
are still clamped to the allowed window).
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping

from openpyxl.utils import get_column_letter

from sheetsnap.adapters.base import DEFAULT_COLUMN_WIDTH, DEFAULT_ROW_HEIGHT
from sheetsnap.models.grid_models import Cell, Sheet
from sheetsnap.models.layout_models import LayoutRect, SheetLayout
from sheetsnap.models.style_models import ResolvedStyle

logger = logging.getLogger(__name__)

CHAR_TO_PX = 7.0
"""Logical pixels per character unit of column width."""

PT_TO_PX = 1.33
"""Logical pixels per point of row height, also the font size to line height factor."""

WIDE_CHAR_WEIGHT = 2.0
NARROW_CHAR_WEIGHT = 1.0
TEXT_WIDTH_FACTOR = 0.8
COLUMN_WIDTH_PADDING = 1.4

MIN_ROW_HEIGHT = 15.0
MAX_ROW_HEIGHT = 150.0
MIN_COLUMN_WIDTH = 1.0

SENTINEL_TOLERANCE = 1e-6

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def is_default_height(height: float) -> bool:
    return abs(height - DEFAULT_ROW_HEIGHT) < SENTINEL_TOLERANCE


def is_default_width(width: float) -> bool:
    return abs(width - DEFAULT_COLUMN_WIDTH) < SENTINEL_TOLERANCE


def clamp_row_height(height: float) -> float:
    return min(max(height, MIN_ROW_HEIGHT), MAX_ROW_HEIGHT)


def estimate_text_width(text: str) -> float:
    """
    Estimate the width of a string in character units.

    Non-ASCII characters (CJK and the like) count double.

    Args:
        text: Text to measure.

    Returns:
        Estimated width; 0 for empty text.
    """
    units = sum(WIDE_CHAR_WEIGHT if ord(char) > 127 else NARROW_CHAR_WEIGHT for char in text)
    return units * TEXT_WIDTH_FACTOR


def estimate_line_count(text: str, column_width: float, wrap_text: bool) -> int:
    """
    Estimate how many lines a value occupies in a column.

    Explicit line breaks always split the value; each non-empty segment then
    takes as many lines as its width needs. Without line breaks the value
    wraps only when the style allows it.
    """
    segments = _LINE_BREAK_RE.split(text)

    if len(segments) > 1:
        lines = sum(_lines_for(segment, column_width) for segment in segments if segment)
        return max(lines, 1)

    if wrap_text:
        return _lines_for(text, column_width)

    return 1


def _lines_for(text: str, column_width: float) -> int:
    if column_width <= 0:
        return 1
    return max(math.ceil(estimate_text_width(text) / column_width), 1)


def estimate_row_height(
    cells: Iterable[Cell],
    styles: Mapping[int, ResolvedStyle],
    column_widths: Mapping[str, float],
    default_style: ResolvedStyle | None = None,
) -> float:
    """
    Estimate the height in points of a row from its non-empty cells.

    Args:
        cells: Cells of the row.
        styles: Resolved styles keyed by style identifier.
        column_widths: Widths in character units keyed by column letter,
            as declared by the workbook.
        default_style: Style of cells whose identifier is not in styles.

    Returns:
        Height clamped to [MIN_ROW_HEIGHT, MAX_ROW_HEIGHT].
    """
    fallback = default_style or ResolvedStyle()
    height = 0.0
    for cell in cells:
        if cell.is_empty:
            continue

        style = styles.get(cell.style_id, fallback)
        base = style.font.size * PT_TO_PX
        width = column_widths.get(get_column_letter(cell.col), DEFAULT_COLUMN_WIDTH)
        lines = estimate_line_count(cell.value, width, style.wrap_text)
        height = max(height, base * lines)

    return clamp_row_height(height)


def compute_row_heights(
    sheet: Sheet,
    declared: Mapping[int, float],
    declared_widths: Mapping[str, float],
) -> dict[int, float]:
    """
    Final row heights in points for rows 1..sheet rows.

    Estimates use the column widths the workbook declares, before any
    content-based widening.

    Args:
        sheet: Sheet with its cells and styles bound.
        declared: Heights reported by the workbook (default sentinel when unset).
        declared_widths: Widths reported by the workbook keyed by column letter.

    Returns:
        Height per row number.
    """
    by_row: dict[int, list[Cell]] = {}
    for cell in sheet.cells.values():
        by_row.setdefault(cell.row, []).append(cell)

    heights: dict[int, float] = {}
    estimated = 0
    for row in range(1, sheet.rows + 1):
        height = declared.get(row, DEFAULT_ROW_HEIGHT)
        if is_default_height(height):
            heights[row] = estimate_row_height(
                by_row.get(row, []), sheet.styles, declared_widths, sheet.default_style
            )
            estimated += 1
        else:
            heights[row] = clamp_row_height(height)

    logger.debug("Sheet %r: %d of %d row heights estimated", sheet.name, estimated, sheet.rows)
    return heights


def _declared_by_column(sheet: Sheet, widths: Mapping[str, float]) -> dict[int, float]:
    return {
        col: widths.get(get_column_letter(col), DEFAULT_COLUMN_WIDTH)
        for col in range(1, sheet.cols + 1)
    }


def optimize_column_widths(sheet: Sheet, declared: Mapping[str, float]) -> dict[str, float]:
    """
    Final column widths in character units for columns 1..sheet cols.

    A column still at the default width grows to its widest estimated
    value times COLUMN_WIDTH_PADDING when that value does not fit. Explicit
    widths are kept.

    Args:
        sheet: Sheet with its cells bound.
        declared: Widths reported by the workbook keyed by column letter.

    Returns:
        Width per column letter, never below MIN_COLUMN_WIDTH.
    """
    widest: dict[int, float] = {}
    for cell in sheet.cells.values():
        if cell.value:
            widest[cell.col] = max(widest.get(cell.col, 0.0), estimate_text_width(cell.value))

    widths: dict[str, float] = {}
    for col, width in _declared_by_column(sheet, declared).items():
        if is_default_width(width) and widest.get(col, 0.0) > width:
            width = widest[col] * COLUMN_WIDTH_PADDING
        widths[get_column_letter(col)] = max(width, MIN_COLUMN_WIDTH)
    return widths


def _prefix_sums(sizes: list[float]) -> tuple[float, ...]:
    offsets = [0.0]
    for size in sizes:
        offsets.append(offsets[-1] + size)
    return tuple(offsets)


def compute_layout(sheet: Sheet) -> SheetLayout:
    """
    Place every address of a sheet on the logical canvas.

    Merge owners span their whole region; other members keep their own
    rectangle, which is never painted.

    Args:
        sheet: A loaded sheet.

    Returns:
        SheetLayout with one rectangle per grid address.
    """
    col_widths = [
        sheet.col_widths.get(get_column_letter(col), DEFAULT_COLUMN_WIDTH) * CHAR_TO_PX
        for col in range(1, sheet.cols + 1)
    ]
    row_heights = [
        sheet.row_heights.get(row, DEFAULT_ROW_HEIGHT) * PT_TO_PX
        for row in range(1, sheet.rows + 1)
    ]
    col_offsets = _prefix_sums(col_widths)
    row_offsets = _prefix_sums(row_heights)

    rects: dict[tuple[int, int], LayoutRect] = {}
    for (row, col), cell in sheet.cells.items():
        if not (1 <= row <= sheet.rows and 1 <= col <= sheet.cols):
            continue

        end_row, end_col = row, col
        if cell.is_merged and cell.is_owner:
            end_row = min(cell.merge_end[0], sheet.rows)
            end_col = min(cell.merge_end[1], sheet.cols)

        rects[(row, col)] = LayoutRect(
            x=col_offsets[col - 1],
            y=row_offsets[row - 1],
            width=col_offsets[end_col] - col_offsets[col - 1],
            height=row_offsets[end_row] - row_offsets[row - 1],
        )

    return SheetLayout(
        col_widths=tuple(col_widths),
        row_heights=tuple(row_heights),
        col_offsets=col_offsets,
        row_offsets=row_offsets,
        rects=rects,
    )
