"""
Openpyxl adapter for workbook reading.

This module provides the OpenpyxlAdapter class, which validates and opens
workbooks, and OpenpyxlWorkbook, the WorkbookReader the snapshot pipeline
reads from. Openpyxl is the one backend that exposes everything a snapshot
needs: cell values, styles, row heights and column widths, merged ranges,
anchored pictures and the declared sheet dimension.

Supported formats:
    - .xlsx (Excel 2007+)
    - .xlsm (Excel Macro-Enabled)

Example:
    adapter = OpenpyxlAdapter()

    with adapter.open("/path/to/file.xlsx") as workbook:
        rows = workbook.get_rows("Sheet1")
        merges = workbook.get_merge_ranges("Sheet1")
"""

import colorsys
import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.drawing.spreadsheet_drawing import AbsoluteAnchor, OneCellAnchor
from openpyxl.styles.colors import COLOR_INDEX
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.utils.units import EMU_to_pixels
from openpyxl.worksheet.worksheet import Worksheet

from sheetsnap.adapters.base import DEFAULT_COLUMN_WIDTH, DEFAULT_ROW_HEIGHT
from sheetsnap.exceptions.snapshot_exceptions import (
    InvalidFileFormatError,
    ReadError,
    SheetNotFoundError,
    StyleResolutionError,
)
from sheetsnap.exceptions.snapshot_exceptions import FileNotFoundError as ExcelFileNotFoundError
from sheetsnap.exceptions.snapshot_exceptions import PermissionError as ExcelPermissionError
from sheetsnap.models.api_models import SheetInfo, WorkbookInfo
from sheetsnap.models.grid_models import PictureRecord
from sheetsnap.utils import format_cell_value, make_address, split_address

logger = logging.getLogger(__name__)

# Default Office theme, in SpreadsheetML theme index order
# (lt1, dk1, lt2, dk2, accent1-6, hlink, folHlink).
THEME_COLORS = (
    "FFFFFF", "000000", "E7E6E6", "44546A",
    "4472C4", "ED7D31", "A5A5A5", "FFC000", "5B9BD5", "70AD47",
    "0563C1", "954F72",
)

SYSTEM_FOREGROUND_INDEX = 64
SYSTEM_BACKGROUND_INDEX = 65


def _apply_tint(hex_rgb: str, tint: float) -> str:
    """Lighten (tint > 0) or darken (tint < 0) an RGB hex color in HLS space."""
    r, g, b = (int(hex_rgb[i:i + 2], 16) / 255 for i in (0, 2, 4))
    h, lum, s = colorsys.rgb_to_hls(r, g, b)
    if tint < 0:
        lum = lum * (1 + tint)
    else:
        lum = lum * (1 - tint) + tint
    r, g, b = colorsys.hls_to_rgb(h, lum, s)
    return "FF" + "".join(f"{round(v * 255):02X}" for v in (r, g, b))


def color_to_hex(color: Any) -> str | None:
    """
    Convert an openpyxl Color into an ARGB hex string.

    Indexed colors go through the legacy palette, theme colors through the
    default Office theme with their tint applied. Automatic colors and
    anything unreadable give None.

    Args:
        color: openpyxl Color or None.

    Returns:
        ARGB hex string or None.
    """
    if color is None:
        return None

    kind = getattr(color, "type", "rgb")
    if kind == "rgb":
        rgb = getattr(color, "rgb", None)
        return rgb if isinstance(rgb, str) else None

    if kind == "indexed":
        index = color.indexed
        if index is None:
            return None
        if 0 <= index < len(COLOR_INDEX):
            return COLOR_INDEX[index]
        if index == SYSTEM_FOREGROUND_INDEX:
            return "FF000000"
        if index == SYSTEM_BACKGROUND_INDEX:
            return "FFFFFFFF"
        return None

    if kind == "theme":
        theme = color.theme
        if theme is None or not 0 <= theme < len(THEME_COLORS):
            return None
        return _apply_tint(THEME_COLORS[theme], float(color.tint or 0.0))

    return None


class OpenpyxlWorkbook:
    """
    WorkbookReader over an opened openpyxl workbook.

    Per-sheet lookups that need a full pass over the worksheet (column
    widths, pictures, the declared dimension) are computed once and cached.
    Not safe for concurrent use; load sheets from one thread.

    Attributes:
        workbook: The underlying openpyxl Workbook.
        file_path: Path the workbook was loaded from ("" for in-memory books).
        raw_values: Show stored values without applying number formats.
    """

    def __init__(self, workbook: Workbook, file_path: str = "", raw_values: bool = False) -> None:
        self.workbook = workbook
        self.file_path = file_path
        self.raw_values = raw_values
        self._dimensions: dict[str, str] | None = None
        self._columns: dict[str, tuple[dict[int, float], dict[int, int]]] = {}
        self._pictures: dict[str, dict[tuple[int, int], list[PictureRecord]]] = {}

    def __enter__(self) -> "OpenpyxlWorkbook":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.workbook.close()

    def _worksheet(self, sheet: str) -> Worksheet:
        for worksheet in self.workbook.worksheets:
            if worksheet.title == sheet:
                return worksheet
        raise SheetNotFoundError(sheet_name=sheet, available_sheets=self.list_sheets())

    # ==================== VALUES ====================

    def _display(self, cell: Any) -> str:
        if self.raw_values:
            return format_cell_value(cell.value)
        return format_cell_value(cell.value, getattr(cell, "number_format", None))

    def list_sheets(self) -> list[str]:
        return [worksheet.title for worksheet in self.workbook.worksheets]

    def get_rows(self, sheet: str) -> list[list[str]]:
        """
        Row-major display values.

        Each row ends at its last non-empty value and trailing empty rows are
        dropped, so explicitly stored blank cells at the end of a row are not
        reported here.
        """
        worksheet = self._worksheet(sheet)

        grid: dict[int, dict[int, str]] = {}
        for (row, col), cell in worksheet._cells.items():
            text = self._display(cell)
            if text:
                grid.setdefault(row, {})[col] = text

        if not grid:
            return []

        rows: list[list[str]] = []
        for row in range(1, max(grid) + 1):
            values = grid.get(row)
            if not values:
                rows.append([])
                continue
            rows.append([values.get(col, "") for col in range(1, max(values) + 1)])
        return rows

    def get_columns(self, sheet: str) -> list[list[str]]:
        """
        Column-major display values.

        Each column runs to its last stored cell, empty or not.
        """
        worksheet = self._worksheet(sheet)

        grid: dict[int, dict[int, str]] = {}
        for (row, col), cell in worksheet._cells.items():
            grid.setdefault(col, {})[row] = self._display(cell)

        if not grid:
            return []

        columns: list[list[str]] = []
        for col in range(1, max(grid) + 1):
            values = grid.get(col, {})
            length = max(values) if values else 0
            columns.append([values.get(row, "") for row in range(1, length + 1)])
        return columns

    def get_dimension(self, sheet: str) -> str:
        """
        Used range as declared in the worksheet part.

        openpyxl drops the <dimension> element when it fully loads a sheet,
        so it is read through a streaming (read-only) pass over the file.
        In-memory workbooks fall back to the range computed from stored cells.
        """
        worksheet = self._worksheet(sheet)
        declared = self._declared_dimensions()
        if sheet in declared:
            return declared[sheet]
        if not worksheet._cells:
            return ""
        return worksheet.calculate_dimension()

    def _declared_dimensions(self) -> dict[str, str]:
        if self._dimensions is not None:
            return self._dimensions

        self._dimensions = {}
        if not self.file_path:
            return self._dimensions

        try:
            stream = load_workbook(self.file_path, read_only=True, data_only=True)
        except (OSError, zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
            logger.debug("Cannot stream %s for sheet dimensions: %s", self.file_path, e)
            return self._dimensions

        try:
            for worksheet in stream.worksheets:
                try:
                    self._dimensions[worksheet.title] = worksheet.calculate_dimension()
                except ValueError:
                    self._dimensions[worksheet.title] = ""
        finally:
            stream.close()
        return self._dimensions

    # ==================== GEOMETRY ====================

    def get_row_height(self, sheet: str, row: int) -> float:
        worksheet = self._worksheet(sheet)
        dimension = worksheet.row_dimensions.get(row)
        if dimension is not None and dimension.height:
            return float(dimension.height)
        return DEFAULT_ROW_HEIGHT

    def get_column_width(self, sheet: str, column: str) -> float:
        widths, _ = self._column_info(sheet)
        return widths.get(column_index_from_string(column), DEFAULT_COLUMN_WIDTH)

    def _column_info(self, sheet: str) -> tuple[dict[int, float], dict[int, int]]:
        """Explicit widths and column styles keyed by column number."""
        if sheet in self._columns:
            return self._columns[sheet]

        worksheet = self._worksheet(sheet)
        widths: dict[int, float] = {}
        styles: dict[int, int] = {}
        for dimension in worksheet.column_dimensions.values():
            first = dimension.min or column_index_from_string(dimension.index)
            last = dimension.max or first
            for col in range(first, last + 1):
                if dimension.width:
                    widths[col] = float(dimension.width)
                if dimension.has_style:
                    styles[col] = dimension.style_id

        self._columns[sheet] = (widths, styles)
        return widths, styles

    def get_merge_ranges(self, sheet: str) -> list[tuple[str, str]]:
        worksheet = self._worksheet(sheet)
        return [
            (
                make_address(merged.min_row, merged.min_col),
                make_address(merged.max_row, merged.max_col),
            )
            for merged in worksheet.merged_cells.ranges
        ]

    # ==================== STYLES ====================

    def get_style_id(self, sheet: str, address: str) -> int:
        """
        Style identifier of an address.

        Addresses without a stored cell inherit the row style, then the
        column style, the way Excel displays them.
        """
        worksheet = self._worksheet(sheet)
        row, col = split_address(address)

        cell = worksheet._cells.get((row, col))
        if cell is not None and cell.has_style:
            return cell.style_id
        if cell is not None:
            return 0

        row_dimension = worksheet.row_dimensions.get(row)
        if row_dimension is not None and row_dimension.has_style:
            return row_dimension.style_id

        _, column_styles = self._column_info(sheet)
        return column_styles.get(col, 0)

    def resolve_style(self, style_id: int) -> dict[str, Any]:
        """
        Build the raw style record for a style identifier.

        Raises:
            StyleResolutionError: If the identifier or one of the records it
                points at does not exist.
        """
        cell_styles = self.workbook._cell_styles
        if not 0 <= style_id < len(cell_styles):
            raise StyleResolutionError(style_id, reason="Unknown style identifier")

        try:
            xf = cell_styles[style_id]
            font = self.workbook._fonts[xf.fontId]
            fill = self.workbook._fills[xf.fillId]
            border = self.workbook._borders[xf.borderId]
            alignment = self.workbook._alignments[xf.alignmentId]
        except IndexError as e:
            raise StyleResolutionError(style_id, reason=str(e)) from e

        fill_color = None
        if getattr(fill, "patternType", None) == "solid":
            fill_color = color_to_hex(fill.fgColor)

        return {
            "font": {
                "name": font.name,
                "size": font.sz,
                "bold": bool(font.b),
                "italic": bool(font.i),
                "underline": bool(font.u) and font.u != "none",
                "color": color_to_hex(font.color),
            },
            "fill": fill_color,
            "border": {
                side: {
                    "style": getattr(getattr(border, side, None), "style", None),
                    "color": color_to_hex(getattr(getattr(border, side, None), "color", None)),
                }
                for side in ("left", "right", "top", "bottom")
            },
            "alignment": {
                "horizontal": alignment.horizontal,
                "vertical": alignment.vertical,
                "wrap_text": bool(alignment.wrap_text),
            },
        }

    # ==================== PICTURES ====================

    def get_picture_anchors(self, sheet: str) -> list[tuple[int, int]]:
        """Anchor cells of every picture on the sheet, row-major."""
        return sorted(self._picture_index(sheet))

    def get_pictures(self, sheet: str, address: str) -> list[PictureRecord]:
        index = self._picture_index(sheet)
        return list(index.get(split_address(address), []))

    def _picture_index(self, sheet: str) -> dict[tuple[int, int], list[PictureRecord]]:
        if sheet in self._pictures:
            return self._pictures[sheet]

        worksheet = self._worksheet(sheet)
        index: dict[tuple[int, int], list[PictureRecord]] = {}
        for image in getattr(worksheet, "_images", []):
            key, record = self._picture_record(image)
            index.setdefault(key, []).append(record)

        self._pictures[sheet] = index
        return index

    def _picture_record(self, image: Any) -> tuple[tuple[int, int], PictureRecord]:
        """Convert an openpyxl Image into its anchor key and PictureRecord."""
        anchor = image.anchor
        row, col = 1, 1
        offset_x = offset_y = width = height = 0

        if isinstance(anchor, str):
            row, col = split_address(anchor)
        elif isinstance(anchor, AbsoluteAnchor):
            offset_x, offset_y = anchor.pos.x or 0, anchor.pos.y or 0
            width, height = EMU_to_pixels(anchor.ext.cx), EMU_to_pixels(anchor.ext.cy)
        else:
            marker = anchor._from
            row, col = marker.row + 1, marker.col + 1
            offset_x, offset_y = marker.colOff or 0, marker.rowOff or 0
            if isinstance(anchor, OneCellAnchor) and anchor.ext is not None:
                width, height = EMU_to_pixels(anchor.ext.cx), EMU_to_pixels(anchor.ext.cy)

        try:
            data = image._data()
        except (OSError, KeyError, AttributeError, ValueError) as e:
            logger.debug("Cannot read picture data at %s: %s", make_address(row, col), e)
            data = b""

        record = PictureRecord(
            name=getattr(image, "path", ""),
            data=data,
            format=getattr(image, "format", "") or "",
            offset_x=int(offset_x),
            offset_y=int(offset_y),
            width=max(int(width), 0),
            height=max(int(height), 0),
        )
        return (row, col), record


class OpenpyxlAdapter:
    """
    Adapter for opening workbooks with openpyxl.

    Attributes:
        SUPPORTED_EXTENSIONS: Tuple of supported file extensions.

    Example:
        adapter = OpenpyxlAdapter()

        info = adapter.get_workbook_info("/path/to/file.xlsx")
        with adapter.open("/path/to/file.xlsx") as workbook:
            print(workbook.list_sheets())
    """

    SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm")

    def _validate_file_path(self, file_path: str) -> Path:
        """
        Validate that the file exists and has a supported extension.

        Args:
            file_path: Path to the workbook.

        Returns:
            Path object for the validated file.

        Raises:
            ExcelFileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file extension is not supported.
        """
        path = Path(file_path)

        if not path.exists():
            raise ExcelFileNotFoundError(file_path)

        if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
            raise InvalidFileFormatError(
                file_path=file_path,
                expected_formats=list(self.SUPPORTED_EXTENSIONS),
                reason=f"Unsupported file extension: {path.suffix}",
            )

        return path

    def _open_workbook(self, file_path: str) -> Workbook:
        """
        Load a workbook with cached formula results as values.

        Raises:
            InvalidFileFormatError: If the file cannot be parsed.
            ExcelPermissionError: If the file cannot be read.
            ReadError: If an unexpected error occurs during opening.
        """
        path = self._validate_file_path(file_path)

        try:
            return load_workbook(str(path), data_only=True)
        except (zipfile.BadZipFile, InvalidFileException, KeyError) as e:
            raise InvalidFileFormatError(file_path=file_path, reason=str(e)) from e
        except PermissionError as e:
            raise ExcelPermissionError(file_path=file_path, operation="read") from e
        except Exception as e:
            error_msg = str(e).lower()
            if "invalid" in error_msg or "corrupt" in error_msg or "format" in error_msg:
                raise InvalidFileFormatError(
                    file_path=file_path,
                    reason=str(e),
                ) from e
            raise ReadError(
                file_path=file_path,
                operation="open",
                reason=str(e),
            ) from e

    def open(self, file_path: str, raw_values: bool = False) -> OpenpyxlWorkbook:
        """
        Open a workbook for snapshot reading.

        Args:
            file_path: Path to the workbook.
            raw_values: Report stored values instead of number-formatted text.

        Returns:
            OpenpyxlWorkbook; close it (or use it as a context manager) when done.
        """
        return OpenpyxlWorkbook(self._open_workbook(file_path), file_path=str(file_path), raw_values=raw_values)

    def get_sheet_names(self, file_path: str) -> list[str]:
        """
        Get the list of worksheet names in the workbook.

        Raises:
            ExcelFileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        with self.open(file_path) as workbook:
            return workbook.list_sheets()

    def get_workbook_info(self, file_path: str) -> WorkbookInfo:
        """
        Get metadata about a workbook.

        Row and column counts are the stored used range; they do not include
        the reconciliation the grid builder performs.

        Raises:
            ExcelFileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        path = self._validate_file_path(file_path)
        sheets: list[SheetInfo] = []

        with self.open(file_path) as workbook:
            for index, worksheet in enumerate(workbook.workbook.worksheets):
                has_cells = bool(worksheet._cells)
                sheets.append(
                    SheetInfo(
                        name=worksheet.title,
                        index=index,
                        visible=worksheet.sheet_state == "visible",
                        row_count=worksheet.max_row if has_cells else 0,
                        column_count=worksheet.max_column if has_cells else 0,
                        merge_count=len(worksheet.merged_cells.ranges),
                        image_count=len(getattr(worksheet, "_images", [])),
                    )
                )

        stat = path.stat()

        return WorkbookInfo(
            file_path=str(path.absolute()),
            file_size_bytes=stat.st_size,
            sheet_count=len(sheets),
            sheets=sheets,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
        )
