"""
Sheet rasterizer.

SheetRenderer paints a loaded Sheet onto a Pillow canvas in four passes,
each over the whole sheet:

    1. grid lines
    2. fills and text of every painted cell
    3. explicit borders over the grid
    4. embedded pictures

Layout is computed in logical pixels and multiplied by a supersampling
scale; every device coordinate is rounded to a whole pixel, so the same
sheet always produces the same bytes.
"""

import io
import logging
import re

from PIL import Image, ImageDraw

from sheetsnap.exceptions.snapshot_exceptions import (
    InvalidInputError,
    RenderError,
    SheetTooLargeError,
    SnapshotError,
)
from sheetsnap.models.grid_models import Cell, ExcelImage, Sheet
from sheetsnap.models.layout_models import LayoutRect, SheetLayout
from sheetsnap.models.style_models import RGB, WHITE, BorderSpec, HorizontalAlignment, ResolvedStyle, VerticalAlignment
from sheetsnap.services.font_registry import FontFace, FontRegistry
from sheetsnap.services.layout_engine import compute_layout
from sheetsnap.services.style_resolver import resolve_horizontal, resolve_vertical

logger = logging.getLogger(__name__)

GRID_COLOR: RGB = (200, 200, 200)
BACKGROUND: RGB = WHITE

TEXT_PADDING = 2.0
"""Horizontal (and top) gap between the cell edge and its text, in logical pixels."""

BOTTOM_TEXT_OFFSET = 1.0
"""Extra lift of bottom-aligned text, in logical pixels."""

DEFAULT_EMU_TO_PIXEL = 0.0008

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def wrap_line(text: str, font: FontFace, max_width: float) -> list[str]:
    """
    Greedily break one line of text into lines no wider than max_width.

    Words are kept whole where possible; a single word wider than the cell
    is broken between characters. Text without spaces (CJK) breaks anywhere.
    """
    if max_width <= 0 or font.getlength(text) <= max_width:
        return [text]

    tokens = re.findall(r"\S+\s*", text) if " " in text else list(text)
    lines: list[str] = []
    current = ""
    for token in tokens:
        candidate = current + token
        if not current or font.getlength(candidate.rstrip()) <= max_width:
            current = candidate
            continue
        lines.append(current.rstrip())
        current = token

        # A token that does not fit on its own line is split by character.
        while len(current) > 1 and font.getlength(current.rstrip()) > max_width:
            cut = len(current) - 1
            while cut > 1 and font.getlength(current[:cut]) > max_width:
                cut -= 1
            lines.append(current[:cut])
            current = current[cut:]

    if current.strip():
        lines.append(current.rstrip())
    return lines or [text]


def font_metrics(font: FontFace) -> tuple[int, int]:
    """Ascent and descent of a face in pixels."""
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return ascent, descent
    bbox = font.getbbox("Ag")
    return int(bbox[3]), 0


class SheetRenderer:
    """
    Paints sheets onto RGB canvases.

    A renderer holds only immutable configuration and the shared font
    registry, so one instance can render several sheets concurrently.

    Attributes:
        fonts: Font registry faces are taken from.
        scale: Supersampling factor from logical to device pixels.
        emu_to_pixel: Factor converting picture offsets to logical pixels.
        max_cells: Largest rows x columns product accepted.

    Example:
        renderer = SheetRenderer(FontRegistry(), scale=2.0)
        image = renderer.render(sheet)
        png = encode_png(image)
    """

    def __init__(
        self,
        fonts: FontRegistry,
        scale: float = 2.0,
        emu_to_pixel: float = DEFAULT_EMU_TO_PIXEL,
        max_cells: int = 2_000_000,
    ) -> None:
        if scale < 1.0:
            raise InvalidInputError(f"scale must be at least 1.0, got {scale}")
        self.fonts = fonts
        self.scale = scale
        self.emu_to_pixel = emu_to_pixel
        self.max_cells = max_cells
        self.line_width = max(1, round(scale))

    def _px(self, value: float) -> int:
        return round(value * self.scale)

    def render(self, sheet: Sheet | None) -> Image.Image:
        """
        Render a sheet.

        Args:
            sheet: A loaded sheet.

        Returns:
            RGB image of round(width * scale) x round(height * scale) pixels.

        Raises:
            InvalidInputError: If sheet is None or has no rows or columns.
            SheetTooLargeError: If the sheet exceeds max_cells addresses.
            RenderError: If painting fails unexpectedly.
        """
        if sheet is None:
            raise InvalidInputError("No sheet to render")
        if sheet.is_empty:
            raise InvalidInputError(f"Sheet '{sheet.name}' is empty")
        if sheet.rows * sheet.cols > self.max_cells:
            raise SheetTooLargeError(sheet.name, sheet.rows, sheet.cols, self.max_cells)

        try:
            layout = compute_layout(sheet)
            width = max(self._px(layout.total_width), 1)
            height = max(self._px(layout.total_height), 1)

            canvas = Image.new("RGB", (width, height), BACKGROUND)
            draw = ImageDraw.Draw(canvas)

            owners = [sheet.cells[key] for key in sorted(sheet.cells) if sheet.cells[key].is_owner]

            self._draw_grid(draw, layout, width, height)
            for cell in owners:
                self._paint_cell(draw, sheet, cell, layout.rects[cell.key], width, height)
            for cell in owners:
                self._draw_borders(draw, sheet.style_of(cell), layout.rects[cell.key], width, height)
            for picture in sheet.images:
                self._draw_image(canvas, picture, layout)

        except SnapshotError:
            raise
        except (OSError, ValueError, TypeError, KeyError) as e:
            raise RenderError(sheet.name, reason=str(e)) from e

        logger.debug("Rendered sheet %r at %dx%d", sheet.name, width, height)
        return canvas

    # ==================== PASS 1: GRID ====================

    def _line_start(self, position: float, limit: int) -> int:
        """Device start of a line at a logical position, kept inside the canvas."""
        return min(max(self._px(position), 0), limit - self.line_width)

    def _draw_grid(self, draw: ImageDraw.ImageDraw, layout: SheetLayout, width: int, height: int) -> None:
        for offset in layout.col_offsets:
            x = self._line_start(offset, width)
            draw.rectangle([x, 0, x + self.line_width - 1, height - 1], fill=GRID_COLOR)
        for offset in layout.row_offsets:
            y = self._line_start(offset, height)
            draw.rectangle([0, y, width - 1, y + self.line_width - 1], fill=GRID_COLOR)

    # ==================== PASS 2: FILL AND TEXT ====================

    def _interior(self, rect: LayoutRect, width: int, height: int) -> tuple[int, int, int, int]:
        """Device box inside the grid lines around a rectangle (inclusive)."""
        left = self._px(rect.x) + self.line_width
        top = self._px(rect.y) + self.line_width
        right = min(self._px(rect.right), width - self.line_width) - 1
        bottom = min(self._px(rect.bottom), height - self.line_width) - 1
        return left, top, right, bottom

    def _paint_cell(
        self,
        draw: ImageDraw.ImageDraw,
        sheet: Sheet,
        cell: Cell,
        rect: LayoutRect,
        width: int,
        height: int,
    ) -> None:
        style = sheet.style_of(cell)
        left, top, right, bottom = self._interior(rect, width, height)

        background = style.fill
        if background is None and cell.is_merged:
            background = BACKGROUND
        if background is not None and right >= left and bottom >= top:
            draw.rectangle([left, top, right, bottom], fill=background)

        if not cell.is_empty:
            self._draw_text(draw, cell, style, rect)

    def _face(self, style: ResolvedStyle) -> FontFace:
        size_px = max(round(style.font.size * self.scale), 1)
        try:
            return self.fonts.face(size_px, style.font.bold, style.font.italic, style.font.family)
        except (OSError, ValueError) as e:
            logger.warning("Font %r unavailable (%s); using the default face", style.font.family, e)
            return self.fonts.face(size_px)

    def _draw_text(self, draw: ImageDraw.ImageDraw, cell: Cell, style: ResolvedStyle, rect: LayoutRect) -> None:
        font = self._face(style)
        padding = TEXT_PADDING * self.scale

        cell_left = rect.x * self.scale
        cell_right = rect.right * self.scale
        cell_top = rect.y * self.scale
        cell_bottom = rect.bottom * self.scale

        lines = _LINE_BREAK_RE.split(cell.value)
        if style.wrap_text:
            available = cell_right - cell_left - 2 * padding
            lines = [wrapped for line in lines for wrapped in wrap_line(line, font, available)]

        ascent, descent = font_metrics(font)
        line_height = ascent + descent
        block_height = line_height * len(lines)

        vertical = resolve_vertical(style)
        if vertical == VerticalAlignment.TOP:
            y = cell_top + padding
        elif vertical == VerticalAlignment.CENTER:
            y = cell_top + (cell_bottom - cell_top - block_height) / 2
        else:
            y = cell_bottom - block_height - BOTTOM_TEXT_OFFSET * self.scale

        horizontal = resolve_horizontal(style, cell.value)
        color = style.font.color
        for line in lines:
            line_width = font.getlength(line)
            if horizontal == HorizontalAlignment.CENTER:
                x = cell_left + (cell_right - cell_left - line_width) / 2
            elif horizontal == HorizontalAlignment.RIGHT:
                x = cell_right - line_width - padding
            else:
                x = cell_left + padding

            origin = (round(x), round(y))
            if line:
                draw.text(origin, line, fill=color, font=font)
            if style.font.underline and line:
                underline_y = origin[1] + ascent + max(1, descent // 3)
                draw.line(
                    [(origin[0], underline_y), (origin[0] + round(line_width), underline_y)],
                    fill=color,
                    width=max(1, round(self.scale / 2)),
                )
            y += line_height

    # ==================== PASS 3: BORDERS ====================

    @staticmethod
    def _span(start: int, thickness: int, limit: int) -> tuple[int, int]:
        start = min(max(start, 0), max(limit - thickness, 0))
        return start, start + thickness - 1

    def _draw_borders(
        self,
        draw: ImageDraw.ImageDraw,
        style: ResolvedStyle,
        rect: LayoutRect,
        width: int,
        height: int,
    ) -> None:
        left, top = self._px(rect.x), self._px(rect.y)
        right, bottom = self._px(rect.right), self._px(rect.bottom)

        for side, border in style.borders().items():
            if not self._draws(border):
                continue

            thickness = max(round(border.width * self.scale), 1)
            if side in ("left", "right"):
                x0, x1 = self._span(left if side == "left" else right, thickness, width)
                y0, y1 = top, min(bottom + thickness - 1, height - 1)
            else:
                y0, y1 = self._span(top if side == "top" else bottom, thickness, height)
                x0, x1 = left, min(right + thickness - 1, width - 1)
            draw.rectangle([x0, y0, x1, y1], fill=border.color)

    @staticmethod
    def _draws(border: BorderSpec) -> bool:
        return border.is_set and border.color != GRID_COLOR

    # ==================== PASS 4: IMAGES ====================

    def _draw_image(self, canvas: Image.Image, picture: ExcelImage, layout: SheetLayout) -> None:
        rect = layout.rects.get((picture.row, picture.col))
        if rect is None:
            logger.debug("Picture at %s is outside the grid", picture.address)
            return

        width, height = picture.display_size
        if width <= 0 or height <= 0:
            return

        x = self._px(rect.x + picture.offset_x * self.emu_to_pixel)
        y = self._px(rect.y + picture.offset_y * self.emu_to_pixel)
        size = (max(self._px(width), 1), max(self._px(height), 1))

        bitmap = picture.image
        if bitmap.mode in ("RGBA", "LA", "PA") or "transparency" in bitmap.info:
            bitmap = bitmap.convert("RGBA").resize(size, Image.LANCZOS)
            canvas.paste(bitmap, (x, y), mask=bitmap.split()[3])
        else:
            bitmap = bitmap.convert("RGB").resize(size, Image.LANCZOS)
            canvas.paste(bitmap, (x, y))
