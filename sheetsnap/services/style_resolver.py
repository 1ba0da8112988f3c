"""
Style resolution.

Turns the raw style records a WorkbookReader reports into ResolvedStyle
values. Resolution never fails: anything missing or unreadable falls back to
the default style, and the failure is logged.
"""

import logging
from typing import Any

from sheetsnap.adapters.base import WorkbookReader
from sheetsnap.exceptions.snapshot_exceptions import StyleResolutionError
from sheetsnap.models.style_models import (
    BLACK,
    RGB,
    BorderSpec,
    BorderStyle,
    FontSpec,
    HorizontalAlignment,
    ResolvedStyle,
    VerticalAlignment,
)
from sheetsnap.utils import is_numeric

logger = logging.getLogger(__name__)

BORDER_WIDTHS: dict[BorderStyle, int] = {
    BorderStyle.NONE: 0,
    BorderStyle.HAIR: 1,
    BorderStyle.THIN: 1,
    BorderStyle.DOTTED: 1,
    BorderStyle.DASHED: 1,
    BorderStyle.DASH_DOT: 1,
    BorderStyle.DASH_DOT_DOT: 1,
    BorderStyle.MEDIUM: 2,
    BorderStyle.MEDIUM_DASHED: 2,
    BorderStyle.MEDIUM_DASH_DOT: 2,
    BorderStyle.MEDIUM_DASH_DOT_DOT: 2,
    BorderStyle.SLANT_DASH_DOT: 2,
    BorderStyle.THICK: 3,
    BorderStyle.DOUBLE: 3,
}

BORDER_SIDES = ("left", "right", "top", "bottom")


def parse_color(value: str | None, default: RGB | None = BLACK) -> RGB | None:
    """
    Parse a 6-digit RGB or 8-digit ARGB hex string.

    A leading "#" is accepted and the alpha channel is ignored.

    Args:
        value: Hex color string, or None.
        default: Returned for None and for malformed values.

    Returns:
        (r, g, b) tuple or default.
    """
    if not value:
        return default

    text = value.strip().lstrip("#")
    if len(text) not in (6, 8):
        return default
    text = text[-6:]
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError:
        return default


def border_width(style: BorderStyle) -> int:
    """Stroke width in logical pixels of a border style."""
    return BORDER_WIDTHS.get(style, 1)


def resolve_horizontal(style: ResolvedStyle, text: str) -> HorizontalAlignment:
    """
    Horizontal alignment actually used to place text.

    General alignment puts numbers on the right and everything else on the
    left. Alignments without a dedicated painter map to the closest one.
    """
    alignment = style.horizontal
    if alignment == HorizontalAlignment.GENERAL:
        return HorizontalAlignment.RIGHT if is_numeric(text) else HorizontalAlignment.LEFT
    if alignment in (HorizontalAlignment.CENTER_CONTINUOUS, HorizontalAlignment.DISTRIBUTED):
        return HorizontalAlignment.CENTER
    if alignment in (HorizontalAlignment.FILL, HorizontalAlignment.JUSTIFY):
        return HorizontalAlignment.LEFT
    return alignment


def resolve_vertical(style: ResolvedStyle) -> VerticalAlignment:
    """Vertical alignment actually used to place text; unset, justify and distributed center."""
    if style.vertical in (None, VerticalAlignment.JUSTIFY, VerticalAlignment.DISTRIBUTED):
        return VerticalAlignment.CENTER
    return style.vertical


class StyleResolver:
    """
    Resolves style identifiers of one workbook.

    The resolver itself keeps no cache; the per-sheet cache lives on the
    Sheet and is filled by the grid builder.

    Attributes:
        reader: Workbook the raw style records come from.
        default_style: Style returned whenever resolution fails.
    """

    def __init__(
        self,
        reader: WorkbookReader,
        default_family: str = "Calibri",
        default_size: float = 11.0,
    ) -> None:
        self.reader = reader
        self.default_family = default_family
        self.default_size = default_size
        self.default_style = ResolvedStyle(font=FontSpec(family=default_family, size=default_size))

    def resolve(self, style_id: int) -> ResolvedStyle:
        """
        Resolve a style identifier.

        Args:
            style_id: Workbook style identifier.

        Returns:
            The resolved style, or the default style if the record cannot be
            read or parsed.
        """
        try:
            raw = self.reader.resolve_style(style_id)
            return self._build(raw)
        except StyleResolutionError as e:
            logger.warning("Style %s falls back to defaults: %s", style_id, e.message)
        except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
            error = StyleResolutionError(style_id, reason=str(e))
            logger.warning("Style %s falls back to defaults: %s", style_id, error.message)
        return self.default_style

    def _build(self, raw: dict[str, Any]) -> ResolvedStyle:
        font = raw.get("font") or {}
        alignment = raw.get("alignment") or {}
        border = raw.get("border") or {}

        size = font.get("size")
        resolved_font = FontSpec(
            family=font.get("name") or self.default_family,
            size=float(size) if size and float(size) > 0 else self.default_size,
            bold=bool(font.get("bold")),
            italic=bool(font.get("italic")),
            underline=bool(font.get("underline")),
            color=parse_color(font.get("color")),
        )

        sides = {side: self._border_side(border.get(side)) for side in BORDER_SIDES}

        return ResolvedStyle(
            font=resolved_font,
            fill=parse_color(raw.get("fill"), default=None),
            horizontal=self._enum(HorizontalAlignment, alignment.get("horizontal"), HorizontalAlignment.GENERAL),
            vertical=self._enum(VerticalAlignment, alignment.get("vertical"), None),
            wrap_text=bool(alignment.get("wrap_text")),
            **sides,
        )

    def _border_side(self, raw: dict[str, Any] | None) -> BorderSpec:
        if not raw:
            return BorderSpec()

        style = self._enum(BorderStyle, raw.get("style"), BorderStyle.NONE)
        if style == BorderStyle.NONE:
            return BorderSpec()

        # A styled side without a color is left to the grid.
        color = raw.get("color")
        return BorderSpec(
            style=style,
            color=parse_color(color) if color else None,
            width=border_width(style),
        )

    @staticmethod
    def _enum(enum_type: type, value: Any, default: Any) -> Any:
        if value is None:
            return default
        try:
            return enum_type(value)
        except ValueError:
            logger.debug("Unknown %s value %r", enum_type.__name__, value)
            return default
