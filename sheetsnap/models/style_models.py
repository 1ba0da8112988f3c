"""
Resolved visual styles.

A ResolvedStyle is the renderer-facing view of one workbook style record:
plain RGB tuples instead of ARGB strings, enums instead of free-form
alignment names, and border sides already collapsed to a stroke width.
Instances are frozen; the per-sheet cache shares them between cells.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


class HorizontalAlignment(str, Enum):
    """Horizontal alignment values as stored in SpreadsheetML."""

    GENERAL = "general"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    FILL = "fill"
    JUSTIFY = "justify"
    CENTER_CONTINUOUS = "centerContinuous"
    DISTRIBUTED = "distributed"


class VerticalAlignment(str, Enum):
    """Vertical alignment values as stored in SpreadsheetML."""

    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"
    JUSTIFY = "justify"
    DISTRIBUTED = "distributed"


class BorderStyle(str, Enum):
    """Border line styles as stored in SpreadsheetML."""

    NONE = "none"
    HAIR = "hair"
    THIN = "thin"
    DOTTED = "dotted"
    DASHED = "dashed"
    DASH_DOT = "dashDot"
    DASH_DOT_DOT = "dashDotDot"
    MEDIUM = "medium"
    MEDIUM_DASHED = "mediumDashed"
    MEDIUM_DASH_DOT = "mediumDashDot"
    MEDIUM_DASH_DOT_DOT = "mediumDashDotDot"
    SLANT_DASH_DOT = "slantDashDot"
    THICK = "thick"
    DOUBLE = "double"


class FontSpec(BaseModel):
    """
    Font attributes of a resolved style.

    Attributes:
        family: Font family name as written in the workbook.
        size: Size in points.
        bold: Whether the face is bold.
        italic: Whether the face is italic.
        underline: Whether text is underlined.
        color: Text color.
    """

    model_config = ConfigDict(frozen=True)

    family: str = Field(default="Calibri", description="Font family name")
    size: float = Field(default=11.0, gt=0, description="Font size in points")
    bold: bool = Field(default=False, description="Bold face")
    italic: bool = Field(default=False, description="Italic face")
    underline: bool = Field(default=False, description="Underlined text")
    color: RGB = Field(default=BLACK, description="Text color as (r, g, b)")


class BorderSpec(BaseModel):
    """
    One side of a cell border.

    A side is drawn only when it has both a style and an explicit color; a
    styled side without a color keeps color None and leaves the grid line.

    Attributes:
        style: Line style.
        color: Line color, None when the workbook gives none.
        width: Stroke width in logical pixels.
    """

    model_config = ConfigDict(frozen=True)

    style: BorderStyle = Field(default=BorderStyle.NONE, description="Line style")
    color: RGB | None = Field(default=None, description="Line color as (r, g, b)")
    width: int = Field(default=0, ge=0, description="Stroke width in logical pixels")

    @property
    def is_set(self) -> bool:
        """Whether this side carries an explicit border."""
        return self.style != BorderStyle.NONE and self.color is not None


class ResolvedStyle(BaseModel):
    """
    Everything the layout engine and renderer need to know about a style.

    Attributes:
        font: Font attributes.
        fill: Solid background color, None for no fill.
        left: Left border side.
        right: Right border side.
        top: Top border side.
        bottom: Bottom border side.
        horizontal: Horizontal alignment.
        vertical: Vertical alignment, None when unset (text is centered).
        wrap_text: Whether text wraps inside the cell.
    """

    model_config = ConfigDict(frozen=True)

    font: FontSpec = Field(default_factory=FontSpec, description="Font attributes")
    fill: RGB | None = Field(default=None, description="Background color as (r, g, b)")
    left: BorderSpec = Field(default_factory=BorderSpec)
    right: BorderSpec = Field(default_factory=BorderSpec)
    top: BorderSpec = Field(default_factory=BorderSpec)
    bottom: BorderSpec = Field(default_factory=BorderSpec)
    horizontal: HorizontalAlignment = Field(default=HorizontalAlignment.GENERAL)
    vertical: VerticalAlignment | None = Field(default=None)
    wrap_text: bool = Field(default=False, description="Wrap text inside the cell")

    def borders(self) -> dict[str, BorderSpec]:
        """Return the four border sides keyed by side name."""
        return {
            "left": self.left,
            "right": self.right,
            "top": self.top,
            "bottom": self.bottom,
        }
