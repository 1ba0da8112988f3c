"""
Geometry produced by the layout engine.

All values are logical pixels, before the renderer's supersampling scale.
These are plain frozen dataclasses rather than pydantic models: a layout
holds one rectangle per grid address and is rebuilt for every render.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class LayoutRect:
    """Rectangle of one cell address in logical pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True, slots=True)
class SheetLayout:
    """
    Column and row geometry of a sheet.

    ``col_offsets[c]`` is the right edge of column c (``col_offsets[0] == 0``);
    ``row_offsets`` is the same for rows. ``rects`` maps every grid address to
    its rectangle, with merge owners spanning their whole region.
    """

    col_widths: tuple[float, ...]
    row_heights: tuple[float, ...]
    col_offsets: tuple[float, ...]
    row_offsets: tuple[float, ...]
    rects: dict[tuple[int, int], LayoutRect] = field(default_factory=dict)

    @property
    def total_width(self) -> float:
        return self.col_offsets[-1]

    @property
    def total_height(self) -> float:
        return self.row_offsets[-1]

    def rect(self, row: int, col: int) -> LayoutRect:
        return self.rects[(row, col)]
