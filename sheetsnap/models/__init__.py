"""
Data models for sheetsnap.

Contains the cell grid, resolved styles, layout geometry and the Pydantic
models for request/response validation and serialization.
"""

from sheetsnap.models.api_models import (
    BatchRenderRequest,
    BatchRenderResponse,
    RenderRequest,
    SheetInfo,
    SheetRenderResult,
    SnapshotErrorResponse,
    WorkbookInfo,
)
from sheetsnap.models.grid_models import Cell, ExcelImage, PictureRecord, Sheet
from sheetsnap.models.layout_models import LayoutRect, SheetLayout
from sheetsnap.models.style_models import (
    BorderSpec,
    BorderStyle,
    FontSpec,
    HorizontalAlignment,
    ResolvedStyle,
    VerticalAlignment,
)

__all__ = [
    "Cell",
    "ExcelImage",
    "PictureRecord",
    "Sheet",
    "LayoutRect",
    "SheetLayout",
    "BorderSpec",
    "BorderStyle",
    "FontSpec",
    "HorizontalAlignment",
    "ResolvedStyle",
    "VerticalAlignment",
    "SheetInfo",
    "WorkbookInfo",
    "RenderRequest",
    "BatchRenderRequest",
    "SheetRenderResult",
    "BatchRenderResponse",
    "SnapshotErrorResponse",
]
