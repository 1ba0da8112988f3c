"""
Service layer for sheet snapshots.

Contains the grid builder, layout engine, style resolver and renderer, and
the SnapshotService that the transports (CLI, HTTP, MCP) call into.
"""

from sheetsnap.services.font_registry import FontRegistry
from sheetsnap.services.grid_builder import SheetLoader
from sheetsnap.services.renderer import SheetRenderer, encode_png
from sheetsnap.services.snapshot_service import SnapshotService
from sheetsnap.services.style_resolver import StyleResolver

__all__ = [
    "FontRegistry",
    "SheetLoader",
    "SheetRenderer",
    "SnapshotService",
    "StyleResolver",
    "encode_png",
]
