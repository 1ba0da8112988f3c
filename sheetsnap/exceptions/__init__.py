"""
Custom exceptions for sheetsnap.

Provides type-safe, descriptive exceptions for error handling throughout
the application.
"""

from sheetsnap.exceptions.snapshot_exceptions import (
    CellRangeError,
    ImageDecodeError,
    InvalidFileFormatError,
    InvalidInputError,
    ReadError,
    RenderError,
    SheetNotFoundError,
    SheetTooLargeError,
    SnapshotError,
    StyleResolutionError,
    WriteError,
)
from sheetsnap.exceptions.snapshot_exceptions import (
    FileNotFoundError as ExcelFileNotFoundError,
)
from sheetsnap.exceptions.snapshot_exceptions import (
    PermissionError as ExcelPermissionError,
)

__all__ = [
    "SnapshotError",
    "ExcelFileNotFoundError",
    "InvalidFileFormatError",
    "SheetNotFoundError",
    "CellRangeError",
    "StyleResolutionError",
    "ImageDecodeError",
    "InvalidInputError",
    "SheetTooLargeError",
    "RenderError",
    "ReadError",
    "WriteError",
    "ExcelPermissionError",
]
