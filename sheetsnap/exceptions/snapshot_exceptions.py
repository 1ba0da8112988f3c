"""
Custom exceptions for snapshot operations.

This module defines the hierarchy of exceptions raised while opening a
workbook, building a sheet grid and rendering it. All of them inherit from
SnapshotError so that callers can catch every snapshot failure in one place.

Some of these errors are recovered where they occur (a malformed merge range
is skipped, an unresolvable style falls back to defaults, an undecodable
picture is left out). The rest propagate to the caller.

Example:
    try:
        image = service.render_sheet("book.xlsx", sheet_name="Missing")
    except SheetNotFoundError as e:
        logger.error("Sheet error: %s", e.sheet_name)
    except SnapshotError as e:
        logger.error("General error: %s", e)
"""


class SnapshotError(Exception):
    """
    Base exception for all snapshot errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for API responses.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SNAPSHOT_ERROR",
        details: dict | None = None,
    ) -> None:
        """
        Initialize the SnapshotError.

        Args:
            message: Human-readable error description.
            error_code: Machine-readable error code for API responses.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class FileNotFoundError(SnapshotError):
    """
    Raised when the workbook file does not exist.

    Attributes:
        file_path: Path to the file that was not found.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            message=f"Workbook file not found: {file_path}",
            error_code="FILE_NOT_FOUND",
            details={"file_path": file_path},
        )


class InvalidFileFormatError(SnapshotError):
    """
    Raised when the file is not a workbook we can read.

    Styles, merges and pictures come from openpyxl, so only the OOXML
    formats it understands are accepted.

    Attributes:
        file_path: Path to the invalid file.
        expected_formats: List of supported extensions.
        reason: Specific reason for the format error.
    """

    def __init__(
        self,
        file_path: str,
        expected_formats: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.expected_formats = expected_formats or [".xlsx", ".xlsm"]
        self.reason = reason

        message = f"Invalid workbook format: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FILE_FORMAT",
            details={
                "file_path": file_path,
                "expected_formats": self.expected_formats,
                "reason": reason,
            },
        )


class SheetNotFoundError(SnapshotError):
    """
    Raised when the requested sheet name or index does not exist.

    Attributes:
        sheet_name: Name (or "index N") of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        """
        Initialize the SheetNotFoundError.

        Args:
            sheet_name: Name of the sheet that was not found.
            available_sheets: List of sheets available in the workbook.
        """
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class CellRangeError(SnapshotError):
    """
    Raised when a cell address, merge range or sheet dimension is malformed.

    The grid builder recovers from this by ignoring the declaration.

    Attributes:
        cell_range: The invalid range string.
        reason: Specific reason why the range is invalid.
    """

    def __init__(
        self,
        cell_range: str,
        reason: str | None = None,
    ) -> None:
        self.cell_range = cell_range
        self.reason = reason

        message = f"Invalid cell range: {cell_range}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_CELL_RANGE",
            details={
                "cell_range": cell_range,
                "reason": reason,
            },
        )


class StyleResolutionError(SnapshotError):
    """
    Raised when a style identifier cannot be looked up or parsed.

    The style resolver catches it and substitutes the default style.

    Attributes:
        style_id: The style identifier that failed.
        reason: Specific reason for the failure.
    """

    def __init__(self, style_id: int, reason: str | None = None) -> None:
        self.style_id = style_id
        self.reason = reason

        message = f"Cannot resolve style {style_id}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="STYLE_RESOLUTION_FAILED",
            details={"style_id": style_id, "reason": reason},
        )


class ImageDecodeError(SnapshotError):
    """
    Raised when an embedded picture cannot be decoded.

    The image loader catches it and leaves the picture out of the sheet.

    Attributes:
        address: Anchor cell of the picture.
        image_format: Format tag reported by the workbook.
        reason: Specific reason for the failure.
    """

    def __init__(
        self,
        address: str,
        image_format: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.address = address
        self.image_format = image_format
        self.reason = reason

        message = f"Cannot decode picture anchored at {address}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="IMAGE_DECODE_FAILED",
            details={"address": address, "format": image_format, "reason": reason},
        )


class InvalidInputError(SnapshotError):
    """
    Raised when rendering is asked for without a usable sheet.

    Attributes:
        reason: What was wrong with the input.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            message=f"Invalid input: {reason}",
            error_code="INVALID_INPUT",
            details={"reason": reason},
        )


class SheetTooLargeError(SnapshotError):
    """
    Raised when a sheet exceeds the configured rows x columns ceiling.

    Attributes:
        sheet_name: Name of the rejected sheet.
        rows: Number of rows in the used range.
        cols: Number of columns in the used range.
        max_cells: The configured ceiling.
    """

    def __init__(self, sheet_name: str, rows: int, cols: int, max_cells: int) -> None:
        self.sheet_name = sheet_name
        self.rows = rows
        self.cols = cols
        self.max_cells = max_cells

        super().__init__(
            message=(
                f"Sheet {sheet_name} is too large to render: "
                f"{rows} x {cols} cells exceeds the limit of {max_cells}"
            ),
            error_code="SHEET_TOO_LARGE",
            details={
                "sheet_name": sheet_name,
                "rows": rows,
                "cols": cols,
                "max_cells": max_cells,
            },
        )


class RenderError(SnapshotError):
    """
    Raised when painting a sheet fails for an unexpected reason.

    Attributes:
        sheet_name: Name of the sheet being rendered.
        reason: Specific reason for the failure.
    """

    def __init__(self, sheet_name: str, reason: str | None = None) -> None:
        self.sheet_name = sheet_name
        self.reason = reason

        message = f"Failed to render sheet: {sheet_name}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="RENDER_ERROR",
            details={"sheet_name": sheet_name, "reason": reason},
        )


class ReadError(SnapshotError):
    """
    Raised when an error occurs while reading a workbook.

    Attributes:
        file_path: Path to the file being read.
        operation: The specific read operation that failed.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "read",
        reason: str | None = None,
    ) -> None:
        """
        Initialize the ReadError.

        Args:
            file_path: Path to the file being read.
            operation: The specific read operation that failed.
            reason: Specific reason for the read failure.
        """
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} workbook: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="READ_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class WriteError(SnapshotError):
    """
    Raised when an output file (snapshot PNG or demo workbook) cannot be written.

    Attributes:
        file_path: Path to the file being written.
        operation: The specific write operation that failed.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "write",
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="WRITE_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class PermissionError(SnapshotError):
    """
    Raised when file access is denied due to permissions.

    Attributes:
        file_path: Path to the file with permission issues.
        operation: The operation that was denied (read/write).
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "access",
    ) -> None:
        self.file_path = file_path
        self.operation = operation

        super().__init__(
            message=f"Permission denied for {operation} on: {file_path}",
            error_code="PERMISSION_DENIED",
            details={
                "file_path": file_path,
                "operation": operation,
            },
        )
