"""
Pydantic models for the snapshot service surfaces.

This module contains the request/response models shared by the FastAPI
application, the MCP server and the CLI batch report.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SheetInfo(BaseModel):
    """
    Metadata about a single worksheet.

    Attributes:
        name: The name of the sheet.
        index: The 0-based index of the sheet in the workbook.
        visible: Whether the sheet is visible.
        row_count: Number of rows in the used range.
        column_count: Number of columns in the used range.
        merge_count: Number of merged regions.
        image_count: Number of embedded pictures.
    """

    name: str = Field(
        description="The name of the sheet",
    )
    index: int = Field(
        ge=0,
        description="The 0-based index of the sheet in the workbook",
    )
    visible: bool = Field(
        default=True,
        description="Whether the sheet is visible",
    )
    row_count: int | None = Field(
        default=None,
        ge=0,
        description="Number of rows in the used range",
    )
    column_count: int | None = Field(
        default=None,
        ge=0,
        description="Number of columns in the used range",
    )
    merge_count: int = Field(
        default=0,
        ge=0,
        description="Number of merged regions",
    )
    image_count: int = Field(
        default=0,
        ge=0,
        description="Number of embedded pictures",
    )


class WorkbookInfo(BaseModel):
    """
    Metadata about a workbook.

    Attributes:
        file_path: Path to the workbook file.
        file_size_bytes: Size of the file in bytes.
        sheet_count: Number of sheets in the workbook.
        sheets: List of sheet metadata.
        modified_at: File modification timestamp.
    """

    file_path: str = Field(
        description="Path to the workbook file",
    )
    file_size_bytes: int | None = Field(
        default=None,
        ge=0,
        description="Size of the file in bytes",
    )
    sheet_count: int = Field(
        ge=0,
        description="Number of sheets in the workbook",
    )
    sheets: list[SheetInfo] = Field(
        default_factory=list,
        description="List of sheet metadata",
    )
    modified_at: datetime | None = Field(
        default=None,
        description="File modification timestamp (if available)",
    )


class RenderRequest(BaseModel):
    """
    Request model for rendering one sheet.

    Attributes:
        file_path: Path to the workbook.
        sheet_name: Name of the sheet. If None, sheet_index or the first sheet is used.
        sheet_index: Index of the sheet (0-based). Used if sheet_name is None.
        output_path: Optional .png file or directory to also save the snapshot to.
        scale: Optional supersampling factor overriding the configured one.
    """

    file_path: str = Field(
        description="Path to the workbook",
    )
    sheet_name: str | None = Field(
        default=None,
        description="Name of the sheet. If None, uses sheet_index or the first sheet.",
    )
    sheet_index: int | None = Field(
        default=None,
        ge=0,
        description="Index of the sheet (0-based). Used if sheet_name is None.",
    )
    output_path: str | None = Field(
        default=None,
        description="Optional .png file or directory to save the snapshot to",
    )
    scale: float | None = Field(
        default=None,
        ge=1.0,
        le=8.0,
        description="Supersampling factor overriding the configured one",
    )


class BatchRenderRequest(BaseModel):
    """
    Request model for rendering every sheet of a workbook.

    Attributes:
        file_path: Path to the workbook.
        output_dir: Directory receiving one PNG per sheet.
        skip_blank: Whether sheets without any visible content are skipped.
        scale: Optional supersampling factor overriding the configured one.
    """

    file_path: str = Field(
        description="Path to the workbook",
    )
    output_dir: str = Field(
        description="Directory receiving one PNG per sheet",
    )
    skip_blank: bool = Field(
        default=True,
        description="Skip sheets without any visible content",
    )
    scale: float | None = Field(
        default=None,
        ge=1.0,
        le=8.0,
        description="Supersampling factor overriding the configured one",
    )


class SheetRenderResult(BaseModel):
    """
    Outcome of rendering one sheet.

    Attributes:
        sheet_name: Name of the sheet.
        index: 0-based sheet index.
        success: Whether the sheet was rendered (and saved, when requested).
        skipped: Whether the sheet was skipped as blank.
        output_path: Where the PNG was written, if anywhere.
        width: Raster width in pixels.
        height: Raster height in pixels.
        error: Error dictionary for failed sheets.
        processing_time_ms: Time taken for this sheet in milliseconds.
    """

    sheet_name: str = Field(description="Name of the sheet")
    index: int = Field(ge=0, description="0-based sheet index")
    success: bool = Field(default=True, description="Whether rendering succeeded")
    skipped: bool = Field(default=False, description="Whether the sheet was skipped as blank")
    output_path: str | None = Field(default=None, description="Path of the written PNG")
    width: int | None = Field(default=None, ge=0, description="Raster width in pixels")
    height: int | None = Field(default=None, ge=0, description="Raster height in pixels")
    error: dict | None = Field(default=None, description="Error details for failed sheets")
    processing_time_ms: float | None = Field(
        default=None,
        ge=0,
        description="Time taken for this sheet in milliseconds",
    )


class BatchRenderResponse(BaseModel):
    """
    Response model for rendering every sheet of a workbook.

    Attributes:
        success: True when no sheet failed.
        file_path: Path to the workbook.
        output_dir: Directory the snapshots were written to.
        results: Per-sheet outcomes in workbook order.
        rendered_count: Number of sheets rendered.
        skipped_count: Number of blank sheets skipped.
        failed_count: Number of sheets that failed.
        processing_time_ms: Total time taken in milliseconds.
    """

    success: bool = Field(default=True, description="True when no sheet failed")
    file_path: str = Field(description="Path to the workbook")
    output_dir: str = Field(description="Directory the snapshots were written to")
    results: list[SheetRenderResult] = Field(
        default_factory=list,
        description="Per-sheet outcomes in workbook order",
    )
    rendered_count: int = Field(default=0, ge=0, description="Number of sheets rendered")
    skipped_count: int = Field(default=0, ge=0, description="Number of blank sheets skipped")
    failed_count: int = Field(default=0, ge=0, description="Number of sheets that failed")
    processing_time_ms: float | None = Field(
        default=None,
        ge=0,
        description="Total time taken in milliseconds",
    )


class SnapshotErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(
        default=False,
        description="Always False for error responses",
    )
    error_code: str = Field(
        description="Machine-readable error code",
    )
    message: str = Field(
        description="Human-readable error description",
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context",
    )
