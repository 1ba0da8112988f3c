"""
FastAPI application for the snapshot service.

This module provides the REST API endpoints for rendering worksheets. It
exposes both file-based operations (for workbooks on the server) and an
upload operation (for workbooks sent by the client).

API Endpoints:
    - GET /health: Health check
    - GET /workbook/info: Get workbook metadata
    - GET /workbook/sheets: List sheet names
    - POST /snapshot/render: Render one sheet to PNG
    - POST /snapshot/upload: Upload a workbook and render one sheet to PNG
    - POST /snapshot/render-all: Render every sheet into a directory

Example:
    To run the server:
        uvicorn sheetsnap.main:app --reload

    Or programmatically:
        from sheetsnap.main import run_server
        run_server()
"""

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from sheetsnap import __version__
from sheetsnap.config import get_settings
from sheetsnap.exceptions.snapshot_exceptions import SnapshotError
from sheetsnap.logging_config import configure_logging
from sheetsnap.models.api_models import (
    BatchRenderRequest,
    BatchRenderResponse,
    RenderRequest,
    SnapshotErrorResponse,
    WorkbookInfo,
)
from sheetsnap.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

snapshot_service: SnapshotService | None = None

STATUS_CODES = {
    "FILE_NOT_FOUND": 404,
    "SHEET_NOT_FOUND": 404,
    "INVALID_FILE_FORMAT": 400,
    "INVALID_CELL_RANGE": 400,
    "INVALID_INPUT": 400,
    "SHEET_TOO_LARGE": 400,
    "PERMISSION_DENIED": 403,
}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": SnapshotErrorResponse, "description": "Invalid request or workbook"},
    403: {"model": SnapshotErrorResponse, "description": "Permission denied"},
    404: {"model": SnapshotErrorResponse, "description": "File or sheet not found"},
    500: {"model": SnapshotErrorResponse, "description": "Rendering error"},
}

PNG_RESPONSE: dict[int | str, dict[str, Any]] = {
    200: {"content": {"image/png": {}}, "description": "PNG snapshot of the sheet"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes the snapshot service (and its font registry) on startup and
    releases it on shutdown.

    Args:
        app: The FastAPI application instance.
    """
    global snapshot_service
    settings = get_settings()
    configure_logging(settings.log_level)
    if snapshot_service is None:
        snapshot_service = SnapshotService(settings)
    yield
    snapshot_service = None


app = FastAPI(
    title="Sheet Snapshot Service",
    description="""
    Render Excel worksheets to PNG snapshots, over REST and MCP (Model Context Protocol).

    ## Features

    - **Faithful snapshots**: grid lines, fills, fonts, borders, alignment, merged cells and pictures
    - **Content-based sizing**: rows and columns left at their default size are sized from their text
    - **Batch rendering**: every sheet of a workbook into a directory, with per-sheet results
    - **Formats**: .xlsx and .xlsm

    ## Architecture

    - **Service Layer**: Core rendering logic decoupled from transport
    - **Adapters**: openpyxl for reading, XlsxWriter for the demo workbook
    - **Dual Protocol**: Same service exposed via REST and MCP
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_service() -> SnapshotService:
    """
    Get the snapshot service instance.

    Returns:
        The global SnapshotService instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if snapshot_service is None:
        raise HTTPException(
            status_code=503,
            detail="Snapshot service is not initialized",
        )
    return snapshot_service


def to_http_exception(error: SnapshotError) -> HTTPException:
    """
    Convert a SnapshotError into an HTTPException with a matching status code.

    Args:
        error: The SnapshotError to convert.

    Returns:
        HTTPException carrying the error dictionary as detail.
    """
    status_code = STATUS_CODES.get(error.error_code, 500)
    if status_code >= 500:
        logger.error("Request failed: %s", error.message)
    return HTTPException(status_code=status_code, detail=error.to_dict())


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status, version and the number of fonts found.
    """
    service = get_service()
    return {
        "status": "healthy",
        "service": "Sheet Snapshot Service",
        "version": __version__,
        "fonts": len(service.fonts),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get(
    "/workbook/info",
    tags=["Workbook"],
    summary="Get workbook information",
    response_model=WorkbookInfo,
    responses=ERROR_RESPONSES,
)
async def get_workbook_info(
    file_path: Annotated[str, Query(description="Path to the workbook")],
) -> WorkbookInfo:
    """
    Get metadata about a workbook: file size, sheets, their used ranges,
    merged regions and picture counts.

    Raises:
        HTTPException: If the file is not found or invalid.
    """
    service = get_service()

    try:
        return await run_in_threadpool(service.get_workbook_info, file_path)
    except SnapshotError as e:
        raise to_http_exception(e) from e


@app.get(
    "/workbook/sheets",
    tags=["Workbook"],
    summary="List sheet names",
    response_model=list[str],
    responses=ERROR_RESPONSES,
)
async def get_sheet_names(
    file_path: Annotated[str, Query(description="Path to the workbook")],
) -> list[str]:
    """
    Get the list of worksheet names in a workbook.

    Raises:
        HTTPException: If the file is not found or invalid.
    """
    service = get_service()

    try:
        return await run_in_threadpool(service.get_sheet_names, file_path)
    except SnapshotError as e:
        raise to_http_exception(e) from e


@app.post(
    "/snapshot/render",
    tags=["Snapshot"],
    summary="Render a sheet to PNG",
    response_class=Response,
    responses={**PNG_RESPONSE, **ERROR_RESPONSES},
)
async def render_sheet(request: RenderRequest) -> Response:
    """
    Render one sheet of a workbook on the server.

    The sheet is selected by name, else by index, else the first sheet is
    used. When output_path is given the PNG is also written there (a .png
    file, or a directory that receives "<workbook>_<sheet>.png").

    Args:
        request: RenderRequest with the workbook path and sheet selection.

    Returns:
        The PNG image.

    Raises:
        HTTPException: If loading, rendering or saving fails.
    """
    service = get_service()

    try:
        if request.output_path:
            saved = await run_in_threadpool(
                service.render_to_file,
                request.file_path,
                request.output_path,
                request.sheet_name,
                request.sheet_index,
                request.scale,
            )
            png = Path(saved.output_path).read_bytes()
        else:
            png = await run_in_threadpool(
                service.render_sheet_png,
                request.file_path,
                request.sheet_name,
                request.sheet_index,
                request.scale,
            )
    except SnapshotError as e:
        raise to_http_exception(e) from e

    return Response(content=png, media_type="image/png")


@app.post(
    "/snapshot/upload",
    tags=["Snapshot"],
    summary="Upload a workbook and render a sheet to PNG",
    response_class=Response,
    responses={**PNG_RESPONSE, **ERROR_RESPONSES},
)
async def upload_and_render(
    file: Annotated[UploadFile, File(description="Workbook to upload")],
    sheet_name: Annotated[str | None, Query(description="Sheet name")] = None,
    sheet_index: Annotated[int | None, Query(ge=0, description="Sheet index (0-based)")] = None,
    scale: Annotated[float | None, Query(ge=1.0, le=8.0, description="Supersampling factor")] = None,
) -> Response:
    """
    Upload a workbook and render one of its sheets.

    The upload is stored in a temporary file for the duration of the request.

    Raises:
        HTTPException: If the upload is not a supported workbook or rendering fails.
    """
    if not file.filename:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_FILE", "message": "No file provided"},
        )

    service = get_service()
    valid_extensions = service.read_adapter.SUPPORTED_EXTENSIONS
    if not file.filename.lower().endswith(valid_extensions):
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "INVALID_FILE_FORMAT",
                "message": f"Invalid file extension. Supported: {', '.join(valid_extensions)}",
            },
        )

    suffix = os.path.splitext(file.filename)[1]
    with tempfile.TemporaryDirectory(prefix="sheetsnap-") as temp_dir:
        temp_path = os.path.join(temp_dir, f"upload{suffix}")
        with open(temp_path, "wb") as temp_file:
            temp_file.write(await file.read())

        try:
            png = await run_in_threadpool(service.render_sheet_png, temp_path, sheet_name, sheet_index, scale)
        except SnapshotError as e:
            raise to_http_exception(e) from e

    return Response(content=png, media_type="image/png")


@app.post(
    "/snapshot/render-all",
    tags=["Snapshot"],
    summary="Render every sheet into a directory",
    response_model=BatchRenderResponse,
    responses=ERROR_RESPONSES,
)
async def render_workbook(request: BatchRenderRequest) -> BatchRenderResponse:
    """
    Render every sheet of a workbook on the server into output_dir.

    Per-sheet failures are reported in the results and do not fail the
    request; only errors opening the workbook do.

    Raises:
        HTTPException: If the workbook cannot be opened.
    """
    service = get_service()

    try:
        return await run_in_threadpool(
            service.render_workbook,
            request.file_path,
            request.output_dir,
            request.skip_blank,
            request.scale,
        )
    except SnapshotError as e:
        raise to_http_exception(e) from e


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to the configured server host.
        port: Port to listen on. Defaults to the configured server port.
        reload: Whether to enable auto-reload. Defaults to False.

    Example:
        from sheetsnap.main import run_server
        run_server(host="127.0.0.1", port=8080)
    """
    settings = get_settings()
    uvicorn.run(
        "sheetsnap.main:app",
        host=host or settings.server_host,
        port=port or settings.server_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
