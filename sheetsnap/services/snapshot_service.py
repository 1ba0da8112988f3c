"""
Core snapshot service layer.

This module provides the SnapshotService class which wires the adapters,
grid builder and renderer together and serves as the single entry point for
the CLI, the FastAPI application and the MCP server. It implements the
Service Layer pattern so the transports stay free of rendering logic.

Example:
    service = SnapshotService()

    names = service.get_sheet_names("/path/to/file.xlsx")
    png = service.render_sheet_png("/path/to/file.xlsx", sheet_name="Sales")

    report = service.render_workbook("/path/to/file.xlsx", "/tmp/snapshots")
    print(f"{report.rendered_count} sheets rendered")
"""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from PIL import Image

from sheetsnap.adapters.openpyxl_adapter import OpenpyxlAdapter, OpenpyxlWorkbook
from sheetsnap.adapters.xlsxwriter_adapter import XlsxWriterAdapter
from sheetsnap.config import Settings, get_settings
from sheetsnap.exceptions.snapshot_exceptions import PermissionError as ExcelPermissionError
from sheetsnap.exceptions.snapshot_exceptions import SheetNotFoundError, SnapshotError, WriteError
from sheetsnap.models.api_models import BatchRenderResponse, SheetRenderResult, WorkbookInfo
from sheetsnap.models.grid_models import Sheet
from sheetsnap.services.font_registry import FontRegistry
from sheetsnap.services.grid_builder import SheetLoader
from sheetsnap.services.renderer import SheetRenderer, encode_png

logger = logging.getLogger(__name__)

_UNSAFE_FILE_CHARS_RE = re.compile(r'[/\\:*?"<>|]')


def sanitize_file_component(name: str) -> str:
    """
    Make a sheet or workbook name safe to use in a file name.

    Path separators and characters Windows forbids become "-"; an empty
    result becomes "sheet".
    """
    cleaned = _UNSAFE_FILE_CHARS_RE.sub("-", name).strip()
    return cleaned or "sheet"


def build_output_path(
    output: str | None,
    sheet_name: str,
    source_path: str,
    multiple: bool = False,
) -> Path:
    """
    Decide where the snapshot of one sheet is written.

    A single sheet rendered to a path ending in ".png" is written to exactly
    that path. Anything else is treated as a directory (the current directory
    when output is empty) and the file is named after the workbook and sheet.

    Args:
        output: Output file or directory given by the caller.
        sheet_name: Sheet being rendered.
        source_path: Workbook path, for the file name.
        multiple: Whether several sheets are written to the same output.

    Returns:
        Path of the PNG file.
    """
    target = Path(output or ".")
    if not multiple and target.suffix.lower() == ".png":
        return target

    workbook_stem = sanitize_file_component(Path(source_path).stem)
    return target / f"{workbook_stem}_{sanitize_file_component(sheet_name)}.png"


def save_png(image: Image.Image, path: Path) -> Path:
    """
    Write an image as PNG, creating parent directories.

    Raises:
        ExcelPermissionError: If the location is not writable.
        WriteError: If writing fails for any other reason.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_png(image))
    except PermissionError as e:
        raise ExcelPermissionError(file_path=str(path), operation="write") from e
    except OSError as e:
        raise WriteError(file_path=str(path), operation="write", reason=str(e)) from e
    return path


class SnapshotService:
    """
    Core service layer for sheet snapshots.

    The service uses:
        - OpenpyxlAdapter: For opening workbooks and reading sheets
        - XlsxWriterAdapter: For writing the demo workbook
        - FontRegistry: Built once and shared by every render

    Workbooks are opened per call; nothing from one call is reused by the
    next except the font registry.

    Attributes:
        settings: Active settings.
        read_adapter: OpenpyxlAdapter instance for read operations.
        write_adapter: XlsxWriterAdapter instance for write operations.
        fonts: Shared font registry.

    Example:
        service = SnapshotService()

        image = service.render_sheet("/path/to/file.xlsx", sheet_index=1)
        image.save("/tmp/second.png")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        read_adapter: OpenpyxlAdapter | None = None,
        write_adapter: XlsxWriterAdapter | None = None,
        fonts: FontRegistry | None = None,
    ) -> None:
        """
        Initialize the SnapshotService.

        Args:
            settings: Optional settings. Defaults to the process settings.
            read_adapter: Optional OpenpyxlAdapter instance.
            write_adapter: Optional XlsxWriterAdapter instance.
            fonts: Optional font registry. If None, one is built from the
                configured font directories and the system ones.
        """
        self.settings = settings or get_settings()
        self.read_adapter = read_adapter or OpenpyxlAdapter()
        self.write_adapter = write_adapter or XlsxWriterAdapter()
        self.fonts = fonts or FontRegistry(self.settings.font_dir_list)

    def renderer(self, scale: float | None = None) -> SheetRenderer:
        """Renderer configured from the settings, optionally at another scale."""
        return SheetRenderer(
            self.fonts,
            scale=scale or self.settings.scale,
            emu_to_pixel=self.settings.emu_to_pixel,
            max_cells=self.settings.max_cells,
        )

    # ==================== METADATA ====================

    def get_sheet_names(self, file_path: str) -> list[str]:
        """
        Get the list of worksheet names in a workbook.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        return self.read_adapter.get_sheet_names(file_path)

    def get_workbook_info(self, file_path: str) -> WorkbookInfo:
        """
        Get metadata about a workbook.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        return self.read_adapter.get_workbook_info(file_path)

    # ==================== LOADING ====================

    @staticmethod
    def select_sheet(
        names: list[str],
        sheet_name: str | None = None,
        sheet_index: int | None = None,
    ) -> tuple[str, int]:
        """
        Pick a sheet by name, else by 0-based index, else the first one.

        Returns:
            (name, index) of the selected sheet.

        Raises:
            SheetNotFoundError: If the selection matches no sheet.
        """
        if sheet_name is not None:
            if sheet_name in names:
                return sheet_name, names.index(sheet_name)
            raise SheetNotFoundError(sheet_name=sheet_name, available_sheets=names)

        if sheet_index is not None:
            if 0 <= sheet_index < len(names):
                return names[sheet_index], sheet_index
            raise SheetNotFoundError(sheet_name=f"index {sheet_index}", available_sheets=names)

        if names:
            return names[0], 0

        raise SheetNotFoundError(sheet_name="(first sheet)", available_sheets=[])

    def _loader(self, workbook: OpenpyxlWorkbook) -> SheetLoader:
        return SheetLoader(workbook, settings=self.settings)

    def load_sheet(
        self,
        file_path: str,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
    ) -> Sheet:
        """
        Load one sheet of a workbook into a dense cell grid.

        Args:
            file_path: Path to the workbook.
            sheet_name: Name of the sheet. If None, sheet_index or the first
                sheet is used.
            sheet_index: Index of the sheet (0-based). Used if sheet_name is None.

        Returns:
            The loaded Sheet.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            SheetNotFoundError: If the specified sheet does not exist.
        """
        with self.read_adapter.open(file_path, raw_values=self.settings.raw_values) as workbook:
            name, index = self.select_sheet(workbook.list_sheets(), sheet_name, sheet_index)
            return self._loader(workbook).load(name, index=index)

    # ==================== RENDERING ====================

    def render_sheet(
        self,
        file_path: str,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
        scale: float | None = None,
    ) -> Image.Image:
        """
        Render one sheet to an RGB image.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            SheetNotFoundError: If the specified sheet does not exist.
            InvalidInputError: If the sheet is empty.
            SheetTooLargeError: If the sheet exceeds the configured ceiling.
        """
        sheet = self.load_sheet(file_path, sheet_name=sheet_name, sheet_index=sheet_index)
        return self.renderer(scale).render(sheet)

    def render_sheet_png(
        self,
        file_path: str,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
        scale: float | None = None,
    ) -> bytes:
        """Render one sheet and encode it as PNG bytes."""
        return encode_png(self.render_sheet(file_path, sheet_name, sheet_index, scale))

    def render_to_file(
        self,
        file_path: str,
        output: str | None = None,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
        scale: float | None = None,
    ) -> SheetRenderResult:
        """
        Render one sheet and write it next to or at the given output.

        Args:
            file_path: Path to the workbook.
            output: A .png file path, or a directory (default: current directory).
            sheet_name: Name of the sheet.
            sheet_index: Index of the sheet (0-based). Used if sheet_name is None.
            scale: Optional supersampling factor.

        Returns:
            SheetRenderResult describing the written file.

        Raises:
            SnapshotError: Any loading, rendering or writing failure.
        """
        start_time = time.perf_counter()

        sheet = self.load_sheet(file_path, sheet_name=sheet_name, sheet_index=sheet_index)
        image = self.renderer(scale).render(sheet)
        path = save_png(image, build_output_path(output, sheet.name, file_path))

        logger.info("Wrote %s (%dx%d)", path, image.width, image.height)
        return SheetRenderResult(
            sheet_name=sheet.name,
            index=sheet.index,
            output_path=str(path),
            width=image.width,
            height=image.height,
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    def render_workbook(
        self,
        file_path: str,
        output_dir: str,
        skip_blank: bool = True,
        scale: float | None = None,
        max_workers: int | None = None,
    ) -> BatchRenderResponse:
        """
        Render every sheet of a workbook into a directory.

        Sheets are loaded one after another from a single open workbook, then
        rendered and written concurrently. A failing sheet is reported in its
        result and never stops the others.

        Args:
            file_path: Path to the workbook.
            output_dir: Directory receiving one PNG per sheet.
            skip_blank: Skip sheets without any visible value or picture.
            scale: Optional supersampling factor.
            max_workers: Render threads, defaults to the configured number.

        Returns:
            BatchRenderResponse with one result per sheet in workbook order.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        start_time = time.perf_counter()
        results: dict[int, SheetRenderResult] = {}
        loaded: list[Sheet] = []

        with self.read_adapter.open(file_path, raw_values=self.settings.raw_values) as workbook:
            loader = self._loader(workbook)
            for index, name in enumerate(workbook.list_sheets()):
                try:
                    sheet = loader.load(name, index=index)
                except SnapshotError as e:
                    logger.warning("Cannot load sheet %r: %s", name, e.message)
                    results[index] = SheetRenderResult(sheet_name=name, index=index, success=False, error=e.to_dict())
                    continue

                if skip_blank and sheet.is_blank:
                    logger.info("Skipping blank sheet %r", name)
                    results[index] = SheetRenderResult(sheet_name=name, index=index, skipped=True)
                    continue
                loaded.append(sheet)

        renderer = self.renderer(scale)
        workers = max_workers or self.settings.max_workers
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sheetsnap-render") as pool:
            futures = [
                (sheet, pool.submit(self._render_and_save, renderer, sheet, file_path, output_dir))
                for sheet in loaded
            ]
            for sheet, future in futures:
                results[sheet.index] = future.result()

        ordered = [results[index] for index in sorted(results)]
        failed = sum(1 for result in ordered if not result.success)
        skipped = sum(1 for result in ordered if result.skipped)

        response = BatchRenderResponse(
            success=failed == 0,
            file_path=file_path,
            output_dir=output_dir,
            results=ordered,
            rendered_count=len(ordered) - failed - skipped,
            skipped_count=skipped,
            failed_count=failed,
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        logger.info(
            "Rendered %d sheet(s) of %s, %d skipped, %d failed",
            response.rendered_count,
            file_path,
            skipped,
            failed,
        )
        return response

    def _render_and_save(
        self,
        renderer: SheetRenderer,
        sheet: Sheet,
        file_path: str,
        output_dir: str,
    ) -> SheetRenderResult:
        start_time = time.perf_counter()
        try:
            image = renderer.render(sheet)
            path = save_png(image, build_output_path(output_dir, sheet.name, file_path, multiple=True))
        except SnapshotError as e:
            logger.warning("Cannot render sheet %r: %s", sheet.name, e.message)
            return SheetRenderResult(
                sheet_name=sheet.name,
                index=sheet.index,
                success=False,
                error=e.to_dict(),
                processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )

        return SheetRenderResult(
            sheet_name=sheet.name,
            index=sheet.index,
            output_path=str(path),
            width=image.width,
            height=image.height,
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    # ==================== DEMO ====================

    def write_demo_workbook(self, file_path: str, overwrite: bool = False) -> dict[str, Any]:
        """
        Write the demo workbook.

        Raises:
            WriteError: If writing fails.
            ExcelPermissionError: If the file cannot be written due to permissions.
        """
        return self.write_adapter.write_demo_workbook(file_path, overwrite=overwrite)
