"""
XlsxWriter adapter for writing sample workbooks.

This module provides the XlsxWriterAdapter class that wraps XlsxWriter for
producing workbooks to render: the built-in demo workbook and declarative
workbooks used as fixtures. Every workbook written here can carry the
features the snapshot pipeline cares about (styles, merges, explicit
geometry and pictures), and XlsxWriter always records the sheet dimension.

Example:
    adapter = XlsxWriterAdapter()
    adapter.write_demo_workbook("/tmp/demo.xlsx", overwrite=True)

    adapter.write_workbook(
        "/tmp/book.xlsx",
        {
            "Users": {
                "rows": [["Name", "Age"], ["Alice", 30]],
                "formats": {"A1": {"bold": True, "bg_color": "#BDD7EE"}},
                "col_widths": {"A": 20},
            },
        },
    )
"""

import io
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

import xlsxwriter
from xlsxwriter.utility import xl_cell_to_rowcol, xl_col_to_name
from xlsxwriter.workbook import Workbook
from xlsxwriter.worksheet import Worksheet

from sheetsnap.exceptions.snapshot_exceptions import PermissionError as ExcelPermissionError
from sheetsnap.exceptions.snapshot_exceptions import WriteError

DEMO_SHEET_NAME = "Sheet1"


class XlsxWriterAdapter:
    """
    Adapter for XlsxWriter workbook writing.

    Sheet configurations accepted by write_workbook are plain dictionaries,
    every key optional:

        rows: Rows of values starting at start_cell. None values are skipped
            unless the address has a format.
        start_cell: Top-left cell of rows, defaults to "A1".
        formats: Mapping of address to an XlsxWriter format dictionary.
        formula_results: Mapping of formula address to its cached result.
        blanks: Addresses stored as explicit blank cells.
        merges: List of (range, value, format dict or None) tuples.
        col_widths: Mapping of column letter to width in characters.
        row_heights: Mapping of 1-based row number to height in points.
        images: List of (address, image bytes, options dict or None) tuples.

    Example:
        adapter = XlsxWriterAdapter()
        result = adapter.write_workbook("/tmp/book.xlsx", {"Data": {"rows": [[1, 2]]}})
        print(result["sheets_written"])
    """

    def _validate_output_path(
        self,
        file_path: str,
        overwrite: bool = False,
    ) -> Path:
        """
        Validate and prepare the output file path.

        Args:
            file_path: Path where the file will be written.
            overwrite: Whether to overwrite if the file exists.

        Returns:
            Path object for the output file.

        Raises:
            WriteError: If the file exists and overwrite is False.
            ExcelPermissionError: If the directory is not writable.
        """
        path = Path(file_path)
        if path.suffix.lower() != ".xlsx":
            path = Path(f"{file_path}.xlsx")

        if path.exists() and not overwrite:
            raise WriteError(
                file_path=str(path),
                operation="create",
                reason="File already exists and overwrite is False",
            )

        parent = path.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except PermissionError as e:
                raise ExcelPermissionError(
                    file_path=str(parent),
                    operation="create directory",
                ) from e
            except OSError as e:
                raise WriteError(
                    file_path=str(path),
                    operation="create directory",
                    reason=str(e),
                ) from e

        if not os.access(str(parent), os.W_OK):
            raise ExcelPermissionError(
                file_path=str(path),
                operation="write",
            )

        return path

    def _write_cell(
        self,
        worksheet: Worksheet,
        row: int,
        col: int,
        value: Any,
        cell_format: Any = None,
        result: Any = None,
    ) -> None:
        """
        Write a value to a cell with appropriate type handling.

        Args:
            worksheet: The worksheet to write to.
            row: Row index (0-based).
            col: Column index (0-based).
            value: Value to write.
            cell_format: Optional format to apply.
            result: Cached result stored with a formula.
        """
        if value is None:
            worksheet.write_blank(row, col, None, cell_format)
        elif isinstance(value, bool):
            worksheet.write_boolean(row, col, value, cell_format)
        elif isinstance(value, (int, float)):
            worksheet.write_number(row, col, value, cell_format)
        elif isinstance(value, (datetime, date)):
            worksheet.write_datetime(row, col, value, cell_format)
        elif isinstance(value, str):
            if value.startswith("="):
                worksheet.write_formula(row, col, value, cell_format, 0 if result is None else result)
            else:
                worksheet.write_string(row, col, value, cell_format)
        else:
            worksheet.write(row, col, str(value), cell_format)

    def _populate_sheet(
        self,
        workbook: Workbook,
        worksheet: Worksheet,
        config: dict[str, Any],
    ) -> int:
        """Write one sheet configuration and return the number of rows written."""
        formats = {
            address.upper(): workbook.add_format(spec)
            for address, spec in config.get("formats", {}).items()
        }
        results = {address.upper(): value for address, value in config.get("formula_results", {}).items()}
        date_format = workbook.add_format({"num_format": "yyyy-mm-dd"})

        start_row, start_col = xl_cell_to_rowcol(config.get("start_cell", "A1"))
        rows = config.get("rows", [])
        written: set[str] = set()

        for row_offset, row_data in enumerate(rows):
            for col_offset, value in enumerate(row_data):
                row, col = start_row + row_offset, start_col + col_offset
                address = f"{xl_col_to_name(col)}{row + 1}"
                cell_format = formats.get(address)
                if cell_format is None and isinstance(value, (datetime, date)):
                    cell_format = date_format
                if value is None and cell_format is None:
                    continue
                self._write_cell(worksheet, row, col, value, cell_format, results.get(address))
                written.add(address)

        for address, cell_format in formats.items():
            if address not in written:
                row, col = xl_cell_to_rowcol(address)
                worksheet.write_blank(row, col, None, cell_format)
                written.add(address)

        if config.get("blanks"):
            plain = workbook.add_format()
            for address in config["blanks"]:
                if address.upper() not in written:
                    row, col = xl_cell_to_rowcol(address)
                    worksheet.write_blank(row, col, None, plain)

        for cell_range, value, spec in config.get("merges", []):
            worksheet.merge_range(cell_range, value, workbook.add_format(spec) if spec else None)

        for letter, width in config.get("col_widths", {}).items():
            worksheet.set_column(f"{letter}:{letter}", width)

        for row_number, height in config.get("row_heights", {}).items():
            worksheet.set_row(row_number - 1, height)

        for address, data, options in config.get("images", []):
            image_options = dict(options or {})
            image_options["image_data"] = io.BytesIO(data)
            worksheet.insert_image(address, f"{address.lower()}.png", image_options)

        return len(rows)

    def write_workbook(
        self,
        file_path: str,
        sheets: dict[str, dict[str, Any]],
        overwrite: bool = False,
    ) -> dict[str, Any]:
        """
        Write a workbook from sheet configurations.

        Args:
            file_path: Path where the file will be written.
            sheets: Mapping of sheet name to sheet configuration (see class
                docstring). An empty configuration produces an empty sheet.
            overwrite: Whether to overwrite an existing file.

        Returns:
            Dictionary containing:
                - file_path: Path to the written file
                - sheets_written: Number of sheets written
                - total_rows_written: Total number of rows written
                - file_size_bytes: Size of the file in bytes

        Raises:
            WriteError: If writing fails.
            ExcelPermissionError: If the file cannot be written due to permissions.

        Example:
            result = adapter.write_workbook(
                "/path/to/output.xlsx",
                {
                    "Users": {"rows": [["Name", "Age"], ["Alice", 30]]},
                    "Empty": {},
                },
            )
        """
        path = self._validate_output_path(file_path, overwrite)

        try:
            total_rows_written = 0
            with xlsxwriter.Workbook(str(path)) as workbook:
                for sheet_name, config in sheets.items():
                    worksheet = workbook.add_worksheet(sheet_name)
                    total_rows_written += self._populate_sheet(workbook, worksheet, config)

        except xlsxwriter.exceptions.FileCreateError as e:
            raise ExcelPermissionError(
                file_path=str(path),
                operation="write",
            ) from e
        except Exception as e:
            raise WriteError(
                file_path=str(path),
                operation="write",
                reason=str(e),
            ) from e

        return {
            "file_path": str(path.absolute()),
            "sheets_written": len(sheets),
            "total_rows_written": total_rows_written,
            "file_size_bytes": path.stat().st_size,
        }

    def write_sheet(
        self,
        file_path: str,
        rows: list[list[Any]],
        sheet_name: str = "Sheet1",
        headers: list[str] | None = None,
        overwrite: bool = False,
    ) -> dict[str, Any]:
        """
        Write a single sheet of plain rows, with an optional bold header row.

        Returns:
            Same dictionary as write_workbook.
        """
        config: dict[str, Any] = {"rows": [list(row) for row in rows]}
        if headers:
            config["rows"].insert(0, list(headers))
            config["formats"] = {
                f"{xl_col_to_name(col)}1": {"bold": True, "border": 1}
                for col in range(len(headers))
            }
        return self.write_workbook(file_path, {sheet_name: config}, overwrite=overwrite)

    def write_demo_workbook(self, file_path: str, overwrite: bool = False) -> dict[str, Any]:
        """
        Write the demo workbook.

        A small sales table with a merged title, filled and bordered headers,
        mixed alignments, numbers, dates, formulas with cached results, a
        merged summary row, explicit row heights and explicit column widths.

        Args:
            file_path: Path where the file will be written.
            overwrite: Whether to overwrite an existing file.

        Returns:
            Same dictionary as write_workbook.
        """
        border = {"border": 1, "border_color": "#000000", "valign": "vcenter"}
        header = {**border, "bold": True, "align": "center", "bg_color": "#BDD7EE"}
        total = {**border, "bold": True, "bg_color": "#E2EFDA"}

        items = [
            ("苹果", 12, 3.5, date(2025, 8, 1)),
            ("香蕉", 6, 4.2, date(2025, 8, 2)),
            ("牛奶", 2, 15.8, date(2025, 8, 3)),
        ]

        rows: list[list[Any]] = [[], ["项目", "数量", "单价", "金额", "日期"]]
        formats = {f"{letter}2": header for letter in "ABCDE"}
        results: dict[str, float] = {}

        for row, (name, quantity, price, sold_on) in enumerate(items, start=3):
            rows.append([name, quantity, price, f"=B{row}*C{row}", sold_on])
            results[f"D{row}"] = round(quantity * price, 2)
            formats[f"A{row}"] = {**border, "align": "left"}
            formats[f"B{row}"] = {**border, "align": "center", "num_format": "0"}
            formats[f"C{row}"] = {**border, "align": "right", "num_format": "0.00"}
            formats[f"D{row}"] = {**border, "align": "right", "num_format": "0.00"}
            formats[f"E{row}"] = {**border, "align": "center", "num_format": "yyyy-mm-dd"}

        rows.append([None, None, None, "=SUM(D3:D5)", None])
        results["D6"] = round(sum(results.values()), 2)
        formats["D6"] = {**total, "align": "right", "num_format": "0.00"}
        formats["E6"] = total

        demo = {
            "rows": rows,
            "formats": formats,
            "formula_results": results,
            "merges": [
                ("A1:E1", "销售明细", {"bold": True, "font_size": 16, "align": "center",
                                       "valign": "vcenter", "bg_color": "#FFF2CC"}),
                ("A6:C6", "合计", {**total, "align": "right"}),
            ],
            "col_widths": {"A": 16, "B": 8, "C": 10, "D": 12, "E": 12},
            "row_heights": {1: 28, 2: 22, 6: 22},
        }
        return self.write_workbook(file_path, {DEMO_SHEET_NAME: demo}, overwrite=overwrite)
