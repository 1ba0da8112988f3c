"""
Adapters between the snapshot pipeline and workbook libraries.

- WorkbookReader: read-side protocol the grid builder depends on
- OpenpyxlAdapter / OpenpyxlWorkbook: workbook reading using openpyxl
- XlsxWriterAdapter: demo and fixture workbook writing using XlsxWriter
"""

from sheetsnap.adapters.base import DEFAULT_COLUMN_WIDTH, DEFAULT_ROW_HEIGHT, WorkbookReader
from sheetsnap.adapters.openpyxl_adapter import OpenpyxlAdapter, OpenpyxlWorkbook, color_to_hex
from sheetsnap.adapters.xlsxwriter_adapter import XlsxWriterAdapter

__all__ = [
    "DEFAULT_COLUMN_WIDTH",
    "DEFAULT_ROW_HEIGHT",
    "WorkbookReader",
    "OpenpyxlAdapter",
    "OpenpyxlWorkbook",
    "XlsxWriterAdapter",
    "color_to_hex",
]
