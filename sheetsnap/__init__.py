"""
sheetsnap: spreadsheet worksheet snapshot renderer.

This package turns a worksheet of an Excel workbook into a PNG image that
looks like the sheet does on screen: grid lines, fills, fonts, borders,
alignment, merged regions and embedded pictures. It is exposed through a
command line tool, a REST API (FastAPI) and an MCP server.

Architecture:
    - Adapters: openpyxl for values, styles, geometry, merges and pictures,
      XlsxWriter for demo workbooks
    - Services: grid builder, layout engine, style resolver and renderer
    - Surfaces: CLI, REST and MCP all share the SnapshotService
"""

__version__ = "0.1.0"
