"""
MCP (Model Context Protocol) server for sheet snapshots.

This module implements an MCP server that exposes the snapshot operations as
tools that can be called by AI agents. It provides the same functionality as
the REST API but through the MCP protocol.

MCP Tools:
    - get_workbook_info: Get metadata about a workbook
    - list_sheets: Get sheet names in a workbook
    - render_sheet: Render one sheet and return it as a PNG image
    - render_workbook: Render every sheet of a workbook into a directory

Example:
    To run the MCP server:
        python -m sheetsnap.mcp_server

    Or programmatically:
        from sheetsnap.mcp_server import run_mcp_server
        run_mcp_server()
"""

import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    ImageContent,
    TextContent,
    Tool,
)

from sheetsnap.config import get_settings
from sheetsnap.exceptions.snapshot_exceptions import SnapshotError
from sheetsnap.logging_config import configure_logging
from sheetsnap.services.renderer import encode_png
from sheetsnap.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

_FILE_PATH_PROPERTY = {
    "file_path": {
        "type": "string",
        "description": "Path to the .xlsx or .xlsm workbook",
    },
}

_SHEET_PROPERTIES = {
    "sheet_name": {
        "type": "string",
        "description": "Name of the sheet to render (optional, defaults to first sheet)",
    },
    "sheet_index": {
        "type": "integer",
        "description": "Index of the sheet (0-based, used if sheet_name not provided)",
    },
    "scale": {
        "type": "number",
        "description": "Supersampling factor (default: 2.0)",
    },
}


class MCPSnapshotServer:
    """
    MCP server implementation for sheet snapshots.

    This class wraps the SnapshotService and exposes it through the MCP
    protocol. Rendered sheets are returned as image content next to a JSON
    text block describing the result.

    Attributes:
        service: The underlying SnapshotService instance.
        server: The MCP Server instance.

    Example:
        mcp_server = MCPSnapshotServer()
        await mcp_server.run()
    """

    def __init__(self, service: SnapshotService | None = None) -> None:
        """
        Initialize the MCP snapshot server.

        Args:
            service: Optional SnapshotService instance. If None, creates a new one.
        """
        self.service = service or SnapshotService()
        self.server = Server("sheetsnap-mcp-server")
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Set up MCP request handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return the list of available snapshot tools."""
            return self._get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent | ImageContent]:
            """Execute a tool and return the result."""
            result = await self._execute_tool(name, arguments)
            return self._to_contents(result)

    @staticmethod
    def _to_contents(result: dict[str, Any]) -> list[TextContent | ImageContent]:
        """
        Turn a tool result into MCP content blocks.

        PNG bytes under the "png" key become an image block; the rest of the
        result is serialized as JSON text.
        """
        png = result.pop("png", None)
        contents: list[TextContent | ImageContent] = []
        if png is not None:
            contents.append(
                ImageContent(
                    type="image",
                    data=base64.b64encode(png).decode("ascii"),
                    mimeType="image/png",
                )
            )
        contents.append(TextContent(type="text", text=json.dumps(result, default=str, indent=2, ensure_ascii=False)))
        return contents

    def _get_tools(self) -> list[Tool]:
        """
        Get the list of available snapshot tools.

        Returns:
            List of MCP Tool definitions.
        """
        return [
            Tool(
                name="get_workbook_info",
                description=(
                    "Get metadata about an Excel workbook including file size, "
                    "sheet count, and the used range, merged regions and pictures of each sheet."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {**_FILE_PATH_PROPERTY},
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="list_sheets",
                description="Get the list of sheet names in an Excel workbook.",
                inputSchema={
                    "type": "object",
                    "properties": {**_FILE_PATH_PROPERTY},
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="render_sheet",
                description=(
                    "Render one sheet of an Excel workbook to a PNG image that looks like "
                    "the sheet in a spreadsheet application: grid lines, fills, fonts, "
                    "borders, merged cells and pictures. Optionally also writes the PNG."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        **_FILE_PATH_PROPERTY,
                        **_SHEET_PROPERTIES,
                        "output_path": {
                            "type": "string",
                            "description": "Optional .png file or directory to also write the snapshot to",
                        },
                    },
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="render_workbook",
                description=(
                    "Render every sheet of an Excel workbook into a directory, one PNG per "
                    "sheet named '<workbook>_<sheet>.png'. Blank sheets are skipped by default."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        **_FILE_PATH_PROPERTY,
                        "output_dir": {
                            "type": "string",
                            "description": "Directory receiving the PNG files",
                        },
                        "skip_blank": {
                            "type": "boolean",
                            "description": "Skip sheets without values or pictures (default: true)",
                        },
                        "scale": _SHEET_PROPERTIES["scale"],
                    },
                    "required": ["file_path", "output_dir"],
                },
            ),
        ]

    async def _execute_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a tool by name with the given arguments.

        Rendering runs in a worker thread so the event loop stays responsive.

        Args:
            name: The name of the tool to execute.
            arguments: The arguments to pass to the tool.

        Returns:
            Dictionary containing the tool execution result. A rendered
            sheet's PNG bytes are under the "png" key.
        """
        try:
            if name == "get_workbook_info":
                result = await asyncio.to_thread(self.service.get_workbook_info, arguments["file_path"])
                return {"success": True, "data": result.model_dump()}

            elif name == "list_sheets":
                sheets = await asyncio.to_thread(self.service.get_sheet_names, arguments["file_path"])
                return {"success": True, "data": {"sheets": sheets}}

            elif name == "render_sheet":
                if arguments.get("output_path"):
                    saved = await asyncio.to_thread(
                        self.service.render_to_file,
                        arguments["file_path"],
                        arguments["output_path"],
                        arguments.get("sheet_name"),
                        arguments.get("sheet_index"),
                        arguments.get("scale"),
                    )
                    png = await asyncio.to_thread(Path(saved.output_path).read_bytes)
                    return {"success": True, "data": saved.model_dump(), "png": png}

                image = await asyncio.to_thread(
                    self.service.render_sheet,
                    arguments["file_path"],
                    arguments.get("sheet_name"),
                    arguments.get("sheet_index"),
                    arguments.get("scale"),
                )
                png = await asyncio.to_thread(encode_png, image)
                return {"success": True, "data": {"width": image.width, "height": image.height}, "png": png}

            elif name == "render_workbook":
                report = await asyncio.to_thread(
                    self.service.render_workbook,
                    arguments["file_path"],
                    arguments["output_dir"],
                    arguments.get("skip_blank", True),
                    arguments.get("scale"),
                )
                return {"success": report.success, "data": report.model_dump()}

            else:
                return {
                    "success": False,
                    "error": {
                        "error_code": "UNKNOWN_TOOL",
                        "message": f"Unknown tool: {name}",
                    },
                }

        except SnapshotError as e:
            return {
                "success": False,
                "error": e.to_dict(),
            }
        except KeyError as e:
            return {
                "success": False,
                "error": {
                    "error_code": "INVALID_INPUT",
                    "message": f"Missing required argument: {e.args[0]}",
                },
            }
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return {
                "success": False,
                "error": {
                    "error_code": "INTERNAL_ERROR",
                    "message": str(e),
                },
            }

    async def run(self) -> None:
        """
        Run the MCP server using stdio transport.

        This method starts the server and blocks until it is terminated.
        It uses stdin/stdout for communication with the MCP client.
        """
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def run_mcp_server() -> None:
    """
    Run the MCP snapshot server.

    Logging goes to stderr; stdout carries the protocol.

    Example:
        python -m sheetsnap.mcp_server
    """
    configure_logging(get_settings().log_level)
    server = MCPSnapshotServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    run_mcp_server()
