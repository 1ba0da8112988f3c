"""
Command line interface.

Usage:
    sheetsnap -i book.xlsx                      first sheet into the current directory
    sheetsnap -i book.xlsx -o out.png --sheet Q3
    sheetsnap -i book.xlsx -o shots/ --all      every non-blank sheet
    sheetsnap -i book.xlsx --force-raw          stored values, number formats ignored
    sheetsnap --gen-demo demo.xlsx              write the demo workbook
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from rich_argparse import ArgumentDefaultsRichHelpFormatter, RawTextRichHelpFormatter

from sheetsnap import __version__
from sheetsnap.config import get_settings
from sheetsnap.exceptions.snapshot_exceptions import SnapshotError
from sheetsnap.logging_config import configure_logging
from sheetsnap.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)


class SmartFormatter(ArgumentDefaultsRichHelpFormatter, RawTextRichHelpFormatter):
    """
    Keep manual newlines in help texts and show (default: ...) values.
    """

    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetsnap",
        description="Render Excel worksheets to PNG snapshots.",
        formatter_class=SmartFormatter,
    )
    parser.add_argument("-i", "--input", dest="input", help="Workbook to render (.xlsx or .xlsm)")
    parser.add_argument(
        "-o",
        "--output",
        default=".",
        help=(
            "Output .png file (single sheet only) or directory.\n"
            "Directories receive <workbook>_<sheet>.png"
        ),
    )

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument("--sheet", help="Sheet name")
    selection.add_argument("--index", type=int, help="Sheet index, 0-based")
    selection.add_argument("--all", action="store_true", help="Render every non-blank sheet")

    parser.add_argument("--scale", type=float, help="Supersampling factor, 1.0 to 8.0 (default: from settings)")
    parser.add_argument(
        "--force-raw",
        action="store_true",
        help="Show stored values without applying number formats",
    )
    parser.add_argument("--gen-demo", metavar="PATH", help="Write the demo workbook to PATH and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _report_error(error: SnapshotError) -> None:
    print(f"error: [{error.error_code}] {error.message}", file=sys.stderr)


def _render_all(service: SnapshotService, args: argparse.Namespace) -> int:
    report = service.render_workbook(args.input, args.output, skip_blank=True, scale=args.scale)

    for result in report.results:
        if result.skipped:
            print(f"skipped  {result.sheet_name} (blank)")
        elif result.success:
            print(f"rendered {result.sheet_name} -> {result.output_path} ({result.width}x{result.height})")
        else:
            message = (result.error or {}).get("message", "unknown error")
            print(f"failed   {result.sheet_name}: {message}", file=sys.stderr)

    print(
        f"{report.rendered_count} rendered, {report.skipped_count} skipped, "
        f"{report.failed_count} failed in {report.processing_time_ms} ms"
    )
    return 0 if report.success else 1


def _render_one(service: SnapshotService, args: argparse.Namespace) -> int:
    result = service.render_to_file(
        args.input,
        output=args.output,
        sheet_name=args.sheet,
        sheet_index=args.index,
        scale=args.scale,
    )
    print(f"rendered {result.sheet_name} -> {result.output_path} ({result.width}x{result.height})")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].

    Returns:
        Process exit code: 0 on success, 1 on any failure.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(logging.DEBUG if args.verbose else settings.log_level)

    if args.scale is not None and not 1.0 <= args.scale <= 8.0:
        print(f"error: --scale must be between 1.0 and 8.0, got {args.scale}", file=sys.stderr)
        return 1

    if args.force_raw:
        settings = settings.model_copy(update={"raw_values": True})
    service = SnapshotService(settings)

    try:
        if args.gen_demo:
            result = service.write_demo_workbook(args.gen_demo, overwrite=True)
            print(f"demo workbook written to {result['file_path']}")
            return 0

        if not args.input:
            parser.print_usage(sys.stderr)
            print("error: an input workbook is required (-i)", file=sys.stderr)
            return 1

        if args.all:
            return _render_all(service, args)
        return _render_one(service, args)

    except SnapshotError as e:
        logger.debug("Command failed", exc_info=True)
        _report_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
