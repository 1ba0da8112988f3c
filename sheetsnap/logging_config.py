"""
Logging setup shared by the CLI, REST and MCP entry points.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed here, once, by whichever entry point starts the process.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "sheetsnap"


def configure_logging(level: int | str = logging.INFO, stream=None) -> logging.Logger:
    """
    Install a single stream handler on the package logger.

    Calling this again only updates the level, so entry points may call it
    unconditionally.

    Args:
        level: Logging level as a number or a name such as "DEBUG".
        stream: Stream for log records. Defaults to stderr, which keeps
            stdout free for the MCP stdio transport.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not any(getattr(h, "_sheetsnap", False) for h in logger.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._sheetsnap = True
        logger.addHandler(handler)

    return logger
