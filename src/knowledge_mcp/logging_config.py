"""Logging setup shared by the HTTP API and the MCP server."""

import logging
import sys

LOG_LEVELS = {
    "silent": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"


def setup_logging(level: str = "info") -> None:
    """Configure root logging; unknown level names fall back to info.

    Output goes to stderr so the MCP stdio channel stays clean.
    """
    logging.basicConfig(
        level=LOG_LEVELS.get(str(level).lower(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True
    )
