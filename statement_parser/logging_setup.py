"""Logging for the ``statement_parser`` package.

Library modules only ever call :func:`get_logger`; while nothing is
configured the ``statement_parser`` logger carries a ``NullHandler`` and a
parse stays silent. Entrypoints (the CLI, or a host application) call
:func:`configure_logging` once to send records to a stream.

Records are short ``event:sub key=value`` lines, e.g.
``parse_statement:done lines=7 merchants=2 amounts=4 transactions=2``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_parser"
LEVEL_ENV = "STATEMENT_PARSER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``$STATEMENT_PARSER_LOG_LEVEL``) into a level number.

    Accepts ints, names (``"debug"``) and digit strings. Unknown names raise
    ``ValueError`` so a typo on the command line is reported, not ignored.
    """

    if level is None or (isinstance(level, str) and not level.strip()):
        level = os.getenv(LEVEL_ENV, "").strip() or logging.INFO
    if isinstance(level, int):
        return level

    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    if numeric is None:
        raise ValueError(f"unknown log level: {level!r}")
    return numeric


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Handler:
    """Attach one stream handler to the package logger and return it.

    Repeated calls keep the first handler and only adjust the level, so an
    entrypoint that configures logging twice never duplicates output.
    """

    global _handler
    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)

    if _handler is not None:
        _handler.setLevel(resolved)
        return _handler

    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    # Records stop here; the host's root handlers would print them twice.
    logger.propagate = False

    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``; keeps the package silent until configured."""

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
