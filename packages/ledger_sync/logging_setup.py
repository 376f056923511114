"""Logging configuration for ``ledger_sync``.

Library modules acquire loggers through :func:`get_logger` and never attach
handlers themselves. The CLI (or any host application) calls
:func:`configure_logging` once at startup; until then the package logger
carries only a ``NullHandler`` so embedding applications see nothing unless
they opt in.

Events are logged as ``component:event key=value ...`` so a run can be
grepped for one lifecycle transition or failure class.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "ledger_sync"
_LEVEL_ENV = "LEDGER_SYNC_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Turn ``level`` (or ``$LEDGER_SYNC_LOG_LEVEL`` when ``None``) into an int."""

    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    if isinstance(numeric, int):
        return numeric
    raise ValueError(f"unknown log level: {level!r}")


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach a single ``StreamHandler`` to the package logger.

    Calling again replaces the handler, so the CLI can apply ``--log-level``
    after an earlier default configuration without duplicating output.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _handler:
            logger.removeHandler(h)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
