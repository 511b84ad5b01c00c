"""Logging for the ``money_tracker`` package.

Everything logs under the ``"money_tracker"`` logger tree. Modules obtain
their logger with ``get_logger("money_tracker.<module>")`` and never attach
handlers themselves; the CLI (or any host process) calls
:func:`configure_logging` once at startup.

Ingestion runs on its own worker thread (``mt-ingest``), so the default
format carries the thread name to tell its records apart from the caller's.
The level comes from the ``level`` argument, else ``MONEY_TRACKER_LOG_LEVEL``,
else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LOG_LEVEL_ENV = "MONEY_TRACKER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"

_PKG_LOGGER_NAME = "money_tracker"
_handler: logging.Handler | None = None


def _coerce_level(value: int | str | None) -> int | None:
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name)


def resolve_level(level: int | str | None = None) -> int:
    """Pick the effective level; unrecognized values fall through to the next source."""

    for candidate in (level, os.getenv(LOG_LEVEL_ENV)):
        resolved = _coerce_level(candidate)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Handler:
    """Attach one ``StreamHandler`` to the package logger.

    Repeated calls return the handler installed by the first one and change
    nothing. The package logger stops propagating to the root logger so host
    applications that configure root do not print records twice.
    """

    global _handler
    if _handler is not None:
        return _handler

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler
    return handler


def reset_logging() -> None:
    """Undo :func:`configure_logging` so it can run again (used by tests)."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``.

    Until logging is configured the package logger gets a ``NullHandler``, so
    library use without configuration stays silent.
    """

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "LOG_LEVEL_ENV",
    "configure_logging",
    "get_logger",
    "reset_logging",
    "resolve_level",
]
