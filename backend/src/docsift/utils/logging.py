"""Logging setup for the docsift CLI."""

from __future__ import annotations

import logging
import sys

from docsift.core.config import Settings

# Loggers that emit one line per record or chunk.
PER_RECORD_LOGGERS: tuple[str, ...] = (
    "docsift.search.memory",
    "docsift.ingestion.chunker",
    "docsift.query.boolean",
)

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_HANDLER_NAME = "docsift.stderr"


def _stderr_handler(logger: logging.Logger) -> logging.Handler:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    handler.set_name(_HANDLER_NAME)
    logger.addHandler(handler)
    return handler


def setup_logging(verbose: bool = False, settings: Settings | None = None) -> logging.Logger:
    """Configure and return the ``docsift`` logger.

    Parameters
    ----------
    verbose:
        Force DEBUG for every docsift logger.
    settings:
        Source of ``log_level``; a default :class:`Settings` is used when
        ``None``.

    Without *verbose* the loggers in :data:`PER_RECORD_LOGGERS` stay at
    WARNING or above unless ``log_level`` itself is DEBUG.  Calling this
    again re-applies the levels to the existing handler.
    """
    settings = settings or Settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)

    logger = logging.getLogger("docsift")
    logger.setLevel(level)
    _stderr_handler(logger).setLevel(level)

    per_record_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in PER_RECORD_LOGGERS:
        logging.getLogger(name).setLevel(per_record_level)

    return logger
