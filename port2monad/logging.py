"""Logging setup shared by the CLI, the HTTP service and pipeline stages."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "port2monad"
_CONSOLE_FORMAT = "[port2monad] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``port2monad.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def resolve_level(level: str | int | None, *, verbose: bool = False) -> int:
    """Map a configured level name to a logging level; ``verbose`` forces DEBUG."""
    if verbose:
        return logging.DEBUG
    if isinstance(level, int):
        return level
    if level:
        named = logging.getLevelName(level.strip().upper())
        if isinstance(named, int):
            return named
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    level: str | int | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Install console (and optional file) handlers on the port2monad logger.

    Calling this again replaces the previous handlers, so repeated CLI
    invocations and service restarts in one process do not duplicate lines.
    """
    resolved = resolve_level(level, verbose=verbose)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(resolved)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), resolved, _CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), resolved, _FILE_FORMAT)
        )
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "resolve_level"]
