"""Logging setup shared by the prettyconf CLI and library modules."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT = "prettyconf"
_CONSOLE_FORMAT = "[prettyconf] %(levelname)s %(message)s"
_VERBOSE_FORMAT = "[prettyconf] %(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``prettyconf`` logger or a child such as ``prettyconf.loader``."""
    if not name:
        return logging.getLogger(_ROOT)
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route prettyconf records to stderr and, when given, to ``log_file``.

    Rendered documents go to stdout, so console diagnostics always use
    stderr. Verbose runs log at DEBUG and name the emitting component. The
    log file receives DEBUG records regardless of ``verbose``.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = get_logger()
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
