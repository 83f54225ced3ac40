"""Diagnostic output configuration.

Maps logger modes to standard library logging handlers and levels:

- user: INFO and above to stdout
- developer: DEBUG and above to stdout
- showtime: WARNING and above to stdout
- silent: nothing
- custom: everything to a user-supplied log file (see set_log_file)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "groupmon"

LOGGER_MODES = {
    "user": logging.INFO,
    "developer": logging.DEBUG,
    "showtime": logging.WARNING,
    "silent": logging.CRITICAL + 1,
    "custom": logging.DEBUG,
}

LOG_FORMAT = "%(levelname)-8s %(name)s - %(message)s"


def configure_logging(mode: str = "user", log_file: Path | None = None) -> logging.Logger:
    """Configure the package logger for the given mode.

    Existing handlers on the package logger are removed so repeated calls do
    not duplicate output.

    Args:
        mode: One of LOGGER_MODES
        log_file: File receiving all output in custom mode

    Returns:
        The configured package logger

    Raises:
        ValueError: If mode is unknown
    """
    if mode not in LOGGER_MODES:
        raise ValueError(f"Unknown logger mode: {mode!r}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(LOGGER_MODES[mode])
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    if mode == "custom":
        if log_file is not None:
            _add_file_handler(logger, Path(log_file), formatter)
    elif mode != "silent":
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    else:
        logger.addHandler(logging.NullHandler())

    return logger


def set_log_file(logger: logging.Logger, log_file: Path) -> None:
    """Route all output of logger to log_file, replacing its handlers."""
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    _add_file_handler(logger, Path(log_file), logging.Formatter(LOG_FORMAT))


def _add_file_handler(logger: logging.Logger, log_file: Path, formatter: logging.Formatter) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
