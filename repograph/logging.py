"""Logging utilities for repograph commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "repograph"
_CONSOLE_FORMAT = "[repograph] %(levelname)s %(step_prefix)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(step_prefix)s%(message)s"


class _StepFilter(logging.Filter):
    """Expose the analysis step of warning records as ``step_prefix``."""

    def filter(self, record: logging.LogRecord) -> bool:
        step = getattr(record, "step", None)
        record.step_prefix = f"{step}: " if step else ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repograph hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure console output and an optional file sink.

    Analysis warnings are printed with the step that raised them. ``quiet``
    limits the console to errors while the log file still receives every
    warning, which keeps stderr clean when the report goes to stdout.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    reset_logging()

    console = logging.StreamHandler()
    console.setLevel(logging.ERROR if quiet else level)
    console.addFilter(_StepFilter())
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(_StepFilter())
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def reset_logging() -> None:
    """Detach and close the handlers installed by :func:`configure_logging`."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["configure_logging", "get_logger", "reset_logging"]
