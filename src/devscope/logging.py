"""Logger setup shared by the devscope CLI and library modules."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "devscope"


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the ``devscope`` logger, e.g. ``devscope.github``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a stderr handler (warnings, or debug when verbose) and an optional log file.

    The file, when given, always receives debug output.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    # One set of handlers per process, however often the group callback runs.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[devscope] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
