"""
Logging helpers for the partfill enrichment tool.

Library modules only ask for loggers via :func:`get_logger`; handlers are
attached by applications (the CLI, a web layer) through :func:`setup_logging`.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "partfill"

_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_DETAILED_FORMAT = "%(levelname)-8s [%(name)s:%(lineno)d] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``partfill`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger whose records propagate to the ``partfill`` root logger
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(level: str = "INFO",
                  format_type: str = "console",
                  include_timestamp: bool = True,
                  log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure handlers on the ``partfill`` root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: ``"console"`` for short lines, ``"detailed"`` to include
            line numbers
        include_timestamp: Prefix each record with its timestamp
        log_dir: Optional directory for a ``partfill.log`` file handler

    Returns:
        The configured root logger
    """
    if format_type not in ("console", "detailed"):
        raise ValueError(f"format_type must be 'console' or 'detailed', got {format_type!r}")

    fmt = _CONSOLE_FORMAT if format_type == "console" else _DETAILED_FORMAT
    if include_timestamp:
        fmt = "%(asctime)s " + fmt
    formatter = logging.Formatter(fmt)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())

    # Drop handlers from a previous call so repeated setup doesn't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / "partfill.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s " + _DETAILED_FORMAT))
        logger.addHandler(file_handler)

    return logger
