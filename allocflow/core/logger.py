from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .profiles import _work_dir

LOGGER_NAME = "allocflow"
LOG_LEVEL_ENV = "ALLOCFLOW_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LOGGER: logging.Logger | None = None


def parse_level(value: str) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value."""

    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the shared ``allocflow`` logger.

    The first call attaches a rotating file handler (``<work>/logs/app.log``,
    2 MB x 3) and a stdout handler; later calls return the same instance.
    ``ALLOCFLOW_LOG_LEVEL`` sets the initial level.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    base = Path(log_dir) if log_dir is not None else _work_dir() / "logs"
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(parse_level(os.getenv(LOG_LEVEL_ENV, "INFO")))
    logger.propagate = False

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = RotatingFileHandler(base / "app.log", maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _LOGGER = logger
    return logger


def set_level(level: str) -> int:
    """Apply ``level`` to the shared logger and the root logger."""

    value = parse_level(level)
    logging.getLogger().setLevel(value)
    get_logger().setLevel(value)
    return value


__all__ = ["LOGGER_NAME", "get_logger", "parse_level", "set_level"]
