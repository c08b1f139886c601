"""Central logging configuration for statline."""

from __future__ import annotations

import logging
from typing import Any, Optional

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _level_from_value(value: Any, fallback: int = logging.INFO) -> int:
    if value is None:
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.upper())
        if isinstance(level, int):
            return level
    return fallback


def statline_handlers(logger: logging.Logger) -> list[logging.Handler]:
    """Handlers installed by setup_logging."""
    return [handler for handler in logger.handlers if getattr(handler, "statline", False)]


def setup_logging(
    level: Any = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the root logger once.

    The console handler must be left out while the terminal UI owns the screen.
    """
    root_logger = logging.getLogger()
    if not statline_handlers(root_logger):
        formatter = logging.Formatter(_FORMAT)
        handlers: list[logging.Handler] = []

        if log_file:
            try:
                handlers.append(logging.FileHandler(log_file))
            except OSError:
                handlers.append(logging.NullHandler())

        if console:
            handlers.append(logging.StreamHandler())

        if not handlers:
            handlers.append(logging.NullHandler())

        for handler in handlers:
            handler.statline = True  # type: ignore[attr-defined]
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

    resolved = _level_from_value(level)
    root_logger.setLevel(resolved)
    for handler in statline_handlers(root_logger):
        handler.setLevel(resolved)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return root_logger
