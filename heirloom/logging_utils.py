"""Console logging setup for Heirloom."""

from __future__ import annotations

import logging
import os
from typing import Final, Optional, Union

__all__ = ["configure_logging", "CONSOLE_FORMAT", "LEVEL_ENV_VAR"]

CONSOLE_FORMAT: Final[str] = "[%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL: Final[str] = "INFO"
LEVEL_ENV_VAR: Final[str] = "HEIRLOOM_LOG_LEVEL"

_HANDLER_NAME: Final[str] = "heirloom-console"


def _resolve_level(level: Union[str, int, None]) -> int:
    """Pick the level from the argument, then the environment, then INFO."""
    if isinstance(level, int):
        return level
    candidate = level or os.environ.get(LEVEL_ENV_VAR) or DEFAULT_LEVEL
    resolved = logging.getLevelName(candidate.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """
    Attach a single console handler to the ``heirloom`` logger.

    Calling it again only updates the level.

    Parameters
    ----------
    level : str or int, optional
        Logging level ("DEBUG", "INFO", ...). Falls back to the
        ``HEIRLOOM_LOG_LEVEL`` environment variable, then INFO.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    logger = logging.getLogger("heirloom")
    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    handler: Optional[logging.Handler] = next(
        (h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(handler)
    handler.setLevel(resolved)
    return logger
