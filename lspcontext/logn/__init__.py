"""loguru sink setup for applications embedding lspcontext."""

from __future__ import annotations

import sys
from typing import Any, Optional

from loguru import logger

from lspcontext.config import LOG_LEVEL

LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logger(level: Optional[str] = None, sink: Any = None) -> int:
    """
    Replace loguru's default handler with one at the configured level.

    The library itself only emits through `logger`; callers decide where it goes.
    Returns the handler id so it can be removed again.
    """
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stderr,
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
