"""Loguru sink setup. Events are emitted with bound fields and an empty message."""
from __future__ import annotations

import sys

from loguru import logger


def configure_logging(level: str = "INFO", *, serialize: bool = False) -> None:
    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
        return
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra} {message}",
    )
