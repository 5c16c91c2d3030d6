"""Loguru sink setup shared by the API and the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def configure_logging(level: str = "INFO", log_file: str | None = None, console_format: str | None = None) -> None:
    """Replace loguru's default handler with stderr plus an optional rotating file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=console_format or "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, rotation="10 MB", retention=5, enqueue=True)
