from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logger(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Send loguru output to stderr (and optionally a file) at `level`."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(log_file), format=LOG_FORMAT, level="DEBUG", encoding="utf-8")
