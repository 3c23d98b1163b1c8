"""Logging configuration for local-tts."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from localtts.core.constants import LOGS_DIR


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = "localtts.log",
    log_dir: Optional[str] = None,
    max_bytes: int = 5_242_880,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure logging with console and file handlers.

    The console handler writes to stderr: stdout belongs to the MCP
    stdio transport. Pass ``log_file=None`` to skip the file handler.
    """
    root_logger = logging.getLogger("localtts")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    if log_file:
        logs_dir = Path(log_dir).expanduser() if log_dir else LOGS_DIR
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            logs_dir / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger
