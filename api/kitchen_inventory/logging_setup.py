# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers, os
from pathlib import Path
from typing import Optional

LOG_FILENAME = "kitchen_inventory.log"


def setup_logging(settings) -> Optional[Path]:
    """Configure rotating file logging under DATA_ROOT/logs/kitchen_inventory.log"""
    level = logging.getLevelName((settings.LOG_LEVEL or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    if not settings.LOG_TO_FILE:
        return None

    log_dir = Path(settings.DATA_ROOT).expanduser() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    # avoid duplicate handlers
    if not any(_is_ours(h, log_path) for h in logger.handlers):
        logger.addHandler(handler)

    # also wire uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not any(_is_ours(h, log_path) for h in lg.handlers):
            lg.addHandler(handler)

    return log_path


def _is_ours(handler: logging.Handler, log_path: Path) -> bool:
    return (
        isinstance(handler, logging.handlers.RotatingFileHandler)
        and getattr(handler, "baseFilename", "") == os.path.abspath(log_path)
    )
