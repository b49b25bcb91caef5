from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: str | int = logging.WARNING,
    log_file: Path | None = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    logger = logging.getLogger()
    logger.setLevel(level if isinstance(level, int) else level.upper())
    formatter = logging.Formatter(LOG_FORMAT)
    for existing in [h for h in logger.handlers if getattr(h, "_seventyfive", False)]:
        logger.removeHandler(existing)
        existing.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._seventyfive = True
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setFormatter(formatter)
        handler._seventyfive = True
        logger.addHandler(handler)
    return logger
