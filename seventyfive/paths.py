from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path

APP_DIR_NAME = "SeventyFive"
DATA_DIR_ENV = "SEVENTYFIVE_DATA_DIR"


def data_directory() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        local_appdata = os.environ.get("LOCALAPPDATA")
        base = Path(local_appdata) if local_appdata else Path.home() / "AppData" / "Local"
        return base / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME.lower()


def photos_directory(base: Path | None = None) -> Path:
    return (base or data_directory()) / "photos"


def database_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "seventyfive.sqlite3"


def ensure_directories(base: Path | None = None) -> None:
    photos_directory(base).mkdir(parents=True, exist_ok=True)


def photo_filename(day_number: int, captured_at: datetime) -> str:
    return f"day-{day_number:02d}_" + captured_at.strftime("%Y%m%d_%H%M%S_%f") + ".jpg"
