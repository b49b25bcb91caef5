from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import InvalidDayNumber, PhotoSaveFailure
from .models import CHALLENGE_DAYS
from .paths import photo_filename

logger = logging.getLogger(__name__)

ImageSource = Union[Image.Image, Path, str]


class PhotoStore:
    """Keeps progress pictures as JPEG files in a single album directory.

    The challenge core only ever sees the returned reference (the file name
    inside the album), never image bytes.
    """

    def __init__(self, album_dir: Path, max_side: int = 2048):
        self._album_dir = Path(album_dir)
        self._max_side = max(1, int(max_side))

    @property
    def album_dir(self) -> Path:
        return self._album_dir

    def save(self, day_number: int, source: ImageSource, captured_at: datetime | None = None) -> str:
        if not 1 <= day_number <= CHALLENGE_DAYS:
            raise InvalidDayNumber(day_number)
        captured_at = captured_at or datetime.now().astimezone()
        reference = photo_filename(day_number, captured_at)
        target_path = self._album_dir / reference

        try:
            self._album_dir.mkdir(parents=True, exist_ok=True)
            image = _open_image(source)
            if image.mode != "RGB":
                image = image.convert("RGB")
            image.thumbnail((self._max_side, self._max_side))
            image.save(target_path, format="JPEG", quality=85, optimize=True)
        except (OSError, UnidentifiedImageError, ValueError) as exc:
            raise PhotoSaveFailure(f"Could not save photo for day {day_number}: {exc}") from exc

        logger.info("Saved progress photo for day %d as %s", day_number, reference)
        return reference

    def path_for(self, reference: str) -> Path:
        candidate = (self._album_dir / reference).resolve()
        if candidate.parent != self._album_dir.resolve():
            raise ValueError(f"Photo reference escapes album: {reference!r}")
        return candidate

    def exists(self, reference: str) -> bool:
        return self.path_for(reference).is_file()

    def load(self, reference: str) -> Image.Image | None:
        path = self.path_for(reference)
        if not path.is_file():
            return None
        with Image.open(path) as image:
            image.load()
            return image.copy()

    def discard(self, reference: str) -> None:
        path = self.path_for(reference)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        logger.info("Discarded progress photo %s", reference)

    def list_references(self) -> list[str]:
        if not self._album_dir.exists():
            return []
        return sorted(path.name for path in self._album_dir.glob("day-*.jpg"))


def _open_image(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source.copy()
    with Image.open(source) as image:
        image.load()
        return image.copy()
