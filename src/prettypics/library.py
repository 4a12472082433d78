"""Photo library: find candidate photos for a date range.

Scans a directory tree for images, dates each photo by its EXIF capture time
(falling back to file mtime) and applies a quick filter that drops tiny
images, screenshots and live-photo stills before any expensive scoring.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from prettypics.config import (
    IMAGE_EXTENSIONS,
    LIVE_PHOTO_EXTENSIONS,
    MIN_LONG_SIDE,
    MIN_SHORT_SIDE,
    SCREENSHOT_PREFIXES,
)

logger = logging.getLogger(__name__)

# EXIF tag IDs
TAG_MAKE = 271
TAG_MODEL = 272
TAG_DATETIME = 306
TAG_EXIF_IFD = 0x8769
TAG_DATETIME_ORIGINAL = 36867

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass
class PhotoInfo:
    """What the quick filter needs to know about a photo."""

    path: Path
    taken_at: datetime
    width: int = 0
    height: int = 0
    camera_make: str | None = None
    camera_model: str | None = None

    @property
    def photo_id(self) -> str:
        return str(self.path)


def find_image_files(
    directory: Path,
    extensions: frozenset[str] | None = None,
) -> list[Path]:
    """All image files under ``directory`` (recursive, case-insensitive)."""
    if extensions is None:
        extensions = IMAGE_EXTENSIONS
    return sorted(
        path
        for path in directory.rglob("*")
        if path.is_file() and path.suffix.lower() in extensions
    )


def _parse_exif_datetime(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip("\x00 "), EXIF_DATETIME_FORMAT)
    except ValueError:
        return None


def read_photo_info(path: Path) -> PhotoInfo | None:
    """Dimensions, capture time and camera of one image, or None if unreadable."""
    try:
        with Image.open(path) as img:
            width, height = img.size
            exif = img.getexif()
    except (OSError, UnidentifiedImageError) as e:
        logger.debug("Skipping unreadable image %s: %s", path, e)
        return None

    taken_at = _parse_exif_datetime(exif.get_ifd(TAG_EXIF_IFD).get(TAG_DATETIME_ORIGINAL))
    if taken_at is None:
        taken_at = _parse_exif_datetime(exif.get(TAG_DATETIME))
    if taken_at is None:
        taken_at = datetime.fromtimestamp(path.stat().st_mtime)

    make = exif.get(TAG_MAKE)
    model = exif.get(TAG_MODEL)
    return PhotoInfo(
        path=path.resolve(),
        taken_at=taken_at,
        width=width,
        height=height,
        camera_make=make.strip("\x00 ") if isinstance(make, str) else None,
        camera_model=model.strip("\x00 ") if isinstance(model, str) else None,
    )


def is_screenshot(info: PhotoInfo) -> bool:
    """Screenshot by name, or a PNG with no camera metadata."""
    name = info.path.name.lower()
    if name.startswith(SCREENSHOT_PREFIXES):
        return True
    return info.path.suffix.lower() == ".png" and not (info.camera_make or info.camera_model)


def is_live_photo(path: Path) -> bool:
    """Still frame of a live photo: a video with the same stem sits beside it."""
    return any(
        path.with_suffix(ext).exists() or path.with_suffix(ext.upper()).exists()
        for ext in LIVE_PHOTO_EXTENSIONS
    )


def is_too_small(
    info: PhotoInfo, min_short: int = MIN_SHORT_SIDE, min_long: int = MIN_LONG_SIDE
) -> bool:
    short, long = sorted((info.width, info.height))
    return short < min_short or long < min_long


def passes_quick_filter(info: PhotoInfo) -> bool:
    """Cheap pre-filter applied before scoring."""
    if is_too_small(info):
        logger.debug("Filtered %s: %dx%d too small", info.path.name, info.width, info.height)
        return False
    if is_screenshot(info):
        logger.debug("Filtered %s: screenshot", info.path.name)
        return False
    if is_live_photo(info.path):
        logger.debug("Filtered %s: live photo", info.path.name)
        return False
    return True


class PhotoLibrary:
    """Candidate supplier over a directory of photos."""

    def __init__(self, root: Path, extensions: frozenset[str] | None = None) -> None:
        self.root = Path(root)
        self.extensions = extensions

    def scan(self) -> list[PhotoInfo]:
        """Every readable image under the root."""
        infos = []
        for path in find_image_files(self.root, self.extensions):
            info = read_photo_info(path)
            if info is not None:
                infos.append(info)
        return infos

    def photos_between(self, start: date | None, end: date | None) -> list[PhotoInfo]:
        """Quick-filtered photos taken within ``[start, end]`` (whole days).

        Ordered by capture time, then path.
        """
        selected = []
        for info in self.scan():
            day = info.taken_at.date()
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                continue
            if passes_quick_filter(info):
                selected.append(info)
        selected.sort(key=lambda i: (i.taken_at, str(i.path)))
        return selected

    def candidates(self, start: date | None = None, end: date | None = None) -> list[str]:
        """Photo ids (absolute paths) for the date range, in capture order."""
        return [info.photo_id for info in self.photos_between(start, end)]
