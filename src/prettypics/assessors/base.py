"""Assessor capability interface and the image-loading base class."""

from __future__ import annotations

from pathlib import Path
from typing import Hashable, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from prettypics.config import ANALYSIS_IMAGE_SIZE

# EXIF orientation tag -> transposes that undo it
_ORIENTATION_OPS: dict[int, tuple[Image.Transpose, ...]] = {
    2: (Image.Transpose.FLIP_LEFT_RIGHT,),
    3: (Image.Transpose.ROTATE_180,),
    4: (Image.Transpose.FLIP_TOP_BOTTOM,),
    5: (Image.Transpose.TRANSPOSE,),
    6: (Image.Transpose.ROTATE_270,),
    7: (Image.Transpose.TRANSVERSE,),
    8: (Image.Transpose.ROTATE_90,),
}


@runtime_checkable
class AssessorCapability(Protocol):
    """A named scoring function for one quality dimension of a photo.

    ``assess`` returns a score in [0, 1] or raises. Implementations must be
    safe to call concurrently, for different photos and for the same photo.
    """

    name: str
    weight: float

    def assess(self, photo_id: Hashable) -> float: ...


def auto_orient(img: Image.Image) -> Image.Image:
    """Rotate/flip according to the EXIF orientation tag.

    Position-based assessors (thirds, sky detection) need upright pixels.
    """
    try:
        orientation = img.getexif().get(274)
    except (AttributeError, KeyError, IndexError):
        return img
    for op in _ORIENTATION_OPS.get(orientation, ()):
        img = img.transpose(op)
    return img


def prepare_image(img: Image.Image, max_dim: int = ANALYSIS_IMAGE_SIZE) -> Image.Image:
    """Auto-orient, convert to RGB and shrink to at most ``max_dim`` pixels."""
    img = auto_orient(img)
    if img.mode != "RGB":
        img = img.convert("RGB")

    current_max = max(img.size)
    if current_max > max_dim:
        scale = max_dim / current_max
        new_size = (max(1, int(img.size[0] * scale)), max(1, int(img.size[1] * scale)))
        img = img.resize(new_size, Image.Resampling.LANCZOS)
    return img


def load_image(path: Path | str, max_dim: int = ANALYSIS_IMAGE_SIZE) -> Image.Image:
    """Open a photo from disk, ready for analysis."""
    with Image.open(path) as img:
        img.load()
        return prepare_image(img, max_dim)


def to_gray(img: Image.Image) -> NDArray[np.float64]:
    """Grayscale pixels as float64 in 0-255."""
    return np.asarray(img.convert("L"), dtype=np.float64)


class ImageAssessor:
    """Base for assessors that score a photo file by its pixels.

    The photo id is treated as a filesystem path. Subclasses set ``name`` and
    ``weight`` and implement :meth:`score_image`.
    """

    name: str = ""
    weight: float = 1.0

    def __init__(self, max_dim: int = ANALYSIS_IMAGE_SIZE) -> None:
        self.max_dim = max_dim

    def assess(self, photo_id: Hashable) -> float:
        img = load_image(Path(str(photo_id)), self.max_dim)
        return float(self.score_image(img))

    def score_image(self, img: Image.Image) -> float:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, weight={self.weight})"
