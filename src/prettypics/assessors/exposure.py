"""Basic exposure assessor: mean brightness close to mid-grey."""

from __future__ import annotations

import numpy as np
from PIL import Image

from prettypics.assessors.base import ImageAssessor


def compute_brightness(img: Image.Image) -> float:
    """Average RGB brightness normalized to 0-1."""
    pixels = np.asarray(img.convert("RGB"), dtype=np.float64)
    return float(pixels.mean() / 255.0)


def brightness_score(brightness: float) -> float:
    """1.0 at 0.5 brightness, falling linearly to 0.0 at pure black/white."""
    return 1.0 - min(abs(brightness - 0.5), 0.5) * 2


class BrightnessAssessor(ImageAssessor):
    name = "Basic Analysis"
    weight = 1.0

    def score_image(self, img: Image.Image) -> float:
        return brightness_score(compute_brightness(img))
