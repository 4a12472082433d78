"""Nature scene assessor: foliage, water and open sky by hue."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from PIL import Image
from scipy.ndimage import uniform_filter  # type: ignore[import-untyped]

from prettypics.assessors.base import ImageAssessor, to_gray

# Hue ranges in degrees
FOLIAGE_HUES = (60.0, 170.0)
WATER_SKY_HUES = (170.0, 250.0)

MIN_SATURATION = 0.15
MIN_VALUE = 0.15

# Fraction of nature-colored pixels that earns full marks
NATURE_FULL = 0.5
SKY_SMOOTHNESS_STD = 6.0


def hue_saturation_value(img: Image.Image) -> tuple[NDArray, NDArray, NDArray]:
    """Per-pixel hue (degrees), saturation and value (0-1)."""
    hsv = np.asarray(img.convert("HSV"), dtype=np.float64)
    return hsv[:, :, 0] * 360.0 / 255.0, hsv[:, :, 1] / 255.0, hsv[:, :, 2] / 255.0


def compute_nature_fraction(img: Image.Image) -> float:
    """Share of colorful pixels that look like foliage, water or sky."""
    hue, sat, val = hue_saturation_value(img)
    colorful = (sat >= MIN_SATURATION) & (val >= MIN_VALUE)
    if not colorful.any():
        return 0.0

    foliage = (hue >= FOLIAGE_HUES[0]) & (hue < FOLIAGE_HUES[1])
    water_sky = (hue >= WATER_SKY_HUES[0]) & (hue < WATER_SKY_HUES[1])
    nature = colorful & (foliage | water_sky)
    return float(nature.sum() / hue.size)


def compute_open_sky(img: Image.Image) -> float:
    """Fraction of the top third that is bright, smooth and blue-ish or white."""
    hue, sat, val = hue_saturation_value(img)
    gray = to_gray(img)
    h = gray.shape[0]
    top = slice(0, max(1, h // 3))

    mean = uniform_filter(gray, size=5)
    sq_mean = uniform_filter(gray**2, size=5)
    local_std = np.sqrt(np.maximum(sq_mean - mean**2, 0))

    smooth = local_std[top] < SKY_SMOOTHNESS_STD
    bright = val[top] > 0.5
    sky_hue = ((hue[top] >= WATER_SKY_HUES[0]) & (hue[top] < WATER_SKY_HUES[1])) | (
        sat[top] < 0.12
    )
    return float((smooth & bright & sky_hue).mean())


def compute_nature_score(img: Image.Image) -> float:
    nature = min(compute_nature_fraction(img) / NATURE_FULL, 1.0)
    sky = compute_open_sky(img)
    return min(1.0, nature * 0.8 + sky * 0.2)


class NatureSceneAssessor(ImageAssessor):
    name = "Nature Scene"
    weight = 1.0

    def score_image(self, img: Image.Image) -> float:
        return compute_nature_score(img)
