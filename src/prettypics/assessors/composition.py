"""Rule-of-thirds assessor.

Finds salient regions from smoothed edge energy and scores how close their
centers sit to the thirds lines.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from PIL import Image
from scipy.ndimage import center_of_mass, gaussian_filter, label  # type: ignore[import-untyped]

from prettypics.assessors.base import ImageAssessor, to_gray

# (x1, y1, x2, y2) in normalized coordinates
THIRDS_LINES = (
    (1 / 3, 0.0, 1 / 3, 1.0),
    (2 / 3, 0.0, 2 / 3, 1.0),
    (0.0, 1 / 3, 1.0, 1 / 3),
    (0.0, 2 / 3, 1.0, 2 / 3),
)

MAX_REGIONS = 5
SALIENCY_PERCENTILE = 90
MIN_REGION_FRACTION = 0.002  # of image area
DISTANCE_SCALE = 5.0


def point_to_line_distance(
    x: float, y: float, x1: float, y1: float, x2: float, y2: float
) -> float:
    """Perpendicular distance from (x, y) to the line through two points."""
    numerator = abs((y2 - y1) * x - (x2 - x1) * y + x2 * y1 - y2 * x1)
    denominator = math.hypot(y2 - y1, x2 - x1)
    return numerator / denominator


def saliency_map(gray: NDArray[np.float64]) -> NDArray[np.float64]:
    """Blurred gradient magnitude, normalized to 0-1."""
    gx = np.abs(np.diff(gray, axis=1, prepend=gray[:, :1]))
    gy = np.abs(np.diff(gray, axis=0, prepend=gray[:1, :]))
    edges = np.sqrt(gx**2 + gy**2)
    sigma = max(1.0, min(gray.shape) / 50)
    smooth = gaussian_filter(edges, sigma=sigma)
    return smooth / (smooth.max() + 1e-6)


def find_interest_points(img: Image.Image) -> list[tuple[float, float]]:
    """Normalized centers of the largest salient regions."""
    gray = to_gray(img)
    h, w = gray.shape
    sal = saliency_map(gray)
    if sal.max() <= 0:
        return []

    threshold = np.percentile(sal, SALIENCY_PERCENTILE)
    mask = sal > max(threshold, 0.1)
    labels, count = label(mask)
    if count == 0:
        return []

    sizes = np.bincount(labels.ravel())[1:]
    min_size = max(1, int(h * w * MIN_REGION_FRACTION))
    ranked = [i + 1 for i in np.argsort(sizes)[::-1] if sizes[i] >= min_size]
    ranked = ranked[:MAX_REGIONS]
    if not ranked:
        return []

    centers = center_of_mass(mask, labels, ranked)
    return [(float(cx) / w, float(cy) / h) for cy, cx in centers]


def compute_thirds_score(points: list[tuple[float, float]]) -> float:
    """Mean closeness of points to their nearest thirds line (0 with no points)."""
    if not points:
        return 0.0

    total = 0.0
    for x, y in points:
        min_distance = min(point_to_line_distance(x, y, *line) for line in THIRDS_LINES)
        total += 1.0 - min(min_distance * DISTANCE_SCALE, 1.0)
    return min(total / len(points), 1.0)


class ThirdsAssessor(ImageAssessor):
    name = "Rule of Thirds"
    weight = 1.0

    def score_image(self, img: Image.Image) -> float:
        return compute_thirds_score(find_interest_points(img))
