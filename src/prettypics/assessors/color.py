"""Color harmony assessor: variety and spread of block colors."""

from __future__ import annotations

import numpy as np
from PIL import Image

from prettypics.assessors.base import ImageAssessor

GRID_SIZE = 8
QUANT_STEP = 32  # 256 / 32 = 8 levels per channel


def block_colors(img: Image.Image, grid_size: int = GRID_SIZE) -> list[tuple[int, int, int]]:
    """Quantized average color of each cell in a ``grid_size`` x ``grid_size`` grid."""
    pixels = np.asarray(img.convert("RGB"), dtype=np.float64)
    h, w = pixels.shape[:2]
    bh, bw = h // grid_size, w // grid_size
    if bh == 0 or bw == 0:
        # Image smaller than the grid: one cell per pixel row/col available
        bh, bw = max(1, bh), max(1, bw)

    colors = []
    for gy in range(grid_size):
        for gx in range(grid_size):
            block = pixels[gy * bh : (gy + 1) * bh, gx * bw : (gx + 1) * bw]
            if block.size == 0:
                continue
            mean = block.reshape(-1, 3).mean(axis=0).astype(int) // QUANT_STEP
            colors.append((int(mean[0]), int(mean[1]), int(mean[2])))
    return colors


def compute_color_harmony(img: Image.Image, grid_size: int = GRID_SIZE) -> float:
    """Average of a variety score and an evenness score over block colors.

    Variety saturates once half the cells have distinct colors; evenness
    drops as a few colors dominate the grid.
    """
    colors = block_colors(img, grid_size)
    if not colors:
        return 0.0

    cells = grid_size * grid_size
    _, counts = np.unique(np.array(colors), axis=0, return_counts=True)
    unique = len(counts)

    variety = min(unique / (cells / 2), 1.0)

    avg = cells / unique
    spread = float(np.abs(counts - avg).sum())
    distribution = 1.0 - min(spread / cells, 1.0)

    return (variety + distribution) / 2.0


class ColorHarmonyAssessor(ImageAssessor):
    name = "Color Harmony"
    weight = 1.0

    def score_image(self, img: Image.Image) -> float:
        return compute_color_harmony(img)
