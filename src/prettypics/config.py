"""Defaults and tunables for prettypics."""

from __future__ import annotations

import os

# Selection
DEFAULT_PERCENTAGE = 20.0
MIN_PERCENTAGE = 0.0  # exclusive
MAX_PERCENTAGE = 100.0

# Candidate window when no dates are given
DEFAULT_DAYS_BACK = 30

# Supported image formats (case-insensitive matching)
IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".heic", ".tif", ".tiff", ".webp"}
)
LIVE_PHOTO_EXTENSIONS = frozenset({".mov"})

# Quick filter thresholds
MIN_SHORT_SIDE = 200  # px
MIN_LONG_SIDE = 300  # px
SCREENSHOT_PREFIXES = ("screenshot", "screen shot")

# Assessors analyse a downscaled copy of each photo
ANALYSIS_IMAGE_SIZE = 500


def default_photo_workers() -> int:
    """Photos scored concurrently in one batch run."""
    cpu_count = os.cpu_count() or 4
    # Use N-1 CPUs to leave headroom, minimum 1
    return max(1, cpu_count - 1)


def default_assessor_workers() -> int:
    """Global cap on assessor calls in flight across all photos."""
    cpu_count = os.cpu_count() or 4
    return max(2, min(cpu_count * 2, 32))
