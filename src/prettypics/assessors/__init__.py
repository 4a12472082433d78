"""Photo assessors.

Each assessor scores one quality dimension of a photo in [0, 1]:

    Basic Analysis  - exposure (mean brightness near mid-grey)
    Face Detection  - number of clear frontal faces
    Nature Scene    - foliage, water and open sky
    Color Harmony   - variety and evenness of block colors
    Rule of Thirds  - salient regions near the thirds lines
"""

from __future__ import annotations

from prettypics.assessors.base import (
    AssessorCapability,
    ImageAssessor,
    auto_orient,
    load_image,
    prepare_image,
)
from prettypics.assessors.color import ColorHarmonyAssessor
from prettypics.assessors.composition import ThirdsAssessor
from prettypics.assessors.exposure import BrightnessAssessor
from prettypics.assessors.faces import FaceDetectionAssessor
from prettypics.assessors.nature import NatureSceneAssessor

__all__ = [
    "AssessorCapability",
    "ImageAssessor",
    "auto_orient",
    "load_image",
    "prepare_image",
    "BrightnessAssessor",
    "FaceDetectionAssessor",
    "NatureSceneAssessor",
    "ColorHarmonyAssessor",
    "ThirdsAssessor",
    "default_assessors",
]


def default_assessors() -> list[AssessorCapability]:
    """Fresh instances of the built-in assessors, in registration order."""
    return [
        BrightnessAssessor(),
        FaceDetectionAssessor(),
        NatureSceneAssessor(),
        ColorHarmonyAssessor(),
        ThirdsAssessor(),
    ]
