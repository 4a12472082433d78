"""Face detection assessor (OpenCV Haar cascade).

Portraits with one or two clear faces rank highest; photos without faces
still get a low, non-zero score so landscapes are not wiped out.
"""

from __future__ import annotations

import threading

import cv2
import numpy as np
from PIL import Image

from prettypics.assessors.base import ImageAssessor

CASCADE_FILE = "haarcascade_frontalface_default.xml"

# Faces smaller than this fraction of the short side are ignored
MIN_FACE_FRACTION = 0.05

# CascadeClassifier instances are not safe to share between threads
_local = threading.local()


def _get_classifier() -> cv2.CascadeClassifier:
    """Lazily load one cascade per thread."""
    classifier = getattr(_local, "classifier", None)
    if classifier is None:
        classifier = cv2.CascadeClassifier(cv2.data.haarcascades + CASCADE_FILE)
        if classifier.empty():
            raise RuntimeError(f"Could not load face cascade {CASCADE_FILE}")
        _local.classifier = classifier
    return classifier


def detect_faces(img: Image.Image) -> int:
    """Count frontal faces in an RGB image."""
    gray = np.asarray(img.convert("L"), dtype=np.uint8)
    min_side = max(1, int(min(gray.shape) * MIN_FACE_FRACTION))
    faces = _get_classifier().detectMultiScale(
        gray,
        scaleFactor=1.1,
        minNeighbors=5,
        minSize=(min_side, min_side),
    )
    return len(faces)


def face_count_score(face_count: int) -> float:
    """Score by number of faces: one is ideal, crowds and none score lower."""
    if face_count == 1:
        return 1.0
    if face_count == 2:
        return 0.9
    if face_count == 3:
        return 0.7
    if face_count >= 4:
        return 0.5
    return 0.2


class FaceDetectionAssessor(ImageAssessor):
    name = "Face Detection"
    weight = 1.5

    def score_image(self, img: Image.Image) -> float:
        return face_count_score(detect_faces(img))
