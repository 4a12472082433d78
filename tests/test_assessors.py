"""Tests for prettypics.assessors package."""

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image, ImageDraw

from prettypics.assessors import (
    AssessorCapability,
    BrightnessAssessor,
    ColorHarmonyAssessor,
    FaceDetectionAssessor,
    NatureSceneAssessor,
    ThirdsAssessor,
    default_assessors,
    load_image,
    prepare_image,
)
from prettypics.assessors.color import compute_color_harmony
from prettypics.assessors.composition import (
    compute_thirds_score,
    find_interest_points,
    point_to_line_distance,
)
from prettypics.assessors.exposure import brightness_score, compute_brightness
from prettypics.assessors.faces import detect_faces, face_count_score
from prettypics.assessors.nature import compute_nature_fraction, compute_nature_score


def make_test_image(size=(300, 300), color=(128, 128, 128)) -> Image.Image:
    return Image.new("RGB", size, color)


def square_at(center: tuple[int, int], size=(300, 300), side=40) -> Image.Image:
    """Black image with one white square."""
    img = make_test_image(size, (0, 0, 0))
    cx, cy = center
    half = side // 2
    ImageDraw.Draw(img).rectangle([cx - half, cy - half, cx + half, cy + half], fill=(255, 255, 255))
    return img


class TestImagePreparation:
    def test_resize_to_max_dim(self):
        img = prepare_image(make_test_image((1000, 500)), max_dim=500)
        assert img.size == (500, 250)

    def test_small_unchanged(self):
        img = prepare_image(make_test_image((200, 100)), max_dim=500)
        assert img.size == (200, 100)

    def test_converts_to_rgb(self):
        img = prepare_image(Image.new("L", (50, 50)))
        assert img.mode == "RGB"

    def test_load_applies_orientation(self, tmp_path: Path):
        exif = Image.Exif()
        exif[274] = 6
        path = tmp_path / "rotated.jpg"
        make_test_image((400, 200)).save(path, exif=exif)
        img = load_image(path)
        assert img.size == (200, 400)


class TestBrightness:
    @pytest.mark.parametrize(
        "brightness,expected",
        [(0.5, 1.0), (0.0, 0.0), (1.0, 0.0), (0.75, 0.5), (0.25, 0.5)],
    )
    def test_brightness_score(self, brightness, expected):
        assert brightness_score(brightness) == pytest.approx(expected)

    def test_compute_brightness(self):
        assert compute_brightness(make_test_image(color=(255, 255, 255))) == 1.0
        assert compute_brightness(make_test_image(color=(0, 0, 0))) == 0.0

    def test_assess_from_file(self, tmp_path: Path):
        path = tmp_path / "black.png"
        make_test_image(color=(0, 0, 0)).save(path)
        assert BrightnessAssessor().assess(str(path)) == 0.0

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            BrightnessAssessor().assess(str(tmp_path / "missing.jpg"))


class TestFaces:
    @pytest.mark.parametrize(
        "count,expected", [(0, 0.2), (1, 1.0), (2, 0.9), (3, 0.7), (4, 0.5), (12, 0.5)]
    )
    def test_face_count_score(self, count, expected):
        assert face_count_score(count) == expected

    def test_blank_image_has_no_faces(self):
        assert detect_faces(make_test_image()) == 0

    def test_assessor_uses_face_count(self):
        with patch("prettypics.assessors.faces.detect_faces", return_value=2):
            assert FaceDetectionAssessor().score_image(make_test_image()) == 0.9


class TestColorHarmony:
    def test_uniform_image(self):
        # One color: variety 1/32, perfectly even distribution
        assert compute_color_harmony(make_test_image((100, 100))) == pytest.approx(0.515625)

    def test_varied_image_scores_higher(self):
        img = make_test_image((160, 160))
        draw = ImageDraw.Draw(img)
        colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
        for i, color in enumerate(colors):
            draw.rectangle([i * 40, 0, i * 40 + 39, 159], fill=color)
        score = compute_color_harmony(img)
        assert 0.515625 < score <= 1.0

    def test_tiny_image(self):
        assert 0.0 <= compute_color_harmony(make_test_image((4, 4))) <= 1.0


class TestThirds:
    def test_point_to_line_distance(self):
        assert point_to_line_distance(0.5, 0.5, 1 / 3, 0, 1 / 3, 1) == pytest.approx(1 / 6)

    def test_no_points(self):
        assert compute_thirds_score([]) == 0.0

    def test_point_on_line(self):
        assert compute_thirds_score([(1 / 3, 0.5)]) == pytest.approx(1.0)

    def test_centered_point(self):
        assert compute_thirds_score([(0.5, 0.5)]) == pytest.approx(1 / 6)

    def test_uniform_image_has_no_interest(self):
        assert find_interest_points(make_test_image()) == []
        assert ThirdsAssessor().score_image(make_test_image()) == 0.0

    def test_subject_on_intersection(self):
        on_thirds = ThirdsAssessor().score_image(square_at((100, 100)))
        centered = ThirdsAssessor().score_image(square_at((150, 150)))
        assert on_thirds > 0.8
        assert centered < on_thirds


class TestNature:
    def test_green_scene(self):
        img = make_test_image(color=(60, 160, 60))
        assert compute_nature_fraction(img) == pytest.approx(1.0)
        assert compute_nature_score(img) == pytest.approx(0.8)

    def test_gray_scene(self):
        img = make_test_image(color=(100, 100, 100))
        assert compute_nature_fraction(img) == 0.0
        assert compute_nature_score(img) == 0.0

    def test_green_beats_gray(self):
        assessor = NatureSceneAssessor()
        green = assessor.score_image(make_test_image(color=(60, 160, 60)))
        gray = assessor.score_image(make_test_image(color=(100, 100, 100)))
        assert green > gray


def test_default_assessors():
    assessors = default_assessors()
    assert [a.name for a in assessors] == [
        "Basic Analysis",
        "Face Detection",
        "Nature Scene",
        "Color Harmony",
        "Rule of Thirds",
    ]
    assert all(isinstance(a, AssessorCapability) for a in assessors)


def test_scores_in_range(tmp_path: Path):
    """Every built-in assessor returns a value in [0, 1] for a real file."""
    path = tmp_path / "scene.jpg"
    img = square_at((100, 100))
    ImageDraw.Draw(img).rectangle([0, 200, 299, 299], fill=(40, 140, 50))
    img.save(path)
    for assessor in (
        BrightnessAssessor(),
        FaceDetectionAssessor(),
        NatureSceneAssessor(),
        ColorHarmonyAssessor(),
        ThirdsAssessor(),
    ):
        assert 0.0 <= assessor.assess(str(path)) <= 1.0
