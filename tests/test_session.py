"""Tests for prettypics.session module."""

from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from prettypics.errors import InvalidPercentageError, InvalidWeightError, NotFoundError
from prettypics.library import PhotoLibrary
from prettypics.registry import AssessorRegistry
from prettypics.session import SelectionSession

PHOTOS = [f"p{i}" for i in range(10)]


def by_index(photo_id: str) -> float:
    return int(photo_id[1:]) / 10


@pytest.fixture
def assessors(stub):
    return stub("A", by_index, weight=2.0), stub("B", 0.5)


@pytest.fixture
def session(assessors):
    registry = AssessorRegistry()
    for a in assessors:
        registry.register(a)
    with SelectionSession(registry, concurrency_limit=4, assessor_workers=4) as s:
        yield s


class TestSettings:
    def test_default_percentage(self, session):
        assert session.percentage == 20.0

    def test_set_percentage(self, session):
        session.percentage = 50
        assert session.percentage == 50.0

    @pytest.mark.parametrize("bad", [0, -1, 101, float("nan")])
    def test_invalid_percentage_rejected(self, session, bad):
        with pytest.raises(InvalidPercentageError):
            session.percentage = bad
        assert session.percentage == 20.0

    def test_invalid_percentage_at_construction(self):
        with pytest.raises(InvalidPercentageError):
            SelectionSession(AssessorRegistry(), percentage=0)

    def test_unknown_assessor(self, session):
        with pytest.raises(NotFoundError):
            session.set_enabled("nope", False)

    def test_invalid_weight(self, session):
        with pytest.raises(InvalidWeightError):
            session.set_weight("A", -1.0)


class TestCandidates:
    def test_set_candidates_reports_change(self, session):
        assert session.set_candidates(PHOTOS)
        assert not session.set_candidates(list(PHOTOS))
        assert session.candidates == tuple(PHOTOS)

    def test_same_candidates_keep_cache(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        assert assessors[0].call_count == 10

    def test_new_candidates_clear_cache(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.set_candidates(PHOTOS[:5])
        assert len(session.cache) == 0
        assert session.last_result is None
        session.find_top_photos()
        assert assessors[0].call_count == 15

    def test_load_without_library(self, session):
        with pytest.raises(RuntimeError):
            session.load_candidates()

    def test_load_from_library(self, tmp_path: Path, assessors):
        for i in range(3):
            exif = Image.Exif()
            exif[271] = "Canon"
            exif[306] = datetime(2024, 5, i + 1).strftime("%Y:%m:%d %H:%M:%S")
            Image.new("RGB", (400, 300)).save(tmp_path / f"IMG_{i}.jpg", exif=exif)

        registry = AssessorRegistry()
        registry.register(assessors[1])
        with SelectionSession(registry, library=PhotoLibrary(tmp_path)) as session:
            assert session.load_candidates() == 3
            assert Path(session.candidates[0]).name == "IMG_0.jpg"


class TestFindTopPhotos:
    def test_selects_top_twenty_percent(self, session):
        session.set_candidates(PHOTOS)
        result = session.find_top_photos()
        # A: i/10 (w 2), B: 0.5 (w 1) -> p9 and p8 lead
        assert [s.photo_id for s in result.selected] == ["p9", "p8"]
        assert session.last_result is result

    def test_percentage_change_reuses_scores(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.percentage = 50
        result = session.find_top_photos()
        assert len(result.selected) == 5
        assert assessors[0].call_count == 10
        assert assessors[1].call_count == 10

    def test_disable_changes_ranking_without_calls(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.set_enabled("A", False)
        result = session.find_top_photos()
        # Only B remains, every photo ties at 0.5: candidate order wins
        assert [s.photo_id for s in result.selected] == ["p0", "p1"]
        assert assessors[1].call_count == 10

    def test_unregister_drops_cached_scores(self, session):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.unregister("A")
        assert all("A" not in session.cache.get(p) for p in PHOTOS)
        result = session.find_top_photos()
        assert all(set(s.scores) == {"B"} for s in result.ranking)

    def test_invalidate_photo(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.invalidate("p3")
        session.find_top_photos()
        assert assessors[0].call_count == 11

    def test_invalidate_all(self, session, assessors):
        session.set_candidates(PHOTOS)
        session.find_top_photos()
        session.invalidate()
        session.find_top_photos()
        assert assessors[0].call_count == 20

    def test_empty_candidates(self, session):
        result = session.find_top_photos()
        assert result.selected == ()
        assert not result.cancelled

    def test_cancel_from_assessor(self, stub):
        """A cancel request stops the run and keeps finished work."""
        holder = {}

        def cancel_on_first(photo_id):
            holder["session"].cancel()
            return 0.5

        registry = AssessorRegistry()
        gate = stub("A", cancel_on_first)
        registry.register(gate)
        with SelectionSession(registry, concurrency_limit=1, assessor_workers=1) as session:
            holder["session"] = session
            session.set_candidates(PHOTOS)
            result = session.find_top_photos()

        assert result.cancelled
        assert gate.calls == ["p0"]
        assert [s.photo_id for s in result.ranking] == ["p0"]

    def test_cancel_does_not_leak_into_next_run(self, session):
        session.set_candidates(PHOTOS)
        session.cancel()
        result = session.find_top_photos()
        assert not result.cancelled
        assert len(result.ranking) == 10
