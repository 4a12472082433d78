"""Shared test helpers."""

from __future__ import annotations

import threading
from typing import Callable, Hashable

import pytest


class StubAssessor:
    """Assessor with call counting and scripted scores."""

    def __init__(
        self,
        name: str,
        score: float | Callable[[Hashable], float] = 0.5,
        weight: float = 1.0,
        fail: bool = False,
    ) -> None:
        self.name = name
        self.weight = weight
        self._score = score
        self.fail = fail
        self.calls: list[Hashable] = []
        self._lock = threading.Lock()

    def assess(self, photo_id: Hashable) -> float:
        with self._lock:
            self.calls.append(photo_id)
        if self.fail:
            raise RuntimeError(f"{self.name} is broken")
        if callable(self._score):
            return self._score(photo_id)
        return self._score

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


@pytest.fixture
def stub():
    """Factory for StubAssessor instances."""
    return StubAssessor
