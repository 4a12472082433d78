"""In-memory cache of per-photo, per-assessor scores.

Lives for one candidate-set selection; nothing is written to disk. Raw scores
are cached, never aggregates, so weight changes only need a re-aggregate.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Hashable, Iterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    """Counters since the last clear."""

    photos: int
    entries: int
    hits: int
    misses: int


class ScoreCache:
    """Thread-safe mapping ``photo_id -> {assessor name -> score}``.

    A single lock guards the whole mapping. Readers always get copies.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[Hashable, dict[str, float]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, photo_id: Hashable) -> dict[str, float] | None:
        """Copy of the (possibly partial) record, or None."""
        with self._lock:
            record = self._records.get(photo_id)
            return dict(record) if record is not None else None

    def get_missing(self, photo_id: Hashable, required_names: Iterable[str]) -> set[str]:
        """Names from ``required_names`` with no cached score for this photo."""
        required = set(required_names)
        with self._lock:
            record = self._records.get(photo_id, {})
            missing = {name for name in required if name not in record}
            self._hits += len(required) - len(missing)
            self._misses += len(missing)
        return missing

    def put(self, photo_id: Hashable, name: str, score: float) -> None:
        """Insert or overwrite one score. Last writer wins."""
        with self._lock:
            self._records.setdefault(photo_id, {})[name] = score

    def invalidate(self, photo_id: Hashable) -> None:
        """Drop everything cached for one photo."""
        with self._lock:
            self._records.pop(photo_id, None)

    def forget_assessor(self, name: str) -> int:
        """Drop one assessor's scores for every photo. Returns entries removed."""
        removed = 0
        with self._lock:
            for record in self._records.values():
                if record.pop(name, None) is not None:
                    removed += 1
        if removed:
            logger.debug("Dropped %d cached scores for %s", removed, name)
        return removed

    def clear(self) -> None:
        """Reset the cache, e.g. when the candidate set changes."""
        with self._lock:
            photos = len(self._records)
            self._records.clear()
            self._hits = 0
            self._misses = 0
        logger.debug("Score cache cleared (%d photos)", photos)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                photos=len(self._records),
                entries=sum(len(r) for r in self._records.values()),
                hits=self._hits,
                misses=self._misses,
            )

    def __contains__(self, photo_id: object) -> bool:
        with self._lock:
            return photo_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
