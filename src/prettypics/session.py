"""Selection session: the configuration surface around the engine.

Holds one candidate set, its score cache and the assessor registry. Settings
may change at any time; they apply from the next :meth:`find_top_photos`.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Hashable, Sequence

from prettypics.analyzer import BatchAnalyzer, BatchProgress, RankedResult, validate_percentage
from prettypics.cache import ScoreCache
from prettypics.config import DEFAULT_PERCENTAGE, default_photo_workers
from prettypics.library import PhotoLibrary
from prettypics.orchestrator import ScoringOrchestrator
from prettypics.registry import AssessorRegistry, default_registry

logger = logging.getLogger(__name__)


class SelectionSession:
    """Find the best photos in a candidate set, re-runnable after tweaks.

    Args:
        registry: Assessors to use. Defaults to the built-in set.
        library: Candidate supplier for :meth:`load_candidates`.
        percentage: Share of photos to keep, in (0, 100].
        concurrency_limit: Photos scored at once.
        assessor_workers: Global cap on assessor calls in flight.
        timeout: Per-photo wait for assessor calls, in seconds.
    """

    def __init__(
        self,
        registry: AssessorRegistry | None = None,
        library: PhotoLibrary | None = None,
        percentage: float = DEFAULT_PERCENTAGE,
        concurrency_limit: int | None = None,
        assessor_workers: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.library = library
        self.cache = ScoreCache()
        self.orchestrator = ScoringOrchestrator(
            self.cache, max_workers=assessor_workers, timeout=timeout
        )
        self.progress = BatchProgress()
        self.analyzer = BatchAnalyzer(self.orchestrator, self.progress)
        self.concurrency_limit = concurrency_limit or default_photo_workers()

        self._lock = threading.Lock()
        self._percentage = validate_percentage(percentage)
        self._candidates: tuple[Hashable, ...] = ()
        self._last_result: RankedResult | None = None
        self._cancel = threading.Event()

    # -- settings --------------------------------------------------------

    @property
    def percentage(self) -> float:
        with self._lock:
            return self._percentage

    @percentage.setter
    def percentage(self, value: float) -> None:
        value = validate_percentage(value)
        with self._lock:
            self._percentage = value

    def set_enabled(self, name: str, enabled: bool) -> None:
        self.registry.set_enabled(name, enabled)

    def set_weight(self, name: str, weight: float) -> None:
        self.registry.set_weight(name, weight)

    def unregister(self, name: str) -> None:
        """Remove an assessor and drop its cached scores."""
        self.registry.unregister(name)
        self.cache.forget_assessor(name)

    # -- candidates ------------------------------------------------------

    @property
    def candidates(self) -> tuple[Hashable, ...]:
        with self._lock:
            return self._candidates

    def set_candidates(self, photo_ids: Sequence[Hashable]) -> bool:
        """Replace the candidate set. Clears the cache if the set changed."""
        new = tuple(photo_ids)
        with self._lock:
            changed = new != self._candidates
            self._candidates = new
            if changed:
                self._last_result = None
        if changed:
            self.cache.clear()
            logger.info("Candidate set changed (%d photos), cache cleared", len(new))
        return changed

    def load_candidates(self, start: date | None = None, end: date | None = None) -> int:
        """Fetch candidates for a date range from the library."""
        if self.library is None:
            raise RuntimeError("No photo library configured")
        photo_ids = self.library.candidates(start, end)
        self.set_candidates(photo_ids)
        return len(photo_ids)

    # -- running ---------------------------------------------------------

    def find_top_photos(self) -> RankedResult:
        """Score the current candidates under the current settings.

        Takes a registry snapshot at start; changes made while it runs apply
        to the next call. Scores already cached are reused.
        """
        with self._lock:
            candidates = self._candidates
            percentage = self._percentage
            self._cancel = cancel = threading.Event()

        snapshot = self.registry.snapshot()
        result = self.analyzer.run(
            candidates,
            snapshot,
            concurrency_limit=self.concurrency_limit,
            percentage=percentage,
            cancel=cancel,
        )
        with self._lock:
            self._last_result = result
        return result

    def cancel(self) -> None:
        """Ask the running batch to stop launching new work."""
        with self._lock:
            self._cancel.set()

    @property
    def last_result(self) -> RankedResult | None:
        with self._lock:
            return self._last_result

    def invalidate(self, photo_id: Hashable | None = None) -> None:
        """Forget cached scores for one photo, or for all."""
        if photo_id is None:
            self.cache.clear()
        else:
            self.cache.invalidate(photo_id)

    def close(self) -> None:
        self.orchestrator.close()

    def __enter__(self) -> SelectionSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
