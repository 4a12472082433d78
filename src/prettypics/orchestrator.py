"""Scoring orchestrator: one photo in, one weighted aggregate out.

Only assessors with no cached score for the photo are run. They run
concurrently on a pool shared by every photo, so the pool size is the global
cap on assessor calls in flight. A failed call scores 0.0 for this pass and
is never cached, so a later run retries it.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Hashable, Mapping

from prettypics.config import default_assessor_workers
from prettypics.errors import AssessorFailure, BatchCancelled

if TYPE_CHECKING:
    from prettypics.assessors import AssessorCapability
    from prettypics.cache import ScoreCache
    from prettypics.registry import RegistrySnapshot

logger = logging.getLogger(__name__)

FAILED_SCORE = 0.0


@dataclass(frozen=True)
class AggregateScore:
    """Weighted score for one photo. Recomputed on every pass, never cached."""

    photo_id: Hashable
    total: float
    scores: Mapping[str, float] = field(default_factory=dict)  # cached + fresh
    failed: frozenset[str] = frozenset()


def weighted_total(
    scores: Mapping[str, float], weights: Mapping[str, float], names: tuple[str, ...]
) -> float:
    """Weighted mean of ``scores`` over ``names``; 0.0 when ``names`` is empty.

    Uses ``math.fsum`` so the result does not depend on summation order.
    """
    if not names:
        return 0.0
    total_weight = math.fsum(weights[n] for n in names)
    if total_weight <= 0:
        return 0.0
    return math.fsum(scores[n] * weights[n] for n in names) / total_weight


def _validate_score(photo_id: Hashable, name: str, score: object) -> float:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise AssessorFailure(photo_id, name, f"non-numeric score {score!r}")
    value = float(score)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise AssessorFailure(photo_id, name, f"score {value!r} outside [0, 1]")
    return value


class _CallClock:
    """Start time of one assessor call, set when it leaves the pool queue."""

    def __init__(self) -> None:
        self._started = threading.Event()
        self.started_at = 0.0

    def start(self) -> None:
        self.started_at = time.monotonic()
        self._started.set()

    def bind(self, future: Future[float]) -> None:
        # A future cancelled while queued never starts; stop waiting for it
        future.add_done_callback(lambda _: self._started.set())

    def remaining(self, timeout: float) -> float:
        """Block until the call starts, then return what is left of ``timeout``."""
        self._started.wait()
        if not self.started_at:
            return 0.0
        return max(0.0, self.started_at + timeout - time.monotonic())


class ScoringOrchestrator:
    """Scores photos against a registry snapshot, reusing cached results.

    Args:
        cache: Shared score cache (read before, written after each call).
        max_workers: Size of the shared assessor pool.
        timeout: Seconds a started assessor call may run; calls still
            running after that count as failed for this pass. Time spent
            queued behind other photos does not count.
    """

    def __init__(
        self,
        cache: ScoreCache,
        max_workers: int | None = None,
        timeout: float | None = None,
    ) -> None:
        if max_workers is None:
            max_workers = default_assessor_workers()
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.cache = cache
        self.timeout = timeout
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="prettypics-assessor"
        )
        self._failures: Counter[str] = Counter()
        self._failures_lock = threading.Lock()

    def score(
        self,
        photo_id: Hashable,
        snapshot: RegistrySnapshot,
        cancel: threading.Event | None = None,
    ) -> AggregateScore:
        """Aggregate score for one photo under ``snapshot``.

        Raises:
            BatchCancelled: ``cancel`` was set before every missing assessor
                call had started. Calls already running still finish and
                populate the cache; queued ones are skipped.
        """
        enabled = snapshot.enabled_names
        missing = self.cache.get_missing(photo_id, enabled)
        cached = self.cache.get(photo_id) or {}
        # A concurrent clear() between the two reads leaves names in neither
        to_run = [n for n in enabled if n in missing or n not in cached]

        calls: dict[str, tuple[Future[float], _CallClock]] = {}
        cancelled = False
        for name in to_run:
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            clock = _CallClock()
            future = self._executor.submit(
                self._invoke, snapshot[name].capability, name, photo_id, clock, cancel
            )
            clock.bind(future)
            calls[name] = (future, clock)

        fresh, failed, skipped = self._collect(photo_id, calls)

        if cancelled or skipped:
            logger.debug(
                "Cancelled %s with %d of %d assessors run",
                photo_id,
                len(fresh) + len(failed),
                len(to_run),
            )
            raise BatchCancelled(photo_id)

        # Scores of unregistered assessors are no longer valid hits
        record = {n: s for n, s in cached.items() if n in snapshot}
        record.update(fresh)
        for name in failed:
            record[name] = FAILED_SCORE

        weights = {n: snapshot.weight(n) for n in enabled}
        total = weighted_total(record, weights, enabled)
        return AggregateScore(
            photo_id=photo_id,
            total=total,
            scores=record,
            failed=frozenset(failed),
        )

    def _invoke(
        self,
        capability: AssessorCapability,
        name: str,
        photo_id: Hashable,
        clock: _CallClock,
        cancel: threading.Event | None,
    ) -> float:
        """Run one assessor (in a pool thread) and cache a valid result."""
        clock.start()
        if cancel is not None and cancel.is_set():
            raise BatchCancelled(photo_id)
        try:
            raw = capability.assess(photo_id)
        except Exception as e:
            raise AssessorFailure(photo_id, name, f"{type(e).__name__}: {e}") from e
        score = _validate_score(photo_id, name, raw)
        self.cache.put(photo_id, name, score)
        return score

    def _collect(
        self,
        photo_id: Hashable,
        calls: dict[str, tuple[Future[float], _CallClock]],
    ) -> tuple[dict[str, float], set[str], set[str]]:
        """Wait for one photo's calls. Returns fresh scores, failed and skipped names."""
        fresh: dict[str, float] = {}
        failed: set[str] = set()
        skipped: set[str] = set()

        for name, (future, clock) in calls.items():
            if self.timeout is None:
                wait([future])
            else:
                wait([future], timeout=clock.remaining(self.timeout))
            if not future.done():
                # Still running: its result is cached when it lands, but this
                # pass scores it as failed.
                self._record_failure(
                    AssessorFailure(photo_id, name, f"timed out after {self.timeout}s")
                )
                failed.add(name)
                continue
            if future.cancelled():
                skipped.add(name)
                continue
            try:
                fresh[name] = future.result()
            except BatchCancelled:
                skipped.add(name)
            except AssessorFailure as e:
                self._record_failure(e)
                failed.add(name)
        return fresh, failed, skipped

    def _record_failure(self, failure: AssessorFailure) -> None:
        logger.warning("Assessor failure: %s", failure)
        with self._failures_lock:
            self._failures[failure.assessor] += 1

    def failure_counts(self) -> dict[str, int]:
        """Failures per assessor name since the last reset."""
        with self._failures_lock:
            return dict(self._failures)

    def reset_failure_counts(self) -> None:
        with self._failures_lock:
            self._failures.clear()

    def close(self) -> None:
        """Shut down the assessor pool, waiting for running calls."""
        self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> ScoringOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
