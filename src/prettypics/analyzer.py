"""Batch analyzer: score a whole candidate set and select the top slice.

Photos are scored in parallel on a per-run pool; each photo fans out onto the
orchestrator's shared assessor pool. Results are ranked by aggregate score
with ties kept in candidate order, so a run is reproducible regardless of the
order in which work happens to finish.
"""

from __future__ import annotations

import logging
import math
import queue
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Hashable, Iterable, Iterator, Mapping, Sequence

from prettypics.config import DEFAULT_PERCENTAGE, MAX_PERCENTAGE, MIN_PERCENTAGE
from prettypics.errors import BatchCancelled, InvalidPercentageError

if TYPE_CHECKING:
    from prettypics.orchestrator import AggregateScore, ScoringOrchestrator
    from prettypics.registry import RegistrySnapshot

logger = logging.getLogger(__name__)


def validate_percentage(percentage: float) -> float:
    """Return ``percentage`` as float if it lies in (0, 100]."""
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        raise InvalidPercentageError(percentage)
    if not (MIN_PERCENTAGE < percentage <= MAX_PERCENTAGE):  # also rejects NaN
        raise InvalidPercentageError(percentage)
    return float(percentage)


def top_count(n: int, percentage: float) -> int:
    """How many of ``n`` ranked photos to keep.

    ``max(1, floor(n * percentage / 100))``, or 0 when there is nothing to
    rank.

    Examples:
        >>> top_count(10, 20)
        2
        >>> top_count(1, 1)
        1
    """
    percentage = validate_percentage(percentage)
    if n <= 0:
        return 0
    return max(1, math.floor(n * percentage / 100.0))


def rank(scores: Iterable[AggregateScore]) -> list[AggregateScore]:
    """Sort descending by total. Stable: ties keep input order."""
    return sorted(scores, key=lambda s: s.total, reverse=True)


@dataclass(frozen=True)
class RankedResult:
    """Outcome of one batch run. Replaced wholesale by the next run."""

    selected: tuple[AggregateScore, ...] = ()
    ranking: tuple[AggregateScore, ...] = ()
    percentage: float = DEFAULT_PERCENTAGE
    total_candidates: int = 0
    cancelled: bool = False
    failures: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def completed(self) -> int:
        return len(self.ranking)

    @property
    def partial(self) -> bool:
        return self.cancelled or self.completed < self.total_candidates

    def __iter__(self) -> Iterator[AggregateScore]:
        return iter(self.selected)

    def __len__(self) -> int:
        return len(self.selected)


class BatchProgress:
    """``(completed, total)`` counter for a batch run.

    Poll :attr:`value`, or :meth:`subscribe` for a queue that receives every
    update. Updates are pushed without blocking, so a slow consumer never
    stalls the batch.
    """

    def __init__(self, total: int = 0) -> None:
        self._lock = threading.Lock()
        self._completed = 0
        self._total = total
        self._subscribers: list[queue.SimpleQueue[tuple[int, int]]] = []

    @property
    def value(self) -> tuple[int, int]:
        with self._lock:
            return self._completed, self._total

    @property
    def completed(self) -> int:
        return self.value[0]

    @property
    def total(self) -> int:
        return self.value[1]

    def subscribe(self) -> queue.SimpleQueue[tuple[int, int]]:
        """Queue receiving ``(completed, total)`` after every change."""
        q: queue.SimpleQueue[tuple[int, int]] = queue.SimpleQueue()
        with self._lock:
            self._subscribers.append(q)
            q.put((self._completed, self._total))
        return q

    def unsubscribe(self, q: queue.SimpleQueue[tuple[int, int]]) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def reset(self, total: int) -> None:
        with self._lock:
            self._completed = 0
            self._total = total
            self._publish()

    def advance(self) -> tuple[int, int]:
        with self._lock:
            if self._completed < self._total:
                self._completed += 1
            self._publish()
            return self._completed, self._total

    def _publish(self) -> None:
        # Caller holds the lock; SimpleQueue.put never blocks
        value = (self._completed, self._total)
        for q in self._subscribers:
            q.put(value)


class BatchAnalyzer:
    """Drives the orchestrator over a candidate set.

    Args:
        orchestrator: Scores single photos; owns the shared assessor pool.
        progress: Counter to publish to. A fresh one is created if omitted.
    """

    def __init__(
        self,
        orchestrator: ScoringOrchestrator,
        progress: BatchProgress | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.progress = progress or BatchProgress()

    def run(
        self,
        candidates: Sequence[Hashable],
        snapshot: RegistrySnapshot,
        concurrency_limit: int,
        percentage: float = DEFAULT_PERCENTAGE,
        cancel: threading.Event | None = None,
    ) -> RankedResult:
        """Score every candidate under ``snapshot`` and select the top slice.

        Args:
            candidates: Photo ids in candidate order. Duplicates are scored
                once, at their first position.
            snapshot: Registry configuration fixed for the whole run.
            concurrency_limit: Photos in flight at once.
            percentage: Share of the ranking to select, in (0, 100].
            cancel: Set to stop launching new work. The run then returns the
                photos finished so far with ``cancelled=True``.
        """
        percentage = validate_percentage(percentage)
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        if cancel is None:
            cancel = threading.Event()

        photo_ids = list(dict.fromkeys(candidates))
        self.progress.reset(len(photo_ids))
        logger.info(
            "Scoring %d photos with %d assessors enabled (limit %d)",
            len(photo_ids),
            len(snapshot.enabled_names),
            concurrency_limit,
        )

        results: list[AggregateScore | None] = [None] * len(photo_ids)
        cancelled = False

        if photo_ids:
            workers = min(concurrency_limit, len(photo_ids))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="prettypics-photo"
            ) as executor:
                futures = [
                    executor.submit(self._score_one, photo_id, snapshot, cancel)
                    for photo_id in photo_ids
                ]
                for index, future in enumerate(futures):
                    try:
                        results[index] = future.result()
                    except BatchCancelled:
                        cancelled = True

        cancelled = cancelled or cancel.is_set()
        scored = [r for r in results if r is not None]
        ranking = rank(scored)
        keep = top_count(len(ranking), percentage)

        failures: Counter[str] = Counter()
        for score in scored:
            failures.update(score.failed)

        if cancelled:
            logger.info("Batch cancelled after %d of %d photos", len(scored), len(photo_ids))
        else:
            logger.info("Batch finished: %d photos, keeping %d", len(scored), keep)

        return RankedResult(
            selected=tuple(ranking[:keep]),
            ranking=tuple(ranking),
            percentage=percentage,
            total_candidates=len(photo_ids),
            cancelled=cancelled,
            failures=MappingProxyType(dict(failures)),
        )

    def _score_one(
        self,
        photo_id: Hashable,
        snapshot: RegistrySnapshot,
        cancel: threading.Event,
    ) -> AggregateScore | None:
        try:
            return self.orchestrator.score(photo_id, snapshot, cancel)
        except BatchCancelled:
            raise
        except Exception:
            # Assessor errors are absorbed by the orchestrator; anything
            # reaching here is a bug for this photo only.
            logger.exception("Scoring %s failed", photo_id)
            return None
        finally:
            self.progress.advance()
