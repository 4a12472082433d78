"""Assessor registry: names, weights and enabled flags.

The registry may be changed at any time (e.g. from a settings screen). A batch
run never reads it live; it works from a :class:`RegistrySnapshot` taken at
batch start so every photo in the run is scored under the same configuration.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterator, Mapping

from prettypics.errors import DuplicateNameError, InvalidWeightError, NotFoundError

if TYPE_CHECKING:
    from prettypics.assessors import AssessorCapability


@dataclass
class AssessorEntry:
    """A registered assessor. Owned by the registry."""

    name: str
    weight: float
    enabled: bool
    capability: AssessorCapability


@dataclass(frozen=True)
class SnapshotEntry:
    """Immutable view of one entry at snapshot time."""

    name: str
    weight: float
    enabled: bool
    capability: AssessorCapability


@dataclass(frozen=True)
class RegistrySnapshot:
    """Point-in-time view of the registry, in registration order."""

    entries: Mapping[str, SnapshotEntry]

    def __iter__(self) -> Iterator[SnapshotEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __getitem__(self, name: str) -> SnapshotEntry:
        return self.entries[name]

    @property
    def names(self) -> tuple[str, ...]:
        """All registered names, enabled or not."""
        return tuple(self.entries)

    @property
    def enabled_names(self) -> tuple[str, ...]:
        return tuple(e.name for e in self.entries.values() if e.enabled)

    def weight(self, name: str) -> float:
        return self.entries[name].weight

    def as_dict(self) -> dict[str, tuple[float, bool]]:
        """``{name: (weight, enabled)}``."""
        return {e.name: (e.weight, e.enabled) for e in self.entries.values()}


def _check_weight(name: str, weight: object) -> float:
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise InvalidWeightError(name, weight)
    if not math.isfinite(weight) or weight <= 0:
        raise InvalidWeightError(name, weight)
    return float(weight)


class AssessorRegistry:
    """Thread-safe set of registered assessors."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, AssessorEntry] = {}

    def register(
        self, capability: AssessorCapability, default_weight: float | None = None
    ) -> AssessorEntry:
        """Add an assessor, enabled. Weight defaults to ``capability.weight``."""
        name = capability.name
        weight = _check_weight(
            name, capability.weight if default_weight is None else default_weight
        )
        with self._lock:
            if name in self._entries:
                raise DuplicateNameError(name)
            entry = AssessorEntry(name=name, weight=weight, enabled=True, capability=capability)
            self._entries[name] = entry
            return entry

    def unregister(self, name: str) -> None:
        """Remove an assessor. Cached scores under ``name`` stop counting."""
        with self._lock:
            if name not in self._entries:
                raise NotFoundError(name)
            del self._entries[name]

    def set_enabled(self, name: str, enabled: bool) -> None:
        with self._lock:
            self._get(name).enabled = bool(enabled)

    def set_weight(self, name: str, weight: float) -> None:
        with self._lock:
            entry = self._get(name)
            entry.weight = _check_weight(name, weight)

    def weight(self, name: str) -> float:
        with self._lock:
            return self._get(name).weight

    def is_enabled(self, name: str) -> bool:
        with self._lock:
            return self._get(name).enabled

    def names(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def snapshot(self) -> RegistrySnapshot:
        """Immutable copy of the current configuration."""
        with self._lock:
            entries = {
                name: SnapshotEntry(
                    name=e.name, weight=e.weight, enabled=e.enabled, capability=e.capability
                )
                for name, e in self._entries.items()
            }
        return RegistrySnapshot(entries=MappingProxyType(entries))

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _get(self, name: str) -> AssessorEntry:
        # Caller holds the lock
        try:
            return self._entries[name]
        except KeyError:
            raise NotFoundError(name) from None


def default_registry() -> AssessorRegistry:
    """Registry holding the built-in assessors with their default weights."""
    from prettypics.assessors import default_assessors

    registry = AssessorRegistry()
    for capability in default_assessors():
        registry.register(capability)
    return registry
