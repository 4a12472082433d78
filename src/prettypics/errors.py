"""Exception types for prettypics."""

from __future__ import annotations

from typing import Hashable


class PrettyPicsError(Exception):
    """Base class for all prettypics errors."""


class RegistryError(PrettyPicsError):
    """Misuse of the assessor registry."""


class DuplicateNameError(RegistryError):
    """An assessor with this name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Assessor already registered: {name!r}")
        self.name = name


class NotFoundError(RegistryError, KeyError):
    """No assessor is registered under this name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown assessor: {name!r}")
        self.name = name

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class InvalidWeightError(RegistryError, ValueError):
    """Assessor weight is not a finite number greater than zero."""

    def __init__(self, name: str, weight: object) -> None:
        super().__init__(f"Invalid weight for {name!r}: {weight!r} (must be > 0)")
        self.name = name
        self.weight = weight


class InvalidPercentageError(PrettyPicsError, ValueError):
    """Selection percentage outside (0, 100]."""

    def __init__(self, percentage: object) -> None:
        super().__init__(
            f"Invalid selection percentage: {percentage!r} (must be in (0, 100])"
        )
        self.percentage = percentage


class AssessorFailure(PrettyPicsError):
    """A single assessor call failed, timed out, or returned a bad score.

    Never fatal: the orchestrator records it and scores the pair as 0.0.
    """

    def __init__(self, photo_id: Hashable, assessor: str, reason: str) -> None:
        super().__init__(f"{assessor} failed on {photo_id}: {reason}")
        self.photo_id = photo_id
        self.assessor = assessor
        self.reason = reason


class BatchCancelled(PrettyPicsError):
    """Cooperative cancellation was requested for the running batch."""

    def __init__(self, photo_id: Hashable | None = None) -> None:
        msg = "Batch cancelled" if photo_id is None else f"Batch cancelled at {photo_id}"
        super().__init__(msg)
        self.photo_id = photo_id
