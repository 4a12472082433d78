"""Tests for prettypics.registry module."""

import math

import pytest

from prettypics.errors import DuplicateNameError, InvalidWeightError, NotFoundError
from prettypics.registry import AssessorRegistry, default_registry


class TestRegister:
    def test_register_enabled_by_default(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A", weight=2.0))
        assert "A" in registry
        assert registry.is_enabled("A")
        assert registry.weight("A") == 2.0

    def test_default_weight_override(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A", weight=2.0), default_weight=0.5)
        assert registry.weight("A") == 0.5

    def test_duplicate_name(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        with pytest.raises(DuplicateNameError):
            registry.register(stub("A"))
        assert len(registry) == 1

    def test_invalid_default_weight(self, stub):
        registry = AssessorRegistry()
        with pytest.raises(InvalidWeightError):
            registry.register(stub("A", weight=0.0))
        assert "A" not in registry

    def test_unregister(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        registry.unregister("A")
        assert "A" not in registry

    def test_unregister_unknown(self):
        with pytest.raises(NotFoundError):
            AssessorRegistry().unregister("nope")


class TestSetEnabled:
    def test_toggle(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        registry.set_enabled("A", False)
        assert not registry.is_enabled("A")
        registry.set_enabled("A", True)
        assert registry.is_enabled("A")

    def test_idempotent(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        registry.set_enabled("A", False)
        registry.set_enabled("A", False)
        assert not registry.is_enabled("A")

    def test_unknown_name(self):
        with pytest.raises(NotFoundError):
            AssessorRegistry().set_enabled("nope", True)

    def test_not_found_is_key_error(self):
        with pytest.raises(KeyError):
            AssessorRegistry().set_enabled("nope", True)


class TestSetWeight:
    def test_set_weight(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        registry.set_weight("A", 2.5)
        assert registry.weight("A") == 2.5

    @pytest.mark.parametrize("weight", [0, -1.0, math.nan, math.inf, "2", True])
    def test_invalid_weight(self, stub, weight):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        with pytest.raises(InvalidWeightError):
            registry.set_weight("A", weight)
        assert registry.weight("A") == 1.0

    def test_unknown_name(self):
        with pytest.raises(NotFoundError):
            AssessorRegistry().set_weight("nope", 1.0)


class TestSnapshot:
    def test_point_in_time(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        registry.register(stub("B"))
        snapshot = registry.snapshot()

        registry.set_weight("A", 3.0)
        registry.set_enabled("B", False)

        assert snapshot.weight("A") == 1.0
        assert snapshot.enabled_names == ("A", "B")
        assert registry.snapshot().enabled_names == ("A",)

    def test_registration_order(self, stub):
        registry = AssessorRegistry()
        for name in ["C", "A", "B"]:
            registry.register(stub(name))
        assert registry.snapshot().names == ("C", "A", "B")

    def test_immutable(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A"))
        snapshot = registry.snapshot()
        with pytest.raises(TypeError):
            snapshot.entries["B"] = snapshot.entries["A"]  # type: ignore[index]

    def test_as_dict(self, stub):
        registry = AssessorRegistry()
        registry.register(stub("A", weight=2.0))
        registry.register(stub("B"))
        registry.set_enabled("B", False)
        assert registry.snapshot().as_dict() == {"A": (2.0, True), "B": (1.0, False)}


def test_default_registry():
    """Built-in assessors are registered with their default weights."""
    snapshot = default_registry().snapshot()
    assert snapshot.names == (
        "Basic Analysis",
        "Face Detection",
        "Nature Scene",
        "Color Harmony",
        "Rule of Thirds",
    )
    assert snapshot.weight("Face Detection") == 1.5
    assert len(snapshot.enabled_names) == 5
