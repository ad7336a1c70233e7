from __future__ import annotations

import pytest

from safexpr.api.errors import RegistryError
from safexpr.api.registry import GlobalsRegistry

pytestmark = [pytest.mark.unit]


def test_register_and_get():
    reg = GlobalsRegistry({"a": 1})
    reg.register("b", 2)
    assert reg.get("a") == 1
    assert reg.get("b") == 2
    assert "b" in reg
    assert len(reg) == 2
    assert list(reg) == ["a", "b"]


def test_registration_is_last_wins():
    reg = GlobalsRegistry()
    reg.register("x", 1)
    reg.update({"x": 2, "y": 3})
    assert reg.get("x") == 2
    assert reg.names() == ["x", "y"]


@pytest.mark.parametrize("name", ["1bad", "a-b", "", "this", "_globals_", "_ref3", 7])
def test_invalid_or_reserved_names(name):
    reg = GlobalsRegistry()
    with pytest.raises(RegistryError):
        reg.register(name, 1)


def test_update_is_all_or_nothing():
    reg = GlobalsRegistry()
    with pytest.raises(RegistryError):
        reg.update({"ok": 1, "not ok": 2})
    assert len(reg) == 0


def test_unregister_and_unknown_lookup():
    reg = GlobalsRegistry({"a": 1})
    reg.unregister("a")
    with pytest.raises(RegistryError):
        reg.get("a")
    with pytest.raises(RegistryError):
        reg.unregister("a")


def test_snapshot_is_a_copy():
    reg = GlobalsRegistry({"a": 1})
    snap = reg.snapshot()
    reg.register("b", 2)
    assert snap == {"a": 1}
