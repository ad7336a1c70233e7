from __future__ import annotations

import json

import pytest

from safexpr.core.config import CompilerConfig

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SAFEXPR_CACHE", "SAFEXPR_DEFAULT_GLOBALS", "SAFEXPR_LOG_SOURCE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = CompilerConfig.load()
    assert cfg.cache_enabled is True
    assert cfg.default_globals is True
    assert cfg.log_source is False
    assert cfg.function_name == "expression"


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert CompilerConfig.load(tmp_path / "nope.json") == CompilerConfig()


def test_file_then_env_then_overrides(tmp_path, monkeypatch):
    path = tmp_path / "safexpr.json"
    path.write_text(json.dumps({"cache_enabled": False, "log_source": True, "function_name": "tpl"}), encoding="utf-8")
    monkeypatch.setenv("SAFEXPR_LOG_SOURCE", "0")
    monkeypatch.setenv("SAFEXPR_DEFAULT_GLOBALS", "no")

    cfg = CompilerConfig.load(path, overrides={"cache_enabled": True})
    assert cfg.cache_enabled is True
    assert cfg.log_source is False
    assert cfg.default_globals is False
    assert cfg.function_name == "tpl"


def test_blank_env_is_ignored(monkeypatch):
    monkeypatch.setenv("SAFEXPR_CACHE", "  ")
    assert CompilerConfig.load().cache_enabled is True


def test_file_must_hold_an_object(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        CompilerConfig.load(path)


@pytest.mark.parametrize("overrides", [{"function_name": "not valid"}, {"cache_enabled": "yes"}, {"log_source": 1}])
def test_validation(overrides):
    with pytest.raises(ValueError):
        CompilerConfig(**overrides)
