from __future__ import annotations

"""
safexpr.core.config
===================

Compiler configuration.
- No external deps; optional JSON file loading.
- Small env overrides for convenience.

If a config file path is not provided or not found, sane defaults are used.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def _parse_bool_env(name: str) -> bool | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip().lower() in ("1", "true", "yes", "on")


def _try_load_json(path: Path | None) -> dict[str, Any]:
    if not path or not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a JSON object")
    return data


# ---------------------------------------------------------------------------


@dataclass
class CompilerConfig:
    """ExpressionCompiler configuration loaded from JSON/env/overrides."""

    # ---- Cache
    cache_enabled: bool = True

    # ---- Globals
    # Pre-populate the registry with window/Math/parseInt/parseFloat/isNaN/Array.
    default_globals: bool = True

    # ---- Diagnostics
    # Attach the generated Python body to the expr.compile debug record.
    log_source: bool = False
    function_name: str = "expression"

    def __post_init__(self) -> None:
        if not isinstance(self.function_name, str) or not self.function_name.isidentifier():
            raise ValueError("function_name must be a valid Python identifier")
        for name in ("cache_enabled", "default_globals", "log_source"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean")

    @classmethod
    def load(cls, path: Path | str | None = None, *, overrides: dict[str, Any] | None = None) -> CompilerConfig:
        """
        Load config from JSON file (if provided), then apply env and overrides.

        Env overrides:
          - SAFEXPR_CACHE
          - SAFEXPR_DEFAULT_GLOBALS
          - SAFEXPR_LOG_SOURCE
        """
        data: dict[str, Any] = {}

        # File
        data.update(_try_load_json(Path(path) if path else None))

        # Env
        for env_name, key in (
            ("SAFEXPR_CACHE", "cache_enabled"),
            ("SAFEXPR_DEFAULT_GLOBALS", "default_globals"),
            ("SAFEXPR_LOG_SOURCE", "log_source"),
        ):
            flag = _parse_bool_env(env_name)
            if flag is not None:
                data[key] = flag

        # Overrides
        if overrides:
            data.update(overrides)

        return cls(**data)
