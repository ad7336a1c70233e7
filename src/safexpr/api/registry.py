# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Globals registry.

Holds the host values every expression of one compiler can reference by name
(window, Math, parseInt, ...). Expressions take a snapshot at compile time:
registering a name afterwards only affects expressions compiled later.
"""

import threading
from collections.abc import Iterator, Mapping
from typing import Any

from ..compiler.scope import is_identifier, is_reserved
from .errors import RegistryError


class GlobalsRegistry:
    """
    Mutable name -> value mapping shared by one compiler.

    - Names must be surface identifiers and must not shadow reserved names.
    - Registration is last-wins so applications can override defaults.
    - All operations are serialized by an instance lock.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.RLock()
        for name, value in (initial or {}).items():
            self.register(name, value)

    def _check_name(self, name: str) -> None:
        if not is_identifier(name):
            raise RegistryError(f"invalid global name: {name!r}")
        if is_reserved(name):
            raise RegistryError(f"global name is reserved: {name!r}")

    # ---- registration ------------------------------------------------------

    def register(self, name: str, value: Any) -> None:
        self._check_name(name)
        with self._lock:
            self._values[name] = value

    def update(self, values: Mapping[str, Any]) -> None:
        for name in values:
            self._check_name(name)
        with self._lock:
            self._values.update(values)

    def unregister(self, name: str) -> None:
        with self._lock:
            try:
                del self._values[name]
            except KeyError as e:
                raise RegistryError(f"unknown global: {name}") from e

    # ---- lookups -----------------------------------------------------------

    def get(self, name: str) -> Any:
        """Lookup a global by name or raise RegistryError."""
        with self._lock:
            try:
                return self._values[name]
            except KeyError as e:
                raise RegistryError(f"unknown global: {name}") from e

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._values)

    def snapshot(self) -> dict[str, Any]:
        """Copy of the current entries (what a compilation sees)."""
        with self._lock:
            return dict(self._values)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
