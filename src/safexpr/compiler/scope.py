# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Variable scope table used by the property-chain pass.

Every bare identifier of an expression is classified as one of:
  - ARGUMENT: an extra argument of the compiled callable (a plain parameter)
  - GLOBAL:   a name of the merged globals mapping (read from `_globals_`)
  - KEYWORD:  a name the generated code provides itself (`_globals_`, `_formatters_`)
  - CONTEXT:  anything else, read from the binding context

Extra arguments win over globals, which win over the context. The table is
built per compilation and dropped once the rewrite is done.
"""

import keyword
import re
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from ..runtime.helpers import RUNTIME_HELPERS

__all__ = ["Binding", "GLOBALS_NAME", "RESERVED_NAMES", "Scope", "is_identifier", "is_reserved"]

GLOBALS_NAME = "_globals_"

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
# reference temporaries and renamed parameters
_SYNTHETIC_RE = re.compile(r"^(?:_ref\d+|_arg\d+_)$")

# surface keywords and names the generated code binds itself
RESERVED_NAMES = frozenset(
    {
        "this",
        "true",
        "false",
        "null",
        "undefined",
        "typeof",
        "and",
        "or",
        GLOBALS_NAME,
        "_formatters_",
        *RUNTIME_HELPERS,
    }
)


def is_identifier(name: Any) -> bool:
    """True for a surface identifier ([A-Za-z_$][A-Za-z0-9_$]*)."""
    return isinstance(name, str) and bool(_IDENT_RE.match(name))


def is_reserved(name: str) -> bool:
    return name in RESERVED_NAMES or bool(_SYNTHETIC_RE.match(name))


class Binding(str, Enum):
    CONTEXT = "context"
    GLOBAL = "global"
    KEYWORD = "keyword"
    ARGUMENT = "argument"


class Scope:
    """Symbol table for one compilation."""

    _KEYWORDS = frozenset({GLOBALS_NAME, "_formatters_"})

    def __init__(self, globals_: Mapping[str, Any] | None = None, args: Iterable[str] = ()) -> None:
        self._globals = frozenset(globals_ or ())
        self._params: dict[str, str] = {}
        for i, name in enumerate(args):
            # surface names such as `$index` are not Python identifiers
            safe = name.isidentifier() and not keyword.iskeyword(name)
            self._params[name] = name if safe else f"_arg{i}_"

    def classify(self, name: str) -> Binding:
        if name in self._params:
            return Binding.ARGUMENT
        if name in self._KEYWORDS:
            return Binding.KEYWORD
        if name in self._globals:
            return Binding.GLOBAL
        return Binding.CONTEXT

    def param(self, name: str) -> str:
        """Python parameter name for an extra argument."""
        return self._params[name]

    @property
    def params(self) -> list[str]:
        """Python parameter names in declaration order."""
        return list(self._params.values())

    def variables(self) -> dict[str, Binding]:
        """Every known (non-context) symbol with its binding."""
        out = {name: Binding.GLOBAL for name in self._globals}
        out.update({name: Binding.KEYWORD for name in self._KEYWORDS})
        out.update({name: Binding.ARGUMENT for name in self._params})
        return out
