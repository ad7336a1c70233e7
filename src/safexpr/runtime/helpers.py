# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Helpers referenced by generated expression code.

Generated bodies never touch attributes or items directly: reads go through
`_get_` and writes through `_set_`, so mappings, sequences and plain objects
are all addressed with the same `.name` / `[key]` surface syntax.

Exceptions raised by user code (property getters, formatters, global
functions) propagate unchanged.
"""

import math
import operator
import re
from collections.abc import Callable, Hashable, Mapping, MutableMapping, MutableSequence, Sequence, Sized
from functools import lru_cache
from typing import Any

__all__ = ["RUNTIME_HELPERS", "is_context_aware", "pass_context", "to_display"]

_PASS_CONTEXT_ATTR = "__safexpr_pass_context__"


def pass_context(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Mark a formatter (or any function reached through `.call`) as context aware.

    Marked callables receive the binding context as their first argument:

        @pass_context
        def currency(ctx, value, setting=False): ...
    """
    setattr(fn, _PASS_CONTEXT_ATTR, True)
    return fn


def is_context_aware(fn: Any) -> bool:
    return bool(getattr(fn, _PASS_CONTEXT_ATTR, False))


class _BoundCall:
    """`fn.call(this, *args)` for Python callables."""

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn

    def __call__(self, this: Any, *args: Any) -> Any:
        if is_context_aware(self.fn):
            return self.fn(this, *args)
        return self.fn(*args)


def _index(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def _get_(obj: Any, key: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key) if isinstance(key, Hashable) else None
    if isinstance(obj, Sequence):
        i = _index(key)
        if i is not None:
            return obj[i] if 0 <= i < len(obj) else None
    if not isinstance(key, str):
        return None
    if key == "length" and isinstance(obj, Sized) and not hasattr(obj, "length"):
        return len(obj)
    if key == "call" and callable(obj) and not hasattr(obj, "call"):
        return _BoundCall(obj)
    return getattr(obj, key, None)


_PRIMITIVES = (str, bytes, int, float, bool, tuple, frozenset)


def _set_(obj: Any, key: Any, value: Any) -> Any:
    if obj is None or isinstance(obj, _PRIMITIVES):
        # writes to primitives are dropped, like a non-strict JS body
        return value
    if isinstance(obj, MutableMapping):
        obj[key] = value
    elif isinstance(obj, MutableSequence) and _index(key) is not None:
        i = _index(key)
        if i < len(obj):
            obj[i] = value
        else:
            # JS arrays grow on out-of-range writes
            obj.extend([None] * (i - len(obj)))
            obj.append(value)
    else:
        setattr(obj, key, value)
    return value


def to_display(value: Any) -> str:
    """String form used by `+` concatenation (JS spelling of None and booleans)."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, list):
        return ",".join("" if v is None else to_display(v) for v in value)
    return str(value)


def _add_(left: Any, right: Any) -> Any:
    if isinstance(left, str) or isinstance(right, str):
        return to_display(left) + to_display(right)
    if left is None or right is None:
        return math.nan
    return left + right


def _to_number(value: Any) -> Any:
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return value


def _arith(op: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def apply(left: Any, right: Any) -> Any:
        return op(_to_number(left), _to_number(right))

    return apply


def _neg_(value: Any) -> Any:
    return -_to_number(value)


def _pos_(value: Any) -> Any:
    return +_to_number(value)


def _ordering(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    # a missing or unorderable operand compares false, as NaN does
    def compare(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return False
        try:
            return bool(op(left, right))
        except TypeError:
            return False

    return compare


def _callable_(value: Any) -> bool:
    return callable(value)


def _typeof_(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


@lru_cache(maxsize=256)
def _pattern_(body: str, flags: str = "") -> re.Pattern[str]:
    compiled_flags = 0
    for flag in flags:
        # g, y, u and d have no compile-time counterpart
        compiled_flags |= _FLAGS.get(flag, 0)
    return re.compile(body, compiled_flags)


RUNTIME_HELPERS: dict[str, Any] = {
    "_get_": _get_,
    "_set_": _set_,
    "_add_": _add_,
    "_sub_": _arith(operator.sub),
    "_mul_": _arith(operator.mul),
    "_div_": _arith(operator.truediv),
    "_mod_": _arith(operator.mod),
    "_neg_": _neg_,
    "_pos_": _pos_,
    "_lt_": _ordering(operator.lt),
    "_gt_": _ordering(operator.gt),
    "_le_": _ordering(operator.le),
    "_ge_": _ordering(operator.ge),
    "_callable_": _callable_,
    "_typeof_": _typeof_,
    "_pattern_": _pattern_,
}
