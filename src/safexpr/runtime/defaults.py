# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Host globals every compiler starts with.

Notes:
- Names follow the JavaScript host names expressions are written against.
- Parsers return NaN instead of raising on unparsable input.
"""

import builtins
import math
import random
import re
from types import SimpleNamespace
from typing import Any

__all__ = ["Math", "default_globals", "is_nan", "parse_float", "parse_int"]

_INT_RE = re.compile(r"^\s*([+-]?)(0[xX])?([0-9a-zA-Z]*)")
_FLOAT_RE = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_int(value: Any, radix: int | None = None) -> int | float:
    """JS parseInt(): parse the leading integer of `value`, NaN when there is none."""
    m = _INT_RE.match(str(value))
    sign, hex_prefix, rest = m.group(1), m.group(2), m.group(3)
    base = int(radix) if radix else 10
    if hex_prefix and (not radix or base == 16):
        base = 16
    elif hex_prefix:
        # "0x" is not a prefix for other radixes; parsing stops after the 0
        rest = "0"
    if not 2 <= base <= 36:
        return math.nan
    digits = ""
    for ch in rest.lower():
        if _DIGITS.find(ch) < 0 or _DIGITS.index(ch) >= base:
            break
        digits += ch
    if not digits:
        return math.nan
    n = int(digits, base)
    return -n if sign == "-" else n


def parse_float(value: Any) -> float:
    """JS parseFloat(): parse the leading decimal number of `value`, NaN when there is none."""
    m = _FLOAT_RE.match(str(value))
    if not m:
        return math.nan
    return float(m.group(1).replace("Infinity", "inf"))


def is_nan(value: Any) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def _js_round(x: float) -> int:
    return math.floor(x + 0.5)


def _js_max(*values: float) -> float:
    return max(values) if values else -math.inf


def _js_min(*values: float) -> float:
    return min(values) if values else math.inf


def _js_sign(x: float) -> int:
    return (x > 0) - (x < 0)


Math = SimpleNamespace(
    PI=math.pi,
    E=math.e,
    abs=abs,
    ceil=math.ceil,
    floor=math.floor,
    round=_js_round,
    trunc=math.trunc,
    sign=_js_sign,
    max=_js_max,
    min=_js_min,
    pow=math.pow,
    sqrt=math.sqrt,
    log=math.log,
    exp=math.exp,
    sin=math.sin,
    cos=math.cos,
    tan=math.tan,
    random=random.random,
)


def default_globals() -> dict[str, Any]:
    """Return a fresh mapping of the always-available host globals."""
    return {
        "window": builtins,
        "Math": Math,
        "parseInt": parse_int,
        "parseFloat": parse_float,
        "isNaN": is_nan,
        "Array": list,
    }
