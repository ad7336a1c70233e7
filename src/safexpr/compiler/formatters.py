# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Formatter pipes.

`value | name(args) | other` applies formatters left to right. The pipe is a
single `|` at bracket depth zero; `||` stays logical or. Desugaring rewrites the
pipeline into nested `.call(this, ...)` invocations against the formatters
mapping so the property-chain pass treats formatter lookups like any other
null-safe chain:

    name | upper             -> _formatters_.upper.call(this, name)
    name | f("a") | g(b)     -> _formatters_.g.call(this, _formatters_.f.call(this, name, "a"), b)
    name = _value_ | upper   -> name = _formatters_.upper.call(this, _value_, true)

Input is expected to be literal-isolated already; arguments are passed through
verbatim.
"""

import re

from ..api.errors import ExpressionSyntaxError
from .literals import iter_literals

__all__ = ["FORMATTERS_NAME", "desugar", "find_pipe", "split_assignment", "split_pipes"]

FORMATTERS_NAME = "_formatters_"

_SEGMENT_RE = re.compile(r"^\s*([A-Za-z_$][\w$]*)\s*(?:\((.*)\))?\s*$", re.DOTALL)

_OPEN = "([{"
_CLOSE = ")]}"


def _is_pipe(text: str, i: int) -> bool:
    return (i == 0 or text[i - 1] != "|") and (i + 1 >= len(text) or text[i + 1] != "|")


def _split_top_level(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif ch == sep and depth == 0 and (sep != "|" or _is_pipe(text, i)):
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def split_pipes(text: str) -> list[str]:
    """Split literal-isolated text on formatter pipes at bracket depth zero."""
    return _split_top_level(text, "|")


def split_assignment(text: str) -> tuple[str, str] | None:
    """
    Return (target, value) when `text` is a top-level assignment.

    Comparison operators (==, ===, !=, <=, >=) are not assignments.
    """
    depth = 0
    for i, ch in enumerate(text):
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif ch == "=" and depth == 0:
            prev = text[i - 1] if i else ""
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if prev in "=!<>" or nxt == "=":
                continue
            return text[:i].strip(), text[i + 1 :].strip()
    return None


def find_pipe(text: str) -> int | None:
    """
    Index of the first formatter pipe in raw (not yet isolated) text, or None.

    Quoted regions are skipped so a `|` inside a string is never taken for a pipe.
    """
    skip = dict(iter_literals(text))
    depth = 0
    i = 0
    while i < len(text):
        if i in skip:
            i = skip[i]
            continue
        ch = text[i]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif ch == "|" and depth == 0 and _is_pipe(text, i):
            return i
        i += 1
    return None


def _parse_segment(segment: str) -> tuple[str, list[str]]:
    m = _SEGMENT_RE.match(segment)
    if not m:
        raise ExpressionSyntaxError(f"invalid formatter {segment.strip()!r}")
    name, raw_args = m.group(1), m.group(2)
    if raw_args is None or not raw_args.strip():
        return name, []
    args = [a.strip() for a in _split_top_level(raw_args, ",")]
    if any(not a for a in args):
        raise ExpressionSyntaxError(f"empty argument in formatter {name!r}")
    return name, args


def desugar(text: str) -> str:
    """Rewrite formatter pipes into nested formatter calls."""
    segments = split_pipes(text)
    if len(segments) == 1:
        return text

    head = segments[0].strip()
    if not head:
        raise ExpressionSyntaxError("formatter pipe without a value")

    setter = split_assignment(head)
    value = setter[1] if setter else head

    for index, segment in enumerate(segments[1:]):
        name, args = _parse_segment(segment)
        call_args = [value, *args]
        if setter and index == 0:
            call_args.append("true")
        value = f"{FORMATTERS_NAME}.{name}.call(this, {', '.join(call_args)})"

    return f"{setter[0]} = {value}" if setter else value
