# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Literal isolation.

Quoted strings and pattern literals are pulled out of the expression before
any structural pass runs, so their contents are never mistaken for syntax.
Each literal is replaced by an empty literal of the same delimiter ('', "" or
//) and queued; `restore` puts them back strictly left to right.

The queue lives on a `LiteralTable` value created per compile call, so two
compilations never share pending literals.
"""

import re
from collections import deque
from collections.abc import Callable, Iterator

from ..api.errors import PipelineStateError

__all__ = ["LiteralTable", "iter_literals", "to_python_literal"]

_STRING_RE = re.compile(r"""(['"])(?:\\.|(?!\1)[^\\])*\1""", re.DOTALL)
_PATTERN_RE = re.compile(r"/(?:\\.|[^\\/\n])+/[A-Za-z]*")
_PLACEHOLDER_RE = re.compile(r"""(['"/])\1""")

# a "/" after one of these (or at the start) opens a pattern literal; anywhere else it divides
_OPERAND_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")


def iter_literals(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) spans of every string or pattern literal in `text`."""
    pos = 0
    last = ""
    n = len(text)
    while pos < n:
        ch = text[pos]
        m = None
        if ch in "'\"":
            m = _STRING_RE.match(text, pos)
        elif ch == "/" and (not last or last in _OPERAND_PRECEDERS):
            m = _PATTERN_RE.match(text, pos)
        if m is not None:
            yield pos, m.end()
            last = ch
            pos = m.end()
            continue
        if not ch.isspace():
            last = ch
        pos += 1


class LiteralTable:
    """Ordered queue of literals pulled out of one expression."""

    def __init__(self) -> None:
        self._pending: deque[str] | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def __len__(self) -> int:
        return len(self._pending) if self._pending is not None else 0

    def isolate(self, text: str) -> str:
        """Replace every literal with an empty placeholder and queue the original."""
        if self._pending is not None:
            raise PipelineStateError("restore() must be called before isolating another expression")

        literals: deque[str] = deque()
        out: list[str] = []
        pos = 0
        for start, end in iter_literals(text):
            raw = text[start:end]
            out.append(text[pos:start])
            out.append(raw[0] * 2)
            literals.append(raw)
            pos = end
        out.append(text[pos:])

        self._pending = literals
        return "".join(out)

    def restore(self, text: str, render: Callable[[str], str] | None = None) -> str:
        """
        Substitute queued literals for the placeholders in `text`, left to right.

        `render` maps each raw literal to its replacement text; the default puts
        the literal back verbatim.
        """
        if self._pending is None:
            raise PipelineStateError("isolate() must be called before restoring literals")

        queue = self._pending

        def _sub(m: re.Match[str]) -> str:
            if not queue:
                return m.group(0)
            raw = queue.popleft()
            return render(raw) if render else raw

        try:
            return _PLACEHOLDER_RE.sub(_sub, text)
        finally:
            self._pending = None


# ---- Python rendering

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


def _unescape(body: str) -> str:
    def _sub(m: re.Match[str]) -> str:
        seq = m.group(1)
        if seq[0] == "u" and len(seq) > 1:
            return chr(int(seq[2:-1] if seq[1] == "{" else seq[1:], 16))
        if seq[0] == "x" and len(seq) == 3:
            return chr(int(seq[1:], 16))
        if seq in ("\n", "\r", "\r\n", "\u2028", "\u2029"):
            # line continuation
            return ""
        return _SIMPLE_ESCAPES.get(seq, seq)

    return _ESCAPE_RE.sub(_sub, body)


def to_python_literal(raw: str) -> str:
    """
    Render one isolated literal as Python source.

    Strings become Python string literals with the same value; pattern
    literals become `_pattern_(body, flags)` calls.
    """
    if raw.startswith("/"):
        end = raw.rindex("/")
        return f"_pattern_({raw[1:end]!r}, {raw[end + 1:]!r})"
    return repr(_unescape(raw[1:-1]))
