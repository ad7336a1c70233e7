# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Property-chain rewriting: surface AST -> null-safe Python source.

Each bare identifier is resolved through the scope table; every chained link
(`.name`, `[key]`, `(args)`) applied to a value that may be missing is guarded,
so a missing intermediate turns the whole chain into None instead of raising:

    foo.bar   -> (None if (_ref1 := _get_(this, 'foo')) is None else _get_(_ref1, 'bar'))
    foo(bar)  -> (None if not _callable_(_ref1 := _get_(this, 'foo')) else _ref1(_get_(this, 'bar')))

A value tested and then used again is bound once to a reference temporary
(`_refN`); the temporaries are declared together on the first line of the
generated body. Plain parameters are tested in place, and known-present roots
(the binding context, globals, the formatters mapping) are not tested at all.

In an assignment the last link becomes a `_set_` call behind the same guards,
so a failed guard skips the write entirely.
"""

import re

from ..api.errors import ExpressionSyntaxError
from .scope import GLOBALS_NAME, Binding, Scope
from .syntax import LINK_KINDS, Node, parse_surface

__all__ = ["rewrite", "substitute_keywords"]

_WORD_OPS = {"and": "&&", "or": "||"}
_WORD_OPS_RE = re.compile(r"(?<![\w$.])(and|or)(?![\w$])")

_PY_OPS = {"===": "==", "!==": "!="}

# operators whose operands may be missing go through runtime helpers
_HELPER_OPS = {
    "+": "_add_",
    "-": "_sub_",
    "*": "_mul_",
    "/": "_div_",
    "%": "_mod_",
    "<": "_lt_",
    ">": "_gt_",
    "<=": "_le_",
    ">=": "_ge_",
}
_UNARY_HELPERS = {"-": "_neg_", "+": "_pos_", "typeof": "_typeof_"}

# roots that can never evaluate to None
_NON_NULL = frozenset({"ARRAY", "OBJECT", "STR", "NUM", "PATTERN"})


def substitute_keywords(text: str) -> str:
    """Replace the word operators `and` / `or` with `&&` / `||` (whole words only)."""
    return _WORD_OPS_RE.sub(lambda m: _WORD_OPS[m.group(1)], text)


class _Emitter:
    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        self.refs = 0

    def temp(self) -> str:
        self.refs += 1
        return f"_ref{self.refs}"

    def declarations(self) -> str:
        return " = ".join(f"_ref{i}" for i in range(1, self.refs + 1)) + " = None"

    # ---- expressions

    def emit(self, node: Node) -> str:
        k = node.kind
        if k in ("NUM", "STR", "PATTERN", "CONST"):
            return node.value
        if k == "THIS":
            return "this"
        if k == "NAME" or k in LINK_KINDS:
            return self.chain(node)
        if k == "ARRAY":
            return "[" + ", ".join(self.emit(c) for c in node.children) + "]"
        if k == "OBJECT":
            pairs = (f"{key}: {self.emit(v)}" for key, v in zip(node.value, node.children))
            return "{" + ", ".join(pairs) + "}"
        if k == "UNARY":
            operand = self.emit(node.children[0])
            if node.value == "!":
                return f"(not {operand})"
            return f"{_UNARY_HELPERS[node.value]}({operand})"
        if k == "LOGICAL":
            left, right = (self.emit(c) for c in node.children)
            return f"({left} {'and' if node.value == '&&' else 'or'} {right})"
        if k == "BINARY":
            left, right = (self.emit(c) for c in node.children)
            if node.value in _HELPER_OPS:
                return f"{_HELPER_OPS[node.value]}({left}, {right})"
            return f"({left} {_PY_OPS.get(node.value, node.value)} {right})"
        if k == "COND":
            # test is bound first so the emitted text keeps source order
            ref = self.temp()
            test, then, otherwise = (self.emit(c) for c in node.children)
            return f"(({ref} := {test}), ({then} if {ref} else {otherwise}))[1]"
        if k == "ASSIGN":
            return self.chain(node.children[0], assign=node.children[1])
        raise ExpressionSyntaxError(f"unsupported node {k}")

    # ---- chains

    def chain(self, node: Node, assign: Node | None = None) -> str:
        links: list[Node] = []
        root = node
        while root.kind in LINK_KINDS:
            links.append(root)
            root = root.children[0]
        links.reverse()

        if root.kind == "NAME":
            name = root.value
            binding = self.scope.classify(name)
            if binding is Binding.CONTEXT:
                links.insert(0, Node("MEMBER", name, (Node("THIS"),)))
                code, safe, simple = "this", True, True
            elif binding is Binding.ARGUMENT:
                code, safe, simple = self.scope.param(name), False, True
            elif binding is Binding.GLOBAL:
                code, safe, simple = f"{GLOBALS_NAME}[{name!r}]", True, False
            else:
                code, safe, simple = name, True, True

            if not links and assign is not None:
                if binding is Binding.ARGUMENT:
                    return f"({code} := {self.emit(assign)})"
                if binding is Binding.GLOBAL:
                    return f"_set_({GLOBALS_NAME}, {name!r}, {self.emit(assign)})"
                raise ExpressionSyntaxError(f"cannot assign to {name!r}")
        elif root.kind == "THIS":
            code, safe, simple = "this", True, True
        else:
            code, safe, simple = self.emit(root), root.kind in _NON_NULL, False

        return self.links(code, safe, simple, links, assign)

    def links(self, code: str, safe: bool, simple: bool, links: list[Node], assign: Node | None) -> str:
        if not links:
            return code
        link, rest = links[0], links[1:]
        final = not rest and assign is not None

        if link.kind == "CALL":
            if final:
                raise ExpressionSyntaxError("cannot assign to the result of a call")
            if simple:
                ref, test = code, f"not _callable_({code})"
            else:
                ref = self.temp()
                test = f"not _callable_({ref} := {code})"
            args = ", ".join(self.emit(a) for a in link.children[1:])
            inner = self.links(f"{ref}({args})", False, False, rest, assign)
            return f"(None if {test} else {inner})"

        if safe or simple:
            ref = code
            guard = None if safe else f"{code} is None"
        else:
            ref = self.temp()
            guard = f"({ref} := {code}) is None"

        key = repr(link.value) if link.kind == "MEMBER" else self.emit(link.children[1])
        if final:
            inner = f"_set_({ref}, {key}, {self.emit(assign)})"
        else:
            inner = self.links(f"_get_({ref}, {key})", False, False, rest, assign)
        return inner if guard is None else f"(None if {guard} else {inner})"


def rewrite(text: str, scope: Scope) -> str:
    """
    Rewrite literal-isolated, formatter-desugared text into a Python body.

    The result is one expression line, preceded by a declaration line when
    reference temporaries were needed. Raises ExpressionSyntaxError when the
    text cannot be parsed.
    """
    tree = parse_surface(substitute_keywords(text))
    emitter = _Emitter(scope)
    body = emitter.emit(tree)
    if emitter.refs:
        return f"{emitter.declarations()}\n{body}"
    return body
