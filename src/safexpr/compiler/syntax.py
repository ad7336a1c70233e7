# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

r"""
Surface syntax: tokenizer, AST and recursive-descent parser.

Grammar (EBNF-ish), over literal-isolated text:
  assign     := ternary [ "=" assign ]
  ternary    := or_expr [ "?" assign ":" assign ]
  or_expr    := and_expr { "||" and_expr }*
  and_expr   := equality { "&&" equality }*
  equality   := relation { ("==" | "!=" | "===" | "!==") relation }*
  relation   := additive { ("<" | ">" | "<=" | ">=") additive }*
  additive   := term { ("+" | "-") term }*
  term       := unary { ("*" | "/" | "%") unary }*
  unary      := ("!" | "-" | "+" | "typeof") unary | postfix
  postfix    := primary { "." name | "[" assign "]" | "(" [arglist] ")" }*
  primary    := number | string | pattern | keyword | identifier
              | "(" assign ")" | "[" [arglist] "]" | "{" [props] "}"
  props      := prop { "," prop }* [","]
  prop       := (identifier | string | number) [ ":" assign ]

String and pattern literals only appear as empty placeholders here.
"""

import re
from dataclasses import dataclass
from typing import Any

from ..api.errors import ExpressionSyntaxError

__all__ = ["LINK_KINDS", "Node", "parse_surface", "tokenize"]

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("NUMBER", r"0[xX][0-9a-fA-F]+|(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?"),
    ("STRING", r"''|\"\""),
    ("PATTERN", r"//"),
    ("IDENT", r"[A-Za-z_$][A-Za-z0-9_$]*"),
    ("OP", r"===|!==|==|!=|<=|>=|&&|\|\||[-+*/%<>!?:.,()\[\]{}=]"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))

_CONSTANTS = {"true": "True", "false": "False", "null": "None", "undefined": "None"}

# postfix links of a property chain
LINK_KINDS = frozenset({"MEMBER", "INDEX", "CALL"})


@dataclass(frozen=True)
class _Tok:
    kind: str
    value: str
    pos: int


def tokenize(text: str) -> list[_Tok]:
    out: list[_Tok] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise ExpressionSyntaxError(f"unexpected character {text[pos]!r}", position=pos)
        kind = m.lastgroup or ""
        if kind != "WS":
            out.append(_Tok(kind, m.group(kind), pos))
        pos = m.end()
    return out


# ---- AST


@dataclass(frozen=True)
class Node:
    """
    Immutable AST node.

    kind      value                      children
    NUM       python number text         ()
    STR       placeholder ('' or "")     ()
    PATTERN   placeholder (//)           ()
    CONST     True / False / None        ()
    THIS      -                          ()
    NAME      identifier                 ()
    ARRAY     -                          items
    OBJECT    tuple of key source        values
    MEMBER    property name              (object,)
    INDEX     -                          (object, key)
    CALL      -                          (callee, *args)
    UNARY     operator                   (operand,)
    BINARY    operator                   (left, right)
    LOGICAL   && / ||                    (left, right)
    COND      -                          (test, then, otherwise)
    ASSIGN    -                          (target, value)
    """

    kind: str
    value: Any = None
    children: tuple[Node, ...] = ()


# ---- recursive descent parser


class _Parser:
    def __init__(self, tokens: list[_Tok], length: int):
        self.toks = tokens
        self.i = 0
        self.length = length

    def peek(self) -> _Tok:
        if self.i >= len(self.toks):
            return _Tok("EOF", "", self.length)
        return self.toks[self.i]

    def at(self, *values: str) -> bool:
        t = self.peek()
        return t.kind == "OP" and t.value in values

    def eat(self, value: str | None = None, *, kind: str | None = None) -> _Tok:
        t = self.peek()
        if value is not None and not (t.kind == "OP" and t.value == value):
            raise ExpressionSyntaxError(f"expected {value!r}, got {t.value or t.kind!r}", position=t.pos)
        if kind is not None and t.kind != kind:
            raise ExpressionSyntaxError(f"expected {kind.lower()}, got {t.value or t.kind!r}", position=t.pos)
        self.i += 1
        return t

    def parse(self) -> Node:
        if not self.toks:
            raise ExpressionSyntaxError("empty expression", position=0)
        node = self.parse_assign()
        t = self.peek()
        if t.kind != "EOF":
            raise ExpressionSyntaxError(f"unexpected {t.value!r}", position=t.pos)
        return node

    def parse_assign(self) -> Node:
        node = self.parse_ternary()
        if self.at("="):
            t = self.eat("=")
            if node.kind not in ("NAME", "MEMBER", "INDEX"):
                raise ExpressionSyntaxError("invalid assignment target", position=t.pos)
            return Node("ASSIGN", children=(node, self.parse_assign()))
        return node

    def parse_ternary(self) -> Node:
        node = self.parse_binary(0)
        if self.at("?"):
            self.eat("?")
            then = self.parse_assign()
            self.eat(":")
            otherwise = self.parse_assign()
            return Node("COND", children=(node, then, otherwise))
        return node

    # lowest to highest precedence; each level is left-associative
    _LEVELS: tuple[tuple[str, frozenset[str]], ...] = (
        ("LOGICAL", frozenset({"||"})),
        ("LOGICAL", frozenset({"&&"})),
        ("BINARY", frozenset({"==", "!=", "===", "!=="})),
        ("BINARY", frozenset({"<", ">", "<=", ">="})),
        ("BINARY", frozenset({"+", "-"})),
        ("BINARY", frozenset({"*", "/", "%"})),
    )

    def parse_binary(self, level: int) -> Node:
        if level == len(self._LEVELS):
            return self.parse_unary()
        kind, ops = self._LEVELS[level]
        node = self.parse_binary(level + 1)
        while self.peek().kind == "OP" and self.peek().value in ops:
            op = self.eat().value
            rhs = self.parse_binary(level + 1)
            node = Node(kind, op, (node, rhs))
        return node

    def parse_unary(self) -> Node:
        t = self.peek()
        if self.at("!", "-", "+") or (t.kind == "IDENT" and t.value == "typeof"):
            self.eat()
            return Node("UNARY", t.value, (self.parse_unary(),))
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        while True:
            if self.at("."):
                self.eat(".")
                name = self.eat(kind="IDENT").value
                node = Node("MEMBER", name, (node,))
            elif self.at("["):
                self.eat("[")
                key = self.parse_assign()
                self.eat("]")
                node = Node("INDEX", children=(node, key))
            elif self.at("("):
                self.eat("(")
                args = self.parse_list(")")
                node = Node("CALL", children=(node, *args))
            else:
                return node

    def parse_list(self, close: str) -> list[Node]:
        items: list[Node] = []
        while not self.at(close):
            items.append(self.parse_assign())
            if not self.at(close):
                self.eat(",")
        self.eat(close)
        return items

    def parse_primary(self) -> Node:
        t = self.peek()
        if t.kind == "NUMBER":
            self.eat()
            return Node("NUM", _python_number(t.value))
        if t.kind == "STRING":
            self.eat()
            return Node("STR", t.value)
        if t.kind == "PATTERN":
            self.eat()
            return Node("PATTERN", t.value)
        if t.kind == "IDENT":
            self.eat()
            if t.value in _CONSTANTS:
                return Node("CONST", _CONSTANTS[t.value])
            if t.value == "this":
                return Node("THIS")
            return Node("NAME", t.value)
        if self.at("("):
            self.eat("(")
            node = self.parse_assign()
            self.eat(")")
            return node
        if self.at("["):
            self.eat("[")
            return Node("ARRAY", children=tuple(self.parse_list("]")))
        if self.at("{"):
            return self.parse_object()
        if t.kind == "EOF":
            raise ExpressionSyntaxError("unexpected end of expression", position=t.pos)
        raise ExpressionSyntaxError(f"unexpected {t.value!r}", position=t.pos)

    def parse_object(self) -> Node:
        self.eat("{")
        keys: list[str] = []
        values: list[Node] = []
        while not self.at("}"):
            t = self.eat()
            if t.kind == "IDENT":
                keys.append(repr(t.value))
                shorthand = Node("NAME", t.value)
            elif t.kind == "STRING":
                keys.append(t.value)
                shorthand = None
            elif t.kind == "NUMBER":
                keys.append(repr(_python_number(t.value)))
                shorthand = None
            else:
                raise ExpressionSyntaxError(f"invalid object key {t.value or t.kind!r}", position=t.pos)
            if self.at(":"):
                self.eat(":")
                values.append(self.parse_assign())
            elif shorthand is not None:
                values.append(shorthand)
            else:
                raise ExpressionSyntaxError("expected ':' after object key", position=self.peek().pos)
            if not self.at("}"):
                self.eat(",")
        self.eat("}")
        return Node("OBJECT", tuple(keys), tuple(values))


def _python_number(text: str) -> str:
    if text[:2] in ("0x", "0X"):
        return str(int(text, 16))
    if text.isdigit():
        # drops leading zeros, which Python rejects in integer literals
        return str(int(text))
    if text.endswith("."):
        return text + "0"
    return text


def parse_surface(text: str) -> Node:
    """Parse literal-isolated, formatter-desugared text into an AST."""
    return _Parser(tokenize(text), len(text)).parse()
