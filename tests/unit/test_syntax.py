from __future__ import annotations

import pytest

from safexpr.api.errors import ExpressionSyntaxError
from safexpr.compiler.syntax import Node, parse_surface, tokenize

pytestmark = [pytest.mark.unit]


def name(n):
    return Node("NAME", n)


def test_tokenize_kinds():
    kinds = [t.kind for t in tokenize("a.b + 1 == '' && //")]
    assert kinds == ["IDENT", "OP", "IDENT", "OP", "NUMBER", "OP", "STRING", "OP", "PATTERN"]


def test_member_index_and_call_chain():
    tree = parse_surface("a.b[c](d)")
    assert tree == Node(
        "CALL",
        children=(Node("INDEX", children=(Node("MEMBER", "b", (name("a"),)), name("c"))), name("d")),
    )


def test_logical_precedence():
    assert parse_surface("a || b && c") == Node(
        "LOGICAL", "||", (name("a"), Node("LOGICAL", "&&", (name("b"), name("c"))))
    )


def test_arithmetic_precedence_and_associativity():
    assert parse_surface("1 + 2 * 3") == Node(
        "BINARY", "+", (Node("NUM", "1"), Node("BINARY", "*", (Node("NUM", "2"), Node("NUM", "3"))))
    )
    assert parse_surface("a - b - c") == Node(
        "BINARY", "-", (Node("BINARY", "-", (name("a"), name("b"))), name("c"))
    )


def test_assignment_is_right_associative():
    assert parse_surface("a = b = c") == Node("ASSIGN", children=(name("a"), Node("ASSIGN", children=(name("b"), name("c")))))


def test_unary_and_typeof():
    assert parse_surface("!a") == Node("UNARY", "!", (name("a"),))
    assert parse_surface("typeof a.b") == Node("UNARY", "typeof", (Node("MEMBER", "b", (name("a"),)),))


def test_ternary():
    assert parse_surface("a ? b : c") == Node("COND", children=(name("a"), name("b"), name("c")))


def test_constants_and_this():
    assert parse_surface("null") == Node("CONST", "None")
    assert parse_surface("undefined") == Node("CONST", "None")
    assert parse_surface("true") == Node("CONST", "True")
    assert parse_surface("this") == Node("THIS")


@pytest.mark.parametrize(("text", "expected"), [("0x1F", "31"), ("007", "7"), ("5.", "5.0"), ("1.5e3", "1.5e3")])
def test_numbers_become_python_numbers(text, expected):
    assert parse_surface(text) == Node("NUM", expected)


def test_object_literal_keys_and_shorthand():
    tree = parse_surface("{a, '': 1, 2: c,}")
    assert tree.kind == "OBJECT"
    assert tree.value == ("'a'", "''", "'2'")
    assert tree.children == (name("a"), Node("NUM", "1"), name("c"))


def test_array_literal():
    assert parse_surface("[a, 1]") == Node("ARRAY", children=(name("a"), Node("NUM", "1")))
    assert parse_surface("[]") == Node("ARRAY")


@pytest.mark.parametrize(
    "text",
    ["", "a +", "1 = 2", "f() = 1", "a..b", "a @ b", "{1}", "(a", "a b"],
)
def test_syntax_errors(text):
    with pytest.raises(ExpressionSyntaxError):
        parse_surface(text)


def test_syntax_error_carries_position():
    with pytest.raises(ExpressionSyntaxError) as ei:
        parse_surface("a @ b")
    assert ei.value.position == 2
    assert "position 2" in str(ei.value)
