from __future__ import annotations

import pydantic
import pytest

from safexpr.api.errors import ExpressionTypeError
from safexpr.compiler.request import CompileRequest

pytestmark = [pytest.mark.unit]


def test_valid_request_and_cache_key():
    req = CompileRequest.of("a.b", ["x", "$i"])
    assert req.args == ("x", "$i")
    assert req.cache_key == ("a.b", ("x", "$i"), False)
    assert CompileRequest.of("a.b", ("x", "$i")).cache_key == req.cache_key


def test_setter_requests_have_their_own_key():
    getter = CompileRequest.of("a = _value_", ["_value_"])
    setter = CompileRequest.of("a = _value_", ["_value_"], setter=True)
    assert getter.cache_key != setter.cache_key


@pytest.mark.parametrize(
    ("expression", "args"),
    [(5, ()), (None, ()), (b"a", ()), ("a", ("1x",)), ("a", ("this",)), ("a", ("x", "x")), ("a", (3,)), ("a", ("$index", "_arg0_")), ("a", ("_callable_",))],
)
def test_invalid_requests(expression, args):
    with pytest.raises(ExpressionTypeError):
        CompileRequest.of(expression, args)


def test_requests_are_frozen():
    req = CompileRequest.of("a")
    with pytest.raises(pydantic.ValidationError):
        req.expression = "b"
