# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Function builder.

Turns a transformed body into a Python function

    def expression(this, _globals_, _formatters_, <extra args>):
        <body>

and wraps it in a `CompiledExpression` that supplies `_globals_` and
`_formatters_`, so callers only pass the binding context and the extra
arguments. In getter mode the last body line is returned; setter bodies are
plain statements.
"""

import textwrap
from collections.abc import Callable, Mapping
from types import MethodType
from typing import Any

from ..api.errors import ExpressionCompileError
from ..runtime.helpers import RUNTIME_HELPERS

__all__ = ["CompiledExpression", "build"]


class CompiledExpression:
    """
    A compiled expression bound to its globals and formatters.

    Call it with the binding context first, then the extra arguments (for
    setters: the value to assign, then the extra arguments). Stored as a class
    attribute it behaves like a method: the instance becomes the context.
    """

    __slots__ = ("_func", "globals", "formatters", "expression", "source", "args", "setter")

    def __init__(
        self,
        func: Callable[..., Any],
        globals_: Mapping[str, Any],
        formatters: Mapping[str, Any],
        *,
        expression: str,
        source: str,
        args: tuple[str, ...],
        setter: bool,
    ) -> None:
        self._func = func
        self.globals = globals_
        self.formatters = formatters
        self.expression = expression
        self.source = source
        self.args = args
        self.setter = setter

    def __call__(self, this: Any = None, *args: Any) -> Any:
        return self._func(this, self.globals, self.formatters, *args)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return MethodType(self, instance)

    def __repr__(self) -> str:
        kind = "setter" if self.setter else "getter"
        return f"<CompiledExpression {kind} {self.expression!r}>"


def build(
    original: str,
    transformed: str,
    globals_: Mapping[str, Any],
    formatters: Mapping[str, Any],
    params: list[str],
    *,
    args: tuple[str, ...] = (),
    setter: bool = False,
    name: str = "expression",
) -> CompiledExpression:
    """
    Compile `transformed` into a callable.

    `params` are the Python parameter names of the extra arguments (defaulting
    to None when the caller omits them); `args` are their surface names.
    Raises ExpressionCompileError when the body is not valid Python.
    """
    lines = transformed.split("\n")
    if not setter:
        lines[-1] = f"return {lines[-1]}"
    body = "\n".join(lines)

    signature = ", ".join(["this", "_globals_", "_formatters_", *(f"{p}=None" for p in params)])
    source = f"def {name}({signature}):\n{textwrap.indent(body, '    ')}\n"

    try:
        code = compile(source, f"<expression {original!r}>", "exec")
    except SyntaxError as e:
        raise ExpressionCompileError(original, body, f"SyntaxError: {e.msg}") from e

    namespace: dict[str, Any] = dict(RUNTIME_HELPERS)
    exec(code, namespace)
    return CompiledExpression(
        namespace[name],
        globals_,
        formatters,
        expression=original,
        source=body,
        args=args,
        setter=setter,
    )
