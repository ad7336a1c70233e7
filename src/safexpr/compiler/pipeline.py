# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
ExpressionCompiler: text -> CompiledExpression, memoized.

Each compile runs the stages in order on a fresh literal table:

    isolate literals -> desugar formatter pipes -> rewrite property chains
    -> restore literals (as Python literals) -> build the function

A compiler owns its cache and its globals registry; both are guarded by one
instance lock, so a compiler can be shared between threads. Compiled
expressions are immutable once cached.
"""

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from ..api.errors import ExpressionCompileError, ExpressionSyntaxError
from ..api.registry import GlobalsRegistry
from ..core.config import CompilerConfig
from ..core.logging import get_logger, log_context, warn_once
from ..runtime.defaults import default_globals
from .builder import CompiledExpression, build
from .chains import rewrite
from .formatters import desugar, find_pipe
from .literals import LiteralTable, to_python_literal
from .request import VALUE_NAME, CompileRequest
from .scope import Scope

__all__ = ["ExpressionCompiler", "setter_text"]

log = get_logger("compiler")

CacheKey = tuple[str, tuple[str, ...], bool]


def setter_text(expression: str) -> str:
    """
    Rewrite a getter expression into an assignment of `_value_`.

    The assignment goes before the first formatter pipe; a leading `!` turns
    into a negated assignment (`!done` -> `done = !_value_`).
    """
    value = VALUE_NAME
    text = expression.strip()
    if text.startswith("!") and not text.startswith("!="):
        text = text[1:].lstrip()
        value = f"!{VALUE_NAME}"
    i = find_pipe(text)
    if i is None:
        return f"{text} = {value}"
    return f"{text[:i].rstrip()} = {value} {text[i:]}"


def _normalize_args(args: tuple[Any, ...]) -> tuple[Any, ...]:
    # accept both parse(expr, g, f, "a", "b") and parse(expr, g, f, ["a", "b"])
    if len(args) == 1 and isinstance(args[0], (list, tuple)):
        return tuple(args[0])
    return args


class ExpressionCompiler:
    """Compiles expressions into cached, null-safe callables."""

    def __init__(self, config: CompilerConfig | None = None, *, globals_registry: GlobalsRegistry | None = None) -> None:
        self.config = config or CompilerConfig()
        if globals_registry is None:
            globals_registry = GlobalsRegistry(default_globals() if self.config.default_globals else None)
        self.globals = globals_registry
        self._cache: dict[CacheKey, CompiledExpression] = {}
        self._lock = threading.RLock()

    # ---- public API --------------------------------------------------------

    def parse(
        self,
        expression: str,
        globals: Mapping[str, Any] | None = None,
        formatters: Mapping[str, Any] | None = None,
        *args: str | Iterable[str],
    ) -> CompiledExpression:
        """Compile a getter. The callable returns the expression's value."""
        request = CompileRequest.of(expression, _normalize_args(args))
        return self._compile(request, globals, formatters)

    def parse_setter(
        self,
        expression: str,
        globals: Mapping[str, Any] | None = None,
        formatters: Mapping[str, Any] | None = None,
        *args: str | Iterable[str],
    ) -> CompiledExpression:
        """
        Compile a setter. The callable takes the value to assign after the
        binding context, followed by the extra arguments.
        """
        request = CompileRequest.of(expression, _normalize_args(args))
        setter = CompileRequest.of(setter_text(request.expression), (VALUE_NAME, *request.args), setter=True)
        return self._compile(setter, globals, formatters)

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # ---- internals ---------------------------------------------------------

    def _compile(
        self,
        request: CompileRequest,
        globals_: Mapping[str, Any] | None,
        formatters: Mapping[str, Any] | None,
    ) -> CompiledExpression:
        key = request.cache_key
        if self.config.cache_enabled:
            with self._lock:
                cached = self._cache.get(key)
            if cached is not None:
                self._check_bindings(cached, globals_, formatters)
                log.debug("cache hit", event="expr.cache.hit", expression=request.expression)
                return cached

        mode = "setter" if request.setter else "getter"
        with log_context(expression=request.expression, mode=mode):
            compiled = self._build(request, globals_, formatters)

        if not self.config.cache_enabled:
            return compiled
        with self._lock:
            # first writer wins so every caller sees the same instance
            return self._cache.setdefault(key, compiled)

    def _build(
        self,
        request: CompileRequest,
        globals_: Mapping[str, Any] | None,
        formatters: Mapping[str, Any] | None,
    ) -> CompiledExpression:
        merged = self.globals.snapshot()
        if globals_:
            merged.update(globals_)
        scope = Scope(merged, request.args)

        table = LiteralTable()
        text = table.isolate(request.expression)
        try:
            text = desugar(text)
            text = rewrite(text, scope)
        except ExpressionSyntaxError as e:
            log.warning("expression rejected", event="expr.compile.failed", error=str(e))
            raise ExpressionCompileError(request.expression, table.restore(text), str(e)) from e
        source = table.restore(text, render=to_python_literal)

        try:
            compiled = build(
                request.expression,
                source,
                merged,
                formatters if formatters is not None else {},
                scope.params,
                args=request.args,
                setter=request.setter,
                name=self.config.function_name,
            )
        except ExpressionCompileError as e:
            log.warning("expression rejected", event="expr.compile.failed", error=e.diagnostic)
            raise

        if self.config.log_source:
            log.debug("compiled", event="expr.compile", args=list(request.args), source=compiled.source)
        else:
            log.debug("compiled", event="expr.compile", args=list(request.args))
        return compiled

    def _check_bindings(
        self,
        cached: CompiledExpression,
        globals_: Mapping[str, Any] | None,
        formatters: Mapping[str, Any] | None,
    ) -> None:
        # the cache key ignores globals/formatters; flag callers that expect otherwise
        stale_globals = bool(globals_) and any(cached.globals.get(k) is not v for k, v in globals_.items())
        stale_formatters = formatters is not None and dict(formatters) != dict(cached.formatters)
        if stale_globals or stale_formatters:
            warn_once(
                log,
                f"expr.cache.globals_mismatch:{cached.expression}",
                "cached expression reused with different globals/formatters",
                event="expr.cache.globals_mismatch",
                expression=cached.expression,
            )
