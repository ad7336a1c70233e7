from __future__ import annotations

"""
safexpr: null-safe expression compiler.

    from safexpr import parse, parse_setter

    get_name = parse("user.name | upper", None, {"upper": str.upper})
    get_name({"user": {"name": "jacob"}})   # 'JACOB'
    get_name({})                            # None

The module-level `parse` / `parse_setter` use a shared default compiler;
construct an `ExpressionCompiler` for an isolated cache and globals registry.
"""

# Runtime package version, provided by setuptools_scm during build.
try:
    # created at build time by setuptools_scm (see [tool.setuptools_scm].write_to)
    from ._version import __version__
except Exception:  # pragma: no cover
    # fallback for editable installs / missing file
    try:
        from importlib.metadata import version as _pkg_version

        __version__ = _pkg_version("safexpr")
    except Exception:
        __version__ = "0.0.0"

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from .api.errors import (
    ExpressionCompileError,
    ExpressionError,
    ExpressionSyntaxError,
    ExpressionTypeError,
    PipelineStateError,
    RegistryError,
)
from .api.registry import GlobalsRegistry
from .compiler.builder import CompiledExpression
from .compiler.literals import LiteralTable
from .compiler.pipeline import ExpressionCompiler
from .core.config import CompilerConfig
from .runtime.helpers import pass_context

_default: ExpressionCompiler | None = None
_default_lock = threading.Lock()


def default_compiler() -> ExpressionCompiler:
    """Process-wide compiler used by the module-level helpers (created on first use)."""
    global _default
    with _default_lock:
        if _default is None:
            _default = ExpressionCompiler(CompilerConfig.load())
        return _default


def globals_registry() -> GlobalsRegistry:
    """Default globals of the process-wide compiler."""
    return default_compiler().globals


def parse(
    expression: str,
    globals: Mapping[str, Any] | None = None,
    formatters: Mapping[str, Any] | None = None,
    *args: str | Iterable[str],
) -> CompiledExpression:
    return default_compiler().parse(expression, globals, formatters, *args)


def parse_setter(
    expression: str,
    globals: Mapping[str, Any] | None = None,
    formatters: Mapping[str, Any] | None = None,
    *args: str | Iterable[str],
) -> CompiledExpression:
    return default_compiler().parse_setter(expression, globals, formatters, *args)


__all__ = [
    "CompiledExpression",
    "CompilerConfig",
    "ExpressionCompileError",
    "ExpressionCompiler",
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionTypeError",
    "GlobalsRegistry",
    "LiteralTable",
    "PipelineStateError",
    "RegistryError",
    "__version__",
    "default_compiler",
    "globals_registry",
    "parse",
    "parse_setter",
    "pass_context",
]
