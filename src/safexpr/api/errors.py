# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Error taxonomy for the safexpr public API.

Misuse and compile-time failures are raised by the compile entry points.
Exceptions raised by user code (context getters, formatters, globals) while a
compiled expression runs are never wrapped: they reach the caller unchanged.
"""


class ExpressionError(Exception):
    """Base class for all safexpr errors."""

    ...


class ExpressionTypeError(ExpressionError, TypeError):
    """The expression (or one of its extra argument names) has an invalid type or form."""

    ...


class PipelineStateError(ExpressionError):
    """
    Literal isolation and restoration were called out of order on one table
    (two isolations without a restore, or a restore with nothing pending).
    """

    ...


class ExpressionSyntaxError(ExpressionError, ValueError):
    """The surface text cannot be parsed."""

    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message if position is None else f"{message} at position {position}")
        self.position = position


class ExpressionCompileError(ExpressionError):
    """
    The transformed text could not be turned into a function.

    Carries the original expression, the transformed source and the underlying
    diagnostic so authors can debug the rewrite as well as their input.
    """

    def __init__(self, original: str, transformed: str, diagnostic: str) -> None:
        super().__init__(f"Bad expression: {original}\nCompiled expression:\n{transformed}\n{diagnostic}")
        self.original = original
        self.transformed = transformed
        self.diagnostic = diagnostic


class RegistryError(ExpressionError):
    """Raised when registration/lookup fails (invalid or reserved names, unknown entries)."""

    ...
