# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
safexpr public extension API.

Re-exports the error taxonomy and the globals registry.
"""

from .errors import (
    ExpressionCompileError,
    ExpressionError,
    ExpressionSyntaxError,
    ExpressionTypeError,
    PipelineStateError,
    RegistryError,
)
from .registry import GlobalsRegistry

__all__ = [
    # errors
    "ExpressionError",
    "ExpressionTypeError",
    "PipelineStateError",
    "ExpressionSyntaxError",
    "ExpressionCompileError",
    "RegistryError",
    # registry
    "GlobalsRegistry",
]
