# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
Compilation stages.

ExpressionCompiler lives in `safexpr.compiler.pipeline` and is exported from
the top-level `safexpr` package.
"""

from .literals import LiteralTable
from .scope import Binding, Scope

__all__ = ["Binding", "LiteralTable", "Scope"]
