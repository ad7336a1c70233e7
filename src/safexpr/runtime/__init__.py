# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""Helpers and default host globals available to compiled expressions."""

from .defaults import default_globals
from .helpers import RUNTIME_HELPERS, pass_context

__all__ = ["RUNTIME_HELPERS", "default_globals", "pass_context"]
