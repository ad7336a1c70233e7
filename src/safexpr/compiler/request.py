# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""Validated compile request: what the cache is keyed on."""

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..api.errors import ExpressionTypeError
from .scope import is_identifier, is_reserved

VALUE_NAME = "_value_"


class CompileRequest(BaseModel):
    """One `parse`/`parse_setter` call after input validation."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    expression: str
    args: tuple[str, ...] = ()
    setter: bool = False

    @field_validator("args")
    @classmethod
    def _check_args(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for name in v:
            if not is_identifier(name):
                raise ValueError(f"invalid argument name {name!r}")
            if name != VALUE_NAME and is_reserved(name):
                raise ValueError(f"argument name is reserved: {name!r}")
        if len(set(v)) != len(v):
            raise ValueError("duplicate argument names")
        return v

    @property
    def cache_key(self) -> tuple[str, tuple[str, ...], bool]:
        return (self.expression, self.args, self.setter)

    @classmethod
    def of(cls, expression: Any, args: Iterable[Any] = (), *, setter: bool = False) -> CompileRequest:
        """Build a request or raise ExpressionTypeError describing the bad input."""
        try:
            return cls(expression=expression, args=tuple(args), setter=setter)
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
            raise ExpressionTypeError(f"invalid compile request ({problems})") from e
