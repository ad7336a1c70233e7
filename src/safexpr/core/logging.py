from __future__ import annotations

"""
safexpr.core.logging
====================

Structured logging for the compiler, silent unless an application opts in:
- Compile context (expression, mode) carried through contextvars.
- JSON formatter for machines; human formatter for local debugging.
- LoggerAdapter that accepts arbitrary keyword fields.
- Helpers to enable/disable stdout logging and set levels.
"""

import contextvars
import json
import logging
import os
import sys
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, ClassVar, Final

__all__ = [
    "bind_context",
    "configure_from_env",
    "disable_stdout_logging",
    "enable_stdout_logging",
    "get_logger",
    "log_context",
    "set_level",
    "warn_once",
]

# ---------- Context ----------

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar("safexpr_log_ctx", default=None)


def _ctx_copy() -> dict[str, Any]:
    ctx = _log_context.get()
    return dict(ctx) if ctx else {}


def bind_context(**fields: Any) -> None:
    """
    Merge fields into the current structured log context.
    Use from long-lived code (e.g., once per application or test session).
    """
    ctx = _ctx_copy()
    ctx.update({k: v for k, v in fields.items() if v is not None})
    _log_context.set(ctx)


@contextmanager
def log_context(**fields: Any):
    """
    Temporarily add fields to the structured log context.
    Restores the previous context on exit.
    """
    token = _log_context.set({**_ctx_copy(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------- Formatters ----------

_STD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "asctime",
    }
)


def _iso_utc_ms(ts: float) -> str:
    dt = datetime.fromtimestamp(ts, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _exc_tuple(record: logging.LogRecord):
    if isinstance(record.exc_info, BaseException):
        e = record.exc_info
        return (type(e), e, e.__traceback__)
    if record.exc_info is True:
        return sys.exc_info()
    if isinstance(record.exc_info, tuple):
        return record.exc_info
    return None


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record with:
      - ts, level, logger, message
      - the current log context (expression, mode, ...)
      - extra=... fields (non-standard LogRecord attributes)
      - error type/message (and stack when enabled)
    """

    def __init__(self, *, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": _iso_utc_ms(record.created),
            "level": record.levelname,
            "logger": record.name,
        }

        msg = record.getMessage()
        if msg:
            out["message"] = msg

        ctx = _log_context.get()
        if ctx:
            out.update(ctx)

        for k, v in record.__dict__.items():
            if k in _STD_ATTRS:
                continue
            if k not in out:
                out[k] = v

        exc = _exc_tuple(record) if record.exc_info else None
        if exc:
            out["error"] = {
                "type": exc[0].__name__ if exc[0] else "Exception",
                "message": str(exc[1]) if exc[1] else None,
            }
            if self.include_stack:
                out["error"]["stack"] = self.formatException(exc)

        return json.dumps(out, ensure_ascii=False, separators=(",", ":"), default=repr)


class HumanFormatter(logging.Formatter):
    """Compact human-friendly formatter for local debugging."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"

    def format(self, record: logging.LogRecord) -> str:
        s = f"{self.formatTime(record)} {record.levelname:<5} {record.name}: {record.getMessage()}"
        ctx = _log_context.get()
        if ctx:
            keys = ("mode", "expression")
            compact = {k: ctx.get(k) for k in keys if ctx.get(k) is not None}
            if compact:
                parts = ", ".join(f"{k}={v!r}" for k, v in compact.items())
                s += f"  [{parts}]"
        exc = _exc_tuple(record) if record.exc_info else None
        if exc:
            s += "\n" + self.formatException(exc)
        return s


# ---------- Filters / adapter ----------


class ContextFilter(logging.Filter):
    """Inject current log context into LogRecord for downstream handlers."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _log_context.get()
        if ctx:
            for k, v in ctx.items():
                if k not in record.__dict__:
                    record.__dict__[k] = v
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


class _KwExtraAdapter(logging.LoggerAdapter):
    """
    Logger adapter that moves unknown kwargs into `extra={...}`:

        log.debug("compiled", event="expr.compile", args=["item"])
    """

    _allowed_passthrough: ClassVar[frozenset[str]] = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

    def process(self, msg, kwargs):
        extra = kwargs.get("extra")
        if not isinstance(extra, dict):
            extra = {}

        for k in list(kwargs.keys()):
            if k in self._allowed_passthrough:
                continue
            v = kwargs.pop(k)
            key = f"field_{k}" if k in _STD_ATTRS else k
            extra.setdefault(key, v)

        kwargs["extra"] = extra
        return msg, kwargs


_WARN_ONCE_SEEN: set[str] = set()
_WARN_ONCE_LOCK = threading.Lock()


def warn_once(
    logger: logging.Logger | logging.LoggerAdapter,
    code: str,
    msg: str,
    *,
    level: int = logging.WARNING,
    **extra: Any,
) -> None:
    """Log a message only once per process for the given code."""
    with _WARN_ONCE_LOCK:
        if code in _WARN_ONCE_SEEN:
            return
        _WARN_ONCE_SEEN.add(code)
    adapter = logger if isinstance(logger, logging.LoggerAdapter) else _KwExtraAdapter(logger, {})
    adapter.log(level, msg, code=code, **extra)


# ---------- Public configuration API ----------

_SAFEXPR_LOGGER_NAME = "safexpr"
_configured = False
_stdout_handler_key = "_safexpr_stdout_handler"
_stderr_handler_key = "_safexpr_stderr_handler"


def _bootstrap_minimal() -> None:
    """Install a NullHandler and a context filter to keep the library silent by default."""
    global _configured
    if _configured:
        return
    lg = logging.getLogger(_SAFEXPR_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in lg.handlers):
        lg.addHandler(logging.NullHandler())
    if not any(isinstance(f, ContextFilter) for f in lg.filters):
        lg.addFilter(ContextFilter())
    _configured = True


def get_logger(name: str | None = None) -> logging.LoggerAdapter:
    """
    Return a namespaced logger adapter that accepts arbitrary keyword fields.
    The base logger is silent by default; call `enable_stdout_logging()` in apps/tests.
    """
    _bootstrap_minimal()
    base = logging.getLogger(_SAFEXPR_LOGGER_NAME)
    target = base.getChild(name) if name else base
    return _KwExtraAdapter(target, {})


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        val = getattr(logging, level.upper(), None)
        if isinstance(val, int):
            return val
    raise ValueError("Invalid level name")


def set_level(level: int | str) -> None:
    """Change library logger level at runtime (affects all children)."""
    logging.getLogger(_SAFEXPR_LOGGER_NAME).setLevel(_resolve_level(level))


def enable_stdout_logging(
    *,
    level: int | str = logging.DEBUG,
    json_output: bool = True,
    include_stack: bool = False,
    pretty: bool = False,
    route_errors_to_stderr: bool = False,
) -> None:
    """
    Attach stream handlers for tests/local runs.

    - json_output=True -> JsonFormatter; pretty=True -> HumanFormatter
    - route_errors_to_stderr=True -> ERROR+ to stderr, others to stdout
    """
    lvl = _resolve_level(level)
    _bootstrap_minimal()
    lg = logging.getLogger(_SAFEXPR_LOGGER_NAME)
    lg.setLevel(lvl)

    disable_stdout_logging()

    fmt: logging.Formatter
    if pretty:
        fmt = HumanFormatter()
    elif json_output:
        fmt = JsonFormatter(include_stack=include_stack)
    else:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    h_out = logging.StreamHandler(sys.stdout)
    h_out.set_name(_stdout_handler_key)
    h_out.setLevel(lvl)
    h_out.setFormatter(fmt)
    lg.addHandler(h_out)

    if route_errors_to_stderr:
        h_out.addFilter(_MaxLevelFilter(logging.WARNING))
        h_err = logging.StreamHandler(sys.stderr)
        h_err.set_name(_stderr_handler_key)
        h_err.setLevel(max(lvl, logging.ERROR))
        h_err.setFormatter(fmt)
        lg.addHandler(h_err)


def disable_stdout_logging() -> None:
    """Detach previously installed stdout/stderr handlers, if present."""
    lg = logging.getLogger(_SAFEXPR_LOGGER_NAME)
    for h in list(lg.handlers):
        if h.get_name() in (_stdout_handler_key, _stderr_handler_key):
            lg.removeHandler(h)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes", "on")


def configure_from_env() -> None:
    """
    Optional convenience config for apps/tests.

    Env:
      - SAFEXPR_LOG_STDOUT=1|true
      - SAFEXPR_LOG_LEVEL=DEBUG|INFO|...
      - SAFEXPR_LOG_PRETTY=1
      - SAFEXPR_LOG_STACK=1
    """
    level = os.getenv("SAFEXPR_LOG_LEVEL", "WARNING")
    pretty = _env_flag("SAFEXPR_LOG_PRETTY")

    _bootstrap_minimal()
    set_level(level)

    if _env_flag("SAFEXPR_LOG_STDOUT"):
        enable_stdout_logging(
            level=level, json_output=not pretty, include_stack=_env_flag("SAFEXPR_LOG_STACK"), pretty=pretty
        )
    else:
        disable_stdout_logging()


# Initialize minimal config on import (silent by default).
_bootstrap_minimal()
