# conftest.py
from __future__ import annotations

import os
import uuid

import pytest

from safexpr.compiler.pipeline import ExpressionCompiler
from safexpr.core import logging as safexpr_logging
from safexpr.core.config import CompilerConfig
from safexpr.core.logging import (
    bind_context,
    configure_from_env,
    enable_stdout_logging,
    get_logger,
    log_context,
)


def pytest_configure(config):
    config.addinivalue_line("markers", "cfg(**overrides): per-test CompilerConfig overrides")


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit safexpr logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_safexpr_logging(request):
    configure_from_env()
    prefer_json = request.config.getoption("--log-json")
    # unless enabled through env, turn stdout logging on (human-readable by default)
    if os.getenv("SAFEXPR_LOG_STDOUT", "").lower() not in ("1", "true", "yes", "on"):
        enable_stdout_logging(
            level="DEBUG",
            json_output=prefer_json,
            pretty=not prefer_json,
            route_errors_to_stderr=True,
        )
    bind_context(role="pytest")


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(pytest_nodeid=request.node.nodeid, test=request.node.name, test_run=session_run_id):
        log.debug("pytest.test.start", event="pytest.test.start")
        yield


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    rep = outcome.get_result()
    if rep.when == "call":
        log = get_logger("test")
        with log_context(pytest_nodeid=item.nodeid, test=item.name):
            log.debug(
                "pytest.test.finish",
                event="pytest.test.finish",
                outcome=rep.outcome,
                duration=getattr(rep, "duration", None),
            )


@pytest.fixture(autouse=True)
def _reset_warn_once():
    safexpr_logging._WARN_ONCE_SEEN.clear()
    yield
    safexpr_logging._WARN_ONCE_SEEN.clear()


@pytest.fixture
def tlog():
    return get_logger("test")


@pytest.fixture
def compiler_cfg(request):
    m = request.node.get_closest_marker("cfg")
    overrides = dict(m.kwargs) if m else {}
    return CompilerConfig(**overrides)


@pytest.fixture
def compiler(compiler_cfg):
    """Fresh compiler per test: own cache, own globals registry."""
    return ExpressionCompiler(compiler_cfg)

