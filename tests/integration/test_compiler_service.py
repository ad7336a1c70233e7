from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

import safexpr
from safexpr import ExpressionCompiler, GlobalsRegistry
from tests.helpers import get_record_by_event, records_by_event

pytestmark = [pytest.mark.integration]


def test_identical_requests_share_one_callable(compiler):
    assert compiler.parse("a.b") is compiler.parse("a.b")
    assert compiler.parse("a", None, None, "x") is compiler.parse("a", None, None, ["x"])
    assert compiler.parse_setter("a") is compiler.parse_setter("a")


def test_differing_argument_lists_never_collide(compiler):
    plain = compiler.parse("a")
    with_x = compiler.parse("a", None, None, "x")
    with_xy = compiler.parse("a", None, None, "x", "y")
    assert len({id(plain), id(with_x), id(with_xy)}) == 3
    assert compiler.cache_size == 3


def test_clear_cache(compiler):
    first = compiler.parse("a")
    compiler.clear_cache()
    assert compiler.cache_size == 0
    assert compiler.parse("a") is not first


@pytest.mark.cfg(cache_enabled=False)
def test_cache_can_be_disabled(compiler):
    assert compiler.parse("a") is not compiler.parse("a")
    assert compiler.cache_size == 0


@pytest.mark.cfg(default_globals=False)
def test_default_globals_can_be_disabled(compiler):
    assert "Math" not in compiler.globals
    assert compiler.parse("Math")({"Math": "ctx"}) == "ctx"


def test_injected_registry():
    reg = GlobalsRegistry({"answer": 42})
    c = ExpressionCompiler(globals_registry=reg)
    assert c.globals is reg
    assert c.parse("answer")({"answer": 0}) == 42


def test_compilers_are_isolated():
    c1, c2 = ExpressionCompiler(), ExpressionCompiler()
    c1.globals.register("only_here", 1)
    assert c1.parse("only_here")() == 1
    assert c2.parse("only_here")() is None
    assert c1.parse("x") is not c2.parse("x")


def test_concurrent_compiles_return_the_same_instance(compiler):
    barrier = threading.Barrier(8)

    def work(_):
        barrier.wait()
        return compiler.parse("user.address.city | upper", None, None, "extra")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(8)))
    assert len({id(r) for r in results}) == 1
    assert compiler.cache_size == 1


def test_concurrent_evaluation(compiler):
    get = compiler.parse("a.b + n", None, None, "n")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda n: get({"a": {"b": 1}}, n), range(100)))
    assert results == [n + 1 for n in range(100)]


def test_module_level_helpers():
    assert safexpr.default_compiler() is safexpr.default_compiler()
    assert safexpr.globals_registry() is safexpr.default_compiler().globals
    assert safexpr.parse("name")({"name": "Jacob"}) == "Jacob"
    ctx = {}
    safexpr.parse_setter("name")(ctx, "Jac")
    assert ctx == {"name": "Jac"}


# ---- logging


def test_compile_and_cache_hit_events(compiler, caplog):
    caplog.set_level("DEBUG", logger="safexpr")
    compiler.parse("a.b")
    compiler.parse("a.b")
    rec = get_record_by_event(caplog, "expr.compile")
    assert rec.field_args == []
    assert not hasattr(rec, "source")
    assert get_record_by_event(caplog, "expr.cache.hit").expression == "a.b"


@pytest.mark.cfg(log_source=True)
def test_generated_source_is_logged_when_enabled(compiler, caplog):
    caplog.set_level("DEBUG", logger="safexpr")
    compiled = compiler.parse("a.b")
    assert get_record_by_event(caplog, "expr.compile").source == compiled.source


def test_failed_compile_is_logged(compiler, caplog):
    caplog.set_level("DEBUG", logger="safexpr")
    with pytest.raises(safexpr.ExpressionCompileError):
        compiler.parse("a +")
    rec = get_record_by_event(caplog, "expr.compile.failed")
    assert rec.levelname == "WARNING"


def test_globals_mismatch_warns_once(compiler, caplog):
    caplog.set_level("DEBUG", logger="safexpr")
    first = compiler.parse("g", {"g": 1})
    assert compiler.parse("g", {"g": 1}) is first
    assert records_by_event(caplog, "expr.cache.globals_mismatch") == []

    assert compiler.parse("g", {"g": 2}) is first
    assert compiler.parse("g", {"g": 3}) is first
    recs = records_by_event(caplog, "expr.cache.globals_mismatch")
    assert len(recs) == 1
    assert recs[0].expression == "g"
    # the cached callable keeps the globals it was compiled with
    assert first() == 1


def test_formatters_mismatch_warns(compiler, caplog):
    caplog.set_level("DEBUG", logger="safexpr")
    compiler.parse("v | f", None, {"f": str})
    compiler.parse("v | f", None, {"f": repr})
    assert len(records_by_event(caplog, "expr.cache.globals_mismatch")) == 1
