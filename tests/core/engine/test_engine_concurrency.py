"""
Concorrência e barreira entre layers.

    - Steps de um mesmo layer são lançados juntos (nenhum espera o outro)
    - Nenhum Step de um layer N+1 começa antes de TODOS os Steps do
      layer N terminarem, inclusive os que não são suas dependências
    - executores síncronos não ficam limitados ao pool padrão do loop
"""

import asyncio
import os
import threading

import pytest

try:
    from queryflow.core.engine.engine import Engine
    from queryflow.core.pipeline.types import PipelineStatus, QueryResult
except Exception as e:
    Engine = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing engine. Import error: {_IMPORT_ERR}")


def test_steps_in_a_layer_start_together(make_step, SpyExecutor, dummy_ctx):
    _require_imports()
    executor = SpyExecutor(delays={"a": 0.02, "b": 0.02, "c": 0.02})
    steps = [make_step("a", "SELECT 1"), make_step("b", "SELECT 2"), make_step("c", "SELECT 3")]

    Engine(steps=steps, executor=executor, ctx=dummy_ctx).run()

    assert [kind for kind, _ in executor.timeline[:3]] == ["start", "start", "start"]


def test_barrier_waits_for_unrelated_slow_sibling(make_step, SpyExecutor, dummy_ctx):
    """
    Layer 0 = [slow, fast]; `next` depende só de `fast`, mas só começa
    depois de `slow` terminar.
    """
    _require_imports()
    executor = SpyExecutor(results={"fast": [{"id": 1}]}, delays={"slow": 0.05})
    steps = [make_step("slow", "SELECT 1"), make_step("fast", "SELECT 2"), make_step("next", "@fast.id")]

    result = Engine(steps=steps, executor=executor, ctx=dummy_ctx).run()

    assert result.status == PipelineStatus.SUCCEEDED
    timeline = executor.timeline
    assert timeline.index(("start", "next")) > timeline.index(("end", "slow"))


def test_run_async_can_be_awaited_directly(make_step, SpyExecutor, dummy_ctx):
    _require_imports()
    engine = Engine(steps=[make_step("a", "SELECT 1")], executor=SpyExecutor(), ctx=dummy_ctx)
    result = asyncio.run(engine.run_async())
    assert result.succeeded


def test_sync_executor_runs_whole_layer_at_once(make_step, dummy_ctx):
    """
    Layer único maior que o pool padrão do asyncio (`min(32, cpu+4)`).

    Cada chamada espera numa `threading.Barrier` do tamanho do layer: a
    barreira só abre se todos os Steps estiverem em execução ao mesmo
    tempo. Se o Engine rodasse o layer em ondas, a barreira estouraria o
    timeout e os Steps falhariam.
    """
    _require_imports()
    n = min(32, (os.cpu_count() or 1) + 4) + 4
    gate = threading.Barrier(n, timeout=10)
    lock = threading.Lock()
    state = {"active": 0, "peak": 0}

    class _BlockingExecutor:
        def run(self, target, query_text):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            try:
                gate.wait()
            finally:
                with lock:
                    state["active"] -= 1
            return QueryResult(records=[{"container": target.container}], cost=1.0)

    steps = [make_step(f"s{i}", f"SELECT {i}") for i in range(n)]

    result = Engine(steps=steps, executor=_BlockingExecutor(), ctx=dummy_ctx).run()

    assert result.status == PipelineStatus.SUCCEEDED
    assert result.plan.as_lists() == [[s.name for s in steps]]
    assert state["peak"] == n
