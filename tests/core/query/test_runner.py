# tests/core/query/test_runner.py
"""
Execução de stored queries pelo Engine.

    - parâmetros são resolvidos antes da construção do pipeline
    - database/container padrão vêm da configuração do RunContext
"""

import pytest

try:
    from queryflow.core.exceptions import ParameterResolutionError
    from queryflow.core.pipeline.types import PipelineStatus
    from queryflow.core.query.runner import run_stored_query
    from queryflow.core.query.stored_query import parse_stored_query
except Exception as e:  # noqa: BLE001
    run_stored_query = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing stored query runner. Import error: {_IMPORT_ERR}")


RECENT = """\
---
description: Pedidos recentes
params:
  - name: days
    type: number
    default: 30
    max: 365
  - name: status
    choices: [open, closed]
    default: open
---
SELECT * FROM c WHERE c.ageDays < @days AND c.status = @status
"""


def test_single_step_uses_config_target_and_defaults(SpyExecutor, dummy_ctx):
    _require_imports()
    dummy_ctx.config["container"] = "orders"
    executor = SpyExecutor(results={"orders": [{"id": "O1"}]})

    result = run_stored_query(parse_stored_query("recent", RECENT), executor=executor, ctx=dummy_ctx)

    assert result.status == PipelineStatus.SUCCEEDED
    assert executor.calls == [("orders", 'SELECT * FROM c WHERE c.ageDays < 30 AND c.status = "open"', "testdb")]
    assert result.template_context({"days": 30}) == {"documents": [{"id": "O1"}], "days": 30}

    resolved = [e for e in dummy_ctx.events if e["message"] == "parameters resolved"]
    assert resolved[0]["parameters"] == ["days", "status"]


def test_provided_values_are_parsed(SpyExecutor, dummy_ctx):
    _require_imports()
    dummy_ctx.config["container"] = "orders"
    executor = SpyExecutor()

    run_stored_query(
        parse_stored_query("recent", RECENT),
        executor=executor,
        ctx=dummy_ctx,
        provided={"days": "7", "status": "closed"},
    )

    assert executor.calls[0][1] == 'SELECT * FROM c WHERE c.ageDays < 7 AND c.status = "closed"'


def test_invalid_parameter_executes_nothing(SpyExecutor, dummy_ctx):
    _require_imports()
    dummy_ctx.config["container"] = "orders"
    executor = SpyExecutor()

    with pytest.raises(ParameterResolutionError) as excinfo:
        run_stored_query(
            parse_stored_query("recent", RECENT),
            executor=executor,
            ctx=dummy_ctx,
            provided={"status": "lost"},
        )

    assert excinfo.value.details["reason"] == "invalid_choice"
    assert executor.calls == []
