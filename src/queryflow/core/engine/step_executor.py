# src/queryflow/core/engine/step_executor.py
"""
Step Executor — invocação do executor externo para um Step resolvido.

Responsabilidades:
    - montar o QueryTarget do Step
    - chamar `executor.run(target, query_text)` (corrotina ou síncrono)
    - normalizar o retorno em QueryResult
    - encapsular qualquer erro do executor em StepExecutionError, marcado
      com o nome do Step (a exceção original fica em `__cause__`)

Limites explícitos:
    - Não interpreta nem reclassifica erros do executor
    - Não faz retry nem impõe timeout
"""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import Executor
from typing import Any, Optional

from queryflow.core.exceptions import StepExecutionError
from queryflow.core.pipeline.collaborators import QueryExecutor
from queryflow.core.pipeline.types import QueryResult, QueryTarget, StepDefinition


def target_for(step: StepDefinition, *, default_database: Optional[str] = None) -> QueryTarget:
    return QueryTarget(container=step.container, database=step.database or default_database)


def _normalize(raw: Any) -> QueryResult:
    if isinstance(raw, QueryResult):
        return raw
    if isinstance(raw, tuple) and len(raw) == 2:
        records, cost = raw
        return QueryResult(records=list(records or []), cost=cost)
    raise TypeError(
        f"QueryExecutor.run must return QueryResult or (records, cost), got {type(raw).__name__}"
    )


async def execute_step(
    step: StepDefinition,
    query_text: str,
    executor: QueryExecutor,
    *,
    default_database: Optional[str] = None,
    pool: Optional[Executor] = None,
) -> QueryResult:
    """
    Executa a query final de um Step.

    Executores síncronos rodam em thread (`loop.run_in_executor`) para não
    bloquear os demais Steps do layer. O Engine passa um `pool` com um
    worker por Step do layer; sem `pool`, usa o executor padrão do loop.

    Raises:
        StepExecutionError: Qualquer falha reportada pelo executor.
    """
    target = target_for(step, default_database=default_database)
    try:
        run = executor.run
        if inspect.iscoroutinefunction(run):
            raw = await run(target, query_text)
        else:
            loop = asyncio.get_running_loop()
            raw = await loop.run_in_executor(pool, run, target, query_text)
            if inspect.isawaitable(raw):
                raw = await raw
        return _normalize(raw)
    except Exception as exc:
        raise StepExecutionError(
            message=f"step '{step.name}' failed: {exc}",
            details={
                "step": step.name,
                "container": target.container,
                "database": target.database,
                "exception_class": exc.__class__.__name__,
            },
            hint="Verifique conectividade, credenciais e a sintaxe da query do Step.",
            step=step.name,
        ) from exc
