"""
Execução de uma stored query como pipeline.

Liga o arquivo de query ao Engine:
    - alvo padrão (database/container) vem da configuração do RunContext
    - parâmetros são resolvidos todos antes da construção do pipeline,
      de modo que um parâmetro inválido não executa nenhum Step
    - queries de um único Step viram um pipeline de um Step só
"""

from __future__ import annotations

from typing import Mapping, Optional

from queryflow.core.engine.engine import Engine
from queryflow.core.pipeline.collaborators import QueryExecutor
from queryflow.core.pipeline.context import PIPELINE_STEP_ID, RunContext
from queryflow.core.pipeline.types import PipelineResult

from .params import StoredParameterResolver
from .stored_query import StoredQuery


def run_stored_query(
    query: StoredQuery,
    *,
    executor: QueryExecutor,
    ctx: Optional[RunContext] = None,
    provided: Optional[Mapping[str, str]] = None,
) -> PipelineResult:
    """
    Executa uma stored query e retorna o PipelineResult.

    Raises:
        ParameterResolutionError: Parâmetro ausente ou inválido.
        MissingTargetError: Step sem container.
        PipelineConstructionError: Pipeline estruturalmente inválido.
    """
    ctx = ctx or RunContext.new(query=query.name)
    config = ctx.config or {}

    resolver = StoredParameterResolver(query.params, provided)
    resolved = resolver.resolve_all()
    ctx.log(
        step_id=PIPELINE_STEP_ID,
        level="info",
        message="parameters resolved",
        query=query.name,
        parameters=sorted(resolved),
    )

    steps = query.step_definitions(
        database=config.get("database"),
        container=config.get("container"),
    )
    engine = Engine(steps=steps, executor=executor, ctx=ctx, parameters=resolver)
    return engine.run()
