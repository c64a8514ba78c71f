# src/queryflow/core/engine/engine.py
"""
Pipeline Coordinator — Engine de execução do queryflow.

O Engine conduz uma execução completa de um pipeline de queries:

    Building  → registry + grafo de dependências + plano de layers
    Executing → loop de layers com barreira obrigatória entre eles
    Terminal  → SUCCEEDED | FAILED | PARTIALLY_EXECUTED

Política por layer:
    - todos os Steps executáveis do layer são resolvidos e lançados
      concorrentemente (uma task asyncio por Step)
    - o Engine aguarda TODOS chegarem a estado terminal antes de avaliar
      o layer; irmãos nunca são cancelados quando um deles falha
    - se algum Step falhou: a causa canônica é o primeiro Step com falha
      em ordem de autoria; irmãos bem-sucedidos são descartados do
      resultado reportado; todos os layers seguintes viram SKIPPED
    - se todos tiveram sucesso: seus Records passam a estar disponíveis
      para as referências dos layers seguintes

Estados por Step: PENDING → RUNNING → SUCCEEDED | FAILED, ou PENDING → SKIPPED.

Erros de construção (UnknownStepReference, SelfReference,
CircularDependency, DuplicateStepName) são levantados diretamente por
`run`/`run_async`: nenhum Step é executado e não há resultado parcial.

O acumulador de resultados só é mutado pelo Engine depois da barreira,
nunca de dentro das tasks, portanto não há lock.
"""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from queryflow.core.config.hashing import compute_config_hash
from queryflow.core.exceptions import QueryflowException, ResolutionError, StepExecutionError
from queryflow.core.pipeline.collaborators import (
    MappingParameterResolver,
    ParameterResolver,
    QueryExecutor,
)
from queryflow.core.pipeline.context import PIPELINE_STEP_ID, RunContext
from queryflow.core.pipeline.types import (
    ExecutionPlan,
    PipelineResult,
    PipelineStatus,
    Record,
    StepDefinition,
    StepResult,
    StepStatus,
)
from queryflow.core.template.resolver import resolve_step_query

from .graph import DependencyGraph, build_dependency_graph
from .planner import plan_layers
from .step_executor import execute_step


class Engine:
    """Coordenador canônico do pipeline (builder + planner + executor por layers)."""

    def __init__(
        self,
        *,
        steps: Sequence[StepDefinition],
        executor: QueryExecutor,
        ctx: RunContext,
        parameters: Union[ParameterResolver, Mapping[str, Any], None] = None,
    ):
        self.steps: List[StepDefinition] = list(steps)
        self.executor = executor
        self.ctx = ctx
        if parameters is None or isinstance(parameters, Mapping):
            self.parameters: ParameterResolver = MappingParameterResolver(parameters or {})
        else:
            self.parameters = parameters

        self.phase: str = "pending"
        self.graph: Optional[DependencyGraph] = None
        self.plan: Optional[ExecutionPlan] = None
        self.states: Dict[str, StepStatus] = {}

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def build(self) -> ExecutionPlan:
        """Valida os Steps e calcula o plano; erros estruturais são propagados."""
        self.phase = "building"
        try:
            graph = build_dependency_graph(self.steps)
            plan = plan_layers(graph)
        except QueryflowException as exc:
            self.phase = "failed"
            self.ctx.log(
                step_id=PIPELINE_STEP_ID,
                level="error",
                message="pipeline construction failed",
                error=exc.__class__.__name__,
                reason=exc.message,
            )
            raise

        self.graph = graph
        self.plan = plan
        self.states = {name: StepStatus.PENDING for name in graph.order}
        return plan

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_query_text(self) -> bool:
        return bool(self.ctx.engine_option("record_query_text", True))

    def _default_database(self) -> Optional[str]:
        return (self.ctx.config or {}).get("database")

    def _skip(self, name: str, reason: str) -> StepResult:
        self.states[name] = StepStatus.SKIPPED
        self.ctx.log(step_id=name, level="info", message="step skipped", reason=reason)
        return StepResult(step_name=name, status=StepStatus.SKIPPED, summary=reason)

    def _failed(
        self,
        step: StepDefinition,
        exc: QueryflowException,
        started: float,
        *,
        query_text: Optional[str] = None,
    ) -> StepResult:
        self.states[step.name] = StepStatus.FAILED
        self.ctx.log(
            step_id=step.name,
            level="error",
            message="step failed",
            error=exc.__class__.__name__,
            reason=exc.message,
        )
        return StepResult(
            step_name=step.name,
            status=StepStatus.FAILED,
            error=exc,
            query_text=query_text,
            summary=exc.message,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    async def _run_step(
        self,
        step: StepDefinition,
        available: Mapping[str, List[Record]],
        pool: Optional[Executor] = None,
    ) -> StepResult:
        started = time.perf_counter()
        self.states[step.name] = StepStatus.RUNNING
        self.ctx.log(step_id=step.name, level="info", message="step started", container=step.container)

        try:
            resolved = resolve_step_query(step, self.parameters, available)
        except QueryflowException as exc:
            return self._failed(step, exc, started)
        except Exception as exc:
            wrapped = ResolutionError(
                message=f"step '{step.name}' could not be resolved: {exc}",
                details={"step": step.name, "exception_class": exc.__class__.__name__},
            )
            wrapped.__cause__ = exc
            return self._failed(step, wrapped, started)

        for warning in resolved.warnings:
            self.ctx.add_warning(step_id=step.name, message=warning)
            self.ctx.log(step_id=step.name, level="warning", message=warning)

        if self._record_query_text():
            self.ctx.log(step_id=step.name, level="debug", message="query resolved", query_text=resolved.text)

        try:
            result = await execute_step(
                step,
                resolved.text,
                self.executor,
                default_database=self._default_database(),
                pool=pool,
            )
        except StepExecutionError as exc:
            return self._failed(step, exc, started, query_text=resolved.text)

        self.states[step.name] = StepStatus.SUCCEEDED
        records = list(result.records)
        self.ctx.log(
            step_id=step.name,
            level="info",
            message="step succeeded",
            records=len(records),
            cost=result.cost,
        )
        return StepResult(
            step_name=step.name,
            status=StepStatus.SUCCEEDED,
            records=records,
            cost=result.cost,
            query_text=resolved.text,
            summary=f"{len(records)} record(s)",
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    # ------------------------------------------------------------------
    # Executing
    # ------------------------------------------------------------------

    async def run_async(self) -> PipelineResult:
        plan = self.build()
        graph = self.graph
        assert graph is not None

        self.phase = "executing"
        self.ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="info",
            message="pipeline started",
            plan=plan.as_lists(),
            config_hash=compute_config_hash(dict(self.ctx.config or {})),
        )

        reported: Dict[str, StepResult] = {}
        available: Dict[str, List[Record]] = {}
        discarded: List[str] = []
        discarded_cost = 0.0
        failed_step: Optional[str] = None
        failure: Optional[QueryflowException] = None

        for index, layer in enumerate(plan.layers):
            if failed_step is not None:
                for name in layer:
                    reported[name] = self._skip(name, f"pipeline failed at step '{failed_step}'")
                continue

            runnable: List[StepDefinition] = []
            for name in layer:
                if not self.ctx.step_enabled(name):
                    reported[name] = self._skip(name, "disabled by config")
                    continue
                blocked = [d for d in graph.dependencies[name] if self.states[d] != StepStatus.SUCCEEDED]
                if blocked:
                    reported[name] = self._skip(name, f"dependency not succeeded: {', '.join(blocked)}")
                    continue
                runnable.append(graph.steps[name])

            self.ctx.log(
                step_id=PIPELINE_STEP_ID,
                level="info",
                message="layer started",
                layer=index,
                steps=[s.name for s in runnable],
            )

            # um worker por Step: executores síncronos também rodam todos juntos
            pool = ThreadPoolExecutor(max_workers=len(runnable)) if runnable else None
            try:
                # barreira: gather só retorna quando todos os Steps do layer terminaram
                outcomes = await asyncio.gather(*(self._run_step(step, available, pool) for step in runnable))
            finally:
                if pool is not None:
                    pool.shutdown(wait=True)
            layer_results = {r.step_name: r for r in outcomes}

            failed = [n for n in layer if n in layer_results and layer_results[n].status == StepStatus.FAILED]
            if failed:
                failed_step = failed[0]
                failure = layer_results[failed_step].error
                for name in layer:
                    if name not in layer_results:
                        continue
                    if layer_results[name].status == StepStatus.FAILED:
                        reported[name] = layer_results[name]
                    else:
                        discarded.append(name)
                        discarded_cost += layer_results[name].cost or 0.0
            else:
                for name in layer:
                    if name in layer_results:
                        reported[name] = layer_results[name]
                        available[name] = layer_results[name].records

            self.ctx.log(
                step_id=PIPELINE_STEP_ID,
                level="error" if failed else "info",
                message="layer finished",
                layer=index,
                failed=failed,
            )

        if failed_step is not None:
            status = PipelineStatus.FAILED
        elif any(r.status == StepStatus.SKIPPED for r in reported.values()):
            status = PipelineStatus.PARTIALLY_EXECUTED
        else:
            status = PipelineStatus.SUCCEEDED

        self.phase = status.value
        self.ctx.log(
            step_id=PIPELINE_STEP_ID,
            level="error" if failure is not None else "info",
            message="pipeline finished",
            status=status.value,
            failed_step=failed_step,
        )

        return PipelineResult(
            steps={name: reported[name] for name in graph.order if name in reported},
            status=status,
            plan=plan,
            error=failure,
            failed_step=failed_step,
            discarded=discarded,
            discarded_cost=discarded_cost,
        )

    def run(self) -> PipelineResult:
        """Executa o pipeline num event loop próprio (não chamar de dentro de um loop ativo)."""
        return asyncio.run(self.run_async())


def run_pipeline(
    steps: Sequence[StepDefinition],
    *,
    executor: QueryExecutor,
    ctx: Optional[RunContext] = None,
    parameters: Union[ParameterResolver, Mapping[str, Any], None] = None,
) -> PipelineResult:
    """Atalho síncrono: cria um Engine (e um RunContext, se necessário) e executa."""
    engine = Engine(steps=steps, executor=executor, ctx=ctx or RunContext.new(), parameters=parameters)
    return engine.run()
