# src/queryflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do queryflow.

Este módulo define as estruturas e enums fundamentais que padronizam
a comunicação entre Reference Scanner, planner, resolver, Step Executor,
Engine e a camada externa de renderização.

Os tipos aqui definidos representam:
    - a definição imutável de um Step (nome, alvo, template)
    - tokens de referência entre Steps (`@step.field`)
    - o plano de execução em layers
    - estados de execução de Steps e do pipeline
    - resultados de Steps e o resultado agregado do pipeline

Componentes principais:
    - StepDefinition → definição imutável de um Step
    - ReferenceToken → ocorrência de `@<step>.<campo>` num template
    - ExecutionPlan  → sequência ordenada de layers
    - StepStatus     → PENDING, RUNNING, SUCCEEDED, FAILED, SKIPPED
    - StepResult     → resultado imutável da execução de um Step
    - PipelineResult → resultados indexados por nome de Step + status global

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Nenhuma lógica de execução vive neste módulo
    - Campos de tempo não participam de igualdade (runs idênticos comparam iguais)

Limites explícitos:
    - Não executa Steps
    - Não planeja pipelines
    - Não renderiza resultados
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from queryflow.core.errors import QueryflowErrorPayload, exception_to_payload
from queryflow.core.exceptions import QueryflowException


Record = Mapping[str, Any]


@dataclass(frozen=True)
class StepDefinition:
    """
    Definição imutável de um Step do pipeline.

    Campos:
        - name: identificador único e estável dentro do pipeline
        - container: container/fonte de dados alvo
        - template: texto bruto da query, com placeholders `@param` e
          referências `@step.campo`
        - database: banco alvo opcional (o executor pode ter um default)

    Invariantes:
        - A definição nunca é alterada após o parse
        - `name` é validado pelo StepRegistry antes do planejamento
    """

    name: str
    container: str
    template: str
    database: Optional[str] = None


@dataclass(frozen=True)
class ReferenceToken:
    """
    Ocorrência de `@<step>.<caminho>` dentro do template de um Step.

    `field_path` é a tupla de segmentos do caminho (ex.: `("address", "city")`)
    e `raw` preserva o texto original do token para diagnósticos.
    """

    step: str
    field_path: Tuple[str, ...]
    raw: str

    @property
    def field(self) -> str:
        return ".".join(self.field_path)


@dataclass(frozen=True)
class ExecutionPlan:
    """
    Plano de execução em layers.

    Cada layer é uma tupla de nomes de Steps sem dependências entre si,
    cujas dependências apontam apenas para layers estritamente anteriores.
    A ordem dentro de um layer é a ordem de autoria.
    """

    layers: Tuple[Tuple[str, ...], ...]

    def layer_of(self, step_name: str) -> int:
        for idx, layer in enumerate(self.layers):
            if step_name in layer:
                return idx
        raise KeyError(step_name)

    def as_lists(self) -> List[List[str]]:
        return [list(layer) for layer in self.layers]

    def step_names(self) -> List[str]:
        return [name for layer in self.layers for name in layer]


class StepStatus(str, Enum):
    """
    Estados possíveis de um Step durante uma run.

    Transições permitidas:
        - PENDING → RUNNING → SUCCEEDED | FAILED
        - PENDING → SKIPPED (dependência não concluída com sucesso,
          layer anterior falhou, ou Step desabilitado por config)

    Os valores são strings para facilitar serialização e inspeção.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineStatus(str, Enum):
    """
    Status global de uma execução de pipeline.

        - SUCCEEDED: todos os Steps de todos os layers concluíram com sucesso
        - FAILED: algum layer falhou; a causa canônica é o primeiro Step
          com falha na ordem de autoria
        - PARTIALLY_EXECUTED: nenhuma falha, mas Steps foram pulados por
          configuração (e seus dependentes)
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PARTIALLY_EXECUTED = "partially_executed"


@dataclass(frozen=True)
class QueryTarget:
    """Alvo de execução de um Step: container e, opcionalmente, database."""

    container: str
    database: Optional[str] = None


@dataclass(frozen=True)
class QueryResult:
    """Retorno do executor externo: Records em ordem de chegada + custo."""

    records: List[Record] = field(default_factory=list)
    cost: Optional[float] = None


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável de um Step.

    Campos:
        - step_name: nome do Step
        - status: estado terminal (SUCCEEDED, FAILED ou SKIPPED)
        - records: Records em ordem de chegada (vazio para FAILED/SKIPPED)
        - cost: métrica de custo reportada pelo executor (ex.: RUs)
        - error: exceção tipada quando FAILED
        - query_text: texto final executado (None se não chegou a resolver)
        - summary: resumo textual curto
        - duration_ms: duração da execução (fora da comparação de igualdade)

    Invariantes:
        - Uma instância nunca é alterada após criada
        - `error` está presente se e somente se `status` é FAILED
    """

    step_name: str
    status: StepStatus
    records: List[Record] = field(default_factory=list)
    cost: Optional[float] = None
    error: Optional[QueryflowException] = None
    query_text: Optional[str] = None
    summary: str = ""
    duration_ms: int = field(default=0, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.SUCCEEDED

    def error_payload(self) -> Optional[QueryflowErrorPayload]:
        if self.error is None:
            return None
        return exception_to_payload(self.error, step=self.step_name)


@dataclass(frozen=True)
class PipelineResult:
    """
    Resultado agregado de uma execução de pipeline.

    Campos:
        - steps: StepResult indexado por nome, na ordem de autoria
        - status: status global (ver PipelineStatus)
        - plan: plano de layers efetivamente usado
        - error: causa canônica quando FAILED (primeiro Step com falha,
          em ordem de autoria)
        - failed_step: nome do Step dono da causa canônica
        - discarded: Steps que concluíram com sucesso num layer que falhou;
          seus resultados não são reportados em `steps`
        - discarded_cost: custo somado dos Steps descartados (eles rodaram;
          o custo fica fora de `total_cost`)

    Invariantes:
        - Steps de layers posteriores a uma falha aparecem como SKIPPED
        - Resultados de layers anteriores à falha permanecem disponíveis
    """

    steps: Dict[str, StepResult]
    status: PipelineStatus
    plan: ExecutionPlan
    error: Optional[QueryflowException] = None
    failed_step: Optional[str] = None
    discarded: List[str] = field(default_factory=list)
    discarded_cost: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == PipelineStatus.SUCCEEDED

    @property
    def total_cost(self) -> float:
        return float(sum(r.cost or 0.0 for r in self.steps.values() if r.succeeded))

    def records(self, step_name: str) -> List[Record]:
        return list(self.steps[step_name].records)

    def step_records(self) -> Dict[str, List[Record]]:
        """Records de cada Step concluído com sucesso, indexados por nome."""
        return {name: list(r.records) for name, r in self.steps.items() if r.succeeded}

    def template_context(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Contexto consumido pelo renderizador externo de templates.

        - pipeline de um único Step: Records expostos como `documents`
        - pipeline multi-step: Records de cada Step sob uma variável com o
          nome do Step
        - parâmetros resolvidos entram como variáveis de topo, sem
          sobrescrever nomes de Steps nem `documents`
        """
        context: Dict[str, Any] = {}
        if len(self.plan.step_names()) == 1:
            only = self.plan.step_names()[0]
            result = self.steps.get(only)
            context["documents"] = list(result.records) if result is not None else []
        else:
            context.update(self.step_records())

        for key, value in (params or {}).items():
            context.setdefault(key, value)
        return context
