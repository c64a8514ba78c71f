"""
# Pipeline Core — queryflow

Este pacote define os **contratos canônicos** e as **estruturas fundamentais**
de um pipeline de queries no queryflow.

Um pipeline é um conjunto de Steps nomeados, cada um com um template de
query e um container alvo. Dependências entre Steps não são declaradas:
elas são derivadas das referências `@step.campo` presentes nos templates.

## Componentes

- **types**: `StepDefinition`, `ReferenceToken`, `ExecutionPlan`,
  `StepStatus`, `PipelineStatus`, `StepResult`, `PipelineResult`
- **collaborators**: `QueryExecutor` e `ParameterResolver` (protocolos)
- **context**: `RunContext` (config resolvida, eventos, warnings)
- **registry**: `StepRegistry` (unicidade de nomes, ordem de autoria)

## Invariantes

- Cada Step possui um `name` único
- A execução é coordenada exclusivamente pelo Engine
"""

from .collaborators import MappingParameterResolver, ParameterResolver, QueryExecutor
from .context import RunContext
from .registry import StepRegistry
from .types import (
    ExecutionPlan,
    PipelineResult,
    PipelineStatus,
    QueryResult,
    QueryTarget,
    Record,
    ReferenceToken,
    StepDefinition,
    StepResult,
    StepStatus,
)

__all__ = [
    "ExecutionPlan",
    "MappingParameterResolver",
    "ParameterResolver",
    "PipelineResult",
    "PipelineStatus",
    "QueryExecutor",
    "QueryResult",
    "QueryTarget",
    "Record",
    "ReferenceToken",
    "RunContext",
    "StepDefinition",
    "StepRegistry",
    "StepResult",
    "StepStatus",
]
