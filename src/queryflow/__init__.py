# src/queryflow/__init__.py
"""
queryflow — pipelines de queries encadeadas por referências.

Um pipeline é um conjunto de Steps nomeados; cada Step executa uma query
contra um container. Uma query pode referenciar o resultado de outro Step
(`@step.campo`), o que cria uma dependência implícita. O Engine deriva o
grafo dessas referências, agrupa os Steps em layers e executa cada layer
concorrentemente, com barreira entre layers.

Arquitetura em alto nível:
    - core.template → scanner e resolver da linguagem de templates
    - core.pipeline → tipos, contexto de execução, registry e protocolos
    - core.engine   → grafo de dependências, planner e Engine
    - core.config   → carregamento, merge e hashing de configuração
    - core.query    → stored queries (front matter + parâmetros)

Limites explícitos:
    - Não implementa cliente de banco de dados (o executor é injetado)
    - Não renderiza resultados
"""

from .core.engine import Engine, run_pipeline
from .core.pipeline import PipelineResult, PipelineStatus, RunContext, StepDefinition, StepStatus
from .core.query import (
    find_stored_query,
    list_stored_queries,
    load_stored_query,
    parse_stored_query,
    run_stored_query,
)

__all__ = [
    "Engine",
    "PipelineResult",
    "PipelineStatus",
    "RunContext",
    "StepDefinition",
    "StepStatus",
    "find_stored_query",
    "list_stored_queries",
    "load_stored_query",
    "parse_stored_query",
    "run_pipeline",
    "run_stored_query",
]
