# src/queryflow/core/engine/__init__.py
"""
Engine do queryflow.

Componentes principais:
    - graph         → dependências derivadas das referências e validação estrutural
    - planner       → layers por nível (Kahn), ordem de autoria dentro do layer
    - step_executor → execução de uma query de Step via QueryExecutor injetado
    - engine        → coordenação por layers com barreira

Invariantes:
    - Um Step só executa depois que todas as suas dependências tiveram sucesso
    - Cada Step é executado no máximo uma vez por run
    - Pipelines inválidos não executam nenhum Step
"""

from .engine import Engine, run_pipeline
from .graph import DependencyGraph, build_dependency_graph
from .planner import plan_execution, plan_layers
from .step_executor import execute_step, target_for

__all__ = [
    "DependencyGraph",
    "Engine",
    "build_dependency_graph",
    "execute_step",
    "plan_execution",
    "plan_layers",
    "run_pipeline",
    "target_for",
]
