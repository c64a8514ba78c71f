# src/queryflow/core/engine/planner.py
"""
Layering Scheduler — planejamento de execução em layers.

Este módulo particiona um DependencyGraph validado em layers ordenados:
Steps do mesmo layer não dependem uns dos outros e podem rodar
concorrentemente; todas as suas dependências estão em layers
estritamente anteriores.

Algoritmo:
    - layer(step) = 0 quando o Step não tem dependências
    - layer(step) = 1 + max(layer(dep)) caso contrário
    - Steps são agrupados por índice de layer

Decisões arquiteturais:
    - O cálculo percorre o grafo em ordem topológica (Kahn), propagando
      o maior caminho até cada Step
    - Dentro de um layer, a ordem de autoria é preservada (afeta apenas
      diagnósticos e reprodutibilidade de testes)

Invariantes:
    - Todo Step aparece em exatamente um layer
    - O número de layers é o mínimo possível para o grafo
    - A mesma entrada sempre produz o mesmo plano

Limites explícitos:
    - Não executa Steps
    - Não interage com RunContext
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from queryflow.core.exceptions import CircularDependency
from queryflow.core.pipeline.types import ExecutionPlan, StepDefinition

from .graph import DependencyGraph, build_dependency_graph


def plan_layers(graph: DependencyGraph) -> ExecutionPlan:
    """
    Produz o ExecutionPlan (layers por caminho mais longo) de um grafo validado.

    Args:
        graph (DependencyGraph): Grafo produzido por `build_dependency_graph`.

    Returns:
        ExecutionPlan: Layers em ordem crescente de índice.

    Raises:
        CircularDependency: Se o grafo não admitir ordem topológica (não
            ocorre para grafos vindos do builder).
    """
    position = {name: idx for idx, name in enumerate(graph.order)}

    incoming_count: Dict[str, int] = {}
    outgoing: Dict[str, List[str]] = {name: [] for name in graph.order}
    for name in graph.order:
        deps = graph.dependencies[name]
        incoming_count[name] = len(deps)
        for dep in deps:
            outgoing[dep].append(name)

    level: Dict[str, int] = {name: 0 for name in graph.order}
    ready: List[str] = [name for name in graph.order if incoming_count[name] == 0]
    visited = 0

    while ready:
        name = ready.pop(0)
        visited += 1
        for child in outgoing[name]:
            level[child] = max(level[child], level[name] + 1)
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort(key=position.__getitem__)

    if visited != len(graph.order):
        stuck = [n for n in graph.order if incoming_count[n] > 0]
        raise CircularDependency(
            message=f"Circular dependency between steps: {', '.join(stuck)}",
            details={"cycle": stuck},
        )

    depth = max(level.values(), default=-1) + 1
    layers: List[List[str]] = [[] for _ in range(depth)]
    for name in graph.order:
        layers[level[name]].append(name)

    return ExecutionPlan(layers=tuple(tuple(layer) for layer in layers))


def plan_execution(steps: Iterable[StepDefinition]) -> ExecutionPlan:
    """Atalho: constrói o grafo (com todas as validações) e calcula os layers."""
    return plan_layers(build_dependency_graph(steps))
