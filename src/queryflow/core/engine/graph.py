# src/queryflow/core/engine/graph.py
"""
Dependency Graph Builder.

Este módulo constrói o grafo de dependências de um pipeline a partir das
referências `@step.campo` encontradas nos templates dos Steps.

O builder opera exclusivamente em nível estrutural, validando:
    - unicidade de nomes de Steps
    - referências a Steps inexistentes
    - auto-referências
    - formação de ciclos

Princípios fundamentais:
    - Dependências vêm SOMENTE de tokens de referência; a posição de um
      Step no arquivo nunca cria dependência
    - O grafo é endereçado por nome (listas de adjacência), não por
      identidade de objeto
    - Erros estruturais são fatais e ocorrem antes de qualquer execução

Decisões arquiteturais:
    - Detecção de ciclos por DFS com coloração (branco/cinza/preto)
    - Membros de um ciclo são reportados em ordem de autoria
    - Dependências diretas preservam a ordem da primeira ocorrência textual

Limites explícitos:
    - Não calcula layers (ver planner)
    - Não resolve valores nem executa Steps
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from queryflow.core.exceptions import CircularDependency, SelfReference, UnknownStepReference
from queryflow.core.pipeline.registry import StepRegistry
from queryflow.core.pipeline.types import ReferenceToken, StepDefinition
from queryflow.core.template.scanner import scan_references


@dataclass(frozen=True)
class DependencyGraph:
    """
    Grafo de dependências validado (acíclico).

    Campos:
        - order: nomes dos Steps em ordem de autoria
        - steps: definição de cada Step, por nome
        - dependencies: aresta A→B para cada B em `dependencies[A]`
          (A referencia B e roda depois de B), em ordem de primeira ocorrência
        - references: tokens de referência de cada Step, em ordem textual
    """

    order: Tuple[str, ...]
    steps: Dict[str, StepDefinition]
    dependencies: Dict[str, Tuple[str, ...]]
    references: Dict[str, Tuple[ReferenceToken, ...]]


_WHITE, _GRAY, _BLACK = 0, 1, 2


def _find_cycle(order: Sequence[str], dependencies: Mapping[str, Sequence[str]]) -> Optional[List[str]]:
    color: Dict[str, int] = {name: _WHITE for name in order}
    stack: List[str] = []

    def visit(name: str) -> Optional[List[str]]:
        color[name] = _GRAY
        stack.append(name)
        for dep in dependencies[name]:
            if color[dep] == _GRAY:
                return stack[stack.index(dep):]
            if color[dep] == _WHITE:
                cycle = visit(dep)
                if cycle is not None:
                    return cycle
        stack.pop()
        color[name] = _BLACK
        return None

    for name in order:
        if color[name] == _WHITE:
            cycle = visit(name)
            if cycle is not None:
                return cycle
    return None


def build_dependency_graph(
    steps: Iterable[StepDefinition],
    references: Optional[Mapping[str, Sequence[ReferenceToken]]] = None,
) -> DependencyGraph:
    """
    Valida os Steps e constrói o grafo de dependências.

    Args:
        steps: Definições na ordem de autoria.
        references: Tokens já escaneados por Step; quando ausente, cada
            template é escaneado aqui.

    Returns:
        DependencyGraph: grafo acíclico com dependências diretas por Step.

    Raises:
        DuplicateStepName: Nome de Step repetido.
        UnknownStepReference: Token aponta para Step inexistente.
        SelfReference: Step referencia a si mesmo.
        CircularDependency: Referências formam um ciclo.
    """
    registry = StepRegistry.from_steps(steps)
    order = registry.names()

    tokens_by_step: Dict[str, Tuple[ReferenceToken, ...]] = {}
    dependencies: Dict[str, Tuple[str, ...]] = {}

    for name in order:
        step = registry.get(name)
        if references is not None:
            tokens = tuple(references.get(name, ()))
        else:
            tokens = tuple(scan_references(step.template))

        deps: List[str] = []
        for token in tokens:
            if token.step not in registry:
                raise UnknownStepReference(
                    message=f"Step '{name}' references unknown step '{token.step}' ({token.raw})",
                    details={"step": name, "referenced_step": token.step, "reference": token.raw, "known_steps": order},
                    hint="Corrija o nome do Step na referência ou declare o Step referenciado.",
                )
            if token.step == name:
                raise SelfReference(
                    message=f"Step '{name}' references its own result ({token.raw})",
                    details={"step": name, "reference": token.raw},
                    hint="Um Step só pode referenciar resultados de outros Steps.",
                )
            if token.step not in deps:
                deps.append(token.step)

        tokens_by_step[name] = tokens
        dependencies[name] = tuple(deps)

    cycle = _find_cycle(order, dependencies)
    if cycle is not None:
        members = [n for n in order if n in cycle]
        raise CircularDependency(
            message=f"Circular dependency between steps: {', '.join(members)}",
            details={"cycle": members},
            hint="Remova uma das referências @step.campo que fecham o ciclo.",
        )

    return DependencyGraph(
        order=tuple(order),
        steps={n: registry.get(n) for n in order},
        dependencies=dependencies,
        references=tokens_by_step,
    )
