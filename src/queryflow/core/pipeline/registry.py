# src/queryflow/core/pipeline/registry.py
"""
Registro estrutural de Steps do pipeline.

Este módulo define o `StepRegistry`, responsável por registrar definições
de Steps e validar a integridade estrutural mínima do pipeline antes de
qualquer análise de referências ou execução.

O registry garante que:
    - cada Step possua um nome válido
    - não existam nomes duplicados
    - a ordem de autoria seja preservada explicitamente

A ordem de autoria é relevante para diagnósticos: ciclos são reportados
nessa ordem, layers iteram nessa ordem e a causa canônica de uma falha é
o primeiro Step com falha nessa ordem.

Limites explícitos:
    - Não resolve referências entre Steps
    - Não planeja nem executa
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from queryflow.core.exceptions import DuplicateStepName

from .types import StepDefinition


@dataclass
class StepRegistry:
    """
    Registro de StepDefinitions em ordem de autoria.

    Invariantes:
        - Cada `name` é único no registry
        - `list()` reflete exatamente a ordem de registro
    """

    _steps: Dict[str, StepDefinition] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def from_steps(cls, steps: Iterable[StepDefinition]) -> "StepRegistry":
        registry = cls()
        for step in steps:
            registry.add(step)
        return registry

    def add(self, step: StepDefinition) -> None:
        name = getattr(step, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("step.name must be a non-empty string")
        if name in self._steps:
            raise DuplicateStepName(
                message=f"Duplicate step name: {name}",
                details={"step": name},
                hint="Renomeie um dos Steps; nomes identificam resultados e referências.",
            )
        self._steps[name] = step
        self._order.append(name)

    def get(self, name: str) -> StepDefinition:
        return self._steps[name]

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __len__(self) -> int:
        return len(self._order)

    def names(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[StepDefinition]:
        return [self._steps[n] for n in self._order]
