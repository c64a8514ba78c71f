# src/queryflow/core/pipeline/collaborators.py
"""
Contratos dos colaboradores externos consumidos pelo Engine.

Este módulo define os protocolos que isolam o core de qualquer cliente
concreto de banco de dados ou mecanismo de resolução de parâmetros:

    - QueryExecutor     → executa uma query textual contra um alvo
    - ParameterResolver → resolve o valor de um parâmetro `@nome`

Decisões arquiteturais:
    - Conformidade por duck typing (`@runtime_checkable`), sem herança
    - `QueryExecutor.run` pode ser corrotina ou função síncrona; o Step
      Executor trata ambos os casos
    - A mesma instância de executor é compartilhada por todos os Steps de
      um layer e deve tolerar invocação concorrente

Limites explícitos:
    - Não define autenticação, retry ou timeout (responsabilidade do executor)
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from queryflow.core.exceptions import ParameterResolutionError

from .types import QueryTarget


@runtime_checkable
class QueryExecutor(Protocol):
    """
    Executor externo de queries.

    `run(target, query_text)` retorna um `QueryResult` ou uma tupla
    `(records, cost)`. Erros são reportados levantando qualquer exceção
    (tipicamente `QueryError`); o Step Executor as encapsula.
    """

    def run(self, target: QueryTarget, query_text: str) -> Any:
        ...


@runtime_checkable
class ParameterResolver(Protocol):
    """Resolve um parâmetro pelo nome ou levanta `ParameterResolutionError`."""

    def resolve(self, name: str) -> Any:
        ...


class MappingParameterResolver:
    """ParameterResolver sobre um mapa de valores já resolvidos."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self.values: Dict[str, Any] = dict(values or {})

    def resolve(self, name: str) -> Any:
        if name not in self.values:
            raise ParameterResolutionError(
                message=f"Parameter '{name}' is required",
                details={"parameter": name, "reason": "missing"},
                hint=f"Informe um valor para @{name} na invocação ou declare um default.",
            )
        return self.values[name]
