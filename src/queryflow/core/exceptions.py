"""
queryflow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do queryflow.

Objetivo:
- Permitir que Engine, resolver e executor levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para QueryflowErrorPayload
- Separar erros de construção (fatais, antes de qualquer execução) de erros
  de resolução/execução (escopo de um único Step)

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; o diagnóstico vive em `details`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class QueryflowException(Exception):
    """Base class para exceções internas do queryflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Construção do pipeline (fatais: nenhuma execução ocorre)
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class PipelineConstructionError(QueryflowException):
    """Erro estrutural detectado antes da execução do primeiro layer."""


@dataclass(eq=False)
class DuplicateStepName(PipelineConstructionError):
    """Dois Steps declaram o mesmo `name`."""


@dataclass(eq=False)
class UnknownStepReference(PipelineConstructionError):
    """Um template referencia (`@step.field`) um Step inexistente."""


@dataclass(eq=False)
class SelfReference(PipelineConstructionError):
    """Um Step referencia o próprio resultado."""


@dataclass(eq=False)
class CircularDependency(PipelineConstructionError):
    """As referências entre Steps formam um ciclo."""


# ---------------------------------------------------------------------------
# Resolução de templates (escopo: Step afetado e dependentes)
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class ResolutionError(QueryflowException):
    """Falha ao produzir o texto final da query de um Step."""


@dataclass(eq=False)
class ParameterResolutionError(ResolutionError):
    """Parâmetro obrigatório sem valor, ou valor inválido para a definição."""


@dataclass(eq=False)
class EmptyReferencedResult(ResolutionError):
    """O Step referenciado não retornou nenhum Record."""


@dataclass(eq=False)
class FieldNotFound(ResolutionError):
    """O caminho de campo da referência não existe no primeiro Record."""


# ---------------------------------------------------------------------------
# Execução (escopo: Step afetado e dependentes)
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class QueryError(QueryflowException):
    """Erro opaco reportado pelo executor externo de queries.

    Executores podem levantar esta exceção (ou qualquer outra); o Step
    Executor a encapsula sem interpretá-la.
    """


@dataclass(eq=False)
class StepExecutionError(QueryflowException):
    """Falha do executor externo, marcada com o nome do Step dono."""

    step: Optional[str] = None
