"""
queryflow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do queryflow.

Erros são artefatos do resultado de uma execução e fazem parte do contrato
consumido pela camada de renderização, devendo ser:
- explícitos
- serializáveis
- rastreáveis ao Step que falhou

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import (
    CircularDependency,
    DuplicateStepName,
    EmptyReferencedResult,
    FieldNotFound,
    ParameterResolutionError,
    QueryflowException,
    SelfReference,
    StepExecutionError,
    UnknownStepReference,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QueryflowErrorPayload:
    """
    Payload canônico de erro do queryflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Construção
PIPELINE_DUPLICATE_STEP = "PIPELINE_DUPLICATE_STEP"
PIPELINE_UNKNOWN_STEP_REFERENCE = "PIPELINE_UNKNOWN_STEP_REFERENCE"
PIPELINE_SELF_REFERENCE = "PIPELINE_SELF_REFERENCE"
PIPELINE_CIRCULAR_DEPENDENCY = "PIPELINE_CIRCULAR_DEPENDENCY"

# Resolução
RESOLUTION_PARAMETER = "RESOLUTION_PARAMETER"
RESOLUTION_EMPTY_REFERENCED_RESULT = "RESOLUTION_EMPTY_REFERENCED_RESULT"
RESOLUTION_FIELD_NOT_FOUND = "RESOLUTION_FIELD_NOT_FOUND"

# Engine / Execução
STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


_TYPE_BY_EXCEPTION = (
    (DuplicateStepName, PIPELINE_DUPLICATE_STEP),
    (UnknownStepReference, PIPELINE_UNKNOWN_STEP_REFERENCE),
    (SelfReference, PIPELINE_SELF_REFERENCE),
    (CircularDependency, PIPELINE_CIRCULAR_DEPENDENCY),
    (ParameterResolutionError, RESOLUTION_PARAMETER),
    (EmptyReferencedResult, RESOLUTION_EMPTY_REFERENCED_RESULT),
    (FieldNotFound, RESOLUTION_FIELD_NOT_FOUND),
    (StepExecutionError, STEP_EXECUTION_ERROR),
)


def error_type_for(exc: BaseException) -> str:
    """Código estável do catálogo para uma exceção (fallback: ENGINE_EXECUTION_ERROR)."""
    for cls, code in _TYPE_BY_EXCEPTION:
        if isinstance(exc, cls):
            return code
    return ENGINE_EXECUTION_ERROR


def exception_to_payload(exc: BaseException, *, step: Optional[str] = None) -> QueryflowErrorPayload:
    """Converte exceções em QueryflowErrorPayload (serializável, acionável).

    Regras:
    - QueryflowException: já vem com message/details/hint.
    - Outras exceções: encapsuladas como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, QueryflowException):
        details = dict(exc.details or {})
        if step is not None:
            details.setdefault("step", step)
        cause = exc.__cause__
        if cause is not None:
            details.setdefault("cause_class", cause.__class__.__name__)
            details.setdefault("cause_message", str(cause))
        return QueryflowErrorPayload(
            type=error_type_for(exc),
            message=exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    return engine_execution_error(
        step=step,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc),
    )


def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log de eventos do run para diagnosticar a falha. Nenhum retry é aplicado automaticamente.",
) -> QueryflowErrorPayload:
    return QueryflowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução do pipeline",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
