# src/queryflow/core/template/resolver.py
"""
Parameter & Reference Resolver.

Este módulo produz o texto final de query de um Step a partir de:
    - seu template bruto (tokenizado pelo Reference Scanner)
    - um ParameterResolver para placeholders `@nome`
    - os Records dos Steps já concluídos em layers anteriores

Política de resolução:
    - `@nome` → valor do ParameterResolver; ausência levanta
      ParameterResolutionError
    - `@step.campo` → campo do PRIMEIRO Record do Step referenciado, na
      ordem de chegada devolvida pela fonte de dados (sem ordenação)
    - resultado vazio → EmptyReferencedResult
    - segmento de caminho inexistente → FieldNotFound
    - valores são renderizados como literais JSON (`"C1"`, `42`, `true`, `null`)

Navegação de caminho:
    - Record/dict → chave do segmento
    - lista + segmento numérico → elemento no índice
    - lista + segmento não numérico → primeiro elemento, depois a chave

Limites explícitos:
    - Não executa queries
    - Não decide quando resolver; o Engine só chama este módulo depois da
      barreira do layer anterior
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from queryflow.core.exceptions import EmptyReferencedResult, FieldNotFound, ResolutionError
from queryflow.core.pipeline.collaborators import MappingParameterResolver, ParameterResolver
from queryflow.core.pipeline.types import Record, ReferenceToken, StepDefinition

from .scanner import LiteralSegment, ParameterSegment, ReferenceSegment, tokenize


@dataclass(frozen=True)
class ResolvedQuery:
    """
    Query final de um Step.

    `parameters` lista cada valor substituído no formato
    `{"name": "@x", "value": v}` (um por token distinto), útil para
    diagnóstico e para executores que preferem queries parametrizadas.
    """

    step_name: str
    text: str
    parameters: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def render_literal(value: Any) -> str:
    """Renderiza um valor como literal JSON para inserção no texto da query."""
    return json.dumps(value, ensure_ascii=False, default=str)


def _available_fields(value: Any) -> List[str]:
    if isinstance(value, Mapping):
        return [str(k) for k in value.keys()]
    return []


def extract_field(record: Record, path: Tuple[str, ...], *, token: ReferenceToken, referencing_step: str) -> Any:
    """
    Navega `path` dentro de um Record.

    Raises:
        FieldNotFound: Se algum segmento não existir.
    """
    current: Any = record
    for depth, segment in enumerate(path):
        if isinstance(current, list):
            if segment.isdigit():
                idx = int(segment)
                if idx >= len(current):
                    raise _field_not_found(token, referencing_step, path[: depth + 1], current)
                current = current[idx]
                continue
            if not current:
                raise _field_not_found(token, referencing_step, path[: depth + 1], current)
            current = current[0]

        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        else:
            raise _field_not_found(token, referencing_step, path[: depth + 1], current)
    return current


def _field_not_found(
    token: ReferenceToken,
    referencing_step: str,
    missing_path: Tuple[str, ...],
    at: Any,
) -> FieldNotFound:
    available = _available_fields(at)
    return FieldNotFound(
        message=(
            f"Field '{'.'.join(missing_path)}' not found in step '{token.step}' result. "
            f"Available fields: {', '.join(available) if available else 'none'}"
        ),
        details={
            "step": referencing_step,
            "referenced_step": token.step,
            "reference": token.raw,
            "missing_path": ".".join(missing_path),
            "available_fields": available,
        },
        hint="Ajuste o caminho da referência ou a projeção da query do Step referenciado.",
    )


def resolve_reference(
    token: ReferenceToken,
    completed: Mapping[str, Sequence[Record]],
    *,
    referencing_step: str,
) -> Tuple[Any, int]:
    """
    Resolve uma referência contra os Records já disponíveis.

    Returns:
        Tuple[Any, int]: valor extraído e quantidade de Records do Step
        referenciado (para avisar quando havia mais de um).
    """
    if token.step not in completed:
        raise ResolutionError(
            message=f"Step '{token.step}' has not been executed yet (dependency error)",
            details={"step": referencing_step, "referenced_step": token.step, "reference": token.raw},
        )

    records = completed[token.step]
    if not records:
        raise EmptyReferencedResult(
            message=f"Step '{token.step}' returned no results, cannot resolve {token.raw}",
            details={"step": referencing_step, "referenced_step": token.step, "reference": token.raw},
            hint=f"Verifique a query do Step '{token.step}' ou os parâmetros usados nela.",
        )

    value = extract_field(records[0], token.field_path, token=token, referencing_step=referencing_step)
    return value, len(records)


def resolve_step_query(
    step: StepDefinition,
    parameters: Union[ParameterResolver, Mapping[str, Any], None],
    completed: Mapping[str, Sequence[Record]],
) -> ResolvedQuery:
    """
    Produz o texto final da query de um Step.

    Args:
        step (StepDefinition): Step a resolver.
        parameters: ParameterResolver, ou mapa de parâmetros já resolvidos.
        completed: Records dos Steps concluídos, indexados por nome.

    Returns:
        ResolvedQuery: texto final, valores substituídos e warnings.

    Raises:
        ParameterResolutionError: Parâmetro sem valor.
        EmptyReferencedResult: Step referenciado sem Records.
        FieldNotFound: Caminho de campo inexistente.
    """
    if parameters is None or isinstance(parameters, Mapping):
        resolver: ParameterResolver = MappingParameterResolver(parameters or {})
    else:
        resolver = parameters

    out: List[str] = []
    substituted: Dict[str, Any] = {}
    warnings: List[str] = []

    for segment in tokenize(step.template):
        if isinstance(segment, LiteralSegment):
            out.append(segment.text)
            continue

        if isinstance(segment, ParameterSegment):
            key = segment.raw
            if key not in substituted:
                substituted[key] = resolver.resolve(segment.name)
            out.append(render_literal(substituted[key]))
            continue

        if isinstance(segment, ReferenceSegment):
            token = segment.token
            if token.raw not in substituted:
                value, count = resolve_reference(token, completed, referencing_step=step.name)
                substituted[token.raw] = value
                if count > 1:
                    warnings.append(
                        f"step '{token.step}' returned {count} records; using the first for {token.raw}"
                    )
            out.append(render_literal(substituted[token.raw]))

    return ResolvedQuery(
        step_name=step.name,
        text="".join(out),
        parameters=[{"name": name, "value": value} for name, value in substituted.items()],
        warnings=warnings,
    )
