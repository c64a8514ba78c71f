"""
Templates de query do queryflow.

Este pacote reúne a mini-linguagem de templates usada pelos Steps:

    - scanner  → tokenização em segmentos literais, de parâmetro e de referência
    - resolver → substituição de parâmetros e referências pelo texto final

Ambos são puros (sem I/O) e testáveis isoladamente.
"""

from .resolver import ResolvedQuery, extract_field, render_literal, resolve_step_query
from .scanner import (
    LiteralSegment,
    ParameterSegment,
    ReferenceSegment,
    scan_parameters,
    scan_references,
    tokenize,
)

__all__ = [
    "LiteralSegment",
    "ParameterSegment",
    "ReferenceSegment",
    "ResolvedQuery",
    "extract_field",
    "render_literal",
    "resolve_step_query",
    "scan_parameters",
    "scan_references",
    "tokenize",
]
