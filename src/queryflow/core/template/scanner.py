# src/queryflow/core/template/scanner.py
"""
Reference Scanner — tokenização de templates de query.

Este módulo transforma o texto bruto de um template em uma sequência de
segmentos tipados, sem executar nada e sem conhecer os demais Steps:

    - LiteralSegment   → texto copiado sem alteração
    - ParameterSegment → placeholder `@nome`
    - ReferenceSegment → referência `@step.campo[.subcampo...]`

Sintaxe reconhecida:
    - `@ident` é parâmetro; `@ident.seg(.seg)*` é referência a outro Step
    - um `.` final sem segmento depois dele é texto literal
    - `@@` é um `@` literal escapado
    - nada é reconhecido dentro de strings ('...' ou "...") nem de
      comentários `--` até o fim da linha

Decisões arquiteturais:
    - Referências a Steps desconhecidos NÃO são rejeitadas aqui; essa
      validação pertence ao Dependency Graph Builder
    - Segmentos literais adjacentes são fundidos em um único segmento
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Union

from queryflow.core.pipeline.types import ReferenceToken


_TOKEN_RE = re.compile(r"@(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?P<path>(?:\.[A-Za-z0-9_]+)*)")


@dataclass(frozen=True)
class LiteralSegment:
    text: str


@dataclass(frozen=True)
class ParameterSegment:
    name: str

    @property
    def raw(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class ReferenceSegment:
    token: ReferenceToken


Segment = Union[LiteralSegment, ParameterSegment, ReferenceSegment]


def _string_end(text: str, start: int) -> int:
    # aceita escape com barra e aspas duplicadas ('it''s'); string sem fechamento vai até o fim
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == quote:
            if i + 1 < n and text[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def tokenize(template: str) -> List[Segment]:
    """
    Tokeniza um template em segmentos literais, de parâmetro e de referência.

    A concatenação dos segmentos (com `@` nos tokens) reproduz o template,
    exceto pelos escapes `@@`, que viram `@` literal.

    Args:
        template (str): Texto bruto da query.

    Returns:
        List[Segment]: Segmentos na ordem textual.
    """
    segments: List[Segment] = []
    buf: List[str] = []

    def flush() -> None:
        if buf:
            segments.append(LiteralSegment("".join(buf)))
            buf.clear()

    i = 0
    n = len(template)
    while i < n:
        ch = template[i]

        if ch in ("'", '"'):
            end = _string_end(template, i)
            buf.append(template[i:end])
            i = end
            continue

        if ch == "-" and template.startswith("--", i):
            end = template.find("\n", i)
            end = n if end == -1 else end
            buf.append(template[i:end])
            i = end
            continue

        if ch == "@":
            if template.startswith("@@", i):
                buf.append("@")
                i += 2
                continue
            m = _TOKEN_RE.match(template, i)
            if m is None:
                buf.append(ch)
                i += 1
                continue
            flush()
            name = m.group("name")
            path = m.group("path")
            if path:
                token = ReferenceToken(step=name, field_path=tuple(path[1:].split(".")), raw=m.group(0))
                segments.append(ReferenceSegment(token))
            else:
                segments.append(ParameterSegment(name))
            i = m.end()
            continue

        buf.append(ch)
        i += 1

    flush()
    return segments


def scan_references(template: str) -> List[ReferenceToken]:
    """Referências `@step.campo` do template, em ordem textual (com repetições)."""
    return [s.token for s in tokenize(template) if isinstance(s, ReferenceSegment)]


def scan_parameters(template: str) -> List[str]:
    """Nomes de parâmetros `@nome` do template, sem repetição, em ordem textual."""
    seen: List[str] = []
    for s in tokenize(template):
        if isinstance(s, ParameterSegment) and s.name not in seen:
            seen.append(s.name)
    return seen
