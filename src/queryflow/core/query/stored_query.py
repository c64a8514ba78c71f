"""
Stored queries — arquivos de query com front matter YAML.

Formato de uma query de um único Step:

    ---
    description: Usuários recentes
    database: mydb
    container: users
    params:
      - name: days
        type: number
        default: 30
    ---
    SELECT * FROM c WHERE c.createdAt >= DateTimeAdd("dd", -@days, GetCurrentDateTime())

Formato multi-step: o front matter declara `steps` e o corpo é dividido
em seções iniciadas por `-- step: <nome>`:

    ---
    description: Pedido e cliente
    params:
      - name: orderId
        type: string
    steps:
      - name: order
        container: orders
      - name: customer
        container: customers
    ---
    -- step: order
    SELECT * FROM c WHERE c.id = @orderId

    -- step: customer
    SELECT * FROM c WHERE c.id = @order.customerId

Responsabilidades do módulo:
    - Separar (python-frontmatter) e validar front matter e corpo SQL
    - Associar cada seção `-- step:` a um Step declarado
    - Produzir as StepDefinitions consumidas pelo Engine
    - Localizar queries por nome (diretório do projeto antes do usuário)

Limites explícitos:
    - Não resolve parâmetros (ver `params`)
    - Não executa queries
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml  # PyYAML
from frontmatter.default_handlers import YAMLHandler  # python-frontmatter

from queryflow.core.pipeline.context import RunContext
from queryflow.core.pipeline.types import StepDefinition

from .errors import (
    EmptyQueryError,
    InvalidMetadataError,
    MissingFrontMatterError,
    MissingTargetError,
    StepSectionError,
    StoredQueryError,
    StoredQueryNotFoundError,
)
from .params import ParamDef


_STEP_HEADER_RE = re.compile(r"^\s*--\s*step:\s*(?P<name>\S+)\s*$")

_FRONT_MATTER = YAMLHandler()

QUERY_FILE_SUFFIX = ".cosq"
QUERIES_DIR = Path(".cosq") / "queries"
CATALOG_STEP_ID = "stored_queries"


@dataclass(frozen=True)
class StepSpec:
    """Step declarado no front matter (`steps:`)."""

    name: str
    container: Optional[str] = None
    database: Optional[str] = None


@dataclass(frozen=True)
class StoredQuery:
    """
    Stored query já parseada.

    Campos:
        - name: nome do arquivo sem extensão
        - description, database, container: metadados do front matter
        - params: definições de parâmetros
        - steps: Steps declarados (vazio para query de um único Step)
        - sql: corpo SQL completo (após o front matter)
        - step_queries: SQL de cada Step, por nome (multi-step)
        - template, template_file: template de saída para o renderizador externo
    """

    name: str
    description: str = ""
    database: Optional[str] = None
    container: Optional[str] = None
    params: List[ParamDef] = field(default_factory=list)
    steps: List[StepSpec] = field(default_factory=list)
    sql: str = ""
    step_queries: Dict[str, str] = field(default_factory=dict)
    template: Optional[str] = None
    template_file: Optional[str] = None

    @property
    def is_multi_step(self) -> bool:
        return bool(self.steps)

    def step_definitions(
        self,
        *,
        database: Optional[str] = None,
        container: Optional[str] = None,
    ) -> List[StepDefinition]:
        """
        StepDefinitions em ordem de autoria.

        Precedência do alvo: Step > query > argumentos (tipicamente config).

        Raises:
            MissingTargetError: Nenhum container resolvido para algum Step.
        """
        if not self.is_multi_step:
            target = self.container or container
            if not target:
                raise MissingTargetError(f"query '{self.name}' has no container")
            return [
                StepDefinition(
                    name=self.name,
                    container=target,
                    template=self.sql,
                    database=self.database or database,
                )
            ]

        definitions: List[StepDefinition] = []
        for spec in self.steps:
            target = spec.container or self.container or container
            if not target:
                raise MissingTargetError(f"step '{spec.name}' of query '{self.name}' has no container")
            definitions.append(
                StepDefinition(
                    name=spec.name,
                    container=target,
                    template=self.step_queries[spec.name],
                    database=spec.database or self.database or database,
                )
            )
        return definitions


def _split_front_matter(contents: str) -> Tuple[Dict[str, Any], str]:
    text = contents.lstrip()
    if not _FRONT_MATTER.detect(text):
        raise MissingFrontMatterError("invalid query file: missing front matter delimiters (---)")
    try:
        raw_metadata, body = _FRONT_MATTER.split(text)
    except ValueError:
        raise MissingFrontMatterError("invalid query file: missing front matter delimiters (---)") from None

    try:
        metadata = _FRONT_MATTER.load(raw_metadata) or {}
    except yaml.YAMLError as exc:
        raise InvalidMetadataError(f"failed to parse query metadata: {exc}") from exc
    if not isinstance(metadata, dict):
        raise InvalidMetadataError("query metadata must be a mapping")
    return metadata, body


def _split_step_sections(body: str, declared: List[str]) -> Dict[str, str]:
    sections: Dict[str, List[str]] = {}
    current: Optional[str] = None
    preamble: List[str] = []

    for line in body.splitlines():
        m = _STEP_HEADER_RE.match(line)
        if m is not None:
            current = m.group("name")
            if current in sections:
                raise StepSectionError(f"duplicate section for step '{current}'")
            if current not in declared:
                raise StepSectionError(f"section for undeclared step '{current}'")
            sections[current] = []
            continue
        if current is None:
            preamble.append(line)
        else:
            sections[current].append(line)

    if "".join(preamble).strip():
        raise StepSectionError("SQL found before the first '-- step:' section")

    missing = [name for name in declared if name not in sections]
    if missing:
        raise StepSectionError(f"missing '-- step:' section for: {', '.join(missing)}")

    result: Dict[str, str] = {}
    for name in declared:
        sql = "\n".join(sections[name]).strip()
        if not sql:
            raise EmptyQueryError(f"step '{name}' has no SQL body")
        result[name] = sql
    return result


def _parse_steps(raw: Any) -> List[StepSpec]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidMetadataError("'steps' must be a list")
    specs: List[StepSpec] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidMetadataError("each step requires a string 'name'")
        specs.append(StepSpec(name=item["name"], container=item.get("container"), database=item.get("database")))
    return specs


def parse_stored_query(name: str, contents: str) -> StoredQuery:
    """
    Faz o parse do conteúdo de um arquivo de query.

    Raises:
        MissingFrontMatterError: Sem delimitadores `---`.
        InvalidMetadataError: Front matter inválido.
        EmptyQueryError: Sem corpo SQL.
        StepSectionError: Seções `-- step:` inconsistentes.
    """
    metadata, body = _split_front_matter(contents)

    try:
        params = [ParamDef.from_dict(p) for p in metadata.get("params") or []]
    except (ValueError, TypeError) as exc:
        raise InvalidMetadataError(f"invalid parameter definition: {exc}") from exc

    steps = _parse_steps(metadata.get("steps"))
    sql = body.strip()
    if not sql:
        raise EmptyQueryError("query file has no SQL body")

    step_queries: Dict[str, str] = {}
    if steps:
        step_queries = _split_step_sections(body, [s.name for s in steps])

    return StoredQuery(
        name=name,
        description=str(metadata.get("description") or ""),
        database=metadata.get("database"),
        container=metadata.get("container"),
        params=params,
        steps=steps,
        sql=sql,
        step_queries=step_queries,
        template=metadata.get("template"),
        template_file=metadata.get("template_file"),
    )


def load_stored_query(path: str) -> StoredQuery:
    """Carrega uma stored query de um arquivo; o nome é o nome do arquivo sem extensão."""
    file = Path(path)
    if not file.exists():
        raise StoredQueryNotFoundError(f"stored query not found: {file}")
    return parse_stored_query(file.stem, file.read_text(encoding="utf-8"))


def default_search_dirs(cwd: Optional[Path] = None, home: Optional[Path] = None) -> List[Path]:
    """`.cosq/queries` do projeto (cwd) e do usuário (home), nessa ordem de precedência."""
    project = Path(cwd) if cwd is not None else Path.cwd()
    user = Path(home) if home is not None else Path.home()
    return [project / QUERIES_DIR, user / QUERIES_DIR]


def _query_filename(name: str) -> str:
    return name if name.endswith(QUERY_FILE_SUFFIX) else f"{name}{QUERY_FILE_SUFFIX}"


def find_stored_query(name: str, *, search_dirs: Iterable[Union[str, Path]]) -> StoredQuery:
    """
    Procura uma stored query pelo nome (com ou sem a extensão `.cosq`).

    `search_dirs` vem em ordem de precedência: o primeiro diretório que
    contém o arquivo vence (tipicamente projeto, depois usuário).

    Raises:
        StoredQueryNotFoundError: Nenhum diretório contém a query.
    """
    filename = _query_filename(name)
    for directory in search_dirs:
        candidate = Path(directory) / filename
        if candidate.is_file():
            return load_stored_query(str(candidate))
    raise StoredQueryNotFoundError(f"stored query '{name}' not found")


def list_stored_queries(
    search_dirs: Iterable[Union[str, Path]],
    *,
    ctx: Optional[RunContext] = None,
) -> List[StoredQuery]:
    """
    Lista as stored queries de todos os diretórios, ordenadas por nome.

    Mesma precedência de `find_stored_query`: uma query de um diretório
    anterior substitui a de mesmo nome num diretório posterior. Diretórios
    inexistentes são ignorados. Arquivos que falham no parse são pulados;
    cada um gera um evento `warning` no `ctx`, quando informado.
    """
    found: Dict[str, StoredQuery] = {}
    # menor precedência primeiro: os diretórios seguintes sobrescrevem
    for directory in reversed([Path(d) for d in search_dirs]):
        if not directory.is_dir():
            continue
        for file in sorted(directory.glob(f"*{QUERY_FILE_SUFFIX}")):
            try:
                query = load_stored_query(str(file))
            except (StoredQueryError, UnicodeDecodeError) as exc:
                if ctx is not None:
                    ctx.log(
                        step_id=CATALOG_STEP_ID,
                        level="warning",
                        message="skipping stored query",
                        path=str(file),
                        reason=str(exc),
                    )
                continue
            found[query.name] = query
    return [found[name] for name in sorted(found)]
