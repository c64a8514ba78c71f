"""
Stored queries do queryflow.

Um arquivo de query combina front matter YAML (descrição, alvo,
parâmetros, Steps) com o corpo SQL. Este pacote faz o parse, resolve
parâmetros com fallback, localiza queries por nome e executa a query através do Engine.
"""

from .errors import (
    EmptyQueryError,
    InvalidMetadataError,
    MissingFrontMatterError,
    MissingTargetError,
    StepSectionError,
    StoredQueryError,
    StoredQueryNotFoundError,
)
from .params import ParamDef, ParamType, StoredParameterResolver, parse_param_value
from .runner import run_stored_query
from .stored_query import (
    StepSpec,
    StoredQuery,
    default_search_dirs,
    find_stored_query,
    list_stored_queries,
    load_stored_query,
    parse_stored_query,
)

__all__ = [
    "EmptyQueryError",
    "InvalidMetadataError",
    "MissingFrontMatterError",
    "MissingTargetError",
    "ParamDef",
    "ParamType",
    "StepSectionError",
    "StepSpec",
    "StoredParameterResolver",
    "StoredQuery",
    "StoredQueryError",
    "StoredQueryNotFoundError",
    "default_search_dirs",
    "find_stored_query",
    "list_stored_queries",
    "load_stored_query",
    "parse_param_value",
    "parse_stored_query",
    "run_stored_query",
]
