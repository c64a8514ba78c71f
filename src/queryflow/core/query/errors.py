"""Erros canônicos do domínio de stored queries (queryflow).

O arquivo de query é uma entrada declarativa crítica: falhas de leitura ou
de estrutura devem produzir erros explícitos e estáveis, antes de qualquer
construção de pipeline.
"""


class StoredQueryError(Exception):
    """Erro base do domínio de stored queries."""


class StoredQueryNotFoundError(StoredQueryError):
    """Arquivo de query não existe no caminho informado."""


class MissingFrontMatterError(StoredQueryError):
    """Arquivo sem os delimitadores `---` do front matter."""


class InvalidMetadataError(StoredQueryError):
    """Front matter não é YAML válido ou não segue o schema esperado."""


class EmptyQueryError(StoredQueryError):
    """Arquivo (ou seção de Step) sem corpo SQL."""


class StepSectionError(StoredQueryError):
    """Seções `-- step:` inconsistentes com os Steps declarados."""


class MissingTargetError(StoredQueryError):
    """Nenhum container definido para um Step (query, Step ou config)."""
