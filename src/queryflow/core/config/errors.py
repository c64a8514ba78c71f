"""
Exceções canônicas da camada de configuração do queryflow.

Todas as falhas de carregamento, merge e validação estrutural da
configuração herdam de `ConfigError`, permitindo captura genérica pelo
chamador (CLI, testes) e distinção clara em relação a falhas de execução
de Steps.

Limites explícitos:
    - Não representa erro de execução do pipeline
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """Exceção base para erros de configuração do queryflow."""


class ConfigNotFoundError(ConfigError):
    """
    O arquivo de configuração base não existe no caminho informado.

    O arquivo de defaults é obrigatório; overrides locais ausentes são
    simplesmente ignorados pelo loader.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada.

    Formatos suportados (v1): YAML (.yaml, .yml) e JSON (.json).
    """


class ConfigParseError(ConfigError):
    """O conteúdo do arquivo não é YAML/JSON válido."""


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz da configuração não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"record_query_text": true}}
        - override: {"engine": "verbose"}
    """


class InvalidConfigValueError(ConfigError):
    """Uma chave conhecida da configuração possui valor de tipo inválido."""
