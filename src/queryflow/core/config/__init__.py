"""
Camada de configuração do queryflow.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução da configuração final via deep-merge determinístico
    - Validação estrutural das chaves conhecidas
    - Hash canônico para correlacionar runs

A configuração final é sempre um dicionário puro, consumido pelo
RunContext e, através dele, pelo Engine.
"""

from .errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigTypeConflictError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config, validate_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigTypeConflictError",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "deep_merge",
    "load_config",
    "validate_config",
]
