"""
Loader canônico de configuração do queryflow.

A configuração efetiva de uma run é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

Chaves reconhecidas (v1):
    - database: database padrão para Steps sem database própria
    - container: container padrão para queries sem container próprio
    - engine.record_query_text: registra o texto final de cada query
      no log de eventos (default: true)
    - steps.<nome>.enabled: desabilita um Step (e, por consequência,
      seus dependentes)

Chaves desconhecidas são preservadas sem validação.

Limites explícitos:
    - Não persiste configuração (save é responsabilidade externa)
    - Não interage com Engine ou Steps
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # PyYAML

from .errors import (
    ConfigNotFoundError,
    ConfigParseError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON e garante que a raiz é um dicionário.

    Arquivos vazios são interpretados como dicionários vazios.
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigParseError(f"Falha ao ler configuração {path}: {exc}") from exc

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(f"Config root deve ser dict, recebido: {type(data).__name__}")

    return data


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validação estrutural das chaves conhecidas.

    Raises:
        InvalidConfigValueError: Valor de tipo inválido numa chave conhecida.
    """
    for key in ("database", "container"):
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidConfigValueError(f"'{key}' deve ser string, recebido: {type(value).__name__}")

    engine = config.get("engine")
    if engine is not None:
        if not isinstance(engine, dict):
            raise InvalidConfigValueError(f"'engine' deve ser dict, recebido: {type(engine).__name__}")
        flag = engine.get("record_query_text")
        if flag is not None and not isinstance(flag, bool):
            raise InvalidConfigValueError("'engine.record_query_text' deve ser booleano")

    steps = config.get("steps")
    if steps is not None:
        if not isinstance(steps, dict):
            raise InvalidConfigValueError(f"'steps' deve ser dict, recebido: {type(steps).__name__}")
        for name, step_cfg in steps.items():
            if step_cfg is None:
                continue
            if not isinstance(step_cfg, dict):
                raise InvalidConfigValueError(f"'steps.{name}' deve ser dict")
            enabled = step_cfg.get("enabled")
            if enabled is not None and not isinstance(enabled, bool):
                raise InvalidConfigValueError(f"'steps.{name}.enabled' deve ser booleano")

    return config


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Args:
        defaults_path (str): Caminho do arquivo de defaults.
        local_path (Optional[str]): Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida e validada.

    Raises:
        ConfigNotFoundError: Defaults inexistente.
        UnsupportedConfigFormatError: Extensão não suportada.
        ConfigParseError: Conteúdo inválido.
        InvalidConfigRootTypeError: Raiz não é dict.
        ConfigTypeConflictError: Conflito estrutural no merge.
        InvalidConfigValueError: Chave conhecida com tipo inválido.
    """
    effective = _load_file(Path(defaults_path))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return validate_config(effective)
