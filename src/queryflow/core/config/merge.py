"""
Deep-merge de configuração (defaults + overrides locais).

Política de merge (v1):
    - dict + dict → merge recursivo por chave
    - list        → sobrescrita total
    - None na base → aceita qualquer valor do override
    - escalar     → sobrescrita direta, desde que o tipo coincida
    - conflito de tipos → ConfigTypeConflictError

O merge é puramente funcional: nenhum input é mutado.
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _same_kind(base_value: Any, override_value: Any) -> bool:
    if type(base_value) is type(override_value):
        return True
    # int/float são intercambiáveis em YAML (ex.: 1 vs 1.5); bool não é número aqui
    numeric = (int, float)
    return (
        isinstance(base_value, numeric)
        and isinstance(override_value, numeric)
        and not isinstance(base_value, bool)
        and not isinstance(override_value, bool)
    )


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], _path: str = "") -> Dict[str, Any]:
    """
    Combina `base` com `override`, produzindo um novo dicionário.

    Raises:
        ConfigTypeConflictError: Tipos incompatíveis para a mesma chave.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        key_path = f"{_path}.{key}" if _path else str(key)

        if key not in result or result[key] is None:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, key_path)
            continue

        if isinstance(override_value, list):
            result[key] = deepcopy(override_value)
            continue

        if override_value is not None and not _same_kind(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key_path}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result
