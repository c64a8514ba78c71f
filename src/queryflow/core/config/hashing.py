"""
Hashing canônico de configuração do queryflow.

O hash identifica estruturalmente a configuração efetiva de uma run e é
registrado no evento "pipeline started" do RunContext, permitindo
correlacionar execuções feitas com a mesma configuração.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Codificação UTF-8
    - SHA-256 em hexadecimal (64 caracteres)

Invariantes:
    - Configurações estruturalmente equivalentes produzem o mesmo hash,
      independente da ordem original das chaves
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva.

    Args:
        config (Dict[str, Any]): Configuração resolvida.

    Returns:
        str: Hash SHA-256 hexadecimal.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(f"Config para hashing deve ser dict, recebido: {type(config).__name__}")

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
