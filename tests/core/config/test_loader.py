# tests/core/config/test_loader.py
"""
Testes do carregador de configuração (load_config).

Os testes asseguram que:
- o arquivo defaults é obrigatório
- o arquivo local é opcional e atua apenas como override
- formatos não suportados e conteúdos inválidos são rejeitados
- chaves conhecidas têm seus tipos validados

Decisões arquiteturais:
    - A configuração é declarativa e baseada em arquivos (YAML/JSON)
    - Erros estruturais são tratados como falhas fatais

Invariantes:
    - A configuração final é sempre um dicionário
    - Nenhuma configuração parcial é retornada em caso de erro
"""

import json
from pathlib import Path

import pytest

try:
    from queryflow.core.config.errors import (
        ConfigNotFoundError,
        ConfigParseError,
        InvalidConfigRootTypeError,
        InvalidConfigValueError,
        UnsupportedConfigFormatError,
    )
    from queryflow.core.config.loader import load_config, validate_config
except Exception as e:  # noqa: BLE001
    load_config = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o loader de configuração e suas exceções tipadas estejam disponíveis.

    Não tenta fallback nem implementação alternativa.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing loader/errors modules. Implement:\n"
            "- src/queryflow/core/config/loader.py (load_config, validate_config)\n"
            "- src/queryflow/core/config/errors.py (typed exceptions)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_missing_defaults_raises(tmp_path: Path):
    """
    A ausência do arquivo defaults é erro fatal, antes de qualquer merge.
    """
    _require_imports()
    with pytest.raises(ConfigNotFoundError):
        load_config(defaults_path=str(tmp_path / "config.defaults.yaml"))


def test_local_is_optional(tmp_path: Path, project_like_config_defaults_yaml: str):
    _require_imports()
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "config.local.yaml"))

    assert cfg["database"] == "shop"
    assert cfg["steps"]["customer"]["enabled"] is True


def test_local_overrides_defaults(
    tmp_path: Path,
    project_like_config_defaults_yaml: str,
    project_like_config_local_yaml: str,
):
    """
    Overrides locais alteram apenas o que declaram; o restante dos
    defaults é preservado.
    """
    _require_imports()
    defaults = tmp_path / "config.defaults.yaml"
    local = tmp_path / "config.local.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(local))

    assert cfg["database"] == "shop-dev"
    assert cfg["container"] == "orders"
    assert cfg["engine"]["record_query_text"] is True
    assert cfg["steps"]["order"]["enabled"] is True
    assert cfg["steps"]["customer"]["enabled"] is False


def test_json_defaults_are_supported(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.defaults.json"
    defaults.write_text(json.dumps({"database": "shop"}), encoding="utf-8")
    assert load_config(defaults_path=str(defaults)) == {"database": "shop"}


def test_empty_file_is_empty_config(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("", encoding="utf-8")
    assert load_config(defaults_path=str(defaults)) == {}


def test_unsupported_format(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.defaults.toml"
    defaults.write_text("database = 'x'", encoding="utf-8")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))


def test_invalid_yaml_is_a_parse_error(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("engine: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigParseError):
        load_config(defaults_path=str(defaults))


def test_root_must_be_a_mapping(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))


@pytest.mark.parametrize(
    "config",
    [
        {"database": 1},
        {"engine": "fast"},
        {"engine": {"record_query_text": "yes"}},
        {"steps": ["a"]},
        {"steps": {"a": True}},
        {"steps": {"a": {"enabled": "no"}}},
    ],
)
def test_known_keys_are_type_checked(config):
    _require_imports()
    with pytest.raises(InvalidConfigValueError):
        validate_config(config)


def test_unknown_keys_are_preserved():
    _require_imports()
    cfg = {"database": "shop", "renderer": {"theme": "dark"}, "steps": {"a": None}}
    assert validate_config(cfg) is cfg
