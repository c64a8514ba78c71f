# tests/core/config/test_merge.py
"""
Testes do deep-merge de configuração.

Regras verificadas:
    - dict + dict → merge recursivo
    - listas são substituídas integralmente
    - None na base aceita qualquer valor
    - conflito de tipos → ConfigTypeConflictError com o caminho da chave
    - nenhum input é mutado
"""

import pytest

try:
    from queryflow.core.config.errors import ConfigTypeConflictError
    from queryflow.core.config.merge import deep_merge
except Exception as e:  # noqa: BLE001
    deep_merge = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing deep_merge. Import error: {_IMPORT_ERR}")


def test_nested_dicts_are_merged():
    _require_imports()
    base = {"engine": {"record_query_text": True}, "steps": {"a": {"enabled": True}}}
    override = {"steps": {"b": {"enabled": False}}}

    merged = deep_merge(base, override)

    assert merged == {
        "engine": {"record_query_text": True},
        "steps": {"a": {"enabled": True}, "b": {"enabled": False}},
    }


def test_inputs_are_not_mutated():
    _require_imports()
    base = {"steps": {"a": {"enabled": True}}}
    override = {"steps": {"a": {"enabled": False}}}

    deep_merge(base, override)

    assert base == {"steps": {"a": {"enabled": True}}}
    assert override == {"steps": {"a": {"enabled": False}}}


def test_lists_are_replaced():
    _require_imports()
    assert deep_merge({"tags": ["a", "b"]}, {"tags": ["c"]}) == {"tags": ["c"]}


def test_none_base_accepts_any_value():
    _require_imports()
    assert deep_merge({"database": None}, {"database": "shop"}) == {"database": "shop"}


def test_int_and_float_are_interchangeable():
    _require_imports()
    assert deep_merge({"timeout": 1}, {"timeout": 2.5}) == {"timeout": 2.5}


def test_type_conflict_reports_key_path():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError) as excinfo:
        deep_merge({"steps": {"a": {"enabled": True}}}, {"steps": {"a": {"enabled": "no"}}})
    assert "steps.a.enabled" in str(excinfo.value)
