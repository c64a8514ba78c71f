# tests/core/query/test_params.py
"""
Testes de definição e resolução de parâmetros de stored queries.

Cadeia de fallback verificada:
    1. valor informado na invocação (texto convertido para o tipo)
    2. default armazenado
    3. única opção de `choices`
    4. erro `missing` se obrigatório; senão, sem valor

Validações verificadas: tipo, min/max, choices e pattern, sempre como
ParameterResolutionError com `details["reason"]` estável.
"""

import pytest

try:
    from queryflow.core.exceptions import ParameterResolutionError
    from queryflow.core.query.params import (
        ParamDef,
        ParamType,
        StoredParameterResolver,
        parse_param_value,
    )
except Exception as e:  # noqa: BLE001
    ParamDef = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing stored query params. Import error: {_IMPORT_ERR}")


def _reason(excinfo):
    return excinfo.value.details["reason"]


def test_parse_number_prefers_int():
    _require_imports()
    assert parse_param_value("n", ParamType.NUMBER, "30") == 30
    assert isinstance(parse_param_value("n", ParamType.NUMBER, "30"), int)
    assert parse_param_value("n", ParamType.NUMBER, "2.5") == 2.5


def test_parse_bool_accepts_common_spellings():
    _require_imports()
    for raw in ("true", "TRUE", "1", "yes"):
        assert parse_param_value("b", ParamType.BOOL, raw) is True
    for raw in ("false", "0", "No"):
        assert parse_param_value("b", ParamType.BOOL, raw) is False


def test_parse_invalid_values():
    _require_imports()
    with pytest.raises(ParameterResolutionError) as excinfo:
        parse_param_value("n", ParamType.NUMBER, "thirty")
    assert _reason(excinfo) == "invalid_type"
    with pytest.raises(ParameterResolutionError):
        parse_param_value("b", ParamType.BOOL, "maybe")


def test_from_dict_and_required_default():
    _require_imports()
    p = ParamDef.from_dict({"name": "days", "type": "number", "default": 30, "min": 1})
    assert p.type == ParamType.NUMBER
    assert p.is_required is False
    assert ParamDef.from_dict({"name": "id"}).is_required is True
    assert ParamDef.from_dict({"name": "id", "required": False}).is_required is False
    with pytest.raises(ValueError):
        ParamDef.from_dict({"type": "string"})


@pytest.mark.parametrize(
    "definition, value, reason",
    [
        ({"name": "x", "type": "string"}, 5, "invalid_type"),
        ({"name": "x", "type": "number"}, True, "invalid_type"),
        ({"name": "x", "type": "bool"}, "true", "invalid_type"),
        ({"name": "x", "type": "number", "min": 1}, 0, "below_min"),
        ({"name": "x", "type": "number", "max": 10}, 11, "above_max"),
        ({"name": "x", "choices": ["open", "closed"]}, "lost", "invalid_choice"),
        ({"name": "x", "pattern": "^C[0-9]+$"}, "X1", "pattern_mismatch"),
    ],
)
def test_validation_reasons(definition, value, reason):
    _require_imports()
    with pytest.raises(ParameterResolutionError) as excinfo:
        ParamDef.from_dict(definition).validate(value)
    assert _reason(excinfo) == reason


def test_fallback_chain():
    """
    - `days` vem da invocação (texto "7" → 7)
    - `status` usa o default
    - `region` usa a única opção de choices
    - `note` é opcional e fica sem valor
    """
    _require_imports()
    resolver = StoredParameterResolver(
        [
            ParamDef(name="days", type=ParamType.NUMBER, default=30),
            ParamDef(name="status", default="open"),
            ParamDef(name="region", choices=["br"]),
            ParamDef(name="note", required=False),
        ],
        provided={"days": "7"},
    )

    assert resolver.resolve_all() == {"days": 7, "status": "open", "region": "br"}
    assert resolver.resolve("days") == 7

    with pytest.raises(ParameterResolutionError) as excinfo:
        resolver.resolve("note")
    assert _reason(excinfo) == "missing"


def test_required_parameter_without_value():
    _require_imports()
    resolver = StoredParameterResolver([ParamDef(name="orderId")])
    with pytest.raises(ParameterResolutionError) as excinfo:
        resolver.resolve_all()
    assert _reason(excinfo) == "missing"
    assert excinfo.value.details["parameter"] == "orderId"


def test_provided_value_is_validated():
    _require_imports()
    resolver = StoredParameterResolver(
        [ParamDef(name="days", type=ParamType.NUMBER, min=1, max=90)],
        provided={"days": "365"},
    )
    with pytest.raises(ParameterResolutionError) as excinfo:
        resolver.resolve("days")
    assert _reason(excinfo) == "above_max"


def test_undeclared_parameter_falls_back_to_provided_text():
    _require_imports()
    resolver = StoredParameterResolver([], provided={"tag": "vip"})
    assert resolver.resolve("tag") == "vip"
    with pytest.raises(ParameterResolutionError):
        resolver.resolve("other")
