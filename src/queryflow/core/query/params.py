"""
Definições de parâmetros de stored queries e resolução com fallback.

Uma stored query declara seus parâmetros no front matter:

    params:
      - name: days
        type: number
        default: 30
        min: 1

A resolução de cada parâmetro segue a cadeia:
    1. valor explícito da invocação (string, convertida para o tipo)
    2. default armazenado
    3. única opção de `choices`, quando houver exatamente uma
    4. ausência: erro se o parâmetro é obrigatório, senão fica sem valor

Todo valor resolvido é validado contra tipo, faixa, choices e pattern.
Falhas são sempre `ParameterResolutionError`, com `details["reason"]`
estável (missing, invalid_type, below_min, above_max, invalid_choice,
pattern_mismatch).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from queryflow.core.exceptions import ParameterResolutionError


class ParamType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"


def _display(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _param_error(name: str, reason: str, message: str, **details: Any) -> ParameterResolutionError:
    return ParameterResolutionError(
        message=message,
        details={"parameter": name, "reason": reason, **details},
        hint=f"Revise o valor informado para @{name} ou a definição do parâmetro.",
    )


@dataclass(frozen=True)
class ParamDef:
    """Parâmetro declarado no front matter de uma stored query."""

    name: str
    type: ParamType = ParamType.STRING
    description: Optional[str] = None
    default: Any = None
    choices: Optional[List[Any]] = None
    required: Optional[bool] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParamDef":
        if not isinstance(data, Mapping) or not isinstance(data.get("name"), str):
            raise ValueError("param definition requires a string 'name'")
        return cls(
            name=data["name"],
            type=ParamType(data.get("type", "string")),
            description=data.get("description"),
            default=data.get("default"),
            choices=list(data["choices"]) if data.get("choices") is not None else None,
            required=data.get("required"),
            min=data.get("min"),
            max=data.get("max"),
            pattern=data.get("pattern"),
        )

    @property
    def is_required(self) -> bool:
        """Obrigatório por padrão quando não há default nem choices."""
        if self.required is not None:
            return bool(self.required)
        return self.default is None and self.choices is None

    def validate(self, value: Any) -> None:
        if self.type == ParamType.STRING and not isinstance(value, str):
            raise _param_error(
                self.name, "invalid_type",
                f"parameter '{self.name}': expected string, got '{_display(value)}'",
                expected="string",
            )
        if self.type == ParamType.NUMBER and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise _param_error(
                self.name, "invalid_type",
                f"parameter '{self.name}': expected number, got '{_display(value)}'",
                expected="number",
            )
        if self.type == ParamType.BOOL and not isinstance(value, bool):
            raise _param_error(
                self.name, "invalid_type",
                f"parameter '{self.name}': expected bool, got '{_display(value)}'",
                expected="bool",
            )

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if self.min is not None and value < self.min:
                raise _param_error(
                    self.name, "below_min",
                    f"parameter '{self.name}': value {value} is below minimum {self.min}",
                    min=self.min,
                )
            if self.max is not None and value > self.max:
                raise _param_error(
                    self.name, "above_max",
                    f"parameter '{self.name}': value {value} exceeds maximum {self.max}",
                    max=self.max,
                )

        if self.choices is not None and value not in self.choices:
            allowed = ", ".join(_display(c) for c in self.choices)
            raise _param_error(
                self.name, "invalid_choice",
                f"parameter '{self.name}': '{_display(value)}' is not one of the allowed values: {allowed}",
                choices=list(self.choices),
            )

        if self.pattern is not None and isinstance(value, str):
            try:
                matched = re.search(self.pattern, value) is not None
            except re.error:
                matched = False
            if not matched:
                raise _param_error(
                    self.name, "pattern_mismatch",
                    f"parameter '{self.name}': value '{value}' does not match pattern '{self.pattern}'",
                    pattern=self.pattern,
                )


def parse_param_value(name: str, param_type: ParamType, raw: str) -> Any:
    """
    Converte um valor textual (ex.: vindo da linha de comando) para o tipo declarado.

    - number: inteiro quando possível, senão float
    - bool: true/1/yes e false/0/no (sem diferenciar maiúsculas)
    """
    if param_type == ParamType.STRING:
        return raw
    if param_type == ParamType.NUMBER:
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            return float(raw)
        except ValueError:
            raise _param_error(
                name, "invalid_type",
                f"parameter '{name}': expected number, got '{raw}'",
                expected="number",
            ) from None
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise _param_error(
        name, "invalid_type",
        f"parameter '{name}': expected bool (true/false), got '{raw}'",
        expected="bool",
    )


_UNSET = object()


class StoredParameterResolver:
    """
    ParameterResolver sobre os parâmetros declarados de uma stored query.

    Parâmetros usados no template mas não declarados só podem vir de
    `provided`; nesse caso o valor textual é usado como string.
    """

    def __init__(self, definitions: Sequence[ParamDef], provided: Optional[Mapping[str, str]] = None):
        self.definitions: Dict[str, ParamDef] = {d.name: d for d in definitions}
        self.provided: Dict[str, str] = dict(provided or {})
        self._cache: Dict[str, Any] = {}

    def _lookup(self, name: str) -> Any:
        definition = self.definitions.get(name)

        if definition is None:
            if name in self.provided:
                return self.provided[name]
            raise _param_error(name, "missing", f"parameter '{name}' is required")

        if name in self.provided:
            value = self.provided[name]
            if isinstance(value, str):
                value = parse_param_value(name, definition.type, value)
        elif definition.default is not None:
            value = definition.default
        elif definition.choices is not None and len(definition.choices) == 1:
            value = definition.choices[0]
        elif definition.is_required:
            raise _param_error(name, "missing", f"parameter '{name}' is required")
        else:
            return _UNSET

        definition.validate(value)
        return value

    def resolve(self, name: str) -> Any:
        if name not in self._cache:
            self._cache[name] = self._lookup(name)
        value = self._cache[name]
        if value is _UNSET:
            raise _param_error(name, "missing", f"parameter '{name}' has no value")
        return value

    def resolve_all(self) -> Dict[str, Any]:
        """
        Resolve todos os parâmetros declarados (na ordem de declaração).

        Opcionais sem valor são omitidos. Usado antes de construir o
        pipeline para falhar cedo, sem executar nenhum Step.
        """
        resolved: Dict[str, Any] = {}
        for name in self.definitions:
            if name not in self._cache:
                self._cache[name] = self._lookup(name)
            if self._cache[name] is not _UNSET:
                resolved[name] = self._cache[name]
        return resolved
