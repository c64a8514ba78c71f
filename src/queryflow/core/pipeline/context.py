# src/queryflow/core/pipeline/context.py
"""
Contexto de execução compartilhado de uma run do pipeline.

Este módulo define o `RunContext`, a estrutura canônica que acompanha uma
execução do pipeline de queries e concentra seus sinais de observabilidade.

O RunContext atua como:
    - portador da identidade da execução (run_id, created_at)
    - portador da configuração resolvida
    - registro de logs estruturados de execução
    - coletor de warnings não fatais associados a Steps

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Logs são eventos estruturados, não strings livres
    - Ausência de estado global compartilhado

Invariantes:
    - Logs sempre incluem `run_id`, `step_id`, `level` e `timestamp`
    - Warnings são agrupados por `step_id`
    - O contexto é mutado apenas pelo Engine, fora de seções concorrentes

Limites explícitos:
    - Não executa Steps
    - Não planeja nem coordena execução
    - Não persiste dados automaticamente
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


PIPELINE_STEP_ID = "pipeline"


@dataclass
class RunContext:
    """
    Contexto de execução de uma run do pipeline.

    Decisões arquiteturais:
        - Config é um dicionário já resolvido (ver `core.config.load_config`)
        - Eventos de log são dicionários serializáveis em JSON
        - Eventos de nível pipeline usam `step_id="pipeline"`

    Invariantes:
        - Cada execução possui um RunContext único
        - `events` cresce apenas por `log`
        - `warnings` cresce apenas por `add_warning`
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def new(cls, config: Optional[Dict[str, Any]] = None, **meta: Any) -> "RunContext":
        """Cria um contexto com `run_id` aleatório e timestamp UTC atual."""
        return cls(
            run_id=f"run-{uuid.uuid4().hex[:12]}",
            created_at=datetime.now(timezone.utc),
            config=dict(config or {}),
            meta=dict(meta),
        )

    # -----------------------------
    # Config helpers
    # -----------------------------
    def engine_option(self, key: str, default: Any = None) -> Any:
        engine_cfg = (self.config or {}).get("engine", {}) or {}
        return engine_cfg.get(key, default)

    def step_enabled(self, step_name: str) -> bool:
        steps_cfg = (self.config or {}).get("steps", {}) or {}
        step_cfg = steps_cfg.get(step_name, {}) or {}
        return bool(step_cfg.get("enabled", True))

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)

    def events_for(self, step_id: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("step_id") == step_id]
