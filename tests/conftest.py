# tests/conftest.py
"""
Fixtures compartilhados para testes do queryflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas
- contexto de execução controlado (RunContext)
- fábrica de StepDefinitions
- executores de query falsos (SpyExecutor), assíncronos e síncronos

O objetivo destas fixtures é permitir testes do core
(config, template, pipeline, engine e query) sem depender de:
- banco de dados real
- variáveis de ambiente
- rede

Decisões arquiteturais:
    - Executores falsos usam duck typing, sem herança do protocolo
    - Resultados são indexados por container (cada Step de teste usa
      um container próprio)
    - Cada chamada ao executor é registrada, incluindo início e fim,
      para permitir asserções de ordem e de barreira entre layers
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa pipeline real
    - Nenhuma fixture realiza I/O
    - Todas as fixtures são isoladas por teste

Limites explícitos:
    - Não substituir testes de integração com um banco real
    - Não validar semântica completa de config
"""

import asyncio
from datetime import datetime, timezone

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de configuração padrão (defaults) semelhante ao uso real.

    Representa o conteúdo típico de um `config.defaults.yaml`, base
    canônica sobre a qual overrides locais são aplicados via deep-merge.

    Returns:
        str: Conteúdo YAML de defaults.
    """
    return """\
database: shop
container: orders
engine:
  record_query_text: true
steps:
  order:
    enabled: true
  customer:
    enabled: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """
    YAML de configuração local (override).

    Contém apenas o que muda em relação aos defaults: outro database e
    um Step desabilitado.

    Returns:
        str: Conteúdo YAML de overrides locais.
    """
    return """\
database: shop-dev
steps:
  customer:
    enabled: false
"""


# =====================================================
# Pipeline fixtures (RunContext + Steps)
# =====================================================

@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima e válida para testes do Engine.

    Decisões arquiteturais:
        - Config representada como dicionário já resolvido
        - Nenhum Step desabilitado

    Returns:
        dict: Configuração mínima.
    """
    return {
        "database": "testdb",
        "engine": {"record_query_text": True},
        "steps": {},
    }


@pytest.fixture
def dummy_ctx(dummy_config):
    """
    RunContext determinístico para testes.

    `run_id` e `created_at` são fixos; o timestamp é timezone-aware (UTC).

    Returns:
        RunContext: Contexto isolado e previsível.
    """
    from queryflow.core.pipeline.context import RunContext
    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def make_step():
    """
    Fábrica de StepDefinitions.

    O container padrão é o próprio nome do Step, o que permite ao
    SpyExecutor responder por Step.

    Returns:
        callable: `make_step(name, template, container=None, database=None)`.
    """
    from queryflow.core.pipeline.types import StepDefinition

    def _make(name: str, template: str, container: str = None, database: str = None):
        return StepDefinition(name=name, container=container or name, template=template, database=database)

    return _make


@pytest.fixture
def SpyExecutor():
    """
    Fixture factory que fornece um QueryExecutor assíncrono falso.

    A classe retornada:
    - responde com Records canônicos por container (`results`)
    - levanta a exceção configurada por container (`failures`)
    - aguarda `delays[container]` segundos antes de responder
    - registra `calls` (container, query_text, database) e `timeline`
      (("start"|"end", container)) em ordem

    Invariantes:
        - Container sem resultado configurado responde com lista vazia
        - Nenhum I/O real

    Returns:
        type: Classe _SpyExecutor.
    """
    from queryflow.core.pipeline.types import QueryResult

    class _SpyExecutor:
        def __init__(self, results=None, failures=None, delays=None, costs=None):
            self.results = dict(results or {})
            self.failures = dict(failures or {})
            self.delays = dict(delays or {})
            self.costs = dict(costs or {})
            self.calls = []
            self.timeline = []

        @property
        def containers(self):
            return [c[0] for c in self.calls]

        def query_for(self, container):
            for c, text, _ in self.calls:
                if c == container:
                    return text
            return None

        async def run(self, target, query_text):
            self.calls.append((target.container, query_text, target.database))
            self.timeline.append(("start", target.container))
            await asyncio.sleep(self.delays.get(target.container, 0))
            self.timeline.append(("end", target.container))
            if target.container in self.failures:
                raise self.failures[target.container]
            return QueryResult(
                records=list(self.results.get(target.container, [])),
                cost=self.costs.get(target.container, 1.0),
            )

    return _SpyExecutor
