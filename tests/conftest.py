# tests/conftest.py
"""
Fixtures compartilhados para testes do Nexus Intake.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações de execução já resolvidas e determinísticas
- contexto de lote controlado (BatchContext)
- Steps dummy para testes estruturais de engine e planner
- lotes CSV pequenos e mapeamentos/regras canônicos

O objetivo destas fixtures é permitir testes do core sem depender de:
- filesystem (exceto onde o teste usa `tmp_path` explicitamente)
- variáveis de ambiente
- serviços externos de criação de tarefas

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Dados retornados são determinísticos e isolados
    - Steps dummy utilizam duck typing em vez de herança
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa um lote real
    - Nenhuma fixture compartilha estado mutável entre testes

Limites explícitos:
    - Não substituir testes end-to-end (ver `tests/e2e/`)
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Configuração
# =====================================================

@pytest.fixture
def config_defaults_yaml() -> str:
    """
    YAML de configuração base, semelhante a um `intake.defaults.yaml` real.

    Usado por:
        - Testes do loader de config
        - Testes de deep-merge (defaults + local)
    """
    return """
engine:
  fail_fast: true
inference:
  sample_size: 50
  type_threshold: 0.8
routing:
  workers: 1
  include_diagnostics: false
processing:
  duplicate_strategy: skip
steps:
  commit.emit:
    enabled: true
"""


@pytest.fixture
def config_local_yaml() -> str:
    """
    YAML de override local: altera apenas o que difere da base.

    Invariantes:
        - Não redefine a configuração inteira
        - Chaves ausentes herdam da base
    """
    return """
routing:
  workers: 4
processing:
  duplicate_strategy: fail
"""


@pytest.fixture
def settings() -> dict:
    """
    Configuração de execução resolvida (defaults embutidos).

    Retorna sempre um novo dicionário: testes podem mutá-lo livremente.
    """
    from nexus_intake.core.config import resolve_settings

    return resolve_settings()


# =====================================================
# Pipeline fixtures (Step + BatchContext)
# =====================================================

@pytest.fixture
def ctx(settings):
    """
    BatchContext determinístico para testes de Steps, engine e logging.

    Decisões arquiteturais:
        - `batch_id` e `created_at` são fixos para garantir determinismo
        - A configuração é injetada já resolvida
    """
    from nexus_intake.core.pipeline.context import BatchContext

    return BatchContext(
        batch_id="batch-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=settings,
        meta={"source": "pytest"},
    )


@pytest.fixture
def DummyStep():
    """
    Fixture factory que fornece uma implementação mínima e duck-typed de um Step.

    Retorna uma *classe* (não uma instância). A implementação:
    - expõe os atributos obrigatórios (`id`, `kind`, `depends_on`)
    - registra o artefato `<id>.ok` e devolve SUCCESS

    Usado por:
        - Testes de planner (ordenação, dependências)
        - Testes de engine (execução, status, skip, fail-fast)
        - Testes do protocolo de Step e do registry
    """
    from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus

    class _DummyStep:
        def __init__(self, step_id: str = "parse.records", kind: StepKind = StepKind.PARSE, depends_on=None):
            self.id = step_id
            self.kind = kind
            self.depends_on = depends_on or []

        def run(self, ctx):
            ctx.set_artifact(f"{self.id}.ok", True)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary="ok",
            )

    return _DummyStep


# =====================================================
# Lotes e configuração de domínio
# =====================================================

@pytest.fixture
def states_csv() -> bytes:
    """Lote mínimo: três linhas, a terceira com `state` vazio."""
    return b"id,state\n1,CA\n2,NY\n3,\n"


@pytest.fixture
def state_mappings():
    """
    Mapeamentos do lote `states_csv`.

    Retorna uma função `(state_required: bool) -> List[FieldMapping]` para
    que cada teste escolha se `state` é obrigatório.
    """
    from nexus_intake.core.inference.types import FieldType
    from nexus_intake.core.mapping.types import FieldMapping

    def _build(state_required: bool = False):
        return [
            FieldMapping(
                source_field="id",
                target_field="external_id",
                is_primary_id=True,
                required=True,
                detected_type=FieldType.INTEGER,
            ),
            FieldMapping(
                source_field="state",
                target_field="metadata.state",
                required=state_required,
                detected_type=FieldType.STRING,
            ),
        ]

    return _build


@pytest.fixture
def catch_all_rules():
    """
    Duas regras: `state == CA → A` (prioridade 1) e grupo vazio → B
    (prioridade 2, casa qualquer registro).
    """
    from nexus_intake.core.rules.operators import Operator
    from nexus_intake.core.rules.types import ConditionGroup, RoutingCondition, RoutingRule

    return [
        RoutingRule(
            id="r-ca",
            name="California",
            priority=1,
            condition_group=ConditionGroup(
                conditions=(RoutingCondition(field="state", operator=Operator.EQUALS, value="CA"),),
            ),
            target_queue_id="A",
        ),
        RoutingRule(
            id="r-all",
            name="Everything else",
            priority=2,
            condition_group=ConditionGroup(),
            target_queue_id="B",
        ),
    ]


@pytest.fixture
def queues():
    from nexus_intake.core.registry import Queue

    return [Queue(id="A", name="Queue A"), Queue(id="B", name="Queue B")]
