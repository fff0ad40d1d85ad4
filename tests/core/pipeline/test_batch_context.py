# tests/core/pipeline/test_batch_context.py
"""
Testes do BatchContext: artifact store, logging estruturado e warnings.

Invariantes validadas:
    - artefatos são explícitos (KeyError para chave ausente)
    - todo evento carrega batch_id, step_id, level, message e timestamp UTC
    - campos extras do evento são preservados
    - warnings são agrupados por Step
    - cada `BatchContext.new` gera um batch_id próprio
"""

from datetime import datetime

import pytest

from nexus_intake.core.pipeline.context import BatchContext


def test_artifacts_roundtrip(ctx):
    assert not ctx.has_artifact("batch.parse_result")

    ctx.set_artifact("batch.parse_result", {"rows": 3})

    assert ctx.has_artifact("batch.parse_result")
    assert ctx.get_artifact("batch.parse_result") == {"rows": 3}


def test_missing_artifact_raises(ctx):
    with pytest.raises(KeyError):
        ctx.get_artifact("nope")


def test_log_event_structure(ctx):
    ctx.log(step_id="mapping.apply", level="warning", message="row failed mapping", row_number=3)

    event = ctx.events[-1]
    assert event["batch_id"] == "batch-test-001"
    assert event["step_id"] == "mapping.apply"
    assert event["level"] == "warning"
    assert event["message"] == "row failed mapping"
    assert event["row_number"] == 3
    assert datetime.fromisoformat(event["timestamp"]).tzinfo is not None


def test_warnings_grouped_by_step(ctx):
    ctx.add_warning(step_id="routing.evaluate", message="queue over capacity")
    ctx.add_warning(step_id="mapping.apply", message="truncated")
    ctx.add_warning(step_id="routing.evaluate", message="another")

    assert ctx.warnings["routing.evaluate"] == ["queue over capacity", "another"]
    assert ctx.all_warnings() == ["queue over capacity", "another", "truncated"]


def test_new_contexts_are_independent(settings):
    a = BatchContext.new(config=settings, meta={"dry_run": True})
    b = BatchContext.new(config=settings)

    assert a.batch_id != b.batch_id
    assert a.meta == {"dry_run": True}
    assert b.meta == {}
    assert a.created_at.tzinfo is not None
