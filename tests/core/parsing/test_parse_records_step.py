"""
Tests: parse.records
====================

O Step lê o lote bruto de `ctx.meta` e publica o ParseResult. Linhas
malformadas viram outcomes FAILED; erro fatal vira StepResult FAILED com
payload estruturado (sem exceção escapando do Step).
"""

from nexus_intake.core.errors import PARSE_FATAL, ROW_MALFORMED
from nexus_intake.core.ingestion.types import OutcomeStatus
from nexus_intake.core.pipeline.types import StepStatus
from nexus_intake.steps.parse.records import ParseRecordsStep


def test_parse_step_publishes_records(ctx, states_csv):
    ctx.meta.update({"raw": states_csv, "format": "csv"})

    result = ParseRecordsStep().run(ctx)

    assert result.status == StepStatus.SUCCESS
    parsed = ctx.get_artifact("batch.parse_result")
    assert parsed.total_rows == 3
    assert ctx.get_artifact("batch.outcomes") == {}


def test_malformed_rows_become_failed_outcomes(ctx):
    ctx.meta.update({"raw": b"id,state\n1,CA\n2,NY,extra\n", "format": "csv"})

    result = ParseRecordsStep().run(ctx)

    assert result.status == StepStatus.SUCCESS
    outcomes = ctx.get_artifact("batch.outcomes")
    assert list(outcomes) == [2]
    assert outcomes[2].status == OutcomeStatus.FAILED
    assert outcomes[2].error["type"] == ROW_MALFORMED


def test_empty_input_fails_step_with_payload(ctx):
    ctx.meta.update({"raw": b"   \n", "format": "csv"})

    result = ParseRecordsStep().run(ctx)

    assert result.status == StepStatus.FAILED
    assert result.payload["error"]["type"] == PARSE_FATAL
    assert not ctx.has_artifact("batch.parse_result")
    assert ctx.events[-1]["level"] == "error"
