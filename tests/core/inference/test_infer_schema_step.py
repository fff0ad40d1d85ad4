"""
Tests: inference.schema
=======================
"""

from nexus_intake.core.inference import FieldType
from nexus_intake.steps.inference.schema import InferSchemaStep
from nexus_intake.steps.parse.records import ParseRecordsStep


def _run(ctx, raw: bytes):
    ctx.meta.update({"raw": raw, "format": "csv"})
    ParseRecordsStep().run(ctx)
    return InferSchemaStep().run(ctx)


def test_suggests_primary_id(ctx):
    rows = "\n".join(f"{i},{'CA' if i % 2 else 'NY'}" for i in range(1, 16))

    result = _run(ctx, f"ticket_id,state\n{rows}\n".encode())

    fields = ctx.get_artifact("schema.detected_fields")
    assert [f.name for f in fields] == ["ticket_id", "state"]
    assert fields[0].inferred_type is FieldType.INTEGER
    assert ctx.get_artifact("schema.suggested_primary_id") == "ticket_id"
    assert result.payload == {"suggested_primary_id": "ticket_id"}
    assert ctx.all_warnings() == []


def test_batch_without_candidate_warns(ctx):
    _run(ctx, b"state,city\nCA,LA\nCA,SF\nNY,NYC\n")

    assert ctx.get_artifact("schema.suggested_primary_id") is None
    assert ctx.all_warnings() == ["no primary id candidate; choose one manually"]
