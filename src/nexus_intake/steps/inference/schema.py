"""Step canônico: inference.schema (v1).

Infere um DetectedField por coluna sobre as primeiras
`inference.sample_size` linhas válidas e sugere o identificador primário.

Artefatos publicados:
- `schema.detected_fields`
- `schema.suggested_primary_id` (None quando não há candidato)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from nexus_intake.core.inference import infer_fields, suggest_primary_id
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus


@dataclass
class InferSchemaStep(Step):
    id: str = "inference.schema"
    kind: StepKind = StepKind.INFERENCE
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = ["parse.records"]

    def run(self, ctx: BatchContext) -> StepResult:
        result = ctx.get_artifact("batch.parse_result")
        fields = infer_fields(result.records, result.columns, settings=ctx.config)
        primary = suggest_primary_id(fields)

        ctx.set_artifact("schema.detected_fields", fields)
        ctx.set_artifact("schema.suggested_primary_id", primary)

        if primary is None:
            ctx.add_warning(step_id=self.id, message="no primary id candidate; choose one manually")

        ctx.log(
            step_id=self.id,
            level="info",
            message="schema inferred",
            fields={f.name: f.inferred_type.value for f in fields},
            suggested_primary_id=primary,
        )

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"{len(fields)} fields inferred",
            metrics={
                "fields": len(fields),
                "id_candidates": sum(1 for f in fields if f.looks_like_id),
            },
            payload={"suggested_primary_id": primary},
        )
