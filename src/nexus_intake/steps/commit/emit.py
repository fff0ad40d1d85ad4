"""Step canônico: commit.emit (v1).

Último Step do lote. Em dry run não emite nada: o lote termina em
STAGED com volumes projetados. Em commit, emite um `TaskCreationRequest`
por registro roteado, na ordem das linhas, para o sink configurado.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from nexus_intake.core.ingestion.types import CollectingSink, TaskCreationRequest
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus


@dataclass
class CommitStep(Step):
    id: str = "commit.emit"
    kind: StepKind = StepKind.COMMIT
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = ["routing.evaluate"]

    def run(self, ctx: BatchContext) -> StepResult:
        routed = ctx.get_artifact("batch.routed_records")

        if ctx.meta.get("dry_run", True):
            ctx.set_artifact("batch.emitted", 0)
            ctx.log(step_id=self.id, level="info", message="dry run: nothing emitted", staged=len(routed))
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SKIPPED,
                summary="dry run",
                metrics={"staged": len(routed), "emitted": 0},
            )

        sink = ctx.meta.get("sink")
        if sink is None:
            sink = CollectingSink()
            ctx.meta["sink"] = sink

        emitted = 0
        for record, decision in routed:
            sink.emit(
                TaskCreationRequest(
                    external_id=record.external_id,
                    queue_id=decision.queue_id,
                    row_number=record.row_number,
                    rule_id=decision.rule_id,
                    attributes=dict(record.attributes),
                    metadata=dict(record.metadata),
                )
            )
            emitted += 1

        ctx.set_artifact("batch.emitted", emitted)
        ctx.log(step_id=self.id, level="info", message="tasks emitted", emitted=emitted)

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"{emitted} task requests emitted",
            metrics={"emitted": emitted},
        )
