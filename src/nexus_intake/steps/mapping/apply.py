"""Step canônico: mapping.apply (v1).

Aplica os mapeamentos salvos a cada registro válido do lote.

Política por linha (nunca aborta o lote):
- campo obrigatório vazio após transform/default → FAILED (RowError)
- identificador primário repetido no lote → conforme
  `processing.duplicate_strategy`:
    - `skip`  (default): SKIPPED, primeira ocorrência vence
    - `fail`: FAILED com ROW_DUPLICATE_ID
    - `allow`: segue para o roteamento
- linhas além de `processing.max_records` (0 = ilimitado) → SKIPPED

Artefatos:
- lê `batch.parse_result`, `batch.outcomes`
- publica `batch.mapped_records` (ordem original)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from nexus_intake.core.errors import ROW_REQUIRED_FIELD_MISSING, row_duplicate_id
from nexus_intake.core.exceptions import RowError
from nexus_intake.core.ingestion.types import BatchState, IngestionOutcome, OutcomeStatus
from nexus_intake.core.mapping import MappedRecord, apply_mapping
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus


@dataclass
class ApplyMappingStep(Step):
    id: str = "mapping.apply"
    kind: StepKind = StepKind.MAPPING
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = ["parse.records"]

    def run(self, ctx: BatchContext) -> StepResult:
        parsed = ctx.get_artifact("batch.parse_result")
        outcomes: Dict[int, IngestionOutcome] = ctx.get_artifact("batch.outcomes")
        mappings = ctx.meta["mappings"]

        processing = ctx.config.get("processing", {}) or {}
        strategy = processing.get("duplicate_strategy", "skip")
        max_records = int(processing.get("max_records", 0) or 0)

        mapped: List[MappedRecord] = []
        first_seen: Dict[str, int] = {}
        failed = 0
        skipped = 0
        accepted = 0

        for record in parsed.records:
            if max_records and accepted >= max_records:
                outcomes[record.row_number] = IngestionOutcome(
                    row_number=record.row_number,
                    status=OutcomeStatus.SKIPPED,
                    error={"reason": f"beyond max_records ({max_records})"},
                )
                skipped += 1
                continue
            accepted += 1

            try:
                m = apply_mapping(record, mappings)
            except RowError as e:
                outcomes[record.row_number] = IngestionOutcome(
                    row_number=record.row_number,
                    status=OutcomeStatus.FAILED,
                    error={
                        "type": ROW_REQUIRED_FIELD_MISSING,
                        "message": e.reason,
                        "details": dict(e.details),
                        "hint": e.hint,
                        "decision_required": False,
                    },
                )
                ctx.log(
                    step_id=self.id,
                    level="warning",
                    message="row failed mapping",
                    row_number=e.row_number,
                    field=e.field,
                    reason=e.reason,
                )
                failed += 1
                continue

            first = first_seen.get(m.external_id)
            if first is not None and strategy != "allow":
                if strategy == "fail":
                    error = row_duplicate_id(
                        row_number=m.row_number,
                        external_id=m.external_id,
                        first_row_number=first,
                    )
                    outcomes[m.row_number] = IngestionOutcome(
                        row_number=m.row_number,
                        status=OutcomeStatus.FAILED,
                        external_id=m.external_id,
                        error=error.to_dict(),
                    )
                    failed += 1
                else:
                    outcomes[m.row_number] = IngestionOutcome(
                        row_number=m.row_number,
                        status=OutcomeStatus.SKIPPED,
                        external_id=m.external_id,
                        error={"reason": f"duplicate of row {first}"},
                    )
                    skipped += 1
                ctx.log(
                    step_id=self.id,
                    level="info",
                    message="duplicate primary id",
                    row_number=m.row_number,
                    external_id=m.external_id,
                    first_row_number=first,
                    strategy=strategy,
                )
                continue

            first_seen.setdefault(m.external_id, m.row_number)
            mapped.append(m)

        if skipped and max_records:
            ctx.add_warning(
                step_id=self.id,
                message=f"batch truncated to max_records={max_records}",
            )

        ctx.set_artifact("batch.mapped_records", mapped)

        ctx.log(
            step_id=self.id,
            level="info",
            message="mappings applied",
            state=BatchState.MAPPED.value,
            mapped=len(mapped),
            failed=failed,
            skipped=skipped,
            duplicate_strategy=strategy,
        )

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"{len(mapped)} records mapped",
            metrics={"mapped": len(mapped), "failed": failed, "skipped": skipped},
        )
