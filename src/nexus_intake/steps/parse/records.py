"""Step canônico: parse.records (v1).

Responsabilidades:
- decodificar e ler o lote bruto (`ctx.meta["raw"]`) no formato declarado
- publicar `batch.parse_result` (registros + contabilidade de linhas)
- registrar cada linha malformada como outcome FAILED (1-based, com motivo)

Falha fatal (arquivo vazio, estrutura ilegível, zero linhas de dados):
o Step devolve FAILED com `payload["error"]` (PARSE_FATAL) e nada é
publicado; o lote termina em FAILED.

Limites explícitos:
- NÃO infere tipos
- NÃO aplica mapeamentos
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from nexus_intake.core.errors import PARSE_FATAL
from nexus_intake.core.exceptions import FatalParseError
from nexus_intake.core.ingestion.types import BatchState, IngestionOutcome, OutcomeStatus
from nexus_intake.core.parsing import parse
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus


@dataclass
class ParseRecordsStep(Step):
    """Leitura do lote bruto em registros planos."""

    id: str = "parse.records"
    kind: StepKind = StepKind.PARSE
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = []

    def run(self, ctx: BatchContext) -> StepResult:
        try:
            result = parse(ctx.meta["raw"], ctx.meta["format"], ctx.meta.get("options"))
        except FatalParseError as e:
            ctx.log(
                step_id=self.id,
                level="error",
                message="fatal parse error",
                error_type=PARSE_FATAL,
                error_message=e.message,
            )
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.FAILED,
                summary=e.message,
                payload={
                    "error": {
                        "type": PARSE_FATAL,
                        "message": e.message,
                        "details": dict(e.details),
                        "hint": e.hint,
                        "decision_required": False,
                    }
                },
            )

        outcomes: Dict[int, IngestionOutcome] = {}
        for failure in result.row_failures:
            outcomes[failure.row_number] = IngestionOutcome(
                row_number=failure.row_number,
                status=OutcomeStatus.FAILED,
                error=failure.to_error().to_dict(),
            )
            ctx.log(
                step_id=self.id,
                level="warning",
                message="malformed row excluded",
                row_number=failure.row_number,
                reason=failure.reason,
            )

        ctx.set_artifact("batch.parse_result", result)
        ctx.set_artifact("batch.outcomes", outcomes)

        ctx.log(
            step_id=self.id,
            level="info",
            message="batch parsed",
            state=BatchState.PARSED.value,
            total_rows=result.total_rows,
            failed_rows=result.failed_rows,
            columns=list(result.columns),
        )

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"{result.total_rows} rows parsed",
            metrics={
                "total_rows": result.total_rows,
                "failed_rows": result.failed_rows,
                "columns": len(result.columns),
            },
        )
