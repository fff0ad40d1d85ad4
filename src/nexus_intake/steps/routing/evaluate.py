"""Step canônico: routing.evaluate (v1).

Avalia as regras de roteamento sobre cada registro mapeado e decide a
fila de destino (ou não roteado).

- Avaliação pura por registro: com `routing.workers > 1` os registros
  são distribuídos em um ThreadPoolExecutor; `Executor.map` preserva a
  ordem de entrada, então os outcomes mantêm a ordem das linhas.
- `routing.include_diagnostics` anexa o trace por regra/condição a cada
  outcome.
- Publica o histograma de volume por fila (`batch.queue_volumes`) e
  registra warning quando o volume projetado excede a capacidade da fila.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Tuple

from nexus_intake.core.ingestion.types import BatchState, IngestionOutcome, OutcomeStatus
from nexus_intake.core.mapping import MappedRecord, schema_from_mappings
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.step import Step
from nexus_intake.core.pipeline.types import StepKind, StepResult, StepStatus
from nexus_intake.core.rules import RoutingDecision, evaluate
from nexus_intake.core.rules.types import traces_to_dicts


@dataclass
class RouteRecordsStep(Step):
    id: str = "routing.evaluate"
    kind: StepKind = StepKind.ROUTING
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = ["mapping.apply"]

    def run(self, ctx: BatchContext) -> StepResult:
        records: List[MappedRecord] = ctx.get_artifact("batch.mapped_records")
        outcomes: Dict[int, IngestionOutcome] = ctx.get_artifact("batch.outcomes")

        routing = ctx.config.get("routing", {}) or {}
        workers = int(routing.get("workers", 1) or 1)
        diagnostics = bool(routing.get("include_diagnostics", False))

        rules = list(ctx.meta.get("rules") or [])
        schema = schema_from_mappings(ctx.meta["mappings"])
        default_queue_id = ctx.meta.get("default_queue_id")

        def _route(record: MappedRecord) -> Tuple[MappedRecord, RoutingDecision]:
            decision = evaluate(
                record.values,
                rules,
                schema,
                default_queue_id=default_queue_id,
                with_trace=diagnostics,
            )
            return record, decision

        if workers > 1 and len(records) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                decisions = list(executor.map(_route, records))
        else:
            decisions = [_route(r) for r in records]

        volumes: Dict[str, int] = {}
        routed: List[Tuple[MappedRecord, RoutingDecision]] = []
        for record, decision in decisions:
            status = OutcomeStatus.ROUTED if decision.routed else OutcomeStatus.UNROUTED
            outcomes[record.row_number] = IngestionOutcome(
                row_number=record.row_number,
                status=status,
                matched_rule_id=decision.rule_id,
                target_queue_id=decision.queue_id,
                external_id=record.external_id,
                diagnostics=traces_to_dicts(decision.traces) if diagnostics else None,
            )
            if decision.routed:
                volumes[decision.queue_id] = volumes.get(decision.queue_id, 0) + 1
                routed.append((record, decision))

        queues = ctx.meta.get("queues") or {}
        for queue_id, volume in sorted(volumes.items()):
            queue = queues.get(queue_id)
            if queue is not None and not queue.unbounded and volume > queue.capacity:
                ctx.add_warning(
                    step_id=self.id,
                    message=f"queue '{queue_id}' projected volume {volume} exceeds capacity {queue.capacity}",
                )

        ctx.set_artifact("batch.routed_records", routed)
        ctx.set_artifact("batch.queue_volumes", volumes)

        n_unrouted = len(decisions) - len(routed)
        ctx.log(
            step_id=self.id,
            level="info",
            message="records routed",
            state=BatchState.ROUTED.value,
            routed=len(routed),
            unrouted=n_unrouted,
            workers=workers,
            queue_volumes=dict(volumes),
        )

        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary=f"{len(routed)} routed, {n_unrouted} unrouted",
            metrics={"routed": len(routed), "unrouted": n_unrouted, "queues": len(volumes)},
        )
