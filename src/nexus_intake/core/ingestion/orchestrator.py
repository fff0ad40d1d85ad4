# src/nexus_intake/core/ingestion/orchestrator.py
"""
Ingestion Orchestrator.

Ponto de entrada do processamento de um lote:

    infer_schema:  parse.records → inference.schema
    ingest:        parse.records → mapping.apply → routing.evaluate → commit.emit

Cada chamada monta o seu próprio `BatchContext`, registra os Steps num
`StepRegistry` e delega a execução ao `Engine` (ordem topológica,
fail-fast, conversão de exceções em payload). Nenhum estado sobrevive
entre chamadas.

Ciclo de vida do lote:

    PARSED → MAPPED → ROUTED → STAGED (dry run) | COMMITTED

Status terminal:
    - COMPLETED: nenhuma linha falhou
    - PARTIAL:   ao menos uma linha falhou (malformada, obrigatório vazio,
                 duplicado com estratégia `fail`)
    - FAILED:    erro fatal de leitura; nenhuma linha processada

Invariantes:
    - configuração (mapeamentos, regras, filas, settings) é validada ANTES
      da leitura do lote; erro de configuração levanta ConfigurationError
    - outcomes seguem a ordem das linhas, um por linha de dados vista
    - routed + unrouted = mapped = found - failed - skipped
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from nexus_intake.core.config import compute_config_hash, resolve_settings
from nexus_intake.core.errors import PARSE_FATAL, primary_id_decision_required
from nexus_intake.core.exceptions import (
    ConfigurationError,
    FatalParseError,
    InvalidMappingError,
    InvalidRuleError,
    QueueReferenceError,
)
from nexus_intake.core.engine import Engine
from nexus_intake.core.mapping import (
    FieldMapping,
    coerce_mappings,
    generate_mappings,
    schema_from_mappings,
    validate_mapping,
)
from nexus_intake.core.parsing import Format, FormatOptions
from nexus_intake.core.parsing.types import coerce_format, coerce_options
from nexus_intake.core.pipeline.context import BatchContext
from nexus_intake.core.pipeline.registry import StepRegistry
from nexus_intake.core.pipeline.types import StepStatus
from nexus_intake.core.registry import Queue, coerce_queue
from nexus_intake.core.rules import RoutingRule
from nexus_intake.core.rules.validation import coerce_rules, validate_rule
from nexus_intake.steps.commit.emit import CommitStep
from nexus_intake.steps.inference.schema import InferSchemaStep
from nexus_intake.steps.mapping.apply import ApplyMappingStep
from nexus_intake.steps.parse.records import ParseRecordsStep
from nexus_intake.steps.routing.evaluate import RouteRecordsStep

from .types import (
    BatchCounts,
    BatchResult,
    BatchState,
    BatchStatus,
    IngestionOutcome,
    OutcomeStatus,
    SchemaInference,
    TaskSink,
)


RawInput = Union[bytes, bytearray, str]
OptionsInput = Union[FormatOptions, Mapping[str, Any], None]


# ---------------------------------------------------------------------------
# Validação de configuração (antes da leitura)
# ---------------------------------------------------------------------------

def _prepare_mappings(mappings: Iterable[Any]) -> List[FieldMapping]:
    parsed = coerce_mappings(mappings)
    validate_mapping(parsed).raise_for(InvalidMappingError)
    return parsed


def _prepare_queues(queues: Optional[Iterable[Any]]) -> Optional[Dict[str, Queue]]:
    if queues is None:
        return None
    out: Dict[str, Queue] = {}
    for index, q in enumerate(queues):
        queue = coerce_queue(q, index)
        if queue.id in out:
            raise ConfigurationError(
                message=f"duplicate queue id '{queue.id}'",
                details={"queue_id": queue.id},
            )
        out[queue.id] = queue
    return out


def _prepare_rules(
    rules: Iterable[Any],
    mappings: Sequence[FieldMapping],
    queues: Optional[Dict[str, Queue]],
) -> List[RoutingRule]:
    schema = schema_from_mappings(mappings)
    parsed: List[RoutingRule] = []
    seen = set()
    for rule in coerce_rules(rules):
        if not isinstance(rule, RoutingRule):
            raise InvalidRuleError(
                message=f"rule '{rule.id}' is not a routing rule",
                details={"rule_id": rule.id},
            )
        if rule.id in seen:
            raise InvalidRuleError(
                message=f"duplicate rule id '{rule.id}'",
                details={"rule_id": rule.id},
            )
        seen.add(rule.id)

        if queues is not None and rule.target_queue_id not in queues:
            raise QueueReferenceError(
                message=f"rule '{rule.id}' targets queue '{rule.target_queue_id}' which does not exist",
                details={"rule_id": rule.id, "queue_id": rule.target_queue_id},
                hint="Crie a fila ou aponte a regra para uma fila existente.",
            )
        validate_rule(schema, rule).raise_for(InvalidRuleError, rule_id=rule.id)
        parsed.append(rule)
    return parsed


def _queue_to_dict(queue: Queue) -> Dict[str, Any]:
    return {
        "id": queue.id,
        "name": queue.name,
        "priority": queue.priority,
        "required_skills": sorted(queue.required_skills),
        "capacity": queue.capacity,
    }


# ---------------------------------------------------------------------------
# Inferência de schema
# ---------------------------------------------------------------------------

def infer_schema(
    raw: RawInput,
    fmt: Union[str, Format],
    options: OptionsInput = None,
    settings: Optional[Dict[str, Any]] = None,
) -> SchemaInference:
    """
    Lê o lote e infere o schema a partir da amostra inicial.

    Returns:
        SchemaInference com os campos detectados (ordem das colunas), as
        linhas de amostra e o identificador primário sugerido (ou None).

    Raises:
        FatalParseError: arquivo vazio ou ilegível.
        ConfigurationError: formato/opções inválidos.
    """
    cfg = resolve_settings(settings)
    fmt_ = coerce_format(fmt)
    opts = coerce_options(fmt_, options)

    ctx = BatchContext.new(config=cfg, meta={"raw": raw, "format": fmt_, "options": opts})
    registry = StepRegistry()
    registry.add(ParseRecordsStep())
    registry.add(InferSchemaStep())

    result = Engine(steps=registry.list(), ctx=ctx).run()

    failed = result.failed()
    if failed is not None:
        error = failed.payload.get("error") or {}
        raise FatalParseError(
            message=error.get("message") or failed.summary,
            details=dict(error.get("details") or {}),
            hint=error.get("hint"),
        )

    parsed = ctx.get_artifact("batch.parse_result")
    sample_size = int(cfg["inference"]["sample_size"])
    return SchemaInference(
        detected_fields=tuple(ctx.get_artifact("schema.detected_fields")),
        sample_rows=tuple(dict(r.values) for r in parsed.sample(sample_size)),
        columns=tuple(parsed.columns),
        total_rows=parsed.total_rows,
        failed_rows=parsed.failed_rows,
        suggested_primary_id_field=ctx.get_artifact("schema.suggested_primary_id"),
    )


# ---------------------------------------------------------------------------
# Ingestão
# ---------------------------------------------------------------------------

def _failed_batch(
    *,
    ctx: BatchContext,
    error: Dict[str, Any],
    config_hash: Optional[str],
    dry_run: bool,
    steps: Optional[Dict[str, Dict[str, Any]]] = None,
) -> BatchResult:
    return BatchResult(
        batch_id=ctx.batch_id,
        status=BatchStatus.FAILED,
        state=BatchState.FAILED,
        dry_run=dry_run,
        counts=BatchCounts(),
        warnings=tuple(ctx.all_warnings()),
        error=error,
        config_hash=config_hash,
        events=tuple(ctx.events),
        steps=dict(steps or {}),
    )


def ingest(
    raw: RawInput,
    fmt: Union[str, Format],
    options: OptionsInput,
    mappings: Optional[Iterable[Any]],
    rules: Iterable[Any],
    dry_run: bool = True,
    *,
    queues: Optional[Iterable[Any]] = None,
    default_queue_id: Optional[str] = None,
    sink: Optional[TaskSink] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> BatchResult:
    """
    Processa um lote: leitura, mapeamento, roteamento e (fora de dry run)
    emissão dos pedidos de criação de tarefa.

    Args:
        raw: conteúdo do lote.
        fmt: `csv`, `json` ou `jsonl`.
        options: opções de leitura do formato.
        mappings: mapeamentos salvos; `None` infere o schema da amostra e
            gera mapeamentos em torno do identificador sugerido.
        rules: regras de roteamento (objetos ou dicts).
        dry_run: `True` para só projetar o roteamento (estado STAGED).
        queues: filas do pipeline; quando informadas, regras e fila
            default precisam referenciar filas existentes.
        default_queue_id: fila para registros que nenhuma regra casa.
        sink: destino dos `TaskCreationRequest` no commit.
        settings: overrides de configuração de execução.

    Raises:
        ConfigurationError: configuração inválida (nada é lido do lote).
    """
    cfg = resolve_settings(settings)
    fmt_ = coerce_format(fmt)
    opts = coerce_options(fmt_, options)

    if mappings is None:
        try:
            inferred = infer_schema(raw, fmt_, opts, cfg)
        except FatalParseError as e:
            ctx = BatchContext.new(config=cfg)
            ctx.log(step_id="inference.schema", level="error", message="fatal parse error", error_message=e.message)
            return _failed_batch(
                ctx=ctx,
                error={
                    "type": PARSE_FATAL,
                    "message": e.message,
                    "details": dict(e.details),
                    "hint": e.hint,
                    "decision_required": False,
                },
                config_hash=None,
                dry_run=dry_run,
            )
        if inferred.suggested_primary_id_field is None:
            payload = primary_id_decision_required(
                candidates=[f.name for f in inferred.detected_fields],
            )
            raise ConfigurationError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
                decision_required=True,
            )
        mappings = generate_mappings(inferred.detected_fields, inferred.suggested_primary_id_field)

    mapping_list = _prepare_mappings(mappings)
    queue_map = _prepare_queues(queues)
    rule_list = _prepare_rules(rules, mapping_list, queue_map)

    if default_queue_id is not None and queue_map is not None and default_queue_id not in queue_map:
        raise QueueReferenceError(
            message=f"default queue '{default_queue_id}' does not exist",
            details={"queue_id": default_queue_id},
        )

    config_hash = compute_config_hash(
        {
            "settings": cfg,
            "format": fmt_.value,
            "options": asdict(opts),
            "mappings": [m.to_dict() for m in mapping_list],
            "rules": [r.to_dict() for r in rule_list],
            "queues": [_queue_to_dict(q) for q in (queue_map or {}).values()],
            "default_queue_id": default_queue_id,
            "dry_run": bool(dry_run),
        }
    )

    ctx = BatchContext.new(
        config=cfg,
        meta={
            "raw": raw,
            "format": fmt_,
            "options": opts,
            "mappings": mapping_list,
            "rules": rule_list,
            "queues": queue_map or {},
            "default_queue_id": default_queue_id,
            "dry_run": bool(dry_run),
            "sink": sink,
            "config_hash": config_hash,
        },
    )

    registry = StepRegistry()
    registry.add(ParseRecordsStep())
    registry.add(ApplyMappingStep())
    registry.add(RouteRecordsStep())
    registry.add(CommitStep())

    ctx.log(step_id="ingest", level="info", message="batch started", dry_run=bool(dry_run), config_hash=config_hash)
    engine_result = Engine(steps=registry.list(), ctx=ctx).run()
    steps = {sid: r.to_dict() for sid, r in engine_result.steps.items()}

    failed = engine_result.failed()
    if failed is not None:
        return _failed_batch(
            ctx=ctx,
            error=dict(failed.payload.get("error") or {"message": failed.summary}),
            config_hash=config_hash,
            dry_run=bool(dry_run),
            steps=steps,
        )

    parsed = ctx.get_artifact("batch.parse_result")
    outcome_map: Dict[int, IngestionOutcome] = ctx.get_artifact("batch.outcomes")
    outcomes = tuple(outcome_map[k] for k in sorted(outcome_map))

    tally = {status: 0 for status in OutcomeStatus}
    for o in outcomes:
        tally[o.status] += 1

    counts = BatchCounts(
        found=parsed.total_rows,
        mapped=tally[OutcomeStatus.ROUTED] + tally[OutcomeStatus.UNROUTED],
        routed=tally[OutcomeStatus.ROUTED],
        unrouted=tally[OutcomeStatus.UNROUTED],
        failed=tally[OutcomeStatus.FAILED],
        skipped=tally[OutcomeStatus.SKIPPED],
    )

    committed = engine_result.steps["commit.emit"].status == StepStatus.SUCCESS
    state = BatchState.COMMITTED if committed else BatchState.STAGED
    status = BatchStatus.PARTIAL if counts.failed else BatchStatus.COMPLETED

    ctx.log(
        step_id="ingest",
        level="info",
        message="batch finished",
        status=status.value,
        state=state.value,
        counts=counts.to_dict(),
    )

    return BatchResult(
        batch_id=ctx.batch_id,
        status=status,
        state=state,
        dry_run=bool(dry_run),
        counts=counts,
        outcomes=outcomes,
        queue_volumes=dict(ctx.get_artifact("batch.queue_volumes")) if ctx.has_artifact("batch.queue_volumes") else {},
        records_processed=int(ctx.get_artifact("batch.emitted")) if committed else 0,
        records_failed=counts.failed if committed else 0,
        records_skipped=counts.skipped if committed else 0,
        warnings=tuple(ctx.all_warnings()),
        config_hash=config_hash,
        events=tuple(ctx.events),
        steps=steps,
    )
