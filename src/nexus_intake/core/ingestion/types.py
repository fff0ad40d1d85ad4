# src/nexus_intake/core/ingestion/types.py
"""
Tipos de resultado da ingestão de um lote.

    - IngestionOutcome: destino (ou erro) de cada linha
    - BatchCounts / BatchResult: agregados do lote
    - TaskCreationRequest: pedido de criação de tarefa emitido no commit
    - TaskSink: colaborador externo que recebe os pedidos
    - SchemaInference: resultado de `infer_schema`

Contabilidade de linhas (invariantes):
    found    = linhas de dados vistas pelo parser (válidas + malformadas)
    failed   = malformadas + falhas de mapeamento (campo obrigatório,
               identificador duplicado com estratégia `fail`)
    skipped  = filtradas por política (identificador duplicado com
               estratégia `skip`, excedente de `max_records`)
    mapped   = found - failed - skipped
    routed + unrouted = mapped

Não roteado é um resultado válido, distinto de falha.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from nexus_intake.core.inference.types import DetectedField


class OutcomeStatus(str, Enum):
    ROUTED = "routed"
    UNROUTED = "unrouted"
    FAILED = "failed"
    SKIPPED = "skipped"


class BatchStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class BatchState(str, Enum):
    PARSED = "parsed"
    MAPPED = "mapped"
    ROUTED = "routed"
    STAGED = "staged"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class IngestionOutcome:
    row_number: int
    status: OutcomeStatus
    matched_rule_id: Optional[str] = None
    target_queue_id: Optional[str] = None
    external_id: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    diagnostics: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "row_number": self.row_number,
            "status": self.status.value,
            "matched_rule_id": self.matched_rule_id,
            "target_queue_id": self.target_queue_id,
            "external_id": self.external_id,
            "error": self.error,
        }
        if self.diagnostics is not None:
            out["diagnostics"] = self.diagnostics
        return out


@dataclass(frozen=True)
class BatchCounts:
    found: int = 0
    mapped: int = 0
    routed: int = 0
    unrouted: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "found": self.found,
            "mapped": self.mapped,
            "routed": self.routed,
            "unrouted": self.unrouted,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class TaskCreationRequest:
    external_id: str
    queue_id: str
    row_number: int
    rule_id: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class TaskSink(Protocol):
    """Colaborador externo de criação de tarefas (commit)."""

    def emit(self, request: TaskCreationRequest) -> None:
        ...


class CollectingSink:
    """Sink em memória: guarda os pedidos na ordem de emissão."""

    def __init__(self) -> None:
        self.requests: List[TaskCreationRequest] = []

    def emit(self, request: TaskCreationRequest) -> None:
        self.requests.append(request)


@dataclass(frozen=True)
class BatchResult:
    batch_id: str
    status: BatchStatus
    state: BatchState
    dry_run: bool
    counts: BatchCounts
    outcomes: Tuple[IngestionOutcome, ...] = field(default_factory=tuple)
    queue_volumes: Dict[str, int] = field(default_factory=dict)
    records_processed: int = 0
    records_failed: int = 0
    records_skipped: int = 0
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[Dict[str, Any]] = None
    config_hash: Optional[str] = None
    events: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def outcome_for(self, row_number: int) -> IngestionOutcome:
        for o in self.outcomes:
            if o.row_number == row_number:
                return o
        raise KeyError(row_number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "status": self.status.value,
            "state": self.state.value,
            "dry_run": self.dry_run,
            "counts": self.counts.to_dict(),
            "records_processed": self.records_processed,
            "records_failed": self.records_failed,
            "records_skipped": self.records_skipped,
            "queue_volumes": dict(self.queue_volumes),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "warnings": list(self.warnings),
            "error": self.error,
            "config_hash": self.config_hash,
        }


@dataclass(frozen=True)
class SchemaInference:
    detected_fields: Tuple[DetectedField, ...]
    sample_rows: Tuple[Dict[str, str], ...]
    columns: Tuple[str, ...]
    total_rows: int
    failed_rows: int
    suggested_primary_id_field: Optional[str]
