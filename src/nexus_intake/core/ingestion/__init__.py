"""Ingestion Orchestrator: inferência de schema e processamento de lotes."""

from .types import (
    BatchCounts,
    BatchResult,
    BatchState,
    BatchStatus,
    CollectingSink,
    IngestionOutcome,
    OutcomeStatus,
    SchemaInference,
    TaskCreationRequest,
    TaskSink,
)
from .orchestrator import infer_schema, ingest

__all__ = [
    "BatchCounts",
    "BatchResult",
    "BatchState",
    "BatchStatus",
    "CollectingSink",
    "IngestionOutcome",
    "OutcomeStatus",
    "SchemaInference",
    "TaskCreationRequest",
    "TaskSink",
    "infer_schema",
    "ingest",
]
