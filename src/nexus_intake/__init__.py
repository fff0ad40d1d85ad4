# src/nexus_intake/__init__.py
"""
Nexus Intake — núcleo de ingestão em lote para roteamento de tarefas.

Um lote (CSV, JSON ou JSON-Lines) é lido em registros planos, tem o schema
inferido, é mapeado para os atributos canônicos de tarefa e roteado para
filas por regras declarativas ordenadas por prioridade.

Arquitetura em alto nível:
    - core.parsing    → leitura de formatos em registros `str → str`
    - core.inference  → tipo semântico, confiança e heurística de identificador
    - core.mapping    → geração, validação e aplicação de mapeamentos
    - core.rules      → avaliação de condições e regras (roteamento e ações)
    - core.registry   → invariantes de pipeline/fila/regra
    - core.ingestion  → orquestração do lote (dry run e commit)
    - core.engine     → planejamento (DAG) e execução dos Steps do lote

Limites explícitos:
    - Não persiste nada (pipelines, lotes e tarefas pertencem ao chamador)
    - Não expõe transporte (HTTP, fila de mensagens) nem CLI
"""

from .api import infer_schema, ingest, validate_mapping, validate_rule
from .core.exceptions import (
    ConfigurationError,
    FatalParseError,
    IntakeException,
    InvalidMappingError,
    InvalidRuleError,
    QueueReferenceError,
    RowError,
)
from .core.inference import DetectedField, FieldType
from .core.ingestion import (
    BatchResult,
    BatchState,
    BatchStatus,
    CollectingSink,
    IngestionOutcome,
    OutcomeStatus,
    SchemaInference,
    TaskCreationRequest,
)
from .core.mapping import FieldMapping, Transform
from .core.parsing import CsvOptions, Format, JsonOptions
from .core.registry import Pipeline, Queue
from .core.rules import ConditionGroup, Logic, Operator, RoutingCondition, RoutingRule
from .core.validation import ValidationReport

__all__ = [
    "BatchResult",
    "BatchState",
    "BatchStatus",
    "CollectingSink",
    "ConditionGroup",
    "ConfigurationError",
    "CsvOptions",
    "DetectedField",
    "FatalParseError",
    "FieldMapping",
    "FieldType",
    "Format",
    "IngestionOutcome",
    "IntakeException",
    "InvalidMappingError",
    "InvalidRuleError",
    "JsonOptions",
    "Logic",
    "Operator",
    "OutcomeStatus",
    "Pipeline",
    "Queue",
    "QueueReferenceError",
    "RoutingCondition",
    "RoutingRule",
    "RowError",
    "SchemaInference",
    "TaskCreationRequest",
    "ValidationReport",
    "infer_schema",
    "ingest",
    "validate_mapping",
    "validate_rule",
]
