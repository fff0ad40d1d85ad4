"""Field Type Inference Engine: tipo semântico, confiança e heurística de identificador."""

from .engine import infer_field, infer_fields, suggest_primary_id, suggested_label
from .types import (
    BOOLEAN_TYPES,
    DATE_TYPES,
    NUMERIC_TYPES,
    DetectedField,
    FieldType,
    coerce_field_type,
)

__all__ = [
    "BOOLEAN_TYPES",
    "DATE_TYPES",
    "NUMERIC_TYPES",
    "DetectedField",
    "FieldType",
    "coerce_field_type",
    "infer_field",
    "infer_fields",
    "suggest_primary_id",
    "suggested_label",
]
