# src/nexus_intake/core/inference/types.py
"""
Tipos semânticos de campo e o resultado da inferência (`DetectedField`).

`FieldType` é compartilhado por inferência, mapeamento e regras: o tipo
atual de um campo decide quais operadores de condição são legais.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    CURRENCY = "currency"
    EMPTY = "empty"


NUMERIC_TYPES = frozenset({FieldType.NUMBER, FieldType.INTEGER, FieldType.CURRENCY})
DATE_TYPES = frozenset({FieldType.DATE, FieldType.DATETIME, FieldType.TIMESTAMP})
BOOLEAN_TYPES = frozenset({FieldType.BOOLEAN})


def coerce_field_type(value: object) -> FieldType:
    """Converte texto/enum em `FieldType`; levanta ValueError para tipos desconhecidos."""
    if isinstance(value, FieldType):
        return value
    return FieldType(str(value).strip().lower())


@dataclass(frozen=True)
class DetectedField:
    """
    Metadados inferidos para um campo a partir de uma amostra.

    Imutável e efêmero: uma nova amostra produz novos DetectedFields, que
    substituem os anteriores por inteiro (nunca há merge).
    """

    name: str
    inferred_type: FieldType
    type_confidence: float
    is_required: bool
    unique_value_count: int
    non_empty_count: int
    sample_values: Tuple[str, ...] = field(default_factory=tuple)
    looks_like_id: bool = False
    suggested_label: str = ""
