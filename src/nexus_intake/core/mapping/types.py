# src/nexus_intake/core/mapping/types.py
"""
Tipos do Field Mapping Resolver.

`FieldMapping` liga um campo de origem a um atributo canônico da tarefa
(ou a `metadata.<nome>`). É configuração de longa duração, editada pelo
operador; instâncias são imutáveis e toda edição produz uma nova.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from nexus_intake.core.inference.types import DetectedField, FieldType, coerce_field_type


TARGET_ATTRIBUTES = (
    "external_id",
    "work_type",
    "title",
    "description",
    "priority",
    "queue",
    "skills",
    "payload_url",
)

METADATA_PREFIX = "metadata."


class Transform(str, Enum):
    TRIM = "trim"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"

    def apply(self, value: str) -> str:
        if self is Transform.TRIM:
            return value.strip()
        if self is Transform.UPPERCASE:
            return value.upper()
        return value.lower()


@dataclass(frozen=True)
class FieldMapping:
    source_field: str
    target_field: str
    is_primary_id: bool = False
    required: bool = False
    detected_type: FieldType = FieldType.STRING
    default_value: Optional[str] = None
    transform: Optional[Transform] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldMapping":
        """Constrói a partir de um dict (YAML/JSON). Levanta ValueError/TypeError em dado inválido."""
        transform = data.get("transform")
        default = data.get("default_value")
        return cls(
            source_field=data.get("source_field"),  # type: ignore[arg-type]
            target_field=data.get("target_field"),  # type: ignore[arg-type]
            is_primary_id=bool(data.get("is_primary_id", False)),
            required=bool(data.get("required", False)),
            detected_type=coerce_field_type(data.get("detected_type", FieldType.STRING)),
            default_value=None if default is None else str(default),
            transform=None if transform in (None, "") else Transform(transform),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_field": self.source_field,
            "target_field": self.target_field,
            "is_primary_id": self.is_primary_id,
            "required": self.required,
            "detected_type": self.detected_type.value,
            "default_value": self.default_value,
            "transform": self.transform.value if self.transform else None,
        }


@dataclass(frozen=True)
class MappedRecord:
    """
    Registro após aplicação dos mapeamentos.

    `values` mantém os valores por nome de campo de origem (é sobre ele que
    as regras de roteamento são avaliadas); `attributes` e `metadata` são a
    visão canônica usada na criação da tarefa.
    """

    row_number: int
    external_id: str
    values: Dict[str, str]
    attributes: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Reconciliation:
    """Visão de schema reconstruída a partir de mapeamentos salvos."""

    fields: Tuple[DetectedField, ...]
    added: Tuple[str, ...] = field(default_factory=tuple)
    removed: Tuple[str, ...] = field(default_factory=tuple)
