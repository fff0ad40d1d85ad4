# src/nexus_intake/core/mapping/resolver.py
"""
Field Mapping Resolver.

Responsabilidades:
    - gerar mapeamentos iniciais a partir de DetectedFields
    - reconstruir uma visão de schema a partir de mapeamentos salvos
      (reabertura de uma fonte sem nova amostra)
    - validar um conjunto de mapeamentos antes de aceitá-lo
    - aplicar mapeamentos a um registro (com transform e default)

Política de campo obrigatório (decisão explícita):
    para cada mapeamento, aplica-se o transform, depois o `default_value`
    quando o valor está vazio; se o valor continua vazio e o mapeamento é
    obrigatório (ou é o identificador primário), a linha FALHA com
    `RowError`. Não há "pular" silencioso nem substituição implícita.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from nexus_intake.core.errors import row_required_field_missing
from nexus_intake.core.exceptions import InvalidMappingError, RowError
from nexus_intake.core.inference.engine import suggested_label
from nexus_intake.core.inference.types import DetectedField, FieldType
from nexus_intake.core.parsing.types import SourceRecord
from nexus_intake.core.validation import ValidationReport, expect, is_non_empty_str

from .types import METADATA_PREFIX, TARGET_ATTRIBUTES, FieldMapping, MappedRecord, Reconciliation, Transform


_ALIASES = {
    "type": "work_type",
    "worktype": "work_type",
    "task_type": "work_type",
    "name": "title",
    "subject": "title",
    "url": "payload_url",
    "payloadurl": "payload_url",
    "skill": "skills",
    "queue_id": "queue",
}

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str) -> str:
    snake = _CAMEL_RE.sub("_", name.strip()).lower()
    return _NON_ALNUM_RE.sub("_", snake).strip("_")


def _target_for(name: str, used: set) -> str:
    normalized = normalize_name(name)
    canonical = _ALIASES.get(normalized, normalized)
    if canonical in TARGET_ATTRIBUTES and canonical != "external_id" and canonical not in used:
        return canonical
    return f"{METADATA_PREFIX}{name}"


def generate_mappings(
    detected_fields: Sequence[DetectedField],
    primary_id_field: Optional[str],
) -> List[FieldMapping]:
    """
    Produz um mapeamento por campo detectado, na ordem original.

    O campo primário vai para `external_id` e é obrigatório; nomes que
    correspondem a atributos canônicos (ou aliases) vão para o atributo;
    os demais vão para `metadata.<nome>`. O tipo detectado é preservado.

    Raises:
        InvalidMappingError: se `primary_id_field` não estiver entre os campos.
    """
    names = [f.name for f in detected_fields]
    if primary_id_field is not None and primary_id_field not in names:
        raise InvalidMappingError(
            message=f"Primary id field '{primary_id_field}' is not a detected field",
            details={"primary_id_field": primary_id_field, "fields": names},
        )

    used: set = set()
    mappings: List[FieldMapping] = []
    for f in detected_fields:
        is_primary = f.name == primary_id_field
        target = "external_id" if is_primary else _target_for(f.name, used)
        used.add(target)
        mappings.append(
            FieldMapping(
                source_field=f.name,
                target_field=target,
                is_primary_id=is_primary,
                required=is_primary,
                detected_type=f.inferred_type,
            )
        )
    return mappings


def reconcile(
    existing_mappings: Sequence[FieldMapping],
    new_detected_fields: Optional[Sequence[DetectedField]] = None,
) -> Reconciliation:
    """
    Reconstrói a visão de schema a partir de mapeamentos salvos.

    Sem nova amostra, cada mapeamento vira um DetectedField sintético
    (tipo = `detected_type`, confiança 1.0, sem preview). Com nova amostra,
    as estatísticas frescas são reaproveitadas para campos que ainda
    existem, mas o tipo declarado no mapeamento prevalece. Nomes de campo
    não mudam, então regras ligadas a eles continuam válidas.
    """
    fresh: Dict[str, DetectedField] = {f.name: f for f in (new_detected_fields or [])}
    mapped_names = [m.source_field for m in existing_mappings]

    fields: List[DetectedField] = []
    for m in existing_mappings:
        detected = fresh.get(m.source_field)
        if detected is not None:
            fields.append(replace(detected, inferred_type=m.detected_type))
            continue
        fields.append(
            DetectedField(
                name=m.source_field,
                inferred_type=m.detected_type,
                type_confidence=1.0,
                is_required=m.required or m.is_primary_id,
                unique_value_count=0,
                non_empty_count=0,
                sample_values=(),
                looks_like_id=m.is_primary_id,
                suggested_label=suggested_label(m.source_field),
            )
        )

    if new_detected_fields is None:
        return Reconciliation(fields=tuple(fields))

    added = tuple(name for name in fresh if name not in mapped_names)
    removed = tuple(name for name in mapped_names if name not in fresh)
    return Reconciliation(fields=tuple(fields), added=added, removed=removed)


MappingInput = Union[FieldMapping, Mapping[str, Any]]


def coerce_mappings(mappings: Iterable[MappingInput]) -> List[FieldMapping]:
    """Converte dicts em FieldMapping. Levanta InvalidMappingError com o índice do item ruim."""
    out: List[FieldMapping] = []
    for i, m in enumerate(mappings):
        if isinstance(m, FieldMapping):
            out.append(m)
            continue
        if not isinstance(m, Mapping):
            raise InvalidMappingError(
                message=f"mapping #{i}: expected a mapping object, got {type(m).__name__}",
                details={"index": i},
            )
        try:
            out.append(FieldMapping.from_dict(m))
        except (TypeError, ValueError) as exc:
            raise InvalidMappingError(
                message=f"mapping #{i}: {exc}",
                details={"index": i},
            ) from exc
    return out


def validate_mapping(mappings: Iterable[MappingInput]) -> ValidationReport:
    """
    Valida um conjunto de mapeamentos antes de aceitá-lo.

    Invariantes verificadas:
        - existe ao menos um mapeamento
        - exatamente um mapeamento tem `is_primary_id = True`
        - todo `source_field` é não vazio e único no conjunto
        - todo `target_field` é não vazio e único no conjunto
        - `detected_type` e `transform` pertencem aos catálogos

    Nunca levanta exceção por conteúdo inválido: devolve o relatório.
    """
    errors: List[str] = []
    warnings: List[str] = []

    try:
        items = coerce_mappings(mappings)
    except InvalidMappingError as exc:
        return ValidationReport.from_lists([exc.message], [])

    if not expect(len(items) > 0, "at least one field mapping is required", errors):
        return ValidationReport.from_lists(errors, warnings)

    primaries = [m.source_field for m in items if m.is_primary_id]
    expect(
        len(primaries) == 1,
        f"exactly one mapping must be the primary id (found {len(primaries)})",
        errors,
    )

    seen_sources: set = set()
    seen_targets: set = set()
    for i, m in enumerate(items):
        label = f"mapping #{i}"
        if expect(is_non_empty_str(m.source_field), f"{label}: source_field must be a non-empty string", errors):
            expect(m.source_field not in seen_sources, f"{label}: duplicate source_field '{m.source_field}'", errors)
            seen_sources.add(m.source_field)
        if expect(is_non_empty_str(m.target_field), f"{label}: target_field must be a non-empty string", errors):
            expect(m.target_field not in seen_targets, f"{label}: duplicate target_field '{m.target_field}'", errors)
            seen_targets.add(m.target_field)
        expect(isinstance(m.detected_type, FieldType), f"{label}: unknown detected_type", errors)
        expect(m.transform is None or isinstance(m.transform, Transform), f"{label}: unknown transform", errors)

        if m.is_primary_id and not m.required:
            warnings.append(f"{label}: primary id mapping '{m.source_field}' is always treated as required")
        if m.is_primary_id and m.default_value is not None:
            warnings.append(f"{label}: default_value on the primary id makes duplicate ids likely")

    return ValidationReport.from_lists(errors, warnings)


def schema_from_mappings(mappings: Sequence[FieldMapping]) -> Dict[str, FieldType]:
    """Schema do pipeline: nome do campo de origem → tipo atual."""
    return {m.source_field: m.detected_type for m in mappings}


def apply_mapping(record: SourceRecord, mappings: Sequence[FieldMapping]) -> MappedRecord:
    """
    Aplica os mapeamentos a um registro.

    Raises:
        RowError: campo obrigatório (ou identificador primário) vazio após
            transform e default.
    """
    values: Dict[str, str] = dict(record.values)
    attributes: Dict[str, str] = {}
    metadata: Dict[str, str] = {}
    external_id = ""

    for m in mappings:
        value = record.values.get(m.source_field, "")
        if m.transform is not None:
            value = m.transform.apply(value)
        if not value.strip() and m.default_value is not None:
            value = m.default_value

        if not value.strip() and (m.required or m.is_primary_id):
            payload = row_required_field_missing(
                row_number=record.row_number,
                source_field=m.source_field,
                target_field=m.target_field,
            )
            raise RowError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
                row_number=record.row_number,
                field=m.source_field,
            )

        values[m.source_field] = value
        if m.is_primary_id:
            external_id = value.strip()
        if not value.strip():
            continue
        if m.target_field.startswith(METADATA_PREFIX):
            metadata[m.target_field[len(METADATA_PREFIX):]] = value
        elif not m.is_primary_id:
            attributes[m.target_field] = value

    return MappedRecord(
        row_number=record.row_number,
        external_id=external_id,
        values=values,
        attributes=attributes,
        metadata=metadata,
    )
