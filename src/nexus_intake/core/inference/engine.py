# src/nexus_intake/core/inference/engine.py
"""
Field Type Inference Engine.

Dado o conjunto de valores amostrados de um campo, infere:
    - o tipo semântico (e a confiança: fração de valores que casam)
    - obrigatoriedade (não vazio em todas as linhas amostradas)
    - contagens de valores distintos e não vazios
    - se o campo é um identificador plausível (`looks_like_id`)

Algoritmo de tipo:
    1. Valores são normalizados com trim; vazios saem da base de cálculo.
    2. Sem valores não vazios → `empty`, confiança 0.0.
    3. Os testes de `TYPE_TESTS` rodam na ordem; o primeiro tipo cuja
       fração de acerto atinge `inference.type_threshold` (0.8) vence.
    4. Numérico vira `integer` quando todo valor que casa é inteiro.
    5. Nenhum tipo atinge o limiar → `string`, confiança 1.0.

Heurística de identificador (`looks_like_id`):
    (a) nome contém id/key/code/number/ref/identifier/uuid/guid E
        unicidade (distintos / não vazios) ≥ `id_uniqueness_ratio`; ou
    (b) unicidade ≥ `id_uniqueness_ratio` E completude (não vazios / total)
        ≥ `id_completeness_ratio` E distintos > `id_min_distinct`.

O engine é puro e determinístico: os mesmos valores produzem sempre o
mesmo DetectedField. Contagens usam `pandas.Series`.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from nexus_intake.core.config import resolve_settings
from nexus_intake.core.parsing.types import SourceRecord
from nexus_intake.core.values import parse_number

from .patterns import TYPE_TESTS, name_looks_like_id
from .types import DetectedField, FieldType


_ACRONYMS = {"id", "url", "uuid", "guid", "sku", "api"}
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SPLIT_RE = re.compile(r"[\s_.\-]+")


def suggested_label(name: str) -> str:
    """Rótulo legível para o campo: `order_id` → `Order ID`, `customerName` → `Customer Name`."""
    words = [w for w in _SPLIT_RE.split(_CAMEL_RE.sub(" ", name.strip())) if w]
    return " ".join(w.upper() if w.lower() in _ACRONYMS else w[:1].upper() + w[1:] for w in words)


def _inference_cfg(settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    cfg = settings if settings is not None else resolve_settings()
    return cfg["inference"]


def _classify(values: List[str], threshold: float) -> Tuple[FieldType, float]:
    total = len(values)
    for field_type, test in TYPE_TESTS:
        matching = [v for v in values if test(v)]
        ratio = len(matching) / total
        if ratio < threshold:
            continue
        if field_type is FieldType.NUMBER:
            parsed = [parse_number(v) for v in matching]
            if all(p is not None and float(p).is_integer() for p in parsed):
                field_type = FieldType.INTEGER
        return field_type, ratio
    return FieldType.STRING, 1.0


def infer_field(
    name: str,
    values: Iterable[Any],
    *,
    settings: Optional[Dict[str, Any]] = None,
) -> DetectedField:
    """
    Infere o `DetectedField` de um campo a partir da coluna amostrada.

    `values` é a coluna completa da amostra (vazios incluídos): o total de
    linhas alimenta obrigatoriedade e completude.
    """
    cfg = _inference_cfg(settings)

    column = pd.Series(list(values), dtype="object").fillna("").astype(str).str.strip()
    total_rows = int(column.shape[0])
    non_empty = column[column != ""]
    non_empty_count = int(non_empty.shape[0])
    unique_count = int(non_empty.nunique())
    preview = tuple(non_empty.drop_duplicates().head(int(cfg["max_sample_values"])).tolist())

    if non_empty_count == 0:
        inferred, confidence = FieldType.EMPTY, 0.0
    else:
        inferred, confidence = _classify(non_empty.tolist(), float(cfg["type_threshold"]))

    uniqueness = unique_count / non_empty_count if non_empty_count else 0.0
    completeness = non_empty_count / total_rows if total_rows else 0.0
    unique_enough = uniqueness >= float(cfg["id_uniqueness_ratio"])

    looks_like_id = bool(
        (name_looks_like_id(name) and unique_enough)
        or (
            unique_enough
            and completeness >= float(cfg["id_completeness_ratio"])
            and unique_count > int(cfg["id_min_distinct"])
        )
    )

    return DetectedField(
        name=name,
        inferred_type=inferred,
        type_confidence=round(confidence, 4),
        is_required=total_rows > 0 and non_empty_count == total_rows,
        unique_value_count=unique_count,
        non_empty_count=non_empty_count,
        sample_values=preview,
        looks_like_id=looks_like_id,
        suggested_label=suggested_label(name),
    )


def infer_fields(
    records: Sequence[SourceRecord],
    columns: Sequence[str],
    *,
    settings: Optional[Dict[str, Any]] = None,
) -> List[DetectedField]:
    """Infere todos os campos da amostra, na ordem das colunas."""
    cfg = settings if settings is not None else resolve_settings()
    sample = list(records)[: int(cfg["inference"]["sample_size"])]
    return [
        infer_field(col, (r.values.get(col, "") for r in sample), settings=cfg)
        for col in columns
    ]


def suggest_primary_id(fields: Sequence[DetectedField]) -> Optional[str]:
    """
    Escolhe o identificador primário sugerido entre os candidatos.

    Ordem de preferência: nome contendo "id"; depois maior número de
    valores distintos; depois ordem original. Sem candidato → None
    (o operador precisa escolher manualmente).
    """
    candidates = [
        (0 if "id" in f.name.lower() else 1, -f.unique_value_count, idx, f.name)
        for idx, f in enumerate(fields)
        if f.looks_like_id
    ]
    if not candidates:
        return None
    return sorted(candidates)[0][3]
