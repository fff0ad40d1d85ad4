# src/nexus_intake/core/parsing/json_records.py
"""
Leitura de JSON e JSON-Lines para `SourceRecord`.

Formas aceitas para JSON:
    - array de objetos no topo
    - objeto único com exatamente uma propriedade array (detectada por
      varredura das chaves) ou o array apontado por `data_path`
    - objeto único sem propriedade array → um registro

Todos os valores são coeridos para texto, de forma reversível:
strings ficam como estão; números e booleanos usam o texto JSON
(`12.5`, `true`); `null` vira ""; arrays/objetos aninhados viram JSON
compacto. Reaplicar `json.loads` ao texto recupera o tipo original.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from nexus_intake.core.values import to_text

from .types import JsonOptions, ParseResult, RowFailure, SourceRecord


class _Collector:
    """Acumula registros preservando a ordem de primeira aparição das chaves."""

    def __init__(self) -> None:
        self.records: List[SourceRecord] = []
        self.failures: List[RowFailure] = []
        self.columns: Dict[str, None] = {}
        self.total = 0

    def add(self, item: Any, raw: Optional[str] = None) -> None:
        self.total += 1
        if not isinstance(item, dict):
            self.failures.append(
                RowFailure(
                    row_number=self.total,
                    reason=f"expected an object, got {type(item).__name__}",
                    raw=raw,
                )
            )
            return
        values = {str(k): to_text(v) for k, v in item.items()}
        for key in values:
            self.columns.setdefault(key, None)
        self.records.append(SourceRecord(row_number=self.total, values=values))

    def fail(self, reason: str, raw: Optional[str]) -> None:
        self.total += 1
        self.failures.append(RowFailure(row_number=self.total, reason=reason, raw=raw))

    def result(self) -> ParseResult:
        # registros esparsos: toda coluna conhecida existe em todo registro
        columns = tuple(self.columns)
        records = tuple(
            SourceRecord(
                row_number=r.row_number,
                values={c: r.values.get(c, "") for c in columns},
            )
            for r in self.records
        )
        return ParseResult(
            records=records,
            columns=columns,
            total_rows=self.total,
            failed_rows=len(self.failures),
            row_failures=tuple(self.failures),
        )


def _resolve_data_path(doc: Any, path: str) -> Tuple[Any, Optional[str]]:
    node = doc
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None, f"data_path '{path}' not found"
        node = node[part]
    return node, None


def _locate_items(doc: Any, options: JsonOptions) -> Tuple[Optional[List[Any]], Optional[str]]:
    if options.data_path:
        node, error = _resolve_data_path(doc, options.data_path)
        if error:
            return None, error
        doc = node
        if isinstance(doc, dict):
            return [doc], None

    if isinstance(doc, list):
        return doc, None

    if isinstance(doc, dict):
        array_keys = [k for k, v in doc.items() if isinstance(v, list)]
        if len(array_keys) == 1:
            return doc[array_keys[0]], None
        return [doc], None

    return None, f"top-level JSON value must be an array or object, got {type(doc).__name__}"


def read_json(text: str, options: JsonOptions) -> Tuple[ParseResult, Optional[str]]:
    if not text.strip():
        return _Collector().result(), "empty input"
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        return _Collector().result(), f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"

    items, error = _locate_items(doc, options)
    if error:
        return _Collector().result(), error

    collector = _Collector()
    for item in items or []:
        collector.add(item, raw=None if isinstance(item, dict) else to_text(item))

    if collector.total == 0:
        return collector.result(), "no data rows found"
    return collector.result(), None


def read_json_lines(text: str, options: JsonOptions) -> Tuple[ParseResult, Optional[str]]:
    collector = _Collector()
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError as exc:
            collector.fail(f"invalid JSON line: {exc.msg}", raw=line)
            continue
        collector.add(item, raw=line)

    if collector.total == 0:
        return collector.result(), "no data rows found"
    return collector.result(), None
