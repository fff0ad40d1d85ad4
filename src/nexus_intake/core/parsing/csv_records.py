# src/nexus_intake/core/parsing/csv_records.py
"""
Leitura de CSV para `SourceRecord`.

Usa o `csv.reader` da biblioteca padrão em modo estrito: campos entre
aspas podem conter o delimitador, quebras de linha e aspas escapadas
(`""` → `"`). Um registro que o reader recusa (aspas mal formadas) ou que
tem mais campos que o cabeçalho é uma linha malformada: entra na
contabilidade de falhas e segue-se para a próxima.

Linhas em branco são ignoradas e não contam como linhas de dados.
"""

from __future__ import annotations

import csv
import io
from typing import List, Optional, Tuple

from .types import CsvOptions, ParseResult, RowFailure, SourceRecord


def _normalize_header(raw: List[str]) -> List[str]:
    """Aplica trim, nomeia colunas vazias e desambigua duplicatas (`name`, `name_2`, ...)."""
    names: List[str] = []
    seen: dict = {}
    for i, name in enumerate(raw, start=1):
        base = name.strip() or f"column_{i}"
        count = seen.get(base, 0) + 1
        seen[base] = count
        names.append(base if count == 1 else f"{base}_{count}")
    return names


def _is_blank(row: List[str]) -> bool:
    return len(row) == 0 or (len(row) == 1 and not row[0].strip())


def read_csv(text: str, options: CsvOptions) -> Tuple[ParseResult, Optional[str]]:
    """
    Converte texto CSV em `ParseResult`.

    Retorna também um motivo de falha fatal (ou `None`) para que o chamador
    decida como reportá-lo; este módulo não conhece o lote.
    """
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=options.delimiter,
        quotechar=options.quote_char,
        doublequote=True,
        strict=True,
    )

    # (número da linha de dados, campos | None, texto bruto do erro)
    data_rows: List[Tuple[int, Optional[List[str]], Optional[str]]] = []
    header: Optional[List[str]] = None
    skipped = 0
    row_number = 0

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            if skipped < options.skip_rows:
                skipped += 1
                continue
            if options.has_header and header is None:
                return _empty(), f"unreadable header: {exc}"
            row_number += 1
            data_rows.append((row_number, None, f"line {reader.line_num}: {exc}"))
            continue

        if skipped < options.skip_rows:
            skipped += 1
            continue
        if _is_blank(row):
            continue
        if options.has_header and header is None:
            header = row
            continue

        row_number += 1
        data_rows.append((row_number, row, None))

    if options.has_header and header is None:
        return _empty(), "no header row found"
    if not data_rows:
        return _empty(), "no data rows found"

    if options.column_names:
        columns = _normalize_header(list(options.column_names))
    elif header is not None:
        columns = _normalize_header(header)
    else:
        width = max(len(r) for _, r, _ in data_rows if r is not None) if any(
            r is not None for _, r, _ in data_rows
        ) else 0
        columns = [f"column_{i}" for i in range(1, width + 1)]

    records: List[SourceRecord] = []
    failures: List[RowFailure] = []
    width = len(columns)

    for number, row, error in data_rows:
        if row is None:
            failures.append(RowFailure(row_number=number, reason="malformed quoting", raw=error))
            continue
        if len(row) > width:
            failures.append(
                RowFailure(
                    row_number=number,
                    reason=f"row has {len(row)} fields, expected at most {width}",
                    raw=options.delimiter.join(row),
                )
            )
            continue
        padded = row + [""] * (width - len(row))
        records.append(SourceRecord(row_number=number, values=dict(zip(columns, padded))))

    result = ParseResult(
        records=tuple(records),
        columns=tuple(columns),
        total_rows=len(data_rows),
        failed_rows=len(failures),
        row_failures=tuple(failures),
    )
    return result, None


def _empty() -> ParseResult:
    return ParseResult(records=(), columns=(), total_rows=0, failed_rows=0)
