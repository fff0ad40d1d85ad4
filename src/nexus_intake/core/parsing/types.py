# src/nexus_intake/core/parsing/types.py
"""
Tipos do Record Parser.

Um lote é transformado em uma sequência ordenada de `SourceRecord`
(mapas planos `str → str`) acompanhada da contabilidade de linhas:
quantas linhas de dados foram vistas e quantas falharam.

Invariantes:
    - `row_number` é o índice 1-based da linha de dados (cabeçalho e
      linhas ignoradas por `skip_rows` não contam)
    - `total_rows == len(records) + failed_rows`
    - valores são sempre `str` (JSON é coerido na leitura)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from nexus_intake.core.errors import IntakeErrorPayload, row_malformed
from nexus_intake.core.exceptions import ConfigurationError


class Format(str, Enum):
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"


@dataclass(frozen=True)
class CsvOptions:
    """Opções de leitura CSV (delimitador, aspas, cabeçalho, linhas iniciais ignoradas)."""

    delimiter: str = ","
    quote_char: str = '"'
    has_header: bool = True
    skip_rows: int = 0
    column_names: Optional[Tuple[str, ...]] = None
    encoding: str = "utf-8-sig"


@dataclass(frozen=True)
class JsonOptions:
    """Opções de leitura JSON / JSON-Lines.

    `data_path` (ex.: "payload.items") aponta explicitamente para o array de
    registros; ausente, o array é detectado automaticamente.
    """

    data_path: Optional[str] = None
    encoding: str = "utf-8-sig"


FormatOptions = Union[CsvOptions, JsonOptions]


@dataclass(frozen=True)
class SourceRecord:
    row_number: int
    values: Dict[str, str]


@dataclass(frozen=True)
class RowFailure:
    """Linha excluída na leitura (malformada). Não aborta o lote."""

    row_number: int
    reason: str
    raw: Optional[str] = None

    def to_error(self) -> IntakeErrorPayload:
        return row_malformed(row_number=self.row_number, reason=self.reason, raw=self.raw)


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[SourceRecord, ...]
    columns: Tuple[str, ...]
    total_rows: int
    failed_rows: int
    row_failures: Tuple[RowFailure, ...] = field(default_factory=tuple)

    def sample(self, size: int) -> List[SourceRecord]:
        """Primeiras `size` linhas válidas, na ordem original (amostra de inferência)."""
        return list(self.records[:size])


def coerce_format(fmt: Union[str, Format]) -> Format:
    try:
        return Format(fmt.lower() if isinstance(fmt, str) else fmt)
    except ValueError:
        raise ConfigurationError(
            message=f"Unsupported format: {fmt!r}",
            details={"format": str(fmt), "supported": [f.value for f in Format]},
            hint="Use csv, json ou jsonl.",
        ) from None


def coerce_options(fmt: Format, options: Union[FormatOptions, Mapping[str, Any], None]) -> FormatOptions:
    """
    Normaliza as opções de formato.

    Aceita a dataclass correspondente, um dict com os mesmos nomes de campo
    (ex.: vindo de YAML) ou `None` (defaults). Chaves desconhecidas ou opções
    do formato errado são erro de configuração.
    """
    cls = CsvOptions if fmt is Format.CSV else JsonOptions

    if options is None:
        return cls()
    if isinstance(options, cls):
        opts = options
    elif isinstance(options, Mapping):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(
                message=f"Unknown {fmt.value} options: {', '.join(unknown)}",
                details={"format": fmt.value, "unknown": unknown, "known": sorted(known)},
            )
        data = dict(options)
        if data.get("column_names") is not None:
            data["column_names"] = tuple(data["column_names"])
        opts = cls(**data)
    else:
        raise ConfigurationError(
            message=f"Options of type {type(options).__name__} do not apply to {fmt.value}",
            details={"format": fmt.value},
        )

    if isinstance(opts, CsvOptions):
        if len(opts.delimiter) != 1 or len(opts.quote_char) != 1:
            raise ConfigurationError(
                message="delimiter and quote_char must be single characters",
                details={"delimiter": opts.delimiter, "quote_char": opts.quote_char},
            )
        if opts.delimiter == opts.quote_char:
            raise ConfigurationError(
                message="delimiter and quote_char must differ",
                details={"delimiter": opts.delimiter},
            )
        if isinstance(opts.skip_rows, bool) or not isinstance(opts.skip_rows, int) or opts.skip_rows < 0:
            raise ConfigurationError(
                message="skip_rows must be a non-negative int",
                details={"skip_rows": opts.skip_rows},
            )
    return opts
