"""
Record Parser: bytes de um formato declarado → registros planos `str → str`.

Formatos: CSV (delimitador, aspas, cabeçalho, linhas iniciais ignoradas),
JSON (array, objeto com um array, objeto único) e JSON-Lines.
"""

from .parser import parse
from .types import (
    CsvOptions,
    Format,
    FormatOptions,
    JsonOptions,
    ParseResult,
    RowFailure,
    SourceRecord,
)

__all__ = [
    "CsvOptions",
    "Format",
    "FormatOptions",
    "JsonOptions",
    "ParseResult",
    "RowFailure",
    "SourceRecord",
    "parse",
]
