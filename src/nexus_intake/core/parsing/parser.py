# src/nexus_intake/core/parsing/parser.py
"""
Ponto de entrada do Record Parser.

`parse(raw, fmt, options)` decodifica os bytes, despacha para o leitor do
formato e converte falhas estruturais do lote em `FatalParseError`.

Política de falha:
    - linha malformada → contabilizada em `failed_rows`, lote continua
    - entrada vazia, bytes não decodificáveis, documento JSON inválido ou
      configuração que produz zero linhas de dados → `FatalParseError`

O parser não conhece mapeamentos nem regras e não mantém estado entre
chamadas.
"""

from __future__ import annotations

from typing import Any, Mapping, Union, cast

from nexus_intake.core.errors import parse_fatal
from nexus_intake.core.exceptions import FatalParseError

from .csv_records import read_csv
from .json_records import read_json, read_json_lines
from .types import CsvOptions, Format, FormatOptions, JsonOptions, ParseResult, coerce_format, coerce_options


def _fatal(reason: str, fmt: Format) -> FatalParseError:
    payload = parse_fatal(reason=reason, fmt=fmt.value)
    return FatalParseError(
        message=f"Fatal parse error: {reason}",
        details=payload.details,
        hint=payload.hint,
    )


def decode(raw: Union[bytes, bytearray, str], encoding: str, fmt: Format) -> str:
    if isinstance(raw, str):
        return raw[1:] if raw.startswith("\ufeff") else raw
    try:
        return bytes(raw).decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise _fatal(f"cannot decode input as {encoding}: {exc}", fmt) from exc


def parse(
    raw: Union[bytes, bytearray, str],
    fmt: Union[str, Format],
    options: Union[FormatOptions, Mapping[str, Any], None] = None,
) -> ParseResult:
    """
    Converte bytes brutos de um formato declarado em registros planos.

    Args:
        raw: conteúdo do lote (bytes ou texto já decodificado).
        fmt: `csv`, `json` ou `jsonl`.
        options: `CsvOptions` / `JsonOptions`, dict equivalente ou None.

    Returns:
        ParseResult com registros na ordem original.

    Raises:
        ConfigurationError: formato ou opções inválidos.
        FatalParseError: lote vazio ou estruturalmente ilegível.
    """
    fmt = coerce_format(fmt)
    opts = coerce_options(fmt, options)
    text = decode(raw, opts.encoding, fmt)

    if not text.strip():
        raise _fatal("empty input", fmt)

    if fmt is Format.CSV:
        result, fatal = read_csv(text, cast(CsvOptions, opts))
    elif fmt is Format.JSON:
        result, fatal = read_json(text, cast(JsonOptions, opts))
    else:
        result, fatal = read_json_lines(text, cast(JsonOptions, opts))

    if fatal is not None:
        raise _fatal(fatal, fmt)
    return result
