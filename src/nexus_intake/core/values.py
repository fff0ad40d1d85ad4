# src/nexus_intake/core/values.py
"""
Parsing tolerante de valores escalares (texto → número, booleano, data).

Todos os registros chegam ao núcleo como texto (CSV nativamente, JSON
após coerção para string). Este módulo concentra as regras de leitura
usadas em dois pontos distintos:

    - inferência de tipo (um valor "casa" com o tipo se o parse funciona)
    - avaliação de condições tipadas (ambos os lados precisam ser parseados)

Compartilhar as mesmas funções garante que um campo inferido como
`number` seja comparado com exatamente a mesma semântica de leitura.

Invariantes:
    - Funções são puras e nunca levantam exceção para entrada inválida:
      retornam `None`
    - Datas retornadas são sempre timezone-aware (UTC quando ingênuas)

Limites explícitos:
    - Não suporta separador decimal com vírgula (formato europeu)
    - Não interpreta nomes de meses
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


_NUMBER_RE = re.compile(
    r"^[+-]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?:[eE][+-]?\d+)?$|^[+-]?\.\d+$"
)

# códigos ISO-4217 aceitos; letras soltas ao lado do número (ORD0001, 100ABC) não são moeda
CURRENCY_CODES = frozenset({
    "USD", "EUR", "GBP", "BRL", "JPY", "CNY", "CAD", "AUD", "NZD", "CHF",
    "SEK", "NOK", "DKK", "MXN", "ARS", "CLP", "COP", "PEN", "INR", "ZAR",
})
_CODE = "|".join(sorted(CURRENCY_CODES))

_CURRENCY_RE = re.compile(
    r"^(?P<sign>[+-])?\s*"
    rf"(?P<pre>R\$|US\$|[$€£¥]|(?:{_CODE})(?=\s))?\s*"
    r"(?P<num>[+-]?[\d.,]*\d(?:[eE][+-]?\d+)?)"
    rf"(?:\s*(?P<post>[$€£¥])|\s+(?P<post_code>{_CODE}))?$"
)


def to_text(value: object) -> str:
    """Forma textual reversível de um escalar JSON (`None` → "", `True` → "true", `12.5` → "12.5")."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(value)


BOOLEAN_TRUE = frozenset({"true", "yes", "1", "y"})
BOOLEAN_FALSE = frozenset({"false", "no", "0", "n"})
BOOLEAN_TOKENS = BOOLEAN_TRUE | BOOLEAN_FALSE

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ISO_DATETIME_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2})(?:\.(\d+))?)?"
    r"\s*(Z|[+-]\d{2}:?\d{2})?$"
)
_SLASH_DATE_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_YMD_SLASH_RE = re.compile(r"^(\d{4})/(\d{2})/(\d{2})$")
_EPOCH_SECONDS_RE = re.compile(r"^\d{10}$")
_EPOCH_MILLIS_RE = re.compile(r"^\d{13}$")


def parse_number(text: object, *, currency: bool = False) -> Optional[float]:
    """
    Lê um número a partir de texto.

    Aceita sinal, separador de milhar `,`, decimais e notação científica.
    Com `currency=True`, aceita também símbolo (`$ € £ ¥ R$`) ou código de
    `CURRENCY_CODES` separado do número por espaço (`USD 10`, `10 EUR`), e
    parênteses para negativos; nesse modo o marcador de moeda é obrigatório.
    """
    if text is None:
        return None
    t = str(text).strip()
    if not t:
        return None

    if currency:
        t = strip_currency(t)
        if t is None:
            return None

    if not _NUMBER_RE.match(t):
        return None
    try:
        return float(t.replace(",", ""))
    except ValueError:
        return None


def strip_currency(text: str) -> Optional[str]:
    """Remove o marcador de moeda e devolve o texto numérico, ou None se não houver marcador."""
    t = text.strip()
    negative = False
    if t.startswith("(") and t.endswith(")"):
        negative = True
        t = t[1:-1].strip()

    m = _CURRENCY_RE.match(t)
    if m is None or not (m.group("pre") or m.group("post") or m.group("post_code")):
        return None

    num = m.group("num")
    sign = m.group("sign") or ""
    if negative:
        if sign or num.startswith(("+", "-")):
            return None
        sign = "-"
    return f"{sign}{num}"


def parse_bool(text: object) -> Optional[bool]:
    if text is None:
        return None
    t = str(text).strip().lower()
    if t in BOOLEAN_TRUE:
        return True
    if t in BOOLEAN_FALSE:
        return False
    return None


def _tz_from_offset(raw: Optional[str]) -> timezone:
    if raw is None or raw == "Z":
        return timezone.utc
    sign = -1 if raw[0] == "-" else 1
    digits = raw[1:].replace(":", "")
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(sign * delta)


def parse_temporal(text: object) -> Optional[Tuple[datetime, bool]]:
    """
    Lê data ou data+hora.

    Retorna `(datetime_utc, has_time)` ou `None`. `has_time` é verdadeiro para
    formatos com componente de hora e para epochs (10 dígitos = segundos,
    13 dígitos = milissegundos).
    """
    if text is None:
        return None
    t = str(text).strip()
    if not t:
        return None

    try:
        if _EPOCH_SECONDS_RE.match(t):
            return datetime.fromtimestamp(int(t), tz=timezone.utc), True
        if _EPOCH_MILLIS_RE.match(t):
            return datetime.fromtimestamp(int(t) / 1000.0, tz=timezone.utc), True

        m = _ISO_DATE_RE.match(t) or _YMD_SLASH_RE.match(t)
        if m:
            y, mo, d = (int(g) for g in m.groups())
            return datetime(y, mo, d, tzinfo=timezone.utc), False

        m = _ISO_DATETIME_RE.match(t)
        if m:
            y, mo, d, hh, mm = (int(g) for g in m.groups()[:5])
            ss = int(m.group(6) or 0)
            micro = int((m.group(7) or "0")[:6].ljust(6, "0"))
            dt = datetime(y, mo, d, hh, mm, ss, micro, tzinfo=_tz_from_offset(m.group(8)))
            return dt.astimezone(timezone.utc), True

        m = _SLASH_DATE_RE.match(t)
        if m:
            mo, d, y = int(m.group(1)), int(m.group(2)), int(m.group(3))
            if m.group(4) is None:
                return datetime(y, mo, d, tzinfo=timezone.utc), False
            hh, mm, ss = int(m.group(4)), int(m.group(5)), int(m.group(6) or 0)
            return datetime(y, mo, d, hh, mm, ss, tzinfo=timezone.utc), True
    except (ValueError, OverflowError, OSError):
        # data impossível (ex.: 2024-02-31) ou epoch fora da faixa
        return None

    return None


def parse_date(text: object) -> Optional[datetime]:
    parsed = parse_temporal(text)
    return parsed[0] if parsed else None
