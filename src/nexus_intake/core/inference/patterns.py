# src/nexus_intake/core/inference/patterns.py
"""
Testes de pertinência por tipo, na ordem de prioridade da inferência.

Cada teste recebe um valor não vazio (já com trim) e responde se o valor
"casa" com o tipo. A ordem de `TYPE_TESTS` é significativa: tipos mais
estreitos vêm antes dos genéricos (numérico, string), e o primeiro tipo a
atingir o limiar vence.
"""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from nexus_intake.core.values import BOOLEAN_TOKENS, parse_number, parse_temporal

from .types import FieldType


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
URL_RE = re.compile(r"^(?:https?|ftp)://[^\s/?#.][^\s]*$|^www\.[^\s.]+\.[^\s]+$", re.IGNORECASE)
PHONE_CHARS_RE = re.compile(r"^\+?[\d\s().-]+$")
DIGIT_GROUP_RE = re.compile(r"\d+")


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_url(value: str) -> bool:
    return bool(URL_RE.match(value))


def is_phone(value: str) -> bool:
    # 7..15 dígitos com pontuação telefônica; exige '+', '(' ou 3+ grupos de 3+ dígitos
    if not PHONE_CHARS_RE.match(value):
        return False
    groups = DIGIT_GROUP_RE.findall(value)
    if not 7 <= sum(len(g) for g in groups) <= 15:
        return False
    # só pontos como separador: IPv4, versões
    if set(DIGIT_GROUP_RE.sub("", value)) == {"."}:
        return False
    if not (value.startswith("+") or "(" in value):
        # sem prefixo internacional: grupos curtos indicam SSN/documento (123-45-6789)
        if len(groups) < 3 or any(len(g) < 3 for g in groups):
            return False
    return parse_temporal(value) is None


def is_timestamp(value: str) -> bool:
    parsed = parse_temporal(value)
    return parsed is not None and parsed[1]


def is_date(value: str) -> bool:
    parsed = parse_temporal(value)
    return parsed is not None and not parsed[1]


def is_currency(value: str) -> bool:
    return parse_number(value, currency=True) is not None


def is_boolean(value: str) -> bool:
    return value.lower() in BOOLEAN_TOKENS


def is_numeric(value: str) -> bool:
    return parse_number(value) is not None


TYPE_TESTS: List[Tuple[FieldType, Callable[[str], bool]]] = [
    (FieldType.EMAIL, is_email),
    (FieldType.URL, is_url),
    (FieldType.PHONE, is_phone),
    (FieldType.TIMESTAMP, is_timestamp),
    (FieldType.DATE, is_date),
    (FieldType.CURRENCY, is_currency),
    (FieldType.BOOLEAN, is_boolean),
    (FieldType.NUMBER, is_numeric),
]

ID_NAME_TOKENS = ("id", "key", "code", "number", "ref", "identifier", "uuid", "guid")


def name_looks_like_id(name: str) -> bool:
    lowered = name.lower()
    return any(token in lowered for token in ID_NAME_TOKENS)
