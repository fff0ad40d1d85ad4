# src/nexus_intake/core/rules/operators.py
"""
Catálogo de operadores de condição por família de tipo.

A disponibilidade de um operador depende do tipo ATUAL do campo, não de
um conjunto global: mudar o tipo declarado de um campo muda quais
operadores são legais. O primeiro operador de cada família é o default
usado para reparar condições que se tornaram ilegais.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

from nexus_intake.core.inference.types import BOOLEAN_TYPES, DATE_TYPES, NUMERIC_TYPES, FieldType


class Operator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    BEFORE = "before"
    AFTER = "after"
    IN = "in"
    NOT_IN = "not_in"


SET_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})

STRING_FAMILY = "string"
NUMERIC_FAMILY = "numeric"
BOOLEAN_FAMILY = "boolean"
DATE_FAMILY = "date"

OPERATORS_BY_FAMILY: Dict[str, Tuple[Operator, ...]] = {
    STRING_FAMILY: (
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.CONTAINS,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.IN,
        Operator.NOT_IN,
    ),
    NUMERIC_FAMILY: (
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
        Operator.GREATER_OR_EQUAL,
        Operator.LESS_OR_EQUAL,
        Operator.IN,
        Operator.NOT_IN,
    ),
    BOOLEAN_FAMILY: (
        Operator.EQUALS,
        Operator.NOT_EQUALS,
    ),
    DATE_FAMILY: (
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.BEFORE,
        Operator.AFTER,
        Operator.IN,
        Operator.NOT_IN,
    ),
}


def type_family(field_type: FieldType) -> str:
    if field_type in NUMERIC_TYPES:
        return NUMERIC_FAMILY
    if field_type in DATE_TYPES:
        return DATE_FAMILY
    if field_type in BOOLEAN_TYPES:
        return BOOLEAN_FAMILY
    return STRING_FAMILY


def legal_operators(field_type: FieldType) -> Tuple[Operator, ...]:
    return OPERATORS_BY_FAMILY[type_family(field_type)]


def is_legal(field_type: FieldType, operator: Operator) -> bool:
    return operator in legal_operators(field_type)


def default_operator(field_type: FieldType) -> Operator:
    return legal_operators(field_type)[0]
