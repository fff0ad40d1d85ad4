# src/nexus_intake/core/rules/conditions.py
"""
Avaliação de condições e grupos de condição contra um registro.

Semântica por operador:
    - equals / not_equals: igualdade tipada quando os dois lados parseiam
      no tipo do campo (numérico, data, booleano); senão, igualdade de
      strings normalizadas (trim)
    - in / not_in: pertinência na lista, com a mesma regra de igualdade
    - contains / starts_with / ends_with: testes de substring sobre o
      texto bruto
    - greater_than / less_than / greater_or_equal / less_or_equal /
      before / after: os dois lados precisam parsear; falha de parse
      torna a condição falsa (nunca erro)

Strings são comparadas com distinção de maiúsculas, exceto quando a
condição declara `case_sensitive=False`. `negate` inverte o resultado
final da condição. Campo ausente no registro é lido como "".

A avaliação assume um conjunto de regras já validado: campo desconhecido
ou operador ilegal são erros de configuração detectados ao salvar.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional, Tuple

from nexus_intake.core.inference.types import FieldType
from nexus_intake.core.values import parse_bool, parse_date, parse_number, to_text

from .operators import BOOLEAN_FAMILY, DATE_FAMILY, NUMERIC_FAMILY, Operator, type_family
from .types import ConditionGroup, ConditionTrace, Logic, RoutingCondition


def _parse_numeric(text: str) -> Optional[float]:
    value = parse_number(text)
    if value is None:
        value = parse_number(text, currency=True)
    return value


_PARSERS: dict = {
    NUMERIC_FAMILY: _parse_numeric,
    DATE_FAMILY: parse_date,
    BOOLEAN_FAMILY: parse_bool,
}


def parse_typed(text: str, family: str) -> Any:
    parser: Optional[Callable[[str], Any]] = _PARSERS.get(family)
    return parser(text) if parser is not None else None


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.casefold()


def _same(actual: str, expected: str, family: str, case_sensitive: bool) -> bool:
    a, b = parse_typed(actual, family), parse_typed(expected, family)
    if a is not None and b is not None:
        return a == b
    return _fold(actual.strip(), case_sensitive) == _fold(expected.strip(), case_sensitive)


def _ordered(actual: str, expected: str, family: str) -> Tuple[Optional[Any], Optional[Any]]:
    return parse_typed(actual, family), parse_typed(expected, family)


def _compare(condition: RoutingCondition, actual: str, field_type: FieldType) -> Tuple[bool, Optional[str]]:
    op = condition.operator
    family = type_family(field_type)
    cs = condition.case_sensitive

    if condition.is_set_operator:
        raw = condition.value if isinstance(condition.value, (list, tuple)) else (condition.value,)
        members = [to_text(v) for v in raw]
        hit = any(_same(actual, m, family, cs) for m in members)
        return (hit if op is Operator.IN else not hit), None

    expected = to_text(condition.value)

    if op is Operator.EQUALS:
        return _same(actual, expected, family, cs), None
    if op is Operator.NOT_EQUALS:
        return not _same(actual, expected, family, cs), None

    if op is Operator.CONTAINS:
        return _fold(expected, cs) in _fold(actual, cs), None
    if op is Operator.STARTS_WITH:
        return _fold(actual, cs).startswith(_fold(expected, cs)), None
    if op is Operator.ENDS_WITH:
        return _fold(actual, cs).endswith(_fold(expected, cs)), None

    # comparações de ordem: ambos os lados precisam parsear
    order_family = DATE_FAMILY if op in (Operator.BEFORE, Operator.AFTER) else NUMERIC_FAMILY
    if family in (NUMERIC_FAMILY, DATE_FAMILY):
        order_family = family
    a, b = _ordered(actual, expected, order_family)
    if a is None or b is None:
        side = "record value" if a is None else "condition value"
        return False, f"{side} is not a valid {order_family}"

    if op in (Operator.GREATER_THAN, Operator.AFTER):
        return a > b, None
    if op in (Operator.LESS_THAN, Operator.BEFORE):
        return a < b, None
    if op is Operator.GREATER_OR_EQUAL:
        return a >= b, None
    if op is Operator.LESS_OR_EQUAL:
        return a <= b, None
    return False, f"unsupported operator {op.value}"


def evaluate_condition(
    condition: RoutingCondition,
    values: Mapping[str, str],
    field_type: FieldType = FieldType.STRING,
) -> ConditionTrace:
    present = condition.field in values
    actual = values.get(condition.field, "")
    matched, reason = _compare(condition, actual, field_type)
    if condition.negate:
        matched = not matched
    if not present and reason is None:
        reason = f"field '{condition.field}' not present in record"
    return ConditionTrace(
        field=condition.field,
        operator=("not " if condition.negate else "") + condition.operator.value,
        expected=condition.value,
        actual=actual,
        matched=matched,
        reason=reason,
    )


def evaluate_group(
    group: ConditionGroup,
    values: Mapping[str, str],
    schema: Mapping[str, FieldType],
) -> Tuple[bool, List[ConditionTrace]]:
    """
    Avalia um grupo (e subgrupos) contra o registro.

    Todas as condições são avaliadas, sem curto-circuito, para que o trace
    de diagnóstico seja completo. Grupo vazio é verdadeiro.
    """
    traces: List[ConditionTrace] = []
    outcomes: List[bool] = []

    for condition in group.conditions:
        trace = evaluate_condition(condition, values, schema.get(condition.field, FieldType.STRING))
        traces.append(trace)
        outcomes.append(trace.matched)

    for sub in group.groups:
        matched, sub_traces = evaluate_group(sub, values, schema)
        traces.extend(sub_traces)
        outcomes.append(matched)

    if not outcomes:
        return True, traces
    if group.logic is Logic.AND:
        return all(outcomes), traces
    return any(outcomes), traces
