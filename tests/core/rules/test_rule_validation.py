# tests/core/rules/test_rule_validation.py
"""
Testes de `validate_rule` (validação no momento de salvar).

Erros: campo desconhecido, operador ilegal para o tipo atual, lista
somente com in/not_in, lista vazia, fila de destino inexistente.
Warnings: literal que não parseia no tipo do campo, grupo vazio.
"""

import pytest

from nexus_intake.core.inference import FieldType
from nexus_intake.core.mapping import FieldMapping
from nexus_intake.core.rules import validate_rule


SCHEMA = {"state": FieldType.STRING, "amount": FieldType.INTEGER, "vip": FieldType.BOOLEAN}


def _rule(conditions, target="A", **extra):
    data = {
        "id": "r1",
        "name": "Rule 1",
        "priority": 1,
        "target_queue_id": target,
        "condition_group": {"logic": "AND", "conditions": conditions},
    }
    data.update(extra)
    return data


def test_valid_rule():
    report = validate_rule(SCHEMA, _rule([{"field": "amount", "operator": "greater_than", "value": 10}]), queues=["A"])

    assert report.ok
    assert report.warnings == ()


def test_unknown_field():
    report = validate_rule(SCHEMA, _rule([{"field": "city", "operator": "equals", "value": "x"}]))

    assert not report.ok
    assert "unknown field 'city'" in report.errors[0]


def test_operator_must_fit_current_type():
    report = validate_rule(SCHEMA, _rule([{"field": "amount", "operator": "contains", "value": "1"}]))

    assert not report.ok
    assert "operator 'contains' is not valid for integer field 'amount'" in report.errors[0]


def test_boolean_allows_only_equality():
    report = validate_rule(SCHEMA, _rule([{"field": "vip", "operator": "greater_than", "value": "1"}]))

    assert not report.ok


@pytest.mark.parametrize(
    "condition, message",
    [
        ({"field": "state", "operator": "in", "value": "CA"}, "requires a list value"),
        ({"field": "state", "operator": "in", "value": []}, "list value must not be empty"),
        ({"field": "state", "operator": "equals", "value": ["CA"]}, "only allowed with in/not_in"),
    ],
)
def test_list_values_only_with_set_operators(condition, message):
    report = validate_rule(SCHEMA, _rule([condition]))

    assert not report.ok
    assert any(message in e for e in report.errors)


def test_target_queue_must_exist():
    report = validate_rule(SCHEMA, _rule([], target="ghost"), queues=["A", "B"])

    assert not report.ok
    assert any("target queue 'ghost' does not exist" in e for e in report.errors)


def test_unparseable_literal_is_warning():
    report = validate_rule(SCHEMA, _rule([{"field": "amount", "operator": "greater_than", "value": "abc"}]))

    assert report.ok
    assert any("is not a valid numeric" in w for w in report.warnings)


def test_empty_group_is_warning():
    report = validate_rule(SCHEMA, _rule([]))

    assert report.ok
    assert any("matches every record" in w for w in report.warnings)


def test_schema_from_mappings():
    schema = [FieldMapping(source_field="state", target_field="metadata.state")]

    assert validate_rule(schema, _rule([{"field": "state", "operator": "starts_with", "value": "C"}])).ok


def test_malformed_rule_is_reported_not_raised():
    report = validate_rule(SCHEMA, {"name": "no id"})

    assert not report.ok
    assert "missing required key" in report.errors[0]


def test_action_rule_validation():
    rule = {
        "id": "a1",
        "name": "Bump VIP",
        "order": 1,
        "condition_group": {"conditions": [{"field": "vip", "operator": "equals", "value": "true"}]},
        "actions": [{"type": "adjust_priority", "value": "x"}],
    }

    report = validate_rule(SCHEMA, rule)

    assert not report.ok
    assert any("requires a numeric value" in e for e in report.errors)
