# tests/core/registry/test_pipeline_registry.py
"""
Testes do registry de Pipeline/Queue.

Cobre:
- criação validada (ids únicos, fila de destino pertencente ao pipeline)
- rejeição ao remover fila ainda referenciada
- reparo automático de condições ao mudar o tipo de um campo
- substituição de regra preservando a posição (desempate por prioridade)
"""

import pytest

from nexus_intake.core.exceptions import ConfigurationError, InvalidRuleError, QueueReferenceError
from nexus_intake.core.inference import FieldType
from nexus_intake.core.registry import (
    Queue,
    add_queue,
    change_field_type,
    create_pipeline,
    delete_queue,
    delete_rule,
    replace_rule,
    replace_schema,
    set_default_queue,
)
from nexus_intake.core.rules import Operator, RoutingRule, evaluate


SCHEMA = [
    {"source_field": "id", "target_field": "external_id", "is_primary_id": True, "required": True},
    {"source_field": "state", "target_field": "metadata.state"},
    {"source_field": "tier", "target_field": "metadata.tier"},
]


def _rule(rule_id, priority, queue, conditions=()):
    return {
        "id": rule_id,
        "name": rule_id,
        "priority": priority,
        "target_queue_id": queue,
        "condition_group": {"conditions": list(conditions)},
    }


@pytest.fixture
def pipeline():
    return create_pipeline(
        id="p1",
        name="Support",
        schema=SCHEMA,
        queues=[{"id": "A", "name": "Queue A"}, {"id": "B", "name": "Queue B", "capacity": 10}],
        rules=[
            _rule("r-ca", 1, "A", [{"field": "state", "operator": "contains", "value": "1"}]),
            _rule("r-tier", 1, "B", [{"field": "tier", "operator": "in", "value": ["gold", "silver"]}]),
        ],
    )


def test_create_pipeline_coerces_dicts(pipeline):
    assert [q.id for q in pipeline.queues] == ["A", "B"]
    assert pipeline.queue("B").capacity == 10
    assert isinstance(pipeline.rules[0], RoutingRule)
    assert pipeline.field_types()["state"] is FieldType.STRING


def test_rule_targeting_foreign_queue_is_rejected():
    with pytest.raises(QueueReferenceError):
        create_pipeline(id="p", name="p", schema=SCHEMA, queues=[Queue(id="A", name="A")], rules=[_rule("r", 1, "X")])


def test_duplicate_queue_ids_are_rejected(pipeline):
    with pytest.raises(ConfigurationError):
        add_queue(pipeline, Queue(id="A", name="again"))


def test_negative_capacity_is_rejected(pipeline):
    with pytest.raises(ConfigurationError):
        add_queue(pipeline, Queue(id="C", name="C", capacity=-1))


@pytest.mark.parametrize(
    "bad, index",
    [
        ({"name": "no id"}, 1),
        ({"id": "C", "capacity": "lots"}, 1),
        ({"id": "C", "priority": None}, 1),
        ("C", 1),
    ],
    ids=["missing-id", "non-numeric-capacity", "null-priority", "not-a-mapping"],
)
def test_malformed_queue_dict_raises_configuration_error(bad, index):
    with pytest.raises(ConfigurationError) as exc:
        create_pipeline(id="p", name="p", schema=SCHEMA, queues=[{"id": "A"}, bad], rules=[])

    assert exc.value.details["index"] == index
    assert f"queue[{index}]" in exc.value.message


def test_rule_with_unknown_field_is_rejected():
    with pytest.raises(InvalidRuleError):
        create_pipeline(
            id="p",
            name="p",
            schema=SCHEMA,
            queues=[Queue(id="A", name="A")],
            rules=[_rule("r", 1, "A", [{"field": "city", "operator": "equals", "value": "x"}])],
        )


def test_delete_referenced_queue_is_rejected(pipeline):
    with pytest.raises(QueueReferenceError) as exc:
        delete_queue(pipeline, "A")

    assert exc.value.message == "Queue is used by 1 routing rule(s). Update rules first."
    assert exc.value.details["rule_ids"] == ["r-ca"]
    assert [q.id for q in pipeline.queues] == ["A", "B"]


def test_delete_queue_after_removing_rules(pipeline):
    updated = delete_queue(delete_rule(pipeline, "r-ca"), "A")

    assert [q.id for q in updated.queues] == ["B"]


def test_default_queue_must_exist_and_cannot_be_deleted(pipeline):
    with pytest.raises(QueueReferenceError):
        set_default_queue(pipeline, "ghost")

    with_default = set_default_queue(delete_rule(pipeline, "r-ca"), "A")
    with pytest.raises(QueueReferenceError):
        delete_queue(with_default, "A")


def test_change_field_type_repairs_illegal_operator(pipeline):
    updated, repairs = change_field_type(pipeline, "state", "integer")

    assert len(repairs) == 1
    repair = repairs[0]
    assert (repair.rule_id, repair.field) == ("r-ca", "state")
    assert (repair.old_operator, repair.new_operator) == ("contains", "equals")
    assert repair.new_value == "1"

    condition = updated.rules[0].condition_group.conditions[0]
    assert condition.operator is Operator.EQUALS
    assert updated.field_types()["state"] is FieldType.INTEGER
    assert pipeline.field_types()["state"] is FieldType.STRING


def test_change_field_type_collapses_set_operator(pipeline):
    updated, repairs = change_field_type(pipeline, "tier", FieldType.BOOLEAN)

    assert repairs[0].old_value == ("gold", "silver")
    assert repairs[0].new_value == "gold"
    assert updated.rules[1].condition_group.conditions[0].operator is Operator.EQUALS


def test_change_field_type_keeps_legal_operators(pipeline):
    _, repairs = change_field_type(pipeline, "tier", "date")

    assert repairs == []


def test_change_field_type_unknown_field(pipeline):
    with pytest.raises(ConfigurationError):
        change_field_type(pipeline, "missing", "string")


def test_replace_rule_keeps_position_for_ties(pipeline):
    both = replace_rule(
        pipeline,
        RoutingRule.from_dict(_rule("r-ca", 1, "A")),
    )
    tier_open = replace_rule(both, RoutingRule.from_dict(_rule("r-tier", 1, "B")))

    assert [r.id for r in tier_open.rules] == ["r-ca", "r-tier"]
    assert evaluate({"state": "x"}, tier_open.rules).queue_id == "A"


def test_replace_missing_rule_raises_key_error(pipeline):
    with pytest.raises(KeyError):
        replace_rule(pipeline, RoutingRule.from_dict(_rule("nope", 1, "A")))


def test_replace_schema_rejects_dropping_a_referenced_field(pipeline):
    with pytest.raises(InvalidRuleError):
        replace_schema(pipeline, [m for m in SCHEMA if m["source_field"] != "tier"])

    updated = replace_schema(delete_rule(pipeline, "r-tier"), [m for m in SCHEMA if m["source_field"] != "tier"])
    assert "tier" not in updated.field_types()
