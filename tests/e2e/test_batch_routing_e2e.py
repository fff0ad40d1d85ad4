"""
E2E — lote completo pela API pública
====================================

Cenários ponta a ponta usando APENAS `nexus_intake` (superfície pública):

- CSV com campo obrigatório vazio → PARTIAL, STAGED em dry run
- mesmo lote com `state` opcional → catch-all roteia a linha vazia
- commit com sink em memória → COMMITTED e um pedido por registro roteado
- mapeamentos inferidos (`mappings=None`)
- JSON aninhado com `data_path`, fila default e diagnóstico
- lote ilegível → FAILED sem exceção
"""

import json

import pytest

import nexus_intake as nx


def test_required_state_gives_partial_batch(states_csv, state_mappings, catch_all_rules, queues):
    result = nx.ingest(states_csv, "csv", None, state_mappings(state_required=True), catch_all_rules, queues=queues)

    assert result.status is nx.BatchStatus.PARTIAL
    assert result.state is nx.BatchState.STAGED
    c = result.counts
    assert (c.found, c.mapped, c.routed, c.unrouted, c.failed) == (3, 2, 2, 0, 1)
    assert c.routed + c.unrouted == c.mapped == c.found - c.failed - c.skipped
    assert result.outcome_for(3).status is nx.OutcomeStatus.FAILED


def test_optional_state_routes_every_row(states_csv, state_mappings, catch_all_rules, queues):
    result = nx.ingest(states_csv, "csv", None, state_mappings(), catch_all_rules, queues=queues)

    assert result.status is nx.BatchStatus.COMPLETED
    assert [o.target_queue_id for o in result.outcomes] == ["A", "B", "B"]
    assert result.outcome_for(3).matched_rule_id == "r-all"


def test_commit_emits_task_requests(states_csv, state_mappings, catch_all_rules, queues):
    sink = nx.CollectingSink()

    result = nx.ingest(
        states_csv, "csv", None, state_mappings(state_required=True), catch_all_rules,
        dry_run=False, queues=queues, sink=sink,
    )

    assert result.state is nx.BatchState.COMMITTED
    assert (result.records_processed, result.records_failed, result.records_skipped) == (2, 1, 0)
    assert [(r.row_number, r.queue_id) for r in sink.requests] == [(1, "A"), (2, "B")]
    assert json.loads(json.dumps(result.to_dict()))["state"] == "committed"


def test_inferred_mappings(catch_all_rules):
    rows = "\n".join(f"T-{i:03d},{'CA' if i <= 4 else 'NY'},Ticket {i}" for i in range(1, 21))
    raw = f"ticket_id,state,subject\n{rows}\n".encode()

    inference = nx.infer_schema(raw, "csv")
    assert inference.suggested_primary_id_field == "ticket_id"

    result = nx.ingest(raw, "csv", None, None, catch_all_rules)

    assert result.counts.routed == 20
    assert result.queue_volumes == {"A": 4, "B": 16}


def test_nested_json_with_default_queue_and_diagnostics():
    doc = {
        "payload": {
            "items": [
                {"id": 1, "amount": 1500, "vip": True},
                {"id": 2, "amount": 20, "vip": False},
                {"id": 3, "amount": "n/a", "vip": False},
            ]
        }
    }
    mappings = [
        {"source_field": "id", "target_field": "external_id", "is_primary_id": True, "required": True,
         "detected_type": "integer"},
        {"source_field": "amount", "target_field": "metadata.amount", "detected_type": "number"},
        {"source_field": "vip", "target_field": "metadata.vip", "detected_type": "boolean"},
    ]
    rules = [
        {"id": "big", "priority": 1, "target_queue_id": "escalations",
         "condition_group": {"logic": "OR", "conditions": [
             {"field": "amount", "operator": "greater_or_equal", "value": 1000},
             {"field": "vip", "operator": "equals", "value": "true"},
         ]}},
    ]
    queues = [{"id": "escalations", "name": "Escalations", "capacity": 5}, {"id": "general", "name": "General"}]

    result = nx.ingest(
        json.dumps(doc).encode(), "json", {"data_path": "payload.items"}, mappings, rules,
        queues=queues, default_queue_id="general",
        settings={"routing": {"include_diagnostics": True}},
    )

    assert [o.target_queue_id for o in result.outcomes] == ["escalations", "general", "general"]
    assert result.outcome_for(2).matched_rule_id is None
    reasons = [c["reason"] for c in result.outcome_for(3).diagnostics[0]["conditions"]]
    assert reasons[0] == "record value is not a valid numeric"


def test_unreadable_batch_is_failed_not_raised(state_mappings, catch_all_rules):
    result = nx.ingest(b'{"broken": ', "json", None, state_mappings(), catch_all_rules)

    assert result.status is nx.BatchStatus.FAILED
    assert result.error["type"] == "PARSE_FATAL"


def test_configuration_errors_surface_before_reading(state_mappings):
    rule = {"id": "r", "priority": 1, "target_queue_id": "A",
            "condition_group": {"conditions": [{"field": "state", "operator": "greater_than", "value": 3}]}}

    with pytest.raises(nx.InvalidRuleError):
        nx.ingest(b'{"broken": ', "json", None, state_mappings(), [rule])


def test_validation_api(state_mappings):
    report = nx.validate_mapping(state_mappings())
    assert report.ok

    report = nx.validate_rule(state_mappings(), {"id": "r", "priority": 1, "target_queue_id": "A"})
    assert report.ok
    assert report.warnings == ("rule 'r': empty condition group matches every record",)
