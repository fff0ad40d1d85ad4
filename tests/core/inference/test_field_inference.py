# tests/core/inference/test_field_inference.py
"""
Testes do Field Type Inference Engine.

Cobre:
- tipo semântico por família (email, url, phone, date, timestamp,
  currency, boolean, integer, number, string, empty)
- limiar de confiança
- inteiros curtos nunca viram phone/currency
- códigos alfanuméricos, IPs, SSNs e versões não viram phone/currency
- obrigatoriedade, contagens e preview
- heurística de identificador e sugestão do identificador primário
"""

import pytest

from nexus_intake.core.inference import (
    FieldType,
    infer_field,
    infer_fields,
    suggest_primary_id,
    suggested_label,
)
from nexus_intake.core.parsing.types import SourceRecord


@pytest.mark.parametrize(
    "values, expected",
    [
        (["a@x.com", "b@y.org", "c@z.io"], FieldType.EMAIL),
        (["https://x.com/a", "http://y.org", "www.site.com"], FieldType.URL),
        (["+1 555 123 4567", "(555) 123-4567", "555-123-4567"], FieldType.PHONE),
        (["2024-01-15", "2024/02/01", "03/15/2024"], FieldType.DATE),
        (["2024-01-15T10:00:00Z", "2024-01-16 08:30", "1700000000"], FieldType.TIMESTAMP),
        (["$1,200.50", "€30", "45 USD"], FieldType.CURRENCY),
        (["yes", "no", "TRUE", "false"], FieldType.BOOLEAN),
        (["1.5", "2", "-3.25"], FieldType.NUMBER),
        (["10", "200", "3,000"], FieldType.INTEGER),
        (["CA", "NY", "TX"], FieldType.STRING),
        (["", "  ", ""], FieldType.EMPTY),
    ],
)
def test_semantic_types(values, expected):
    assert infer_field("f", values).inferred_type is expected


def test_short_digit_values_are_integer():
    values = [str(n) for n in range(1, 101)]

    field = infer_field("count", values)

    assert field.inferred_type is FieldType.INTEGER
    assert field.type_confidence == 1.0


def test_threshold_tolerates_noise():
    values = [str(n) for n in range(10, 19)] + ["n/a"]

    field = infer_field("amount", values)

    assert field.inferred_type is FieldType.INTEGER
    assert field.type_confidence == pytest.approx(0.9)


def test_below_threshold_falls_back_to_string():
    field = infer_field("mixed", ["1", "2", "x", "y", "z"])

    assert field.inferred_type is FieldType.STRING
    assert field.type_confidence == 1.0


def test_threshold_is_configurable(settings):
    settings["inference"]["type_threshold"] = 0.4

    assert infer_field("mixed", ["1", "2", "x", "y", "z"], settings=settings).inferred_type is FieldType.INTEGER


def test_counts_required_and_preview(settings):
    settings["inference"]["max_sample_values"] = 2

    field = infer_field("state", ["CA", " CA ", "NY", "", "TX"], settings=settings)

    assert field.is_required is False
    assert field.non_empty_count == 4
    assert field.unique_value_count == 3
    assert field.sample_values == ("CA", "NY")
    assert field.suggested_label == "State"


def test_required_when_all_rows_filled():
    assert infer_field("id", ["1", "2"]).is_required is True


def test_id_heuristic_by_name():
    field = infer_field("customer_code", ["a1", "a2", "a3"])

    assert field.looks_like_id is True


def test_id_heuristic_by_uniqueness():
    unique = infer_field("ticket", [f"T{n}" for n in range(20)])
    few = infer_field("ticket", [f"T{n}" for n in range(5)])
    repeated = infer_field("ticket", ["T1"] * 20)

    assert unique.looks_like_id is True
    assert few.looks_like_id is False
    assert repeated.looks_like_id is False


def test_order_id_is_suggested_over_equally_unique_field():
    records = [
        SourceRecord(row_number=n, values={"ticket": f"T-{n}", "order_id": str(1000 + n), "state": "CA"})
        for n in range(1, 101)
    ]

    fields = infer_fields(records, ("ticket", "order_id", "state"))

    by_name = {f.name: f for f in fields}
    assert by_name["order_id"].looks_like_id is True
    assert by_name["ticket"].looks_like_id is True
    assert by_name["state"].looks_like_id is False
    assert suggest_primary_id(fields) == "order_id"


def test_no_candidate_means_no_suggestion():
    fields = infer_fields(
        [SourceRecord(row_number=1, values={"state": "CA"}), SourceRecord(row_number=2, values={"state": "CA"})],
        ("state",),
    )

    assert suggest_primary_id(fields) is None


def test_sample_size_limits_rows(settings):
    settings["inference"]["sample_size"] = 2
    records = [SourceRecord(row_number=n, values={"v": str(n)}) for n in range(1, 6)]

    (field,) = infer_fields(records, ("v",), settings=settings)

    assert field.non_empty_count == 2


@pytest.mark.parametrize(
    "name, label",
    [("order_id", "Order ID"), ("customerName", "Customer Name"), ("payload-url", "Payload URL")],
)
def test_suggested_label(name, label):
    assert suggested_label(name) == label


@pytest.mark.parametrize(
    "values",
    [
        [f"ORD{n:04d}" for n in range(1, 21)],
        [f"{n}ABC" for n in range(100, 120)],
        [f"{n} XYZ" for n in range(100, 120)],
        [f"ABC {n}" for n in range(100, 120)],
    ],
    ids=["prefix-code", "suffix-code", "spaced-suffix", "spaced-prefix"],
)
def test_alphanumeric_codes_are_not_currency(values):
    field = infer_field("order_code", values)

    assert field.inferred_type is FieldType.STRING


@pytest.mark.parametrize(
    "values",
    [
        [f"192.168.1.{n}" for n in range(100, 120)],
        [f"10.0.{n}.254" for n in range(100, 120)],
        ["123-45-6789", "987-65-4321", "555-12-3456"],
        ["1.2.3", "10.4.22", "2.0.1"],
        ["1.12.100.2024", "3.4.500.1200"],
    ],
    ids=["ipv4", "ipv4-wide", "ssn", "semver", "four-part-version"],
)
def test_dotted_and_short_group_values_are_not_phone(values):
    field = infer_field("host", values)

    assert field.inferred_type is FieldType.STRING


def test_currency_codes_need_whitelist_and_spacing():
    assert infer_field("price", ["USD 10", "20 EUR", "BRL 3,500.00"]).inferred_type is FieldType.CURRENCY
    assert infer_field("price", ["USD10", "20EUR", "BRL3"]).inferred_type is FieldType.STRING
