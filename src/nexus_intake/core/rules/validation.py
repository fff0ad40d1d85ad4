# src/nexus_intake/core/rules/validation.py
"""
Validação de regras no momento de salvar.

Uma regra só é aceita se:
    - toda condição referencia um campo conhecido do schema
    - o operador é legal para o tipo ATUAL do campo
    - o valor é uma lista (não vazia) se e somente se o operador é in/not_in
    - a fila de destino existe, quando o conjunto de filas é informado

Valores literais que não parseiam no tipo do campo (ex.: "abc" contra um
campo `integer`) geram apenas warning: a condição é avaliável, mas será
sempre falsa em comparações de ordem.

Nada disso é verificado durante a ingestão: o orquestrador valida toda a
configuração antes de ler a primeira linha.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from nexus_intake.core.exceptions import InvalidRuleError
from nexus_intake.core.inference.types import DetectedField, FieldType
from nexus_intake.core.mapping.types import FieldMapping
from nexus_intake.core.validation import ValidationReport, expect, is_non_empty_str
from nexus_intake.core.values import to_text

from .conditions import parse_typed
from .operators import BOOLEAN_FAMILY, DATE_FAMILY, NUMERIC_FAMILY, is_legal, legal_operators, type_family
from .types import ActionRule, ActionType, ConditionGroup, RoutingCondition, RoutingRule


SchemaInput = Union[
    Mapping[str, FieldType],
    Sequence[FieldMapping],
    Sequence[DetectedField],
]

RuleInput = Union[RoutingRule, ActionRule, Mapping[str, Any]]


def coerce_schema(schema: SchemaInput) -> Dict[str, FieldType]:
    """Aceita dict nome→tipo, lista de FieldMapping ou lista de DetectedField."""
    if isinstance(schema, Mapping):
        return {str(k): FieldType(v) for k, v in schema.items()}
    out: Dict[str, FieldType] = {}
    for item in schema:
        if isinstance(item, FieldMapping):
            out[item.source_field] = item.detected_type
        elif isinstance(item, DetectedField):
            out[item.name] = item.inferred_type
        else:
            raise TypeError(f"unsupported schema entry: {type(item).__name__}")
    return out


def coerce_rule(rule: RuleInput) -> Union[RoutingRule, ActionRule]:
    if isinstance(rule, (RoutingRule, ActionRule)):
        return rule
    if not isinstance(rule, Mapping):
        raise InvalidRuleError(
            message=f"expected a rule object, got {type(rule).__name__}",
            details={},
        )
    try:
        if "actions" in rule:
            return ActionRule.from_dict(rule)
        return RoutingRule.from_dict(rule)
    except KeyError as exc:
        raise InvalidRuleError(
            message=f"rule is missing required key {exc}",
            details={"rule_id": rule.get("id")},
        ) from exc
    except (TypeError, ValueError) as exc:
        raise InvalidRuleError(
            message=f"rule '{rule.get('id')}': {exc}",
            details={"rule_id": rule.get("id")},
        ) from exc


def coerce_rules(rules: Iterable[RuleInput]) -> List[Union[RoutingRule, ActionRule]]:
    return [coerce_rule(r) for r in rules]


def _check_condition(
    condition: RoutingCondition,
    schema: Mapping[str, FieldType],
    label: str,
    errors: List[str],
    warnings: List[str],
) -> None:
    if not expect(is_non_empty_str(condition.field), f"{label}: field must be a non-empty string", errors):
        return
    field_type = schema.get(condition.field)
    if field_type is None:
        errors.append(f"{label}: unknown field '{condition.field}'")
        return

    legal = expect(
        is_legal(field_type, condition.operator),
        f"{label}: operator '{condition.operator.value}' is not valid for {field_type.value} field "
        f"'{condition.field}' (allowed: {', '.join(o.value for o in legal_operators(field_type))})",
        errors,
    )

    is_list = isinstance(condition.value, (list, tuple))
    if condition.is_set_operator:
        if expect(is_list, f"{label}: operator '{condition.operator.value}' requires a list value", errors):
            expect(len(condition.value) > 0, f"{label}: list value must not be empty", errors)
        literals = list(condition.value) if is_list else []
    else:
        expect(not is_list, f"{label}: list value is only allowed with in/not_in", errors)
        literals = [] if is_list else [condition.value]

    if not legal:
        return

    family = type_family(field_type)
    if family in (NUMERIC_FAMILY, DATE_FAMILY, BOOLEAN_FAMILY):
        for literal in literals:
            text = to_text(literal)
            if parse_typed(text, family) is None:
                warnings.append(
                    f"{label}: value '{text}' is not a valid {family} for field '{condition.field}'"
                )


def _check_group(
    group: ConditionGroup,
    schema: Mapping[str, FieldType],
    prefix: str,
    errors: List[str],
    warnings: List[str],
) -> None:
    for i, condition in enumerate(group.conditions):
        _check_condition(condition, schema, f"{prefix}.conditions[{i}]", errors, warnings)
    for j, sub in enumerate(group.groups):
        _check_group(sub, schema, f"{prefix}.groups[{j}]", errors, warnings)


def validate_rule(
    schema: SchemaInput,
    rule: RuleInput,
    queues: Optional[Iterable[Any]] = None,
) -> ValidationReport:
    """
    Valida uma regra (de roteamento ou de ação) contra o schema do pipeline.

    `queues` pode conter objetos Queue ou ids de fila; quando informado, a
    fila de destino de uma regra de roteamento precisa estar entre eles.
    Nunca levanta exceção por conteúdo inválido: devolve o relatório.
    """
    errors: List[str] = []
    warnings: List[str] = []

    try:
        parsed = coerce_rule(rule)
        fields = coerce_schema(schema)
    except InvalidRuleError as exc:
        return ValidationReport.from_lists([exc.message], [])
    except (TypeError, ValueError) as exc:
        return ValidationReport.from_lists([f"invalid schema: {exc}"], [])

    expect(is_non_empty_str(parsed.id), "rule id must be a non-empty string", errors)
    expect(is_non_empty_str(parsed.name), f"rule '{parsed.id}': name must be a non-empty string", errors)

    _check_group(parsed.condition_group, fields, f"rule '{parsed.id}'", errors, warnings)

    if isinstance(parsed, RoutingRule):
        if expect(
            is_non_empty_str(parsed.target_queue_id),
            f"rule '{parsed.id}': target_queue_id must be a non-empty string",
            errors,
        ) and queues is not None:
            known = {getattr(q, "id", q) for q in queues}
            expect(
                parsed.target_queue_id in known,
                f"rule '{parsed.id}': target queue '{parsed.target_queue_id}' does not exist in this pipeline",
                errors,
            )
        if parsed.condition_group.is_empty:
            warnings.append(f"rule '{parsed.id}': empty condition group matches every record")
    else:
        expect(len(parsed.actions) > 0, f"rule '{parsed.id}': at least one action is required", errors)
        for k, action in enumerate(parsed.actions):
            if action.type is ActionType.SET_METADATA:
                expect(
                    action.field is None or is_non_empty_str(action.field),
                    f"rule '{parsed.id}': actions[{k}] field must be a non-empty string",
                    errors,
                )
            if action.type in (ActionType.SET_PRIORITY, ActionType.ADJUST_PRIORITY, ActionType.SET_TIMEOUT):
                expect(
                    parse_typed(to_text(action.value), NUMERIC_FAMILY) is not None,
                    f"rule '{parsed.id}': actions[{k}] {action.type.value} requires a numeric value",
                    errors,
                )

    return ValidationReport.from_lists(errors, warnings)
