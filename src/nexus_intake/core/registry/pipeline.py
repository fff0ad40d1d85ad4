# src/nexus_intake/core/registry/pipeline.py
"""
Pipeline / Queue registry: invariantes de configuração.

Um Pipeline possui um schema (mapeamentos), filas e regras de roteamento.
Toda mutação é uma operação de "substituir e validar": recebe um Pipeline
imutável, produz um novo e valida o resultado inteiro antes de devolvê-lo.
Nenhum estado parcial é visível para quem chama.

Invariantes:
    - ids de fila e de regra são únicos no pipeline
    - capacidade de fila ≥ 0 (0 = ilimitada)
    - a fila de destino de toda regra pertence ao mesmo pipeline
    - toda condição referencia um campo do schema com operador legal
    - prioridades não precisam ser únicas (ordem é estável, ver rules)

Políticas (decisões explícitas):
    - remover uma fila ainda referenciada por regras é REJEITADO; o
      chamador precisa antes reapontar ou remover as regras
    - mudar o tipo de um campo REPARA automaticamente condições cujo
      operador deixou de ser legal (primeiro operador legal do novo tipo);
      a lista de reparos é devolvida ao chamador

Limites explícitos:
    - Não persiste nada (responsabilidade do storage de configuração)
    - Não serializa escritas concorrentes
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from nexus_intake.core.exceptions import ConfigurationError, InvalidMappingError, InvalidRuleError, QueueReferenceError
from nexus_intake.core.inference.types import FieldType, coerce_field_type
from nexus_intake.core.mapping.resolver import coerce_mappings, schema_from_mappings, validate_mapping
from nexus_intake.core.mapping.types import FieldMapping
from nexus_intake.core.rules.operators import SET_OPERATORS, default_operator, is_legal
from nexus_intake.core.rules.types import ConditionGroup, RoutingCondition, RoutingRule
from nexus_intake.core.rules.validation import coerce_rule, validate_rule
from nexus_intake.core.validation import is_non_empty_str


@dataclass(frozen=True)
class Queue:
    id: str
    name: str
    priority: int = 0
    required_skills: FrozenSet[str] = field(default_factory=frozenset)
    capacity: int = 0

    @property
    def unbounded(self) -> bool:
        return self.capacity == 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Queue":
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            priority=int(data.get("priority", 0)),
            required_skills=frozenset(data.get("required_skills") or ()),
            capacity=int(data.get("capacity", 0)),
        )


def coerce_queue(queue: Any, index: int = 0) -> Queue:
    """Aceita `Queue` ou dict; entradas malformadas viram `ConfigurationError` com o índice."""
    if isinstance(queue, Queue):
        return queue
    if not isinstance(queue, Mapping):
        raise ConfigurationError(
            message=f"queue[{index}]: expected a queue object, got {type(queue).__name__}",
            details={"index": index},
        )
    try:
        return Queue.from_dict(queue)
    except KeyError as exc:
        raise ConfigurationError(
            message=f"queue[{index}] is missing required key {exc}",
            details={"index": index, "queue_id": queue.get("id")},
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            message=f"queue[{index}]: {exc}",
            details={"index": index, "queue_id": queue.get("id")},
        ) from exc


@dataclass(frozen=True)
class Pipeline:
    id: str
    name: str
    schema: Tuple[FieldMapping, ...] = field(default_factory=tuple)
    queues: Tuple[Queue, ...] = field(default_factory=tuple)
    rules: Tuple[RoutingRule, ...] = field(default_factory=tuple)
    default_queue_id: Optional[str] = None

    def field_types(self):
        return schema_from_mappings(self.schema)

    def queue(self, queue_id: str) -> Queue:
        for q in self.queues:
            if q.id == queue_id:
                return q
        raise KeyError(queue_id)

    def rules_targeting(self, queue_id: str) -> List[str]:
        return [r.id for r in self.rules if r.target_queue_id == queue_id]


@dataclass(frozen=True)
class ConditionRepair:
    rule_id: str
    field: str
    old_operator: str
    new_operator: str
    old_value: Any
    new_value: Any


def _check_queue(queue: Queue) -> None:
    if not is_non_empty_str(queue.id):
        raise ConfigurationError(message="queue id must be a non-empty string", details={})
    if isinstance(queue.capacity, bool) or not isinstance(queue.capacity, int) or queue.capacity < 0:
        raise ConfigurationError(
            message=f"queue '{queue.id}': capacity must be an int >= 0 (0 = unbounded)",
            details={"queue_id": queue.id, "capacity": queue.capacity},
        )


def validate_pipeline(pipeline: Pipeline) -> Pipeline:
    """
    Verifica todas as invariantes do pipeline e o devolve inalterado.

    Raises:
        InvalidMappingError: schema inválido.
        ConfigurationError: fila inválida ou ids duplicados.
        InvalidRuleError: regra inválida contra o schema.
        QueueReferenceError: regra ou default apontando para fila inexistente.
    """
    if pipeline.schema:
        validate_mapping(pipeline.schema).raise_for(InvalidMappingError, pipeline_id=pipeline.id)

    seen = set()
    for q in pipeline.queues:
        _check_queue(q)
        if q.id in seen:
            raise ConfigurationError(
                message=f"duplicate queue id '{q.id}'",
                details={"pipeline_id": pipeline.id, "queue_id": q.id},
            )
        seen.add(q.id)

    if pipeline.default_queue_id is not None and pipeline.default_queue_id not in seen:
        raise QueueReferenceError(
            message=f"default queue '{pipeline.default_queue_id}' does not exist in this pipeline",
            details={"pipeline_id": pipeline.id, "queue_id": pipeline.default_queue_id},
        )

    rule_ids = set()
    types = pipeline.field_types()
    for rule in pipeline.rules:
        if rule.id in rule_ids:
            raise ConfigurationError(
                message=f"duplicate rule id '{rule.id}'",
                details={"pipeline_id": pipeline.id, "rule_id": rule.id},
            )
        rule_ids.add(rule.id)

        if rule.target_queue_id not in seen:
            raise QueueReferenceError(
                message=f"rule '{rule.id}' targets queue '{rule.target_queue_id}' which is not part of this pipeline",
                details={"pipeline_id": pipeline.id, "rule_id": rule.id, "queue_id": rule.target_queue_id},
                hint="Crie a fila neste pipeline ou aponte a regra para uma fila existente.",
            )
        validate_rule(types, rule).raise_for(InvalidRuleError, pipeline_id=pipeline.id, rule_id=rule.id)

    return pipeline


def create_pipeline(
    *,
    id: str,
    name: str,
    schema: Sequence[Any] = (),
    queues: Sequence[Any] = (),
    rules: Sequence[Any] = (),
    default_queue_id: Optional[str] = None,
) -> Pipeline:
    """Constrói e valida um Pipeline a partir de objetos ou dicts."""
    pipeline = Pipeline(
        id=id,
        name=name,
        schema=tuple(coerce_mappings(schema)),
        queues=tuple(coerce_queue(q, i) for i, q in enumerate(queues)),
        rules=tuple(coerce_rule(r) for r in rules),  # type: ignore[misc]
        default_queue_id=default_queue_id,
    )
    for r in pipeline.rules:
        if not isinstance(r, RoutingRule):
            raise InvalidRuleError(
                message=f"rule '{r.id}' is not a routing rule",
                details={"pipeline_id": id, "rule_id": r.id},
            )
    return validate_pipeline(pipeline)


# ---------------------------------------------------------------------------
# Filas
# ---------------------------------------------------------------------------

def add_queue(pipeline: Pipeline, queue: Queue) -> Pipeline:
    return validate_pipeline(replace(pipeline, queues=pipeline.queues + (queue,)))


def replace_queue(pipeline: Pipeline, queue: Queue) -> Pipeline:
    pipeline.queue(queue.id)
    queues = tuple(queue if q.id == queue.id else q for q in pipeline.queues)
    return validate_pipeline(replace(pipeline, queues=queues))


def delete_queue(pipeline: Pipeline, queue_id: str) -> Pipeline:
    """
    Remove uma fila.

    Raises:
        KeyError: fila inexistente.
        QueueReferenceError: a fila ainda é destino de regras (ou é o default).
    """
    pipeline.queue(queue_id)
    dependents = pipeline.rules_targeting(queue_id)
    if dependents:
        raise QueueReferenceError(
            message=f"Queue is used by {len(dependents)} routing rule(s). Update rules first.",
            details={"pipeline_id": pipeline.id, "queue_id": queue_id, "rule_ids": dependents},
            hint="Reaponte ou remova as regras listadas antes de remover a fila.",
        )
    if pipeline.default_queue_id == queue_id:
        raise QueueReferenceError(
            message="Queue is the pipeline default queue. Change the default first.",
            details={"pipeline_id": pipeline.id, "queue_id": queue_id},
        )
    queues = tuple(q for q in pipeline.queues if q.id != queue_id)
    return validate_pipeline(replace(pipeline, queues=queues))


def set_default_queue(pipeline: Pipeline, queue_id: Optional[str]) -> Pipeline:
    return validate_pipeline(replace(pipeline, default_queue_id=queue_id))


# ---------------------------------------------------------------------------
# Regras
# ---------------------------------------------------------------------------

def add_rule(pipeline: Pipeline, rule: RoutingRule) -> Pipeline:
    return validate_pipeline(replace(pipeline, rules=pipeline.rules + (rule,)))


def replace_rule(pipeline: Pipeline, rule: RoutingRule) -> Pipeline:
    """Substitui a regra de mesmo id mantendo sua posição (relevante para empates de prioridade)."""
    if rule.id not in {r.id for r in pipeline.rules}:
        raise KeyError(rule.id)
    rules = tuple(rule if r.id == rule.id else r for r in pipeline.rules)
    return validate_pipeline(replace(pipeline, rules=rules))


def delete_rule(pipeline: Pipeline, rule_id: str) -> Pipeline:
    if rule_id not in {r.id for r in pipeline.rules}:
        raise KeyError(rule_id)
    return validate_pipeline(replace(pipeline, rules=tuple(r for r in pipeline.rules if r.id != rule_id)))


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

def replace_schema(pipeline: Pipeline, schema: Sequence[Any]) -> Pipeline:
    """Substitui o schema inteiro; rejeita se alguma regra ficar sem campo ou com operador ilegal."""
    return validate_pipeline(replace(pipeline, schema=tuple(coerce_mappings(schema))))


def _repair_condition(
    condition: RoutingCondition,
    field_name: str,
    new_type: FieldType,
) -> Tuple[RoutingCondition, Optional[Tuple[Any, Any, Any]]]:
    if condition.field != field_name or is_legal(new_type, condition.operator):
        return condition, None

    new_op = default_operator(new_type)
    value = condition.value
    if condition.operator in SET_OPERATORS and new_op not in SET_OPERATORS:
        value = value[0] if isinstance(value, (list, tuple)) and value else None
    repaired = replace(condition, operator=new_op, value=value)
    return repaired, (condition.operator.value, new_op.value, value)


def _repair_group(
    group: ConditionGroup,
    rule_id: str,
    field_name: str,
    new_type: FieldType,
    repairs: List[ConditionRepair],
) -> ConditionGroup:
    conditions = []
    for c in group.conditions:
        repaired, change = _repair_condition(c, field_name, new_type)
        if change is not None:
            repairs.append(
                ConditionRepair(
                    rule_id=rule_id,
                    field=field_name,
                    old_operator=change[0],
                    new_operator=change[1],
                    old_value=c.value,
                    new_value=change[2],
                )
            )
        conditions.append(repaired)
    groups = tuple(_repair_group(g, rule_id, field_name, new_type, repairs) for g in group.groups)
    return replace(group, conditions=tuple(conditions), groups=groups)


def change_field_type(
    pipeline: Pipeline,
    field_name: str,
    new_type: Any,
) -> Tuple[Pipeline, List[ConditionRepair]]:
    """
    Muda o tipo declarado de um campo do schema.

    Condições sobre o campo cujo operador deixa de ser legal são reparadas
    para o primeiro operador legal do novo tipo; saindo de in/not_in, a
    lista vira seu primeiro elemento.

    Returns:
        (novo pipeline validado, lista de reparos aplicados)

    Raises:
        ConfigurationError: campo inexistente no schema ou tipo desconhecido.
    """
    try:
        target_type = coerce_field_type(new_type)
    except ValueError:
        raise ConfigurationError(
            message=f"unknown field type '{new_type}'",
            details={"pipeline_id": pipeline.id, "field": field_name},
        ) from None

    if field_name not in {m.source_field for m in pipeline.schema}:
        raise ConfigurationError(
            message=f"field '{field_name}' is not part of the pipeline schema",
            details={"pipeline_id": pipeline.id, "field": field_name},
        )

    schema = tuple(
        replace(m, detected_type=target_type) if m.source_field == field_name else m
        for m in pipeline.schema
    )

    repairs: List[ConditionRepair] = []
    rules = tuple(
        replace(r, condition_group=_repair_group(r.condition_group, r.id, field_name, target_type, repairs))
        for r in pipeline.rules
    )

    return validate_pipeline(replace(pipeline, schema=schema, rules=rules)), repairs
