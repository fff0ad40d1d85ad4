# src/nexus_intake/core/rules/types.py
"""
Tipos de regra: condições, grupos, regras de roteamento e regras de ação.

As duas famílias de regra (roteamento para fila e "logic builder" com
ações) compartilham `RoutingCondition` e `ConditionGroup`; diferem apenas
na chave de ordenação e no resultado produzido (ver `evaluator`).

Todas as estruturas são imutáveis. `from_dict` aceita a forma serializada
(YAML/JSON) e levanta ValueError/TypeError em dado estruturalmente inválido;
a validação semântica (campo conhecido, operador legal) fica em
`rules.validation`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .operators import SET_OPERATORS, Operator


class Logic(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class RoutingCondition:
    field: str
    operator: Operator
    value: Any = None
    negate: bool = False
    case_sensitive: bool = True

    @property
    def is_set_operator(self) -> bool:
        return self.operator in SET_OPERATORS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoutingCondition":
        value = data.get("value")
        if isinstance(value, list):
            value = tuple(value)
        return cls(
            field=data["field"],
            operator=Operator(data["operator"]),
            value=value,
            negate=bool(data.get("negate", False)),
            case_sensitive=bool(data.get("case_sensitive", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {
            "field": self.field,
            "operator": self.operator.value,
            "value": value,
            "negate": self.negate,
            "case_sensitive": self.case_sensitive,
        }


@dataclass(frozen=True)
class ConditionGroup:
    """Combinação AND/OR de condições e subgrupos. Grupo vazio é verdadeiro (catch-all)."""

    logic: Logic = Logic.AND
    conditions: Tuple[RoutingCondition, ...] = field(default_factory=tuple)
    groups: Tuple["ConditionGroup", ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.conditions and not self.groups

    def iter_conditions(self):
        """Todas as condições, incluindo as de subgrupos, em profundidade."""
        for c in self.conditions:
            yield c
        for g in self.groups:
            yield from g.iter_conditions()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ConditionGroup":
        if data is None:
            return cls()
        return cls(
            logic=Logic(str(data.get("logic", "AND")).upper()),
            conditions=tuple(RoutingCondition.from_dict(c) for c in data.get("conditions") or []),
            groups=tuple(cls.from_dict(g) for g in data.get("groups") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logic": self.logic.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "groups": [g.to_dict() for g in self.groups],
        }


@dataclass(frozen=True)
class RoutingRule:
    id: str
    name: str
    priority: int
    condition_group: ConditionGroup
    target_queue_id: str
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RoutingRule":
        priority = data.get("priority", 0)
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise TypeError("priority must be an int")
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            priority=priority,
            condition_group=ConditionGroup.from_dict(data.get("condition_group")),
            target_queue_id=data["target_queue_id"],
            enabled=bool(data.get("enabled", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
            "condition_group": self.condition_group.to_dict(),
            "target_queue_id": self.target_queue_id,
            "enabled": self.enabled,
        }


class ActionType(str, Enum):
    SET_PRIORITY = "set_priority"
    ADJUST_PRIORITY = "adjust_priority"
    SET_QUEUE = "set_queue"
    ADD_SKILL = "add_skill"
    REMOVE_SKILL = "remove_skill"
    SET_METADATA = "set_metadata"
    SET_TIMEOUT = "set_timeout"
    STOP_PROCESSING = "stop_processing"


@dataclass(frozen=True)
class RuleAction:
    type: ActionType
    value: Any = None
    field: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleAction":
        return cls(type=ActionType(data["type"]), value=data.get("value"), field=data.get("field"))


@dataclass(frozen=True)
class ActionRule:
    """Regra do "logic builder": condições → lista de ações, avaliada por `order`."""

    id: str
    name: str
    order: int
    condition_group: ConditionGroup
    actions: Tuple[RuleAction, ...]
    enabled: bool = True

    @property
    def stops_processing(self) -> bool:
        return any(a.type is ActionType.STOP_PROCESSING for a in self.actions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActionRule":
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            order=int(data.get("order", 0)),
            condition_group=ConditionGroup.from_dict(data.get("condition_group")),
            actions=tuple(RuleAction.from_dict(a) for a in data.get("actions") or []),
            enabled=bool(data.get("enabled", True)),
        )


# ---------------------------------------------------------------------------
# Resultado da avaliação
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConditionTrace:
    field: str
    operator: str
    expected: Any
    actual: str
    matched: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class RuleTrace:
    rule_id: str
    matched: bool
    conditions: Tuple[ConditionTrace, ...] = field(default_factory=tuple)
    skipped: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "matched": self.matched,
            "skipped": self.skipped,
            "conditions": [
                {
                    "field": c.field,
                    "operator": c.operator,
                    "expected": list(c.expected) if isinstance(c.expected, tuple) else c.expected,
                    "actual": c.actual,
                    "matched": c.matched,
                    "reason": c.reason,
                }
                for c in self.conditions
            ],
        }


@dataclass(frozen=True)
class RoutingDecision:
    """Resultado do roteamento de um registro. `queue_id=None` significa não roteado (não é erro)."""

    rule_id: Optional[str]
    queue_id: Optional[str]
    traces: Tuple[RuleTrace, ...] = field(default_factory=tuple)
    used_default: bool = False

    @property
    def routed(self) -> bool:
        return self.queue_id is not None


@dataclass(frozen=True)
class ActionPlan:
    rule_ids: Tuple[str, ...]
    actions: Tuple[RuleAction, ...]
    stopped_by: Optional[str] = None
    traces: Tuple[RuleTrace, ...] = field(default_factory=tuple)


def traces_to_dicts(traces: Tuple[RuleTrace, ...]) -> List[Dict[str, Any]]:
    return [t.to_dict() for t in traces]
