# src/nexus_intake/core/rules/evaluator.py
"""
Avaliador genérico de regras ordenadas.

Regras de roteamento e regras de ação ("logic builder") usam o mesmo
algoritmo:

    1. ordenar as regras pela chave (prioridade / order), de forma estável:
       empates preservam a posição original na lista
    2. pular regras desabilitadas
    3. avaliar o grupo de condições de cada regra, em ordem
    4. entregar cada regra que casa a uma estratégia de resultado, que
       decide se a avaliação termina

Estratégias:
    - `FirstMatch`: a primeira regra que casa define a fila (roteamento)
    - `CollectActions`: acumula ações até uma regra com `stop_processing`

O avaliador é uma função pura: não guarda estado entre chamadas; cada
avaliação cria sua própria instância de estratégia.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

from nexus_intake.core.inference.types import FieldType

from .conditions import evaluate_group
from .types import (
    ActionPlan,
    ActionRule,
    ActionType,
    RoutingDecision,
    RoutingRule,
    RuleAction,
    RuleTrace,
)


R = TypeVar("R")
O = TypeVar("O", covariant=True)


class OutcomeStrategy(Protocol[O]):
    def accept(self, rule: Any) -> bool:
        """Recebe uma regra que casou; retorna True para encerrar a avaliação."""
        ...

    def result(self, traces: Tuple[RuleTrace, ...]) -> O:
        ...


def evaluate_ordered(
    values: Mapping[str, str],
    rules: Sequence[R],
    schema: Mapping[str, FieldType],
    strategy: OutcomeStrategy[O],
    *,
    sort_key: Callable[[R], int],
) -> O:
    traces: List[RuleTrace] = []

    # sorted() é estável: mesma prioridade → ordem da lista
    for rule in sorted(rules, key=sort_key):
        rule_id = getattr(rule, "id")
        if not getattr(rule, "enabled", True):
            traces.append(RuleTrace(rule_id=rule_id, matched=False, skipped="disabled"))
            continue

        matched, condition_traces = evaluate_group(rule.condition_group, values, schema)  # type: ignore[attr-defined]
        traces.append(RuleTrace(rule_id=rule_id, matched=matched, conditions=tuple(condition_traces)))
        if matched and strategy.accept(rule):
            break

    return strategy.result(tuple(traces))


class FirstMatch:
    def __init__(self) -> None:
        self.rule: Optional[RoutingRule] = None

    def accept(self, rule: RoutingRule) -> bool:
        self.rule = rule
        return True

    def result(self, traces: Tuple[RuleTrace, ...]) -> RoutingDecision:
        if self.rule is None:
            return RoutingDecision(rule_id=None, queue_id=None, traces=traces)
        return RoutingDecision(rule_id=self.rule.id, queue_id=self.rule.target_queue_id, traces=traces)


class CollectActions:
    def __init__(self) -> None:
        self.rule_ids: List[str] = []
        self.actions: List[RuleAction] = []
        self.stopped_by: Optional[str] = None

    def accept(self, rule: ActionRule) -> bool:
        self.rule_ids.append(rule.id)
        self.actions.extend(a for a in rule.actions if a.type is not ActionType.STOP_PROCESSING)
        if rule.stops_processing:
            self.stopped_by = rule.id
            return True
        return False

    def result(self, traces: Tuple[RuleTrace, ...]) -> ActionPlan:
        return ActionPlan(
            rule_ids=tuple(self.rule_ids),
            actions=tuple(self.actions),
            stopped_by=self.stopped_by,
            traces=traces,
        )


def evaluate(
    values: Mapping[str, str],
    rules: Sequence[RoutingRule],
    schema: Optional[Mapping[str, FieldType]] = None,
    *,
    default_queue_id: Optional[str] = None,
    with_trace: bool = False,
) -> RoutingDecision:
    """
    Determina a fila de destino de um registro.

    Regras em ordem crescente de prioridade; empate → a que aparece antes
    na lista vence. Nenhuma regra casa → não roteado (`queue_id=None`),
    ou `default_queue_id` quando configurado.
    """
    decision = evaluate_ordered(values, rules, schema or {}, FirstMatch(), sort_key=lambda r: r.priority)
    if not decision.routed and default_queue_id is not None:
        decision = RoutingDecision(
            rule_id=None,
            queue_id=default_queue_id,
            traces=decision.traces,
            used_default=True,
        )
    if not with_trace:
        decision = RoutingDecision(
            rule_id=decision.rule_id,
            queue_id=decision.queue_id,
            used_default=decision.used_default,
        )
    return decision


def evaluate_actions(
    values: Mapping[str, str],
    rules: Sequence[ActionRule],
    schema: Optional[Mapping[str, FieldType]] = None,
) -> ActionPlan:
    """Acumula as ações das regras que casam, em ordem, até `stop_processing`."""
    return evaluate_ordered(values, rules, schema or {}, CollectActions(), sort_key=lambda r: r.order)


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def apply_actions(task: Mapping[str, Any], actions: Sequence[RuleAction]) -> Dict[str, Any]:
    """
    Aplica ações a uma tarefa (dict) e devolve uma nova tarefa.

    `adjust_priority` é limitado a 0..10; `set_metadata` sem `field` usa a
    chave "custom".
    """
    out: Dict[str, Any] = dict(task)
    out["skills"] = list(task.get("skills") or [])
    out["metadata"] = dict(task.get("metadata") or {})

    for action in actions:
        if action.type is ActionType.SET_PRIORITY:
            out["priority"] = _to_int(action.value)
        elif action.type is ActionType.ADJUST_PRIORITY:
            current = _to_int(out.get("priority"), 0)
            out["priority"] = max(0, min(10, current + _to_int(action.value)))
        elif action.type is ActionType.SET_QUEUE:
            out["queue"] = str(action.value)
        elif action.type is ActionType.ADD_SKILL:
            out["skills"] = out["skills"] + [str(action.value)]
        elif action.type is ActionType.REMOVE_SKILL:
            out["skills"] = [s for s in out["skills"] if s != str(action.value)]
        elif action.type is ActionType.SET_METADATA:
            out["metadata"][action.field or "custom"] = str(action.value)
        elif action.type is ActionType.SET_TIMEOUT:
            out["reservation_timeout"] = _to_int(action.value)
    return out
