"""
Rule Evaluation Engine.

Um único avaliador de regras ordenadas (`evaluate_ordered`) especializado
por estratégia de resultado: fila de destino (`evaluate`) ou lista de
ações (`evaluate_actions`).
"""

from .conditions import evaluate_condition, evaluate_group
from .evaluator import (
    CollectActions,
    FirstMatch,
    OutcomeStrategy,
    apply_actions,
    evaluate,
    evaluate_actions,
    evaluate_ordered,
)
from .operators import (
    OPERATORS_BY_FAMILY,
    SET_OPERATORS,
    Operator,
    default_operator,
    is_legal,
    legal_operators,
    type_family,
)
from .types import (
    ActionPlan,
    ActionRule,
    ActionType,
    ConditionGroup,
    ConditionTrace,
    Logic,
    RoutingCondition,
    RoutingDecision,
    RoutingRule,
    RuleAction,
    RuleTrace,
)
from .validation import coerce_rule, coerce_rules, coerce_schema, validate_rule

__all__ = [
    "ActionPlan",
    "ActionRule",
    "ActionType",
    "CollectActions",
    "ConditionGroup",
    "ConditionTrace",
    "FirstMatch",
    "Logic",
    "OPERATORS_BY_FAMILY",
    "Operator",
    "OutcomeStrategy",
    "RoutingCondition",
    "RoutingDecision",
    "RoutingRule",
    "RuleAction",
    "RuleTrace",
    "SET_OPERATORS",
    "apply_actions",
    "coerce_rule",
    "coerce_rules",
    "coerce_schema",
    "default_operator",
    "evaluate",
    "evaluate_actions",
    "evaluate_condition",
    "evaluate_group",
    "evaluate_ordered",
    "is_legal",
    "legal_operators",
    "type_family",
    "validate_rule",
]
