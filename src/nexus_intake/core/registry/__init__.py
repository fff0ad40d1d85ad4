"""Registry de Pipeline/Queue: operações de substituir-e-validar sobre configuração imutável."""

from .pipeline import (
    ConditionRepair,
    Pipeline,
    Queue,
    add_queue,
    add_rule,
    change_field_type,
    coerce_queue,
    create_pipeline,
    delete_queue,
    delete_rule,
    replace_queue,
    replace_rule,
    replace_schema,
    set_default_queue,
    validate_pipeline,
)

__all__ = [
    "ConditionRepair",
    "Pipeline",
    "Queue",
    "add_queue",
    "add_rule",
    "change_field_type",
    "coerce_queue",
    "create_pipeline",
    "delete_queue",
    "delete_rule",
    "replace_queue",
    "replace_rule",
    "replace_schema",
    "set_default_queue",
    "validate_pipeline",
]
