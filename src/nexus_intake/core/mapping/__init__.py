"""Field Mapping Resolver: geração, reconciliação, validação e aplicação de mapeamentos."""

from .resolver import (
    apply_mapping,
    coerce_mappings,
    generate_mappings,
    normalize_name,
    reconcile,
    schema_from_mappings,
    validate_mapping,
)
from .types import (
    METADATA_PREFIX,
    TARGET_ATTRIBUTES,
    FieldMapping,
    MappedRecord,
    Reconciliation,
    Transform,
)

__all__ = [
    "METADATA_PREFIX",
    "TARGET_ATTRIBUTES",
    "FieldMapping",
    "MappedRecord",
    "Reconciliation",
    "Transform",
    "apply_mapping",
    "coerce_mappings",
    "generate_mappings",
    "normalize_name",
    "reconcile",
    "schema_from_mappings",
    "validate_mapping",
]
