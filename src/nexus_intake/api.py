# src/nexus_intake/api.py
"""
Superfície pública do núcleo de ingestão.

Quatro operações, todas puras em relação ao chamador (nenhum estado
compartilhado entre chamadas):

    - infer_schema:     amostra do lote → campos detectados + id sugerido
    - validate_mapping: conjunto de mapeamentos → ValidationReport
    - validate_rule:    regra contra o schema do pipeline → ValidationReport
    - ingest:           lote + configuração → BatchResult

Transporte, persistência e UI ficam fora do núcleo: o serviço chamador
serializa `BatchResult.to_dict()` / `ValidationReport.to_dict()` como
preferir.
"""

from nexus_intake.core.ingestion import infer_schema, ingest
from nexus_intake.core.mapping import validate_mapping
from nexus_intake.core.rules.validation import validate_rule

__all__ = ["infer_schema", "ingest", "validate_mapping", "validate_rule"]
