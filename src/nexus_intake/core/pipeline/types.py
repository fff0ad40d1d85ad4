# src/nexus_intake/core/pipeline/types.py
"""
Tipos canônicos dos Steps de processamento de lote.

    - StepKind   → classificação semântica do Step
    - StepStatus → estado final (SUCCESS, SKIPPED, FAILED)
    - StepResult → resultado imutável de um Step

Os valores dos enums são strings estáveis, usados diretamente nos
eventos e no `BatchResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StepKind(str, Enum):
    PARSE = "parse"
    INFERENCE = "inference"
    MAPPING = "mapping"
    ROUTING = "routing"
    COMMIT = "commit"


class StepStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um Step.

    Campos:
        - step_id: identificador único do Step
        - kind: tipo semântico do Step
        - status: estado final da execução
        - summary: resumo textual
        - metrics: contagens produzidas pelo Step
        - warnings: avisos não fatais
        - payload: dados adicionais (ex.: `error` quando FAILED)
    """
    step_id: str
    kind: StepKind
    status: StepStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "kind": self.kind.value,
            "status": self.status.value,
            "summary": self.summary,
            "metrics": dict(self.metrics),
            "warnings": list(self.warnings),
            "payload": dict(self.payload),
        }
