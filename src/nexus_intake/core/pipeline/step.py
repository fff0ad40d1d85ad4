# src/nexus_intake/core/pipeline/step.py
"""
Contrato de Step.

Um Step é a menor unidade executável do processamento de um lote. Ele
lê e escreve exclusivamente via `BatchContext` e devolve um `StepResult`.
Conformidade é estrutural (`@runtime_checkable`), sem herança obrigatória.

Invariantes:
    - `id` é único no DAG de Steps
    - dependências são declaradas em `depends_on`
    - `run` é chamado no máximo uma vez por lote
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable, List

from .context import BatchContext
from .types import StepKind, StepResult


@runtime_checkable
class Step(Protocol):
    id: str
    kind: StepKind
    depends_on: List[str]

    def run(self, ctx: BatchContext) -> StepResult:
        """Executa a etapa uma única vez usando exclusivamente o BatchContext."""
        ...
