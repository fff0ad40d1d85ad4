# src/nexus_intake/core/pipeline/context.py
"""
Contexto de execução de um lote de ingestão.

O `BatchContext` é o único meio de troca de estado entre os Steps que
processam um lote (parse → mapping → routing → commit). Ele substitui os
caches globais reativos: cada chamada a `ingest` cria o seu contexto, e
nada sobrevive entre chamadas.

Responsabilidades:
    - identidade do lote (batch_id, created_at)
    - configuração resolvida (settings)
    - artifact store explícito (registros, outcomes, volumes)
    - log estruturado de eventos
    - warnings não fatais agrupados por Step

Invariantes:
    - eventos sempre incluem `batch_id`, `step_id`, `level` e timestamp UTC
    - warnings são associados explicitamente a um Step
    - o contexto é mutável apenas durante a execução do lote

Limites explícitos:
    - Não executa Steps
    - Não persiste nada
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class BatchContext:
    batch_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def new(cls, *, config: Dict[str, Any], meta: Optional[Dict[str, Any]] = None) -> "BatchContext":
        return cls(
            batch_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=config,
            meta=dict(meta or {}),
        )

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "batch_id": self.batch_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)

    def all_warnings(self) -> List[str]:
        return [w for ws in self.warnings.values() for w in ws]
