# src/nexus_intake/core/validation.py
"""
Relatório de validação de configuração (mapeamentos, regras).

Validadores de configuração nunca levantam exceção para entrada ruim:
acumulam mensagens e devolvem um `ValidationReport`. Quem precisa
bloquear (registry, orquestrador) converte o relatório em
`ConfigurationError` via `raise_for`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    errors: Tuple[str, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_lists(cls, errors: List[str], warnings: List[str]) -> "ValidationReport":
        return cls(ok=not errors, errors=tuple(errors), warnings=tuple(warnings))

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "errors": list(self.errors), "warnings": list(self.warnings)}

    def raise_for(self, exc_factory: Callable[..., Exception], **details: Any) -> None:
        """Levanta a exceção de configuração indicada quando o relatório não está ok."""
        if self.ok:
            return
        raise exc_factory(
            message="; ".join(self.errors),
            details={"errors": list(self.errors), **details},
        )


def expect(cond: bool, msg: str, errors: List[str]) -> bool:
    if not cond:
        errors.append(msg)
    return cond


def is_non_empty_str(x: Any) -> bool:
    return isinstance(x, str) and x.strip() != ""
