from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class IntakeException(Exception):
    """Base class para exceções internas do Nexus Intake.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Lote
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FatalParseError(IntakeException):
    """Arquivo vazio ou estrutura ilegível: aborta o lote inteiro."""


@dataclass(frozen=True)
class RowError(IntakeException):
    """Falha restrita a uma linha (malformada ou campo obrigatório vazio).

    Nunca aborta o lote: a linha é excluída do roteamento e contabilizada
    como falha. `row_number` é o índice 1-based da linha de dados.
    """

    row_number: int = 0
    field: Optional[str] = None

    @property
    def reason(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigurationError(IntakeException):
    """Configuração inválida detectada no momento de salvar (antes de qualquer lote)."""


@dataclass(frozen=True)
class InvalidMappingError(ConfigurationError):
    """Conjunto de mapeamentos viola as invariantes de validação."""


@dataclass(frozen=True)
class InvalidRuleError(ConfigurationError):
    """Regra referencia campo desconhecido, operador ilegal ou valor inválido."""


@dataclass(frozen=True)
class QueueReferenceError(ConfigurationError):
    """Regra aponta para fila inexistente, ou fila removida ainda é referenciada."""
