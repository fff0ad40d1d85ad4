"""
Nexus Intake — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Nexus Intake.
Erros fazem parte do contrato operacional do núcleo e são devolvidos
ao serviço chamador (UI de configuração, agendador, transporte) como
dados, nunca como stack traces.

Um erro canônico é sempre:

- serializável
- identificado por um código estável
- acompanhado de detalhes estruturados
- acionável (hint para o operador)
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IntakeErrorPayload:
    """
    Payload canônico de erro do Nexus Intake.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    - decision_required: indica que o lote não pode prosseguir sem
      uma decisão explícita do operador (ex.: escolher o identificador primário)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Parsing
PARSE_FATAL = "PARSE_FATAL"
ROW_MALFORMED = "ROW_MALFORMED"

# Mapeamento por linha
ROW_REQUIRED_FIELD_MISSING = "ROW_REQUIRED_FIELD_MISSING"
ROW_DUPLICATE_ID = "ROW_DUPLICATE_ID"

# Configuração
MAPPING_INVALID = "MAPPING_INVALID"
RULE_INVALID = "RULE_INVALID"
QUEUE_REFERENCE_INVALID = "QUEUE_REFERENCE_INVALID"
PRIMARY_ID_DECISION_REQUIRED = "PRIMARY_ID_DECISION_REQUIRED"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def parse_fatal(
    *,
    reason: str,
    fmt: Optional[str] = None,
    step: Optional[str] = None,
    hint: str = "Verifique o formato declarado e as opções de leitura (delimitador, cabeçalho, linhas ignoradas).",
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=PARSE_FATAL,
        message="Lote ilegível: nenhuma linha de dados pôde ser extraída",
        details={"reason": reason, "format": fmt, "step": step},
        hint=hint,
        decision_required=False,
    )


def row_malformed(
    *,
    row_number: int,
    reason: str,
    raw: Optional[str] = None,
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=ROW_MALFORMED,
        message=reason,
        details={"row_number": row_number, "raw": raw},
        hint="Corrija a linha na origem ou ajuste delimitador/aspas.",
    )


def row_required_field_missing(
    *,
    row_number: int,
    source_field: str,
    target_field: str,
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=ROW_REQUIRED_FIELD_MISSING,
        message=f"Required field '{source_field}' is empty",
        details={
            "row_number": row_number,
            "source_field": source_field,
            "target_field": target_field,
        },
        hint="Preencha o campo na origem ou declare um valor padrão no mapeamento.",
    )


def row_duplicate_id(
    *,
    row_number: int,
    external_id: str,
    first_row_number: int,
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=ROW_DUPLICATE_ID,
        message=f"Duplicate primary id '{external_id}'",
        details={
            "row_number": row_number,
            "external_id": external_id,
            "first_row_number": first_row_number,
        },
    )


def mapping_invalid(
    *,
    errors: List[str],
    hint: str = "Ajuste o conjunto de mapeamentos antes de salvar a fonte.",
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=MAPPING_INVALID,
        message="Conjunto de mapeamentos inválido",
        details={"errors": list(errors)},
        hint=hint,
    )


def rule_invalid(
    *,
    rule_id: str,
    errors: List[str],
    hint: str = "Corrija campo, operador ou valor da condição antes de salvar a regra.",
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=RULE_INVALID,
        message=f"Regra de roteamento inválida: {rule_id}",
        details={"rule_id": rule_id, "errors": list(errors)},
        hint=hint,
    )


def primary_id_decision_required(
    *,
    candidates: List[str],
) -> IntakeErrorPayload:
    return IntakeErrorPayload(
        type=PRIMARY_ID_DECISION_REQUIRED,
        message="Nenhum identificador primário pôde ser sugerido",
        details={"candidates": list(candidates)},
        hint="Escolha manualmente o campo identificador primário e salve o mapeamento.",
        decision_required=True,
    )
