# src/nexus_intake/core/config/defaults.py
"""
Defaults embutidos e validação de settings do Nexus Intake.

Diferente de uma configuração de projeto carregada de disco, o núcleo de
ingestão precisa funcionar sem nenhum arquivo: os defaults abaixo são a
base canônica sobre a qual overrides (dict ou YAML) são aplicados via
deep-merge.

Chaves suportadas (v1):
    engine.fail_fast                   interrompe o DAG de Steps no primeiro FAILED
    inference.sample_size              linhas usadas para inferência (100)
    inference.type_threshold           fração mínima para atribuir um tipo (0.8)
    inference.id_uniqueness_ratio      distintos / não vazios para candidato a id (0.95)
    inference.id_completeness_ratio    não vazios / total para candidato a id (0.95)
    inference.id_min_distinct          distintos estritamente acima deste valor (10)
    inference.max_sample_values        tamanho do preview por campo (5)
    routing.workers                    threads de avaliação por registro (1 = serial)
    routing.include_diagnostics        anexa o trace por regra a cada outcome
    processing.duplicate_strategy      skip | fail | allow
    processing.max_records             0 = ilimitado
    steps.<step_id>.enabled            habilita/desabilita Steps do DAG

Invariantes:
    - `resolve_settings` nunca muta `DEFAULT_SETTINGS`
    - Toda configuração retornada passou por `validate_settings`
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .errors import InvalidConfigValueError
from .merge import deep_merge


DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {"fail_fast": True},
    "inference": {
        "sample_size": 100,
        "type_threshold": 0.8,
        "id_uniqueness_ratio": 0.95,
        "id_completeness_ratio": 0.95,
        "id_min_distinct": 10,
        "max_sample_values": 5,
    },
    "routing": {
        "workers": 1,
        "include_diagnostics": False,
    },
    "processing": {
        "duplicate_strategy": "skip",
        "max_records": 0,
    },
    "steps": {},
}

DUPLICATE_STRATEGIES = ("skip", "fail", "allow")


def _ratio(cfg: Dict[str, Any], section: str, key: str) -> None:
    value = cfg[section][key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigValueError(f"{section}.{key} must be a number")
    if not 0.0 < float(value) <= 1.0:
        raise InvalidConfigValueError(f"{section}.{key} must be in (0, 1]")


def _non_negative_int(cfg: Dict[str, Any], section: str, key: str, *, minimum: int = 0) -> None:
    value = cfg[section][key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigValueError(f"{section}.{key} must be an int")
    if value < minimum:
        raise InvalidConfigValueError(f"{section}.{key} must be >= {minimum}")


def validate_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Valida tipos e faixas da configuração resolvida e a devolve inalterada."""
    if not isinstance(config, dict):
        raise InvalidConfigValueError("settings must be a dict")

    for section in ("engine", "inference", "routing", "processing", "steps"):
        if not isinstance(config.get(section), dict):
            raise InvalidConfigValueError(f"{section} must be a mapping")

    if not isinstance(config["engine"].get("fail_fast"), bool):
        raise InvalidConfigValueError("engine.fail_fast must be a bool")

    _non_negative_int(config, "inference", "sample_size", minimum=1)
    _ratio(config, "inference", "type_threshold")
    _ratio(config, "inference", "id_uniqueness_ratio")
    _ratio(config, "inference", "id_completeness_ratio")
    _non_negative_int(config, "inference", "id_min_distinct")
    _non_negative_int(config, "inference", "max_sample_values")

    _non_negative_int(config, "routing", "workers", minimum=1)
    if not isinstance(config["routing"].get("include_diagnostics"), bool):
        raise InvalidConfigValueError("routing.include_diagnostics must be a bool")

    if config["processing"].get("duplicate_strategy") not in DUPLICATE_STRATEGIES:
        raise InvalidConfigValueError(
            "processing.duplicate_strategy must be one of: " + ", ".join(DUPLICATE_STRATEGIES)
        )
    _non_negative_int(config, "processing", "max_records")

    for step_id, step_cfg in config["steps"].items():
        if not isinstance(step_cfg, dict):
            raise InvalidConfigValueError(f"steps.{step_id} must be a mapping")
        enabled = step_cfg.get("enabled", True)
        if not isinstance(enabled, bool):
            raise InvalidConfigValueError(f"steps.{step_id}.enabled must be a bool")

    return config


def resolve_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva: `DEFAULT_SETTINGS` + overrides.

    Aceita `None` (somente defaults) ou um dicionário parcial. Retorna um
    novo dicionário já validado.

    Raises:
        ConfigTypeConflictError: conflito de tipos no merge.
        InvalidConfigValueError: valor fora da faixa permitida.
    """
    effective = deep_merge(DEFAULT_SETTINGS, dict(overrides or {}))
    return validate_settings(effective)
