# src/nexus_intake/core/config/merge.py
from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge determinístico entre dois dicionários de configuração.

    Política de merge (v1):
        - dict + dict → merge recursivo por chave
        - list        → sobrescrita total
        - int ↔ float → aceito (ambos numéricos; bool não conta como número)
        - escalar     → sobrescrita direta pelo override
        - conflito de tipos → ConfigTypeConflictError

    Os inputs nunca são mutados; o retorno é sempre um novo dicionário.
    """

    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        if key not in result:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value)
            continue

        if isinstance(override_value, list):
            result[key] = deepcopy(override_value)
            continue

        if _is_number(base_value) and _is_number(override_value):
            result[key] = override_value
            continue

        if type(base_value) is not type(override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result
