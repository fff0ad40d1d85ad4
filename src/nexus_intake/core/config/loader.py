# src/nexus_intake/core/config/loader.py
from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .defaults import DEFAULT_SETTINGS, validate_settings
from .merge import deep_merge
from .errors import (
    ConfigNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios; o conteúdo
    raiz precisa ser um mapa.

    Raises:
        ConfigNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise ConfigNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do núcleo de ingestão.

    Política de resolução (camadas, da menor para a maior prioridade):
        1. `DEFAULT_SETTINGS` embutidos
        2. `defaults_path` (opcional; se informado, precisa existir)
        3. `local_path` (opcional; ignorado quando o arquivo não existe)

    Cada camada é aplicada com `deep_merge`; o resultado final é validado
    por `validate_settings`.

    Raises:
        ConfigNotFoundError: Se `defaults_path` for informado e não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
        InvalidConfigValueError: Se algum valor estiver fora da faixa.
    """
    effective = DEFAULT_SETTINGS

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    # sem nenhum arquivo, ainda devolvemos uma cópia (defaults nunca são expostos)
    if effective is DEFAULT_SETTINGS:
        effective = deep_merge(DEFAULT_SETTINGS, {})

    return validate_settings(effective)
