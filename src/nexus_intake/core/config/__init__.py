# src/nexus_intake/core/config/__init__.py

"""
Camada de configuração do Nexus Intake.

Este pacote resolve as configurações de execução do núcleo de ingestão:
limiares de inferência, paralelismo de roteamento, política de duplicados
e habilitação de Steps.

A configuração é:
    - declarativa (dict puro, carregável de YAML/JSON)
    - determinística (mesma entrada → mesma configuração e mesmo hash)
    - separada da configuração de domínio (mapeamentos, regras, filas)

Responsabilidades do pacote:
    - Defaults embutidos (`DEFAULT_SETTINGS`)
    - Carregamento de arquivos de override via PyYAML
    - Deep-merge determinístico
    - Validação de tipos e faixas
    - Hash canônico para rastreabilidade do lote

Limites explícitos:
    - Não valida mapeamentos nem regras (ver `core.mapping` e `core.rules`)
    - Não persiste configuração
"""

from .errors import (
    ConfigError,
    ConfigNotFoundError,
    ConfigTypeConflictError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .defaults import DEFAULT_SETTINGS, resolve_settings, validate_settings
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigTypeConflictError",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "DEFAULT_SETTINGS",
    "compute_config_hash",
    "deep_merge",
    "load_config",
    "resolve_settings",
    "validate_settings",
]
