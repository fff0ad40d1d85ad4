# src/nexus_intake/core/config/errors.py
"""
Exceções da camada de configuração do Nexus Intake.

Representam violações estruturais de configuração (arquivo ausente,
formato desconhecido, raiz que não é mapa, conflito de tipos no merge,
valor fora da faixa). Todas herdam de `ConfigError` para permitir
captura genérica pelo serviço chamador.
"""


class ConfigError(Exception):
    """
    Exceção base da camada de configuração.

    Todas as falhas estruturais ocorridas durante carregamento, merge
    e validação de configuração herdam desta classe.

    Limites explícitos:
        - Não representa erro de domínio (mapeamento, regra, fila)
        - Não representa erro de execução de lote
    """


class ConfigNotFoundError(ConfigError):
    """
    Arquivo de configuração explicitamente informado não existe.

    Diferente de um override local opcional: se o chamador aponta um
    caminho, ele precisa existir.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada pelo loader.

    Formatos aceitos:
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    O conteúdo raiz da configuração não é um dicionário (`dict`).

    Listas ou escalares no root são rejeitados sem normalização.
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos entre base e override durante o deep-merge.

    Exemplo:
        - base:     {"routing": {"workers": 1}}
        - override: {"routing": "parallel"}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class InvalidConfigValueError(ConfigError):
    """Valor com tipo correto no merge, mas fora da faixa ou do domínio permitido."""
