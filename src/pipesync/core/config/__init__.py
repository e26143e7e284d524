# src/pipesync/core/config/__init__.py

"""
Camada de configuração do pipesync.

Este pacote carrega, mescla e valida estruturalmente a configuração
consumida pelos codecs (imagem default, preâmbulo de script, cabeçalho de
workflow) e pelo controlador (layout de novos nós).

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Overrides são sempre explícitos
    - A mesma entrada sempre produz a mesma configuração final

Limites explícitos:
    - Não valida semântica das chaves
    - Não interage com o grafo diretamente
"""

from .defaults import DEFAULT_SYNC_CONFIG
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .loader import load_config, resolve_sync_config
from .merge import deep_merge

__all__ = [
    "DEFAULT_SYNC_CONFIG",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "load_config",
    "resolve_sync_config",
    "deep_merge",
]
