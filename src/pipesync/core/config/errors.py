# src/pipesync/core/config/errors.py
"""
Exceções da camada de configuração do pipesync.

Diferente dos avisos de sincronização (`core.errors.SyncIssue`), erros de
configuração são falhas fatais: acontecem antes de o controlador existir
e indicam uma instalação ou override inválido.

Invariantes:
    - Todas as exceções herdam de `ConfigError`
    - Nenhuma exceção representa erro de parsing de texto do usuário
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do pipesync.

    Permite captura genérica de falhas de carregamento e merge,
    distinguindo-as de erros de invariantes do grafo.
    """


class DefaultsNotFoundError(ConfigError):
    """Arquivo de configuração base informado explicitamente não existe."""


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo de configuração não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo de configuração não é um mapa."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"layout": {"spacing_y": 150}}
        - override: {"layout": "compact"}
    """
