# src/pipesync/core/config/merge.py
"""
Deep-merge de configuração do controlador de sincronização.

Resolve a configuração efetiva a partir dos defaults embutidos do
pipesync e de overrides explícitos (arquivo local ou dict do chamador).

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (ex.: `workflow.triggers`)
    - escalar → sobrescrita direta; int e float são intercambiáveis
    - conflito de tipos → `ConfigTypeConflictError`

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída

Limites explícitos:
    - Não carrega arquivos
    - Não valida semântica das chaves
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError

_NUMERIC = (int, float)


def _compatible(base_value: Any, override_value: Any) -> bool:
    if isinstance(base_value, bool) or isinstance(override_value, bool):
        return type(base_value) is type(override_value)
    if isinstance(base_value, _NUMERIC) and isinstance(override_value, _NUMERIC):
        return True
    return type(base_value) is type(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], *, _path: str = "") -> Dict[str, Any]:
    """
    Combina `override` sobre `base`, produzindo um novo dicionário.

    Args:
        base (Dict[str, Any]): Configuração base (defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se uma chave possuir tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        key_path = f"{_path}.{key}" if _path else str(key)

        if key not in result or result[key] is None:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, _path=key_path)
            continue

        if not _compatible(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key_path}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        # list e escalar -> sobrescrita
        result[key] = deepcopy(override_value)

    return result
