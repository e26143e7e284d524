# src/pipesync/core/hashing.py
"""
Hashing canônico do pipesync.

Este módulo implementa a geração de hash determinístico para estruturas
serializáveis, utilizado para:
    - identidade da configuração efetiva do controlador
    - fingerprint do grafo (prova de "grafo inalterado" após ecos de edição)

Política de hashing (v1):
    - Serialização JSON canônica
    - Ordenação estável de chaves
    - Separadores compactos
    - Codificação UTF-8
    - Algoritmo SHA-256

Invariantes:
    - Estruturas equivalentes produzem o mesmo hash
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres

Limites explícitos:
    - Não valida semântica do payload
    - Não persiste o hash
"""

import hashlib
import json
from typing import Any


def canonical_hash(payload: Any) -> str:
    """
    Gera um hash SHA-256 determinístico de um payload serializável.

    Args:
        payload (Any): Estrutura composta por dict/list/escalares JSON.

    Returns:
        str: Hash SHA-256 hexadecimal do payload.

    Raises:
        TypeError: Se o payload contiver valores não serializáveis em JSON.
    """
    canonical_json = json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
