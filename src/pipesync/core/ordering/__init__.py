# src/pipesync/core/ordering/__init__.py
"""
Ordenação do grafo de pipeline.

Componentes principais:
    - dependency_closure → arestas de entrada por nó (texto estruturado)
    - linearize          → prefixo linear a partir do início (script/workflow)
    - chain_edges        → sequência de nós → cadeia de arestas

Limites explícitos:
    - Não gera texto
    - Não muta o grafo
"""

from .planner import (
    TRUNCATED_BRANCH,
    TRUNCATED_CYCLE,
    TRUNCATED_UNREACHABLE,
    Linearization,
    chain_edges,
    dependency_closure,
    linearize,
)

__all__ = [
    "TRUNCATED_BRANCH",
    "TRUNCATED_CYCLE",
    "TRUNCATED_UNREACHABLE",
    "Linearization",
    "chain_edges",
    "dependency_closure",
    "linearize",
]
