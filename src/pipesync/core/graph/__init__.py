# src/pipesync/core/graph/__init__.py
"""
# Graph Core — pipesync

Este pacote define o **modelo canônico** do pipeline: nós, arestas e o
contêiner `PipelineGraph` possuído pelo controlador de sincronização.

## Componentes

- **types**
  - `NodeKind`: vocabulário fechado de papéis de nós
  - `Position`: coordenada visual
  - `PipelineNode` / `PipelineEdge`: estruturas imutáveis

- **model**
  - `PipelineGraph`: índice por id, ordem de inserção, acessores
  - `GraphInvariantError` e subclasses: erros de programação

## Limites Explícitos

- Não faz parsing nem geração de texto
- Não decide ordem de execução
"""

from .model import (
    DanglingEdgeError,
    DuplicateEdgeIdError,
    DuplicateNodeIdError,
    GraphInvariantError,
    PipelineGraph,
)
from .types import ECOSYSTEMS, NodeKind, PipelineEdge, PipelineNode, Position, default_display_name

__all__ = [
    "ECOSYSTEMS",
    "NodeKind",
    "PipelineEdge",
    "PipelineNode",
    "Position",
    "default_display_name",
    "PipelineGraph",
    "GraphInvariantError",
    "DuplicateNodeIdError",
    "DuplicateEdgeIdError",
    "DanglingEdgeError",
]
