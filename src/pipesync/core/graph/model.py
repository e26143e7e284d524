# src/pipesync/core/graph/model.py
"""
Modelo canônico do grafo de pipeline.

Este módulo define o `PipelineGraph`, o contêiner em memória de nós e
arestas possuído exclusivamente pelo controlador de sincronização.

O grafo atua como uma camada de proteção estrutural, garantindo que:
    - cada nó possua um identificador válido e único
    - cada aresta referencie nós existentes
    - a ordem de inserção seja preservada para geração reprodutível

Decisões arquiteturais:
    - Lookup por id é O(1) (índice por dicionário)
    - A iteração segue a ordem de inserção
    - Violações estruturais são erros de programação, levantados na construção
    - Duplicidade de pares (source, target) NÃO é rejeitada aqui; isso é
      responsabilidade do código de construção (codecs e controlador)

Invariantes:
    - Ids de nós são únicos
    - Nenhuma aresta pendente (dangling) existe no grafo
    - Nenhum efeito colateral além das próprias coleções

Limites explícitos:
    - Não ordena nem lineariza (ver `core.ordering.planner`)
    - Não faz parsing nem geração de texto
    - Não registra eventos no journal

Este módulo existe para garantir integridade estrutural e
determinismo na representação do pipeline.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pipesync.core.hashing import canonical_hash

from .types import NodeKind, PipelineEdge, PipelineNode


class GraphInvariantError(ValueError):
    """
    Exceção base para violações de invariantes do grafo.

    Representa um erro de programação (ex.: parser atribuindo id duplicado),
    distinto dos avisos recuperáveis voltados ao usuário.

    Limites explícitos:
        - Nunca é capturada pelo controlador
        - Não representa erro de parsing de texto do usuário
    """


class DuplicateNodeIdError(GraphInvariantError):
    """Exceção levantada ao inserir um nó cujo id já existe no grafo."""


class DuplicateEdgeIdError(GraphInvariantError):
    """Exceção levantada ao inserir uma aresta cujo id já existe no grafo."""


class DanglingEdgeError(GraphInvariantError):
    """
    Exceção levantada quando uma aresta referencia um nó inexistente.

    Decisões arquiteturais:
        - Arestas pendentes são erro de construção, nunca estado de runtime
        - Referências não resolvidas vindas do usuário devem ser descartadas
          pelo código de construção antes de chegar ao grafo
    """


@dataclass
class PipelineGraph:
    """
    Grafo de pipeline: nós e arestas indexados por id.

    Decisões arquiteturais:
        - Dicionários Python preservam ordem de inserção
        - Nós e arestas são imutáveis; atualizações usam `replace_node`
        - Cópias (`copy`) são snapshots independentes

    Invariantes:
        - Cada `node.id` é único
        - Toda aresta possui endpoints existentes
    """

    _nodes: Dict[str, PipelineNode] = field(default_factory=dict, init=False, repr=False)
    _edges: Dict[str, PipelineEdge] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_parts(cls, nodes: List[PipelineNode], edges: List[PipelineEdge]) -> "PipelineGraph":
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        return graph

    # -----------------------------
    # Mutação
    # -----------------------------
    def add_node(self, node: PipelineNode) -> None:
        if not isinstance(node.id, str) or not node.id.strip():
            raise GraphInvariantError("node.id must be a non-empty string")
        if node.id in self._nodes:
            raise DuplicateNodeIdError(f"Duplicate node id: {node.id}")
        self._nodes[node.id] = node

    def replace_node(self, node: PipelineNode) -> None:
        if node.id not in self._nodes:
            raise KeyError(node.id)
        self._nodes[node.id] = node

    def remove_node(self, node_id: str) -> PipelineNode:
        node = self._nodes.pop(node_id)
        for edge_id in [e.id for e in self._edges.values() if node_id in (e.source_id, e.target_id)]:
            del self._edges[edge_id]
        return node

    def add_edge(self, edge: PipelineEdge) -> None:
        if edge.id in self._edges:
            raise DuplicateEdgeIdError(f"Duplicate edge id: {edge.id}")
        for endpoint in (edge.source_id, edge.target_id):
            if endpoint not in self._nodes:
                raise DanglingEdgeError(
                    f"Edge '{edge.id}' references unknown node '{endpoint}'"
                )
        self._edges[edge.id] = edge

    def remove_edge(self, edge_id: str) -> PipelineEdge:
        return self._edges.pop(edge_id)

    # -----------------------------
    # Consulta
    # -----------------------------
    @property
    def nodes(self) -> List[PipelineNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[PipelineEdge]:
        return list(self._edges.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def find_node(self, node_id: str) -> Optional[PipelineNode]:
        return self._nodes.get(node_id)

    def find_edge(self, edge_id: str) -> Optional[PipelineEdge]:
        return self._edges.get(edge_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[PipelineNode]:
        return [n for n in self._nodes.values() if n.kind == kind]

    def incoming_edges(self, node_id: str) -> List[PipelineEdge]:
        return [e for e in self._edges.values() if e.target_id == node_id]

    def outgoing_edges(self, node_id: str) -> List[PipelineEdge]:
        return [e for e in self._edges.values() if e.source_id == node_id]

    def has_edge_between(self, source_id: str, target_id: str) -> bool:
        return any(
            e.source_id == source_id and e.target_id == target_id
            for e in self._edges.values()
        )

    # -----------------------------
    # Snapshots
    # -----------------------------
    def copy(self) -> "PipelineGraph":
        clone = PipelineGraph()
        clone._nodes = {k: deepcopy(v) for k, v in self._nodes.items()}
        clone._edges = dict(self._edges)
        return clone

    def to_dict(self, *, include_positions: bool = True) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict(include_position=include_positions) for n in self._nodes.values()],
            "edges": [e.to_dict() for e in self._edges.values()],
        }

    def fingerprint(self) -> str:
        """Hash do payload serializável do grafo, sem posições visuais."""
        return canonical_hash(self.to_dict(include_positions=False))
