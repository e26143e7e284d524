# src/pipesync/core/ordering/planner.py
"""
Algoritmos de ordenação do grafo de pipeline.

Este módulo reconcilia as arestas do grafo com as duas formas textuais
do pipeline:
    - fechamento de dependências (multi-pai), consumido pelo codec de
      texto estruturado
    - linearização em cadeia única, consumida pelos geradores de script
      plano e de workflow
    - encadeamento de uma sequência de nós em arestas, usado ao importar
      um script plano

Princípios fundamentais:
    - A saída é determinística para a mesma entrada
    - Grafos ramificados degradam para um prefixo linear, nunca falham
    - Ciclos nunca produzem laços infinitos

Decisões arquiteturais:
    - O fechamento de dependências não detecta ciclos: a lista de
      dependências é declarativa, não uma ordem de execução
    - A linearização para no primeiro ponto de ramificação
    - O motivo da truncagem é exposto explicitamente ao chamador

Invariantes:
    - Todo nó do grafo possui entrada no fechamento de dependências
    - Nenhum nó aparece duas vezes na sequência linearizada

Limites explícitos:
    - Não gera texto
    - Não muta o grafo
    - Não registra eventos no journal

Este módulo existe para garantir degradação previsível quando o grafo
não é representável por completo em um formato sequencial.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from pipesync.core.graph.model import PipelineGraph
from pipesync.core.graph.types import NodeKind, PipelineEdge, PipelineNode


TRUNCATED_BRANCH = "branch"
TRUNCATED_CYCLE = "cycle"
TRUNCATED_UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class Linearization:
    """
    Resultado da linearização em cadeia única.

    Campos:
        - nodes: prefixo linear a partir do marcador de início
        - truncated: True quando algum nó do grafo ficou de fora
        - reason: `branch`, `cycle`, `unreachable` ou None
    """
    nodes: List[PipelineNode] = field(default_factory=list)
    truncated: bool = False
    reason: Optional[str] = None


def dependency_closure(graph: PipelineGraph) -> Dict[str, Set[str]]:
    """
    Mapeia cada nó para o conjunto de ids de origem de suas arestas de entrada.

    Args:
        graph (PipelineGraph): Grafo a ser analisado.

    Returns:
        Dict[str, Set[str]]: `target_id → {source_id, ...}`, com entrada
        (possivelmente vazia) para todo nó do grafo.
    """
    closure: Dict[str, Set[str]] = {node.id: set() for node in graph.nodes}
    for edge in graph.edges:
        closure.setdefault(edge.target_id, set()).add(edge.source_id)
    return closure


def linearize(graph: PipelineGraph) -> Linearization:
    """
    Reduz o grafo a uma sequência linear seguindo sucessores únicos.

    A travessia começa no marcador de início e segue a única aresta de
    saída de cada nó, parando quando:
        - o nó corrente possui zero ou mais de uma aresta de saída
        - o próximo nó já foi visitado (ciclo)

    Decisões arquiteturais:
        - Sem marcador de início a sequência é vazia
        - Havendo mais de um marcador, vale o primeiro em ordem de inserção
        - Ramificações produzem um prefixo parcial, nunca um erro

    Invariantes:
        - A função sempre termina
        - Cada nó aparece no máximo uma vez no resultado
        - `truncated` é True se, e somente se, algum nó ficou de fora;
          um ciclo que fecha depois de emitir todos os nós não trunca

    Args:
        graph (PipelineGraph): Grafo no sabor script/workflow.

    Returns:
        Linearization: Prefixo linear e sinal de truncagem.
    """
    starts = graph.nodes_of_kind(NodeKind.START)
    if not starts:
        return Linearization(nodes=[], truncated=len(graph) > 0,
                             reason=TRUNCATED_UNREACHABLE if len(graph) else None)

    ordered: List[PipelineNode] = []
    visited: Set[str] = set()
    reason: Optional[str] = None
    cursor: Optional[PipelineNode] = starts[0]

    while cursor is not None:
        ordered.append(cursor)
        visited.add(cursor.id)

        outgoing = graph.outgoing_edges(cursor.id)
        if len(outgoing) != 1:
            if len(outgoing) > 1:
                reason = TRUNCATED_BRANCH
            break

        next_id = outgoing[0].target_id
        if next_id in visited:
            reason = TRUNCATED_CYCLE
            break
        cursor = graph.find_node(next_id)

    # truncagem só existe quando algum nó ficou de fora da sequência
    if len(ordered) == len(graph):
        return Linearization(nodes=ordered, truncated=False, reason=None)
    if reason is None:
        reason = TRUNCATED_UNREACHABLE

    return Linearization(nodes=ordered, truncated=True, reason=reason)


def chain_edges(nodes: Sequence[PipelineNode]) -> List[PipelineEdge]:
    """Encadeia `nodes[i] → nodes[i + 1]` com ids determinísticos."""
    return [
        PipelineEdge(
            id=f"edge-{current.id}-{following.id}",
            source_id=current.id,
            target_id=following.id,
        )
        for current, following in zip(nodes, nodes[1:])
    ]
