# src/pipesync/core/sync/events.py
"""
Eventos de edição aceitos pelo controlador de sincronização.

Eventos chegam de dois colaboradores externos:
    - adaptador de editor de texto → `TextEdited`, `ManualEditToggled`
    - adaptador da superfície visual → `NodeAdded`, `NodeMoved`,
      `NodeRemoved`, `EdgeAdded`, `EdgeRemoved`, `AttributesChanged`

Invariantes:
    - Eventos são imutáveis (frozen)
    - Eventos não carregam referência ao grafo, apenas ids e valores
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pipesync.core.graph.types import NodeKind, Position


class Representation(str, Enum):
    """Representações textuais conhecidas pelo controlador."""
    STRUCTURED = "structured"
    FLAT_SCRIPT = "flat_script"
    WORKFLOW = "workflow"


class PipelineFlavor(str, Enum):
    """
    Sabor do pipeline servido por uma instância do controlador.

    - STRUCTURED: texto estruturado (dependências multi-pai, sem START)
    - SCRIPT: script plano + workflow (cadeia simples a partir de START)
    """
    STRUCTURED = "structured"
    SCRIPT = "script"

    @property
    def representations(self) -> Tuple[Representation, ...]:
        if self is PipelineFlavor.STRUCTURED:
            return (Representation.STRUCTURED,)
        return (Representation.FLAT_SCRIPT, Representation.WORKFLOW)

    @property
    def editable(self) -> Tuple[Representation, ...]:
        if self is PipelineFlavor.STRUCTURED:
            return (Representation.STRUCTURED,)
        return (Representation.FLAT_SCRIPT,)


@dataclass(frozen=True)
class TextEdited:
    representation: Representation
    text: str


@dataclass(frozen=True)
class ManualEditToggled:
    """Marca (ou libera) uma representação como editada manualmente."""
    representation: Representation
    active: bool


@dataclass(frozen=True)
class NodeAdded:
    """
    Novo nó criado na superfície visual.

    `attributes` é mesclado sobre os defaults da paleta do kind;
    sem `position`, o controlador aplica o layout default.
    """
    kind: NodeKind
    attributes: Dict[str, Any] = field(default_factory=dict)
    display_name: str = ""
    position: Optional[Position] = None


@dataclass(frozen=True)
class NodeMoved:
    node_id: str
    position: Position


@dataclass(frozen=True)
class NodeRemoved:
    node_id: str


@dataclass(frozen=True)
class EdgeAdded:
    source_id: str
    target_id: str


@dataclass(frozen=True)
class EdgeRemoved:
    edge_id: str


@dataclass(frozen=True)
class AttributesChanged:
    """
    Alteração de atributos de um nó.

    Chaves com valor `None` são removidas; `display_name` opcional renomeia.
    """
    node_id: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    display_name: Optional[str] = None


GraphEvent = Union[NodeAdded, NodeMoved, NodeRemoved, EdgeAdded, EdgeRemoved, AttributesChanged]
SyncEvent = Union[TextEdited, ManualEditToggled, GraphEvent]


def event_type(event: Any) -> str:
    """Nome estável do tipo do evento (`TextEdited`, `NodeAdded`, ...)."""
    return type(event).__name__
