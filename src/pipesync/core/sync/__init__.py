# src/pipesync/core/sync/__init__.py
"""
Sincronização grafo ⇄ texto.

Componentes principais:
    - events     → eventos de edição (texto, superfície visual, flags manuais)
    - controller → máquina de estados reentrante (`SyncController`)
    - journal    → log estruturado da sessão (`SyncJournal`)

Limites explícitos:
    - Não renderiza o grafo
    - Não persiste pipelines
"""

from .controller import NODE_PALETTE, SyncController, SyncPhase, SyncResult
from .events import (
    AttributesChanged,
    EdgeAdded,
    EdgeRemoved,
    ManualEditToggled,
    NodeAdded,
    NodeMoved,
    NodeRemoved,
    PipelineFlavor,
    Representation,
    TextEdited,
    event_type,
)
from .journal import SyncJournal

__all__ = [
    "NODE_PALETTE",
    "SyncController",
    "SyncPhase",
    "SyncResult",
    "AttributesChanged",
    "EdgeAdded",
    "EdgeRemoved",
    "ManualEditToggled",
    "NodeAdded",
    "NodeMoved",
    "NodeRemoved",
    "PipelineFlavor",
    "Representation",
    "TextEdited",
    "event_type",
    "SyncJournal",
]
