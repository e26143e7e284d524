# src/pipesync/__init__.py
"""
pipesync — sincronização entre o grafo visual de um pipeline de CI/CD e
suas representações textuais.

Um mesmo pipeline pode ser descrito como:
    - um grafo de jobs editado visualmente
    - uma lista estruturada de jobs com dependências (YAML)
    - um script shell sequencial, acompanhado de um workflow derivado

O pacote mantém essas representações consistentes sob edições arbitrárias
em qualquer uma delas, sem laços de realimentação e sem perda de dados em
erros transitórios de parsing.

Arquitetura em alto nível:
    - core.graph    → modelo canônico
    - core.codecs   → parse/generate por formato
    - core.ordering → reconciliação de arestas com dependências declaradas
    - core.sync     → controlador de sincronização

Limites explícitos:
    - Não renderiza, não persiste e não executa pipelines

Este módulo existe como ponto de entrada do pacote, incluindo um
controlador default por sabor acessível via `apply_edit`.
"""

from typing import Any, Dict, Optional

from .core.codecs import (
    RenderedText,
    StructuredParseResult,
    generate_flat_script,
    generate_structured_text,
    generate_workflow_text,
    parse_flat_script,
    parse_structured_text,
    render_flat_script,
    render_workflow_text,
)
from .core.errors import SyncIssue
from .core.graph import NodeKind, PipelineEdge, PipelineGraph, PipelineNode, Position
from .core.ordering import dependency_closure, linearize
from .core.sync import (
    AttributesChanged,
    EdgeAdded,
    EdgeRemoved,
    ManualEditToggled,
    NodeAdded,
    NodeMoved,
    NodeRemoved,
    PipelineFlavor,
    Representation,
    SyncController,
    SyncResult,
    TextEdited,
)

_controllers: Dict[PipelineFlavor, SyncController] = {}


def _flavor_of(event: Any) -> PipelineFlavor:
    rep = getattr(event, "representation", None)
    if rep is not None and Representation(rep) is Representation.STRUCTURED:
        return PipelineFlavor.STRUCTURED
    return PipelineFlavor.SCRIPT


def get_controller(flavor: PipelineFlavor) -> SyncController:
    """Controlador default do processo para o sabor informado."""
    flavor = PipelineFlavor(flavor)
    if flavor not in _controllers:
        _controllers[flavor] = SyncController(flavor)
    return _controllers[flavor]


def apply_edit(event: Any, *, flavor: Optional[PipelineFlavor] = None) -> SyncResult:
    """
    Aplica `event` no controlador default.

    Sem `flavor`, eventos de texto estruturado vão para o sabor STRUCTURED
    e todos os demais para o sabor SCRIPT.
    """
    target = PipelineFlavor(flavor) if flavor is not None else _flavor_of(event)
    return get_controller(target).apply_edit(event)


def reset_controllers() -> None:
    """Descarta os controladores default (nova sessão)."""
    _controllers.clear()


__all__ = [
    "RenderedText",
    "StructuredParseResult",
    "generate_flat_script",
    "generate_structured_text",
    "generate_workflow_text",
    "parse_flat_script",
    "parse_structured_text",
    "render_flat_script",
    "render_workflow_text",
    "SyncIssue",
    "NodeKind",
    "PipelineEdge",
    "PipelineGraph",
    "PipelineNode",
    "Position",
    "dependency_closure",
    "linearize",
    "AttributesChanged",
    "EdgeAdded",
    "EdgeRemoved",
    "ManualEditToggled",
    "NodeAdded",
    "NodeMoved",
    "NodeRemoved",
    "PipelineFlavor",
    "Representation",
    "SyncController",
    "SyncResult",
    "TextEdited",
    "apply_edit",
    "get_controller",
    "reset_controllers",
]
