# src/pipesync/core/graph/types.py
"""
Tipos canônicos do grafo de pipeline do pipesync.

Este módulo define as estruturas fundamentais compartilhadas por todos os
codecs (texto estruturado, script plano, workflow) e pelo controlador de
sincronização.

Componentes principais:
    - NodeKind     → vocabulário fechado de papéis de um job no pipeline
    - Position     → coordenada 2D pertencente à superfície visual
    - PipelineNode → nó imutável do grafo (id, kind, rótulo, atributos)
    - PipelineEdge → aresta imutável entre dois nós

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - Nenhuma lógica de parsing ou geração vive neste módulo
    - A direção semântica das arestas é responsabilidade de cada codec

Invariantes:
    - Enums possuem valores textuais canônicos
    - Nós e arestas são imutáveis (frozen); alterações usam `dataclasses.replace`
    - `display_name` nunca é vazio após a construção

Limites explícitos:
    - Não valida unicidade de ids (responsabilidade do PipelineGraph)
    - Não decide ordem de emissão
    - Não depende de codecs ou do controlador

Este módulo existe para garantir um vocabulário único e previsível
entre grafo, codecs e superfícies externas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class NodeKind(str, Enum):
    """
    Papéis possíveis de um nó no pipeline.

    Os valores são strings para facilitar serialização e inspeção.

    Papéis definidos:
        - START: marcador de início (apenas no sabor script/workflow)
        - GIT_CLONE: checkout do repositório
        - LINUX_INSTALL: instalação de pacotes do sistema operacional
        - PREBUILD_NODE / PREBUILD_PYTHON / PREBUILD_JAVA: instalação de dependências por ecossistema
        - BUILD_NPM / BUILD_PYTHON / BUILD_JAVA: build por ecossistema
        - DOCKER_BUILD: build de imagem de container
        - RUN_TESTS: execução de testes
        - DEPLOY: deploy para um ambiente alvo
        - NOTIFY_SLACK: notificação
        - CUSTOM_COMMAND: comando genérico (texto bruto preservado)

    Invariantes:
        - O valor textual do enum é estável e canônico
    """
    START = "start"
    GIT_CLONE = "git_clone"
    LINUX_INSTALL = "linux_install"
    PREBUILD_NODE = "prebuild_node"
    PREBUILD_PYTHON = "prebuild_python"
    PREBUILD_JAVA = "prebuild_java"
    BUILD_NPM = "build_npm"
    BUILD_PYTHON = "build_python"
    BUILD_JAVA = "build_java"
    DOCKER_BUILD = "docker_build"
    RUN_TESTS = "run_tests"
    DEPLOY = "deploy"
    NOTIFY_SLACK = "notify_slack"
    CUSTOM_COMMAND = "custom_command"


# Ecossistemas em ordem de prioridade de emissão (setup steps do workflow)
ECOSYSTEMS = ("javascript", "python", "java")

_KIND_ECOSYSTEM: Dict[NodeKind, str] = {
    NodeKind.PREBUILD_NODE: "javascript",
    NodeKind.BUILD_NPM: "javascript",
    NodeKind.PREBUILD_PYTHON: "python",
    NodeKind.BUILD_PYTHON: "python",
    NodeKind.PREBUILD_JAVA: "java",
    NodeKind.BUILD_JAVA: "java",
}


def default_display_name(value: str) -> str:
    """Forma title-case de um kind ou nome de job (`git_clone` → `Git Clone`)."""
    words = value.replace("_", " ").replace("-", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


@dataclass(frozen=True)
class Position:
    """Coordenada 2D de um nó. Pertence à superfície visual."""
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class PipelineNode:
    """
    Nó imutável do grafo de pipeline.

    Campos:
        - id: identificador estável e único no grafo
        - kind: papel do nó (`NodeKind`)
        - display_name: rótulo humano; default derivado de `name` ou `kind`
        - attributes: campos dependentes do kind (todos opcionais)
        - original_order_index: posição de declaração no texto estruturado
        - position: coordenada visual, preservada entre regenerações

    Decisões arquiteturais:
        - A imutabilidade evita que superfícies externas mutem o grafo
          possuído pelo controlador
        - Atributos ausentes são preenchidos pelos geradores, nunca aqui

    Invariantes:
        - `display_name` é sempre uma string não vazia
        - `kind` é sempre um membro de `NodeKind`
    """
    id: str
    kind: NodeKind
    display_name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    original_order_index: Optional[int] = None
    position: Position = field(default_factory=Position)

    def __post_init__(self) -> None:
        kind = NodeKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if not self.display_name:
            base = self.attributes.get("name") or kind.value
            object.__setattr__(self, "display_name", default_display_name(str(base)))

    @property
    def ecosystem(self) -> Optional[str]:
        """Ecossistema do nó: derivado do kind, ou do atributo `lang`."""
        eco = _KIND_ECOSYSTEM.get(self.kind)
        if eco is not None:
            return eco
        lang = self.attributes.get("lang")
        return lang if lang in ECOSYSTEMS else None

    def to_dict(self, *, include_position: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "display_name": self.display_name,
            "attributes": dict(self.attributes),
            "original_order_index": self.original_order_index,
        }
        if include_position:
            data["position"] = {"x": self.position.x, "y": self.position.y}
        return data


@dataclass(frozen=True)
class PipelineEdge:
    """
    Aresta imutável `source_id → target_id`.

    A leitura semântica depende do sabor: no texto estruturado significa
    "target depende de source"; no script plano, "source precede target".
    """
    id: str
    source_id: str
    target_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "source_id": self.source_id, "target_id": self.target_id}
