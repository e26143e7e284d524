# src/pipesync/core/sync/controller.py
"""
Controlador de sincronização grafo ⇄ texto.

Este módulo define o **SyncController**, o orquestrador que recebe eventos
de edição de qualquer representação, atualiza o grafo canônico e regenera
as demais representações sem laços de realimentação.

Responsabilidades do módulo:
    - Rotear cada evento para o codec correspondente
    - Substituir o grafo após parsing bem-sucedido, preservando posições
    - Regenerar as representações que não originaram a edição
    - Enfileirar eventos que chegam fora do estado Idle
    - Registrar aplicações, descartes e avisos no journal

Princípios fundamentais:
    - O grafo pertence exclusivamente ao controlador; colaboradores externos
      recebem apenas snapshots
    - Falha de parsing nunca esvazia o grafo: o último estado válido é mantido
    - Uma atualização causada pelo próprio controlador nunca é reinterpretada
      como edição externa

Decisões arquiteturais:
    - Máquina de estados explícita (Idle, ApplyingFromText, ApplyingFromGraph)
      com fila de eventos
    - Texto recebido idêntico ao último texto mantido é um reconhecimento (no-op)
    - Após regeneração originada no grafo, a janela de supressão das
      representações regeneradas só é liberada por uma continuação adiada
      (`scheduler` injetado; por padrão ao final do turno)
    - Um controlador serve um único sabor de pipeline
    - Movimentos de nó são cosméticos e não regeneram texto

Invariantes:
    - No máximo um evento é aplicado por vez
    - Ids alocados para nós criados na superfície nunca são reutilizados
      na mesma sessão
    - Toda mudança de payload serializável regenera as representações
      não bloqueadas por edição manual

Limites explícitos:
    - Não renderiza nem persiste nada
    - Não executa pipelines
    - Não possui threads ou I/O
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple

from pipesync.core.codecs.flat_script import parse_flat_script, render_flat_script
from pipesync.core.codecs.structured import generate_structured_text, job_id, parse_structured_text
from pipesync.core.codecs.workflow import render_workflow_text
from pipesync.core.config.loader import resolve_sync_config
from pipesync.core.errors import (
    SEVERITY_WARNING,
    SyncIssue,
    degraded_linearization,
    empty_parse,
    rejected_edit,
    representation_not_editable,
    unresolved_reference,
)
from pipesync.core.graph.model import PipelineGraph
from pipesync.core.graph.types import NodeKind, PipelineEdge, PipelineNode, Position
from pipesync.core.hashing import canonical_hash
from pipesync.core.ordering.planner import chain_edges, linearize

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


Scheduler = Callable[[Callable[[], None]], Any]
Listener = Callable[["SyncResult"], None]


class SyncPhase(str, Enum):
    IDLE = "idle"
    APPLYING_FROM_TEXT = "applying_from_text"
    APPLYING_FROM_GRAPH = "applying_from_graph"


# Atributos default por kind ao criar um nó na superfície visual.
NODE_PALETTE: Dict[NodeKind, Dict[str, Any]] = {
    NodeKind.GIT_CLONE: {"repo_url": "https://github.com/user/repo.git", "branch": "main"},
    NodeKind.LINUX_INSTALL: {"os_pkg": "apt", "packages": "git curl"},
    NodeKind.PREBUILD_NODE: {"manager": "npm"},
    NodeKind.DOCKER_BUILD: {"dockerfile": "Dockerfile", "tag": "myapp:latest"},
    NodeKind.RUN_TESTS: {"test_type": "unit", "command": "npm test"},
    NodeKind.DEPLOY: {"environment": "staging"},
    NodeKind.NOTIFY_SLACK: {"channel": "#deployments", "message": "Deployment completed!"},
    NodeKind.CUSTOM_COMMAND: {"command": 'echo "Custom command"'},
}


def _job_key(node: PipelineNode) -> Optional[str]:
    """Nome do job normalizado; None para nós sem nome (sabor script)."""
    name = node.attributes.get("name")
    return str(name).lower() if name else None


@dataclass(frozen=True)
class SyncResult:
    """
    Resultado da aplicação de um evento.

    Campos:
        - event_type: nome do tipo do evento
        - applied: True quando o grafo ou uma flag de edição mudou
        - graph: snapshot independente do grafo após o evento
        - regenerated: textos regenerados por representação
        - warnings: avisos destinados ao usuário (severidade `warning`)
        - truncated / reason: sinal de linearização degradada (sabor script)
        - queued: True quando o evento foi enfileirado para aplicação posterior
    """
    event_type: str
    applied: bool
    graph: Optional[PipelineGraph] = None
    regenerated: Dict[str, str] = field(default_factory=dict)
    warnings: List[SyncIssue] = field(default_factory=list)
    truncated: bool = False
    reason: Optional[str] = None
    queued: bool = False


class SyncController:
    """
    Orquestrador reentrante de sincronização para um sabor de pipeline.

    Uso típico:

        controller = SyncController(PipelineFlavor.STRUCTURED)
        result = controller.apply_edit(TextEdited(Representation.STRUCTURED, text))
        result.graph, controller.texts

    Args:
        flavor: Sabor servido (`STRUCTURED` ou `SCRIPT`).
        config: Overrides mesclados sobre `DEFAULT_SYNC_CONFIG`.
        scheduler: Recebe a continuação que libera a janela de supressão
            (ex.: `loop.call_soon`). Sem scheduler, a liberação ocorre ao
            final de cada `apply_edit`.
        journal: Journal da sessão; um novo é criado quando ausente.
    """

    def __init__(
        self,
        flavor: PipelineFlavor,
        *,
        config: Optional[Dict[str, Any]] = None,
        scheduler: Optional[Scheduler] = None,
        journal: Optional[SyncJournal] = None,
    ) -> None:
        self.flavor = PipelineFlavor(flavor)
        self.config = resolve_sync_config(config)
        self.journal = journal if journal is not None else SyncJournal()

        self._scheduler = scheduler
        self._graph = PipelineGraph()
        self._phase = SyncPhase.IDLE
        self._queue: Deque[Any] = deque()
        self._listeners: List[Listener] = []

        self._texts: Dict[Representation, str] = {}
        self._manual: Set[Representation] = set()
        self._suppressed: Set[Representation] = set()
        self._release_scheduled = False

        self._id_counter = 0
        self._order_counter = 0
        self._truncated = False
        self._reason: Optional[str] = None

        self.journal.log(
            representation="*",
            level="info",
            message="controller started",
            flavor=self.flavor.value,
            config_hash=canonical_hash(self.config),
        )

        if self.flavor is PipelineFlavor.SCRIPT:
            self._graph.add_node(
                PipelineNode(id="start", kind=NodeKind.START, display_name="Start", position=self._layout(0))
            )
        self._regenerate(origin=None)

    # -----------------------------
    # Superfície pública
    # -----------------------------
    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def texts(self) -> Dict[str, str]:
        """Texto corrente de cada representação do sabor."""
        return {rep.value: self._texts.get(rep, "") for rep in self.flavor.representations}

    @property
    def manual_edits(self) -> Set[str]:
        return {rep.value for rep in self._manual}

    @property
    def truncated(self) -> bool:
        return self._truncated

    def snapshot(self) -> PipelineGraph:
        """Cópia independente do grafo corrente."""
        return self._graph.copy()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Registra um listener de `SyncResult`.

        Listeners executam antes do retorno ao estado Idle: um `apply_edit`
        chamado de dentro de um listener é enfileirado.

        Returns:
            Callable[[], None]: Função que cancela a inscrição.
        """
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def apply_edit(self, event: Any) -> SyncResult:
        """
        Aplica um evento de edição, ou o enfileira quando fora do estado Idle.

        Args:
            event: `TextEdited`, `ManualEditToggled` ou um evento de grafo.

        Returns:
            SyncResult: Resultado da aplicação (ou `queued=True`).

        Raises:
            TypeError: Se o evento não for de um tipo conhecido.
        """
        if self._phase is not SyncPhase.IDLE:
            self._queue.append(event)
            self.journal.log(
                representation="*",
                level="debug",
                message="event queued",
                event_type=event_type(event),
                phase=self._phase.value,
            )
            return SyncResult(event_type=event_type(event), applied=False, queued=True)

        result = self._run(event)
        while self._queue:
            self._run(self._queue.popleft())

        if self._release_scheduled and self._scheduler is None:
            self.release_pending()
        return result

    def release_pending(self) -> None:
        """Fecha a janela de supressão aberta pela última regeneração."""
        if self._suppressed:
            self.journal.log(
                representation="*",
                level="debug",
                message="suppression released",
                representations=sorted(rep.value for rep in self._suppressed),
            )
        self._suppressed.clear()
        self._release_scheduled = False

    # -----------------------------
    # Roteamento
    # -----------------------------
    def _run(self, event: Any) -> SyncResult:
        handler, phase = self._route(event)
        self._phase = phase
        try:
            result = handler(event)
            for issue in result.warnings:
                self.journal.add_warning(representation=self._issue_scope(event), issue=issue)
            for listener in list(self._listeners):
                listener(result)
        finally:
            self._phase = SyncPhase.IDLE
        return result

    def _route(self, event: Any) -> Tuple[Callable[[Any], SyncResult], SyncPhase]:
        if isinstance(event, TextEdited):
            return self._on_text_edited, SyncPhase.APPLYING_FROM_TEXT
        if isinstance(event, ManualEditToggled):
            return self._on_manual_toggled, SyncPhase.APPLYING_FROM_GRAPH
        handlers: Dict[type, Callable[[Any], SyncResult]] = {
            NodeAdded: self._on_node_added,
            NodeMoved: self._on_node_moved,
            NodeRemoved: self._on_node_removed,
            EdgeAdded: self._on_edge_added,
            EdgeRemoved: self._on_edge_removed,
            AttributesChanged: self._on_attributes_changed,
        }
        handler = handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported sync event: {type(event).__name__}")
        return handler, SyncPhase.APPLYING_FROM_GRAPH

    @staticmethod
    def _issue_scope(event: Any) -> str:
        rep = getattr(event, "representation", None)
        return Representation(rep).value if rep is not None else "graph"

    def _result(
        self,
        event: Any,
        *,
        applied: bool,
        regenerated: Optional[Dict[str, str]] = None,
        issues: Optional[List[SyncIssue]] = None,
    ) -> SyncResult:
        issues = issues or []
        for issue in issues:
            if issue.severity != SEVERITY_WARNING:
                self.journal.log(
                    representation=self._issue_scope(event),
                    level="info",
                    message=issue.message,
                    issue=issue.to_dict(),
                )
        return SyncResult(
            event_type=event_type(event),
            applied=applied,
            graph=self._graph.copy(),
            regenerated=regenerated or {},
            warnings=[i for i in issues if i.severity == SEVERITY_WARNING],
            truncated=self._truncated,
            reason=self._reason,
        )

    # -----------------------------
    # Texto → grafo
    # -----------------------------
    def _on_text_edited(self, event: TextEdited) -> SyncResult:
        rep = Representation(event.representation)

        if rep not in self.flavor.editable:
            issue = representation_not_editable(representation=rep.value, flavor=self.flavor.value)
            return self._result(event, applied=False, issues=[issue])

        if rep in self._suppressed or event.text == self._texts.get(rep):
            self.journal.log(representation=rep.value, level="debug", message="text acknowledged")
            return self._result(event, applied=False)

        if rep is Representation.STRUCTURED:
            nodes, edges, issues = self._parse_structured(event.text)
        else:
            nodes, edges, issues = self._parse_script(event.text)

        # o editor mantém o texto digitado mesmo quando o grafo não muda
        self._texts[rep] = event.text

        if not nodes:
            if not any(i.severity == SEVERITY_WARNING for i in issues):
                issues.append(empty_parse(representation=rep.value))
            self.journal.log(
                representation=rep.value,
                level="warning",
                message="parse kept previous graph",
                fingerprint=self._graph.fingerprint(),
            )
            return self._result(event, applied=False, issues=issues)

        graph = PipelineGraph.from_parts(self._place(nodes), edges)
        self._graph = graph
        self.journal.log(
            representation=rep.value,
            level="info",
            message="graph replaced from text",
            nodes=len(graph),
            edges=len(graph.edges),
            fingerprint=graph.fingerprint(),
        )
        regenerated = self._regenerate(origin=rep)
        return self._result(event, applied=True, regenerated=regenerated, issues=issues)

    def _parse_structured(self, text: str) -> Tuple[List[PipelineNode], List[PipelineEdge], List[SyncIssue]]:
        parsed = parse_structured_text(text)
        return list(parsed.nodes), list(parsed.edges), list(parsed.warnings)

    def _parse_script(self, text: str) -> Tuple[List[PipelineNode], List[PipelineEdge], List[SyncIssue]]:
        nodes = parse_flat_script(text, config=self.config)
        if len(nodes) <= 1:
            return [], [], []
        return nodes, chain_edges(nodes), []

    def _layout(self, index: int) -> Position:
        layout = self.config["layout"]
        return Position(
            x=float(layout["origin_x"]),
            y=float(layout["origin_y"]) + index * float(layout["spacing_y"]),
        )

    def _place(self, nodes: List[PipelineNode]) -> List[PipelineNode]:
        """
        Preserva posições visuais através de um reparsing.

        Ordem de correspondência:
            - mesmo id e mesmo nome de job
            - mesmo nome de job (ids renumerados após remoções)
            - mesmo id (job renomeado no texto)
            - layout default
        """
        by_name: Dict[str, PipelineNode] = {}
        for previous in self._graph.nodes:
            key = _job_key(previous)
            if key is not None and key not in by_name:
                by_name[key] = previous

        placed: List[PipelineNode] = []
        for index, node in enumerate(nodes):
            key = _job_key(node)
            same_id = self._graph.find_node(node.id)
            if same_id is not None and key is not None and _job_key(same_id) == key:
                previous: Optional[PipelineNode] = same_id
            else:
                previous = by_name.get(key) if key is not None else None
                if previous is None:
                    previous = same_id
            position = previous.position if previous is not None else self._layout(index)
            placed.append(replace(node, position=position))
        return placed

    # -----------------------------
    # Grafo → texto
    # -----------------------------
    def _regenerate(self, origin: Optional[Representation]) -> Dict[str, str]:
        regenerated: Dict[str, str] = {}

        if self.flavor is PipelineFlavor.SCRIPT:
            linear = linearize(self._graph)
            self._truncated, self._reason = linear.truncated, linear.reason
            if linear.truncated:
                emitted = {n.id for n in linear.nodes}
                issue = degraded_linearization(
                    reason=linear.reason,
                    emitted=[n.id for n in linear.nodes],
                    omitted=[n.id for n in self._graph.nodes if n.id not in emitted],
                )
                self.journal.log(representation="graph", level="info", message=issue.message, issue=issue.to_dict())

        for rep in self.flavor.representations:
            if rep is origin or rep in self._manual:
                continue
            text = self._render(rep)
            self._texts[rep] = text
            regenerated[rep.value] = text

        if regenerated:
            self.journal.log(
                representation="*",
                level="debug",
                message="representations regenerated",
                representations=sorted(regenerated),
            )
        return regenerated

    def _render(self, rep: Representation) -> str:
        if rep is Representation.STRUCTURED:
            return generate_structured_text(self._graph, config=self.config)
        if rep is Representation.FLAT_SCRIPT:
            return render_flat_script(self._graph, config=self.config).text
        return render_workflow_text(self._graph, config=self.config).text

    def _commit_graph_edit(
        self,
        event: Any,
        candidate: PipelineGraph,
        *,
        message: str,
        **extra: Any,
    ) -> SyncResult:
        """
        Adota o grafo candidato quando o payload serializável mudou.

        O candidato só substitui o grafo depois de calculado seu fingerprint:
        um valor de atributo não serializável recusa a edição e o grafo
        corrente fica intacto. Após a troca, as representações são
        regeneradas e a janela de supressão é aberta.
        """
        try:
            after = candidate.fingerprint()
        except (TypeError, ValueError) as exc:
            issue = rejected_edit(
                event_type=event_type(event),
                reason=f"attribute value is not serializable: {exc}",
                node_id=getattr(event, "node_id", None),
                hint="Atributos aceitam apenas strings, números, booleanos, listas e mapas.",
            )
            return self._result(event, applied=False, issues=[issue])

        if after == self._graph.fingerprint():
            return self._result(event, applied=False)

        self._graph = candidate
        self.journal.log(representation="graph", level="info", message=message, **extra)

        regenerated = self._regenerate(origin=None)
        self._suppressed.update(Representation(rep) for rep in regenerated)
        if regenerated and not self._release_scheduled:
            self._release_scheduled = True
            if self._scheduler is not None:
                self._scheduler(self.release_pending)
        return self._result(event, applied=True, regenerated=regenerated)

    def _allocate_id(self) -> Tuple[str, Optional[int]]:
        if self.flavor is PipelineFlavor.STRUCTURED:
            indexes = [n.original_order_index for n in self._graph.nodes if n.original_order_index is not None]
            index = max([self._order_counter] + [i + 1 for i in indexes])
            while job_id(index) in self._graph:
                index += 1
            self._order_counter = index + 1
            return job_id(index), index

        self._id_counter += 1
        while f"node-{self._id_counter}" in self._graph:
            self._id_counter += 1
        return f"node-{self._id_counter}", None

    def _on_node_added(self, event: NodeAdded) -> SyncResult:
        kind = NodeKind(event.kind)
        if kind is NodeKind.START:
            issue = rejected_edit(event_type=event_type(event), reason="start marker cannot be added")
            return self._result(event, applied=False, issues=[issue])

        node_id, order_index = self._allocate_id()

        if self.flavor is PipelineFlavor.STRUCTURED:
            kind = NodeKind.CUSTOM_COMMAND
            attributes: Dict[str, Any] = {
                "name": f"job-{order_index}",
                "image": self.config["structured"]["default_image"],
                "commands": 'echo "Custom command"',
            }
        else:
            attributes = dict(NODE_PALETTE.get(kind, {}))
        attributes.update(event.attributes)

        node = PipelineNode(
            id=node_id,
            kind=kind,
            display_name=event.display_name,
            attributes=attributes,
            original_order_index=order_index,
            position=event.position or self._layout(len(self._graph)),
        )
        candidate = self._graph.copy()
        candidate.add_node(node)
        return self._commit_graph_edit(event, candidate, message="node added", node_id=node_id, kind=kind.value)

    def _on_node_moved(self, event: NodeMoved) -> SyncResult:
        node = self._graph.find_node(event.node_id)
        if node is None:
            return self._result(event, applied=False, issues=[unresolved_reference(reference=event.node_id)])
        self._graph.replace_node(replace(node, position=event.position))
        return self._result(event, applied=True)

    def _on_node_removed(self, event: NodeRemoved) -> SyncResult:
        node = self._graph.find_node(event.node_id)
        if node is None:
            return self._result(event, applied=False, issues=[unresolved_reference(reference=event.node_id)])
        if node.kind is NodeKind.START and self.flavor is PipelineFlavor.SCRIPT:
            issue = rejected_edit(
                event_type=event_type(event), reason="start marker cannot be removed", node_id=node.id
            )
            return self._result(event, applied=False, issues=[issue])

        candidate = self._graph.copy()
        candidate.remove_node(node.id)
        return self._commit_graph_edit(event, candidate, message="node removed", node_id=node.id)

    def _on_edge_added(self, event: EdgeAdded) -> SyncResult:
        missing = [i for i in (event.source_id, event.target_id) if i not in self._graph]
        if missing:
            issues = [unresolved_reference(reference=i, referenced_by="edge") for i in missing]
            return self._result(event, applied=False, issues=issues)
        if event.source_id == event.target_id or self._graph.has_edge_between(event.source_id, event.target_id):
            self.journal.log(
                representation="graph",
                level="debug",
                message="edge ignored",
                source_id=event.source_id,
                target_id=event.target_id,
            )
            return self._result(event, applied=False)

        edge_id = f"edge-{event.source_id}-{event.target_id}"
        candidate = self._graph.copy()
        candidate.add_edge(PipelineEdge(id=edge_id, source_id=event.source_id, target_id=event.target_id))
        return self._commit_graph_edit(event, candidate, message="edge added", edge_id=edge_id)

    def _on_edge_removed(self, event: EdgeRemoved) -> SyncResult:
        if self._graph.find_edge(event.edge_id) is None:
            return self._result(event, applied=False, issues=[unresolved_reference(reference=event.edge_id)])
        candidate = self._graph.copy()
        candidate.remove_edge(event.edge_id)
        return self._commit_graph_edit(event, candidate, message="edge removed", edge_id=event.edge_id)

    def _on_attributes_changed(self, event: AttributesChanged) -> SyncResult:
        node = self._graph.find_node(event.node_id)
        if node is None:
            return self._result(event, applied=False, issues=[unresolved_reference(reference=event.node_id)])

        attributes = dict(node.attributes)
        for key, value in event.attributes.items():
            if value is None:
                attributes.pop(key, None)
            else:
                attributes[key] = value

        display_name = node.display_name if event.display_name is None else event.display_name
        if self.flavor is PipelineFlavor.STRUCTURED:
            # no texto estruturado o rótulo e o nome do job andam juntos
            if event.display_name and "name" not in event.attributes:
                attributes["name"] = "-".join(event.display_name.lower().split())
            elif "name" in event.attributes and event.display_name is None:
                display_name = ""
        candidate = self._graph.copy()
        candidate.replace_node(replace(node, attributes=attributes, display_name=display_name))
        return self._commit_graph_edit(event, candidate, message="attributes changed", node_id=node.id)

    def _on_manual_toggled(self, event: ManualEditToggled) -> SyncResult:
        rep = Representation(event.representation)
        if rep not in self.flavor.representations:
            issue = representation_not_editable(representation=rep.value, flavor=self.flavor.value)
            return self._result(event, applied=False, issues=[issue])

        if event.active:
            changed = rep not in self._manual
            self._manual.add(rep)
            self.journal.log(representation=rep.value, level="info", message="manual edit started")
            return self._result(event, applied=changed)

        if rep not in self._manual:
            return self._result(event, applied=False)

        self._manual.discard(rep)
        self.journal.log(representation=rep.value, level="info", message="manual edit finished")
        text = self._render(rep)
        regenerated: Dict[str, str] = {}
        if text != self._texts.get(rep):
            self._texts[rep] = text
            regenerated[rep.value] = text
        return self._result(event, applied=True, regenerated=regenerated)
