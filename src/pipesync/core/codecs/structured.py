# src/pipesync/core/codecs/structured.py
"""
Codec de texto estruturado (lista de jobs com dependências).

Este módulo converte entre o formato textual declarativo do pipeline e o
grafo canônico:

    - name: build
      image: node:18
      commands: |
        npm ci
        npm run build
      environment:
        NODE_ENV: production

    - name: test
      image: node:18
      dependencies:
        - build

Responsabilidades do módulo:
    - Parsing tolerante do YAML em nós e arestas (`parse_structured_text`)
    - Geração determinística do YAML a partir do grafo (`generate_structured_text`)
    - Passo de legibilidade: linha em branco entre registros

Princípios fundamentais:
    - Ids de nós são posicionais (`job-<index>`): reparsear texto inalterado
      produz os mesmos ids, o que preserva posições visuais
    - Dependências não resolvidas são descartadas em silêncio: o texto pode
      estar transitoriamente inconsistente durante a edição
    - Estrutura malformada nunca levanta exceção: retorna zero nós e um aviso

Decisões arquiteturais:
    - Aresta `source → target` significa "target depende de source"
    - Resolução de nomes é case-insensitive; nomes de dependência emitidos
      são normalizados para minúsculas
    - Listas de dependências são ordenadas alfabeticamente e deduplicadas
    - Jobs são emitidos por `original_order_index`; nós sem índice vêm depois,
      ordenados pela posição horizontal

Invariantes:
    - Texto gerado nunca contém dependência pendente
    - Duas gerações do mesmo grafo são idênticas byte a byte
    - Grafo vazio gera string vazia ("sem pipeline", não erro)

Limites explícitos:
    - Não lida com marcador de início (o sabor estruturado não o possui)
    - Não detecta ciclos (a lista é declarativa, não ordem de execução)
    - Não versiona nem migra o formato
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml  # PyYAML

from pipesync.core.config.defaults import DEFAULT_SYNC_CONFIG
from pipesync.core.errors import (
    SyncIssue,
    invalid_record,
    recoverable_parse_failure,
    unresolved_reference,
)
from pipesync.core.graph.model import PipelineGraph
from pipesync.core.graph.types import NodeKind, PipelineEdge, PipelineNode
from pipesync.core.ordering.planner import dependency_closure

from .yaml_style import dump_yaml

REPRESENTATION = "structured"


@dataclass(frozen=True)
class StructuredParseResult:
    """
    Resultado do parsing do texto estruturado.

    Campos:
        - nodes: nós na ordem de declaração
        - edges: arestas "dependência → dependente"
        - warnings: avisos recuperáveis e referências descartadas
    """
    nodes: List[PipelineNode] = field(default_factory=list)
    edges: List[PipelineEdge] = field(default_factory=list)
    warnings: List[SyncIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.nodes)


def job_id(index: int) -> str:
    return f"job-{index}"


def _commands_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, list):
        text = "\n".join(str(item) for item in raw)
    else:
        text = str(raw)
    text = text.rstrip("\n")
    return text or None


def parse_structured_text(text: str) -> StructuredParseResult:
    """
    Converte o texto estruturado em nós e arestas.

    Decisões arquiteturais:
        - Registros inválidos são ignorados com aviso, mas consomem seu índice
          de declaração para manter os ids dos registros seguintes estáveis
        - Nomes duplicados: a primeira declaração vence na resolução
        - Dependências repetidas produzem uma única aresta

    Args:
        text (str): Texto YAML com uma sequência de registros de job.

    Returns:
        StructuredParseResult: Nós, arestas e avisos. Nunca levanta exceção
        por conteúdo malformado.
    """
    warnings: List[SyncIssue] = []

    try:
        data = yaml.safe_load(text) if text and text.strip() else None
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        reason = getattr(exc, "problem", None) or str(exc)
        return StructuredParseResult(
            warnings=[recoverable_parse_failure(representation=REPRESENTATION, reason=reason, line=line)]
        )

    if data is None:
        return StructuredParseResult()

    if not isinstance(data, list):
        return StructuredParseResult(
            warnings=[
                recoverable_parse_failure(
                    representation=REPRESENTATION,
                    reason=f"expected a list of job records, got {type(data).__name__}",
                )
            ]
        )

    nodes: List[PipelineNode] = []
    declared: List[Tuple[PipelineNode, List[str]]] = []
    index_by_name: Dict[str, str] = {}

    for index, record in enumerate(data):
        if not isinstance(record, dict):
            warnings.append(invalid_record(index=index, reason=f"not a mapping ({type(record).__name__})"))
            continue

        name = record.get("name")
        if name is None or not str(name).strip():
            warnings.append(invalid_record(index=index, reason="missing name"))
            continue
        name = str(name).strip()

        attributes: Dict[str, Any] = {"name": name}
        if record.get("image") is not None:
            attributes["image"] = str(record["image"])

        commands = _commands_text(record.get("commands"))
        if commands is not None:
            attributes["commands"] = commands

        environment = record.get("environment")
        if isinstance(environment, dict):
            if environment:
                attributes["env_vars"] = {str(k): "" if v is None else str(v) for k, v in environment.items()}
        elif environment is not None:
            warnings.append(invalid_record(index=index, reason="environment is not a mapping"))

        raw_deps = record.get("dependencies") or []
        if not isinstance(raw_deps, list):
            raw_deps = [raw_deps]
        dependencies = [str(d).strip() for d in raw_deps if d is not None and str(d).strip()]

        node = PipelineNode(
            id=job_id(index),
            kind=NodeKind.CUSTOM_COMMAND,
            attributes=attributes,
            original_order_index=index,
        )
        nodes.append(node)
        declared.append((node, dependencies))

        key = name.lower()
        if key in index_by_name:
            warnings.append(invalid_record(index=index, reason=f"duplicate job name '{name}'"))
        else:
            index_by_name[key] = node.id

    edges: List[PipelineEdge] = []
    for node, dependencies in declared:
        seen: set = set()
        for dep in dependencies:
            source_id = index_by_name.get(dep.lower())
            if source_id is None:
                warnings.append(unresolved_reference(reference=dep, referenced_by=node.attributes["name"]))
                continue
            if source_id in seen:
                continue
            seen.add(source_id)
            edges.append(PipelineEdge(id=f"edge-{source_id}-{node.id}", source_id=source_id, target_id=node.id))

    return StructuredParseResult(nodes=nodes, edges=edges, warnings=warnings)


def job_name(node: PipelineNode) -> str:
    """Nome do job no formato textual: atributo `name` ou rótulo normalizado."""
    name = node.attributes.get("name")
    if name:
        return str(name)
    return "-".join(node.display_name.lower().split())


def _emission_key(item: Tuple[int, PipelineNode]) -> Tuple[int, float, int]:
    insertion, node = item
    if node.original_order_index is not None:
        return (0, float(node.original_order_index), insertion)
    return (1, float(node.position.x), insertion)


def _record(node: PipelineNode, dependencies: List[str], default_image: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "name": job_name(node),
        "image": str(node.attributes.get("image") or default_image),
    }
    commands = _commands_text(node.attributes.get("commands"))
    if commands:
        # newline final: bloco literal `|` sem indicador de chomping
        record["commands"] = commands + "\n" if "\n" in commands else commands
    env_vars = node.attributes.get("env_vars") or {}
    if env_vars:
        record["environment"] = {str(k): str(v) for k, v in env_vars.items()}
    if dependencies:
        record["dependencies"] = dependencies
    return record


def _separate_records(text: str) -> str:
    """Insere uma linha em branco antes de cada registro, exceto o primeiro."""
    lines = text.splitlines()
    out: List[str] = []
    for line in lines:
        if line.startswith("- ") and out:
            out.append("")
        out.append(line)
    return "\n".join(out) + "\n"


def generate_structured_text(graph: PipelineGraph, *, config: Optional[Dict[str, Any]] = None) -> str:
    """
    Serializa o grafo no formato de texto estruturado.

    Args:
        graph (PipelineGraph): Grafo no sabor estruturado.
        config (Optional[Dict[str, Any]]): Configuração efetiva (seção `structured`).

    Returns:
        str: Texto YAML; string vazia para grafo sem jobs.
    """
    section = (config or DEFAULT_SYNC_CONFIG).get("structured", {}) or {}
    default_image = str(section.get("default_image") or DEFAULT_SYNC_CONFIG["structured"]["default_image"])
    indent = int(section.get("indent") or 2)

    jobs = [
        (i, n) for i, n in enumerate(graph.nodes) if n.kind != NodeKind.START
    ]
    if not jobs:
        return ""

    closure = dependency_closure(graph)
    records: List[Dict[str, Any]] = []
    for _, node in sorted(jobs, key=_emission_key):
        names = set()
        for source_id in closure.get(node.id, set()):
            source = graph.find_node(source_id)
            if source is None or source.kind == NodeKind.START:
                continue
            names.add(job_name(source).lower())
        records.append(_record(node, sorted(names), default_image))

    return _separate_records(dump_yaml(records, indent=indent))
