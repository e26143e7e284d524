# src/pipesync/core/codecs/workflow.py
"""
Gerador de texto de workflow (estilo GitHub Actions).

Formato apenas de saída: consome a sequência linearizada de nós e emite
um documento em três partes:
    1. passo fixo de checkout
    2. um passo de setup por ecossistema detectado (javascript, python, java,
       nesta ordem, sem repetição)
    3. um passo por nó do pipeline, com o mesmo corpo de comando do script
       plano (`commands.node_commands`)

Invariantes:
    - Sequência vazia gera um comentário placeholder, nunca um documento
      estruturalmente inválido
    - Nome, gatilhos, runner e versões de toolchain vêm da configuração

Limites explícitos:
    - Não existe parser para este formato
    - Não representa paralelismo entre jobs (um único job sequencial)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pipesync.core.config.defaults import DEFAULT_SYNC_CONFIG
from pipesync.core.graph.model import PipelineGraph
from pipesync.core.graph.types import ECOSYSTEMS, NodeKind, PipelineNode
from pipesync.core.ordering.planner import linearize

from .commands import node_commands
from .flat_script import RenderedText
from .yaml_style import dump_yaml

HEADER = "# Generated CI/CD Pipeline"
EMPTY_WORKFLOW_PLACEHOLDER = "# Add a Start node and connect stages to generate YAML."


def _setup_step(ecosystem: str, section: Dict[str, Any]) -> Dict[str, Any]:
    if ecosystem == "javascript":
        return {
            "name": "Setup Node.js",
            "uses": "actions/setup-node@v3",
            "with": {"node-version": str(section["node_version"])},
        }
    if ecosystem == "python":
        return {
            "name": "Setup Python",
            "uses": "actions/setup-python@v4",
            "with": {"python-version": str(section["python_version"])},
        }
    return {
        "name": "Setup Java",
        "uses": "actions/setup-java@v3",
        "with": {"distribution": "temurin", "java-version": str(section["java_version"])},
    }


def generate_workflow_text(nodes: Sequence[PipelineNode], *, config: Optional[Dict[str, Any]] = None) -> str:
    """
    Gera o workflow a partir de uma sequência linearizada de nós.

    Args:
        nodes (Sequence[PipelineNode]): Sequência linearizada (START primeiro).
        config (Optional[Dict[str, Any]]): Configuração efetiva (seção `workflow`).

    Returns:
        str: Documento YAML com cabeçalho, ou placeholder para sequência vazia.
    """
    if not nodes:
        return EMPTY_WORKFLOW_PLACEHOLDER

    section = dict(DEFAULT_SYNC_CONFIG["workflow"])
    section.update((config or {}).get("workflow", {}) or {})

    detected = {node.ecosystem for node in nodes}
    steps: List[Dict[str, Any]] = [{"name": "Checkout code", "uses": section["checkout_action"]}]
    steps.extend(_setup_step(eco, section) for eco in ECOSYSTEMS if eco in detected)

    for node in nodes:
        if node.kind == NodeKind.START:
            continue
        steps.append({"name": node.display_name, "run": "\n".join(node_commands(node))})

    document = {
        "name": section["name"],
        "on": list(section["triggers"]),
        "jobs": {
            section["job_id"]: {
                "runs-on": section["runs_on"],
                "steps": steps,
            }
        },
    }
    return f"{HEADER}\n{dump_yaml(document)}"


def render_workflow_text(graph: PipelineGraph, *, config: Optional[Dict[str, Any]] = None) -> RenderedText:
    """Lineariza o grafo e gera o workflow, expondo a truncagem."""
    linear = linearize(graph)
    return RenderedText(
        text=generate_workflow_text(linear.nodes, config=config),
        truncated=linear.truncated,
        reason=linear.reason,
    )
