# src/pipesync/core/codecs/flat_script.py
"""
Codec de script plano (shell sequencial).

Responsabilidades do módulo:
    - Parsing heurístico, linha a linha, de um script em nós (`parse_flat_script`)
    - Geração do script a partir de uma sequência ordenada de nós
      (`generate_flat_script`)
    - Geração a partir do grafo com sinal explícito de truncagem
      (`render_flat_script`)

Princípios fundamentais:
    - O parser é best-effort e nunca levanta exceção
    - Linhas não reconhecidas viram comandos genéricos com o texto bruto,
      nunca são descartadas
    - A ordem de emissão é exatamente a da linearização em cadeia única

Decisões arquiteturais:
    - Linhas em branco, shebang, comentários, o banner do próprio gerador e
      opções de shell (`set -e`, `set -o ...`) são ignoradas
    - Um comentário imediatamente anterior a um comando vira o rótulo do nó
    - Linhas indentadas após um comando são anexadas a ele (bloco), até uma
      linha em branco ou não indentada
    - Ids são determinísticos: `start`, depois `step-<n>` a partir de 1

Limites explícitos:
    - Não entende controle de fluxo, variáveis ou heredocs
    - Não representa ramificações: o grafo é truncado no primeiro ponto
      não linear e o chamador é avisado
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pipesync.core.config.defaults import DEFAULT_SYNC_CONFIG
from pipesync.core.graph.model import PipelineGraph
from pipesync.core.graph.types import NodeKind, PipelineNode
from pipesync.core.ordering.planner import linearize

from .commands import node_commands
from .script_rules import match_rule

START_ID = "start"
EMPTY_SCRIPT_PLACEHOLDER = "# Add a Start node and connect stages to generate script."


@dataclass(frozen=True)
class RenderedText:
    """
    Texto gerado a partir do grafo, com o sinal de truncagem da linearização.

    Campos:
        - text: texto sintaticamente válido (possivelmente parcial)
        - truncated: True quando nós do grafo ficaram de fora
        - reason: `branch`, `cycle`, `unreachable` ou None
    """
    text: str
    truncated: bool = False
    reason: Optional[str] = None


def _script_section(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    section = dict(DEFAULT_SYNC_CONFIG["script"])
    section.update((config or {}).get("script", {}) or {})
    return section


def _is_preamble(stripped: str, banner: str) -> bool:
    if stripped == banner.strip():
        return True
    return stripped == "set -e" or stripped.startswith("set -o") or stripped.startswith("set -eu")


def _blocks(text: str, banner: str) -> List[Tuple[Optional[str], str]]:
    """Agrupa o script em (rótulo, bloco de comando)."""
    blocks: List[Tuple[Optional[str], List[str]]] = []
    label: Optional[str] = None
    open_block = False

    for raw in text.splitlines():
        stripped = raw.strip()

        if not stripped:
            label = None
            open_block = False
            continue

        if open_block and raw[:1] in (" ", "\t") and not stripped.startswith("#"):
            blocks[-1][1].append(stripped)
            continue
        open_block = False

        if stripped.startswith("#"):
            if not stripped.startswith("#!"):
                label = stripped.lstrip("#").strip() or None
            continue

        if _is_preamble(stripped, banner):
            label = None
            continue

        blocks.append((label, [stripped]))
        label = None
        open_block = True

    return [(lbl, "\n".join(lines)) for lbl, lines in blocks]


def parse_flat_script(text: str, *, config: Optional[Dict[str, Any]] = None) -> List[PipelineNode]:
    """
    Converte um script plano em uma sequência de nós.

    O primeiro nó é sempre o marcador de início sintético; os demais seguem
    a ordem das linhas de comando no script. Cada bloco é classificado pela
    primeira regra que casa (ver `script_rules.RULES`).

    Args:
        text (str): Texto do script.
        config (Optional[Dict[str, Any]]): Configuração efetiva (seção `script`).

    Returns:
        List[PipelineNode]: Nós em ordem de execução, começando por START.
    """
    banner = str(_script_section(config).get("banner") or "")
    nodes: List[PipelineNode] = [PipelineNode(id=START_ID, kind=NodeKind.START, display_name="Start")]

    for n, (label, block) in enumerate(_blocks(text or "", banner), start=1):
        rule, attributes = match_rule(block)
        nodes.append(
            PipelineNode(
                id=f"step-{n}",
                kind=rule.kind,
                display_name=label or rule.label,
                attributes=attributes,
            )
        )

    return nodes


def generate_flat_script(nodes: Sequence[PipelineNode], *, config: Optional[Dict[str, Any]] = None) -> str:
    """
    Serializa uma sequência ordenada de nós em script shell.

    Args:
        nodes (Sequence[PipelineNode]): Sequência linearizada (START primeiro).
        config (Optional[Dict[str, Any]]): Configuração efetiva (seção `script`).

    Returns:
        str: Script completo, ou um comentário placeholder para sequência vazia.
    """
    if not nodes:
        return EMPTY_SCRIPT_PLACEHOLDER

    section = _script_section(config)
    out: List[str] = [
        line for line in (section.get("interpreter"), section.get("title"), section.get("banner")) if line
    ]

    for node in nodes:
        if node.kind == NodeKind.START:
            continue
        out.append("")
        out.append(f"# {node.display_name}")
        # linhas seguintes indentadas: o parser as reabsorve no mesmo bloco
        head, *continuation = node_commands(node)
        out.append(head)
        out.extend(f"  {line}" for line in continuation)

    return "\n".join(out) + "\n"


def render_flat_script(graph: PipelineGraph, *, config: Optional[Dict[str, Any]] = None) -> RenderedText:
    """Lineariza o grafo e gera o script, expondo a truncagem."""
    linear = linearize(graph)
    return RenderedText(
        text=generate_flat_script(linear.nodes, config=config),
        truncated=linear.truncated,
        reason=linear.reason,
    )
