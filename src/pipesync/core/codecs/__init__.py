# src/pipesync/core/codecs/__init__.py

"""
Codecs de texto do pipesync.

Cada codec traduz entre o grafo canônico e uma representação textual:
    - structured  → lista de jobs com dependências (parse + generate)
    - flat_script → script shell sequencial (parse heurístico + generate)
    - workflow    → workflow estilo GitHub Actions (apenas generate)

Codecs nunca levantam exceção por texto malformado: devolvem resultados
estruturados e avisos.
"""

from .commands import dequote, node_commands
from .flat_script import (
    EMPTY_SCRIPT_PLACEHOLDER,
    RenderedText,
    generate_flat_script,
    parse_flat_script,
    render_flat_script,
)
from .script_rules import RULES, ScriptRule, match_rule
from .structured import (
    StructuredParseResult,
    generate_structured_text,
    parse_structured_text,
)
from .workflow import (
    EMPTY_WORKFLOW_PLACEHOLDER,
    generate_workflow_text,
    render_workflow_text,
)

__all__ = [
    "dequote",
    "node_commands",
    "EMPTY_SCRIPT_PLACEHOLDER",
    "RenderedText",
    "generate_flat_script",
    "parse_flat_script",
    "render_flat_script",
    "RULES",
    "ScriptRule",
    "match_rule",
    "StructuredParseResult",
    "generate_structured_text",
    "parse_structured_text",
    "EMPTY_WORKFLOW_PLACEHOLDER",
    "generate_workflow_text",
    "render_workflow_text",
]
