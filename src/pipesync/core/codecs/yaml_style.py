# src/pipesync/core/codecs/yaml_style.py
"""
Estilo de emissão YAML compartilhado pelos geradores.

Strings multilinha são emitidas em bloco literal (`|`), preservando
comandos legíveis no texto estruturado e no workflow.
"""

from typing import Any

import yaml  # PyYAML


class LiteralDumper(yaml.SafeDumper):
    """SafeDumper que emite strings multilinha em bloco literal."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> Any:
        # listas aninhadas indentadas sob a chave pai
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


LiteralDumper.add_representer(str, _represent_str)


def dump_yaml(payload: Any, *, indent: int = 2) -> str:
    """Serializa `payload` com ordem de chaves preservada e estilo de bloco."""
    return yaml.dump(
        payload,
        Dumper=LiteralDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        indent=indent,
        width=4096,
    )
