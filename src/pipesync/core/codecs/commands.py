# src/pipesync/core/codecs/commands.py
"""
Derivação de comandos por kind de nó.

Fonte única das linhas de comando emitidas pelo gerador de script plano e
pelo gerador de workflow, garantindo que ambos descrevam o mesmo pipeline.

Decisões arquiteturais:
    - Kinds com atributos estruturados (git, pacotes OS, gerenciador node,
      docker, slack) sempre derivam o comando desses atributos
    - Nos demais kinds, um atributo `command` presente é emitido verbatim
      (texto importado de um script preserva fidelidade de round-trip)
    - Atributos ausentes recebem defaults que o parser de script reconhece
      novamente como o mesmo kind

Invariantes:
    - Todo nó produz ao menos uma linha de comando
    - Nós START não produzem comandos

Limites explícitos:
    - Não escreve preâmbulo, comentários ou indentação de formato
"""

from __future__ import annotations

import json
import shlex
from typing import Any, Callable, Dict, List

from pipesync.core.graph.types import NodeKind, PipelineNode


DEFAULT_REPO_URL = "https://github.com/user/repo.git"
DEFAULT_BRANCH = "main"
DEFAULT_OS_PACKAGES = "git curl"
DEFAULT_DOCKERFILE = "Dockerfile"
DEFAULT_IMAGE_TAG = "myapp:latest"
DEFAULT_DEPLOY_TARGET = "production"
DEFAULT_SLACK_CHANNEL = "#deployments"
DEFAULT_SLACK_MESSAGE = "Deployment completed!"


def dequote(value: Any) -> str:
    """Remove aspas das extremidades de um valor informado pelo usuário."""
    if value is None:
        return ""
    s = str(value).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "'\"`":
        return s[1:-1]
    return s


def _attr(node: PipelineNode, key: str, default: str) -> str:
    return dequote(node.attributes.get(key)) or default


def _git_clone(node: PipelineNode) -> List[str]:
    return [f"git clone -b {_attr(node, 'branch', DEFAULT_BRANCH)} {_attr(node, 'repo_url', DEFAULT_REPO_URL)}"]


def _linux_install(node: PipelineNode) -> List[str]:
    pkgs = _attr(node, "packages", DEFAULT_OS_PACKAGES)
    os_pkg = node.attributes.get("os_pkg")
    if os_pkg == "yum":
        return [f"sudo yum install -y {pkgs}"]
    if os_pkg == "apk":
        return [f"sudo apk add --no-cache {pkgs}"]
    return [f"sudo apt-get update && sudo apt-get install -y {pkgs}"]


def _prebuild_node(node: PipelineNode) -> List[str]:
    manager = node.attributes.get("manager")
    if manager == "yarn":
        return ["yarn install --frozen-lockfile"]
    if manager == "pnpm":
        return ["pnpm install --frozen-lockfile"]
    return ["npm ci"]


def _docker_build(node: PipelineNode) -> List[str]:
    return [
        f"docker build -f {_attr(node, 'dockerfile', DEFAULT_DOCKERFILE)} "
        f"-t {_attr(node, 'tag', DEFAULT_IMAGE_TAG)} ."
    ]


def _notify_slack(node: PipelineNode) -> List[str]:
    payload = json.dumps(
        {
            "channel": node.attributes.get("channel") or DEFAULT_SLACK_CHANNEL,
            "text": node.attributes.get("message") or DEFAULT_SLACK_MESSAGE,
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return [f"curl -X POST -H 'Content-type: application/json' --data {shlex.quote(payload)} $SLACK_WEBHOOK"]


def _run_tests(node: PipelineNode) -> List[str]:
    if node.attributes.get("lang") == "python":
        return ["python -m pytest tests/"]
    return ["npm test"]


def _deploy(node: PipelineNode) -> List[str]:
    return [f"./deploy.sh --env={_attr(node, 'environment', DEFAULT_DEPLOY_TARGET)}"]


# Kinds cujo comando é sempre derivado de atributos estruturados.
_DERIVED: Dict[NodeKind, Callable[[PipelineNode], List[str]]] = {
    NodeKind.GIT_CLONE: _git_clone,
    NodeKind.LINUX_INSTALL: _linux_install,
    NodeKind.PREBUILD_NODE: _prebuild_node,
    NodeKind.DOCKER_BUILD: _docker_build,
    NodeKind.NOTIFY_SLACK: _notify_slack,
}

# Kinds que aceitam texto bruto em `command`, com default quando ausente.
_DEFAULTS: Dict[NodeKind, Callable[[PipelineNode], List[str]]] = {
    NodeKind.PREBUILD_PYTHON: lambda n: ["python -m pip install -r requirements.txt"],
    NodeKind.PREBUILD_JAVA: lambda n: ["mvn dependency:resolve"],
    NodeKind.BUILD_NPM: lambda n: ["npm run build"],
    NodeKind.BUILD_PYTHON: lambda n: ["python -m py_compile app.py"],
    NodeKind.BUILD_JAVA: lambda n: ["mvn -B package --file pom.xml"],
    NodeKind.RUN_TESTS: _run_tests,
    NodeKind.DEPLOY: _deploy,
    NodeKind.CUSTOM_COMMAND: lambda n: ['echo "Custom command"'],
}


def node_commands(node: PipelineNode) -> List[str]:
    """
    Linhas de comando de um nó, na ordem de execução.

    Args:
        node (PipelineNode): Nó do pipeline.

    Returns:
        List[str]: Linhas de comando; vazia apenas para START.
    """
    if node.kind == NodeKind.START:
        return []

    derive = _DERIVED.get(node.kind)
    if derive is not None:
        return derive(node)

    raw = node.attributes.get("command") or node.attributes.get("commands")
    if raw:
        lines = [line.strip() for line in str(raw).splitlines() if line.strip()]
        if lines:
            return lines

    return _DEFAULTS.get(node.kind, lambda n: [f'echo "Executing {n.display_name}"'])(node)
