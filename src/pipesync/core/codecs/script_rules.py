# src/pipesync/core/codecs/script_rules.py
"""
Tabela ordenada de regras do parser de script plano.

Cada regra associa um predicado sobre a linha de comando (em minúsculas)
a um construtor de atributos do nó reconhecido. A primeira regra que
casa vence; a última regra é um catch-all que preserva o texto bruto.

Decisões arquiteturais:
    - Padrões mais específicos vêm antes dos genéricos
      (`pnpm install` antes de `npm install`, webhooks Slack antes de `deploy`)
    - Regras de kinds derivados (git, pacotes OS, gerenciador node, docker,
      slack) extraem atributos da linha e descartam o texto bruto
    - Regras de kinds com comando bruto guardam o bloco em `command`

Invariantes:
    - `RULES` termina sempre com a regra catch-all
    - Nenhum construtor levanta exceção para entrada arbitrária

Limites explícitos:
    - Não interpreta variáveis, redirecionamentos ou controle de fluxo
"""

from __future__ import annotations

import json
import re
import shlex
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from pipesync.core.graph.types import NodeKind

from .commands import (
    DEFAULT_BRANCH,
    DEFAULT_DEPLOY_TARGET,
    DEFAULT_DOCKERFILE,
    DEFAULT_IMAGE_TAG,
    DEFAULT_OS_PACKAGES,
    DEFAULT_REPO_URL,
    DEFAULT_SLACK_CHANNEL,
    DEFAULT_SLACK_MESSAGE,
)


Attributes = Dict[str, Any]


@dataclass(frozen=True)
class ScriptRule:
    """
    Regra de reconhecimento de uma linha de script.

    Campos:
        - name: identificador estável da regra
        - kind: kind do nó produzido
        - label: rótulo default quando o script não traz comentário
        - predicate: recebe a primeira linha do bloco em minúsculas
        - build: recebe (primeira linha, bloco completo) e devolve atributos
    """
    name: str
    kind: NodeKind
    label: str
    predicate: Callable[[str], bool]
    build: Callable[[str, str], Attributes]


def _tokens(line: str) -> List[str]:
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()


def _flag_value(line: str, *flags: str) -> Optional[str]:
    tokens = _tokens(line)
    for i, token in enumerate(tokens):
        if token in flags and i + 1 < len(tokens):
            return tokens[i + 1]
        for flag in flags:
            if flag.startswith("--") and token.startswith(flag + "="):
                return token[len(flag) + 1:]
    return None


def _git_clone(line: str, block: str) -> Attributes:
    tokens = _tokens(line)
    repo = None
    try:
        start = tokens.index("clone") + 1
    except ValueError:
        start = len(tokens)
    skip = False
    for token in tokens[start:]:
        if skip:
            skip = False
            continue
        if token in ("-b", "--branch", "--depth", "-o", "--origin"):
            skip = True
            continue
        if token.startswith("-"):
            continue
        repo = token
        break
    return {
        "repo_url": repo or DEFAULT_REPO_URL,
        "branch": _flag_value(line, "-b", "--branch") or DEFAULT_BRANCH,
    }


_CHECKOUT = re.compile(r"git checkout(?:\s+-\S+)*\s+(\S+)")


def _git_checkout(line: str, block: str) -> Attributes:
    match = _CHECKOUT.search(line)
    return {
        "repo_url": DEFAULT_REPO_URL,
        "branch": match.group(1) if match else DEFAULT_BRANCH,
    }


_OS_INSTALL = (
    ("apt", re.compile(r"apt-get install((?:\s+-\S+)*)\s+(.+)")),
    ("yum", re.compile(r"yum install((?:\s+-\S+)*)\s+(.+)")),
    ("apk", re.compile(r"apk add((?:\s+-\S+)*)\s+(.+)")),
)


def _linux_install(line: str, block: str) -> Attributes:
    for os_pkg, pattern in _OS_INSTALL:
        match = pattern.search(line)
        if match:
            packages = match.group(2).split("&&")[0].split(";")[0].strip()
            return {"os_pkg": os_pkg, "packages": packages or DEFAULT_OS_PACKAGES}
    return {"os_pkg": "apt", "packages": DEFAULT_OS_PACKAGES}


def _manager(name: str) -> Callable[[str, str], Attributes]:
    return lambda line, block: {"manager": name}


def _raw(**extra: Any) -> Callable[[str, str], Attributes]:
    def build(line: str, block: str) -> Attributes:
        return {"command": block, **extra}
    return build


def _deploy(line: str, block: str) -> Attributes:
    return {
        "command": block,
        "environment": _flag_value(line, "--env", "--environment") or DEFAULT_DEPLOY_TARGET,
    }


def _docker_build(line: str, block: str) -> Attributes:
    return {
        "dockerfile": _flag_value(line, "-f", "--file") or DEFAULT_DOCKERFILE,
        "tag": _flag_value(line, "-t", "--tag") or DEFAULT_IMAGE_TAG,
    }


def _notify_slack(line: str, block: str) -> Attributes:
    attributes: Attributes = {"channel": DEFAULT_SLACK_CHANNEL, "message": DEFAULT_SLACK_MESSAGE}
    data = _flag_value(line, "--data", "--data-raw", "-d")
    if data:
        try:
            payload = json.loads(data)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            if payload.get("channel"):
                attributes["channel"] = str(payload["channel"])
            if payload.get("text"):
                attributes["message"] = str(payload["text"])
    return attributes


def _has(*needles: str) -> Callable[[str], bool]:
    return lambda low: any(n in low for n in needles)


_JAVA_PACKAGE = re.compile(r"\bmvn\b.*\bpackage\b|\bgradlew?\b.*\bbuild\b")


RULES: Tuple[ScriptRule, ...] = (
    ScriptRule("git_clone", NodeKind.GIT_CLONE, "Git Clone", _has("git clone"), _git_clone),
    ScriptRule("git_checkout", NodeKind.GIT_CLONE, "Git Checkout", _has("git checkout"), _git_checkout),
    ScriptRule(
        "linux_install", NodeKind.LINUX_INSTALL, "Linux Install",
        _has("apt-get install", "yum install", "apk add"), _linux_install,
    ),
    ScriptRule("pnpm_install", NodeKind.PREBUILD_NODE, "Install Dependencies", _has("pnpm install"), _manager("pnpm")),
    ScriptRule("yarn_install", NodeKind.PREBUILD_NODE, "Install Dependencies", _has("yarn install"), _manager("yarn")),
    ScriptRule("npm_install", NodeKind.PREBUILD_NODE, "Install Dependencies", _has("npm ci", "npm install"), _manager("npm")),
    ScriptRule("pip_install", NodeKind.PREBUILD_PYTHON, "Install Python Dependencies", _has("pip install"), _raw()),
    ScriptRule("py_compile", NodeKind.BUILD_PYTHON, "Build Python", _has("py_compile"), _raw()),
    ScriptRule("pytest", NodeKind.RUN_TESTS, "Run Tests", _has("pytest"), _raw(test_type="unit", lang="python")),
    ScriptRule("python_deploy", NodeKind.DEPLOY, "Deploy", _has("python deploy"), _deploy),
    ScriptRule("js_test", NodeKind.RUN_TESTS, "Run Tests", _has("npm test", "yarn test"), _raw(test_type="unit")),
    ScriptRule("js_build", NodeKind.BUILD_NPM, "Build NPM", _has("npm run build", "yarn build"), _raw()),
    ScriptRule("setup_py_build", NodeKind.BUILD_PYTHON, "Build Python", _has("setup.py build"), _raw()),
    ScriptRule(
        "java_dependencies", NodeKind.PREBUILD_JAVA, "Prebuild Java",
        _has("mvn dependency:", "chmod +x gradlew", "gradle dependencies"), _raw(),
    ),
    ScriptRule("java_build", NodeKind.BUILD_JAVA, "Build Java", lambda low: bool(_JAVA_PACKAGE.search(low)), _raw()),
    ScriptRule("docker_build", NodeKind.DOCKER_BUILD, "Docker Build", _has("docker build"), _docker_build),
    ScriptRule(
        "slack_webhook", NodeKind.NOTIFY_SLACK, "Notify Slack",
        lambda low: "curl" in low and "slack" in low, _notify_slack,
    ),
    ScriptRule("deploy", NodeKind.DEPLOY, "Deploy", _has("deploy", "kubectl"), _deploy),
    ScriptRule("custom", NodeKind.CUSTOM_COMMAND, "Custom Command", lambda low: True, _raw()),
)

CATCH_ALL = RULES[-1]

# Kinds cujo comando é derivado de atributos: um bloco multilinha não
# cabe nesses atributos e cai no catch-all para não perder texto.
DERIVED_KINDS = frozenset(
    {
        NodeKind.GIT_CLONE,
        NodeKind.LINUX_INSTALL,
        NodeKind.PREBUILD_NODE,
        NodeKind.DOCKER_BUILD,
        NodeKind.NOTIFY_SLACK,
    }
)


def match_rule(block: str) -> Tuple[ScriptRule, Attributes]:
    """
    Aplica a tabela de regras a um bloco de comando.

    Args:
        block (str): Comando, possivelmente multilinha (linhas de
            continuação já sem indentação).

    Returns:
        Tuple[ScriptRule, Attributes]: Regra vencedora e atributos do nó.
    """
    first = block.splitlines()[0] if block else ""
    low = first.lower()
    for rule in RULES:
        if not rule.predicate(low):
            continue
        if rule.kind in DERIVED_KINDS and "\n" in block:
            break
        return rule, rule.build(first, block)
    return CATCH_ALL, CATCH_ALL.build(first, block)
