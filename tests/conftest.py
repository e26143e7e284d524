# tests/conftest.py
"""
Fixtures compartilhados para testes do pipesync.

Este módulo define fixtures reutilizáveis que fornecem:
- textos estruturados e scripts planos representativos
- grafos pequenos e determinísticos (cadeia, ramificação, ciclo)
- scheduler manual para observar a liberação adiada da supressão

Decisões arquiteturais:
    - Textos são fornecidos como strings para evitar I/O
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - Grafos são construídos com ids explícitos

Invariantes:
    - Nenhuma fixture realiza I/O
    - Nenhuma fixture depende de estado global

Limites explícitos:
    - Não substituir testes de integração do controlador
    - Não conter lógica condicional complexa

Este módulo existe como infraestrutura de teste e não
como validação funcional do motor.
"""

import pytest


# =====================================================
# Textos de entrada
# =====================================================

@pytest.fixture
def build_test_deploy_yaml() -> str:
    """
    Texto estruturado do cenário canônico build → test → deploy.

    Returns:
        str: YAML com três jobs e duas dependências.
    """
    return """\
- name: build
  image: node:18
  commands: |
    npm ci
    npm run build
  environment:
    NODE_ENV: production

- name: test
  image: node:18
  commands: npm test
  dependencies:
    - build

- name: deploy
  image: alpine:3.19
  commands: ./deploy.sh --env=production
  dependencies:
    - test
"""


@pytest.fixture
def sample_script() -> str:
    """
    Script plano com preâmbulo, rótulos em comentário e um bloco indentado.

    Returns:
        str: Script shell sequencial.
    """
    return """\
#!/bin/bash
# CI/CD Pipeline
echo "Starting pipeline..."

# Checkout
git clone -b develop https://github.com/acme/shop.git

# Install Dependencies
npm ci

# Unit Tests
npm test

# Release
./deploy.sh --env=staging
"""


# =====================================================
# Grafos
# =====================================================

@pytest.fixture
def make_graph():
    """
    Factory de grafos a partir de listas compactas.

    Uso:
        make_graph([("start", "start"), ("a", "build_npm")], [("start", "a")])

    Returns:
        Callable: Constrói um `PipelineGraph` com ids e arestas explícitos.
    """
    from pipesync.core.graph.model import PipelineGraph
    from pipesync.core.graph.types import PipelineEdge, PipelineNode

    def _make(nodes, edges=()):
        graph = PipelineGraph()
        for node_id, kind, *rest in nodes:
            attributes = rest[0] if rest else {}
            graph.add_node(PipelineNode(id=node_id, kind=kind, attributes=attributes))
        for source_id, target_id in edges:
            graph.add_edge(
                PipelineEdge(id=f"edge-{source_id}-{target_id}", source_id=source_id, target_id=target_id)
            )
        return graph

    return _make


@pytest.fixture
def branching_graph(make_graph):
    """
    Grafo script com ramificação após `build`.

        start → install → build → test
                                → lint
    """
    return make_graph(
        [
            ("start", "start"),
            ("install", "prebuild_node"),
            ("build", "build_npm"),
            ("test", "run_tests"),
            ("lint", "custom_command", {"command": "npm run lint"}),
        ],
        [("start", "install"), ("install", "build"), ("build", "test"), ("build", "lint")],
    )


# =====================================================
# Controlador
# =====================================================

@pytest.fixture
def manual_scheduler():
    """
    Scheduler que apenas acumula continuações até `flush()`.

    Simula um laço de eventos (ex.: `loop.call_soon`) sob controle do teste.
    """

    class _ManualScheduler:
        def __init__(self):
            self.pending = []

        def __call__(self, callback):
            self.pending.append(callback)

        def flush(self):
            pending, self.pending = self.pending, []
            for callback in pending:
                callback()

    return _ManualScheduler()
