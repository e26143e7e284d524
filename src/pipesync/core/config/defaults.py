# src/pipesync/core/config/defaults.py
"""
Defaults embutidos do controlador de sincronização.

Cada seção corresponde a um consumidor:
    - structured → codec de texto estruturado
    - layout     → posição de nós criados sem coordenada explícita
    - script     → preâmbulo do script plano
    - workflow   → cabeçalho e versões de toolchain do workflow gerado
"""

from typing import Any, Dict


DEFAULT_SYNC_CONFIG: Dict[str, Any] = {
    "structured": {
        "default_image": "ubuntu:22.04",
        "indent": 2,
    },
    "layout": {
        "origin_x": 300,
        "origin_y": 100,
        "spacing_y": 150,
    },
    "script": {
        "interpreter": "#!/bin/bash",
        "title": "# CI/CD Pipeline",
        "banner": 'echo "Starting pipeline..."',
    },
    "workflow": {
        "name": "CI/CD Pipeline",
        "triggers": ["push", "pull_request"],
        "job_id": "pipeline",
        "runs_on": "ubuntu-latest",
        "checkout_action": "actions/checkout@v3",
        "node_version": "18",
        "python_version": "3.x",
        "java_version": "17",
    },
}
