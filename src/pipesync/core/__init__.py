# src/pipesync/core/__init__.py
"""
Core do pipesync.

Este pacote reúne o motor de sincronização grafo ⇄ texto, independente de
qualquer superfície visual, editor ou camada de persistência.

Componentes principais:
    - graph    → modelo canônico (nós, arestas, PipelineGraph)
    - codecs   → texto estruturado, script plano e workflow
    - ordering → fechamento de dependências e linearização
    - sync     → controlador reentrante, eventos e journal
    - config   → defaults, carregamento e deep-merge
    - errors   → catálogo canônico de avisos (`SyncIssue`)

Princípios fundamentais:
    - Nenhuma decisão silenciosa: avisos são estruturados e registrados
    - Texto malformado nunca derruba o motor
    - Mesma entrada, mesma saída
"""
