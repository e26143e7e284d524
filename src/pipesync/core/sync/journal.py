# src/pipesync/core/sync/journal.py
"""
SyncJournal — log estruturado de uma sessão de sincronização.

O journal é o único destino de observabilidade do controlador:
    - eventos estruturados (aplicações, regenerações, descartes)
    - avisos não fatais agrupados por representação

Princípios fundamentais:
    - Isolamento por sessão (cada controlador possui seu próprio journal)
    - Nenhum logger global, nenhuma I/O
    - Eventos são dicionários serializáveis
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pipesync.core.errors import SyncIssue


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SyncJournal:
    """
    Journal de uma sessão do controlador.

    Campos canônicos:
    - session_id: identificador único da sessão
    - created_at: timestamp UTC de criação
    - events: log estruturado de eventos
    - warnings: avisos (`SyncIssue.to_dict()`) por representação
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=_utc_now)

    events: List[Dict[str, Any]] = field(default_factory=list)
    warnings: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def log(self, *, representation: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "session_id": self.session_id,
            "representation": representation,
            "level": level,
            "message": message,
            "timestamp": _utc_now(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, representation: str, issue: SyncIssue) -> None:
        if representation not in self.warnings:
            self.warnings[representation] = []
        self.warnings[representation].append(issue.to_dict())

    def messages(self, *, level: Optional[str] = None) -> List[str]:
        """Mensagens registradas, opcionalmente filtradas por nível."""
        return [e["message"] for e in self.events if level is None or e["level"] == level]
