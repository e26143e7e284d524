"""
pipesync — Canonical Issue Structures (v1)

Este módulo define o padrão canônico de avisos do pipesync.
Avisos são sinais não fatais devolvidos pelos codecs e pelo controlador,
devendo ser:

- explícitos
- serializáveis
- acionáveis

Nada neste subsistema é fatal: o grafo permanece no último estado válido
e o chamador recebe um `SyncIssue` em vez de uma exceção.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"


@dataclass(frozen=True)
class SyncIssue:
    """
    Payload canônico de aviso do pipesync.

    Campos:
    - type: código estável do aviso (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    - severity: `warning` (exibir ao usuário) ou `info` (sinal informativo)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    severity: str = SEVERITY_WARNING

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do aviso."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos (v1)
# ---------------------------------------------------------------------------

RECOVERABLE_PARSE_FAILURE = "RECOVERABLE_PARSE_FAILURE"
EMPTY_PARSE = "EMPTY_PARSE"
INVALID_RECORD = "INVALID_RECORD"
UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
DEGRADED_LINEARIZATION = "DEGRADED_LINEARIZATION"
REPRESENTATION_NOT_EDITABLE = "REPRESENTATION_NOT_EDITABLE"
REJECTED_EDIT = "REJECTED_EDIT"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def recoverable_parse_failure(
    *,
    representation: str,
    reason: str,
    line: Optional[int] = None,
    hint: str = "Corrija o texto; o grafo anterior foi mantido até que o texto volte a ser válido.",
) -> SyncIssue:
    return SyncIssue(
        type=RECOVERABLE_PARSE_FAILURE,
        message="Texto inválido; grafo anterior preservado",
        details={
            "representation": representation,
            "reason": reason,
            "line": line,
        },
        hint=hint,
    )


def empty_parse(
    *,
    representation: str,
    hint: str = "Declare ao menos um job; o grafo anterior foi mantido.",
) -> SyncIssue:
    return SyncIssue(
        type=EMPTY_PARSE,
        message="Nenhum job identificado no texto",
        details={"representation": representation},
        hint=hint,
    )


def invalid_record(
    *,
    index: int,
    reason: str,
    hint: str = "Cada registro deve ser um mapa com ao menos `name`.",
) -> SyncIssue:
    return SyncIssue(
        type=INVALID_RECORD,
        message="Registro de job ignorado",
        details={"index": index, "reason": reason},
        hint=hint,
    )


def unresolved_reference(
    *,
    reference: str,
    referenced_by: Optional[str] = None,
) -> SyncIssue:
    # Estado transitório esperado durante a edição: nunca exibido como erro.
    return SyncIssue(
        type=UNRESOLVED_REFERENCE,
        message="Referência não resolvida descartada",
        details={"reference": reference, "referenced_by": referenced_by},
        hint=None,
        severity=SEVERITY_INFO,
    )


def degraded_linearization(
    *,
    reason: Optional[str],
    emitted: List[str],
    omitted: List[str],
    hint: str = "Formatos sequenciais só representam cadeias simples; o texto estruturado continua completo.",
) -> SyncIssue:
    return SyncIssue(
        type=DEGRADED_LINEARIZATION,
        message="Saída sequencial truncada no primeiro ponto não linear",
        details={"reason": reason, "emitted": emitted, "omitted": omitted},
        hint=hint,
        severity=SEVERITY_INFO,
    )


def representation_not_editable(
    *,
    representation: str,
    flavor: str,
    hint: str = "Edite uma representação pertencente ao sabor ativo do pipeline.",
) -> SyncIssue:
    return SyncIssue(
        type=REPRESENTATION_NOT_EDITABLE,
        message="Representação não editável neste sabor de pipeline",
        details={"representation": representation, "flavor": flavor},
        hint=hint,
    )


def rejected_edit(
    *,
    event_type: str,
    reason: str,
    node_id: Optional[str] = None,
    hint: str = "O marcador de início é único e obrigatório no sabor script.",
) -> SyncIssue:
    return SyncIssue(
        type=REJECTED_EDIT,
        message="Edição do grafo recusada",
        details={"event_type": event_type, "reason": reason, "node_id": node_id},
        hint=hint,
    )
