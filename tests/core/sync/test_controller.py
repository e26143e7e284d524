# tests/core/sync/test_controller.py
"""
Testes do controlador de sincronização grafo ⇄ texto.

Este módulo valida o comportamento observável do SyncController em ambos os
sabores de pipeline.

Os testes asseguram que:
- uma atualização causada pelo próprio controlador não volta como edição
- eventos que chegam durante uma aplicação são enfileirados e drenados
- a janela de supressão só fecha na continuação adiada
- falhas de parsing preservam o último grafo válido
- edições manuais bloqueiam a regeneração da representação
- posições visuais sobrevivem a reparsing de texto

Decisões arquiteturais:
    - O scheduler manual substitui o laço de eventos do chamador
    - Os testes observam apenas a superfície pública

Limites explícitos:
    - Não valida os codecs em detalhe (ver tests/core/codecs)
"""

import pytest

try:
    import pipesync
    from pipesync.core.errors import (
        EMPTY_PARSE,
        RECOVERABLE_PARSE_FAILURE,
        REJECTED_EDIT,
        REPRESENTATION_NOT_EDITABLE,
    )
    from pipesync.core.graph.types import NodeKind, Position
    from pipesync.core.sync import (
        AttributesChanged,
        EdgeAdded,
        EdgeRemoved,
        ManualEditToggled,
        NodeAdded,
        NodeMoved,
        NodeRemoved,
        PipelineFlavor,
        Representation,
        SyncController,
        SyncPhase,
        TextEdited,
    )
except Exception as e:  # noqa: BLE001
    SyncController = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o controlador esteja disponível para os testes.

    Invariantes:
        - Se o controlador está ausente, o teste falha imediatamente
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing sync controller. Implement:
- src/pipesync/core/sync/controller.py (SyncController, SyncPhase)
- src/pipesync/core/sync/events.py (eventos de edição)
Import error: {_IMPORT_ERR}
""")


def _structured(**kwargs):
    return SyncController(PipelineFlavor.STRUCTURED, **kwargs)


def _script(**kwargs):
    return SyncController(PipelineFlavor.SCRIPT, **kwargs)


def _text(rep, text):
    return TextEdited(representation=rep, text=text)


# =====================================================
# Estado inicial
# =====================================================

def test_initial_state_per_flavor():
    _require_imports()
    structured = _structured()
    script = _script()

    assert structured.phase is SyncPhase.IDLE
    assert structured.texts == {"structured": ""}
    assert len(structured.snapshot()) == 0

    assert [n.id for n in script.snapshot().nodes] == ["start"]
    assert set(script.texts) == {"flat_script", "workflow"}
    assert script.texts["flat_script"].startswith("#!/bin/bash\n")
    assert "Checkout code" in script.texts["workflow"]


def test_journal_records_controller_start():
    _require_imports()
    controller = _structured()
    first = controller.journal.events[0]

    assert first["message"] == "controller started"
    assert first["flavor"] == "structured"
    assert len(first["config_hash"]) == 64


# =====================================================
# Texto → grafo
# =====================================================

def test_structured_text_replaces_graph(build_test_deploy_yaml):
    _require_imports()
    controller = _structured()
    result = controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))

    assert result.applied is True
    assert [n.id for n in result.graph.nodes] == ["job-0", "job-1", "job-2"]
    assert len(result.graph.edges) == 2
    assert result.regenerated == {}
    assert controller.texts["structured"] == build_test_deploy_yaml


def test_identical_text_is_acknowledged_without_reparse(build_test_deploy_yaml):
    _require_imports()
    controller = _structured()
    controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))
    fingerprint = controller.snapshot().fingerprint()

    result = controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))

    assert result.applied is False
    assert result.graph.fingerprint() == fingerprint
    assert "text acknowledged" in controller.journal.messages(level="debug")


def test_parse_failure_keeps_previous_graph(build_test_deploy_yaml):
    """
    Verifica que texto transitoriamente inválido não esvazia o grafo.

    Invariantes:
        - O grafo anterior é mantido
        - O aviso é devolvido ao chamador e registrado no journal
        - O texto digitado fica retido no editor
    """
    _require_imports()
    controller = _structured()
    controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))
    before = controller.snapshot().fingerprint()

    result = controller.apply_edit(_text(Representation.STRUCTURED, "- name: [unclosed\n"))

    assert result.applied is False
    assert result.graph.fingerprint() == before
    assert [w.type for w in result.warnings] == [RECOVERABLE_PARSE_FAILURE]
    assert controller.texts["structured"] == "- name: [unclosed\n"
    assert controller.journal.warnings["structured"][0]["type"] == RECOVERABLE_PARSE_FAILURE


def test_empty_text_reports_empty_parse(build_test_deploy_yaml):
    _require_imports()
    controller = _structured()
    controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))

    result = controller.apply_edit(_text(Representation.STRUCTURED, ""))

    assert [w.type for w in result.warnings] == [EMPTY_PARSE]
    assert len(controller.snapshot()) == 3


def test_workflow_is_read_only():
    _require_imports()
    controller = _script()
    before = controller.texts["workflow"]

    result = controller.apply_edit(_text(Representation.WORKFLOW, "name: hacked\n"))

    assert result.applied is False
    assert [w.type for w in result.warnings] == [REPRESENTATION_NOT_EDITABLE]
    assert controller.texts["workflow"] == before


def test_structured_controller_rejects_script_text(sample_script):
    _require_imports()
    result = _structured().apply_edit(_text(Representation.FLAT_SCRIPT, sample_script))

    assert [w.type for w in result.warnings] == [REPRESENTATION_NOT_EDITABLE]


def test_script_text_builds_chain_and_workflow(sample_script):
    _require_imports()
    controller = _script()
    result = controller.apply_edit(_text(Representation.FLAT_SCRIPT, sample_script))

    assert [n.id for n in result.graph.nodes] == ["start", "step-1", "step-2", "step-3", "step-4"]
    assert [(e.source_id, e.target_id) for e in result.graph.edges] == [
        ("start", "step-1"),
        ("step-1", "step-2"),
        ("step-2", "step-3"),
        ("step-3", "step-4"),
    ]
    assert set(result.regenerated) == {"workflow"}
    assert "./deploy.sh --env=staging" in result.regenerated["workflow"]
    assert result.truncated is False


def test_script_without_commands_keeps_graph(sample_script):
    _require_imports()
    controller = _script()
    controller.apply_edit(_text(Representation.FLAT_SCRIPT, sample_script))

    result = controller.apply_edit(_text(Representation.FLAT_SCRIPT, "#!/bin/bash\n# nothing yet\n"))

    assert [w.type for w in result.warnings] == [EMPTY_PARSE]
    assert len(controller.snapshot()) == 5


def test_positions_survive_text_reparse(sample_script):
    """
    Verifica que ids posicionais preservam o layout visual.

    Este teste valida que:
    - um nó movido mantém sua posição após reparsing do texto
    - nós novos recebem o layout default
    """
    _require_imports()
    controller = _script()
    controller.apply_edit(_text(Representation.FLAT_SCRIPT, sample_script))
    controller.apply_edit(NodeMoved(node_id="step-2", position=Position(x=10, y=20)))

    edited = sample_script.replace("--env=staging", "--env=production") + "\n# Notify\nmake notify\n"
    result = controller.apply_edit(_text(Representation.FLAT_SCRIPT, edited))

    assert result.applied is True
    assert result.graph.find_node("step-2").position == Position(x=10, y=20)
    assert result.graph.find_node("step-5").position == Position(x=300, y=850)


# =====================================================
# Grafo → texto
# =====================================================

def test_node_added_regenerates_and_echo_is_ignored():
    """
    Verifica a ausência de laço de realimentação.

    Este teste valida que:
    - um nó criado na superfície regenera o texto estruturado
    - devolver o texto regenerado ao controlador não altera o grafo
    - ids e fingerprint permanecem os mesmos
    """
    _require_imports()
    controller = _structured()
    added = controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    regenerated = added.regenerated["structured"]

    assert added.applied is True
    assert [n.id for n in added.graph.nodes] == ["job-0"]
    assert regenerated == '- name: job-0\n  image: ubuntu:22.04\n  commands: echo "Custom command"\n'

    echo = controller.apply_edit(_text(Representation.STRUCTURED, regenerated))

    assert echo.applied is False
    assert echo.graph.fingerprint() == added.graph.fingerprint()
    assert [n.id for n in echo.graph.nodes] == ["job-0"]


def test_reformatted_echo_keeps_fingerprint():
    _require_imports()
    controller = _structured()
    added = controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))

    result = controller.apply_edit(_text(Representation.STRUCTURED, added.regenerated["structured"] + "\n"))

    assert result.applied is True
    assert result.graph.fingerprint() == added.graph.fingerprint()


def test_suppression_window_waits_for_scheduler(manual_scheduler):
    """
    Verifica a janela de supressão com continuação adiada.

    Invariantes:
        - Enquanto a continuação não roda, texto da representação
          regenerada é ignorado
        - Após a continuação, edições voltam a ser aplicadas
    """
    _require_imports()
    controller = _structured(scheduler=manual_scheduler)
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    fingerprint = controller.snapshot().fingerprint()
    other = "- name: other\n  image: alpine\n"

    assert len(manual_scheduler.pending) == 1

    ignored = controller.apply_edit(_text(Representation.STRUCTURED, other))
    assert ignored.applied is False
    assert controller.snapshot().fingerprint() == fingerprint

    manual_scheduler.flush()
    applied = controller.apply_edit(_text(Representation.STRUCTURED, other))

    assert applied.applied is True
    assert applied.graph.find_node("job-0").attributes["name"] == "other"


def test_release_is_scheduled_once_per_window(manual_scheduler):
    _require_imports()
    controller = _structured(scheduler=manual_scheduler)
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))

    assert len(manual_scheduler.pending) == 1
    manual_scheduler.flush()
    assert "suppression released" in controller.journal.messages(level="debug")


def test_reentrant_edit_is_queued_and_drained():
    """
    Um listener que chama `apply_edit` durante a aplicação tem o evento enfileirado.
    """
    _require_imports()
    controller = _structured()
    inner = []

    def listener(result):
        if not inner:
            assert controller.phase is not SyncPhase.IDLE
            inner.append(controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND)))

    unsubscribe = controller.subscribe(listener)
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    unsubscribe()

    assert inner[0].queued is True
    assert [n.id for n in controller.snapshot().nodes] == ["job-0", "job-1"]
    assert controller.phase is SyncPhase.IDLE


def test_node_moved_is_cosmetic(build_test_deploy_yaml):
    _require_imports()
    controller = _structured()
    controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))

    result = controller.apply_edit(NodeMoved(node_id="job-1", position=Position(x=900, y=5)))

    assert result.applied is True
    assert result.regenerated == {}
    assert result.graph.find_node("job-1").position == Position(x=900, y=5)
    assert controller.texts["structured"] == build_test_deploy_yaml


def test_structured_ids_are_never_reused():
    _require_imports()
    controller = _structured()
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    controller.apply_edit(NodeRemoved(node_id="job-1"))

    result = controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))

    assert [n.id for n in result.graph.nodes] == ["job-0", "job-2"]


def test_script_node_palette_and_edges():
    _require_imports()
    controller = _script()
    added = controller.apply_edit(NodeAdded(kind=NodeKind.GIT_CLONE, attributes={"branch": "develop"}))

    node = added.graph.find_node("node-1")
    assert node.attributes == {"repo_url": "https://github.com/user/repo.git", "branch": "develop"}
    assert added.truncated is True

    linked = controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))

    assert linked.truncated is False
    assert "git clone -b develop https://github.com/user/repo.git" in linked.regenerated["flat_script"]
    assert "git clone -b develop" in linked.regenerated["workflow"]


def test_branching_edit_reports_truncation():
    _require_imports()
    controller = _script()
    for kind in (NodeKind.BUILD_NPM, NodeKind.RUN_TESTS, NodeKind.DEPLOY):
        controller.apply_edit(NodeAdded(kind=kind))
    controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))
    controller.apply_edit(EdgeAdded(source_id="node-1", target_id="node-2"))

    result = controller.apply_edit(EdgeAdded(source_id="node-1", target_id="node-3"))

    assert result.truncated is True
    assert result.reason == "branch"
    assert "npm run build" in result.regenerated["flat_script"]
    assert "npm test" not in result.regenerated["flat_script"]


def test_edge_edits_that_do_not_change_graph():
    _require_imports()
    controller = _script()
    controller.apply_edit(NodeAdded(kind=NodeKind.BUILD_NPM))
    controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))

    duplicate = controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))
    loop = controller.apply_edit(EdgeAdded(source_id="node-1", target_id="node-1"))
    dangling = controller.apply_edit(EdgeAdded(source_id="node-1", target_id="ghost"))

    assert (duplicate.applied, loop.applied, dangling.applied) == (False, False, False)
    assert dangling.warnings == []
    assert len(controller.snapshot().edges) == 1


def test_edge_removed_regenerates():
    _require_imports()
    controller = _script()
    controller.apply_edit(NodeAdded(kind=NodeKind.BUILD_NPM))
    controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))

    result = controller.apply_edit(EdgeRemoved(edge_id="edge-start-node-1"))

    assert result.applied is True
    assert "npm run build" not in result.regenerated["flat_script"]


def test_start_marker_cannot_be_removed_or_added():
    _require_imports()
    controller = _script()

    removed = controller.apply_edit(NodeRemoved(node_id="start"))
    added = controller.apply_edit(NodeAdded(kind=NodeKind.START))

    assert [w.type for w in removed.warnings] == [REJECTED_EDIT]
    assert [w.type for w in added.warnings] == [REJECTED_EDIT]
    assert [n.id for n in controller.snapshot().nodes] == ["start"]


def test_attributes_changed_rename_and_delete():
    """
    Verifica edição de atributos no sabor estruturado.

    Decisões arquiteturais:
        - Renomear o rótulo renomeia o job no texto
        - Valor `None` remove o atributo
    """
    _require_imports()
    controller = _structured()
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND, attributes={"env_vars": {"A": "1"}}))

    renamed = controller.apply_edit(AttributesChanged(node_id="job-0", display_name="Build App"))
    assert "- name: build-app\n" in renamed.regenerated["structured"]
    assert "environment:" in renamed.regenerated["structured"]

    cleared = controller.apply_edit(AttributesChanged(node_id="job-0", attributes={"env_vars": None}))
    assert "environment:" not in cleared.regenerated["structured"]
    assert "env_vars" not in cleared.graph.find_node("job-0").attributes


def test_attribute_edit_without_payload_change_is_not_applied():
    _require_imports()
    controller = _structured()
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))

    result = controller.apply_edit(AttributesChanged(node_id="job-0", attributes={"image": "ubuntu:22.04"}))

    assert result.applied is False
    assert result.regenerated == {}


def test_unknown_node_reference_is_reported_to_journal_only():
    _require_imports()
    controller = _structured()

    result = controller.apply_edit(NodeRemoved(node_id="ghost"))

    assert result.applied is False
    assert result.warnings == []
    assert any(e.get("issue", {}).get("type") == "UNRESOLVED_REFERENCE" for e in controller.journal.events)


def test_unsupported_event_raises():
    _require_imports()
    controller = _structured()

    with pytest.raises(TypeError):
        controller.apply_edit(object())
    assert controller.phase is SyncPhase.IDLE


# =====================================================
# Edição manual
# =====================================================

def test_manual_edit_blocks_regeneration_until_cleared():
    _require_imports()
    controller = _script()
    initial = controller.texts["flat_script"]

    assert controller.apply_edit(ManualEditToggled(Representation.FLAT_SCRIPT, True)).applied is True
    controller.apply_edit(NodeAdded(kind=NodeKind.DEPLOY))
    linked = controller.apply_edit(EdgeAdded(source_id="start", target_id="node-1"))

    assert set(linked.regenerated) == {"workflow"}
    assert controller.texts["flat_script"] == initial
    assert controller.manual_edits == {"flat_script"}

    cleared = controller.apply_edit(ManualEditToggled(Representation.FLAT_SCRIPT, False))

    assert cleared.applied is True
    assert "./deploy.sh --env=staging" in cleared.regenerated["flat_script"]
    assert controller.manual_edits == set()


def test_manual_toggle_outside_flavor_is_rejected():
    _require_imports()
    result = _structured().apply_edit(ManualEditToggled(Representation.WORKFLOW, True))

    assert [w.type for w in result.warnings] == [REPRESENTATION_NOT_EDITABLE]


# =====================================================
# Superfície do pacote
# =====================================================

def test_package_level_apply_edit_routes_by_flavor(build_test_deploy_yaml, sample_script):
    _require_imports()
    pipesync.reset_controllers()
    try:
        structured = pipesync.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))
        script = pipesync.apply_edit(_text(Representation.FLAT_SCRIPT, sample_script))

        assert len(structured.graph) == 3
        assert len(script.graph) == 5
        assert pipesync.get_controller(PipelineFlavor.STRUCTURED).texts["structured"] == build_test_deploy_yaml
        assert pipesync.get_controller(PipelineFlavor.SCRIPT) is pipesync.get_controller("script")
    finally:
        pipesync.reset_controllers()


# =====================================================
# Edições recusadas e identidade de jobs
# =====================================================

def test_unserializable_attribute_is_rejected_without_partial_apply():
    """
    Verifica que um valor fora do modelo JSON recusa a edição por inteiro.

    Invariantes:
        - O grafo corrente não recebe o atributo
        - Nenhum texto é regenerado
        - O fingerprint continua calculável e inalterado
    """
    _require_imports()
    controller = _structured()
    controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND))
    fingerprint = controller.snapshot().fingerprint()
    texts = controller.texts

    result = controller.apply_edit(AttributesChanged(node_id="job-0", attributes={"tags": {"a"}}))

    assert result.applied is False
    assert [w.type for w in result.warnings] == [REJECTED_EDIT]
    assert result.warnings[0].details["node_id"] == "job-0"
    assert "tags" not in controller.snapshot().find_node("job-0").attributes
    assert controller.texts == texts
    assert controller.snapshot().fingerprint() == fingerprint


def test_unserializable_attribute_on_new_node_is_rejected():
    _require_imports()
    controller = _structured()

    result = controller.apply_edit(NodeAdded(kind=NodeKind.CUSTOM_COMMAND, attributes={"tags": {"a"}}))

    assert result.applied is False
    assert [w.type for w in result.warnings] == [REJECTED_EDIT]
    assert len(controller.snapshot()) == 0
    assert controller.texts == {"structured": ""}


def test_rename_and_move_keep_declaration_order(build_test_deploy_yaml):
    """
    Renomear ou mover um job não altera sua posição de declaração.

    Este teste valida que:
    - ids e `original_order_index` seguem a ordem do texto
    - o texto regenerado mantém a ordem e reescreve dependências pelo novo nome
    """
    _require_imports()
    import yaml

    controller = _structured()
    controller.apply_edit(_text(Representation.STRUCTURED, build_test_deploy_yaml))

    controller.apply_edit(AttributesChanged(node_id="job-1", display_name="Test Suite"))
    controller.apply_edit(NodeMoved(node_id="job-2", position=Position(x=0, y=0)))

    graph = controller.snapshot()
    assert [(n.id, n.original_order_index) for n in graph.nodes] == [("job-0", 0), ("job-1", 1), ("job-2", 2)]
    assert graph.find_node("job-1").attributes["name"] == "test-suite"

    records = yaml.safe_load(controller.texts["structured"])
    assert [r["name"] for r in records] == ["build", "test-suite", "deploy"]
    assert records[2]["dependencies"] == ["test-suite"]


def test_positions_follow_job_name_after_renumbering():
    """
    Após uma remoção os ids são renumerados no reparsing; a posição segue o nome do job.
    """
    _require_imports()
    controller = _structured()
    controller.apply_edit(_text(
        Representation.STRUCTURED,
        "- name: a\n  image: x\n\n- name: b\n  image: x\n\n- name: c\n  image: x\n",
    ))
    first = controller.snapshot().find_node("job-0").position
    controller.apply_edit(NodeMoved(node_id="job-2", position=Position(x=999, y=999)))
    controller.apply_edit(NodeRemoved(node_id="job-1"))

    result = controller.apply_edit(_text(
        Representation.STRUCTURED,
        "- name: a\n  image: y\n\n- name: c\n  image: x\n",
    ))

    assert result.applied is True
    by_name = {n.attributes["name"]: n for n in result.graph.nodes}
    assert by_name["c"].id == "job-1"
    assert by_name["c"].position == Position(x=999, y=999)
    assert by_name["a"].position == first
