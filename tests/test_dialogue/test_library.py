import logging
from pathlib import Path

import pytest
from dialogue.config import DialogueConfig
from dialogue.environment import Environment
from dialogue.library import ScriptLibrary
from dialogue.manager import DialogueManager
from dialogue.components import DialogueSpeaker
from dialogue.placeholders import LoreContext
from conftest import RecordingPresenter


@pytest.fixture
def script_dir(tmp_path):
    (tmp_path / "guard.dlg").write_text('(say "Move along.")', encoding="utf-8")
    (tmp_path / "baker.dlg").write_text(
        '(cond ((= DIALOGUE_STATE 0) ((say "Bread?") (option "Yes" (set DIALOGUE_STATE 1)))) '
        '(else (say "Come back tomorrow.")))',
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def library(script_dir, manifest):
    return ScriptLibrary(DialogueConfig(script_dir=script_dir), manifest)


def test_load_all(library):
    assert library.load_all() == 2
    assert library.archetypes == ["baker", "guard"]
    assert not library.errors

def test_missing_directory(tmp_path, manifest):
    library = ScriptLibrary(DialogueConfig(script_dir=tmp_path / "nope"), manifest)
    assert library.load_all() == 0

def test_parse_error_disables_archetype(script_dir, library):
    (script_dir / "drunk.dlg").write_text('(say "hic"', encoding="utf-8")

    assert library.load_all() == 2
    assert library.is_disabled("drunk")
    assert library.errors["drunk"].line == 1

    script = library.get("drunk")
    assert script.disabled
    assert script.archetype == "drunk"

def test_undeclared_write_disables_archetype(library):
    script = library.load_string('(set SECRET_FLAG 1)', "spy")
    assert script.disabled
    assert "SECRET_FLAG" in str(library.errors["spy"])

def test_wrong_literal_type_disables_archetype(library):
    script = library.load_string('(set MET_PLAYER 1)', "spy")
    assert script.disabled

def test_reload_clears_error(library):
    library.load_string('(say', "bard")
    assert library.is_disabled("bard")
    library.load_string('(say "la la")', "bard")
    assert not library.is_disabled("bard")

def test_reparse_is_equal(library):
    text = '(say "hi") (option "bye" (set DIALOGUE_STATE 1))'
    assert library.load_string(text, "a") == library.load_string(text, "a")

def test_get_loads_lazily(library):
    assert "guard" not in library
    script = library.get("guard")
    assert script is not None
    assert "guard" in library
    assert library.get("guard") is script

def test_get_missing_archetype(library):
    assert library.get("dragon") is None


# Manager

def test_manager_talk(library, env, economy):
    presenter = RecordingPresenter([0])
    manager = DialogueManager(library, env, presenter, economy)
    baker = DialogueSpeaker(npc_id="baker_1", archetype="baker", name="Greta")

    outcome = manager.talk(baker)
    assert outcome.chosen == 0
    assert presenter.menus[0][0] == "Bread?"

    manager.talk(baker)
    assert presenter.texts == ["Come back tomorrow."]

def test_manager_unknown_archetype(library, env):
    manager = DialogueManager(library, env, RecordingPresenter())
    nobody = DialogueSpeaker(npc_id="x", archetype="dragon")
    assert manager.start_session(nobody) is None
    assert manager.talk(nobody) is None

def test_manager_disabled_script_shows_fallback(library, env):
    library.load_string('(say', "bard")
    presenter = RecordingPresenter()
    manager = DialogueManager(library, env, presenter)
    manager.talk(DialogueSpeaker(npc_id="bard_1", archetype="bard"))
    assert presenter.texts == ["..."]

def test_manager_seed_is_reproducible(library, env):
    library.load_string('(say (pick "a" "b" "c" "d" "e" "f" "g" "h"))', "oracle")
    oracle = DialogueSpeaker(npc_id="oracle_1", archetype="oracle")

    def transcript(seed):
        presenter = RecordingPresenter()
        config = DialogueConfig(rng_seed=seed)
        manager = DialogueManager(library, env, presenter, config=config)
        for _ in range(10):
            manager.talk(oracle)
        return presenter.texts

    assert transcript(3) == transcript(3)

def test_manager_passes_lore(library, env):
    library.load_string('(say "Hello, #PLAYER_NAME.")', "greeter")
    presenter = RecordingPresenter()
    manager = DialogueManager(library, env, presenter)
    manager.talk(DialogueSpeaker(npc_id="g", archetype="greeter"), LoreContext(player_name="Ash"))
    assert presenter.texts == ["Hello, Ash."]


# Shipped content

SAMPLE_DIR = Path(__file__).resolve().parents[2] / "game" / "data" / "dialogue"


def test_config_manifest_is_loaded():
    library = ScriptLibrary(DialogueConfig(script_dir=SAMPLE_DIR))

    assert "DIALOGUE_STATE" in library.manifest
    assert library.load_all() == len(list(SAMPLE_DIR.glob("*.dlg")))
    assert library.errors == {}

def test_manager_shares_library_manifest(caplog):
    library = ScriptLibrary(DialogueConfig(script_dir=SAMPLE_DIR))
    env = Environment(library.manifest)

    with caplog.at_level(logging.WARNING, logger="dialogue.manager"):
        DialogueManager(library, env, RecordingPresenter())
    assert "different scope manifests" not in caplog.text

    with caplog.at_level(logging.WARNING, logger="dialogue.manager"):
        DialogueManager(library, Environment(), RecordingPresenter())
    assert "different scope manifests" in caplog.text

def test_byte_order_mark_is_ignored(script_dir, library):
    (script_dir / "notary.dlg").write_bytes('\ufeff(say "Sign here.")'.encode("utf-8"))
    script = library.load_file(script_dir / "notary.dlg")
    assert not script.disabled
