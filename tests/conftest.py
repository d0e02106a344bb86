import os
import sys
import random
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())

from engine.core.events import EventBus
from dialogue.collaborators import CANCEL, WalletEconomy
from dialogue.components import DialogueSpeaker
from dialogue.config import DialogueConfig
from dialogue.environment import Environment, Scope, ScopeManifest, VarType
from dialogue.interpreter import Interpreter
from dialogue.placeholders import LoreContext
from dialogue.script.parser import parse_script
from dialogue.session import ConversationSession


class RecordingPresenter:
    """Headless presenter: records what was shown and answers menus from a queue."""

    def __init__(self, choices=None, confirm=True):
        self.choices = list(choices or [])
        self.confirm_answer = confirm
        self.texts = []
        self.menus = []
        self.prompts = []

    def present_text(self, text):
        self.texts.append(text)

    def present_menu(self, text, entries):
        self.menus.append((text, entries))
        if not self.choices:
            return CANCEL
        return self.choices.pop(0)

    def confirm(self, prompt):
        self.prompts.append(prompt)
        return self.confirm_answer


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    return EventBus()


@pytest.fixture
def manifest():
    """Manifest declaring the variables used across the tests."""
    m = ScopeManifest()
    m.declare("DIALOGUE_STATE", Scope.SPEAKER, VarType.INT)
    m.declare("MET_PLAYER", Scope.SPEAKER, VarType.BOOL)
    m.declare("MAIN_QUEST_STATUS", Scope.GLOBAL, VarType.INT)
    m.declare("PLAYER_WALLET", Scope.GLOBAL, VarType.INT)
    m.declare("PLAYER_TITLE", Scope.GLOBAL, VarType.STR, "stranger")
    return m


@pytest.fixture
def env(manifest):
    return Environment(manifest)


@pytest.fixture
def economy(env):
    return WalletEconomy(env)


@pytest.fixture
def speaker():
    return DialogueSpeaker(npc_id="mayor_1", archetype="mayor", name="Mayor Holt")


@pytest.fixture
def lore():
    return LoreContext(npc_name="Mayor Holt", town_name="Millbrook", player_name="Ash")


@pytest.fixture
def talk(env, economy, speaker, lore):
    """Run one session of a script given as text; returns (outcome, presenter)."""
    def _talk(text, choices=None, seed=0, config=None, confirm=True, npc=None):
        script = parse_script(text, "test")
        presenter = RecordingPresenter(choices, confirm=confirm)
        session = ConversationSession(
            script,
            env,
            npc or speaker,
            presenter,
            economy=economy,
            lore=lore,
            config=config,
            interpreter=Interpreter(rng=random.Random(seed)),
        )
        return session.run(), presenter
    return _talk
