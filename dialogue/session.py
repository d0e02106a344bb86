"""
Conversation session - one "talk" interaction with an NPC.

    IDLE -> PRESENTING -> AWAITING_CHOICE -> RESOLVING -> CLOSED
                 |               |
                 +--> CLOSED     +--> CLOSED (cancel, nothing happens)

A session always starts from the script root and runs exactly once. The
only thing it remembers while running is the menu it is waiting on; the
next talk builds a brand new session and finds its place again through
environment variables such as DIALOGUE_STATE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from engine.core.events import DialogueEvent, EventBus
from dialogue.collaborators import CANCEL, Economy, MenuEntry, Presenter
from dialogue.components import DialogueSpeaker
from dialogue.config import DialogueConfig
from dialogue.environment import Environment
from dialogue.interpreter import Interpreter, Turn
from dialogue.placeholders import LoreContext, LoreProvider, substitute
from dialogue.script.nodes import Option, Script

logger = logging.getLogger(__name__)

OPTION_KEYS = "abcdefghijklmnopqrstuvwxyz"


class SessionState(Enum):
    """State of a conversation session."""
    IDLE = auto()
    PRESENTING = auto()
    AWAITING_CHOICE = auto()
    RESOLVING = auto()
    CLOSED = auto()


@dataclass
class SessionOutcome:
    """
    What happened during a session.

    Attributes:
        texts: Every text handed to the presenter, in order
        menu: The menu that was offered (empty if none)
        chosen: Index of the chosen menu entry, if any
        cancelled: The player backed out of the menu
        refused: An unaffordable body was skipped
    """
    texts: list[str] = field(default_factory=list)
    menu: list[MenuEntry] = field(default_factory=list)
    chosen: Optional[int] = None
    cancelled: bool = False
    refused: bool = False


class ConversationSession:
    """
    Runs one conversation turn against a script and the environment.

    Usage:
        session = ConversationSession(script, env, speaker, presenter, economy)
        outcome = session.run()
    """

    def __init__(
        self,
        script: Script,
        env: Environment,
        speaker: DialogueSpeaker,
        presenter: Presenter,
        economy: Optional[Economy] = None,
        lore: Optional[LoreProvider] = None,
        config: Optional[DialogueConfig] = None,
        interpreter: Optional[Interpreter] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.script = script
        self.env = env
        self.speaker = speaker
        self.presenter = presenter
        self.economy = economy
        if lore is None:
            lore = LoreContext()
        if isinstance(lore, LoreContext):
            lore = lore.with_defaults(npc_name=speaker.name)
        self.lore = lore
        self.config = config or DialogueConfig()
        self.event_bus = event_bus
        self.interpreter = interpreter or Interpreter(event_bus=event_bus)

        self.state = SessionState.IDLE
        self.menu: list[MenuEntry] = []
        self._menu_options: list[Option] = []
        self.outcome = SessionOutcome()

    @property
    def npc_id(self) -> str:
        return self.speaker.npc_id

    @property
    def player_id(self) -> str:
        return self.config.player_id

    def run(self) -> SessionOutcome:
        """
        Run the whole interaction synchronously.

        Returns when the session is CLOSED, after at most one option body
        has been executed.
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Session for {self.npc_id} already ran; start a new one")

        self._publish(DialogueEvent.SESSION_STARTED, archetype=self.script.archetype)

        if self.script.disabled:
            self.state = SessionState.PRESENTING
            self._present(self.config.fallback_line)
            return self._close()

        view = self.env.view(self.npc_id)
        turn = self.interpreter.run(self.script.body, view)
        text = self._commit(turn)

        self.state = SessionState.PRESENTING

        if turn.ended or not turn.options or self.outcome.refused:
            if not text and not turn.ended and not turn.has_effects:
                text = substitute(self.config.turn_away_line, self.lore)
            if text:
                self._present(text)
            return self._close()

        self._build_menu(turn.options)
        self.state = SessionState.AWAITING_CHOICE
        self._publish(DialogueEvent.MENU_PRESENTED, options=[e.label for e in self.menu])
        if text:
            self.outcome.texts.append(text)
            self._publish(DialogueEvent.TEXT_PRESENTED, text=text)
        choice = self.presenter.present_menu(text, list(self.menu))

        if choice is CANCEL or not self._valid_choice(choice):
            if choice is not CANCEL:
                logger.warning(f"Presenter returned invalid menu index {choice!r}; cancelling")
            return self._cancel()

        return self._resolve(choice)

    def _build_menu(self, options: list[Option]) -> None:
        self._menu_options = options[:len(OPTION_KEYS)]
        if len(options) > len(OPTION_KEYS):
            logger.warning(f"{self.script.archetype} offers more than {len(OPTION_KEYS)} options; extras dropped")

        self.menu = [
            MenuEntry(
                index=i,
                key=OPTION_KEYS[i],
                label=substitute(self.interpreter.render(option.label), self.lore),
            )
            for i, option in enumerate(self._menu_options)
        ]
        self.outcome.menu = list(self.menu)

    def _valid_choice(self, choice) -> bool:
        return isinstance(choice, int) and not isinstance(choice, bool) \
            and 0 <= choice < len(self._menu_options)

    def _resolve(self, choice: int) -> SessionOutcome:
        option = self._menu_options[choice]
        self.outcome.chosen = choice
        self._publish(DialogueEvent.OPTION_SELECTED, index=choice, label=self.menu[choice].label)

        view = self.env.view(self.npc_id)
        turn = self.interpreter.run(option.body, view)

        if self.config.confirm_purchases and turn.spend_total > 0:
            prompt = f"Spend {turn.spend_total} {self.config.currency_name}?"
            if not self.presenter.confirm(prompt):
                turn.stage.discard()
                return self._cancel()

        self.state = SessionState.RESOLVING
        text = self._commit(turn)
        if text:
            self._present(text)

        return self._close()

    def _commit(self, turn: Turn) -> str:
        """Commit a turn and return the text it should show."""
        result = self.interpreter.commit(turn, self.npc_id, self.player_id, self.economy, self.lore)
        if result.refused:
            self.outcome.refused = True
            return substitute(self.config.cannot_afford_line, self.lore)
        return substitute(turn.text, self.lore)

    def _present(self, text: str) -> None:
        self.presenter.present_text(text)
        self.outcome.texts.append(text)
        self._publish(DialogueEvent.TEXT_PRESENTED, text=text)

    def _cancel(self) -> SessionOutcome:
        self.outcome.cancelled = True
        self._publish(DialogueEvent.SESSION_CANCELLED)
        return self._close()

    def _close(self) -> SessionOutcome:
        self.state = SessionState.CLOSED
        self.menu = []
        self._menu_options = []
        self._publish(DialogueEvent.SESSION_CLOSED)
        return self.outcome

    def _publish(self, event_type: DialogueEvent, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, npc_id=self.npc_id, **data)
