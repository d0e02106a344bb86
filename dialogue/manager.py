"""
Dialogue manager - entry point for "talk" actions.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from engine.core.events import EventBus
from dialogue.collaborators import Economy, Presenter
from dialogue.components import DialogueSpeaker
from dialogue.config import DialogueConfig
from dialogue.environment import Environment
from dialogue.interpreter import Interpreter
from dialogue.library import ScriptLibrary
from dialogue.placeholders import LoreProvider
from dialogue.session import ConversationSession, SessionOutcome

logger = logging.getLogger(__name__)


class DialogueManager:
    """
    Starts conversations between the player and NPCs.

    Handles:
    - Looking up the cached script for a speaker's archetype
    - Creating a fresh ConversationSession per talk
    - Sharing one seeded RNG so pick results are reproducible

    Usage:
        manager = DialogueManager(library, env, presenter, economy, config)
        manager.talk(speaker, lore)
    """

    def __init__(
        self,
        library: ScriptLibrary,
        env: Environment,
        presenter: Presenter,
        economy: Optional[Economy] = None,
        config: Optional[DialogueConfig] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.library = library
        self.env = env
        self.presenter = presenter
        self.economy = economy
        self.config = config or library.config
        self.event_bus = event_bus
        self.rng = random.Random(self.config.rng_seed)
        self.interpreter = Interpreter(rng=self.rng, event_bus=event_bus)

        library_names = {decl.name for decl in library.manifest}
        env_names = {decl.name for decl in env.manifest}
        if library_names != env_names:
            logger.warning(
                f"Library and environment use different scope manifests: "
                f"{sorted(library_names ^ env_names)}"
            )

    def start_session(
        self,
        speaker: DialogueSpeaker,
        lore: Optional[LoreProvider] = None,
    ) -> Optional[ConversationSession]:
        """Create a session for a speaker, or None if it has no script."""
        script = self.library.get(speaker.archetype)
        if script is None:
            logger.warning(f"No dialogue script for archetype '{speaker.archetype}'")
            return None

        return ConversationSession(
            script=script,
            env=self.env,
            speaker=speaker,
            presenter=self.presenter,
            economy=self.economy,
            lore=lore,
            config=self.config,
            interpreter=self.interpreter,
            event_bus=self.event_bus,
        )

    def talk(
        self,
        speaker: DialogueSpeaker,
        lore: Optional[LoreProvider] = None,
    ) -> Optional[SessionOutcome]:
        """Run one complete conversation with a speaker."""
        session = self.start_session(speaker, lore)
        if session is None:
            return None
        return session.run()
