"""
Placeholder substitution - resolves #NAME tokens in emitted text.

Tokens are resolved when text is shown, never when a script is parsed, so
one archetype script serves every NPC of that kind:

    "Have you seen #PARTNER_NAME? They left #TOWN_NAME at dawn."
"""

from __future__ import annotations

import logging
import re
from typing import ClassVar, Optional, Protocol

from pydantic import Field

from engine.core.component import Component

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r'#([A-Z][A-Z0-9_]*)')


class LoreProvider(Protocol):
    """Anything that can turn a placeholder name into current text."""

    def resolve(self, token: str) -> Optional[str]:
        ...


class LoreContext(Component):
    """
    Lore bindings for one conversation.

    Supplied by the world-state collaborator when a talk starts.

    Attributes:
        npc_name: Display name of the NPC speaking (#NPC_NAME)
        player_name: The player's name (#PLAYER_NAME)
        town_name: Name of the town (#TOWN_NAME)
        partner_name: The NPC's partner or relative (#PARTNER_NAME)
        quest_target: Current quest target (#QUEST_TARGET)
        extra: Any further bindings, keyed by token name without '#'
    """
    npc_name: str = ""
    player_name: str = ""
    town_name: str = ""
    partner_name: str = ""
    quest_target: str = ""
    extra: dict[str, str] = Field(default_factory=dict)

    STANDARD_TOKENS: ClassVar[tuple[str, ...]] = (
        "NPC_NAME",
        "PLAYER_NAME",
        "TOWN_NAME",
        "PARTNER_NAME",
        "QUEST_TARGET",
    )

    def bindings(self) -> dict[str, str]:
        """All non-empty bindings, keyed by token name."""
        values = {
            "NPC_NAME": self.npc_name,
            "PLAYER_NAME": self.player_name,
            "TOWN_NAME": self.town_name,
            "PARTNER_NAME": self.partner_name,
            "QUEST_TARGET": self.quest_target,
        }
        values.update(self.extra)
        return {token: value for token, value in values.items() if value}

    def resolve(self, token: str) -> Optional[str]:
        return self.bindings().get(token)

    @classmethod
    def known_tokens(cls, extra: tuple[str, ...] = ()) -> frozenset[str]:
        """Token names a lint pass should accept."""
        return frozenset(cls.STANDARD_TOKENS) | frozenset(extra)


def find_placeholders(text: str) -> list[str]:
    """Token names (without '#') appearing in a piece of text."""
    return PLACEHOLDER_PATTERN.findall(text)


def substitute(text: str, lore: Optional[LoreProvider]) -> str:
    """
    Replace every #NAME token the lore provider can resolve.

    Unresolved tokens stay verbatim and are logged; authoring defects are
    caught by the offline lint, never by crashing a conversation.
    """
    if '#' not in text:
        return text

    def replace(match: re.Match) -> str:
        token = match.group(1)
        value = lore.resolve(token) if lore is not None else None
        if value is None:
            logger.warning(f"Unresolved placeholder #{token} in dialogue text")
            return match.group(0)
        return value

    return PLACEHOLDER_PATTERN.sub(replace, text)
