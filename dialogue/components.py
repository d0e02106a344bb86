"""
Dialogue components - speakers.
"""

from __future__ import annotations

from engine.core.component import Component


class DialogueSpeaker(Component):
    """
    Makes an NPC instance able to talk.

    Attributes:
        npc_id: Unique id of this NPC instance (keys its speaker variables)
        archetype: Name of the dialogue script shared by its kind
        name: Display name, bound to #NPC_NAME when no lore says otherwise
    """
    npc_id: str
    archetype: str
    name: str = ""
