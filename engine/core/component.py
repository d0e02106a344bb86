"""
Component base class for data-only components.

Components carry no behaviour: speakers, lore bindings and the like are
validated records that systems read and replace, never mutate in place.

Usage:
    class DialogueSpeaker(Component):
        npc_id: str
        archetype: str
        name: str = ""
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all components.

    Unknown fields are rejected and every assignment is validated, so a
    typo in a data file fails at load time instead of mid-conversation.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    def with_defaults(self, **defaults: Any) -> Component:
        """
        Copy with the given fields filled in where they are currently empty.

        Fields that already hold a value win over the defaults.
        """
        missing = {
            name: value for name, value in defaults.items()
            if not getattr(self, name)
        }
        if not missing:
            return self
        return self.model_validate({**self.model_dump(), **missing})
