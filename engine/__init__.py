"""
Engine core shared by the game's systems.

Quick Start:
    from engine.core import EventBus, Component

    bus = EventBus()
    bus.subscribe(DialogueEvent.SESSION_CLOSED, on_closed)
"""

__version__ = "0.1.0"

from engine.core import (
    Component,
    EventBus,
    Event,
    DialogueEvent,
)

__all__ = [
    "Component",
    "EventBus",
    "Event",
    "DialogueEvent",
]
