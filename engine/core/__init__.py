"""
Core engine module.

Exports:
- Component: Pydantic base for data-only components
- EventBus, Event, DialogueEvent: Event system
"""

from engine.core.component import Component
from engine.core.events import EventBus, Event, DialogueEvent

__all__ = [
    "Component",
    "EventBus",
    "Event",
    "DialogueEvent",
]
