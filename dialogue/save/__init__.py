"""
Save module - quest state persistence.

Provides:
- Save/load of Global and per-speaker dialogue variables
- Multiple save slots
- Checksum validation
"""

from dialogue.save.manager import (
    SaveManager,
    SaveMetadata,
    QuestStateData,
    SaveEvent,
)

__all__ = [
    "SaveManager",
    "SaveMetadata",
    "QuestStateData",
    "SaveEvent",
]
