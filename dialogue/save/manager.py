"""
Save/Load system - quest state persistence.

Provides:
- Save/load of the Global and per-speaker variable maps to JSON files
- Multiple save slots (10 by default)
- Save integrity validation (checksum)
- Exact type round-trip: true stays a bool, 1 stays an int, "1" a string
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr, ValidationError

from engine.core.events import EventBus
from dialogue.environment import Environment

logger = logging.getLogger(__name__)

# Order matters: strict members never coerce, so each JSON value keeps its type
StoredValue = Union[StrictBool, StrictInt, StrictStr]


class SaveEvent(Enum):
    """Save system events."""
    SAVE_STARTED = auto()
    SAVE_COMPLETED = auto()
    SAVE_FAILED = auto()
    LOAD_STARTED = auto()
    LOAD_COMPLETED = auto()
    LOAD_FAILED = auto()


@dataclass
class SaveMetadata:
    """Metadata about a save file."""
    slot: int
    name: str
    timestamp: str
    variable_count: int


class QuestStateData(BaseModel):
    """Persisted form of an Environment."""
    version: str = "1.0"
    global_vars: dict[str, StoredValue] = Field(default_factory=dict)
    speaker_vars: dict[str, dict[str, StoredValue]] = Field(default_factory=dict)

    @classmethod
    def from_environment(cls, env: Environment) -> QuestStateData:
        snapshot = env.snapshot()
        return cls(global_vars=snapshot['global'], speaker_vars=snapshot['speakers'])

    def apply(self, env: Environment) -> None:
        env.restore({'global': self.global_vars, 'speakers': self.speaker_vars})

    @property
    def variable_count(self) -> int:
        return len(self.global_vars) + sum(len(v) for v in self.speaker_vars.values())


class SaveManager:
    """
    Manages saving and loading quest state.

    Usage:
        save_mgr = SaveManager(env, save_path="game/saves", event_bus=event_bus)
        save_mgr.save_game(slot=0, name="Before the crypt")
        save_mgr.load_game(slot=0)
    """

    VERSION = "1.0"
    MAX_SLOTS = 10

    def __init__(
        self,
        env: Environment,
        save_path: str | Path = "game/saves",
        event_bus: Optional[EventBus] = None,
    ):
        self.env = env
        self.save_path = Path(save_path)
        self.save_path.mkdir(parents=True, exist_ok=True)
        self.event_bus = event_bus
        self._current_slot: Optional[int] = None

    def _get_slot_path(self, slot: int) -> Path:
        return self.save_path / f"save_{slot:02d}.json"

    def _get_metadata_path(self, slot: int) -> Path:
        return self.save_path / f"save_{slot:02d}_meta.json"

    def get_save_slots(self) -> list[Optional[SaveMetadata]]:
        """Get metadata for all save slots."""
        slots = []
        for i in range(self.MAX_SLOTS):
            meta_path = self._get_metadata_path(i)
            if not meta_path.exists():
                slots.append(None)
                continue
            try:
                with open(meta_path, 'r', encoding='utf-8') as f:
                    slots.append(SaveMetadata(**json.load(f)))
            except (OSError, json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Unreadable save metadata {meta_path}: {e}")
                slots.append(None)
        return slots

    # Serialization

    def serialize(self) -> dict:
        """Quest state as a JSON-ready dict (no checksum)."""
        data = QuestStateData.from_environment(self.env)
        data.version = self.VERSION
        return data.model_dump()

    def deserialize(self, data: dict) -> None:
        """
        Replace the environment's state with serialized data.

        Raises:
            pydantic.ValidationError: if a stored value is not bool, int or str
        """
        QuestStateData.model_validate(data).apply(self.env)

    # Slots

    def save_game(self, slot: int, name: str = "Save") -> bool:
        """
        Save the current quest state.

        Args:
            slot: Save slot number
            name: Display name for the save

        Returns:
            True if save was successful
        """
        self._publish(SaveEvent.SAVE_STARTED, slot=slot)

        try:
            save_dict = self.serialize()
            save_dict['checksum'] = self._calculate_checksum(save_dict)

            with open(self._get_slot_path(slot), 'w', encoding='utf-8') as f:
                json.dump(save_dict, f, indent=2)

            metadata = SaveMetadata(
                slot=slot,
                name=name,
                timestamp=datetime.now().isoformat(),
                variable_count=QuestStateData.model_validate(save_dict).variable_count,
            )
            with open(self._get_metadata_path(slot), 'w', encoding='utf-8') as f:
                json.dump(asdict(metadata), f, indent=2)

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Save failed: {e}")
            self._publish(SaveEvent.SAVE_FAILED, slot=slot, error=str(e))
            return False

        self._current_slot = slot
        self._publish(SaveEvent.SAVE_COMPLETED, slot=slot)
        return True

    def load_game(self, slot: int, validate: bool = True) -> bool:
        """
        Load a saved game into the environment.

        Args:
            slot: Save slot number
            validate: Whether to validate checksum

        Returns:
            True if load was successful; on failure the environment is untouched
        """
        save_path = self._get_slot_path(slot)
        if not save_path.exists():
            return False

        self._publish(SaveEvent.LOAD_STARTED, slot=slot)

        try:
            with open(save_path, 'r', encoding='utf-8') as f:
                save_dict = json.load(f)

            if validate:
                checksum = save_dict.get('checksum')
                if checksum and not self._verify_checksum(save_dict, checksum):
                    logger.error(f"Save file corrupted: checksum mismatch in {save_path}")
                    self._publish(SaveEvent.LOAD_FAILED, slot=slot, error="Checksum validation failed")
                    return False

            save_dict.pop('checksum', None)
            self.deserialize(save_dict)

        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Load failed: {e}")
            self._publish(SaveEvent.LOAD_FAILED, slot=slot, error=str(e))
            return False

        self._current_slot = slot
        self._publish(SaveEvent.LOAD_COMPLETED, slot=slot)
        return True

    def delete_save(self, slot: int) -> bool:
        """Delete a save slot."""
        try:
            self._get_slot_path(slot).unlink(missing_ok=True)
            self._get_metadata_path(slot).unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not delete save slot {slot}: {e}")
            return False
        return True

    # Checksum validation

    def _calculate_checksum(self, data: dict) -> str:
        json_str = json.dumps(data, sort_keys=True, separators=(',', ':'))
        hash_bytes = hashlib.sha256(json_str.encode('utf-8')).digest()
        return base64.b64encode(hash_bytes).decode('ascii')

    def _verify_checksum(self, data: dict, expected_checksum: str) -> bool:
        data_copy = data.copy()
        data_copy.pop('checksum', None)
        return self._calculate_checksum(data_copy) == expected_checksum

    def validate_save(self, slot: int) -> bool:
        """
        Validate a save file's integrity.

        Returns:
            True if save is valid, False if corrupted or missing
        """
        save_path = self._get_slot_path(slot)
        if not save_path.exists():
            return False

        try:
            with open(save_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            return False

        checksum = data.get('checksum')
        if not checksum:
            # No checksum = hand-edited save, assume valid
            return True
        return self._verify_checksum(data, checksum)

    def _publish(self, event_type: SaveEvent, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, **data)

    @property
    def current_slot(self) -> Optional[int]:
        return self._current_slot
