"""
Dialogue environment - quest state visible to scripts.

Two scopes:
- Global: shared by every NPC, saved with the game (MAIN_QUEST_STATUS,
  PLAYER_WALLET, ...)
- Speaker: one map per NPC instance, visible only to that NPC's script
  (DIALOGUE_STATE, MET_PLAYER, ...)

Which scope owns a name is never guessed from the name. Every variable a
script may write is declared in a scope manifest:

```json
{
  "variables": {
    "DIALOGUE_STATE": {"scope": "speaker", "type": "int"},
    "MAIN_QUEST_STATUS": {"scope": "global", "type": "int", "default": 0},
    "PLAYER_WALLET": {"scope": "global", "type": "int"}
  }
}
```
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import jsonschema

from dialogue.errors import ScopeError
from dialogue.script.nodes import Value

logger = logging.getLogger(__name__)


class Scope(Enum):
    GLOBAL = "global"
    SPEAKER = "speaker"


class VarType(Enum):
    BOOL = "bool"
    INT = "int"
    STR = "str"

    @property
    def default(self) -> Value:
        return TYPE_DEFAULTS[self]

    @classmethod
    def of(cls, value: Value) -> VarType:
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, int):
            return cls.INT
        if isinstance(value, str):
            return cls.STR
        raise TypeError(f"not a script value: {value!r}")


TYPE_DEFAULTS: dict[VarType, Value] = {
    VarType.BOOL: False,
    VarType.INT: 0,
    VarType.STR: "",
}


class _Unset:
    """Value of an undeclared variable that has never been written."""

    _instance: Optional[_Unset] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


SCOPE_MANIFEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["variables"],
    "properties": {
        "variables": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["scope", "type"],
                "properties": {
                    "scope": {"enum": [s.value for s in Scope]},
                    "type": {"enum": [t.value for t in VarType]},
                    "default": {"type": ["boolean", "integer", "string"]},
                    "description": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
}


@dataclass(frozen=True)
class VarDecl:
    """Declaration of one script variable."""
    name: str
    scope: Scope
    type: VarType
    default: Value

    def accepts(self, value: Value) -> bool:
        return VarType.of(value) is self.type


class ScopeManifest:
    """
    Explicit per-variable scope and type declarations.

    Usage:
        manifest = ScopeManifest.load("data/dialogue/scopes.json")
        manifest.scope_of("DIALOGUE_STATE")  # Scope.SPEAKER
    """

    def __init__(self, declarations: Optional[dict[str, VarDecl]] = None):
        self._decls: dict[str, VarDecl] = dict(declarations or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScopeManifest:
        """
        Build a manifest from its JSON form.

        Raises:
            jsonschema.ValidationError: if the document is malformed
            ValueError: if a default does not match its declared type
        """
        jsonschema.validate(instance=data, schema=SCOPE_MANIFEST_SCHEMA)

        decls = {}
        for name, entry in data["variables"].items():
            var_type = VarType(entry["type"])
            default = entry.get("default", var_type.default)
            if VarType.of(default) is not var_type:
                raise ValueError(f"default for {name} is not of type {var_type.value}")
            decls[name] = VarDecl(name, Scope(entry["scope"]), var_type, default)

        return cls(decls)

    @classmethod
    def load(cls, path: str | Path) -> ScopeManifest:
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        manifest = cls.from_dict(data)
        logger.info(f"Loaded {len(manifest)} variable declarations from {path}")
        return manifest

    def declare(
        self,
        name: str,
        scope: Scope,
        var_type: VarType,
        default: Optional[Value] = None,
    ) -> VarDecl:
        """Declare a variable programmatically (tests, engine-owned flags)."""
        if default is None:
            default = var_type.default
        decl = VarDecl(name, scope, var_type, default)
        self._decls[name] = decl
        return decl

    def get(self, name: str) -> Optional[VarDecl]:
        return self._decls.get(name)

    def scope_of(self, name: str) -> Optional[Scope]:
        decl = self._decls.get(name)
        return decl.scope if decl else None

    def __contains__(self, name: str) -> bool:
        return name in self._decls

    def __len__(self) -> int:
        return len(self._decls)

    def __iter__(self):
        return iter(self._decls.values())


class VariableLookup:
    """Read-only view the evaluator works against."""

    def lookup(self, name: str) -> Value | _Unset:
        raise NotImplementedError


class Environment:
    """
    Owner of all script-visible quest state.

    Created empty for a new game, mutated through ScopedEnvironment.set
    (or a committed StagedEnvironment), and persisted by the SaveManager
    through snapshot()/restore().
    """

    def __init__(self, manifest: Optional[ScopeManifest] = None):
        self.manifest = manifest or ScopeManifest()
        self.global_vars: dict[str, Value] = {}
        self.speaker_vars: dict[str, dict[str, Value]] = {}

    def view(self, npc_id: str) -> ScopedEnvironment:
        """Environment as seen by one NPC's script."""
        return ScopedEnvironment(self, npc_id)

    def speaker(self, npc_id: str) -> dict[str, Value]:
        return self.speaker_vars.setdefault(npc_id, {})

    def get_global(self, name: str) -> Value | _Unset:
        return ScopedEnvironment(self, None).lookup(name)

    def set_global(self, name: str, value: Value) -> None:
        ScopedEnvironment(self, None).set(name, value)

    def forget_speaker(self, npc_id: str) -> None:
        """Drop a speaker's variables (the NPC is gone for good)."""
        self.speaker_vars.pop(npc_id, None)

    def snapshot(self) -> dict[str, Any]:
        """Copy of both scopes, suitable for persistence."""
        return {
            'global': dict(self.global_vars),
            'speakers': {npc: dict(values) for npc, values in self.speaker_vars.items()},
        }

    def restore(self, data: dict[str, Any]) -> None:
        """Replace both scopes with previously snapshotted values."""
        self.global_vars = dict(data.get('global', {}))
        self.speaker_vars = {
            npc: dict(values) for npc, values in data.get('speakers', {}).items()
        }


class ScopedEnvironment(VariableLookup):
    """
    Global scope plus one speaker's scope, resolved through the manifest.

    Reads fall back to the declared default, then UNSET for undeclared
    names, so scripts can probe flags that were never written.
    """

    def __init__(self, env: Environment, npc_id: Optional[str]):
        self.env = env
        self.npc_id = npc_id

    @property
    def manifest(self) -> ScopeManifest:
        return self.env.manifest

    def _store_for(self, decl: VarDecl) -> dict[str, Value]:
        if decl.scope is Scope.GLOBAL:
            return self.env.global_vars
        if self.npc_id is None:
            raise ScopeError(f"{decl.name} is a speaker variable but no speaker is in scope", decl.name)
        return self.env.speaker(self.npc_id)

    def lookup(self, name: str) -> Value | _Unset:
        decl = self.manifest.get(name)
        if decl is None:
            if name in self.env.global_vars:
                return self.env.global_vars[name]
            return UNSET

        if decl.scope is Scope.GLOBAL:
            return self.env.global_vars.get(name, decl.default)
        if self.npc_id is None:
            return decl.default
        return self.env.speaker_vars.get(self.npc_id, {}).get(name, decl.default)

    def check_write(self, name: str, value: Value) -> VarDecl:
        """
        Validate a write without performing it.

        Raises:
            ScopeError: if the name is undeclared or the type is wrong
        """
        decl = self.manifest.get(name)
        if decl is None:
            raise ScopeError(f"{name} is not declared in the scope manifest", name)
        if not decl.accepts(value):
            raise ScopeError(
                f"{name} is declared {decl.type.value}, cannot store {value!r}", name
            )
        if decl.scope is Scope.SPEAKER and self.npc_id is None:
            raise ScopeError(f"{name} is a speaker variable but no speaker is in scope", name)
        return decl

    def set(self, name: str, value: Value) -> None:
        decl = self.check_write(name, value)
        self._store_for(decl)[name] = value

    def stage(self) -> StagedEnvironment:
        return StagedEnvironment(self)


class StagedEnvironment(VariableLookup):
    """
    Pending writes layered over a ScopedEnvironment.

    Scripts see their own writes immediately, but nothing reaches the real
    scopes until commit(). Discarding the stage leaves the game untouched.
    """

    def __init__(self, base: ScopedEnvironment):
        self.base = base
        self.pending: dict[str, Value] = {}

    def lookup(self, name: str) -> Value | _Unset:
        if name in self.pending:
            return self.pending[name]
        return self.base.lookup(name)

    def set(self, name: str, value: Value) -> None:
        self.base.check_write(name, value)
        self.pending[name] = value

    def commit(self) -> list[tuple[str, Value]]:
        """Apply pending writes in the order they were first made."""
        written = list(self.pending.items())
        for name, value in written:
            self.base.set(name, value)
        self.pending.clear()
        return written

    def discard(self) -> None:
        self.pending.clear()
