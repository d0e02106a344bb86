"""
Script library - loads dialogue scripts and caches one AST per archetype.

A script that fails to parse, or that writes a variable the scope manifest
does not declare, disables its archetype: conversations with those NPCs
show the fallback line instead of crashing the game.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dialogue.config import DialogueConfig
from dialogue.environment import ScopeManifest, VarType
from dialogue.errors import ParseError
from dialogue.script.nodes import Literal, Say, Script, Set, Text, walk
from dialogue.script.parser import parse_script


class ScriptLibrary:
    """
    Central storage for parsed dialogue scripts.

    Usage:
        library = ScriptLibrary(config, manifest)
        library.load_all()
        script = library.get("mayor")
    """

    def __init__(self, config: Optional[DialogueConfig] = None, manifest: Optional[ScopeManifest] = None):
        self.config = config or DialogueConfig()
        self.logger = logging.getLogger(__name__)
        if manifest is None:
            manifest = self._load_manifest()
        self.manifest = manifest
        self._scripts: dict[str, Script] = {}
        self.errors: dict[str, ParseError] = {}

    def _load_manifest(self) -> ScopeManifest:
        """Scope manifest named by the config, or an empty one if there is none."""
        path = self.config.manifest_path
        if not path.exists():
            self.logger.warning(f"Scope manifest not found: {path}; every set will be rejected")
            return ScopeManifest()
        return ScopeManifest.load(path)

    def load_all(self) -> int:
        """
        Load every script in the configured directory.

        Returns:
            Number of archetypes that loaded without errors
        """
        script_dir = self.config.script_dir
        if not script_dir.exists():
            self.logger.warning(f"Dialogue directory not found: {script_dir}")
            return 0

        loaded = 0
        for path in sorted(script_dir.glob(f"*{self.config.script_extension}")):
            if not self.load_file(path).disabled:
                loaded += 1

        self.logger.info(
            f"Loaded {loaded} dialogue scripts, "
            f"{len(self.errors)} disabled."
        )
        return loaded

    def load_file(self, path: str | Path) -> Script:
        """Load one script file; its stem names the archetype."""
        path = Path(path)
        archetype = path.stem
        try:
            with open(path, 'r', encoding='utf-8-sig') as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            return self._disable(archetype, ParseError(f"cannot read script: {e}", str(path)))

        return self.load_string(text, archetype, str(path))

    def load_string(self, text: str, archetype: str, source: str = "<string>") -> Script:
        """Parse and cache a script from text. Reparsing the same text yields an equal Script."""
        try:
            script = parse_script(text, archetype, source)
            self.check_writes(script)
        except ParseError as e:
            return self._disable(archetype, e)

        self.errors.pop(archetype, None)
        self._scripts[archetype] = script
        return script

    def check_writes(self, script: Script) -> None:
        """
        Reject scripts that write undeclared variables or store literals of
        the wrong type.

        Raises:
            ParseError: naming the first offending variable
        """
        for node in walk(script.body):
            if not isinstance(node, Set):
                continue
            decl = self.manifest.get(node.name)
            if decl is None:
                raise ParseError(f"set of undeclared variable {node.name}", script.source)
            if isinstance(node.value, Literal) and VarType.of(node.value.value) is not decl.type:
                raise ParseError(
                    f"{node.name} is declared {decl.type.value}, got {node.value.value!r}",
                    script.source,
                )

    def _disable(self, archetype: str, error: ParseError) -> Script:
        self.logger.error(f"Dialogue script '{archetype}' disabled: {error}")
        self.errors[archetype] = error
        fallback = Script(
            archetype=archetype,
            body=(Say(Text.of(self.config.fallback_line)),),
            source=error.source,
            disabled=True,
        )
        self._scripts[archetype] = fallback
        return fallback

    def get(self, archetype: str) -> Optional[Script]:
        """Get a cached script, loading it from disk on first use."""
        if archetype in self._scripts:
            return self._scripts[archetype]

        path = self.config.script_dir / f"{archetype}{self.config.script_extension}"
        if not path.exists():
            self.logger.warning(f"Dialogue script not found: {path}")
            return None
        return self.load_file(path)

    def is_disabled(self, archetype: str) -> bool:
        return archetype in self.errors

    @property
    def archetypes(self) -> list[str]:
        return sorted(self._scripts)

    def __contains__(self, archetype: str) -> bool:
        return archetype in self._scripts
