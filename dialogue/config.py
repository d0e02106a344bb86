"""
Dialogue engine configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DialogueConfig:
    """Configuration for script loading and conversations."""

    def __init__(
        self,
        script_dir: str | Path = "game/data/dialogue",
        script_extension: str = ".dlg",
        manifest_path: Optional[str | Path] = None,
        rng_seed: Optional[int] = None,
        player_id: str = "player",
        fallback_line: str = "...",
        turn_away_line: str = "#NPC_NAME turns away from you.",
        cannot_afford_line: str = "You can't afford that.",
        currency_name: str = "zorkmids",
        confirm_purchases: bool = False,
    ):
        self.script_dir = Path(script_dir)
        self.script_extension = script_extension
        # Defaults to scopes.json beside the scripts
        self.manifest_path = Path(manifest_path) if manifest_path else self.script_dir / "scopes.json"
        self.rng_seed = rng_seed
        self.player_id = player_id
        self.fallback_line = fallback_line
        self.turn_away_line = turn_away_line
        self.cannot_afford_line = cannot_afford_line
        self.currency_name = currency_name
        self.confirm_purchases = confirm_purchases
