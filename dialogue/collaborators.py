"""
Collaborator interfaces consumed by a conversation.

The dialogue engine never draws text, reads keys or owns items. It talks to
three collaborators supplied by the game:

- Presenter: shows text and menus and collects the player's choice
- Economy: gives and offers items, checks and charges currency
- LoreProvider: resolves #NAME placeholders (see dialogue.placeholders)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Union

from dialogue.environment import Environment

logger = logging.getLogger(__name__)


class _Cancel:
    """Returned by a presenter when the player backs out of a menu."""

    def __repr__(self) -> str:
        return "CANCEL"


CANCEL = _Cancel()

MenuResult = Union[int, _Cancel]


@dataclass(frozen=True)
class MenuEntry:
    """One displayable option: its menu index, hot-key and resolved label."""
    index: int
    key: str
    label: str


class Presenter(Protocol):
    def present_text(self, text: str) -> None:
        ...

    def present_menu(self, text: str, entries: list[MenuEntry]) -> MenuResult:
        """Show text with a menu and block until the player picks or cancels."""
        ...

    def confirm(self, prompt: str) -> bool:
        ...


class Economy(Protocol):
    def give_item(self, npc_id: str, player_id: str, item: str, message: str) -> None:
        ...

    def balance(self, player_id: str) -> int:
        ...

    def spend_currency(self, player_id: str, amount: int) -> bool:
        ...

    def offer_item(self, item: str) -> bool:
        ...


@dataclass
class WalletEconomy:
    """
    Economy backed by quest state: the player's purse is the global
    PLAYER_WALLET variable, and given items are kept in a list.
    """
    env: Environment
    wallet_var: str = "PLAYER_WALLET"
    accept_offers: bool = True
    given: list[tuple[str, str, str]] = field(default_factory=list)
    offered: list[str] = field(default_factory=list)

    def give_item(self, npc_id: str, player_id: str, item: str, message: str) -> None:
        self.given.append((npc_id, player_id, item))
        logger.debug(f"{npc_id} gave {item} to {player_id}")

    def balance(self, player_id: str) -> int:
        value = self.env.get_global(self.wallet_var)
        return value if isinstance(value, int) and not isinstance(value, bool) else 0

    def spend_currency(self, player_id: str, amount: int) -> bool:
        current = self.balance(player_id)
        if current < amount:
            return False
        self.env.set_global(self.wallet_var, current - amount)
        return True

    def offer_item(self, item: str) -> bool:
        self.offered.append(item)
        return self.accept_offers
