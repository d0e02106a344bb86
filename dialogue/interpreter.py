"""
Dialogue interpreter - executes script bodies.

A body runs in two phases:

1. run(): walk the nodes against a staged environment. Text is collected,
   displayable options are gathered, and side effects are recorded in the
   order they are reached. Writes made by `set` are visible to later tests
   in the same body but touch nothing real.
2. commit(): check that every `spend` in the body is affordable, then apply
   the staged writes and perform the effects. If the player cannot pay,
   nothing from the body happens at all.

The interpreter keeps no state between turns. Every talk starts again from
the script root; continuity lives only in environment variables.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from engine.core.events import DialogueEvent, EventBus
from dialogue.collaborators import Economy
from dialogue.environment import UNSET, ScopedEnvironment, StagedEnvironment
from dialogue.errors import EvalError, ScopeError
from dialogue.evaluator import evaluate, truthy
from dialogue.placeholders import LoreProvider, substitute
from dialogue.script.nodes import (
    ELSE,
    Cond,
    End,
    Give,
    Node,
    Offer,
    Option,
    Pick,
    Say,
    Set,
    Spend,
    Text,
    VarRef,
)

logger = logging.getLogger(__name__)


class EffectKind(Enum):
    GIVE = auto()
    SPEND = auto()
    OFFER = auto()


@dataclass(frozen=True)
class Effect:
    """A side effect recorded during run(), performed by commit()."""
    kind: EffectKind
    item: str = ""
    amount: int = 0
    message: str = ""


@dataclass
class Turn:
    """
    Everything one body execution produced.

    Attributes:
        lines: Emitted text, picks resolved, placeholders still verbatim
        options: Options whose guards passed, in written order
        effects: Recorded side effects, in the order they were reached
        stage: Pending variable writes
        ended: True if an `end` form was reached
    """
    stage: StagedEnvironment
    lines: list[str] = field(default_factory=list)
    options: list[Option] = field(default_factory=list)
    effects: list[Effect] = field(default_factory=list)
    ended: bool = False

    @property
    def text(self) -> str:
        return "\n".join(line for line in self.lines if line)

    @property
    def spend_total(self) -> int:
        return sum(e.amount for e in self.effects if e.kind is EffectKind.SPEND)

    @property
    def has_effects(self) -> bool:
        return bool(self.effects or self.stage.pending)


@dataclass
class CommitResult:
    """Outcome of committing a Turn."""
    committed: bool
    refused: bool = False
    written: list[tuple[str, object]] = field(default_factory=list)


class _EndReached(Exception):
    """Unwinds the body walk when an `end` form runs."""


class Interpreter:
    """
    Runs dialogue bodies.

    Usage:
        interp = Interpreter(rng=random.Random(42))
        turn = interp.run(script.body, env.view("mayor_1"))
        interp.commit(turn, "mayor_1", "player", economy)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.rng = rng or random.Random()
        self.event_bus = event_bus

    # Phase 1: run

    def run(self, body: tuple[Node, ...], env: ScopedEnvironment) -> Turn:
        """Execute a body against a fresh stage over the environment."""
        turn = Turn(stage=env.stage())
        try:
            self._exec_body(body, turn)
        except _EndReached:
            turn.ended = True
        return turn

    def _exec_body(self, body: tuple[Node, ...], turn: Turn) -> None:
        for node in body:
            self._exec(node, turn)

    def _exec(self, node: Node, turn: Turn) -> None:
        if isinstance(node, Cond):
            for clause in node.clauses:
                if clause.test is ELSE or self._test(clause.test, turn):
                    self._exec_body(clause.body, turn)
                    return
            return

        if isinstance(node, Say):
            turn.lines.append(self.render(node.text))

        elif isinstance(node, Option):
            if node.guard is None or self._test(node.guard, turn):
                turn.options.append(node)

        elif isinstance(node, Set):
            try:
                value = self._set_value(node, turn)
                turn.stage.set(node.name, value)
            except (EvalError, ScopeError) as e:
                logger.warning(f"Skipping (set {node.name} ...): {e}")

        elif isinstance(node, Give):
            turn.effects.append(Effect(EffectKind.GIVE, item=node.item, message=self.render(node.message)))

        elif isinstance(node, Spend):
            turn.effects.append(Effect(EffectKind.SPEND, amount=node.amount))

        elif isinstance(node, Offer):
            turn.effects.append(Effect(EffectKind.OFFER, item=node.item))

        elif isinstance(node, End):
            if node.message is not None:
                turn.lines.append(self.render(node.message))
            raise _EndReached()

    def _set_value(self, node: Set, turn: Turn):
        # An unbound, undeclared source takes the target's type default
        if isinstance(node.value, VarRef) and turn.stage.lookup(node.value.name) is UNSET:
            decl = turn.stage.base.manifest.get(node.name)
            if decl is not None:
                return decl.type.default
        return evaluate(node.value, turn.stage)

    def _test(self, expr, turn: Turn) -> bool:
        try:
            return truthy(evaluate(expr, turn.stage))
        except EvalError as e:
            logger.warning(f"Treating failed test as false: {e}")
            return False

    def render(self, text: Text) -> str:
        """Resolve picks; every call rolls again."""
        return "".join(
            self.rng.choice(part.alternatives) if isinstance(part, Pick) else part
            for part in text.parts
        )

    # Phase 2: commit

    def commit(
        self,
        turn: Turn,
        npc_id: str,
        player_id: str,
        economy: Optional[Economy],
        lore: Optional[LoreProvider] = None,
    ) -> CommitResult:
        """
        Apply a Turn's writes and effects, all or nothing.

        Currency is checked, and charged in one call, before anything else
        is applied.
        """
        total = turn.spend_total
        if total > 0:
            if economy is None or economy.balance(player_id) < total \
                    or not economy.spend_currency(player_id, total):
                turn.stage.discard()
                self._publish(DialogueEvent.PURCHASE_REFUSED, npc_id=npc_id, amount=total)
                return CommitResult(committed=False, refused=True)
            self._publish(DialogueEvent.CURRENCY_SPENT, npc_id=npc_id, amount=total)

        written = turn.stage.commit()
        for name, value in written:
            self._publish(DialogueEvent.VARIABLE_SET, npc_id=npc_id, name=name, value=value)

        for effect in turn.effects:
            if effect.kind is EffectKind.SPEND:
                continue
            if economy is None:
                logger.warning(f"No economy to perform {effect.kind.name} for {npc_id}")
                continue
            if effect.kind is EffectKind.GIVE:
                economy.give_item(npc_id, player_id, effect.item, substitute(effect.message, lore))
                self._publish(DialogueEvent.ITEM_GIVEN, npc_id=npc_id, item=effect.item)
            else:
                accepted = economy.offer_item(effect.item)
                self._publish(DialogueEvent.ITEM_OFFERED, npc_id=npc_id, item=effect.item, accepted=accepted)

        return CommitResult(committed=True, written=written)

    def _publish(self, event_type: DialogueEvent, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, **data)
