"""
Dialogue AST - the closed set of expression and node types.

Everything here is frozen. A Script is parsed once per archetype and then
shared by every NPC instance and every conversation, so no node may carry
mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

Value = Union[bool, int, str]


# Expressions

@dataclass(frozen=True)
class Literal:
    value: Value


@dataclass(frozen=True)
class VarRef:
    name: str


class CompareOp(Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="

    @property
    def is_ordering(self) -> bool:
        return self not in (CompareOp.EQ, CompareOp.NE)


@dataclass(frozen=True)
class Compare:
    op: CompareOp
    lhs: Expression
    rhs: Expression


class LogicOp(Enum):
    AND = "and"
    OR = "or"
    NOT = "not"


@dataclass(frozen=True)
class BoolOp:
    op: LogicOp
    operands: tuple[Expression, ...]


Expression = Union[Literal, VarRef, Compare, BoolOp]


# Text

@dataclass(frozen=True)
class Pick:
    """Random choice between literal alternatives, re-rolled on every run."""
    alternatives: tuple[str, ...]


TextPart = Union[str, Pick]


@dataclass(frozen=True)
class Text:
    """
    Authored text: literal runs and nested picks.

    #NAME placeholders stay verbatim here and are resolved when the text
    is emitted.
    """
    parts: tuple[TextPart, ...] = ()

    @classmethod
    def of(cls, value: str) -> Text:
        return cls((value,))

    def literal_strings(self) -> list[str]:
        """Every string an author wrote in this text, picks included."""
        strings: list[str] = []
        for part in self.parts:
            if isinstance(part, Pick):
                strings.extend(part.alternatives)
            else:
                strings.append(part)
        return strings


# Nodes

class Else:
    """The catch-all test of a cond clause."""

    _instance: Optional[Else] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ELSE"


ELSE = Else()


@dataclass(frozen=True)
class Clause:
    test: Union[Expression, Else]
    body: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Cond:
    clauses: tuple[Clause, ...]


@dataclass(frozen=True)
class Say:
    text: Text


@dataclass(frozen=True)
class Option:
    label: Text
    guard: Optional[Expression] = None
    body: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Give:
    item: str
    message: Text


@dataclass(frozen=True)
class Offer:
    item: str


@dataclass(frozen=True)
class Spend:
    amount: int


@dataclass(frozen=True)
class Set:
    name: str
    value: Expression


@dataclass(frozen=True)
class End:
    message: Optional[Text] = None


Node = Union[Cond, Say, Option, Give, Offer, Spend, Set, End]


@dataclass(frozen=True)
class Script:
    """
    An immutable dialogue script: the AST root for one NPC archetype.

    Attributes:
        archetype: Archetype name (the script file stem)
        body: Top-level forms, executed in order on every talk
        source: Where the script was read from
        disabled: True when the script failed to load and this is the fallback
    """
    archetype: str
    body: tuple[Node, ...] = field(default_factory=tuple)
    source: str = "<string>"
    disabled: bool = False


def walk(nodes: tuple[Node, ...]):
    """Yield every node in a body, depth first, including option bodies."""
    for node in nodes:
        yield node
        if isinstance(node, Cond):
            for clause in node.clauses:
                yield from walk(clause.body)
        elif isinstance(node, Option):
            yield from walk(node.body)


def walk_expression(expr: Expression):
    """Yield an expression and all of its sub-expressions."""
    yield expr
    if isinstance(expr, Compare):
        yield from walk_expression(expr.lhs)
        yield from walk_expression(expr.rhs)
    elif isinstance(expr, BoolOp):
        for operand in expr.operands:
            yield from walk_expression(operand)
