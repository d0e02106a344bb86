"""
Dialogue script parser - converts reader output into a typed AST.

Script format:

```
; The mayor greets newcomers once, then gets on with the day.
(cond
  ((= DIALOGUE_STATE 0)
    ((say "Welcome to #TOWN_NAME, stranger.")
     (option "Thank you." (set DIALOGUE_STATE 1))
     (option "Buy a map (2 gold)" (>= PLAYER_WALLET 2)
       ((spend 2) (give MAP "The mayor hands you a map.")))))
  (else (say (pick "Good day." "Busy, busy."))))
```

The head symbol of each list selects its form. Parsing validates every
form once, so a Script that parses is structurally executable and the
interpreter never re-checks shapes.
"""

from __future__ import annotations

from typing import Union

from dialogue.errors import ParseError
from dialogue.script.nodes import (
    ELSE,
    BoolOp,
    Clause,
    Compare,
    CompareOp,
    Cond,
    Else,
    End,
    Expression,
    Give,
    Literal,
    LogicOp,
    Node,
    Offer,
    Option,
    Pick,
    Say,
    Script,
    Set,
    Spend,
    Text,
    TextPart,
    VarRef,
)
from dialogue.script.reader import Datum, IntAtom, Reader, SList, StringAtom, Symbol

COMPARE_OPS = {op.value: op for op in CompareOp}
LOGIC_OPS = {op.value: op for op in LogicOp}

STATEMENT_FORMS = frozenset({"cond", "say", "option", "give", "set", "spend", "offer", "end"})
RESERVED = STATEMENT_FORMS | {"else", "pick"} | set(COMPARE_OPS) | set(LOGIC_OPS)

BOOLEANS = {"true": True, "false": False}


class Parser:
    """
    Converts reader data into Nodes and Expressions.

    Usage:
        parser = Parser(source="mayor.dlg")
        body = parser.parse_body_forms(read(text, "mayor.dlg"))
    """

    def __init__(self, source: str = "<string>"):
        self.source = source

    def error(self, message: str, datum: Datum | None = None) -> ParseError:
        if datum is None:
            return ParseError(message, self.source)
        return ParseError(message, self.source, datum.line, datum.column)

    # Bodies

    def parse_body_forms(self, data: list[Datum]) -> tuple[Node, ...]:
        """Parse a sequence of data where each item is a form or a list of forms."""
        nodes: list[Node] = []
        for datum in data:
            nodes.extend(self.parse_body(datum))
        return tuple(nodes)

    def parse_body(self, datum: Datum, in_option: bool = False) -> tuple[Node, ...]:
        """
        Parse a body: a single form, a list of forms, or () for nothing.
        """
        if not isinstance(datum, SList):
            raise self.error("expected a form or a list of forms", datum)

        if not datum.items:
            return ()

        if isinstance(datum.head, SList):
            return tuple(self.parse_form(item, in_option) for item in datum.items)

        return (self.parse_form(datum, in_option),)

    def parse_form(self, datum: Datum, in_option: bool = False) -> Node:
        if not isinstance(datum, SList) or not datum.items:
            raise self.error("expected a form", datum)

        head = datum.head
        if not isinstance(head, Symbol):
            raise self.error("form must start with a symbol", datum)

        name = head.name
        if name not in RESERVED:
            raise self.error(f"unknown form '{name}'", head)
        if name not in STATEMENT_FORMS:
            raise self.error(f"'{name}' cannot be used as a statement", head)

        args = datum.items[1:]

        if name == "cond":
            return self._parse_cond(datum, args, in_option)
        if name == "say":
            return Say(self.parse_text_parts(datum, args))
        if name == "option":
            if in_option:
                raise self.error("option cannot appear inside another option", head)
            return self._parse_option(datum, args)
        if name == "give":
            self._expect_arity(datum, args, 2)
            return Give(self._parse_item(args[0]), self.parse_text(args[1]))
        if name == "offer":
            self._expect_arity(datum, args, 1)
            return Offer(self._parse_item(args[0]))
        if name == "spend":
            self._expect_arity(datum, args, 1)
            amount = args[0]
            if not isinstance(amount, IntAtom) or amount.value < 0:
                raise self.error("spend takes a non-negative integer", amount)
            return Spend(amount.value)
        if name == "set":
            self._expect_arity(datum, args, 2)
            target = args[0]
            if not isinstance(target, Symbol) or target.name in RESERVED or target.name in BOOLEANS:
                raise self.error("set needs a variable name", target)
            return Set(target.name, self.parse_expression(args[1]))

        # end
        if len(args) > 1:
            raise self.error("end takes at most one message", datum)
        return End(self.parse_text(args[0]) if args else None)

    def _parse_cond(self, datum: SList, args: tuple, in_option: bool) -> Cond:
        if not args:
            raise self.error("cond needs at least one clause", datum)

        clauses: list[Clause] = []
        for index, clause in enumerate(args):
            if not isinstance(clause, SList) or len(clause) != 2:
                raise self.error("cond clause must be a (test body) pair", clause)

            test_datum, body_datum = clause.items
            if isinstance(test_datum, Symbol) and test_datum.name == "else":
                if index != len(args) - 1:
                    raise self.error("else must be the last cond clause", test_datum)
                test: Union[Expression, Else] = ELSE
            else:
                test = self.parse_expression(test_datum)

            clauses.append(Clause(test, self.parse_body(body_datum, in_option)))

        return Cond(tuple(clauses))

    def _parse_option(self, datum: SList, args: tuple) -> Option:
        if len(args) == 2:
            label, body = args
            guard = None
        elif len(args) == 3:
            label, guard_datum, body = args
            guard = self.parse_expression(guard_datum)
        else:
            raise self.error("option takes a label, an optional guard and a body", datum)

        return Option(self.parse_text(label), guard, self.parse_body(body, in_option=True))

    def _parse_item(self, datum: Datum) -> str:
        if isinstance(datum, Symbol) and datum.name not in RESERVED:
            return datum.name
        if isinstance(datum, StringAtom) and datum.value:
            return datum.value
        raise self.error("expected an item template name", datum)

    def _expect_arity(self, datum: SList, args: tuple, count: int) -> None:
        if len(args) != count:
            head = datum.head.name
            raise self.error(f"{head} takes {count} argument{'s' if count != 1 else ''}, got {len(args)}", datum)

    # Text

    def parse_text(self, datum: Datum) -> Text:
        """A single text argument: a string or a (pick ...)."""
        return Text((self._parse_text_part(datum),))

    def parse_text_parts(self, datum: SList, args: tuple) -> Text:
        if not args:
            raise self.error("say needs some text", datum)
        return Text(tuple(self._parse_text_part(arg) for arg in args))

    def _parse_text_part(self, datum: Datum) -> TextPart:
        if isinstance(datum, StringAtom):
            return datum.value
        if isinstance(datum, SList) and isinstance(datum.head, Symbol) and datum.head.name == "pick":
            return self._parse_pick(datum)
        raise self.error("expected a string or (pick ...)", datum)

    def _parse_pick(self, datum: SList) -> Pick:
        alternatives = datum.items[1:]
        if not alternatives:
            raise self.error("pick needs at least one alternative", datum)
        for alt in alternatives:
            if not isinstance(alt, StringAtom):
                raise self.error("pick alternatives must be strings", alt)
        return Pick(tuple(alt.value for alt in alternatives))

    # Expressions

    def parse_expression(self, datum: Datum) -> Expression:
        if isinstance(datum, IntAtom):
            return Literal(datum.value)
        if isinstance(datum, StringAtom):
            return Literal(datum.value)
        if isinstance(datum, Symbol):
            if datum.name in BOOLEANS:
                return Literal(BOOLEANS[datum.name])
            if datum.name in RESERVED:
                raise self.error(f"'{datum.name}' is not a value", datum)
            return VarRef(datum.name)

        if not datum.items:
            raise self.error("empty expression", datum)

        head = datum.head
        if not isinstance(head, Symbol):
            raise self.error("expression must start with an operator", datum)

        args = datum.items[1:]

        if head.name in COMPARE_OPS:
            if len(args) != 2:
                raise self.error(f"'{head.name}' compares exactly two values", datum)
            return Compare(
                COMPARE_OPS[head.name],
                self.parse_expression(args[0]),
                self.parse_expression(args[1]),
            )

        if head.name in LOGIC_OPS:
            op = LOGIC_OPS[head.name]
            if op is LogicOp.NOT and len(args) != 1:
                raise self.error("not takes exactly one operand", datum)
            if not args:
                raise self.error(f"{head.name} needs at least one operand", datum)
            return BoolOp(op, tuple(self.parse_expression(arg) for arg in args))

        if head.name in RESERVED:
            raise self.error(f"'{head.name}' cannot be used as an expression", head)
        raise self.error(f"unknown form '{head.name}'", head)


def parse_script(text: str, archetype: str, source: str = "<string>") -> Script:
    """
    Read and parse a complete dialogue script.

    Raises:
        ParseError: on malformed text or an invalid form
    """
    data = Reader(text, source).read_all()
    body = Parser(source).parse_body_forms(data)
    return Script(archetype=archetype, body=body, source=source)
