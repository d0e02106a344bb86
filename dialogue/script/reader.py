"""
Script reader - converts raw dialogue script text into nested lists.

The reader knows nothing about forms. It only produces the raw structure
the parser interprets:

    (cond ((= DIALOGUE_STATE 0) (say "Hello, #PLAYER_NAME!")))

becomes an SList holding a Symbol, then a nested SList, and so on. Every
atom and list remembers where it started so the parser can report errors
with a line and column.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from dialogue.errors import ParseError


@dataclass(frozen=True)
class Symbol:
    """A bare word: form heads, variable names, item templates, true/false."""
    name: str
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class StringAtom:
    """A double-quoted string with escapes already decoded."""
    value: str
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class IntAtom:
    """An integer literal."""
    value: int
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class SList:
    """A parenthesized list of atoms and lists."""
    items: tuple = field(default_factory=tuple)
    line: int = 0
    column: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __iter__(self):
        return iter(self.items)

    @property
    def head(self) -> Union[Symbol, StringAtom, IntAtom, SList, None]:
        return self.items[0] if self.items else None


Atom = Union[Symbol, StringAtom, IntAtom]
Datum = Union[Atom, SList]

_ESCAPES = {
    'n': '\n',
    't': '\t',
    '"': '"',
    '\\': '\\',
}

_DELIMITERS = set('()";')


class Reader:
    """
    Character-level reader for s-expression scripts.

    Usage:
        data = Reader(text, source="mayor.dlg").read_all()
    """

    def __init__(self, text: str, source: str = "<string>"):
        self.text = text
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def error(self, message: str, line: int | None = None, column: int | None = None) -> ParseError:
        return ParseError(
            message,
            self.source,
            self.line if line is None else line,
            self.column if column is None else column,
        )

    @property
    def current(self) -> str:
        if self.pos >= len(self.text):
            return "\0"
        return self.text[self.pos]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def advance(self) -> str:
        ch = self.current
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def skip_trivia(self) -> None:
        """Skip whitespace and ; comments."""
        while not self.at_end():
            ch = self.current
            if ch.isspace() or ch == "\ufeff":
                self.advance()
            elif ch == ";":
                while not self.at_end() and self.current != "\n":
                    self.advance()
            else:
                break

    def read_all(self) -> list[Datum]:
        """Read every top-level datum in the text."""
        data: list[Datum] = []
        while True:
            self.skip_trivia()
            if self.at_end():
                return data
            if self.current == ")":
                raise self.error("unbalanced ')'")
            data.append(self.read_datum())

    def read_datum(self) -> Datum:
        self.skip_trivia()
        if self.at_end():
            raise self.error("unexpected end of script")

        ch = self.current
        if ch == "(":
            return self.read_list()
        if ch == '"':
            return self.read_string()
        return self.read_atom()

    def read_list(self) -> SList:
        line, column = self.line, self.column
        self.advance()  # (
        items: list[Datum] = []

        while True:
            self.skip_trivia()
            if self.at_end():
                raise self.error("unbalanced '(': list is never closed", line, column)
            if self.current == ")":
                self.advance()
                return SList(tuple(items), line, column)
            items.append(self.read_datum())

    def read_string(self) -> StringAtom:
        line, column = self.line, self.column
        self.advance()  # opening quote
        chars: list[str] = []

        while True:
            if self.at_end():
                raise self.error("unterminated string", line, column)
            ch = self.advance()
            if ch == '"':
                return StringAtom("".join(chars), line, column)
            if ch == "\\":
                if self.at_end():
                    raise self.error("unterminated string", line, column)
                esc = self.advance()
                # Unknown escapes are kept as written
                chars.append(_ESCAPES.get(esc, "\\" + esc))
            else:
                chars.append(ch)

    def read_atom(self) -> Atom:
        line, column = self.line, self.column
        start = self.pos
        while not self.at_end() and not self.current.isspace() and self.current not in _DELIMITERS:
            self.advance()

        word = self.text[start:self.pos]
        if _is_integer(word):
            return IntAtom(int(word), line, column)
        return Symbol(word, line, column)


def _is_integer(word: str) -> bool:
    digits = word[1:] if word[:1] in ("-", "+") else word
    return digits.isdigit() and digits.isascii()


def read(text: str, source: str = "<string>") -> list[Datum]:
    """Read script text into a list of top-level data."""
    return Reader(text, source).read_all()
