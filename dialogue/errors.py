"""
Dialogue script errors.

ParseError is fatal for one archetype at load time. EvalError and
ScopeError are raised during interpretation and recovered by the caller
that owns the offending clause.
"""

from __future__ import annotations

from typing import Optional


class ScriptError(Exception):
    """Base class for all dialogue script errors."""


class ParseError(ScriptError):
    """Malformed script text or an unknown/invalid form."""

    def __init__(
        self,
        message: str,
        source: str = "<string>",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        location = source
        if line is not None:
            location += f":{line}"
            if column is not None:
                location += f":{column}"
        super().__init__(f"{location}: {message}")
        self.message = message
        self.source = source
        self.line = line
        self.column = column


class EvalError(ScriptError):
    """An expression could not be evaluated (e.g. ordering a string)."""


class ScopeError(ScriptError):
    """A variable write that the scope manifest does not allow."""

    def __init__(self, message: str, name: str):
        super().__init__(message)
        self.name = name
