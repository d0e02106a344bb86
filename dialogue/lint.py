"""
Offline content lint for dialogue scripts.

Run before release against every script. Catches the authoring defects the
runtime deliberately tolerates: unresolved placeholders, reads of
variables nobody declared, and scripts that failed to load at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from dialogue.environment import ScopeManifest, VarType
from dialogue.library import ScriptLibrary
from dialogue.placeholders import find_placeholders
from dialogue.script.nodes import (
    ELSE,
    Cond,
    Give,
    Literal,
    Option,
    Say,
    Script,
    Set,
    End,
    Text,
    VarRef,
    walk,
    walk_expression,
)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class LintIssue:
    archetype: str
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.archetype}: {self.message}"


def lint_script(
    script: Script,
    manifest: ScopeManifest,
    known_tokens: Iterable[str],
) -> list[LintIssue]:
    """Check one parsed script."""
    known = frozenset(known_tokens)
    issues: list[LintIssue] = []

    def report(severity: Severity, message: str) -> None:
        issue = LintIssue(script.archetype, severity, message)
        if issue not in issues:
            issues.append(issue)

    def check_text(text: Text | None) -> None:
        if text is None:
            return
        for string in text.literal_strings():
            for token in find_placeholders(string):
                if token not in known:
                    report(Severity.ERROR, f"unknown placeholder #{token}")

    def check_expression(expr) -> None:
        for sub in walk_expression(expr):
            if isinstance(sub, VarRef) and sub.name not in manifest:
                report(Severity.WARNING, f"reads undeclared variable {sub.name}")

    for node in walk(script.body):
        if isinstance(node, Say):
            check_text(node.text)
        elif isinstance(node, Option):
            check_text(node.label)
            if node.guard is not None:
                check_expression(node.guard)
        elif isinstance(node, Give):
            check_text(node.message)
        elif isinstance(node, End):
            check_text(node.message)
        elif isinstance(node, Cond):
            for clause in node.clauses:
                if clause.test is not ELSE:
                    check_expression(clause.test)
        elif isinstance(node, Set):
            check_expression(node.value)
            decl = manifest.get(node.name)
            if decl is None:
                report(Severity.ERROR, f"sets undeclared variable {node.name}")
            elif isinstance(node.value, Literal) and VarType.of(node.value.value) is not decl.type:
                report(Severity.ERROR, f"sets {decl.type.value} variable {node.name} to {node.value.value!r}")

    return issues


def lint_library(
    library: ScriptLibrary,
    known_tokens: Iterable[str],
) -> list[LintIssue]:
    """Check every script in a loaded library."""
    known = frozenset(known_tokens)
    issues: list[LintIssue] = []

    for archetype in library.archetypes:
        if library.is_disabled(archetype):
            issues.append(LintIssue(archetype, Severity.ERROR, str(library.errors[archetype])))
            continue
        issues.extend(lint_script(library.get(archetype), library.manifest, known))

    return issues


def has_errors(issues: Iterable[LintIssue]) -> bool:
    return any(issue.severity is Severity.ERROR for issue in issues)
