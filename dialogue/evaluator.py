"""
Expression evaluator.

Pure: evaluation reads the environment and never writes it. Comparisons
coerce both operands to a common type first:

- same type: compared as is
- bool and int: compared as ints
- int and a numeric string: compared as ints
- anything else: compared as strings (= and != only)

An unset, undeclared variable takes the default of the other operand's
type, so (= SOME_FLAG 0) and (= SOME_FLAG false) both hold for a flag no
script has written yet.
"""

from __future__ import annotations

import operator

from dialogue.environment import UNSET, VariableLookup, VarType
from dialogue.errors import EvalError
from dialogue.script.nodes import (
    BoolOp,
    Compare,
    CompareOp,
    Expression,
    Literal,
    LogicOp,
    Value,
    VarRef,
)

_COMPARATORS = {
    CompareOp.EQ: operator.eq,
    CompareOp.NE: operator.ne,
    CompareOp.GT: operator.gt,
    CompareOp.LT: operator.lt,
    CompareOp.GE: operator.ge,
    CompareOp.LE: operator.le,
}


def truthy(value) -> bool:
    """Script truthiness: 0, "" and false (and UNSET) are falsy."""
    if value is UNSET:
        return False
    return bool(value)


def evaluate(expr: Expression, env: VariableLookup) -> Value:
    """
    Evaluate an expression against an environment.

    Raises:
        EvalError: if operands cannot be compared
    """
    if isinstance(expr, Literal):
        return expr.value

    if isinstance(expr, VarRef):
        value = env.lookup(expr.name)
        # Bare UNSET only escapes through truthiness
        return False if value is UNSET else value

    if isinstance(expr, Compare):
        lhs = _operand(expr.lhs, env)
        rhs = _operand(expr.rhs, env)
        return compare(expr.op, lhs, rhs)

    if isinstance(expr, BoolOp):
        if expr.op is LogicOp.NOT:
            return not truthy(evaluate(expr.operands[0], env))
        if expr.op is LogicOp.AND:
            return all(truthy(evaluate(operand, env)) for operand in expr.operands)
        return any(truthy(evaluate(operand, env)) for operand in expr.operands)

    raise EvalError(f"cannot evaluate {expr!r}")


def _operand(expr: Expression, env: VariableLookup):
    if isinstance(expr, VarRef):
        return env.lookup(expr.name)
    return evaluate(expr, env)


def compare(op: CompareOp, lhs, rhs) -> bool:
    """Compare two values after coercing them to a common type."""
    if lhs is UNSET and rhs is UNSET:
        lhs = rhs = 0
    elif lhs is UNSET:
        lhs = VarType.of(rhs).default
    elif rhs is UNSET:
        rhs = VarType.of(lhs).default

    if op.is_ordering:
        left, right = _as_number(lhs, op), _as_number(rhs, op)
    else:
        left, right = _coerce_for_equality(lhs, rhs)

    return _COMPARATORS[op](left, right)


def _as_number(value: Value, op: CompareOp) -> int:
    if isinstance(value, bool):
        raise EvalError(f"'{op.value}' needs numbers, got boolean {value!r}")
    if isinstance(value, int):
        return value
    parsed = _parse_int(value)
    if parsed is None:
        raise EvalError(f"'{op.value}' needs numbers, got {value!r}")
    return parsed


def _coerce_for_equality(lhs: Value, rhs: Value) -> tuple[Value, Value]:
    left_type, right_type = VarType.of(lhs), VarType.of(rhs)
    if left_type is right_type:
        return lhs, rhs

    kinds = {left_type, right_type}
    if kinds == {VarType.BOOL, VarType.INT}:
        return int(lhs), int(rhs)

    if kinds == {VarType.INT, VarType.STR}:
        left = lhs if left_type is VarType.INT else _parse_int(lhs)
        right = rhs if right_type is VarType.INT else _parse_int(rhs)
        if left is not None and right is not None:
            return left, right

    return _as_text(lhs), _as_text(rhs)


def _as_text(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_int(text: str):
    stripped = text.strip()
    digits = stripped[1:] if stripped[:1] in ("-", "+") else stripped
    if digits.isdigit() and digits.isascii():
        return int(stripped)
    return None
