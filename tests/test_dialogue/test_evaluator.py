import pytest
from dialogue.errors import EvalError
from dialogue.evaluator import evaluate, truthy
from dialogue.script.parser import Parser
from dialogue.script.reader import read

def expr(text):
    return Parser().parse_expression(read(text)[0])

@pytest.fixture
def view(env):
    env.set_global("PLAYER_WALLET", 3)
    env.set_global("PLAYER_TITLE", "hero")
    return env.view("mayor_1")

@pytest.mark.parametrize("text, expected", [
    ("(= PLAYER_WALLET 3)", True),
    ("(!= PLAYER_WALLET 3)", False),
    ("(> PLAYER_WALLET 2)", True),
    ("(< PLAYER_WALLET 2)", False),
    ("(>= PLAYER_WALLET 3)", True),
    ("(<= PLAYER_WALLET 2)", False),
    ('(= PLAYER_TITLE "hero")', True),
    ('(= PLAYER_WALLET "3")', True),
    ('(> PLAYER_WALLET "2")', True),
    ("(= true 1)", True),
    ("(= false 0)", True),
    ('(= true "true")', True),
    ('(= 3 "three")', False),
])
def test_comparisons(view, text, expected):
    assert evaluate(expr(text), view) is expected

def test_unbound_declared_variables_use_defaults(view):
    assert evaluate(expr("DIALOGUE_STATE"), view) == 0
    assert evaluate(expr("(= DIALOGUE_STATE 0)"), view) is True
    assert evaluate(expr("(= MET_PLAYER false)"), view) is True
    assert evaluate(expr("(not MET_PLAYER)"), view) is True

def test_undeclared_variable_takes_default_of_other_operand(view):
    assert evaluate(expr("(= NEVER_WRITTEN 0)"), view) is True
    assert evaluate(expr("(= NEVER_WRITTEN false)"), view) is True
    assert evaluate(expr('(= NEVER_WRITTEN "")'), view) is True
    assert evaluate(expr("(< NEVER_WRITTEN 1)"), view) is True
    assert evaluate(expr("(= NEVER_WRITTEN ALSO_NEVER)"), view) is True
    assert evaluate(expr("NEVER_WRITTEN"), view) is False

@pytest.mark.parametrize("text", [
    '(> PLAYER_TITLE 2)',
    '(< 1 "many")',
    '(>= true 0)',
    '(<= PLAYER_WALLET false)',
])
def test_ordering_requires_numbers(view, text):
    with pytest.raises(EvalError):
        evaluate(expr(text), view)

def test_and_or_short_circuit(view):
    # The ordering error on the right is never reached
    assert evaluate(expr('(and false (> PLAYER_TITLE 1))'), view) is False
    assert evaluate(expr('(or true (> PLAYER_TITLE 1))'), view) is True
    with pytest.raises(EvalError):
        evaluate(expr('(and true (> PLAYER_TITLE 1))'), view)

def test_logic_uses_truthiness(view):
    assert evaluate(expr("(and PLAYER_WALLET PLAYER_TITLE)"), view) is True
    assert evaluate(expr('(or 0 "")'), view) is False
    assert evaluate(expr("(not 0)"), view) is True
    assert evaluate(expr('(not "")'), view) is True
    assert evaluate(expr('(not "x")'), view) is False

def test_evaluation_is_pure(env, view):
    before = env.snapshot()
    evaluate(expr("(and (= DIALOGUE_STATE 0) (not MET_PLAYER) (> PLAYER_WALLET 1))"), view)
    assert env.snapshot() == before

def test_truthy():
    assert not truthy(0)
    assert not truthy("")
    assert not truthy(False)
    assert truthy(-1)
    assert truthy("0")
