import pytest
from dialogue.errors import ParseError
from dialogue.script.reader import read, Symbol, StringAtom, IntAtom, SList

def test_reads_nested_lists():
    data = read('(cond ((= DIALOGUE_STATE 0) (say "hi")))')

    assert len(data) == 1
    cond = data[0]
    assert isinstance(cond, SList)
    assert cond.head == Symbol("cond", 1, 2)
    clause = cond[1]
    test = clause[0]
    assert [type(item) for item in test] == [Symbol, Symbol, IntAtom]
    assert test[2].value == 0
    assert clause[1][1] == StringAtom("hi", 1, 34)

def test_multiple_top_level_forms():
    data = read('(say "a")\n(say "b")')
    assert len(data) == 2
    assert data[1].line == 2

def test_comments_are_stripped():
    data = read('; greeting\n(say "hi") ; trailing\n; done')
    assert len(data) == 1
    assert data[0][1].value == "hi"

def test_leading_byte_order_mark_is_skipped():
    data = read('\ufeff(say "hi")')
    assert len(data) == 1
    assert data[0].head.name == "say"

def test_semicolon_inside_string_is_not_a_comment():
    data = read('(say "wait; what?")')
    assert data[0][1].value == "wait; what?"

def test_string_escapes():
    data = read(r'(say "line one\nline \"two\" \\ done")')
    assert data[0][1].value == 'line one\nline "two" \\ done'

def test_placeholders_kept_verbatim():
    data = read('(say "Welcome to #TOWN_NAME.")')
    assert data[0][1].value == "Welcome to #TOWN_NAME."

def test_integers_and_signed_integers():
    data = read("(spend 12) (set X -3) (set Y +4)")
    assert data[0][1] == IntAtom(12, 1, 8)
    assert data[1][2].value == -3
    assert data[2][2].value == 4

def test_operator_symbols():
    data = read("(>= A 2) (!= B 1) (- C)")
    assert data[0].head.name == ">="
    assert data[1].head.name == "!="
    assert isinstance(data[2].head, Symbol)

def test_empty_list():
    data = read("()")
    assert data[0] == SList((), 1, 1)
    assert data[0].head is None

def test_unclosed_list_reports_opening_position():
    with pytest.raises(ParseError) as exc:
        read('(say "hi"\n', source="mayor.dlg")
    assert exc.value.source == "mayor.dlg"
    assert exc.value.line == 1
    assert exc.value.column == 1
    assert "mayor.dlg:1:1" in str(exc.value)

def test_stray_close_paren():
    with pytest.raises(ParseError) as exc:
        read('(say "hi"))')
    assert "unbalanced" in exc.value.message
    assert exc.value.column == 11

def test_unterminated_string():
    with pytest.raises(ParseError) as exc:
        read('(say "never ends)\n')
    assert "unterminated string" in exc.value.message
    assert (exc.value.line, exc.value.column) == (1, 6)

def test_tracks_lines_and_columns():
    data = read('\n\n   (say\n      "x")')
    assert (data[0].line, data[0].column) == (3, 4)
    assert (data[0][1].line, data[0][1].column) == (4, 7)
