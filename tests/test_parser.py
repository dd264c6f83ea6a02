import pytest

from nrpp.pipeline import Pipeline
from nrpp.symbol import END_SYMBOL


@pytest.fixture
def expr(expr_text) -> Pipeline:
    return Pipeline(expr_text)


def test_accepts_expression(expr):
    p = expr.parse("i+i*i")
    assert p.accepted
    assert p.error is None
    assert len(p.trace) == 17

    first, last = p.trace[0], p.trace[-1]
    assert first.stack == (END_SYMBOL, "E")
    assert first.input == "i+i*i$"
    assert str(first.production) == "E->TE'"
    assert last.stack == (END_SYMBOL,)
    assert last.input == END_SYMBOL
    assert last.production is None


def test_production_is_recorded_on_the_row_it_expands(expr):
    p = expr.parse("i")
    steps = [(row.stack_text(), row.input, str(row.production) if row.production else None) for row in p.trace]
    assert steps == [
        ("$E", "i$", "E->TE'"),
        ("$E'T", "i$", "T->FT'"),
        ("$E'T'F", "i$", "F->i"),
        ("$E'T'i", "i$", None),
        ("$E'T'", "$", "T'->&"),
        ("$E'", "$", "E'->&"),
        ("$", "$", None),
    ]
    assert [str(prod) for prod in p.used_productions] == ["E->TE'", "T->FT'", "F->i", "T'->&", "E'->&"]


def test_space_in_input_is_a_character(expr):
    p = expr.parse("i + i")
    assert p.text == "i + i"
    assert not p.accepted
    assert "' '" in p.error.reason


def test_space_terminal_must_match():
    P = Pipeline("S->a b\n")
    assert P.parse("a b").accepted
    assert not P.parse("ab").accepted
    assert not Pipeline("S->ab\n").parse("a b").accepted


def test_rejects_when_table_cell_is_empty(expr):
    p = expr.parse("i+")
    assert not p.accepted
    assert p.error.row == p.trace[-1]
    assert p.error.row.stack == (END_SYMBOL, "E'", "T")
    assert p.error.row.input == END_SYMBOL
    assert p.error.expected == ("(", "i")


def test_rejects_on_terminal_mismatch(expr):
    p = expr.parse("(i")
    assert not p.accepted
    assert p.error.row.stack[-1] == ")"
    assert p.error.row.input == END_SYMBOL
    assert p.error.expected == (")",)
    assert "expected ')'" in str(p.error)


def test_rejects_unconsumed_input():
    p = Pipeline("S->a\n").parse("aa")
    assert not p.accepted
    assert p.error.reason == "unconsumed input"
    assert p.trace[-1].stack == (END_SYMBOL,)
    assert p.trace[-1].input == "a$"


def test_rejects_unknown_character(expr):
    assert not expr.parse("i+x").accepted


def test_dangling_else_binds_to_nearest_if(dangling_else_text):
    P = Pipeline(dangling_else_text)
    assert P.parse("ibtibtaea").accepted
    assert P.parse("ibta").accepted
    assert not P.parse("ibtae").accepted


def test_epsilon_grammar():
    P = Pipeline("S->aSb\nS->&\n")
    for w in ("", "ab", "aaabbb"):
        assert P.parse(w).accepted
    for w in ("a", "abb", "ba"):
        assert not P.parse(w).accepted


def test_parse_tree(expr):
    p = expr.parse("i*i", build_tree=True)
    assert p.tree is not None
    assert p.tree.symbol == "E"
    assert p.tree.leaves() == "i*i"
    assert [c.symbol for c in p.tree.children] == ["T", "E'"]
    assert [c.symbol for c in p.tree.children[1].children] == ["&"]


def test_no_tree_for_rejected_input(expr):
    assert expr.parse("i+", build_tree=True).tree is None


def test_debug_lines(expr):
    p = expr.parse("i", debug=True)
    assert p.debug_lines[0].startswith("00001 INIT")
    assert any("match 'i'" in line for line in p.debug_lines)
    assert expr.parse("i").debug_lines == []


def test_step_limit():
    # 间接左递归不在处理范围内，靠步数上限终止
    P = Pipeline("A->a\nA->B\nB->a\nB->A\n")
    assert str(P.table.get("A", "a")) == "A->B"
    assert str(P.table.get("B", "a")) == "B->A"
    p = P.parse("a", max_steps=50)
    assert not p.accepted
    assert "step limit" in p.error.reason


def test_export(expr):
    out = expr.parse("i+").export()
    assert out["accepted"] is False
    assert out["trace"][0] == {"stack": "$E", "input": "i+$", "production": "E->TE'"}
    assert out["error"].startswith("no production for T")


def test_pipeline_is_shared_between_parses(expr):
    a = expr.parse("i")
    b = expr.parse("i+i")
    assert a.trace is not b.trace
    assert a.accepted and b.accepted
