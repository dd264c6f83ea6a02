import pytest

from nrpp.first_follow import FirstSets, FollowSets, compute_select_sets
from nrpp.grammar import Grammar, UnknownNonTerminal, tokenize
from nrpp.symbol import END_SYMBOL, EPSILON


def sets_for(text: str):
    G = Grammar.from_text(text)
    first = FirstSets(G)
    return G, first, FollowSets(G, first)


def test_expression_grammar(expr_text):
    G, first, follow = sets_for(expr_text)
    assert first["E"] == {"(", "i"}
    assert first["T"] == {"(", "i"}
    assert first["F"] == {"(", "i"}
    assert first["E'"] == {"+", EPSILON}
    assert first["T'"] == {"*", EPSILON}

    assert follow["E"] == {")", END_SYMBOL}
    assert follow["E'"] == {")", END_SYMBOL}
    assert follow["T"] == {"+", ")", END_SYMBOL}
    assert follow["T'"] == {"+", ")", END_SYMBOL}
    assert follow["F"] == {"*", "+", ")", END_SYMBOL}


def test_every_first_set_is_non_empty(expr_text, dangling_else_text):
    for text in (expr_text, dangling_else_text):
        G, first, _ = sets_for(text)
        for nt in G.nonterminals:
            assert first.get(nt)


def test_follow_of_start_contains_end_marker(expr_text, dangling_else_text):
    for text in (expr_text, dangling_else_text, "S->aSb\nS->&\n"):
        G, _, follow = sets_for(text)
        assert END_SYMBOL in follow[G.start_symbol]


def test_nullable_nonterminal():
    G, first, follow = sets_for("S->aAB\nA->c\nA->&\nB->b\nB->&\n")
    assert first["A"] == {"c", EPSILON}
    # FIRST(B)\{ε}，且 B 可空时再并 FOLLOW(S)
    assert follow["A"] == {"b", END_SYMBOL}
    assert follow["B"] == {END_SYMBOL}


def test_nullable_nonterminal_followed_by_terminal():
    _, first, follow = sets_for("S->aAb\nA->c\nA->&\n")
    assert first["A"] == {"c", EPSILON}
    assert follow["A"] == {"b"}


def test_mutual_follow_dependency_terminates():
    # FOLLOW(A) 需要 FOLLOW(B)，FOLLOW(B) 又需要 FOLLOW(A)
    _, _, follow = sets_for("S->Ax\nA->aB\nA->&\nB->bA\nB->&\n")
    assert follow["A"] == {"x"}
    assert follow["B"] == {"x"}


def test_dangling_else_follow(dangling_else_text):
    _, first, follow = sets_for(dangling_else_text)
    assert first["S'"] == {"e", EPSILON}
    assert follow["S"] == {"e", END_SYMBOL}
    assert follow["S'"] == {"e", END_SYMBOL}
    assert follow["E"] == {"t"}


def test_first_of_body(expr_text):
    _, first, _ = sets_for(expr_text)
    assert first.first(tokenize("+TE'")) == {"+"}
    assert first.first(tokenize("E'T'")) == {"+", "*", EPSILON}
    assert first.first(tokenize("E'a")) == {"+", "a"}
    assert first.first(tokenize("&")) == {EPSILON}
    assert first.first(()) == {EPSILON}


def test_unknown_nonterminal_queries(expr_text):
    _, first, follow = sets_for(expr_text)
    with pytest.raises(UnknownNonTerminal):
        first.get("X")
    with pytest.raises(UnknownNonTerminal):
        follow["X"]
    with pytest.raises(UnknownNonTerminal):
        first.first(tokenize("aX"))


def test_select_sets(dangling_else_text):
    G, first, follow = sets_for(dangling_else_text)
    select = compute_select_sets(G, first.as_dict(), follow.as_dict())
    by_text = {str(p): s for p, s in select.items()}
    assert by_text["S->iEtSS'"] == {"i"}
    assert by_text["S'->&"] == {"e", END_SYMBOL}
    assert by_text["S'->eS"] == {"e"}


def test_export_orders_elements(expr_text):
    _, first, follow = sets_for(expr_text)
    assert first.export()[1] == {"non_terminal": "E'", "first": [EPSILON, "+"]}
    assert follow.export()[4] == {"non_terminal": "F", "follow": ["+", "*", ")", END_SYMBOL]}
