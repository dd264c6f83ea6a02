import pytest

EXPR_GRAMMAR = """\
E->E+T
E->T
T->T*F
T->F
F->(E)
F->i
"""

DANGLING_ELSE_GRAMMAR = """\
S->iEtS
S->iEtSeS
S->a
E->b
"""


@pytest.fixture
def expr_text() -> str:
    return EXPR_GRAMMAR


@pytest.fixture
def dangling_else_text() -> str:
    return DANGLING_ELSE_GRAMMAR
