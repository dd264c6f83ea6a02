import logging
from typing import Dict, FrozenSet, Iterable, Iterator, List, Set, Tuple

from .grammar import Grammar, Production, UnknownNonTerminal
from .symbol import END_SYMBOL, EPSILON, Symbol

LOGGER = logging.getLogger(__name__)


def first_of_sequence(seq: Iterable[Symbol], first_sets: Dict[str, Set[str]]) -> Set[str]:
    """
    计算一个符号串（可含 终结符/非终结符）的 FIRST 集
    规则：
      FIRST(αβ...) = FIRST(α) 去掉 ε，再看 α 是否可空；若可空，再并 FIRST(β)，以此类推；
      若所有都可空（或符号串为空），则包含 ε。
    """
    result: Set[str] = set()
    nullable = True  # 记录前缀是否都可推出 ε
    for sym in seq:
        if sym.is_epsilon:
            continue
        if sym.is_terminal:
            sym_first = {sym.text}
        else:
            sym_first = first_sets[sym.text]

        result |= (sym_first - {EPSILON})
        if EPSILON not in sym_first:
            nullable = False
            break
    if nullable:
        result.add(EPSILON)
    return result


def compute_first_sets(grammar: Grammar) -> Dict[str, Set[str]]:
    # 初始化：非终结符 -> 空集（按登记顺序）
    first: Dict[str, Set[str]] = {nt: set() for nt in grammar.nonterminals}

    changed = True
    while changed:
        changed = False
        for prod in grammar.productions:
            A = prod.head
            before = len(first[A])
            first[A] |= first_of_sequence(prod.body, first)
            if len(first[A]) != before:
                changed = True
    return first


def compute_follow_sets(grammar: Grammar, first_sets: Dict[str, Set[str]]) -> Dict[str, Set[str]]:
    follow: Dict[str, Set[str]] = {nt: set() for nt in grammar.nonterminals}
    follow[grammar.start_symbol].add(END_SYMBOL)

    changed = True
    while changed:
        changed = False
        for prod in grammar.productions:
            A = prod.head
            body = prod.body
            for i, B in enumerate(body):
                if not B.is_nonterminal:
                    continue
                beta = body[i + 1 :]
                before = len(follow[B.text])
                if beta:
                    first_beta = first_of_sequence(beta, first_sets)
                    follow[B.text] |= (first_beta - {EPSILON})
                    if EPSILON in first_beta:
                        follow[B.text] |= follow[A]
                else:
                    follow[B.text] |= follow[A]
                if len(follow[B.text]) != before:
                    changed = True
    return follow


def compute_select_sets(
    grammar: Grammar, first_sets: Dict[str, Set[str]], follow_sets: Dict[str, Set[str]]
) -> Dict[Production, Set[str]]:
    select: Dict[Production, Set[str]] = {}
    for prod in grammar.productions:
        first_alpha = first_of_sequence(prod.body, first_sets)
        sel = set(first_alpha - {EPSILON})
        if EPSILON in first_alpha:
            sel |= follow_sets[prod.head]
        select[prod] = sel
    return select


def ordered(items: Iterable[str], order: List[str]) -> List[str]:
    # ε 排最前，$ 排最后，其余按文法中终结符出现的顺序
    rank = {t: i for i, t in enumerate(order)}

    def key(s: str) -> Tuple[int, int, str]:
        if s == EPSILON:
            return (0, 0, s)
        if s == END_SYMBOL:
            return (2, 0, s)
        return (1, rank.get(s, len(rank)), s)

    return sorted(items, key=key)


class _SymbolSets:
    label = ""

    def __init__(self, grammar: Grammar, sets: Dict[str, Set[str]]):
        self.grammar = grammar
        self._sets: Dict[str, FrozenSet[str]] = {nt: frozenset(s) for nt, s in sets.items()}

    def get(self, nonterminal: str) -> FrozenSet[str]:
        if nonterminal not in self._sets:
            raise UnknownNonTerminal(nonterminal)
        return self._sets[nonterminal]

    def __getitem__(self, nonterminal: str) -> FrozenSet[str]:
        return self.get(nonterminal)

    def __iter__(self) -> Iterator[str]:
        return iter(self.grammar.nonterminals)

    def items(self) -> List[Tuple[str, FrozenSet[str]]]:
        return [(nt, self._sets[nt]) for nt in self.grammar.nonterminals]

    def as_dict(self) -> Dict[str, Set[str]]:
        return {nt: set(s) for nt, s in self._sets.items()}

    def export(self) -> List[Dict[str, object]]:
        order = self.grammar.terminal_texts()
        return [
            {"non_terminal": nt, self.label: ordered(s, order)}
            for nt, s in self.items()
        ]


class FirstSets(_SymbolSets):
    label = "first"

    def __init__(self, grammar: Grammar):
        super().__init__(grammar, compute_first_sets(grammar))
        LOGGER.debug("FIRST computed for %d non-terminals", len(self._sets))

    def first(self, body: Iterable[Symbol]) -> Set[str]:
        body = tuple(body)
        for s in body:
            if s.is_nonterminal and s.text not in self._sets:
                raise UnknownNonTerminal(s.text)
        return first_of_sequence(body, self._sets)  # type: ignore[arg-type]


class FollowSets(_SymbolSets):
    label = "follow"

    def __init__(self, grammar: Grammar, first_sets: FirstSets):
        super().__init__(grammar, compute_follow_sets(grammar, first_sets.as_dict()))
        LOGGER.debug("FOLLOW computed for %d non-terminals", len(self._sets))
