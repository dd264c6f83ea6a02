import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .first_follow import ordered
from .grammar import Grammar, Production, UnknownNonTerminal
from .symbol import END_SYMBOL, EPSILON

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """M[A, a] 被多个产生式争用（文法不是 LL(1)）。productions 按填表顺序排列，最后一个留在表中。"""

    nonterminal: str
    lookahead: str
    productions: Tuple[Production, ...]

    @property
    def chosen(self) -> Production:
        return self.productions[-1]

    def __str__(self) -> str:
        claims = " / ".join(str(p) for p in self.productions)
        return f"M[{self.nonterminal}, {self.lookahead}]: {claims}"


@dataclass
class ParseTable:
    """
    预测分析表：
      table[非终结符][终结符或 $] = 产生式
    """

    table: Dict[str, Dict[str, Production]] = field(default_factory=dict)
    conflicts: Dict[Tuple[str, str], Conflict] = field(default_factory=dict)
    columns: List[str] = field(default_factory=list)

    def get(self, nonterminal: str, lookahead: str) -> Optional[Production]:
        if nonterminal not in self.table:
            raise UnknownNonTerminal(nonterminal)
        return self.table[nonterminal].get(lookahead)

    def conflict(self, nonterminal: str, lookahead: str) -> Optional[Conflict]:
        return self.conflicts.get((nonterminal, lookahead))

    @property
    def is_ll1(self) -> bool:
        return not self.conflicts

    def lookaheads(self, nonterminal: str) -> List[str]:
        if nonterminal not in self.table:
            raise UnknownNonTerminal(nonterminal)
        return ordered(self.table[nonterminal], self.columns)

    @classmethod
    def from_grammar(cls, grammar: Grammar, select_sets: Dict[Production, Set[str]]) -> "ParseTable":
        # 按非终结符顺序建行（只为展示顺序）
        tbl: Dict[str, Dict[str, Production]] = {nt: {} for nt in grammar.nonterminals}
        claims: Dict[Tuple[str, str], List[Production]] = {}

        for prod, sel in select_sets.items():
            A = prod.head
            row = tbl[A]
            for a in ordered(sel, grammar.terminal_texts()):
                if a == EPSILON:
                    continue
                if a in row and row[a] != prod:
                    claimed = claims.setdefault((A, a), [row[a]])
                    claimed.append(prod)
                    LOGGER.info("LL(1) conflict at M[%s, %s]: %s replaces %s", A, a, prod, row[a])
                # 后填入的产生式覆盖先填入的
                row[a] = prod

        conflicts = {key: Conflict(key[0], key[1], tuple(prods)) for key, prods in claims.items()}
        return cls(tbl, conflicts, grammar.terminal_texts() + [END_SYMBOL])

    def grid(self, columns: Optional[Sequence[str]] = None) -> List[List[str]]:
        cols = list(columns) if columns is not None else self.columns
        rows: List[List[str]] = [["M"] + cols]
        for nt, row in self.table.items():
            cells = [nt]
            for a in cols:
                c = self.conflict(nt, a)
                if c is not None:
                    cells.append(" / ".join(str(p) for p in c.productions))
                elif a in row:
                    cells.append(str(row[a]))
                else:
                    cells.append("")
            rows.append(cells)
        return rows

    def export(self) -> Dict[str, object]:
        return {
            "table": [
                {"non_terminal": nt, "lookahead": a, "production": str(row[a])}
                for nt, row in self.table.items()
                for a in ordered(row, self.columns)
            ],
            "conflicts": [
                {"non_terminal": c.nonterminal, "lookahead": c.lookahead, "productions": [str(p) for p in c.productions]}
                for c in self.conflicts.values()
            ],
        }

    def __str__(self) -> str:
        lines = []
        for A, row in self.table.items():
            lines.append(f"{A}: " + ", ".join(f"{a}→{row[a]}" for a in ordered(row, self.columns)))
        return "\n".join(lines)
