import logging
from typing import Dict

from .first_follow import FirstSets, FollowSets, compute_select_sets
from .grammar import Grammar
from .parse_table import ParseTable
from .parser import DEFAULT_MAX_STEPS, PredictiveParser

LOGGER = logging.getLogger(__name__)


class Pipeline:
    """Grammar -> FIRST -> FOLLOW -> parse table, built once; parse() runs the stack machine per input."""

    def __init__(self, grammar_text: str):
        self.grammar = Grammar.from_text(grammar_text)
        self.first = FirstSets(self.grammar)
        self.follow = FollowSets(self.grammar, self.first)
        self.select = compute_select_sets(self.grammar, self.first.as_dict(), self.follow.as_dict())
        self.table = ParseTable.from_grammar(self.grammar, self.select)
        LOGGER.debug(
            "pipeline ready: %d non-terminals, %d terminals, %d conflicts",
            len(self.grammar.nonterminals),
            len(self.grammar.terminals),
            len(self.table.conflicts),
        )

    def parse(
        self, text: str, debug: bool = False, build_tree: bool = False, max_steps: int = DEFAULT_MAX_STEPS
    ) -> PredictiveParser:
        return PredictiveParser(
            self.table, self.grammar.start_symbol, text, debug=debug, build_tree=build_tree, max_steps=max_steps
        )

    def export(self) -> Dict[str, object]:
        return {
            "start_symbol": self.grammar.start_symbol,
            "non_terminals": self.grammar.heads(),
            "terminals": self.grammar.terminal_texts(),
            "productions": [str(p) for p in self.grammar.productions],
            "first": self.first.export(),
            "follow": self.follow.export(),
            "select": [{"production": str(p), "select": sorted(s)} for p, s in self.select.items()],
            **self.table.export(),
        }
