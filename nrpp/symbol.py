import re
from dataclasses import dataclass
from enum import Enum

# 空串标记（单独出现时表示 ε 产生式）
EPSILON = "&"
# 输入结束符
END_SYMBOL = "$"

# 非终结符：一个大写字母 + 若干个 '（如 E, E', E''）
NONTERMINAL_RE = re.compile(r"[A-Z]'*")


class SymbolKind(Enum):
    TERMINAL = "terminal"
    NONTERMINAL = "non-terminal"


@dataclass(frozen=True)
class Symbol:
    text: str
    kind: SymbolKind

    @classmethod
    def of(cls, text: str) -> "Symbol":
        """Classify a token by its shape; the same rule applies to headers and body tokens."""
        if NONTERMINAL_RE.fullmatch(text):
            return cls(text, SymbolKind.NONTERMINAL)
        return cls(text, SymbolKind.TERMINAL)

    @property
    def is_terminal(self) -> bool:
        return self.kind is SymbolKind.TERMINAL

    @property
    def is_nonterminal(self) -> bool:
        return self.kind is SymbolKind.NONTERMINAL

    @property
    def is_epsilon(self) -> bool:
        return self.text == EPSILON

    def __str__(self) -> str:
        return self.text


def is_nonterminal_name(text: str) -> bool:
    return NONTERMINAL_RE.fullmatch(text) is not None
