import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .nt_set import OrderedNonTerminalSet
from .symbol import END_SYMBOL, EPSILON, Symbol, is_nonterminal_name

LOGGER = logging.getLogger(__name__)

# 产生式分隔符
SEPARATOR = "->"
# 右部记号：非终结符（大写字母 + '）或任意单个字符（空格也是终结符）
TOKEN_RE = re.compile(r"[A-Z]'*|.")


class GrammarError(Exception):
    pass


@dataclass
class MalformedGrammarLine(GrammarError):
    message: str
    line: Optional[int] = None
    text: Optional[str] = None

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line is not None else ""
        shown = f" ({self.text!r})" if self.text is not None else ""
        return f"{where}{self.message}{shown}"


@dataclass
class UnknownNonTerminal(GrammarError):
    name: str

    def __str__(self) -> str:
        return f"non-terminal {self.name!r} is not defined"


@dataclass(frozen=True)
class Production:
    head: str
    body: Tuple[Symbol, ...]  # 若为 ε，采用 (Symbol("&"),)

    @property
    def is_epsilon(self) -> bool:
        return len(self.body) == 1 and self.body[0].is_epsilon

    def body_text(self) -> str:
        return "".join(s.text for s in self.body)

    def __str__(self) -> str:
        return f"{self.head}{SEPARATOR}{self.body_text()}"


EPSILON_BODY: Tuple[Symbol, ...] = (Symbol.of(EPSILON),)


def tokenize(body_text: str) -> Tuple[Symbol, ...]:
    if body_text == EPSILON:
        return EPSILON_BODY
    return tuple(Symbol.of(tok) for tok in TOKEN_RE.findall(body_text.replace(EPSILON, "")))


def common_prefix(a: Sequence[Symbol], b: Sequence[Symbol]) -> Tuple[Symbol, ...]:
    i = 0
    while i < len(a) and i < len(b) and a[i] == b[i] and not a[i].is_epsilon:
        i += 1
    return tuple(a[:i])


class Grammar:
    def __init__(self) -> None:
        self.nonterminals = OrderedNonTerminalSet()
        self.prods_by_head: Dict[str, List[Production]] = {}
        self.terminals: List[Symbol] = []

    @classmethod
    def from_text(cls, text: str) -> "Grammar":
        """
        一行一个产生式（A->body），按顺序：
          解析 -> 消除直接左递归 -> 提取左因子 -> 统计终结符
        """
        G = cls()
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            G.add(line, lineno=lineno)
        if not G.prods_by_head:
            raise MalformedGrammarLine("grammar has no productions")

        # 先检查未定义的非终结符，避免新生成的 A' 恰好顶替了用户写错的引用
        G.check_references()
        G.remove_left_recursion()
        G.factor_left()
        G.finalize()
        return G

    @property
    def start_symbol(self) -> str:
        return self.nonterminals[0]

    # 添加产生式，形如 "A->aB"
    def add(self, line: str, lineno: Optional[int] = None) -> Optional[Production]:
        if SEPARATOR not in line:
            raise MalformedGrammarLine(f"missing '{SEPARATOR}'", lineno, line)
        header, body_text = (part.strip() for part in line.split(SEPARATOR, 1))

        if not is_nonterminal_name(header):
            raise MalformedGrammarLine("header must be an uppercase letter followed by apostrophes", lineno, line)
        if END_SYMBOL in body_text:
            raise MalformedGrammarLine(f"'{END_SYMBOL}' is reserved for the end of input", lineno, line)

        body = tokenize(body_text)
        if not body:
            raise MalformedGrammarLine("production body is empty", lineno, line)
        return self._add_body(header, body)

    def _add_body(self, head: str, symbols: Sequence[Symbol]) -> Optional[Production]:
        # ε 只允许单独出现；拼接后残留的 & 直接丢掉
        body = tuple(s for s in symbols if not s.is_epsilon) or EPSILON_BODY
        prod = Production(head, body)

        self.nonterminals.add(head)
        bodies = self.prods_by_head.setdefault(head, [])
        if prod in bodies:
            return None
        bodies.append(prod)
        return prod

    def _synthesize(self, base: str) -> str:
        name = self.nonterminals.fresh_name(base)
        LOGGER.debug("synthesized non-terminal %s from %s", name, base)
        return name

    def remove_left_recursion(self) -> None:
        """
        只消除直接左递归：
          A -> Aα1 | ... | β1 | ...
        改写为
          A  -> β1A' | ...
          A' -> α1A' | ... | ε
        间接左递归（A -> Bx, B -> Ay）不处理。
        """
        pending = list(self.nonterminals)
        while pending:
            A = pending.pop(0)
            alpha: List[Tuple[Symbol, ...]] = []
            beta: List[Tuple[Symbol, ...]] = []
            recursive = False
            for prod in self.prods_by_head[A]:
                if prod.body[0].text == A:
                    recursive = True
                    # A -> A 不产生任何东西，直接丢弃
                    if len(prod.body) > 1:
                        alpha.append(prod.body[1:])
                else:
                    beta.append(prod.body)

            if not recursive:
                continue
            self.prods_by_head[A] = []
            if not alpha:
                if not beta:
                    raise MalformedGrammarLine(f"{A} only derives itself")
                for b in beta:
                    self._add_body(A, b)
                continue

            A2 = self._synthesize(A)
            new = Symbol.of(A2)
            if beta:
                for b in beta:
                    self._add_body(A, b + (new,))
            else:
                self._add_body(A, (new,))
            for a in alpha:
                self._add_body(A2, a + (new,))
            self._add_body(A2, EPSILON_BODY)
            pending.append(A2)
            LOGGER.debug("removed left recursion on %s via %s", A, A2)

    def _find_factor(
        self, bodies: List[Tuple[Symbol, ...]]
    ) -> Optional[Tuple[Tuple[Symbol, ...], List[Tuple[Symbol, ...]]]]:
        # 两两比较，取第一对有公共前缀的；再收集所有两两前缀恰好等于它的产生式
        prefix: Optional[Tuple[Symbol, ...]] = None
        group: List[Tuple[Symbol, ...]] = []
        for i in range(len(bodies)):
            for j in range(i + 1, len(bodies)):
                p = common_prefix(bodies[i], bodies[j])
                if not p:
                    continue
                if prefix is None:
                    prefix = p
                if p != prefix:
                    continue
                for b in (bodies[i], bodies[j]):
                    if b not in group:
                        group.append(b)
        if prefix is None:
            return None
        return prefix, group

    def factor_left(self) -> None:
        """
        提取左因子：
          A -> δβ1 | δβ2 | γ
        改写为
          A  -> δA' | γ
          A' -> β1 | β2     （β 为空时写 ε）
        同一个 A 会反复处理，直到没有公共前缀为止（可能连续产生 A', A''...）。
        """
        pending = list(self.nonterminals)
        while pending:
            A = pending.pop(0)
            while True:
                bodies = [p.body for p in self.prods_by_head[A]]
                found = self._find_factor(bodies)
                if found is None:
                    break
                prefix, group = found

                self.prods_by_head[A] = []
                A2 = self._synthesize(A)
                self._add_body(A, prefix + (Symbol.of(A2),))
                for body in bodies:
                    if body not in group:
                        self._add_body(A, body)
                for body in group:
                    self._add_body(A2, body[len(prefix):] or EPSILON_BODY)
                pending.append(A2)
                LOGGER.debug(
                    "factored %s on prefix %s via %s", A, "".join(s.text for s in prefix), A2
                )

    def get_terminal_symbols(self) -> List[Symbol]:
        # 按非终结符顺序遍历产生式，收集首次出现的终结符
        seen: List[Symbol] = []
        for prod in self.productions:
            for s in prod.body:
                if s.is_terminal and not s.is_epsilon and s not in seen:
                    seen.append(s)
        return seen

    def check_references(self) -> None:
        for prod in self.productions:
            for s in prod.body:
                if s.is_nonterminal and s.text not in self.nonterminals:
                    raise UnknownNonTerminal(s.text)

    def finalize(self) -> None:
        self.check_references()
        self.terminals = self.get_terminal_symbols()

    @property
    def productions(self) -> List[Production]:
        return [p for nt in self.nonterminals for p in self.prods_by_head[nt]]

    def bodies(self, nonterminal: str) -> List[Production]:
        if nonterminal not in self.prods_by_head:
            raise UnknownNonTerminal(nonterminal)
        return list(self.prods_by_head[nonterminal])

    def terminal_texts(self) -> List[str]:
        return [t.text for t in self.terminals]

    def heads(self) -> List[str]:
        return list(self.nonterminals)

    def __str__(self) -> str:
        return "\n".join(str(p) for p in self.productions)
