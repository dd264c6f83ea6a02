from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .grammar import Production
from .parse_table import ParseTable
from .symbol import END_SYMBOL, EPSILON, Symbol

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10000


@dataclass(frozen=True)
class TraceRow:
    stack: Tuple[str, ...]  # 栈底在前，栈顶在后
    input: str  # 剩余输入（含末尾 $）
    production: Optional[Production] = None  # 从这一行出发时使用的产生式

    def stack_text(self) -> str:
        return "".join(self.stack)


@dataclass(frozen=True)
class ParseRejected:
    reason: str
    row: TraceRow
    expected: Tuple[str, ...] = ()

    def __str__(self) -> str:
        msg = f"{self.reason} (stack {self.row.stack_text()}, input {self.row.input})"
        if self.expected:
            msg += f"; expected one of: {', '.join(self.expected)}"
        return msg


@dataclass
class ParseTreeNode:
    symbol: str
    children: List["ParseTreeNode"] = field(default_factory=list)

    def add_child(self, node: "ParseTreeNode") -> None:
        self.children.append(node)

    def leaves(self) -> str:
        if not self.children:
            return "" if self.symbol == EPSILON else self.symbol
        return "".join(child.leaves() for child in self.children)


class PredictiveParser:
    """
    非递归预测分析（表驱动）：
      栈初始为 [$, S]，输入为 w$；
      栈顶为终结符则匹配，为非终结符则查表 M[X, a] 展开（ε 产生式不入栈）；
      栈顶为 $ 时停止，剩余输入恰为 $ 才接受。
    """

    def __init__(
        self,
        table: ParseTable,
        start_symbol: str,
        text: str,
        debug: bool = False,
        build_tree: bool = False,
        max_steps: int = DEFAULT_MAX_STEPS,
    ):
        self.table = table
        self.start_symbol = start_symbol
        self.text = text
        self.debug = debug
        self.max_steps = max_steps
        self.debug_lines: List[str] = []
        self.used_productions: List[Production] = []
        self.tree: Optional[ParseTreeNode] = None
        self.error: Optional[ParseRejected] = None
        self.trace: Tuple[TraceRow, ...] = ()
        self._run(build_tree)

    @property
    def accepted(self) -> bool:
        return self.error is None

    def _run(self, build_tree: bool) -> None:
        stack: List[str] = [END_SYMBOL, self.start_symbol]
        # 与 stack 同步的"父节点栈"：弹出的符号应挂到哪个节点上
        parent_stack: List[Optional[ParseTreeNode]] = [None, None]
        remaining = self.text + END_SYMBOL

        snapshots: List[Tuple[Tuple[str, ...], str]] = [(tuple(stack), remaining)]
        applied: Dict[int, Production] = {}
        root: Optional[ParseTreeNode] = None

        def log(action: str) -> None:
            if not self.debug:
                return
            line = f"{len(snapshots):05d} {action:<20} | stack: {''.join(stack)} | input: {remaining}"
            self.debug_lines.append(line)
            LOGGER.debug(line)

        def reject(reason: str, expected: List[str]) -> None:
            self.error = ParseRejected(reason, self._row(snapshots, applied, len(snapshots) - 1), tuple(expected))
            log("REJECT")
            LOGGER.info("input %r rejected: %s", self.text, self.error)

        log("INIT")
        while stack[-1] != END_SYMBOL:
            if len(snapshots) > self.max_steps:
                reject(f"step limit of {self.max_steps} exceeded", [])
                break

            X = Symbol.of(stack[-1])
            a = remaining[0]

            if X.is_terminal:
                if X.text != a:
                    reject(f"expected {X.text!r} but found {a!r}", [X.text])
                    break
                stack.pop()
                parent = parent_stack.pop()
                if build_tree and parent is not None:
                    parent.add_child(ParseTreeNode(a))
                remaining = remaining[1:]
                log(f"match '{a}'")
            else:
                prod = self.table.get(X.text, a)
                if prod is None:
                    reject(f"no production for {X.text} on {a!r}", self.table.lookaheads(X.text))
                    break
                stack.pop()
                parent = parent_stack.pop()
                applied[len(snapshots) - 1] = prod
                self.used_productions.append(prod)

                node: Optional[ParseTreeNode] = None
                if build_tree:
                    node = ParseTreeNode(X.text)
                    if parent is None:
                        root = node
                    else:
                        parent.add_child(node)

                if prod.is_epsilon:
                    if node is not None:
                        node.add_child(ParseTreeNode(EPSILON))
                else:
                    # 逆序压栈
                    for sym in reversed(prod.body):
                        stack.append(sym.text)
                        parent_stack.append(node)
                log(f"expand {prod}")

            snapshots.append((tuple(stack), remaining))

        if self.error is None and remaining != END_SYMBOL:
            reject("unconsumed input", [END_SYMBOL])

        self.trace = tuple(self._row(snapshots, applied, i) for i in range(len(snapshots)))
        if build_tree and self.error is None:
            self.tree = root

    @staticmethod
    def _row(snapshots, applied, i: int) -> TraceRow:
        stack, remaining = snapshots[i]
        return TraceRow(stack, remaining, applied.get(i))

    def export(self) -> Dict[str, object]:
        return {
            "input": self.text,
            "accepted": self.accepted,
            "trace": [
                {
                    "stack": row.stack_text(),
                    "input": row.input,
                    "production": str(row.production) if row.production else None,
                }
                for row in self.trace
            ],
            "error": str(self.error) if self.error else None,
        }
