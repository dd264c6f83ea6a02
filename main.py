import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from nrpp.first_follow import ordered
from nrpp.grammar import GrammarError
from nrpp.parser import DEFAULT_MAX_STEPS, ParseTreeNode, PredictiveParser
from nrpp.pipeline import Pipeline
from nrpp.xlsx_util import export_workbook

TRACE_HEADERS = ["步骤", "分析栈", "剩余输入", "产生式"]


def render_tree_lines(node: ParseTreeNode, prefix: str = "", is_last: bool = True) -> List[str]:
    connector = "`- " if is_last else "|- "
    head = node.symbol if prefix == "" else f"{connector}{node.symbol}"
    lines = [f"{prefix}{head}"]
    child_prefix = prefix + ("   " if is_last else "|  ")
    for idx, child in enumerate(node.children):
        lines.extend(render_tree_lines(child, prefix=child_prefix, is_last=(idx == len(node.children) - 1)))
    return lines


def render_table(headers: Sequence[str], data: List[List[str]]) -> str:
    # Basic fixed-width table, similar to textbook LL(1) analysis tables.
    widths = [len(h) for h in headers]
    for row in data:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def fmt_row(row):
        return " | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row))

    out_lines = [fmt_row(headers), "-+-".join("-" * w for w in widths)]
    out_lines.extend(fmt_row(r) for r in data)
    return "\n".join(out_lines)


def trace_grid(parser: PredictiveParser, limit: int = 0) -> List[List[str]]:
    rows = parser.trace if limit == 0 else parser.trace[:limit]
    return [
        [str(i), row.stack_text(), row.input, str(row.production) if row.production else ""]
        for i, row in enumerate(rows)
    ]


def sets_grid(pipeline: Pipeline) -> List[List[str]]:
    order = pipeline.grammar.terminal_texts()
    grid = []
    for nt in pipeline.grammar.nonterminals:
        first = ", ".join(ordered(pipeline.first[nt], order))
        follow = ", ".join(ordered(pipeline.follow[nt], order))
        grid.append([nt, f"{{ {first} }}", f"{{ {follow} }}"])
    return grid


def read_inputs(args: argparse.Namespace) -> List[str]:
    inputs = list(args.inputs)
    if args.input_file:
        text = Path(args.input_file).read_text(encoding="utf-8-sig")
        inputs.extend(line for line in text.splitlines() if line)
    return inputs


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Non-recursive predictive LL(1) parser for single-character grammars")
    ap.add_argument("grammar", help="Grammar file, one production per line (A->body, & = epsilon)")
    ap.add_argument("inputs", nargs="*", help="Input strings to parse")
    ap.add_argument("--input-file", default=None, help="Read additional input strings from a file, one per line")
    ap.add_argument("--show-grammar", action="store_true", help="Show the normalized grammar")
    ap.add_argument("--show-ff", action="store_true", help="Show FIRST/FOLLOW sets")
    ap.add_argument("--show-select", action="store_true", help="Show SELECT sets for every production")
    ap.add_argument("--show-table", action="store_true", help="Print the LL(1) parse table and its conflicts")
    ap.add_argument("--trace", action="store_true", help="Print the stack/input/production trace of every input")
    ap.add_argument(
        "--trace-limit",
        type=int,
        default=200,
        help="How many trace rows to print (0 = all, default: 200). Requires --trace.",
    )
    ap.add_argument("--show-tree", action="store_true", help="Print the parse tree of accepted inputs")
    ap.add_argument("--json", action="store_true", help="Dump every stage as JSON instead of tables")
    ap.add_argument(
        "--export-xlsx",
        nargs="?",
        const="nrpp.xlsx",
        default=None,
        help="Export grammar, FIRST/FOLLOW, parse table and traces to an .xlsx file (default: nrpp.xlsx)",
    )
    ap.add_argument("--max-steps", type=int, default=DEFAULT_MAX_STEPS, help="Stack machine step limit per input")
    ap.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    grammar_path = Path(args.grammar)
    if not grammar_path.exists():
        print(f"[Error] Grammar file not found: {grammar_path}")
        return 2

    # utf-8-sig 会自动去掉 BOM（\ufeff）
    text = grammar_path.read_text(encoding="utf-8-sig")
    try:
        pipeline = Pipeline(text)
    except GrammarError as e:
        print(f"[GrammarError] {e}")
        return 2

    inputs = read_inputs(args)
    parsers = [
        pipeline.parse(w, debug=args.log_level == "DEBUG", build_tree=args.show_tree, max_steps=args.max_steps)
        for w in inputs
    ]

    if args.json:
        out = pipeline.export()
        out["parses"] = [p.export() for p in parsers]
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return 0 if all(p.accepted for p in parsers) else 1

    if args.show_grammar:
        print("=== Grammar ===")
        print(pipeline.grammar)
        print(f"\nStart: {pipeline.grammar.start_symbol}")
        print(f"Non-terminals: {', '.join(pipeline.grammar.heads())}")
        print(f"Terminals: {', '.join(pipeline.grammar.terminal_texts())}\n")

    if args.show_ff:
        print("=== FIRST / FOLLOW ===")
        print(render_table(["", "FIRST", "FOLLOW"], sets_grid(pipeline)))
        print("")

    if args.show_select:
        print("=== SELECT Sets ===")
        order = pipeline.grammar.terminal_texts()
        for prod, sel in pipeline.select.items():
            print(f"SELECT({prod}) = {{ {', '.join(ordered(sel, order))} }}")
        print("")

    if args.show_table:
        print("=== LL(1) Parse Table ===")
        grid = pipeline.table.grid()
        print(render_table(grid[0], grid[1:]))
        if pipeline.table.is_ll1:
            print("\n[Table] grammar is LL(1)")
        else:
            print(f"\n[Table] {len(pipeline.table.conflicts)} conflict(s), grammar is not LL(1):")
            for c in pipeline.table.conflicts.values():
                print(f"  {c}  (kept {c.chosen})")
        print("")

    if args.export_xlsx:
        out_path = Path(args.export_xlsx)
        sheets = {
            "Grammar": [[str(p)] for p in pipeline.grammar.productions],
            "FirstFollow": [["", "FIRST", "FOLLOW"]] + sets_grid(pipeline),
            "ParseTable": pipeline.table.grid(),
        }
        for i, p in enumerate(parsers, start=1):
            sheets[f"Trace{i}"] = [TRACE_HEADERS] + trace_grid(p)
        export_workbook(out_path, sheets)
        print(f"[Export] workbook saved to: {out_path}")

    for p in parsers:
        if p.accepted:
            print(f"[OK] {p.text!r} accepted")
        else:
            print(f"[Rejected] {p.text!r}: {p.error}")
        if args.trace:
            print(render_table(TRACE_HEADERS, trace_grid(p, args.trace_limit)))
            print("")
        if args.show_tree and p.tree is not None:
            print("\n".join(render_tree_lines(p.tree)))
            print("")

    return 0 if all(p.accepted for p in parsers) else 1


if __name__ == "__main__":
    sys.exit(main())
