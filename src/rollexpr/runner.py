from __future__ import annotations

import argparse
import logging
import random
import sys
import traceback
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .evaluator import eval_expr
from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError, Parser, parse_source
from .printers import ast_print, pretty_print
from .runtime import Frame, InterpreterError, RandomSource, RollValue, init_stdlib
from .token_types import TT, Tok
from .tree import Node
from .utils import debug_py_trace_enabled, seed_from_env

log = logging.getLogger(__name__)

# Everything a caller should expect from scanning, parsing or evaluating.
ROLL_ERRORS = (LexError, ParseError, InterpreterError)

def evaluate(
    source: str,
    context: Optional[Mapping[str, object]] = None,
    rng: Optional[RandomSource] = None,
) -> RollValue:
    """Scan, parse and evaluate ``source`` against a fresh tree."""
    init_stdlib()
    log.debug("evaluating %r", source)

    tree = parse_source(source)
    return evaluate_tree(tree, context=context, rng=rng)

run = evaluate

def evaluate_tree(
    tree: Node,
    context: Optional[Mapping[str, object]] = None,
    rng: Optional[RandomSource] = None,
) -> RollValue:
    """Evaluate an already parsed tree. Dice rolled by an earlier call keep their result."""
    return eval_expr(tree, context=context, rng=rng)

@dataclass
class ReplEcho:
    tokens: List[Tok]
    tree: Node
    ast: str
    value: RollValue
    rolled: str

def repl_eval(text: str, frame: Frame) -> ReplEcho:
    """Run one shell line, keeping every intermediate stage for echoing."""
    tokens = tokenize(text)
    tree = Parser(tokens).parse()
    # printed before evaluation so pending substitutions still show their key
    ast = ast_print(tree, frame.context)
    value = eval_expr(tree, frame)
    return ReplEcho(tokens=tokens, tree=tree, ast=ast, value=value, rolled=pretty_print(tree))

def format_tokens(tokens: Iterable[Tok]) -> str:
    parts = []
    for tok in tokens:
        if tok.type == TT.EOF:
            parts.append("EOF")
        else:
            parts.append(f"{tok.type.name}({tok.lexeme})")
    return " ".join(parts)

def parse_context_arg(text: str) -> Tuple[str, object]:
    """Split ``key=value``; true/false become bools, numeric text becomes a float."""
    key, sep, raw = text.partition("=")
    key = key.strip()
    raw = raw.strip()

    if not sep or not key:
        raise ValueError(f"Expected key=value, got {text!r}")

    lowered = raw.lower()
    if lowered in ("true", "false"):
        return key, lowered == "true"

    try:
        return key, float(raw)
    except ValueError:
        return key, raw

def make_rng(seed: Optional[int] = None) -> random.Random:
    if seed is None:
        seed = seed_from_env()
    if seed is not None:
        log.debug("seeding random source with %d", seed)
    return random.Random(seed)

def report_error(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")

def _load_source(arg: Optional[str]) -> str:
    """None or "-" reads stdin, anything else is the expression itself."""
    if arg is None or arg == "-":
        data = sys.stdin.read().strip()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data
    return arg

def _build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rollexpr", description="Evaluate a dice expression.")
    ap.add_argument("expression", nargs="?", default=None, help="expression to evaluate, or - for stdin")
    ap.add_argument("--json", action="store_true", help="print {result, ast, pretty, error} as JSON")
    ap.add_argument("--seed", type=int, default=None, help="seed the random source (default: $ROLLEXPR_SEED)")
    ap.add_argument("--ctx", action="append", default=[], metavar="KEY=VALUE", help="substitution context entry (repeatable)")
    ap.add_argument("--tokens", action="store_true", help="echo the token stream")
    ap.add_argument("--ast", action="store_true", help="echo the parsed tree")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap

def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    context = {}
    for entry in args.ctx:
        try:
            key, value = parse_context_arg(entry)
        except ValueError as exc:
            raise SystemExit(f"--ctx: {exc}") from None
        context[key] = value

    source = _load_source(args.expression)
    rng = make_rng(args.seed)

    if args.json:
        from .interop import interpret_json

        print(interpret_json(source, context, rng=rng))
        return 0

    try:
        tokens = tokenize(source)
        if args.tokens:
            print(f"TKN: {format_tokens(tokens)}")

        tree = Parser(tokens).parse()
        if args.ast:
            print(f"AST: {ast_print(tree, context)}")

        value = evaluate_tree(tree, context=context, rng=rng)
    except ROLL_ERRORS as exc:
        report_error(exc)
        return 1

    print(value)
    return 0

if __name__ == "__main__":
    sys.exit(main())
