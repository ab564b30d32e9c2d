from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Dict, Mapping, Optional

from .runtime import Frame, InterpreterError, RandomSource, RollValue, init_stdlib
from .token_types import Tok
from .tree import Binary, Call, Dice, DicePool, Grouping, Literal, Node, Tertiary, Unary

from .eval.calls import eval_call
from .eval.dice import eval_dice, eval_dice_pool
from .eval.expr import eval_binary, eval_grouping, eval_ternary, eval_unary
from .eval.literals import eval_literal


def _node_token(node: Node) -> Optional[Tok]:
    match node:
        case Unary(op=tok) | Binary(op=tok):
            return tok
        case Call(function_token=tok):
            return tok
    return None


def _maybe_attach_location(exc: InterpreterError, node: Node) -> None:
    if getattr(exc, "_augmented", False):
        return

    tok = _node_token(node)
    if tok is None or not tok.column:
        return

    exc.roll_meta = SimpleNamespace(column=tok.column, lexeme=tok.lexeme)
    exc._augmented = True  # type: ignore[attr-defined]

# ---------------- Public API ----------------

def eval_expr(
    ast: Node,
    frame: Optional[Frame] = None,
    *,
    context: Optional[Mapping[str, object]] = None,
    rng: Optional[RandomSource] = None,
) -> RollValue:
    """Evaluate a parsed tree.

    Pass a ready ``frame``, or let one be built from ``context``/``rng``.
    Dice nodes and substitution literals in ``ast`` are updated in place.
    """
    init_stdlib()

    if frame is None:
        frame = Frame(context=context)
        if rng is not None:
            frame.rng = rng
    return eval_node(ast, frame)

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> RollValue:
    try:
        return _eval_node_inner(n, frame)
    except InterpreterError as e:
        _maybe_attach_location(e, n)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> RollValue:
    handler = _NODE_DISPATCH.get(type(n))
    if handler is None:
        raise InterpreterError(f"Unsupported node type {type(n).__name__}")
    return handler(n, frame)


_NODE_DISPATCH: Dict[type, Callable[[Node, Frame], RollValue]] = {
    Literal: lambda n, frame: eval_literal(n, frame),
    Grouping: lambda n, frame: eval_grouping(n, frame, eval_node),
    Unary: lambda n, frame: eval_unary(n, frame, eval_node),
    Binary: lambda n, frame: eval_binary(n, frame, eval_node),
    Tertiary: lambda n, frame: eval_ternary(n, frame, eval_node),
    Call: lambda n, frame: eval_call(n, frame, eval_node),
    Dice: lambda n, frame: eval_dice(n, frame, eval_node),
    DicePool: lambda n, frame: eval_dice_pool(n, frame, eval_node),
}
