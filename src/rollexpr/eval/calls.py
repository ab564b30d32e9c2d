from __future__ import annotations

from typing import Callable

from ..runtime import lookup_stdlib
from ..tree import Call, Node
from ..types import Frame, InterpreterError, RollArityError, RollValue

EvalFunc = Callable[[Node, Frame], RollValue]

def eval_call(node: Call, frame: Frame, eval_func: EvalFunc) -> RollValue:
    name = node.callee_name

    if name is None:
        raise InterpreterError("Function call without a name")

    entry = lookup_stdlib(name)
    argc = len(node.arguments)

    if entry.arity is not None and argc != entry.arity:
        raise RollArityError(
            f"{entry.name} takes exactly {entry.arity} argument{'s' if entry.arity != 1 else ''}, got {argc}"
        )

    if argc < entry.min_arity:
        raise RollArityError(f"{entry.name} takes at least {entry.min_arity} argument, got {argc}")

    args = [eval_func(arg, frame) for arg in node.arguments]
    return entry.fn(frame, args)
