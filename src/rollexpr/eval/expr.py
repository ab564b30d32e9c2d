from __future__ import annotations

import math
from typing import Callable

from ..token_types import TT
from ..tree import Binary, Grouping, Node, Tertiary, Unary
from ..types import Frame, InterpreterError, RollBool, RollNumber, RollValue
from .common import op_label, require_number
from .helpers import is_truthy, values_equal

EvalFunc = Callable[[Node, Frame], RollValue]

def eval_grouping(node: Grouping, frame: Frame, eval_func: EvalFunc) -> RollValue:
    return eval_func(node.inner, frame)

def eval_unary(node: Unary, frame: Frame, eval_func: EvalFunc) -> RollValue:
    rhs = eval_func(node.operand, frame)

    match node.op.type:
        case TT.MINUS:
            return RollNumber(-require_number(rhs, op_label(node.op)))
        case TT.NEG:
            return RollBool(not is_truthy(rhs))
        case _:
            raise InterpreterError(f"Unsupported unary operator '{op_label(node.op)}'")

def eval_binary(node: Binary, frame: Frame, eval_func: EvalFunc) -> RollValue:
    # Both sides are always evaluated, left first.
    lhs = eval_func(node.left, frame)
    rhs = eval_func(node.right, frame)
    return apply_binary_operator(node.op.type, op_label(node.op), lhs, rhs)

def eval_ternary(node: Tertiary, frame: Frame, eval_func: EvalFunc) -> RollValue:
    # Only the chosen branch runs, so dice in the other branch never roll.
    cond_val = eval_func(node.condition, frame)

    if is_truthy(cond_val):
        return eval_func(node.then_branch, frame)

    return eval_func(node.else_branch, frame)

def apply_binary_operator(op: TT, label: str, lhs: RollValue, rhs: RollValue) -> RollValue:
    match op:
        case TT.EQ:
            return RollBool(values_equal(lhs, rhs))
        case TT.NEQ:
            return RollBool(not values_equal(lhs, rhs))

    a = require_number(lhs, label)
    b = require_number(rhs, label)

    match op:
        case TT.PLUS:
            return RollNumber(a + b)
        case TT.MINUS:
            return RollNumber(a - b)
        case TT.STAR:
            return RollNumber(a * b)
        case TT.SLASH:
            return RollNumber(_divide(a, b))
        case TT.MOD:
            return RollNumber(_remainder(a, b))
        case TT.GT:
            return RollBool(a > b)
        case TT.GTE:
            return RollBool(a >= b)
        case TT.LT:
            return RollBool(a < b)
        case TT.LTE:
            return RollBool(a <= b)
    raise InterpreterError(f"Unknown operator {label}")

def _divide(a: float, b: float) -> float:
    # IEEE double semantics: x/0 is +-inf, 0/0 is nan
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b

def _remainder(a: float, b: float) -> float:
    # truncated remainder (sign follows the dividend), nan for x % 0
    if b == 0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)
