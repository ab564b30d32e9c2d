"""Built-in functions callable from expressions, registered via rollexpr.runtime."""

from __future__ import annotations

import math
from typing import Callable, List

from .runtime import register_stdlib, RollNumber, RollValue
from .eval.common import require_number

def _integral(value: float, fn: Callable[[float], int]) -> RollNumber:
    # inf/nan pass through, as IEEE floor/ceil/round do
    if not math.isfinite(value):
        return RollNumber(value)
    return RollNumber(float(fn(value)))

@register_stdlib("floor", arity=1)
def std_floor(_frame, args: List[RollValue]) -> RollNumber:
    return _integral(require_number(args[0], "floor"), math.floor)

@register_stdlib("ceil", "ceiling", arity=1)
def std_ceil(_frame, args: List[RollValue]) -> RollNumber:
    return _integral(require_number(args[0], "ceil"), math.ceil)

@register_stdlib("round", arity=1)
def std_round(_frame, args: List[RollValue]) -> RollNumber:
    # round() on a float is ties-to-even
    return _integral(require_number(args[0], "round"), round)

def _fold(name: str, args: List[RollValue], pick: Callable[[float, float], float]) -> RollNumber:
    # nan on either side wins, regardless of argument order
    acc = require_number(args[0], name)

    for arg in args[1:]:
        value = require_number(arg, name)
        acc = math.nan if math.isnan(acc) or math.isnan(value) else pick(acc, value)
    return RollNumber(acc)

@register_stdlib("min", min_arity=1)
def std_min(_frame, args: List[RollValue]) -> RollNumber:
    return _fold("min", args, min)

@register_stdlib("max", min_arity=1)
def std_max(_frame, args: List[RollValue]) -> RollNumber:
    return _fold("max", args, max)
