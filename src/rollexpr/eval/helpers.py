from __future__ import annotations

from typing import Optional

from ..tree import ModOp
from ..types import RollBool, RollNumber, RollValue
from ..utils import EPSILON, numbers_equal

def is_truthy(val: Optional[RollValue]) -> bool:
    """false and absence are falsey, a Bool is itself, everything else (0 and "" too) is truthy."""
    match val:
        case None:
            return False
        case RollBool(value=b):
            return b
        case _:
            return True

def values_equal(lhs: Optional[RollValue], rhs: Optional[RollValue]) -> bool:
    match (lhs, rhs):
        case (None, None):
            return True
        case (None, _) | (_, None):
            return False
        case (RollNumber(value=a), RollNumber(value=b)):
            return numbers_equal(a, b)
        case _:
            return lhs == rhs

def matches_mod(value: float, op: ModOp, target: float) -> bool:
    """Test one rolled or pooled value against a modifier comparison."""
    match op:
        case ModOp.EQUAL:
            return abs(value - target) < EPSILON
        case ModOp.LESS:
            return value < target
        case ModOp.LESS_EQUAL:
            return value <= target
        case ModOp.GREATER:
            return value > target
        case ModOp.GREATER_EQUAL:
            return value >= target
