"""Dice and dice-pool evaluation.

Each modifier has its own roll algorithm. None of them guard against
conditions that can never fail (``1d6r<7``, ``1d1x=1``): those loop forever,
and bounding count, faces and modifier values is the caller's job.
"""

from __future__ import annotations

import math
from typing import Callable, List

from ..tree import Dice, DiceMod, DicePool, ModOp, Node
from ..types import Frame, InterpreterError, RollNumber, RollTypeError, RollValue
from .helpers import matches_mod

EvalFunc = Callable[[Node, Frame], RollValue]

def round_half_even(value: float, what: str) -> int:
    if not math.isfinite(value):
        raise InterpreterError(f"{what} must be finite, got {value}")
    # round() is ties-to-even
    return round(value)

def _dice_operand(node: Node, frame: Frame, eval_func: EvalFunc, what: str) -> float:
    value = eval_func(node, frame)

    if not isinstance(value, RollNumber):
        raise RollTypeError(f"Dice {what} must be a number but is a {type(value).__name__}")
    return value.value

def eval_dice(node: Dice, frame: Frame, eval_func: EvalFunc) -> RollValue:
    if node.rolled:
        # one node is one physical roll: re-evaluation reuses it
        return RollNumber(node.result)

    num = round_half_even(_dice_operand(node.count, frame, eval_func, "number"), "Dice number")
    faces = round_half_even(_dice_operand(node.faces, frame, eval_func, "faces"), "Dice faces")

    # an error, not a roll of 1s per die
    if num > 0 and faces < 1:
        raise InterpreterError(f"Dice must have at least one face, got {faces}")

    if node.modifier is DiceMod.NONE:
        result = float(sum(_roll_many(node, frame, num, faces)))
    else:
        if node.mod_value is None:
            raise InterpreterError(f"Dice modifier '{node.modifier.value}' has no value")
        mod_value = _dice_operand(node.mod_value, frame, eval_func, "modifier value")
        result = _apply_modifier(node, frame, num, faces, mod_value)

    node.result = result
    return RollNumber(result)

def _roll_many(node: Dice, frame: Frame, num: int, faces: int) -> List[int]:
    rolls = [frame.roll(faces) for _ in range(num)]
    node.rolls.extend(float(r) for r in rolls)
    return rolls

def _apply_modifier(node: Dice, frame: Frame, num: int, faces: int, mod_value: float) -> float:
    op = node.mod_op

    match node.modifier:
        case DiceMod.COUNT_SUCCESSES:
            rolls = _roll_many(node, frame, num, faces)
            return float(count_successes(rolls, op, mod_value))

        case DiceMod.MARGIN_OF_SUCCESS:
            total = float(sum(_roll_many(node, frame, num, faces)))
            if op in (ModOp.LESS, ModOp.LESS_EQUAL):
                return mod_value - total
            return total - mod_value

        case DiceMod.REROLL:
            total = 0.0
            for _ in range(num):
                roll = frame.roll(faces)
                while matches_mod(roll, op, mod_value):
                    roll = frame.roll(faces)
                node.rolls.append(float(roll))
                total += roll
            return total

        case DiceMod.EXPLODE:
            # A matching roll queues one more die at the end rather than
            # rerolling in place.
            total = 0.0
            i = 0
            while i < num:
                roll = frame.roll(faces)
                if matches_mod(roll, op, mod_value):
                    num += 1
                node.rolls.append(float(roll))
                total += roll
                i += 1
            return total

        case DiceMod.COMPOUND_EXPLODE:
            total = 0.0
            for _ in range(num):
                roll = frame.roll(faces)
                compound = float(roll)
                while matches_mod(roll, op, mod_value):
                    roll = frame.roll(faces)
                    compound += roll
                node.rolls.append(compound)
                total += compound
            return total

        case DiceMod.KEEP_HIGHEST | DiceMod.KEEP_LOWEST | DiceMod.DROP_HIGHEST | DiceMod.DROP_LOWEST:
            rolls = _roll_many(node, frame, num, faces)
            return keep_or_drop(node.modifier, [float(r) for r in rolls], mod_value)

    raise InterpreterError(f"Unknown dice modifier '{node.modifier.value}'")

def count_successes(values: List[float], op: ModOp, target: float) -> int:
    return sum(1 for v in values if matches_mod(v, op, target))

def keep_or_drop(mod: DiceMod, values: List[float], mod_value: float) -> float:
    """Sum the kept values. Orders a copy, so ``values`` stays in roll order."""
    n = max(round_half_even(mod_value, "Keep/drop count"), 0)
    highest_first = mod in (DiceMod.KEEP_HIGHEST, DiceMod.DROP_HIGHEST)
    ordered = sorted(values, reverse=highest_first)

    if mod in (DiceMod.KEEP_HIGHEST, DiceMod.KEEP_LOWEST):
        return float(sum(ordered[:n]))
    return float(sum(ordered[n:]))

def eval_dice_pool(node: DicePool, frame: Frame, eval_func: EvalFunc) -> RollValue:
    # Pools roll nothing themselves; values come from their sub-expressions.
    values = [_dice_operand(arg, frame, eval_func, "pool entry") for arg in node.arguments]

    if node.mod_value is None:
        raise InterpreterError(f"Dice pool modifier '{node.modifier.value}' has no value")
    mod_value = _dice_operand(node.mod_value, frame, eval_func, "pool modifier value")

    match node.modifier:
        case DiceMod.COUNT_SUCCESSES:
            return RollNumber(float(count_successes(values, node.mod_op, mod_value)))
        case DiceMod.KEEP_HIGHEST | DiceMod.KEEP_LOWEST | DiceMod.DROP_HIGHEST | DiceMod.DROP_LOWEST:
            return RollNumber(keep_or_drop(node.modifier, values, mod_value))

    raise InterpreterError(f"Unknown dice pool modifier '{node.modifier.value}'")
