from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from rollexpr.lexer_rd import LexError
from rollexpr.parser_rd import ParseError, parse_source
from rollexpr.runner import evaluate as run_program, evaluate_tree
from rollexpr.runtime import (
    InterpreterError,
    RollArityError,
    RollBool,
    RollKeyError,
    RollNumber,
    RollString,
    RollTypeError,
)

__all__ = [
    "LexError", "ParseError", "InterpreterError", "RollArityError", "RollKeyError",
    "RollTypeError", "ScriptedRandom", "parse_source", "evaluate_tree", "run_program",
    "run_runtime_case", "verify_result",
]

RuntimeExpectation = Optional[Tuple[str, object]]


class ScriptedRandom:
    """Random source that hands out a fixed sequence of rolls.

    Each value must fall inside the requested ``[a, b]`` range, and running
    out of values fails the test instead of silently rolling.
    """

    def __init__(self, values: Iterable[int]):
        self.values: List[int] = list(values)
        self.calls: List[Tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if not self.values:
            raise AssertionError(f"unexpected roll #{len(self.calls)} for d{b}")

        value = self.values.pop(0)
        assert a <= value <= b, f"scripted roll {value} outside [{a}, {b}]"
        return value

    @property
    def exhausted(self) -> bool:
        return not self.values


def verify_result(value: object, kind: str, expected: object) -> None:
    """Assert runtime result shape/value compatibility."""
    match kind:
        case "string":
            assert isinstance(
                value, RollString
            ), f"expected RollString, got {type(value).__name__}"
            assert (
                value.value == expected
            ), f"expected {expected!r}, got {value.value!r}"
            return
        case "number":
            assert isinstance(
                value, RollNumber
            ), f"expected number, got {type(value).__name__}"
            assert (
                abs(value.value - float(expected)) <= 1e-9
            ), f"expected {expected}, got {value.value}"
            return
        case "bool":
            assert isinstance(
                value, RollBool
            ), f"expected bool, got {type(value).__name__}"
            assert bool(value.value) == bool(
                expected
            ), f"expected {expected}, got {value.value}"
            return
        case "range":
            assert isinstance(
                value, RollNumber
            ), f"expected number, got {type(value).__name__}"
            lo, hi = expected  # type: ignore[misc]
            assert value.value.is_integer(), f"expected an integer, got {value.value}"
            assert lo <= value.value <= hi, f"expected {lo}..{hi}, got {value.value}"
            return
        case _:
            raise AssertionError(f"unknown expectation kind {kind}")


def run_runtime_case(
    source: str,
    expectation: RuntimeExpectation,
    expected_exc: Optional[type],
    context: Optional[Mapping[str, object]] = None,
    rolls: Optional[Iterable[int]] = None,
) -> None:
    """Execute one runtime scenario with optional expected exception.

    With ``rolls`` the dice come from a ScriptedRandom that must be used up.
    """
    rng = ScriptedRandom(rolls) if rolls is not None else None

    if expected_exc is not None:
        with pytest.raises(expected_exc):
            run_program(source, context, rng=rng)
        return

    result = run_program(source, context, rng=rng)
    if expectation is not None:
        verify_result(result, expectation[0], expectation[1])
    if rng is not None:
        assert rng.exhausted, f"unused scripted rolls: {rng.values}"
