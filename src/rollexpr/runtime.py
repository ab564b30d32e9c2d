from __future__ import annotations

import importlib
from typing import Optional

from .types import (
    RollNumber, RollBool, RollString, RollValue,
    Frame, RandomSource, StdlibFn, StdlibFunction, Builtins,
    InterpreterError, RollTypeError, RollArityError, RollKeyError,
    is_roll_value,
)

__all__ = [
    "RollNumber", "RollBool", "RollString", "RollValue",
    "Frame", "RandomSource", "StdlibFunction", "Builtins",
    "InterpreterError", "RollTypeError", "RollArityError", "RollKeyError",
    "is_roll_value", "init_stdlib", "register_stdlib", "lookup_stdlib", "from_python",
]

_STDLIB_INITIALIZED = False

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("rollexpr.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(*names: str, arity: Optional[int] = None, min_arity: int = 0):
    """Register a builtin under one or more case-insensitive names."""
    def dec(fn: StdlibFn):
        for name in names:
            Builtins.stdlib_functions[name.lower()] = StdlibFunction(
                fn=fn, name=name, arity=arity, min_arity=min_arity,
            )
        return fn

    return dec

def lookup_stdlib(name: str) -> StdlibFunction:
    init_stdlib()
    entry = Builtins.stdlib_functions.get(name.lower())

    if entry is None:
        raise InterpreterError(f"Unknown function '{name.lower()}'")
    return entry

def from_python(value: object) -> RollValue:
    """Convert a host context value into the closed value model."""
    if is_roll_value(value):
        return value

    # bool first: it is an int subclass
    if isinstance(value, bool):
        return RollBool(value)

    if isinstance(value, (int, float)):
        return RollNumber(float(value))

    if isinstance(value, str):
        return RollString(value)

    raise RollTypeError(f"Unsupported context value of type {type(value).__name__}")
