from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Union
from typing_extensions import Protocol, TypeAlias, TypeGuard

from .utils import format_number

# ---------- Value Model ----------

@dataclass(frozen=True)
class RollNumber:
    value: float
    def __repr__(self) -> str:
        return format_number(self.value)
    def to_python(self) -> float:
        return self.value

@dataclass(frozen=True)
class RollBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"
    def to_python(self) -> bool:
        return self.value

@dataclass(frozen=True)
class RollString:
    value: str
    def __repr__(self) -> str:
        return self.value
    def to_python(self) -> str:
        return self.value

RollValue: TypeAlias = Union[RollNumber, RollBool, RollString]

_ROLL_VALUE_TYPES = (RollNumber, RollBool, RollString)

def is_roll_value(value: object) -> TypeGuard[RollValue]:
    return isinstance(value, _ROLL_VALUE_TYPES)

# ---------- Evaluation state ----------

class RandomSource(Protocol):
    """Anything with ``random.Random.randint`` semantics (inclusive bounds)."""
    def randint(self, a: int, b: int) -> int: ...

@dataclass
class Frame:
    """State owned by one evaluation pass: host context and random source.

    The random source is not shared between frames unless the host passes the
    same object in explicitly.
    """
    context: Optional[Mapping[str, object]] = None
    rng: RandomSource = field(default_factory=random.Random)

    def lookup(self, key: str) -> object:
        if self.context is None or key not in self.context:
            raise RollKeyError(key)
        return self.context[key]

    def roll(self, faces: int) -> int:
        return self.rng.randint(1, faces)

# ---------- Builtins ----------

StdlibFn = Callable[[Frame, List[RollValue]], RollValue]

@dataclass
class StdlibFunction:
    fn: StdlibFn
    name: str
    arity: Optional[int] = None
    min_arity: int = 0

class Builtins:
    stdlib_functions: Dict[str, StdlibFunction] = {}

# ---------- Exceptions ----------

class InterpreterError(Exception):
    roll_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.roll_meta = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        col = getattr(self.roll_meta, "column", None)
        if col is None:
            return msg

        return f"{msg} (col {col})"

class RollTypeError(InterpreterError):
    pass

class RollArityError(InterpreterError):
    pass

class RollKeyError(InterpreterError):
    def __init__(self, key: str):
        super().__init__(f"Context does not contain key '{key}'")
        self.key = key
