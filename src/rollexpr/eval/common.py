from __future__ import annotations

from typing import Optional

from ..token_types import Tok
from ..types import RollNumber, RollValue, RollTypeError

def require_number(value: RollValue, what: str) -> float:
    """Unwrap a Number or fail with an operand error naming ``what``."""
    if isinstance(value, RollNumber):
        return value.value

    raise RollTypeError(f"{what}: Operand must be a number, got {type(value).__name__}")

def op_label(tok: Optional[Tok]) -> str:
    if tok is None:
        return "?"
    return tok.lexeme
