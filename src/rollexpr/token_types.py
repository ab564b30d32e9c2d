"""
Token Types for the rollexpr scanner

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    SUBSTITUTION = auto()  # @key
    IDENT = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()

    # Comparison
    EQ = auto()  # ==
    NEQ = auto()  # !=
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    ASSIGN = auto()  # =, only meaningful inside dice modifiers

    # Logical / dice bangs
    NEG = auto()  # !
    BANGBANG = auto()  # !!

    # Conditional
    QMARK = auto()  # ?
    COLON = auto()  # :

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with its source lexeme, parsed literal and column"""

    type: TT
    lexeme: str
    literal: Any = None
    column: int = 0

    def __repr__(self):
        if self.literal is None:
            return f"Tok({self.type.name}, {self.lexeme!r}, col {self.column})"
        return f"Tok({self.type.name}, {self.lexeme!r}, {self.literal!r}, col {self.column})"
