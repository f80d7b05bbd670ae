"""
Token Types for the string-lambda lexer

Shared between lexer, parser and compiler to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    UNDEFINED = auto()
    IN = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    POW = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    SEQ = auto()  # ===
    SNEQ = auto()  # !==
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()  # ! / not
    NULLISH = auto()  # ??

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    DOT = auto()
    COMMA = auto()
    COLON = auto()
    QMARK = auto()

    # Lambda
    ARROW = auto()  # ->

    # Special
    EOF = auto()


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


# Binary operators allowed to open a point-free body ("+ 1", ".length").
LEFT_SECTION_TYPES = frozenset({
    TT.PLUS, TT.STAR, TT.SLASH, TT.MOD, TT.POW,
    TT.EQ, TT.NEQ, TT.SEQ, TT.SNEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.AND, TT.OR, TT.NULLISH, TT.IN, TT.DOT,
})

# Binary operators allowed to close a point-free body ("10 -").
RIGHT_SECTION_TYPES = frozenset({
    TT.PLUS, TT.MINUS, TT.STAR, TT.SLASH, TT.MOD, TT.POW,
    TT.EQ, TT.NEQ, TT.SEQ, TT.SNEQ, TT.LT, TT.LTE, TT.GT, TT.GTE,
    TT.AND, TT.OR, TT.NULLISH, TT.IN,
})
