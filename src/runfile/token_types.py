"""
Token Types for the Runfile lexer

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Tuple
from dataclasses import dataclass, field
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Main keywords
    COMMAND = auto()  # COMMAND | CMD
    EXPORT = auto()

    # Config keywords
    SHELL = auto()
    USAGE = auto()
    OPTION = auto()  # OPTION | OPT
    CONFIG_EXPORT = auto()

    # Names and values
    IDENT = auto()
    ATTR = auto()  # .SHELL
    BARE = auto()
    SQ_STRING = auto()
    DQ_STRING = auto()

    # Free text
    DESC_LINE = auto()
    USAGE_LINE = auto()
    SCRIPT_LINE = auto()

    # Option spec
    OPT_SHORT = auto()
    OPT_LONG = auto()
    OPT_VALUE = auto()
    COMMA = auto()

    # Punctuation
    COLON = auto()
    EQUALS = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()


# Tokens that can stand for a value (export right-hand side, SHELL argument)
VALUE_TYPES = (TT.BARE, TT.SQ_STRING, TT.DQ_STRING)
QUOTED_TYPES = (TT.SQ_STRING, TT.DQ_STRING)


@dataclass(frozen=True)
class VarRef:
    """A `$NAME` / `${NAME}` placeholder seen inside a double-quoted string"""

    name: str
    line: int
    column: int


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    line: int = 0
    column: int = 0
    refs: Tuple[VarRef, ...] = field(default=())

    def describe(self) -> str:
        if self.type is TT.EOF:
            return "end of file"
        if self.type is TT.NEWLINE:
            return "end of line"
        return f"{self.type.name} {self.value!r}"

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
