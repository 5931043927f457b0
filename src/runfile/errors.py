from __future__ import annotations

from typing import Optional, Sequence, Tuple

from .token_types import TT, Tok

# ---------- Exceptions (all fatal; no partial Runfile is ever returned) ----------

class RunfileError(Exception):
    """Base class for every error raised while loading a Runfile"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(
            f"{message} at line {line}, col {column}" if line is not None else message
        )


class LexError(RunfileError):
    """Lexical analysis error"""


class ParseError(RunfileError):
    """Parse error with the offending token and the accepted alternatives"""

    def __init__(self, message: str, token: Optional[Tok] = None, expected: Sequence[TT] = ()):
        self.token = token
        self.expected: Tuple[TT, ...] = tuple(expected)
        if expected:
            message = f"{message} (expected {', '.join(t.name for t in self.expected)})"
        super().__init__(
            message,
            token.line if token is not None else None,
            token.column if token is not None else None,
        )


class SemanticError(RunfileError):
    """Duplicate, colliding or reserved name"""
