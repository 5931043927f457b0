"""
Character classification and a peekable character cursor.

The lexer is built from small predicates composed into match/ignore
operations over a Cursor, instead of a regex engine. The grammar never
needs more than one token of lookahead; the cursor's mark/reset only
rewinds characters that have not been emitted yet.
"""

from __future__ import annotations

from typing import Callable, Tuple
from typing_extensions import TypeAlias

RuneFn: TypeAlias = Callable[[str], bool]
Mark: TypeAlias = Tuple[int, int, int]

EOF_CHAR = '\0'

SPACE = ' '
TAB = '\t'
HASH = '#'
DOLLAR = '$'
DOT = '.'
COMMA = ','
DASH = '-'
BACKSLASH = '\\'
DQUOTE = '"'
SQUOTE = "'"
LBRACE = '{'
RBRACE = '}'
LANGLE = '<'
RANGLE = '>'

# Single-rune tokens recognised in main mode
SINGLE_RUNES = (':', '=', '(', ')', '{', '}')

# ============================================================================
# Predicates
# ============================================================================

def is_alpha(ch: str) -> bool:
    return ('a' <= ch <= 'z') or ('A' <= ch <= 'Z')

def is_alpha_under(ch: str) -> bool:
    return is_alpha(ch) or ch == '_'

def is_alnum(ch: str) -> bool:
    return is_alpha(ch) or ('0' <= ch <= '9')

def is_alnum_under(ch: str) -> bool:
    return is_alnum(ch) or ch == '_'

def is_alnum_under_dash(ch: str) -> bool:
    return is_alnum_under(ch) or ch == DASH

def is_space_or_tab(ch: str) -> bool:
    return ch == SPACE or ch == TAB

def is_whitespace(ch: str) -> bool:
    """One of (' ' | '\\t' | '\\n' | '\\r')"""
    return ch in (' ', '\t', '\n', '\r')

def is_print(ch: str) -> bool:
    return ch != EOF_CHAR and ch.isprintable()

def is_print_non_space(ch: str) -> bool:
    return is_print(ch) and not ch.isspace()

def is_quoted_char(ch: str) -> bool:
    return is_print(ch) or ch == TAB

def is_print_non_squote(ch: str) -> bool:
    return ch != SQUOTE and is_quoted_char(ch)

def is_print_non_dquote_non_backslash_non_dollar(ch: str) -> bool:
    return ch not in (DQUOTE, BACKSLASH, DOLLAR) and is_quoted_char(ch)

def is_config_opt_value(ch: str) -> bool:
    return is_print(ch) and ch not in ('\t', '\r', '\n', LANGLE, RANGLE)

def is_line_whitespace_only(line: str) -> bool:
    return all(is_whitespace(ch) for ch in line)

def leading_whitespace(line: str) -> str:
    i = 0
    while i < len(line) and is_whitespace(line[i]):
        i += 1
    return line[:i]

# ============================================================================
# Cursor
# ============================================================================

class Cursor:
    """Peekable cursor over decoded source text with 1-based line/column."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def at_eof(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return EOF_CHAR

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        start = self.pos
        end = min(self.pos + n, len(self.source))
        for ch in self.source[start:end]:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos = end
        return self.source[start:end]

    def mark(self) -> Mark:
        return (self.pos, self.line, self.column)

    def reset(self, mark: Mark) -> None:
        self.pos, self.line, self.column = mark

    def at_newline(self) -> bool:
        return self.peek() == '\n' or (self.peek() == '\r' and self.peek(1) == '\n')

    def at_line_end(self) -> bool:
        return self.at_eof() or self.at_newline()

# ============================================================================
# Match / ignore primitives
# ============================================================================

def match_one(cur: Cursor, fn: RuneFn) -> str:
    if not cur.at_eof() and fn(cur.peek()):
        return cur.advance()
    return ''

def match_zero_or_more(cur: Cursor, fn: RuneFn) -> str:
    start = cur.pos
    while not cur.at_eof() and fn(cur.peek()):
        cur.advance()
    return cur.source[start:cur.pos]

def match_newline(cur: Cursor) -> bool:
    """Consume '\\n' or '\\r\\n'"""
    if cur.peek() == '\r' and cur.peek(1) == '\n':
        cur.advance(2)
        return True
    if cur.peek() == '\n':
        cur.advance()
        return True
    return False

def match_to_line_end(cur: Cursor) -> str:
    """Consume the rest of the line, not including the terminator"""
    start = cur.pos
    while not cur.at_line_end():
        cur.advance()
    return cur.source[start:cur.pos]

def ignore_space(cur: Cursor) -> bool:
    return bool(match_zero_or_more(cur, is_space_or_tab))

def ignore_comment(cur: Cursor) -> bool:
    """Skip a '#' comment up to (not including) the line terminator"""
    if cur.peek() != HASH:
        return False
    match_to_line_end(cur)
    return True

def ignore_rest_of_line(cur: Cursor) -> bool:
    """Skip trailing space and an optional comment; True when the line ended cleanly"""
    ignore_space(cur)
    ignore_comment(cur)
    return cur.at_line_end()
