"""
Lexer for Runfiles

Tokenizes a Runfile byte buffer into a lazy stream of tokens.

Features:
- Single forward pass; the token stream cannot be rewound
- Two keyword tables (main statements / command config lines)
- Quoted strings with `$NAME` placeholder tracking
- Brace regions captured as config items or raw script lines
- Position tracking (line, column)
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Union

from .errors import LexError
from .runes import (
    BACKSLASH,
    COMMA,
    DASH,
    DOLLAR,
    DOT,
    DQUOTE,
    HASH,
    LANGLE,
    LBRACE,
    RANGLE,
    RBRACE,
    SINGLE_RUNES,
    SQUOTE,
    Cursor,
    ignore_comment,
    ignore_rest_of_line,
    ignore_space,
    is_alnum,
    is_alnum_under,
    is_alnum_under_dash,
    is_alpha,
    is_alpha_under,
    is_config_opt_value,
    is_print_non_dquote_non_backslash_non_dollar,
    is_print_non_space,
    is_print_non_squote,
    match_newline,
    match_one,
    match_to_line_end,
    match_zero_or_more,
)
from .token_types import TT, Tok, VarRef

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, memoryview, str]

# ============================================================================
# Source decoding
# ============================================================================

def decode_source(data: Source) -> str:
    """Decode a UTF-8 buffer, dropping a leading byte-order mark"""
    if isinstance(data, str):
        text = data
    else:
        raw = bytes(data)
        try:
            text = raw.decode('utf-8')
        except UnicodeDecodeError as exc:
            prefix = raw[:exc.start].decode('utf-8')
            line = prefix.count('\n') + 1
            column = len(prefix) - (prefix.rfind('\n') + 1) + 1
            raise LexError("Invalid UTF-8 sequence", line, column) from exc

    if text.startswith('\ufeff'):
        text = text[1:]
    return text

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Runfile lexer.

    Iterating a Lexer yields Tok values until (and including) EOF. The
    stream is consumed once; iterating again continues where it stopped.
    Errors surface as LexError at the point the bad input is reached.
    """

    MAIN_KEYWORDS = {
        'COMMAND': TT.COMMAND,
        'CMD': TT.COMMAND,
        'EXPORT': TT.EXPORT,
    }

    CONFIG_KEYWORDS = {
        'SHELL': TT.SHELL,
        'USAGE': TT.USAGE,
        'OPTION': TT.OPTION,
        'OPT': TT.OPTION,
        'EXPORT': TT.CONFIG_EXPORT,
    }

    SINGLE_TOKENS = dict(zip(
        SINGLE_RUNES,
        (TT.COLON, TT.EQUALS, TT.LPAREN, TT.RPAREN, TT.LBRACE, TT.RBRACE),
    ))

    DQ_ESCAPES = (BACKSLASH, DOLLAR, DQUOTE)

    def __init__(self, data: Source):
        self.data = data
        self.cur = Cursor('')
        self.last_type: Optional[TT] = None
        self._stream = self._lex()

    def __iter__(self) -> Iterator[Tok]:
        return self

    def __next__(self) -> Tok:
        return next(self._stream)

    def _tok(self, token_type: TT, value: str, line: int, column: int, refs=()) -> Tok:
        self.last_type = token_type
        return Tok(token_type, value, line, column, tuple(refs))

    # ========================================================================
    # Main mode
    # ========================================================================

    def _lex(self) -> Iterator[Tok]:
        self.cur = cur = Cursor(decode_source(self.data))
        expect_value = False

        while True:
            ignore_space(cur)
            ignore_comment(cur)

            if cur.at_eof():
                break

            if cur.at_newline():
                line, column = cur.line, cur.column
                match_newline(cur)
                expect_value = False
                # Blank and comment-only lines collapse into one terminator
                if self.last_type not in (None, TT.NEWLINE):
                    yield self._tok(TT.NEWLINE, '\n', line, column)
                continue

            if expect_value:
                expect_value = False
                yield self._scan_value()
                continue

            ch = cur.peek()
            if ch == LBRACE:
                yield from self._lex_block()
                continue

            line, column = cur.line, cur.column
            if ch in self.SINGLE_TOKENS:
                cur.advance()
                token_type = self.SINGLE_TOKENS[ch]
                expect_value = token_type is TT.EQUALS
                yield self._tok(token_type, ch, line, column)
            elif ch in (SQUOTE, DQUOTE):
                yield self._scan_string()
            elif is_alpha_under(ch):
                word = match_zero_or_more(cur, is_alnum_under)
                yield self._tok(self.MAIN_KEYWORDS.get(word, TT.IDENT), word, line, column)
            elif ch == DOT and is_alpha_under(cur.peek(1)):
                yield self._scan_name()
            else:
                raise LexError(f"Unexpected character {ch!r}", line, column)

        yield self._tok(TT.EOF, '', cur.line, cur.column)

    # ========================================================================
    # Brace regions
    # ========================================================================

    def _at_close_line(self) -> bool:
        """True at a line whose first character is '}' followed only by whitespace"""
        cur = self.cur
        if cur.column != 1 or cur.peek() != RBRACE:
            return False
        mark = cur.mark()
        cur.advance()
        ignore_space(cur)
        closed = cur.at_line_end()
        cur.reset(mark)
        return closed

    def _is_config_block(self, line: int, column: int) -> bool:
        """
        Look past the end of the region that starts here. A region directly
        followed by another '{' is a config block; otherwise it is the script.
        """
        cur = self.cur
        mark = cur.mark()
        try:
            while not self._at_close_line():
                if cur.at_eof():
                    raise LexError("Unterminated '{' block", line, column)
                match_to_line_end(cur)
                match_newline(cur)

            cur.advance()
            while True:
                ignore_space(cur)
                ignore_comment(cur)
                if not match_newline(cur):
                    break
            return cur.peek() == LBRACE
        finally:
            cur.reset(mark)

    def _lex_block(self) -> Iterator[Tok]:
        cur = self.cur
        line, column = cur.line, cur.column
        cur.advance()
        yield self._tok(TT.LBRACE, LBRACE, line, column)

        if not ignore_rest_of_line(cur):
            raise LexError("Expected end of line after '{'", cur.line, cur.column)
        if cur.at_eof():
            raise LexError("Unterminated '{' block", line, column)
        match_newline(cur)

        if self._is_config_block(line, column):
            logger.debug("config block at line %d", line)
            yield from self._lex_config_lines()
        else:
            logger.debug("script block at line %d", line)
            yield from self._lex_script_lines()

    def _close_block(self) -> Tok:
        cur = self.cur
        tok = self._tok(TT.RBRACE, RBRACE, cur.line, cur.column)
        cur.advance()
        ignore_space(cur)
        return tok

    def _lex_script_lines(self) -> Iterator[Tok]:
        cur = self.cur
        while not self._at_close_line():
            line, column = cur.line, cur.column
            yield self._tok(TT.SCRIPT_LINE, match_to_line_end(cur), line, column)
            match_newline(cur)
        yield self._close_block()

    # ========================================================================
    # Config mode
    # ========================================================================

    def _lex_config_lines(self) -> Iterator[Tok]:
        cur = self.cur
        while not self._at_close_line():
            ignore_space(cur)
            line, column = cur.line, cur.column

            if cur.at_line_end():
                yield self._tok(TT.DESC_LINE, '', line, column)
            elif cur.peek() == HASH:
                ignore_comment(cur)
            else:
                keyword = self._match_config_keyword()
                if keyword is None:
                    text = match_to_line_end(cur).rstrip(' \t')
                    yield self._tok(TT.DESC_LINE, text, line, column)
                else:
                    yield keyword
                    yield from self._lex_config_item(keyword.type)
                    if not ignore_rest_of_line(cur):
                        bad_line, bad_column = cur.line, cur.column
                        raise LexError(
                            f"Unexpected text {match_to_line_end(cur)!r} after {keyword.value}",
                            bad_line, bad_column,
                        )
            match_newline(cur)
        yield self._close_block()

    def _match_config_keyword(self) -> Optional[Tok]:
        cur = self.cur
        mark = cur.mark()
        line, column = cur.line, cur.column
        word = match_zero_or_more(cur, is_alpha)
        token_type = self.CONFIG_KEYWORDS.get(word)
        if token_type is not None and (cur.peek() in (' ', '\t') or cur.at_line_end()):
            return self._tok(token_type, word, line, column)
        cur.reset(mark)
        return None

    def _lex_config_item(self, keyword: TT) -> Iterator[Tok]:
        cur = self.cur
        ignore_space(cur)

        if keyword is TT.USAGE:
            line, column = cur.line, cur.column
            yield self._tok(TT.USAGE_LINE, match_to_line_end(cur).rstrip(' \t'), line, column)
        elif keyword is TT.SHELL:
            if not cur.at_line_end() and cur.peek() != HASH:
                yield self._scan_value()
        elif keyword is TT.OPTION:
            yield from self._lex_option_spec()
        elif keyword is TT.CONFIG_EXPORT:
            if is_alpha_under(cur.peek()) or cur.peek() == DOT:
                yield self._scan_name()
                ignore_space(cur)
                if cur.peek() == '=':
                    yield self._tok(TT.EQUALS, '=', cur.line, cur.column)
                    cur.advance()
                    ignore_space(cur)
                    if not cur.at_line_end():
                        yield self._scan_value()

    def _lex_option_spec(self) -> Iterator[Tok]:
        """-s, --long <VALUE> "description" """
        cur = self.cur
        while True:
            ignore_space(cur)
            if cur.at_line_end() or cur.peek() == HASH:
                return

            line, column = cur.line, cur.column
            ch = cur.peek()
            if ch == DASH and cur.peek(1) == DASH:
                cur.advance(2)
                name = match_zero_or_more(cur, is_alnum_under_dash)
                if not name or not is_alnum(name[0]):
                    raise LexError("Malformed long option", line, column)
                yield self._tok(TT.OPT_LONG, name, line, column)
            elif ch == DASH:
                cur.advance()
                name = match_one(cur, is_alnum)
                if not name or is_alnum_under_dash(cur.peek()):
                    raise LexError("Short option must be a single letter or digit", line, column)
                yield self._tok(TT.OPT_SHORT, name, line, column)
            elif ch == COMMA:
                cur.advance()
                yield self._tok(TT.COMMA, ch, line, column)
            elif ch == LANGLE:
                cur.advance()
                name = match_zero_or_more(cur, is_config_opt_value)
                if cur.peek() != RANGLE:
                    raise LexError("Unterminated option value '<'", line, column)
                if not name:
                    raise LexError("Empty option value name", line, column)
                cur.advance()
                yield self._tok(TT.OPT_VALUE, name, line, column)
            elif ch in (SQUOTE, DQUOTE):
                yield self._scan_string()
            else:
                raise LexError(f"Unexpected character {ch!r} in option", line, column)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def _scan_name(self) -> Tok:
        """Scan an identifier, or an attribute name such as .SHELL"""
        cur = self.cur
        line, column = cur.line, cur.column
        token_type = TT.IDENT
        prefix = ''
        if cur.peek() == DOT:
            token_type = TT.ATTR
            prefix = cur.advance()
        if not is_alpha_under(cur.peek()):
            raise LexError("Malformed name", line, column)
        word = match_zero_or_more(cur, is_alnum_under)
        return self._tok(token_type, prefix + word, line, column)

    def _scan_value(self) -> Tok:
        """Scan a quoted string or a bare word"""
        cur = self.cur
        if cur.peek() in (SQUOTE, DQUOTE):
            return self._scan_string()
        line, column = cur.line, cur.column
        word = match_zero_or_more(cur, is_print_non_space)
        if not word:
            raise LexError(f"Unexpected character {cur.peek()!r} in value", line, column)
        return self._tok(TT.BARE, word, line, column)

    def _scan_string(self) -> Tok:
        """Scan string literal: "..." or '...'"""
        cur = self.cur
        line, column = cur.line, cur.column
        quote = cur.advance()

        if quote == SQUOTE:
            text = match_zero_or_more(cur, is_print_non_squote)
            if cur.peek() != SQUOTE:
                raise LexError("Unterminated string", line, column)
            cur.advance()
            return self._tok(TT.SQ_STRING, text, line, column)

        parts: List[str] = []
        refs: List[VarRef] = []
        while True:
            parts.append(match_zero_or_more(cur, is_print_non_dquote_non_backslash_non_dollar))
            ch = cur.peek()

            if ch == DQUOTE:
                cur.advance()
                return self._tok(TT.DQ_STRING, ''.join(parts), line, column, refs)

            if ch == BACKSLASH:
                esc_line, esc_column = cur.line, cur.column
                cur.advance()
                if cur.at_line_end():
                    raise LexError("Unterminated string", line, column)
                if cur.peek() not in self.DQ_ESCAPES:
                    raise LexError(f"Illegal escape sequence '\\{cur.peek()}'", esc_line, esc_column)
                parts.append(cur.advance())
                continue

            if ch == DOLLAR:
                parts.append(self._scan_var_ref(refs))
                continue

            if cur.at_line_end():
                raise LexError("Unterminated string", line, column)
            raise LexError(f"Invalid character {ch!r} in string", cur.line, cur.column)

    def _scan_var_ref(self, refs: List[VarRef]) -> str:
        """Record a $NAME / ${NAME} placeholder; the text itself is kept as written"""
        cur = self.cur
        line, column = cur.line, cur.column
        cur.advance()

        if cur.peek() == LBRACE:
            cur.advance()
            name = match_zero_or_more(cur, is_alnum_under)
            if not name or not is_alpha_under(name[0]) or cur.peek() != RBRACE:
                raise LexError("Malformed variable reference", line, column)
            cur.advance()
            refs.append(VarRef(name, line, column))
            return f"${{{name}}}"

        if is_alpha_under(cur.peek()):
            name = match_zero_or_more(cur, is_alnum_under)
            refs.append(VarRef(name, line, column))
            return f"${name}"

        return DOLLAR


def lex(data: Source) -> Lexer:
    """Start a lazy token stream over `data`"""
    return Lexer(data)


def tokenize(data: Source) -> List[Tok]:
    """Convenience function to tokenize a whole buffer"""
    return list(Lexer(data))
