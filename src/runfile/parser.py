"""
Recursive Descent Parser for Runfiles

Structure:
- Lexer: lazy token stream from the source buffer
- Parser: one token of lookahead, no backtracking
- AST: lark Tree nodes, one label per node kind

Grammar:
    document     := (NEWLINE | export_stmt | command_def)*
    export_stmt  := EXPORT (IDENT|ATTR) '=' value (NEWLINE|EOF)
    command_def  := COMMAND IDENT config_block? script_block
    config_block := '{' config_item* '}'
    config_item  := SHELL value
                  | USAGE USAGE_LINE
                  | OPTION opt_spec
                  | CONFIG_EXPORT (IDENT|ATTR) '=' value
                  | DESC_LINE
    opt_spec     := (OPT_SHORT [',' OPT_LONG] | OPT_LONG) [OPT_VALUE] [quoted]
    script_block := '{' SCRIPT_LINE* '}'
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from lark import Token, Tree

from .errors import ParseError
from .lexer import Source, lex
from .token_types import QUOTED_TYPES, TT, VALUE_TYPES, Tok

CONFIG_ITEM_TYPES = (TT.SHELL, TT.USAGE, TT.OPTION, TT.CONFIG_EXPORT, TT.DESC_LINE)

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """Recursive descent parser for Runfiles."""

    def __init__(self, tokens: Iterable[Tok]):
        self.tokens: Iterator[Tok] = iter(tokens)
        self.last_line = 0
        self.last_column = 0
        self.current = self._pull()

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def _pull(self) -> Tok:
        try:
            tok = next(self.tokens)
        except StopIteration:
            return Tok(TT.EOF, '', self.last_line, self.last_column)
        self.last_line, self.last_column = tok.line, tok.column
        return tok

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type is not TT.EOF:
            self.current = self._pull()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, *types: TT) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(*types):
            raise self.error(*types)
        return self.advance()

    def error(self, *expected: TT) -> ParseError:
        return ParseError(f"Unexpected {self.current.describe()}", self.current, expected)

    def skip_newlines(self) -> None:
        while self.match(TT.NEWLINE):
            pass

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire document"""
        stmts: List[Tree] = []

        while not self.check(TT.EOF):
            if self.match(TT.NEWLINE):
                continue
            if self.check(TT.EXPORT):
                stmts.append(self.parse_export_stmt())
            elif self.check(TT.COMMAND):
                stmts.append(self.parse_command_def())
            else:
                raise self.error(TT.EXPORT, TT.COMMAND)

        return Tree('document', stmts)

    def parse_export_stmt(self) -> Tree:
        """EXPORT NAME = value"""
        self.advance()
        name = self.expect(TT.IDENT, TT.ATTR)
        self.expect(TT.EQUALS)
        value = self.parse_value()
        if not self.check(TT.EOF):
            self.expect(TT.NEWLINE)
        return Tree('export_stmt', [as_token(name), value])

    def parse_command_def(self) -> Tree:
        """
        COMMAND name { config } { script }

        The lexer has already classified each brace region, so the first
        region's contents tell config and script apart. An empty first
        region is a config block only when a second region follows.
        """
        self.advance()
        name = self.expect(TT.IDENT)
        self.skip_newlines()

        self.expect(TT.LBRACE)
        if self.check(TT.SCRIPT_LINE):
            return Tree('command_def', [as_token(name), None, self.parse_script_body()])

        config = self.parse_config_body()
        self.skip_newlines()
        if self.match(TT.LBRACE):
            return Tree('command_def', [as_token(name), config, self.parse_script_body()])
        if not config.children:
            return Tree('command_def', [as_token(name), None, Tree('script_block', [])])
        raise self.error(TT.LBRACE)

    # ========================================================================
    # Blocks
    # ========================================================================

    def parse_config_body(self) -> Tree:
        items: List[Tree] = []

        while not self.match(TT.RBRACE):
            if self.check(TT.SHELL):
                self.advance()
                items.append(Tree('shell_config', [self.parse_value()]))
            elif self.check(TT.USAGE):
                self.advance()
                items.append(Tree('usage_config', [as_token(self.expect(TT.USAGE_LINE))]))
            elif self.check(TT.OPTION):
                items.append(self.parse_opt_spec())
            elif self.check(TT.CONFIG_EXPORT):
                self.advance()
                name = self.expect(TT.IDENT, TT.ATTR)
                self.expect(TT.EQUALS)
                items.append(Tree('command_export', [as_token(name), self.parse_value()]))
            elif self.check(TT.DESC_LINE):
                items.append(Tree('desc_line', [as_token(self.advance())]))
            else:
                raise self.error(*CONFIG_ITEM_TYPES, TT.RBRACE)

        return Tree('config_block', items)

    def parse_opt_spec(self) -> Tree:
        """OPTION -s, --long <VALUE> "description" """
        self.advance()
        short: Optional[Tok] = None
        long: Optional[Tok] = None

        if self.check(TT.OPT_SHORT):
            short = self.advance()
            if self.match(TT.COMMA):
                long = self.expect(TT.OPT_LONG)
        elif self.check(TT.OPT_LONG):
            long = self.advance()
        else:
            raise self.error(TT.OPT_SHORT, TT.OPT_LONG)

        value = self.advance() if self.check(TT.OPT_VALUE) else None
        desc = self.parse_value() if self.check(*QUOTED_TYPES) else None

        return Tree('option_config', [as_token(short), as_token(long), as_token(value), desc])

    def parse_script_body(self) -> Tree:
        lines: List[Token] = []
        while self.check(TT.SCRIPT_LINE):
            lines.append(as_token(self.advance()))
        self.expect(TT.RBRACE)
        return Tree('script_block', lines)

    # ========================================================================
    # Values
    # ========================================================================

    def parse_value(self) -> Tree:
        """Quoted or bare value; double-quoted values keep their $NAME placeholders"""
        tok = self.expect(*VALUE_TYPES)
        refs = [
            Tree('var_ref', [Token('VAR_NAME', ref.name, line=ref.line, column=ref.column)])
            for ref in tok.refs
        ]
        return Tree('value', [as_token(tok), *refs])


def as_token(tok: Optional[Tok]) -> Optional[Token]:
    """Convert a lexer Tok into a positioned lark Token"""
    if tok is None:
        return None
    return Token(tok.type.name, tok.value, line=tok.line, column=tok.column)


def parse(tokens: Iterable[Tok]) -> Tree:
    return Parser(tokens).parse()


def parse_source(data: Source) -> Tree:
    """Lex and parse a Runfile buffer"""
    return Parser(lex(data)).parse()
