"""Runfile loading: lex -> parse -> resolve."""

from __future__ import annotations

from .errors import LexError, ParseError, RunfileError, SemanticError
from .lexer import Source, lex, tokenize
from .model import RunCmd, RunCmdConfig, RunCmdOpt, Runfile, Scope
from .parser import parse, parse_source
from .resolve import normalize_desc, normalize_script, process_ast


def load(data: Source) -> Runfile:
    """Turn a Runfile buffer (already read by the caller) into a resolved Runfile"""
    return process_ast(parse(lex(data)))


__all__ = [
    "LexError",
    "ParseError",
    "RunCmd",
    "RunCmdConfig",
    "RunCmdOpt",
    "Runfile",
    "RunfileError",
    "Scope",
    "SemanticError",
    "lex",
    "load",
    "normalize_desc",
    "normalize_script",
    "parse",
    "parse_source",
    "process_ast",
    "tokenize",
]
