"""
Scope/export resolution

Walks the parsed document once, left to right:
- top-level exports write into the global scope (later wins)
- each command gets a child scope of the global scope; its exports stay there
- description and script text are normalized
- command and export names share one case-insensitive namespace with the
  built-ins; re-exporting a name only overwrites it
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from lark import Token, Tree

from .errors import SemanticError
from .model import BUILTIN_COMMANDS, RunCmd, RunCmdConfig, RunCmdOpt, Runfile, Scope
from .runes import is_line_whitespace_only, leading_whitespace
from .tree import token_text, tree_children, tree_label, value_text

logger = logging.getLogger(__name__)

# ============================================================================
# Text normalization
# ============================================================================

def normalize_desc(lines: Sequence[str]) -> List[str]:
    """Remove leading and trailing lines that are empty or whitespace only."""
    start, end = 0, len(lines)
    while start < end and is_line_whitespace_only(lines[start]):
        start += 1
    while end > start and is_line_whitespace_only(lines[end - 1]):
        end -= 1
    return list(lines[start:end])


def normalize_script(lines: Sequence[str]) -> List[str]:
    """
    Remove leading and trailing blank lines, then strip the leading
    whitespace of the first line, as a literal prefix, from every line that
    starts with it. Lines that do not share the exact prefix are kept as-is.
    """
    txt = normalize_desc(lines)
    if not txt:
        return txt

    prefix = leading_whitespace(txt[0])
    if not prefix:
        return txt

    return [line[len(prefix):] if line.startswith(prefix) else line for line in txt]

# ============================================================================
# Resolver
# ============================================================================

class Resolver:
    def __init__(self):
        self.runfile = Runfile()
        # lower-cased name -> defining token (None for built-ins)
        self.names: Dict[str, Optional[Token]] = {name: None for name in BUILTIN_COMMANDS}
        # lower-cased export name -> first exporting token, across all scopes
        self.exports: Dict[str, Token] = {}

    def process(self, tree: Tree) -> Runfile:
        if tree_label(tree) != 'document':
            raise TypeError(f"expected a document tree, got {tree_label(tree)!r}")

        for stmt in tree_children(tree):
            match tree_label(stmt):
                case 'export_stmt':
                    self.export(self.runfile.scope, stmt)
                case 'command_def':
                    self.runfile.cmds.append(self.command(stmt))
                case label:
                    raise TypeError(f"unexpected top-level node {label!r}")

        return self.runfile

    def export(self, scope: Scope, node: Tree) -> None:
        name, value = tree_children(node)
        self.check_export_name(name)
        scope.define(token_text(name), value_text(value))
        logger.debug(
            "export %s=%r (%s)",
            name, scope.attrs[str(name)], 'global' if scope.parent is None else 'command',
        )

    def check_export_name(self, name: Token) -> None:
        """Export names share the command namespace; .ATTR settings do not"""
        if str(name).startswith('.'):
            return

        key = str(name).lower()
        if key in self.names:
            cmd = self.names[key]
            if cmd is None:
                raise SemanticError(
                    f"Export name '{name}' is reserved for a built-in command",
                    name.line, name.column,
                )
            raise SemanticError(
                f"Export name '{name}' collides with command {cmd} (defined at line {cmd.line})",
                name.line, name.column,
            )
        self.exports.setdefault(key, name)

    def register(self, name: Token) -> None:
        key = str(name).lower()
        if key in self.exports:
            first_export = self.exports[key]
            raise SemanticError(
                f"Command name '{name}' collides with export {first_export} "
                f"(exported at line {first_export.line})",
                name.line, name.column,
            )
        if key not in self.names:
            self.names[key] = name
            return

        first = self.names[key]
        if first is None:
            raise SemanticError(
                f"Command name '{name}' is reserved for a built-in command",
                name.line, name.column,
            )
        raise SemanticError(
            f"Duplicate command: {key} (first defined at line {first.line})",
            name.line, name.column,
        )

    def command(self, node: Tree) -> RunCmd:
        name, config, script = tree_children(node)
        self.register(name)

        cmd = RunCmd(str(name), RunCmdConfig(), self.runfile.scope.child())
        aliases: Dict[str, Token] = {}

        for item in tree_children(config):
            match tree_label(item):
                case 'shell_config':
                    cmd.config.shell = value_text(item.children[0])
                case 'usage_config':
                    cmd.config.usages.append(token_text(item.children[0]) or '')
                case 'option_config':
                    cmd.config.opts.append(self.option(item, aliases))
                case 'command_export':
                    self.export(cmd.scope, item)
                case 'desc_line':
                    cmd.config.desc.append(token_text(item.children[0]) or '')
                case label:
                    raise TypeError(f"unexpected config node {label!r}")

        cmd.config.desc = normalize_desc(cmd.config.desc)
        cmd.script = normalize_script([token_text(line) or '' for line in tree_children(script)])

        logger.debug(
            "registered command %s (%d option(s), %d script line(s))",
            cmd.name, len(cmd.config.opts), len(cmd.script),
        )
        return cmd

    def option(self, node: Tree, aliases: Dict[str, Token]) -> RunCmdOpt:
        short, long, value, desc = tree_children(node)

        for tok, key in ((short, f"-{short}"), (long, f"--{str(long).lower()}")):
            if tok is None:
                continue
            if key in aliases:
                raise SemanticError(f"Duplicate option: {key}", tok.line, tok.column)
            aliases[key] = tok

        return RunCmdOpt(
            name=token_text(long) or token_text(short),
            short=token_text(short),
            long=token_text(long),
            value=token_text(value),
            desc=value_text(desc) if desc is not None else '',
        )


def process_ast(tree: Tree) -> Runfile:
    """Resolve a parsed document into a Runfile"""
    return Resolver().process(tree)
