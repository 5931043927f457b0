"""Shared helpers for working with the lark Tree/Token nodes the parser builds.

Node labels:
    document, export_stmt, command_def, config_block, shell_config,
    usage_config, option_config, command_export, desc_line, script_block,
    value, var_ref
"""
from __future__ import annotations
from typing import Iterable, List, Optional, Set, Union

from lark import Token, Tree
from typing_extensions import TypeAlias, TypeGuard

Node: TypeAlias = Union[Tree, Token, None]


def is_tree(node: Node) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Node) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def children_by_labels(node: Node, labels: Iterable[str]) -> List[Tree]:
    lookup: Set[str] = set(labels)
    return [ch for ch in tree_children(node) if tree_label(ch) in lookup]

def token_text(node: Node) -> Optional[str]:
    """Token value, or None for an absent optional child"""
    return str(node.value) if is_token(node) else None

def value_text(node: Node) -> str:
    """Literal text of a `value` node (quotes and escapes already removed by the lexer)"""
    if tree_label(node) != 'value':
        raise TypeError(f"expected a value node, got {node!r}")

    return token_text(tree_children(node)[0]) or ''

def value_refs(node: Node) -> List[str]:
    """Names of the $NAME placeholders recorded on a `value` node"""
    return [
        token_text(tree_children(ref)[0]) or ''
        for ref in children_by_labels(node, ('var_ref',))
    ]
