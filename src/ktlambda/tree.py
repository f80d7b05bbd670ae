"""Shared helpers for working with the lark Tree/Token nodes of the lambda AST.

Leaf tokens use these types:
    IDENT       free identifier (parameter, scope or global lookup)
    NAME        member name after '.', never a variable
    NUMBER, STRING, TRUE, FALSE, NULL, UNDEFINED
    OP          operator spelling inside an operator node
"""
from __future__ import annotations
from typing import Iterator, List, Optional, TypeGuard

from lark import Token, Tree
from typing_extensions import TypeAlias

Node: TypeAlias = Tree | Token


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def node_meta(node: Node) -> Optional[object]:
    if not is_tree(node):
        return None

    # lark creates Meta lazily; an empty one carries no position
    meta = node.meta
    return meta if getattr(meta, "line", None) is not None else None

def iter_free_idents(node: Node) -> Iterator[Token]:
    """Yield IDENT tokens in source order, skipping nested arrow lambdas."""
    if is_token(node):
        if node.type == 'IDENT':
            yield node
        return

    if tree_label(node) == 'arrow':
        return

    for child in tree_children(node):
        yield from iter_free_idents(child)
