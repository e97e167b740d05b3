"""Shared helpers for inspecting Lark parse trees."""

from __future__ import annotations

from typing import List, Optional, Union

from lark import Token, Tree
from typing_extensions import TypeAlias, TypeGuard

from .errors import Pos

Node: TypeAlias = Union[Tree, Token]


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

def subtrees(node: Node) -> List[Tree]:
    """Children that are trees, skipping keyword and punctuation tokens."""
    return [ch for ch in tree_children(node) if is_tree(ch)]

def tokens_of(node: Node, *types: str) -> List[Token]:
    return [ch for ch in tree_children(node) if is_token(ch) and (not types or ch.type in types)]

def node_pos(node: Node) -> Optional[Pos]:
    if is_token(node):
        if node.line is None:
            return None
        return Pos(node.line, node.column, node.end_line, node.end_column)

    meta = getattr(node, "meta", None)
    if meta is None or getattr(meta, "empty", True):
        return None

    return Pos(meta.line, meta.column, meta.end_line, meta.end_column)
