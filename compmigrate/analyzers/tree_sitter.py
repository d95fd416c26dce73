"""Tree-sitter parsing helpers for TypeScript/TSX baselines."""

from __future__ import annotations

from functools import lru_cache
from pathlib import PurePath
from typing import Iterator, List, Optional

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

_TSX_SUFFIXES = {".tsx", ".jsx", ".js"}


@lru_cache(maxsize=None)
def _language(key: str) -> Language:
    if key == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_typescript.language_typescript())


def language_key_for(file_path: str) -> str:
    """Return the grammar used for ``file_path`` (``tsx`` or ``typescript``)."""
    suffix = PurePath(file_path).suffix.lower()
    return "tsx" if suffix in _TSX_SUFFIXES or not suffix else "typescript"


def parse(source_bytes: bytes, file_path: str) -> Tree:
    """Parse ``source_bytes`` with a fresh parser; parsers are not shared across threads."""
    parser = Parser(_language(language_key_for(file_path)))
    return parser.parse(source_bytes)


def node_text(node: Optional[Node], source_bytes: bytes) -> str:
    if node is None:
        return ""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def start_line(node: Node) -> int:
    return node.start_point[0] + 1


def end_line(node: Node) -> int:
    return node.end_point[0] + 1


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield ``root`` and its descendants in document order."""
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_type(root: Node, *types: str) -> Iterator[Node]:
    wanted = set(types)
    for node in iter_nodes(root):
        if node.type in wanted:
            yield node


def call_arguments(call: Node) -> List[Node]:
    """Return argument nodes of a ``call_expression`` without comments."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def has_ancestor(node: Node, *types: str) -> bool:
    wanted = set(types)
    parent = node.parent
    while parent is not None:
        if parent.type in wanted:
            return True
        parent = parent.parent
    return False


def first_error(root: Node) -> Optional[Node]:
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None


__all__ = [
    "call_arguments",
    "end_line",
    "first_error",
    "has_ancestor",
    "iter_nodes",
    "iter_type",
    "language_key_for",
    "node_text",
    "parse",
    "start_line",
]
