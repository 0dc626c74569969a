"""Pre-order traversal helpers over ``Node`` trees."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from solidity_analyzer.tree import Node

MATCH_ALL = "*"


def iter_nodes(
    root: Node | None,
    node_type: str | None = None,
    predicate: Callable[[Node], bool] | None = None,
) -> Iterator[Node]:
    """Yield nodes in pre-order, root first, children left to right.

    ``node_type`` of ``None`` or ``"*"`` matches every node. ``predicate``
    further narrows the match without pruning the walk.
    """
    if root is None:
        return
    match_all = node_type is None or node_type == MATCH_ALL
    stack: list[Node] = [root]
    while stack:
        node = stack.pop()
        if (match_all or node.type == node_type) and (predicate is None or predicate(node)):
            yield node
        children = node.children
        for index in range(len(children) - 1, -1, -1):
            stack.append(children[index])


def find_nodes(root: Node | None, node_type: str | None = None) -> list[Node]:
    """Collect matching nodes in pre-order."""
    return list(iter_nodes(root, node_type))


def contains(root: Node | None, node_type: str) -> bool:
    """Return whether the subtree holds a node of ``node_type``."""
    for _ in iter_nodes(root, node_type):
        return True
    return False


def line_of(node: Node) -> int | None:
    """Starting line of a node, or ``None`` when its location is unknown."""
    start = node.start
    return start.line if start is not None else None


def column_of(node: Node) -> int | None:
    """1-based starting column of a node, or ``None`` when unknown."""
    start = node.start
    return start.column + 1 if start is not None else None
