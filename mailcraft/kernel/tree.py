"""
Mailcraft Kernel — Tree Utilities

Generic walks over a list of ComponentNode siblings. Every mutation in the
reducer is built from these, so find/traverse/renumber logic lives in one place.

All functions are pure and preserve structural sharing: a sibling list or a
node that is not touched is returned as the very same object.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterator

from mailcraft.kernel.types import ComponentNode

SiblingTransform = Callable[[list[ComponentNode]], list[ComponentNode]]


def walk(nodes: list[ComponentNode]) -> Iterator[ComponentNode]:
    """Depth-first, pre-order iteration over every node."""
    for node in nodes:
        yield node
        if node.children:
            yield from walk(node.children)


def find_by_id(nodes: list[ComponentNode], node_id: str) -> ComponentNode | None:
    for node in walk(nodes):
        if node.id == node_id:
            return node
    return None


def count_nodes(nodes: list[ComponentNode]) -> int:
    """Total number of nodes, roots plus all descendants."""
    return sum(1 for _ in walk(nodes))


def all_ids(nodes: list[ComponentNode]) -> list[str]:
    return [node.id for node in walk(nodes)]


def with_children_replaced(node: ComponentNode, children: list[ComponentNode]) -> ComponentNode:
    if children is node.children:
        return node
    return dataclasses.replace(node, children=children)


def resequence(nodes: list[ComponentNode]) -> list[ComponentNode]:
    """Assign `order = index`. Nodes already in place are kept by identity."""
    result = [node if node.order == i else dataclasses.replace(node, order=i) for i, node in enumerate(nodes)]
    if all(a is b for a, b in zip(result, nodes)):
        return nodes
    return result


def map_tree(
    nodes: list[ComponentNode],
    fn: Callable[[ComponentNode], ComponentNode],
) -> list[ComponentNode]:
    """
    Apply `fn` to every node, children first.
    Returns the input list unchanged when `fn` replaced nothing.
    """
    result: list[ComponentNode] = []
    changed = False
    for node in nodes:
        current = node
        if node.children:
            current = with_children_replaced(node, map_tree(node.children, fn))
        mapped = fn(current)
        changed = changed or mapped is not node
        result.append(mapped)
    return result if changed else nodes


def filter_tree(
    nodes: list[ComponentNode],
    keep: Callable[[ComponentNode], bool],
) -> list[ComponentNode]:
    """
    Drop every node (with its whole subtree) for which `keep` is False,
    at any depth. Sibling lists that lost a node are renumbered.
    """
    result: list[ComponentNode] = []
    changed = False
    for node in nodes:
        if not keep(node):
            changed = True
            continue
        if node.children:
            children = filter_tree(node.children, keep)
            if children is not node.children:
                node = with_children_replaced(node, children)
                changed = True
        result.append(node)
    if not changed:
        return nodes
    return resequence(result)


def transform_children_of(
    nodes: list[ComponentNode],
    parent_id: str | None,
    fn: SiblingTransform,
) -> tuple[list[ComponentNode], bool]:
    """
    Apply `fn` to the children list of `parent_id` (the root list when None).
    Returns (new_nodes, found).
    """
    if parent_id is None:
        return fn(nodes), True

    for i, node in enumerate(nodes):
        if node.id == parent_id:
            updated = with_children_replaced(node, fn(node.children))
            return _replace_at(nodes, i, updated), True
        if node.children:
            children, found = transform_children_of(node.children, parent_id, fn)
            if found:
                return _replace_at(nodes, i, with_children_replaced(node, children)), True
    return nodes, False


def transform_siblings_of(
    nodes: list[ComponentNode],
    node_id: str,
    fn: SiblingTransform,
) -> tuple[list[ComponentNode], bool]:
    """
    Apply `fn` to the sibling list that contains `node_id`.
    Returns (new_nodes, found).
    """
    if any(node.id == node_id for node in nodes):
        return fn(nodes), True

    for i, node in enumerate(nodes):
        if node.children:
            children, found = transform_siblings_of(node.children, node_id, fn)
            if found:
                return _replace_at(nodes, i, with_children_replaced(node, children)), True
    return nodes, False


def _replace_at(nodes: list[ComponentNode], index: int, node: ComponentNode) -> list[ComponentNode]:
    if nodes[index] is node:
        return nodes
    result = list(nodes)
    result[index] = node
    return result
