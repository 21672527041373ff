"""
Mailcraft Tree — Utility Tests

The generic walks every mutation is built from. Untouched subtrees must come
back as the very same objects.
"""

import dataclasses

from mailcraft.kernel.tree import (
    all_ids,
    count_nodes,
    filter_tree,
    find_by_id,
    map_tree,
    resequence,
    transform_children_of,
    transform_siblings_of,
    walk,
)
from mailcraft.kernel.types import ComponentNode


def n(id, *children, order=0):
    return ComponentNode(id=id, type="container" if children else "text", children=list(children), order=order)


def tree():
    """
    a
    b
      b1
      b2
        b2x
    c
    """
    return [
        n("a", order=0),
        n("b", n("b1", order=0), n("b2", n("b2x"), order=1), order=1),
        n("c", order=2),
    ]


class TestWalk:
    def test_pre_order(self):
        assert [node.id for node in walk(tree())] == ["a", "b", "b1", "b2", "b2x", "c"]

    def test_count_and_ids(self):
        nodes = tree()
        assert count_nodes(nodes) == 6
        assert all_ids(nodes) == ["a", "b", "b1", "b2", "b2x", "c"]

    def test_find_deep(self):
        assert find_by_id(tree(), "b2x").id == "b2x"
        assert find_by_id(tree(), "zzz") is None


class TestMapTree:
    def test_identity_when_nothing_changes(self):
        nodes = tree()
        assert map_tree(nodes, lambda node: node) is nodes

    def test_path_rebuilt_siblings_shared(self):
        nodes = tree()
        out = map_tree(nodes, lambda node: dataclasses.replace(node, name="X") if node.id == "b2x" else node)

        assert out is not nodes
        assert out[0] is nodes[0]
        assert out[2] is nodes[2]
        assert out[1] is not nodes[1]
        assert out[1].children[0] is nodes[1].children[0]
        assert find_by_id(out, "b2x").name == "X"
        assert find_by_id(nodes, "b2x").name is None


class TestFilterTree:
    def test_drops_subtree_and_renumbers(self):
        nodes = tree()
        out = filter_tree(nodes, lambda node: node.id != "b")
        assert [node.id for node in out] == ["a", "c"]
        assert [node.order for node in out] == [0, 1]

    def test_nested_drop(self):
        nodes = tree()
        out = filter_tree(nodes, lambda node: node.id != "b1")
        b = find_by_id(out, "b")
        assert [c.id for c in b.children] == ["b2"]
        assert b.children[0].order == 0
        assert out[0] is nodes[0]

    def test_identity_when_nothing_dropped(self):
        nodes = tree()
        assert filter_tree(nodes, lambda node: True) is nodes


class TestResequence:
    def test_already_ordered_is_identity(self):
        nodes = tree()
        assert resequence(nodes) is nodes

    def test_renumbers(self):
        nodes = [n("x", order=5), n("y", order=5)]
        assert [node.order for node in resequence(nodes)] == [0, 1]


class TestTransforms:
    def test_children_of_root(self):
        nodes = tree()
        out, found = transform_children_of(nodes, None, lambda siblings: list(reversed(siblings)))
        assert found
        assert [node.id for node in out] == ["c", "b", "a"]

    def test_children_of_nested(self):
        nodes = tree()
        out, found = transform_children_of(nodes, "b2", lambda siblings: siblings + [n("new")])
        assert found
        assert [c.id for c in find_by_id(out, "b2").children] == ["b2x", "new"]

    def test_children_of_missing(self):
        nodes = tree()
        out, found = transform_children_of(nodes, "zzz", lambda siblings: [])
        assert not found
        assert out is nodes

    def test_siblings_of(self):
        nodes = tree()
        out, found = transform_siblings_of(nodes, "b1", lambda siblings: siblings[::-1])
        assert found
        assert [c.id for c in find_by_id(out, "b").children] == ["b2", "b1"]
        assert out[0] is nodes[0]
