"""Unit tests for hierarchy construction.

Tests cover:
- Split search over sorted keys
- Tree shape and node counts
- Every primitive referenced by exactly one leaf
- Internal boxes enclosing their children
- Midpoint fallback for invalid splits
"""

import logging

import pytest


def _spheres_on_a_line(n):
    from mortonray.geometry import Sphere

    return [Sphere((2.0 * i, 0.0, 0.0), 0.5) for i in range(n)]


def _internal_nodes(node):
    from mortonray.bvh.builder import Internal

    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Internal):
            yield current
            stack.extend([current.left, current.right])


class TestFindSplit:
    """Tests for find_split."""

    def test_splits_on_most_significant_differing_bit(self):
        """Test that keys sharing the first key's longer prefix go left."""
        from mortonray.bvh.builder import find_split

        assert find_split([0b00, 0b01, 0b10, 0b11]) == 2
        assert find_split([0b000, 0b001, 0b010, 0b100]) == 3

    def test_identical_keys_split_at_midpoint(self):
        """Test that a run of equal keys is halved."""
        from mortonray.bvh.builder import find_split

        assert find_split([7, 7, 7, 7, 7]) == 2

    def test_split_is_inside_run(self):
        """Test that both halves are non-empty for distinct end keys."""
        from mortonray.bvh.builder import find_split

        keys = [1, 2, 3, 5, 8, 13, 21, 34]
        split = find_split(keys)
        assert 0 < split < len(keys)


class TestBuildTree:
    """Tests for build_tree."""

    def test_empty_scene_raises(self):
        """Test that an empty object list is rejected."""
        from mortonray.bvh.builder import build_tree
        from mortonray.core.errors import EmptySceneError

        with pytest.raises(EmptySceneError, match="empty scene"):
            build_tree([])

    def test_single_object_is_a_leaf(self):
        """Test that one object yields a lone leaf."""
        from mortonray.bvh.builder import Leaf, build_tree, depth_and_node_count

        result = build_tree(_spheres_on_a_line(1))
        assert isinstance(result.root, Leaf)
        assert result.root.index == 0
        assert depth_and_node_count(result.root) == (1, 1)

    def test_two_objects(self):
        """Test that two objects yield one internal node over two leaves."""
        from mortonray.bvh.builder import build_tree, depth_and_node_count

        result = build_tree(_spheres_on_a_line(2))
        assert depth_and_node_count(result.root) == (2, 3)

    @pytest.mark.parametrize("n", [3, 7, 16, 33])
    def test_every_object_in_one_leaf(self, n):
        """Test that leaves reference each primitive exactly once."""
        from mortonray.bvh.builder import build_tree, depth_and_node_count, iter_leaves

        result = build_tree(_spheres_on_a_line(n))
        indices = sorted(leaf.index for leaf in iter_leaves(result.root))
        assert indices == list(range(n))
        _, count = depth_and_node_count(result.root)
        assert count == 2 * n - 1

    def test_internal_boxes_enclose_children(self):
        """Test that every internal box contains both child boxes."""
        from mortonray.bvh.builder import build_tree
        from mortonray.scene import random_scene

        objects = random_scene(seed=11).objects
        result = build_tree(objects)
        for node in _internal_nodes(result.root):
            assert node.box.contains(node.left.box)
            assert node.box.contains(node.right.box)

    def test_order_follows_keys(self):
        """Test that the recorded order sorts objects by key."""
        from mortonray.bvh.builder import build_tree
        from mortonray.geometry import Sphere

        objects = [Sphere((5.0, 5.0, 5.0), 1.0), Sphere((0.0, 0.0, 0.0), 1.0)]
        result = build_tree(objects)
        assert result.order == [1, 0]
        assert result.keys[1] < result.keys[0]

    def test_coincident_objects(self):
        """Test that objects sharing a center still build a valid tree."""
        from mortonray.bvh.builder import build_tree, iter_leaves
        from mortonray.geometry import Sphere

        objects = [Sphere((1.0, 1.0, 1.0), 0.5 + 0.1 * i) for i in range(5)]
        result = build_tree(objects)
        assert sorted(leaf.index for leaf in iter_leaves(result.root)) == list(range(5))
        assert result.degenerate_splits == 0

    def test_invalid_split_falls_back_to_midpoint(self, monkeypatch, caplog):
        """Test that an out-of-range split is logged and replaced by the midpoint."""
        import mortonray.bvh.builder as builder

        monkeypatch.setattr(builder, "find_split", lambda keys: 0)
        with caplog.at_level(logging.WARNING, logger="mortonray.bvh.builder"):
            result = builder.build_tree(_spheres_on_a_line(3))

        assert result.degenerate_splits == 1
        assert "splitting at the midpoint" in caplog.text
        assert sorted(leaf.index for leaf in builder.iter_leaves(result.root)) == [0, 1, 2]


class TestFormatTree:
    """Tests for the textual tree dump."""

    def test_lists_every_node(self):
        """Test that the dump has one line per node and names leaves."""
        from mortonray.bvh.builder import build_tree, format_tree

        objects = _spheres_on_a_line(4)
        text = format_tree(build_tree(objects).root, objects)
        lines = text.splitlines()
        assert len(lines) == 7
        assert lines[0].startswith("Node")
        assert sum("Leaf" in line and "Sphere" in line for line in lines) == 4
