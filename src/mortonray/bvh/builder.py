"""Linear BVH construction from Morton-sorted primitives.

Primitives are sorted by the Morton key of their box centers, then the sorted
sequence is split recursively at the position where the most significant
differing key bit flips. The result is a binary tree of immutable nodes whose
leaves reference primitives by index and whose internal nodes carry the union
box of their subtree.

Example:
    >>> from mortonray.bvh.builder import build_tree, depth_and_node_count
    >>> from mortonray.geometry import Sphere
    >>> result = build_tree([Sphere((0.0, 0.0, 0.0), 1.0), Sphere((3.0, 0.0, 0.0), 1.0)])
    >>> depth_and_node_count(result.root)
    (2, 3)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mortonray.core.errors import EmptySceneError
from mortonray.geometry.aabb import BoundingBox

from .morton import common_prefix_length, morton_keys

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leaf:
    """A leaf referencing one primitive.

    Attributes:
        index: Position of the primitive in the input object list.
        box: Bounding box of the primitive.
    """

    index: int
    box: BoundingBox


@dataclass(frozen=True)
class Internal:
    """An internal node owning two subtrees.

    Attributes:
        left: Left subtree (smaller keys).
        right: Right subtree (larger keys).
        box: Union of the children's boxes.
    """

    left: "Node"
    right: "Node"
    box: BoundingBox


Node = Leaf | Internal


@dataclass
class BuildResult:
    """Outcome of a hierarchy build.

    Attributes:
        root: Root node of the tree.
        order: Object indices in ascending key order.
        keys: Morton key of each object, in input order.
        degenerate_splits: How many times an invalid split boundary was
            replaced by the midpoint.
    """

    root: Node
    order: list[int]
    keys: list[int]
    degenerate_splits: int = 0


def find_split(keys: Sequence[int]) -> int:
    """Find where the most significant differing bit of a sorted key run flips.

    Keys equal to the first one on more than the common prefix of the whole
    run form the left half. The boundary is located by successive halving.

    Args:
        keys: Keys sorted in ascending order, at least two of them.

    Returns:
        The index of the first key of the right half. Equal first and last
        keys yield the midpoint.
    """
    n = len(keys)
    first = keys[0]
    last = keys[-1]
    if first == last:
        return n // 2

    common = common_prefix_length(first, last)
    split = 0
    step = n - 1
    while True:
        step = (step + 1) // 2
        candidate = split + step
        if candidate < n and common_prefix_length(first, keys[candidate]) > common:
            split = candidate
        if step <= 1:
            return split + 1


class _TreeBuilder:
    def __init__(self, boxes: list[BoundingBox], sorted_keys: list[int], order: list[int]):
        self.boxes = boxes
        self.keys = sorted_keys
        self.order = order
        self.degenerate_splits = 0

    def _leaf(self, position: int) -> Leaf:
        index = self.order[position]
        return Leaf(index=index, box=self.boxes[index])

    def _checked_split(self, start: int, end: int) -> int:
        n = end - start
        split = find_split(self.keys[start:end])
        if split <= 0 or split >= n:
            message = (
                f"Invalid split {split} for a run of {n} primitives "
                f"(positions {start}..{end - 1}); splitting at the midpoint"
            )
            log.warning(message)
            self.degenerate_splits += 1
            split = n // 2
        return split

    def build(self, start: int, end: int) -> Node:
        n = end - start
        if n == 1:
            return self._leaf(start)
        if n == 2:
            left = self._leaf(start)
            right = self._leaf(start + 1)
            return Internal(left=left, right=right, box=left.box.union(right.box))

        split = self._checked_split(start, end)
        left = self.build(start, start + split)
        right = self.build(start + split, end)
        return Internal(left=left, right=right, box=left.box.union(right.box))


def build_tree(objects: Sequence) -> BuildResult:
    """Build a linear BVH over objects exposing ``bounding_box()``.

    Args:
        objects: The primitives to index.

    Returns:
        The tree with diagnostics.

    Raises:
        EmptySceneError: If objects is empty.
    """
    if len(objects) == 0:
        raise EmptySceneError()

    boxes = [obj.bounding_box() for obj in objects]
    keys = morton_keys([box.center() for box in boxes])
    order = sorted(range(len(objects)), key=keys.__getitem__)
    sorted_keys = [keys[i] for i in order]

    builder = _TreeBuilder(boxes, sorted_keys, order)
    root = builder.build(0, len(objects))
    return BuildResult(
        root=root,
        order=order,
        keys=keys,
        degenerate_splits=builder.degenerate_splits,
    )


def depth_and_node_count(node: Node) -> tuple[int, int]:
    """Depth of the tree and its number of nodes, leaves included."""
    if isinstance(node, Leaf):
        return 1, 1
    left_depth, left_count = depth_and_node_count(node.left)
    right_depth, right_count = depth_and_node_count(node.right)
    return 1 + max(left_depth, right_depth), 1 + left_count + right_count


def iter_leaves(node: Node):
    """Yield the leaves of a subtree from left to right."""
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Leaf):
            yield current
        else:
            stack.append(current.right)
            stack.append(current.left)


def _format_box(box: BoundingBox) -> str:
    lo = ", ".join(f"{v:.3g}" for v in box.minimum)
    hi = ", ".join(f"{v:.3g}" for v in box.maximum)
    return f"[({lo}) .. ({hi})]"


def format_tree(node: Node, objects: Sequence | None = None, indent: str = "  ") -> str:
    """Render a tree as indented text, one node per line.

    Args:
        node: Root of the subtree to print.
        objects: The indexed objects, used to name leaves. Optional.
        indent: Indentation added per level.

    Returns:
        The textual dump.
    """
    lines = []
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        prefix = indent * depth
        if isinstance(current, Leaf):
            name = f"#{current.index}"
            if objects is not None:
                name += f" {type(objects[current.index]).__name__}"
            lines.append(f"{prefix}Leaf {name} {_format_box(current.box)}")
        else:
            lines.append(f"{prefix}Node {_format_box(current.box)}")
            stack.append((current.right, depth + 1))
            stack.append((current.left, depth + 1))
    return "\n".join(lines)
