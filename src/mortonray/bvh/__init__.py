"""Bounding volume hierarchy over Morton-sorted primitives.

Components:
    morton: 126-bit Morton keys of normalized box centers
    builder: Recursive split of the sorted key sequence into a binary tree
    hierarchy: Device arena of the tree plus nearest-hit queries
"""

from .builder import BuildResult, Internal, Leaf, build_tree, depth_and_node_count, find_split
from .hierarchy import FlatTree, Hierarchy, HitInfo, build_hierarchy, flatten_tree
from .morton import common_prefix_length, decode, encode, morton_keys

__all__ = [
    "encode",
    "decode",
    "morton_keys",
    "common_prefix_length",
    "Leaf",
    "Internal",
    "BuildResult",
    "find_split",
    "build_tree",
    "depth_and_node_count",
    "FlatTree",
    "flatten_tree",
    "Hierarchy",
    "HitInfo",
    "build_hierarchy",
]
