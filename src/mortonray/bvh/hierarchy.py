"""The built hierarchy: device storage and nearest-hit queries.

The tree produced by :mod:`mortonray.bvh.builder` is flattened into a
pre-order arena. A node's left child is always the next entry, and every node
records a skip index: the first entry after its subtree. Traversal walks the
arena in order, descending when a box is hit and jumping to the skip index
when it is missed or after a leaf was tested.

This visits subtrees in the same left-then-right order as the recursive
search. The query's upper bound shrinks to the closest hit found so far, so a
right subtree is only searched for hits at least as close as the best left
hit, and it wins ties. The result is the globally nearest hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from mortonray.bvh.hierarchy import build_hierarchy
    >>> from mortonray.core.ray import RayInfo
    >>> from mortonray.core.rng import RngStream
    >>> from mortonray.geometry import Sphere
    >>> bvh = build_hierarchy([Sphere((0.0, 0.0, -3.0), 1.0)])
    >>> record = bvh.hit(RayInfo((0, 0, 0), (0, 0, -1)), 0.001, float("inf"), RngStream(1))
    >>> round(record.t, 3)
    2.0
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from mortonray.core.rng import RngStream
from mortonray.geometry.aabb import BoundingBox, hit_box, to_device_corners
from mortonray.geometry.dispatch import hit_primitive, pack_primitives
from mortonray.geometry.primitive import Primitive, empty_hit_record

from .builder import BuildResult, Leaf, Node, build_tree, depth_and_node_count, format_tree

log = logging.getLogger(__name__)

vec3 = tm.vec3


@dataclass(frozen=True)
class HitInfo:
    """A hit record copied back to Python.

    Attributes:
        t: Ray parameter of the hit.
        point: Hit point.
        normal: Unit normal facing against the ray.
        front_face: True if the outward side was hit.
        material_id: Material index of the surface.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


@dataclass
class FlatTree:
    """Pre-order arena of a tree.

    Attributes:
        boxes: Box of each node.
        primitive: Primitive index of each leaf, -1 for internal nodes.
        skip: Index of the first node after each subtree.
    """

    boxes: list[BoundingBox]
    primitive: list[int]
    skip: list[int]

    def __len__(self) -> int:
        return len(self.boxes)


def flatten_tree(root: Node) -> FlatTree:
    """Lay a tree out in pre-order with skip indices."""
    flat = FlatTree(boxes=[], primitive=[], skip=[])

    def visit(node: Node) -> None:
        index = len(flat.boxes)
        flat.boxes.append(node.box)
        flat.primitive.append(node.index if isinstance(node, Leaf) else -1)
        flat.skip.append(-1)
        if not isinstance(node, Leaf):
            visit(node.left)
            visit(node.right)
        flat.skip[index] = len(flat.boxes)

    visit(root)
    return flat


def _as_vec(values: Sequence[float]) -> tuple[float, float, float]:
    x, y, z = (float(values[i]) for i in range(3))
    return (x, y, z)


@ti.data_oriented
class Hierarchy:
    """An immutable BVH over a fixed list of primitives.

    The hierarchy and its primitives live in Taichi fields and are only read
    during rendering, so any number of concurrent tasks may query it.

    Attributes:
        objects: The indexed host shapes, in input order.
        build: The build diagnostics (tree, key order, degenerate splits).
        num_nodes: Number of nodes in the arena.
        num_primitives: Number of primitives.
    """

    def __init__(
        self,
        objects: Sequence,
        build: BuildResult,
        material_ids: Sequence[int] | None = None,
    ) -> None:
        self.objects = list(objects)
        self.build = build
        flat = flatten_tree(build.root)
        self.num_nodes = len(flat)
        self.num_primitives = len(self.objects)

        # Tree arena, boxes in f64 for the slab test
        self.node_min = ti.Vector.field(3, dtype=ti.f64, shape=self.num_nodes)
        self.node_max = ti.Vector.field(3, dtype=ti.f64, shape=self.num_nodes)
        self.node_primitive = ti.field(dtype=ti.i32, shape=self.num_nodes)
        self.node_skip = ti.field(dtype=ti.i32, shape=self.num_nodes)

        # Primitive storage (structure of arrays)
        self.prim_kind = ti.field(dtype=ti.i32, shape=self.num_primitives)
        self.prim_material = ti.field(dtype=ti.i32, shape=self.num_primitives)
        self.prim_origin = ti.Vector.field(3, dtype=ti.f32, shape=self.num_primitives)
        self.prim_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=self.num_primitives)
        self.prim_edge_w = ti.Vector.field(3, dtype=ti.f32, shape=self.num_primitives)
        self.prim_radius = ti.field(dtype=ti.f32, shape=self.num_primitives)
        self.prim_density = ti.field(dtype=ti.f32, shape=self.num_primitives)

        # Host query results
        self._result_hit = ti.field(dtype=ti.i32, shape=())
        self._result_t = ti.field(dtype=ti.f32, shape=())
        self._result_point = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_front_face = ti.field(dtype=ti.i32, shape=())
        self._result_material = ti.field(dtype=ti.i32, shape=())
        self._result_state = ti.field(dtype=ti.u32, shape=())

        lo, hi = to_device_corners(flat.boxes)
        self.node_min.from_numpy(lo)
        self.node_max.from_numpy(hi)
        self.node_primitive.from_numpy(np.asarray(flat.primitive, dtype=np.int32))
        self.node_skip.from_numpy(np.asarray(flat.skip, dtype=np.int32))
        self._flat = flat

        packed = pack_primitives(self.objects, material_ids)
        self.prim_kind.from_numpy(packed["kind"])
        self.prim_material.from_numpy(packed["material_id"])
        self.prim_origin.from_numpy(packed["origin"])
        self.prim_edge_v.from_numpy(packed["edge_v"])
        self.prim_edge_w.from_numpy(packed["edge_w"])
        self.prim_radius.from_numpy(packed["radius"])
        self.prim_density.from_numpy(packed["density"])

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    @property
    def root_box(self) -> BoundingBox:
        return self.build.root.box

    @property
    def leaf_count(self) -> int:
        return sum(1 for p in self._flat.primitive if p >= 0)

    @property
    def node_count(self) -> int:
        return self.num_nodes

    @property
    def degenerate_splits(self) -> int:
        return self.build.degenerate_splits

    def depth_and_node_count(self) -> tuple[int, int]:
        """Depth of the tree and its number of nodes, leaves included."""
        return depth_and_node_count(self.build.root)

    def format_tree(self) -> str:
        return format_tree(self.build.root, self.objects)

    # -------------------------------------------------------------------------
    # Device queries
    # -------------------------------------------------------------------------

    @ti.func
    def primitive(self, i: ti.i32) -> Primitive:
        return Primitive(
            kind=self.prim_kind[i],
            material_id=self.prim_material[i],
            origin=self.prim_origin[i],
            edge_v=self.prim_edge_v[i],
            edge_w=self.prim_edge_w[i],
            radius=self.prim_radius[i],
            density=self.prim_density[i],
        )

    @ti.func
    def closest_hit(
        self,
        ray_origin: vec3,
        ray_direction: vec3,
        t_min: ti.f32,
        t_max: ti.f32,
        state: ti.u32,
    ):
        """Find the nearest hit along a ray.

        Args:
            ray_origin: The ray origin.
            ray_direction: The ray direction.
            t_min: Minimum t value.
            t_max: Maximum t value.
            state: The caller's random stream state.

        Returns:
            A tuple (record, new_state).
        """
        s = state
        inv_direction = 1.0 / ti.cast(ray_direction, ti.f64)
        closest = t_max
        record = empty_hit_record()
        node = 0
        while node < self.num_nodes:
            if hit_box(
                ray_origin, inv_direction, self.node_min[node], self.node_max[node], t_min, closest
            ):
                prim = self.node_primitive[node]
                if prim >= 0:
                    candidate, s = hit_primitive(
                        self.primitive(prim), ray_origin, ray_direction, t_min, closest, s
                    )
                    if candidate.hit == 1:
                        closest = candidate.t
                        record = candidate
                    node = self.node_skip[node]
                else:
                    node += 1
            else:
                node = self.node_skip[node]
        return record, s

    @ti.func
    def linear_hit(
        self,
        ray_origin: vec3,
        ray_direction: vec3,
        t_min: ti.f32,
        t_max: ti.f32,
        state: ti.u32,
    ):
        """Brute-force nearest hit over every primitive, in input order."""
        s = state
        closest = t_max
        record = empty_hit_record()
        i = 0
        while i < self.num_primitives:
            candidate, s = hit_primitive(
                self.primitive(i), ray_origin, ray_direction, t_min, closest, s
            )
            if candidate.hit == 1:
                closest = candidate.t
                record = candidate
            i += 1
        return record, s

    @ti.kernel
    def _query(
        self,
        origin: vec3,
        direction: vec3,
        t_min: ti.f32,
        t_max: ti.f32,
        state: ti.u32,
        linear: ti.template(),
    ):
        record = empty_hit_record()
        s = state
        if ti.static(linear):
            record, s = self.linear_hit(origin, direction, t_min, t_max, s)
        else:
            record, s = self.closest_hit(origin, direction, t_min, t_max, s)
        self._result_hit[None] = record.hit
        self._result_t[None] = record.t
        self._result_point[None] = record.point
        self._result_normal[None] = record.normal
        self._result_front_face[None] = record.front_face
        self._result_material[None] = record.material_id
        self._result_state[None] = s

    def _run_query(self, ray, t_min: float, t_max: float, rng: RngStream, linear: bool):
        self._query(
            vec3(*_as_vec(ray.origin)),
            vec3(*_as_vec(ray.direction)),
            t_min,
            t_max,
            rng.state,
            linear,
        )
        rng.state = int(self._result_state[None])
        if self._result_hit[None] == 0:
            return None
        return HitInfo(
            t=float(self._result_t[None]),
            point=_as_vec(self._result_point[None]),
            normal=_as_vec(self._result_normal[None]),
            front_face=bool(self._result_front_face[None]),
            material_id=int(self._result_material[None]),
        )

    def hit(self, ray, t_min: float, t_max: float, rng: RngStream) -> HitInfo | None:
        """Nearest hit of a ray, queried from Python.

        Args:
            ray: Any object with ``origin`` and ``direction`` (e.g. RayInfo).
            t_min: Minimum t value.
            t_max: Maximum t value (may be infinite).
            rng: Random stream; advanced by the random numbers consumed.

        Returns:
            The hit, or None if the ray misses everything.
        """
        return self._run_query(ray, t_min, t_max, rng, False)

    def hit_linear(self, ray, t_min: float, t_max: float, rng: RngStream) -> HitInfo | None:
        """Same query answered by scanning every primitive."""
        return self._run_query(ray, t_min, t_max, rng, True)


def build_hierarchy(objects: Sequence, material_ids: Sequence[int] | None = None) -> Hierarchy:
    """Build a hierarchy over objects and upload it to the device.

    Args:
        objects: Host shapes.
        material_ids: Material index per object. Defaults to 0 for all.

    Returns:
        The built hierarchy.

    Raises:
        EmptySceneError: If objects is empty.
    """
    result = build_tree(objects)
    hierarchy = Hierarchy(objects, result, material_ids)
    depth, nodes = hierarchy.depth_and_node_count()
    log.info(f"Built BVH with {nodes} nodes ({hierarchy.leaf_count} leaves), depth {depth}")
    if result.degenerate_splits:
        log.warning(f"{result.degenerate_splits} hierarchy splits fell back to the midpoint")
    return hierarchy
