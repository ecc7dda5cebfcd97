"""Quad primitive with ray-quad intersection.

A quad is the parallelogram spanned by a vertex and two edges:

    vertex, vertex + edge_v, vertex + edge_w, vertex + edge_v + edge_w

Intersection reuses the triangle's planar solver; only the acceptance region
differs. The hit must lie in the open unit square, 0 < lam < 1 and
0 < mu < 1, so the border of the quad is excluded.

Example:
    >>> from mortonray.geometry.quad import Quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> floor = Quad(
    ...     vertex=(0.0, 0.0, 0.0),
    ...     edge_v=(1.0, 0.0, 0.0),
    ...     edge_w=(0.0, 0.0, 1.0),
    ...     material="white",
    ... )
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from .aabb import FLAT_BOX_PADDING, BoundingBox, Point
from .primitive import PrimitiveKind
from .triangle import planar_coordinates

vec3 = tm.vec3


@dataclass(frozen=True)
class Quad:
    """A parallelogram defined by a vertex and two edge vectors.

    Attributes:
        vertex: The corner the edges start from.
        edge_v: Edge vector to one adjacent corner.
        edge_w: Edge vector to the other adjacent corner.
        material: Name of the material.
    """

    vertex: Point
    edge_v: Point
    edge_w: Point
    material: str = ""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.QUAD

    def corners(self) -> list[Point]:
        v, e1, e2 = self.vertex, self.edge_v, self.edge_w
        return [
            v,
            tuple(a + b for a, b in zip(v, e1)),
            tuple(a + b for a, b in zip(v, e2)),
            tuple(a + b + c for a, b, c in zip(v, e1, e2)),
        ]

    def bounding_box(self) -> BoundingBox:
        return BoundingBox.from_points(*self.corners()).padded(FLAT_BOX_PADDING)

    def device_params(self) -> dict[str, Any]:
        return {"origin": self.vertex, "edge_v": self.edge_v, "edge_w": self.edge_w}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "quad",
            "vertex": list(self.vertex),
            "edges": [list(self.edge_v), list(self.edge_w)],
            "material": self.material,
        }


@ti.func
def hit_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    vertex: vec3,
    edge_v: vec3,
    edge_w: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Test for ray-quad intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        vertex: The corner the edges start from.
        edge_v: First edge vector.
        edge_w: Second edge vector.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A tuple (did_hit, t, outward_normal).
    """
    valid, t, lam, mu, normal = planar_coordinates(
        ray_origin, ray_direction, vertex, edge_v, edge_w
    )
    did_hit = 0
    outward_normal = vec3(0.0, 0.0, 0.0)
    if valid == 1 and t >= t_min and t <= t_max:
        if lam > 0.0 and lam < 1.0 and mu > 0.0 and mu < 1.0:
            did_hit = 1
            outward_normal = tm.normalize(normal)
    return did_hit, t, outward_normal
