"""Triangle primitive and the planar solver shared with quads.

A triangle is given by a vertex and two edges leaving it. A point on its plane
is written ``vertex + lambda * edge_v + mu * edge_w``; the ray parameter and
(lambda, mu) are solved together with Cramer's rule.

Example:
    >>> from mortonray.geometry.triangle import Triangle
    >>> tri = Triangle(
    ...     vertex=(0.0, 0.0, 0.0),
    ...     edge_v=(1.0, 0.0, 0.0),
    ...     edge_w=(0.0, 1.0, 0.0),
    ... )
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from .aabb import FLAT_BOX_PADDING, BoundingBox, Point
from .primitive import PrimitiveKind

vec3 = tm.vec3

# Determinants smaller than this mean the ray runs parallel to the plane
PARALLEL_EPSILON = 1e-8


@dataclass(frozen=True)
class Triangle:
    """A triangle spanned by a vertex and two edge vectors.

    Attributes:
        vertex: The corner the edges start from.
        edge_v: First edge vector.
        edge_w: Second edge vector.
        material: Name of the material.
    """

    vertex: Point
    edge_v: Point
    edge_w: Point
    material: str = ""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.TRIANGLE

    def corners(self) -> list[Point]:
        v = self.vertex
        return [
            v,
            tuple(a + b for a, b in zip(v, self.edge_v)),
            tuple(a + b for a, b in zip(v, self.edge_w)),
        ]

    def bounding_box(self) -> BoundingBox:
        return BoundingBox.from_points(*self.corners()).padded(FLAT_BOX_PADDING)

    def device_params(self) -> dict[str, Any]:
        return {"origin": self.vertex, "edge_v": self.edge_v, "edge_w": self.edge_w}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "triangle",
            "vertex": list(self.vertex),
            "edges": [list(self.edge_v), list(self.edge_w)],
            "material": self.material,
        }


@ti.func
def planar_coordinates(
    ray_origin: vec3,
    ray_direction: vec3,
    vertex: vec3,
    edge_v: vec3,
    edge_w: vec3,
):
    """Solve ray-plane intersection in the frame of two edges.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction.
        vertex: The vertex the edges start from.
        edge_v: First edge vector.
        edge_w: Second edge vector.

    Returns:
        A tuple (valid, t, lam, mu, normal) where valid is 0 when the ray is
        parallel to the plane (|determinant| < 1e-8), and normal is the
        unnormalized plane normal edge_v x edge_w.
    """
    normal = tm.cross(edge_v, edge_w)
    determinant = tm.dot(normal, ray_direction)

    valid = 0
    t = 0.0
    lam = 0.0
    mu = 0.0
    if ti.abs(determinant) >= PARALLEL_EPSILON:
        valid = 1
        to_vertex = vertex - ray_origin
        t = tm.dot(normal, to_vertex) / determinant
        lam = tm.dot(tm.cross(ray_direction, edge_w), to_vertex) / determinant
        mu = tm.dot(tm.cross(ray_direction, edge_v), -to_vertex) / determinant
    return valid, t, lam, mu, normal


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    vertex: vec3,
    edge_v: vec3,
    edge_w: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Test for ray-triangle intersection.

    Edges are excluded: the hit must satisfy lam > 0, mu > 0 and lam + mu < 1
    strictly, with t in [t_min, t_max].

    Returns:
        A tuple (did_hit, t, outward_normal).
    """
    valid, t, lam, mu, normal = planar_coordinates(
        ray_origin, ray_direction, vertex, edge_v, edge_w
    )
    did_hit = 0
    outward_normal = vec3(0.0, 0.0, 0.0)
    if valid == 1 and t >= t_min and t <= t_max:
        if lam > 0.0 and mu > 0.0 and lam + mu < 1.0:
            did_hit = 1
            outward_normal = tm.normalize(normal)
    return did_hit, t, outward_normal
