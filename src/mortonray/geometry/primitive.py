"""Primitive records and hit records shared by every shape.

The set of shapes is closed, so a primitive is a single tagged struct whose
``kind`` selects the intersection routine (see :mod:`mortonray.geometry.dispatch`).
Fields that a kind does not use are left at zero.

Layout of a Primitive by kind:
    SPHERE:   origin = center, radius
    TRIANGLE: origin = vertex, edge_v, edge_w
    QUAD:     origin = vertex, edge_v, edge_w
    VOLUME:   origin = center, radius, density
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


class PrimitiveKind(IntEnum):
    """Tag identifying the shape stored in a Primitive."""

    SPHERE = 0
    TRIANGLE = 1
    QUAD = 2
    VOLUME = 3


@ti.dataclass
class Primitive:
    """A shape of any kind, as stored on the device.

    Attributes:
        kind: The PrimitiveKind tag.
        material_id: Index into the material table.
        origin: Center (sphere, volume) or corner vertex (triangle, quad).
        edge_v: First edge from the vertex (triangle, quad).
        edge_w: Second edge from the vertex (triangle, quad).
        radius: Radius (sphere, volume).
        density: Scattering density (volume).
    """

    kind: ti.i32
    material_id: ti.i32
    origin: vec3
    edge_v: vec3
    edge_w: vec3
    radius: ti.f32
    density: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if an intersection was found, 0 otherwise.
        t: Ray parameter at the intersection point.
        point: The intersection point in world space.
        normal: Unit-length normal, always facing against the incoming ray.
        front_face: 1 if the ray hit the side the outward normal points to.
        material_id: Material of the surface that was hit.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def empty_hit_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def make_hit_record(
    ray_origin: vec3,
    ray_direction: vec3,
    t: ti.f32,
    outward_normal: vec3,
    material_id: ti.i32,
) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    Args:
        ray_origin: The ray origin.
        ray_direction: The ray direction.
        t: Ray parameter of the intersection.
        outward_normal: The geometric normal pointing out of the surface.
        material_id: Material of the surface.

    Returns:
        A HitRecord with hit=1.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return HitRecord(
        hit=1,
        t=t,
        point=ray_origin + t * ray_direction,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )
