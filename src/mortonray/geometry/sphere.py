"""Sphere primitive with ray-sphere intersection.

Example:
    >>> from mortonray.geometry.sphere import Sphere
    >>> sphere = Sphere(center=(0.0, 0.0, -1.0), radius=0.5, material="glass")
    >>> sphere.bounding_box().minimum
    (-0.5, -0.5, -1.5)
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from .aabb import BoundingBox, Point
from .primitive import PrimitiveKind

vec3 = tm.vec3


@dataclass(frozen=True)
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: Name of the material the sphere is made of.

    Raises:
        ValueError: If radius is not positive.
    """

    center: Point
    radius: float
    material: str = ""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.SPHERE

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def bounding_box(self) -> BoundingBox:
        return sphere_box(self.center, self.radius)

    def device_params(self) -> dict[str, Any]:
        return {"origin": self.center, "radius": self.radius}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "sphere",
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material,
        }


def sphere_box(center: Point, radius: float) -> BoundingBox:
    """Box enclosing a sphere (also used for fog volumes)."""
    r = abs(radius)
    return BoundingBox(
        tuple(c - r for c in center),
        tuple(c + r for c in center),
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Test for ray-sphere intersection.

    Solves the quadratic with the half-b formulation. The nearer root is
    tested first against [t_min, t_max] (bounds inclusive); if it falls
    outside, the farther root is tested.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        center: Center of the sphere.
        radius: Radius of the sphere.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A tuple (did_hit, t, outward_normal).
    """
    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = half_b * half_b - a * c

    did_hit = 0
    hit_t = 0.0
    outward_normal = vec3(0.0, 0.0, 0.0)

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        root = (-half_b - sqrt_d) / a
        if root < t_min or root > t_max:
            root = (-half_b + sqrt_d) / a
        if root >= t_min and root <= t_max:
            did_hit = 1
            hit_t = root
            outward_normal = (ray_origin + root * ray_direction - center) / radius

    return did_hit, hit_t, outward_normal
