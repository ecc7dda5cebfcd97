"""Spherical fog volume (participating medium).

A ray crossing the volume scatters with a probability that grows with the
squared length of its chord through the sphere and with the density. When it
scatters, the event happens at a uniformly chosen point of the chord and the
reported normal is a uniformly random direction, which makes the volume scatter
isotropically once a material bounces the ray off that normal.

This is a stochastic single-scattering approximation, not an optical-depth
integral: every call draws fresh random numbers from the caller's stream.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from mortonray.core.ray import random_unit_vector
from mortonray.core.rng import next_uniform

from .aabb import BoundingBox, Point
from .primitive import PrimitiveKind
from .sphere import sphere_box

vec3 = tm.vec3

# Chords whose discriminant is below this are treated as misses
GRAZING_EPSILON = 1e-8


@dataclass(frozen=True)
class Volume:
    """A spherical fog volume.

    Attributes:
        center: Center of the enclosing sphere.
        radius: Radius of the enclosing sphere (positive).
        density: Scattering density (non-negative).
        material: Name of the material used when the ray scatters.

    Raises:
        ValueError: If radius is not positive or density is negative.
    """

    center: Point
    radius: float
    density: float
    material: str = ""

    kind: ClassVar[PrimitiveKind] = PrimitiveKind.VOLUME

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"Volume radius must be positive, got {self.radius}")
        if self.density < 0:
            raise ValueError(f"Volume density must be non-negative, got {self.density}")

    def bounding_box(self) -> BoundingBox:
        return sphere_box(self.center, self.radius)

    def device_params(self) -> dict[str, Any]:
        return {"origin": self.center, "radius": self.radius, "density": self.density}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "volumetric",
            "center": list(self.center),
            "radius": self.radius,
            "density": self.density,
            "material": self.material,
        }


@ti.func
def hit_volume(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    density: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
    state: ti.u32,
):
    """Stochastically test a ray against a fog volume.

    The near chord end is clipped up to t_min; the ray misses if the far end
    lies before t_min or the near end lies past t_max. A scattering event is
    accepted when ``u * radius^2 <= density^2 * chord^2 / 4``.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction.
        center: Center of the volume.
        radius: Radius of the volume.
        density: Scattering density.
        t_min: Minimum t value.
        t_max: Maximum t value.
        state: The caller's random stream state.

    Returns:
        A tuple (did_hit, t, outward_normal, new_state).
    """
    s = state
    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = half_b * half_b - a * c

    did_hit = 0
    hit_t = 0.0
    outward_normal = vec3(0.0, 0.0, 0.0)

    if discriminant >= GRAZING_EPSILON:
        sqrt_d = ti.sqrt(discriminant)
        near = (-half_b - sqrt_d) / a
        far = (-half_b + sqrt_d) / a
        if near <= t_max and far >= t_min:
            near = ti.max(near, t_min)
            chord = (far - near) * ray_direction
            hit_chance = 0.25 * tm.dot(chord, chord)
            u, s = next_uniform(s)
            if u * radius * radius <= density * density * hit_chance:
                fraction, s = next_uniform(s)
                hit_t = (1.0 - fraction) * near + fraction * far
                outward_normal, s = random_unit_vector(s)
                did_hit = 1

    return did_hit, hit_t, outward_normal, s
