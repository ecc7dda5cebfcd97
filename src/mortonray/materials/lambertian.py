"""Lambertian (ideal diffuse) material.

The scattered direction is the surface normal plus a uniform random point in
the unit sphere. The resulting directions favour the normal (a cosine-like
lobe), so the attenuation is simply the albedo. A sum that cancels to nearly
zero falls back to the normal itself.

Example:
    >>> from mortonray.materials.lambertian import Lambertian
    >>> Lambertian((0.5, 0.5, 0.5)).to_dict()
    {'type': 'lambertian', 'albedo': [0.5, 0.5, 0.5]}
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from mortonray.core.ray import near_zero, random_in_unit_sphere

from .material import Color, MaterialType, ScatterKind, validate_albedo

vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian:
    """Diffuse material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).

    Raises:
        ValueError: If any albedo component is outside [0, 1].
    """

    albedo: Color

    kind: ClassVar[MaterialType] = MaterialType.LAMBERTIAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))

    def device_params(self) -> tuple[Color, float]:
        return self.albedo, 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo)}


@ti.func
def diffuse_direction(normal: vec3, state: ti.u32):
    """Sample a diffuse bounce direction around a normal.

    Args:
        normal: The surface normal at the hit point (unit length).
        state: The caller's random stream state.

    Returns:
        A tuple (direction, new_state). The direction is not normalized.
    """
    offset, s = random_in_unit_sphere(state)
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction, s


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Scatter a ray off a diffuse surface. Never absorbs or emits.

    Returns:
        A tuple (kind, direction, attenuation, new_state).
    """
    direction, s = diffuse_direction(normal, state)
    return int(ScatterKind.SCATTERED), direction, albedo, s
