"""Plastic material: a glossy coat over a diffuse base.

With probability equal to the Schlick reflectance of a fixed index of 1.5
(``r0 = 0.04``) the ray reflects off the coat, perturbed by ``roughness``;
otherwise it bounces diffusely like a Lambertian surface. Both branches are
tinted by the albedo, and plastic never absorbs.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from mortonray.core.ray import random_in_unit_sphere, reflect
from mortonray.core.rng import next_uniform

from .lambertian import diffuse_direction
from .material import Color, MaterialType, ScatterKind, validate_albedo

vec3 = tm.vec3

# Schlick r0 of the coat ((1 - 1.5) / (1 + 1.5))^2
COAT_R0 = 0.04


@dataclass(frozen=True)
class Plastic:
    """Glossy diffuse material.

    Attributes:
        albedo: Base color (RGB, each component in [0, 1]).
        roughness: Perturbation radius of the specular reflection.

    Raises:
        ValueError: If any albedo component is outside [0, 1] or roughness is
            negative.
    """

    albedo: Color
    roughness: float = 0.0

    kind: ClassVar[MaterialType] = MaterialType.PLASTIC

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        if self.roughness < 0.0:
            raise ValueError(f"Roughness = {self.roughness} is negative.")

    def device_params(self) -> tuple[Color, float]:
        return self.albedo, float(self.roughness)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "plastic", "albedo": list(self.albedo), "roughness": self.roughness}


@ti.func
def coat_reflectance(cos_theta: ti.f32) -> ti.f32:
    return COAT_R0 + (1.0 - COAT_R0) * ((1.0 - cos_theta) ** 5)


@ti.func
def scatter_plastic(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Scatter a ray off a plastic surface.

    Args:
        albedo: Base color.
        roughness: Perturbation radius of the specular branch.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, facing against the incoming ray.
        state: The caller's random stream state.

    Returns:
        A tuple (kind, direction, attenuation, new_state). kind is always
        SCATTERED.
    """
    unit_direction = tm.normalize(incident_direction)
    cos_theta = ti.min(tm.dot(-unit_direction, normal), 1.0)
    chance, s = next_uniform(state)

    direction = vec3(0.0, 0.0, 0.0)
    if coat_reflectance(cos_theta) > chance:
        offset, s = random_in_unit_sphere(s)
        direction = reflect(unit_direction, normal) + roughness * offset
    else:
        direction, s = diffuse_direction(normal, s)
    return int(ScatterKind.SCATTERED), direction, albedo, s
