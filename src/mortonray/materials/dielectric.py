"""Dielectric (glass/water) material.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

When refraction is possible, a uniform random value is drawn against the
Schlick reflectance to choose between reflecting and refracting. No random
number is drawn under total internal reflection. Dielectrics never absorb;
every continuing ray is tinted by the attenuation color.

Example:
    >>> from mortonray.materials.dielectric import Dielectric
    >>> Dielectric(1.5).attenuation
    (1.0, 1.0, 1.0)
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from mortonray.core.ray import reflect, refract, schlick_reflectance
from mortonray.core.rng import next_uniform

from .material import Color, MaterialType, ScatterKind, validate_albedo

vec3 = tm.vec3


@dataclass(frozen=True)
class Dielectric:
    """Transparent material.

    Attributes:
        refraction_index: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
        attenuation: Tint applied to every continuing ray (RGB in [0, 1]).

    Raises:
        ValueError: If refraction_index is not positive.
    """

    refraction_index: float
    attenuation: Color = (1.0, 1.0, 1.0)

    kind: ClassVar[MaterialType] = MaterialType.DIELECTRIC

    def __post_init__(self) -> None:
        if self.refraction_index <= 0.0:
            raise ValueError(f"Refraction index = {self.refraction_index} must be positive.")
        object.__setattr__(
            self, "attenuation", validate_albedo(self.attenuation, "Attenuation")
        )

    def device_params(self) -> tuple[Color, float]:
        return self.attenuation, float(self.refraction_index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "dielectric",
            "attenuation": list(self.attenuation),
            "refraction_index": self.refraction_index,
        }


@ti.func
def cannot_refract(ratio: ti.f32, cos_theta: ti.f32) -> ti.i32:
    """Return 1 if Snell's law admits no refracted ray."""
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    return ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    attenuation: vec3,
    refraction_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        attenuation: Tint of the continuing ray.
        refraction_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, facing against the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves.
        state: The caller's random stream state.

    Returns:
        A tuple (kind, direction, attenuation, new_state). kind is always
        SCATTERED.
    """
    s = state
    ratio = refraction_index
    if front_face == 1:
        ratio = 1.0 / refraction_index

    unit_direction = tm.normalize(incident_direction)
    cos_theta = ti.min(tm.dot(-unit_direction, normal), 1.0)

    do_reflect = 1
    if not cannot_refract(ratio, cos_theta):
        chance, s = next_uniform(s)
        do_reflect = schlick_reflectance(cos_theta, refraction_index) > chance

    direction = vec3(0.0, 0.0, 0.0)
    if do_reflect:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)
    return int(ScatterKind.SCATTERED), direction, attenuation, s
