"""Metal (specular reflective) material.

The incoming direction is mirrored about the normal and perturbed by
``fuzziness`` times a random point in the unit sphere. A mirror direction that
does not leave the surface, or a perturbed direction that cancels to nearly
zero, absorbs the ray.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from mortonray.core.ray import near_zero, random_in_unit_sphere, reflect

from .material import Color, MaterialType, ScatterKind, validate_albedo

vec3 = tm.vec3


@dataclass(frozen=True)
class Metal:
    """Reflective material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzziness: Radius of the random perturbation. 0 is a perfect mirror.

    Raises:
        ValueError: If any albedo component is outside [0, 1] or fuzziness is
            negative.
    """

    albedo: Color
    fuzziness: float = 0.0

    kind: ClassVar[MaterialType] = MaterialType.METAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        if self.fuzziness < 0.0:
            raise ValueError(f"Fuzziness = {self.fuzziness} is negative.")

    def device_params(self) -> tuple[Color, float]:
        return self.albedo, float(self.fuzziness)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo), "fuzziness": self.fuzziness}


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzziness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: The reflective color.
        fuzziness: Perturbation radius.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal, facing against the incoming ray.
        state: The caller's random stream state.

    Returns:
        A tuple (kind, direction, attenuation, new_state). kind is ABSORBED
        when the ray does not leave the surface.
    """
    reflected = reflect(incident_direction, normal)
    offset, s = random_in_unit_sphere(state)
    direction = reflected + fuzziness * offset

    kind = int(ScatterKind.ABSORBED)
    if tm.dot(reflected, normal) > 0.0 and not near_zero(direction):
        kind = int(ScatterKind.SCATTERED)
    return kind, direction, albedo, s
