"""Emissive (light source) material.

Hitting an emissive surface ends the path: the surface returns
``color * intensity`` regardless of the incoming direction or the geometry.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from .material import Color, MaterialType, ScatterKind, validate_non_negative_color

vec3 = tm.vec3


@dataclass(frozen=True)
class Emissive:
    """Light-emitting material.

    Attributes:
        color: Emission color (RGB, non-negative, may exceed 1).
        intensity: Emission strength multiplier.

    Raises:
        ValueError: If a color component or the intensity is negative.
    """

    color: Color
    intensity: float = 1.0

    kind: ClassVar[MaterialType] = MaterialType.EMISSIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", validate_non_negative_color(self.color))
        if self.intensity < 0.0:
            raise ValueError(f"Intensity = {self.intensity} is negative.")

    def device_params(self) -> tuple[Color, float]:
        return self.color, float(self.intensity)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "emissive", "color": list(self.color), "intensity": self.intensity}


@ti.func
def scatter_emissive(color: vec3, intensity: ti.f32, state: ti.u32):
    """Return the emitted radiance. Consumes no random numbers.

    Returns:
        A tuple (kind, direction, radiance, state).
    """
    return int(ScatterKind.EMITTED), vec3(0.0, 0.0, 0.0), color * intensity, state
