"""Material kinds, scatter outcomes and the shared host-side validation.

Every material's device routine returns the same tuple:

    (kind, direction, color, new_state)

where ``kind`` is a :class:`ScatterKind`. For SCATTERED, ``direction`` is the
new ray direction leaving the hit point and ``color`` its attenuation. For
EMITTED, ``color`` is the terminal radiance and ``direction`` is unused. For
ABSORBED both are unused.
"""

from collections.abc import Sequence
from enum import IntEnum

Color = tuple[float, float, float]


class MaterialType(IntEnum):
    """Tag identifying a material in the device table."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    PLASTIC = 3
    EMISSIVE = 4


class ScatterKind(IntEnum):
    """Outcome of a scatter event."""

    SCATTERED = 0
    EMITTED = 1
    ABSORBED = 2


def validate_albedo(albedo: Sequence[float], name: str = "Albedo") -> Color:
    """Check a reflectance color and return it as a tuple.

    Raises:
        ValueError: If it does not have three components or any component is
            outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    r, g, b = (float(c) for c in albedo)
    return (r, g, b)


def validate_non_negative_color(color: Sequence[float], name: str = "Color") -> Color:
    """Check an emission color (components may exceed 1)."""
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative.")
    r, g, b = (float(c) for c in color)
    return (r, g, b)
