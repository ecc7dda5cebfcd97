"""Axis-aligned bounding boxes.

Boxes are built on the host in double precision (:class:`BoundingBox`),
uploaded as f64 corners and tested on the device with the slab method
(:func:`hit_box`), also in f64.

The slab test uses a strict inequality, so a box with zero thickness along an
axis is never hit by rays crossing that axis. Flat primitives therefore pad
their boxes (see ``FLAT_BOX_PADDING``). The padding is far below f32
resolution at scene scale, which is why boxes never pass through f32.

Example:
    >>> box = BoundingBox((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    >>> box.union(BoundingBox((2.0, 0.0, 0.0), (3.0, 1.0, 1.0))).maximum
    (3.0, 1.0, 1.0)
"""

from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec3 = tm.vec3
dvec3 = ti.types.vector(3, ti.f64)

Point = tuple[float, float, float]

# Padding applied to the boxes of triangles and quads
FLAT_BOX_PADDING = 1e-7


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned box given by its minimum and maximum corners.

    Attributes:
        minimum: The corner with the smallest coordinates.
        maximum: The corner with the largest coordinates.

    Raises:
        ValueError: If minimum exceeds maximum on any axis.
    """

    minimum: Point
    maximum: Point

    def __post_init__(self) -> None:
        if any(lo > hi for lo, hi in zip(self.minimum, self.maximum)):
            raise ValueError(f"Invalid bounding box: {self.minimum} > {self.maximum}")

    @classmethod
    def from_points(cls, *points: Iterable[float]) -> "BoundingBox":
        """Smallest box containing all the given points."""
        array = np.array([tuple(p) for p in points], dtype=np.float64)
        return cls(_as_point(array.min(axis=0)), _as_point(array.max(axis=0)))

    @staticmethod
    def surrounding(boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        """Union of a non-empty collection of boxes."""
        iterator = iter(boxes)
        try:
            result = next(iterator)
        except StopIteration:
            raise ValueError("Cannot surround an empty collection of boxes") from None
        for box in iterator:
            result = result.union(box)
        return result

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            tuple(min(a, b) for a, b in zip(self.minimum, other.minimum)),
            tuple(max(a, b) for a, b in zip(self.maximum, other.maximum)),
        )

    def center(self) -> Point:
        return tuple(0.5 * (lo + hi) for lo, hi in zip(self.minimum, self.maximum))

    def padded(self, epsilon: float) -> "BoundingBox":
        """Grow the box by epsilon along every axis, on both sides."""
        return BoundingBox(
            tuple(lo - epsilon for lo in self.minimum),
            tuple(hi + epsilon for hi in self.maximum),
        )

    def contains(self, other: "BoundingBox") -> bool:
        return all(a <= b for a, b in zip(self.minimum, other.minimum)) and all(
            a >= b for a, b in zip(self.maximum, other.maximum)
        )


def _as_point(values: Iterable[float]) -> Point:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


def to_device_corners(
    boxes: list[BoundingBox],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Stack box corners into f64 arrays for upload.

    Args:
        boxes: Host boxes.

    Returns:
        Tuple (minimums, maximums), each of shape (len(boxes), 3).
    """
    minimum = np.array([b.minimum for b in boxes], dtype=np.float64).reshape(-1, 3)
    maximum = np.array([b.maximum for b in boxes], dtype=np.float64).reshape(-1, 3)
    return minimum, maximum


# =============================================================================
# Slab Test
# =============================================================================


@ti.func
def hit_box(
    ray_origin: vec3,
    inv_direction: dvec3,
    box_min: dvec3,
    box_max: dvec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test a ray against an axis-aligned box with the slab method.

    For each axis the entry and exit times are computed from the reciprocal
    direction and swapped when the ray travels toward negative coordinates.
    The per-axis intervals are intersected with [t_min, t_max]; the box is hit
    only if the result is a non-empty open interval.

    The test runs in f64. In f32 the difference between a corner and a
    distant origin rounds both faces of a padded flat box to the same value.

    Args:
        ray_origin: The ray origin.
        inv_direction: Componentwise reciprocal of the ray direction, in f64.
        box_min: Minimum corner of the box.
        box_max: Maximum corner of the box.
        t_min: Lower bound of the query interval.
        t_max: Upper bound of the query interval.

    Returns:
        1 if the box is hit, 0 otherwise.
    """
    origin = ti.cast(ray_origin, ti.f64)
    lo = ti.cast(t_min, ti.f64)
    hi = ti.cast(t_max, ti.f64)
    for axis in ti.static(range(3)):
        t0 = (box_min[axis] - origin[axis]) * inv_direction[axis]
        t1 = (box_max[axis] - origin[axis]) * inv_direction[axis]
        entry = t0
        exit_ = t1
        if inv_direction[axis] < 0.0:
            entry = t1
            exit_ = t0
        lo = ti.max(entry, lo)
        hi = ti.min(exit_, hi)
    return hi > lo
