"""Thin-lens and orthographic camera models.

Both cameras build an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward origin (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

and span a viewport with ``horizontal`` and ``vertical`` edge vectors from its
lower-left corner. Normalized image coordinates (s, t) in [0, 1]² address the
viewport, s from left to right and t from bottom to top.

The thin-lens camera places the viewport on the focus plane and starts each
ray on a random point of the lens disk, which blurs everything off the focus
plane (depth of field). The orthographic camera starts each ray on the
viewport itself and sends all rays along the view axis.

Example:
    >>> from mortonray.camera.thin_lens import ThinLensCamera
    >>> camera = ThinLensCamera(
    ...     origin=(0.0, 0.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.0,
    ...     vertical_fov=60.0,
    ... )
    >>> frame = camera.frame()
    >>> ray = frame.ray(0.5, 0.5, 0.0, 0.0)  # Ray through the image center
"""

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from mortonray.core.ray import RayInfo

Vector = tuple[float, float, float]


@dataclass(frozen=True)
class CameraFrame:
    """Precomputed viewport geometry shared by both camera models.

    Attributes:
        origin: Camera position.
        lower_left_corner: Lower-left corner of the viewport.
        horizontal: Full-width edge of the viewport.
        vertical: Full-height edge of the viewport.
        u: Right basis vector.
        v: Up basis vector.
        w: Backward basis vector.
        lens_radius: Radius of the lens disk (thin lens only).
        orthographic: True for parallel projection.
    """

    origin: npt.NDArray[np.float64]
    lower_left_corner: npt.NDArray[np.float64]
    horizontal: npt.NDArray[np.float64]
    vertical: npt.NDArray[np.float64]
    u: npt.NDArray[np.float64]
    v: npt.NDArray[np.float64]
    w: npt.NDArray[np.float64]
    lens_radius: float = 0.0
    orthographic: bool = False

    def ray(self, s: float, t: float, lens_r: float, lens_theta: float) -> RayInfo:
        """Compute a camera ray on the host, exactly as the device does.

        Args:
            s: Horizontal image coordinate (0 = left edge).
            t: Vertical image coordinate (0 = bottom edge).
            lens_r: Uniform sample in [0, 1] for the lens radius.
            lens_theta: Lens angle in radians.

        Returns:
            The ray as plain tuples.
        """
        on_viewport = self.lower_left_corner + s * self.horizontal + t * self.vertical
        if self.orthographic:
            origin = on_viewport
            direction = -self.w
        else:
            radius = math.sqrt(lens_r) * self.lens_radius
            offset = self.u * radius * math.cos(lens_theta) + self.v * radius * math.sin(lens_theta)
            origin = self.origin + offset
            direction = on_viewport - self.origin - offset
        return RayInfo(tuple(origin.tolist()), tuple(direction.tolist()))


def _basis(
    origin: npt.NDArray[np.float64], look_at: npt.NDArray[np.float64], up: npt.NDArray[np.float64]
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    backward = origin - look_at
    length = np.linalg.norm(backward)
    if length == 0.0:
        raise ValueError("Camera origin and look_at must differ")
    w = backward / length

    right = np.cross(up, w)
    length = np.linalg.norm(right)
    if length == 0.0:
        raise ValueError("Camera up vector must not be parallel to the view direction")
    u = right / length
    v = np.cross(w, u)
    return u, v, w


def _viewport_size(vertical_fov: float, aspect_ratio: float) -> tuple[float, float]:
    if not 0.0 < vertical_fov < 180.0:
        raise ValueError(f"Vertical field of view must be in (0, 180), got {vertical_fov}")
    if aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect_ratio}")
    h = math.tan(math.radians(vertical_fov) / 2.0)
    viewport_height = 2.0 * h
    return viewport_height * aspect_ratio, viewport_height


@dataclass
class ThinLensCamera:
    """Configuration for a perspective camera with depth of field.

    Attributes:
        origin: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at.
        up: Up direction for camera orientation (typically (0, 1, 0)).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        vertical_fov: Vertical field of view in degrees.
        focus_distance: Distance to the plane in focus. 0 means the distance
            from origin to look_at.
    """

    origin: Vector
    look_at: Vector
    up: Vector
    aspect_ratio: float
    aperture: float
    vertical_fov: float
    focus_distance: float = 0.0

    def resolved_focus_distance(self) -> float:
        if self.focus_distance > 0.0:
            return float(self.focus_distance)
        return float(math.dist(self.origin, self.look_at))

    def frame(self) -> CameraFrame:
        """Compute the viewport geometry on the focus plane."""
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")
        origin = np.asarray(self.origin, dtype=np.float64)
        u, v, w = _basis(
            origin,
            np.asarray(self.look_at, dtype=np.float64),
            np.asarray(self.up, dtype=np.float64),
        )
        viewport_width, viewport_height = _viewport_size(self.vertical_fov, self.aspect_ratio)
        focus = self.resolved_focus_distance()

        horizontal = u * viewport_width * focus
        vertical = v * viewport_height * focus
        lower_left = origin - horizontal / 2.0 - vertical / 2.0 - w * focus
        return CameraFrame(
            origin=origin,
            lower_left_corner=lower_left,
            horizontal=horizontal,
            vertical=vertical,
            u=u,
            v=v,
            w=w,
            lens_radius=self.aperture / 2.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "thin_lens",
            "origin": list(self.origin),
            "look_at": list(self.look_at),
            "up_vector": list(self.up),
            "aspect_ratio": self.aspect_ratio,
            "aperture": self.aperture,
            "vertical_fov": self.vertical_fov,
            "focus_distance": self.focus_distance,
        }


@dataclass
class OrthographicCamera:
    """Configuration for a parallel-projection camera.

    The viewport has the size a perspective camera with the same field of
    view would have at unit distance, and sits one unit in front of origin.

    Attributes:
        origin: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at.
        up: Up direction for camera orientation.
        aspect_ratio: Width divided by height of the output image.
        vertical_fov: Vertical field of view in degrees.
    """

    origin: Vector
    look_at: Vector
    up: Vector
    aspect_ratio: float
    vertical_fov: float

    def frame(self) -> CameraFrame:
        origin = np.asarray(self.origin, dtype=np.float64)
        u, v, w = _basis(
            origin,
            np.asarray(self.look_at, dtype=np.float64),
            np.asarray(self.up, dtype=np.float64),
        )
        viewport_width, viewport_height = _viewport_size(self.vertical_fov, self.aspect_ratio)
        horizontal = u * viewport_width
        vertical = v * viewport_height
        lower_left = origin - horizontal / 2.0 - vertical / 2.0 - w
        return CameraFrame(
            origin=origin,
            lower_left_corner=lower_left,
            horizontal=horizontal,
            vertical=vertical,
            u=u,
            v=v,
            w=w,
            orthographic=True,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "orthographic",
            "origin": list(self.origin),
            "look_at": list(self.look_at),
            "up_vector": list(self.up),
            "aspect_ratio": self.aspect_ratio,
            "vertical_fov": self.vertical_fov,
        }
