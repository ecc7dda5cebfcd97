"""Camera state on the device and ray generation inside kernels."""

import numpy as np
import taichi as ti
import taichi.math as tm

from mortonray.core.ray import Ray, make_ray, random_in_unit_disk

from .thin_lens import CameraFrame, OrthographicCamera, ThinLensCamera

vec3 = tm.vec3


@ti.data_oriented
class DeviceCamera:
    """Either camera model, uploaded for use in kernels.

    Attributes:
        frame: The host-side viewport geometry the fields were filled from.
    """

    def __init__(self, camera: ThinLensCamera | OrthographicCamera) -> None:
        self.frame: CameraFrame = camera.frame()

        self.origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.u = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.v = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.view_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.lens_radius = ti.field(dtype=ti.f32, shape=())
        self.orthographic = ti.field(dtype=ti.i32, shape=())

        frame = self.frame
        self.origin[None] = _to_list(frame.origin)
        self.lower_left_corner[None] = _to_list(frame.lower_left_corner)
        self.horizontal[None] = _to_list(frame.horizontal)
        self.vertical[None] = _to_list(frame.vertical)
        self.u[None] = _to_list(frame.u)
        self.v[None] = _to_list(frame.v)
        self.view_direction[None] = _to_list(-frame.w)
        self.lens_radius[None] = frame.lens_radius
        self.orthographic[None] = int(frame.orthographic)

    @ti.func
    def get_ray(self, s: ti.f32, t: ti.f32, lens_r: ti.f32, lens_theta: ti.f32) -> Ray:
        """Generate the ray through normalized image coordinates (s, t).

        Args:
            s: Horizontal coordinate (0 = left edge, 1 = right edge).
            t: Vertical coordinate (0 = bottom edge, 1 = top edge).
            lens_r: Uniform sample in [0, 1] for the lens radius.
            lens_theta: Lens angle in radians.

        Returns:
            The camera ray. Its direction is not normalized.
        """
        on_viewport = (
            self.lower_left_corner[None] + s * self.horizontal[None] + t * self.vertical[None]
        )
        origin = on_viewport
        direction = self.view_direction[None]
        if self.orthographic[None] == 0:
            disk = random_in_unit_disk(lens_r, lens_theta) * self.lens_radius[None]
            offset = self.u[None] * disk.x + self.v[None] * disk.y
            origin = self.origin[None] + offset
            direction = on_viewport - self.origin[None] - offset
        return make_ray(origin, direction)


def _to_list(values: np.ndarray) -> list[float]:
    return [float(x) for x in values]
