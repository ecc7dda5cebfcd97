"""Path tracing integrator.

A camera ray is followed through the scene until it leaves the scene, hits a
light, is absorbed or reaches the bounce limit. Along the way the attenuation
of every scatter event is multiplied into the path throughput.

Termination rules:
    - Miss: the background seen through the accumulated attenuation.
    - Emissive hit: the accumulated attenuation times the emitted radiance.
    - Absorbed: the loop stops and, as on a miss, the background is returned
      through the attenuation gathered so far.
    - Bounce limit reached: same as absorbed. This soft cutoff is biased
      toward the background color rather than toward black.

The loop is iterative, so device stack usage does not grow with depth.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from mortonray.core.integrator import PathTracer
    >>> from mortonray.core.ray import RayInfo
    >>> tracer = PathTracer(hierarchy, materials, max_depth=10, background=(1, 1, 1))
    >>> color = tracer.trace_single(RayInfo((0, 0, 0), (0, 0, -1)), seed=1)
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from mortonray.materials.material import ScatterKind

from .rng import seed_stream

vec3 = tm.vec3

# Lower bound of every hit query; avoids re-hitting the surface just left
T_MIN = 0.001

T_MAX = tm.inf


@ti.func
def trace(
    ray_origin: vec3,
    ray_direction: vec3,
    hierarchy: ti.template(),
    materials: ti.template(),
    max_depth: ti.i32,
    background: vec3,
    state: ti.u32,
):
    """Estimate the color seen along a ray.

    Args:
        ray_origin: The camera ray origin.
        ray_direction: The camera ray direction.
        hierarchy: The scene's Hierarchy.
        materials: The scene's MaterialTable.
        max_depth: Maximum number of scatter events (at least 1).
        background: Color returned by rays leaving the scene.
        state: The task's random stream state.

    Returns:
        A tuple (color, new_state).
    """
    s = state
    origin = ray_origin
    direction = ray_direction
    attenuation = vec3(1.0, 1.0, 1.0)
    color = vec3(0.0, 0.0, 0.0)
    depth = 0
    active = 1

    while active == 1:
        rec, s = hierarchy.closest_hit(origin, direction, T_MIN, T_MAX, s)
        if rec.hit == 0:
            color = background * attenuation
            active = 0
        else:
            kind, new_direction, scatter_color, s = materials.scatter(
                rec.material_id, direction, rec, s
            )
            if kind == int(ScatterKind.EMITTED):
                color = attenuation * scatter_color
                active = 0
            elif kind == int(ScatterKind.ABSORBED):
                color = background * attenuation
                active = 0
            else:
                attenuation *= scatter_color
                origin = rec.point
                direction = new_direction
                depth += 1
                if depth >= max_depth:
                    color = background * attenuation
                    active = 0

    return color, s


@ti.data_oriented
class PathTracer:
    """The integrator bound to one scene, for single-ray diagnostics.

    Attributes:
        hierarchy: The scene's Hierarchy.
        materials: The scene's MaterialTable.
        max_depth: Maximum number of scatter events.
        background: Background color.
    """

    def __init__(
        self,
        hierarchy,
        materials,
        max_depth: int,
        background: Sequence[float],
    ) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.hierarchy = hierarchy
        self.materials = materials
        self.max_depth = max_depth
        self.background = tuple(float(c) for c in background)
        self._result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def _trace_one(
        self,
        origin: vec3,
        direction: vec3,
        max_depth: ti.i32,
        background: vec3,
        seed: ti.u32,
        stream: ti.u32,
    ):
        state = seed_stream(seed, stream, ti.u32(0))
        color, state = trace(
            origin, direction, self.hierarchy, self.materials, max_depth, background, state
        )
        self._result[None] = color

    def trace_single(self, ray, seed: int = 0, stream: int = 0) -> tuple[float, float, float]:
        """Trace one ray from Python.

        Args:
            ray: Any object with ``origin`` and ``direction`` (e.g. RayInfo).
            seed: Global seed of the random stream.
            stream: Stream index, so repeated calls can draw independent paths.

        Returns:
            The (R, G, B) estimate.
        """
        self._trace_one(
            vec3(*(float(c) for c in ray.origin)),
            vec3(*(float(c) for c in ray.direction)),
            self.max_depth,
            vec3(*self.background),
            seed & 0xFFFFFFFF,
            stream & 0xFFFFFFFF,
        )
        color = self._result[None]
        return (float(color[0]), float(color[1]), float(color[2]))
