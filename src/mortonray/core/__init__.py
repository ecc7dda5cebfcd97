"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    rng: Per-task random streams and the pixel jitter hash
    errors: Exception types raised while assembling or building a scene
    integrator: The iterative path-tracing loop
    sampler: Parallel (pixel, sample) rendering into a sum buffer
    progressive: Batched rendering with progress reporting

The integrator, sampler and progressive modules are NOT imported here because
they depend on the bvh and materials packages. Import them directly:
    from mortonray.core.sampler import ParallelSampler
"""

from .errors import (
    EmptySceneError,
    RenderError,
    SceneFormatError,
    UndeclaredMaterialError,
)
from .ray import (
    Ray,
    RayInfo,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .rng import RngStream, jitter_hash, next_uniform, pcg_hash, seed_stream

__all__ = [
    "Ray",
    "RayInfo",
    "ray_at",
    "make_ray",
    "vec3",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "RngStream",
    "pcg_hash",
    "seed_stream",
    "next_uniform",
    "jitter_hash",
    "RenderError",
    "EmptySceneError",
    "UndeclaredMaterialError",
    "SceneFormatError",
]
