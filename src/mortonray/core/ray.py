"""Ray data structure and vector utilities for path tracing.

This module provides the Ray dataclass used inside Taichi kernels and the
vector helpers the materials are built from. Random sampling helpers take the
caller's random stream state and return the advanced state alongside the
sample (see :mod:`mortonray.core.rng`).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

from typing import NamedTuple

import taichi as ti
import taichi.math as tm

from .rng import next_uniform

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Threshold below which every component of a direction counts as zero
NEAR_ZERO_EPSILON = 1e-8

# Bound on rejection sampling attempts
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not necessarily
            normalized: scattered directions keep their raw length.
    """

    origin: vec3
    direction: vec3


class RayInfo(NamedTuple):
    """A ray described on the Python side, for host queries.

    Attributes:
        origin: The starting point (x, y, z).
        direction: The direction (x, y, z).
    """

    origin: tuple[float, float, float]
    direction: tuple[float, float, float]


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector, with the incident vector's length.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface.

    The caller is responsible for ruling out total internal reflection; the
    parallel component uses the absolute value of its radicand so the result
    stays finite either way.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal, oriented against the incident direction.
        ratio: Ratio of refractive indices (incident side over transmitted side).

    Returns:
        The refracted direction vector.
    """
    cos_theta = ti.min(tm.dot(-incident, normal), 1.0)
    perpendicular = ratio * (incident + cos_theta * normal)
    parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(perpendicular, perpendicular))) * normal
    return perpendicular + parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, eta: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between the incident direction and normal.
        eta: Refractive index of the material.

    Returns:
        The approximate reflectance. At normal incidence this is exactly r0.
    """
    r0 = (1.0 - eta) / (1.0 + eta)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are below NEAR_ZERO_EPSILON in magnitude."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point inside the unit sphere.

    Uses rejection sampling: uniform points in [-1, 1]^3 are drawn until one
    falls strictly inside the unit sphere.

    Args:
        state: The caller's random stream state.

    Returns:
        A tuple (point, new_state) with |point| < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    attempts = 0
    # while, not range-for: stays serial even when inlined at kernel top level
    while found == 0 and attempts < MAX_REJECTION_ATTEMPTS:
        x, s = next_uniform(s)
        y, s = next_uniform(s)
        z, s = next_uniform(s)
        p = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 2.0 * z - 1.0)
        if tm.dot(p, p) < 1.0:
            found = 1
        attempts += 1
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector, uniformly distributed on the sphere.

    Args:
        state: The caller's random stream state.

    Returns:
        A tuple (direction, new_state).
    """
    p, s = random_in_unit_sphere(state)
    direction = vec3(0.0, 1.0, 0.0)
    if not near_zero(p):
        direction = tm.normalize(p)
    return direction, s


@ti.func
def random_in_unit_disk(r: ti.f32, theta: ti.f32) -> vec3:
    """Map two uniform samples to a point in the unit disk (xy-plane).

    Args:
        r: Uniform sample in [0, 1] controlling the radius.
        theta: Angle in radians.

    Returns:
        The point (sqrt(r) cos theta, sqrt(r) sin theta, 0).
    """
    radius = ti.sqrt(r)
    return vec3(radius * ti.cos(theta), radius * ti.sin(theta), 0.0)
