"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (reflect, refract, schlick_reflectance, near_zero)
- Random sampling functions threading a stream state
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at(self):
        """Test ray_at computes the point along an unnormalized ray."""
        from mortonray.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -2.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] + 2.0) < 1e-6

    def test_make_ray(self):
        """Test make_ray stores origin and direction unchanged."""
        from mortonray.core.ray import make_ray, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 0.0, 0.0), vec3(0.0, 3.0, 0.0))
            result[0] = ray.origin
            result[1] = ray.direction

        test_kernel()
        assert result[0].to_numpy().tolist() == [1.0, 0.0, 0.0]
        assert result[1].to_numpy().tolist() == [0.0, 3.0, 0.0]


class TestVectorUtilities:
    """Tests for reflection, refraction and Fresnel helpers."""

    def test_reflect(self):
        """Test reflection about the +y normal flips the y component."""
        from mortonray.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -2.0, 0.5), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 0.5) < 1e-6

    def test_refract_straight_through(self):
        """Test that normal incidence is not bent."""
        from mortonray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6

    def test_refract_snell(self):
        """Test Snell's law: sin_out = ratio * sin_in."""
        from mortonray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        angle = math.radians(45.0)

        @ti.kernel
        def test_kernel(s: ti.f32, c: ti.f32):
            result[None] = refract(vec3(s, -c, 0.0), vec3(0.0, 1.0, 0.0), 0.5)

        test_kernel(math.sin(angle), math.cos(angle))
        r = result[None]
        assert abs(r[0] - 0.5 * math.sin(angle)) < 1e-5
        assert abs(r[0] ** 2 + r[1] ** 2 - 1.0) < 1e-5
        assert r[1] < 0.0

    @pytest.mark.parametrize(
        "cosine, eta, expected",
        [(1.0, 1.5, 0.04), (0.0, 1.5, 1.0), (1.0, 1.0, 0.0)],
    )
    def test_schlick_reflectance(self, cosine, eta, expected):
        """Test Schlick's approximation at its end points."""
        from mortonray.core.ray import schlick_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(c: ti.f32, e: ti.f32):
            result[None] = schlick_reflectance(c, e)

        test_kernel(cosine, eta)
        assert abs(result[None] - expected) < 1e-6

    def test_near_zero(self):
        """Test the near-zero threshold."""
        from mortonray.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-6, 0.0))
            result[2] = near_zero(vec3(0.0, 0.0, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
        assert result[2] == 1


class TestRandomSampling:
    """Tests for the stream-driven samplers."""

    def test_unit_sphere_and_unit_vector(self):
        """Test sample magnitudes and that the stream advances."""
        from mortonray.core.ray import random_in_unit_sphere, random_unit_vector
        from mortonray.core.rng import seed_stream

        n = 200
        inside = ti.field(dtype=ti.f32, shape=n)
        unit = ti.field(dtype=ti.f32, shape=n)
        states = ti.field(dtype=ti.u32, shape=(n, 2))

        @ti.kernel
        def test_kernel():
            for i in range(n):
                s0 = seed_stream(ti.u32(5), ti.u32(i), ti.u32(0))
                p, s1 = random_in_unit_sphere(s0)
                d, s2 = random_unit_vector(s1)
                inside[i] = p.norm()
                unit[i] = d.norm()
                states[i, 0] = s1
                states[i, 1] = s2

        test_kernel()
        for i in range(n):
            assert inside[i] < 1.0
            assert abs(unit[i] - 1.0) < 1e-5
            assert states[i, 0] != states[i, 1]

    def test_unit_disk(self):
        """Test the closed-form disk mapping."""
        from mortonray.core.ray import random_in_unit_disk

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(r: ti.f32, theta: ti.f32):
            result[None] = random_in_unit_disk(r, theta)

        test_kernel(0.25, math.pi / 2.0)
        p = result[None]
        assert abs(p[0]) < 1e-6
        assert abs(p[1] - 0.5) < 1e-6
        assert p[2] == 0.0
