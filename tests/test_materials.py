"""Tests for materials and the device material table.

Scattering is exercised through MaterialTable.sample, which runs the same
device dispatch the integrator uses.
"""

import math

import pytest

UP = (0.0, 1.0, 0.0)


def _dot(a, b):
    return sum(x * y for x, y in zip(a, b))


def _table(**materials):
    from mortonray.materials import MaterialTable

    return MaterialTable(materials)


class TestMaterialValidation:
    """Tests for host-side material validation."""

    def test_albedo_outside_unit_range(self):
        """Test that albedo components above 1 are rejected."""
        from mortonray.materials import Lambertian

        with pytest.raises(ValueError, match="outside \\[0, 1\\]"):
            Lambertian((1.5, 0.0, 0.0))

    def test_albedo_wrong_length(self):
        """Test that albedo must have three components."""
        from mortonray.materials import Plastic

        with pytest.raises(ValueError, match="3 components"):
            Plastic((0.5, 0.5))

    @pytest.mark.parametrize(
        "factory",
        [
            lambda m: m.Metal((0.5, 0.5, 0.5), -0.1),
            lambda m: m.Dielectric(0.0),
            lambda m: m.Plastic((0.5, 0.5, 0.5), -1.0),
            lambda m: m.Emissive((1.0, 1.0, 1.0), -2.0),
            lambda m: m.Emissive((-1.0, 1.0, 1.0), 2.0),
        ],
    )
    def test_invalid_parameters(self, factory):
        """Test that negative or zero parameters are rejected."""
        import mortonray.materials as m

        with pytest.raises(ValueError):
            factory(m)

    def test_emission_may_exceed_one(self):
        """Test that emissive colors are not clamped to [0, 1]."""
        from mortonray.materials import Emissive

        assert Emissive((4.0, 2.0, 1.0), 1.0).color == (4.0, 2.0, 1.0)

    def test_to_dict(self):
        """Test the scene-document forms."""
        from mortonray.materials import Dielectric, Metal

        assert Metal((0.5, 0.5, 0.5), 0.2).to_dict() == {
            "type": "metal",
            "albedo": [0.5, 0.5, 0.5],
            "fuzziness": 0.2,
        }
        assert Dielectric(1.5).to_dict()["attenuation"] == [1.0, 1.0, 1.0]


class TestMaterialTable:
    """Tests for table indexing."""

    def test_indices_follow_declaration_order(self):
        """Test that names map to rows in declaration order."""
        from mortonray.materials import Lambertian, Metal

        table = _table(a=Lambertian((0.1, 0.1, 0.1)), b=Metal((0.2, 0.2, 0.2)))
        assert len(table) == 2
        assert table.index_of("a") == 0
        assert table.index_of("b") == 1
        assert "b" in table
        assert "c" not in table
        with pytest.raises(KeyError):
            table.index_of("c")


class TestScatter:
    """Tests for device scattering."""

    def test_lambertian(self):
        """Test that diffuse bounces leave the surface and carry the albedo."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Lambertian, ScatterKind

        table = _table(diffuse=Lambertian((0.5, 0.25, 1.0)))
        rng = RngStream(3)
        for _ in range(20):
            info = table.sample("diffuse", (0.0, -1.0, 0.0), UP, True, rng)
            assert info.kind == ScatterKind.SCATTERED
            assert info.color == pytest.approx((0.5, 0.25, 1.0))
            assert _dot(info.direction, UP) > 0.0

    def test_mirror_metal(self):
        """Test that a metal without fuzz reflects exactly."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Metal, ScatterKind

        table = _table(mirror=Metal((0.9, 0.9, 0.9), 0.0))
        info = table.sample("mirror", (1.0, -1.0, 0.0), UP, True, RngStream(1))
        assert info.kind == ScatterKind.SCATTERED
        assert info.direction == pytest.approx((1.0, 1.0, 0.0), abs=1e-6)

    def test_metal_grazing_is_absorbed(self):
        """Test that a reflection not leaving the surface is absorbed."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Metal, ScatterKind

        table = _table(mirror=Metal((0.9, 0.9, 0.9), 0.0))
        info = table.sample("mirror", (1.0, 0.0, 0.0), UP, True, RngStream(1))
        assert info.kind == ScatterKind.ABSORBED

    def test_dielectric_total_internal_reflection(self):
        """Test that a steep ray leaving glass reflects without drawing randomness."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Dielectric, ScatterKind

        table = _table(glass=Dielectric(1.5, (0.9, 1.0, 1.0)))
        rng = RngStream(4)
        state = rng.state
        info = table.sample("glass", (1.0, -0.2, 0.0), UP, False, rng)
        assert info.kind == ScatterKind.SCATTERED
        assert info.direction[1] > 0.0
        assert info.color == pytest.approx((0.9, 1.0, 1.0))
        assert rng.state == state

    def test_dielectric_normal_incidence(self):
        """Test that head-on rays mostly pass straight through."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Dielectric

        table = _table(glass=Dielectric(1.5))
        rng = RngStream(5)
        refracted = 0
        for _ in range(200):
            info = table.sample("glass", (0.0, -1.0, 0.0), UP, True, rng)
            assert abs(info.direction[0]) < 1e-5
            assert abs(abs(info.direction[1]) - 1.0) < 1e-5
            refracted += info.direction[1] < 0.0
        # Schlick reflectance at normal incidence is 0.04
        assert refracted > 170

    def test_dielectric_refraction_bends_toward_normal(self):
        """Test Snell's law on entering glass."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Dielectric

        table = _table(glass=Dielectric(1.5))
        rng = RngStream(6)
        incident = (math.sin(math.radians(30)), -math.cos(math.radians(30)), 0.0)
        for _ in range(20):
            info = table.sample("glass", incident, UP, True, rng)
            if info.direction[1] < 0.0:
                length = math.sqrt(_dot(info.direction, info.direction))
                sin_out = info.direction[0] / length
                assert sin_out == pytest.approx(0.5 / 1.5, abs=1e-4)
                break
        else:
            pytest.fail("no refracted sample in 20 draws")

    def test_plastic(self):
        """Test that plastic always scatters above the surface with its albedo."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Plastic, ScatterKind

        table = _table(plastic=Plastic((0.2, 0.4, 0.6), 0.0))
        rng = RngStream(7)
        for _ in range(20):
            info = table.sample("plastic", (0.3, -1.0, 0.0), UP, True, rng)
            assert info.kind == ScatterKind.SCATTERED
            assert info.color == pytest.approx((0.2, 0.4, 0.6))
            assert _dot(info.direction, UP) > 0.0

    def test_emissive(self):
        """Test that lights emit color times intensity and consume no randomness."""
        from mortonray.core.rng import RngStream
        from mortonray.materials import Emissive, ScatterKind

        table = _table(lamp=Emissive((1.0, 0.5, 0.25), 4.0))
        rng = RngStream(8)
        state = rng.state
        info = table.sample("lamp", (0.0, -1.0, 0.0), UP, True, rng)
        assert info.kind == ScatterKind.EMITTED
        assert info.color == pytest.approx((4.0, 2.0, 1.0))
        assert rng.state == state
