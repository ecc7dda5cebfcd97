"""Tests for scene documents, colors and the built-in scenes.

Tests cover:
- Parsing the documented example and derived image width
- Color forms
- Validation errors naming the offending field
- Saving and loading JSON files
- Assembly into a renderable world
- The random sphere field and the Cornell box
"""

import json

import numpy as np
import pytest


class TestColors:
    """Tests for color parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ([0.1, 0.2, 0.3], (0.1, 0.2, 0.3)),
            ("#FF0080", (1.0, 0.0, 128 / 255)),
            ("0x00ff00", (0.0, 1.0, 0.0)),
            (0x0000FF, (0.0, 0.0, 1.0)),
            ("Magenta", (1.0, 0.0, 1.0)),
            (" white ", (1.0, 1.0, 1.0)),
        ],
    )
    def test_accepted_forms(self, value, expected):
        """Test arrays, hex strings, integers and names."""
        from mortonray.scene import parse_color

        assert parse_color(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["purple", "#GG0000", [1.0, 2.0], True, None, ["a", 0, 0]])
    def test_rejected_forms(self, value):
        """Test that unknown names and malformed values are rejected."""
        from mortonray.core.errors import SceneFormatError
        from mortonray.scene import parse_color

        with pytest.raises(SceneFormatError):
            parse_color(value)


class TestSceneDocument:
    """Tests for parsing and validating scene documents."""

    def test_example_scene(self):
        """Test that the documented example parses with every material kind."""
        from mortonray.camera import ThinLensCamera
        from mortonray.materials import Metal, Plastic
        from mortonray.scene import EXAMPLE_SCENE, SceneDescription

        scene = SceneDescription.from_dict(EXAMPLE_SCENE)
        assert scene.aspect_ratio == (16, 9)
        assert scene.width == 711
        assert scene.image.height == 400
        assert len(scene.objects) == 5
        assert list(scene.materials) == ["diffuse", "metal", "glass", "plastic", "emissive"]
        assert isinstance(scene.camera, ThinLensCamera)
        assert isinstance(scene.materials["plastic"], Plastic)
        metal = scene.materials["metal"]
        assert isinstance(metal, Metal)
        assert metal.albedo == pytest.approx((0x15 / 255, 0xA2 / 255, 1.0))

    def test_example_text_is_valid_json(self):
        """Test that the printed example parses back to the same document."""
        from mortonray.scene import EXAMPLE_SCENE, example_text

        text = example_text()
        assert json.loads(text[text.index("{") :]) == EXAMPLE_SCENE

    def test_float_aspect_ratio(self, small_scene_dict):
        """Test that a float ratio truncates the width."""
        from mortonray.scene import SceneDescription

        small_scene_dict["camera"]["aspect_ratio"] = 1.5
        small_scene_dict["image"]["height"] = 101
        assert SceneDescription.from_dict(small_scene_dict).width == 151

    def test_defaults(self, small_scene_dict):
        """Test optional fields: focus distance, fuzziness, attenuation and background."""
        from mortonray.scene import SceneDescription

        small_scene_dict["world"]["materials"]["steel"] = {"type": "metal", "albedo": "white"}
        del small_scene_dict["world"]["background_color"]
        scene = SceneDescription.from_dict(small_scene_dict)
        assert scene.camera.focus_distance == 0.0
        assert scene.materials["steel"].fuzziness == 0.0
        assert scene.materials["glass"].attenuation == (1.0, 1.0, 1.0)
        assert scene.background == (0.0, 0.0, 0.0)

    def test_isomorphic_alias(self, small_scene_dict):
        """Test that "isomorphic" selects the orthographic camera."""
        from mortonray.camera import OrthographicCamera
        from mortonray.scene import SceneDescription

        small_scene_dict["camera"]["type"] = "isomorphic"
        scene = SceneDescription.from_dict(small_scene_dict)
        assert isinstance(scene.camera, OrthographicCamera)
        assert scene.to_dict()["camera"]["type"] == "orthographic"

    @pytest.mark.parametrize(
        "mutate, message",
        [
            (lambda d: d.pop("camera"), 'missing field "camera"'),
            (lambda d: d["image"].pop("max_depth"), 'missing field "max_depth"'),
            (lambda d: d["image"].update(height=0), "height must be at least 1"),
            (lambda d: d["image"].update(height=2.5), "expected an integer"),
            (lambda d: d["camera"].update(type="fisheye"), 'unknown type "fisheye"'),
            (lambda d: d["camera"].update(aspect_ratio=[16, 0]), "positive"),
            (lambda d: d["camera"].update(origin=[0, 1]), "expected 3 numbers"),
            (lambda d: d["world"]["materials"]["glass"].update(type="wood"), 'unknown type "wood"'),
            (lambda d: d["world"]["materials"]["ground"].update(albedo=[2, 0, 0]), "outside"),
            (lambda d: d["world"]["objects"][0].update(radius=-1), "radius must be positive"),
            (lambda d: d["world"]["objects"][3].update(edges=[[1, 0, 0]]), "two edges"),
            (lambda d: d["world"]["objects"][1].pop("material"), 'missing field "material"'),
            (lambda d: d["world"].update(objects={}), "expected a list"),
        ],
    )
    def test_invalid_documents(self, small_scene_dict, mutate, message):
        """Test that malformed documents raise SceneFormatError with context."""
        from mortonray.core.errors import SceneFormatError
        from mortonray.scene import SceneDescription

        mutate(small_scene_dict)
        with pytest.raises(SceneFormatError, match=message):
            SceneDescription.from_dict(small_scene_dict)

    def test_errors_are_value_errors(self):
        """Test that format errors can be caught as ValueError."""
        from mortonray.scene import SceneDescription

        with pytest.raises(ValueError):
            SceneDescription.from_dict({})

    def test_undeclared_material(self, small_scene_dict):
        """Test that assembly names the object and its missing material."""
        from mortonray.core.errors import UndeclaredMaterialError
        from mortonray.scene import SceneDescription

        small_scene_dict["world"]["objects"][2]["material"] = "smoke"
        scene = SceneDescription.from_dict(small_scene_dict)
        with pytest.raises(UndeclaredMaterialError, match='volumetric with material "smoke"') as e:
            scene.assemble()
        assert e.value.object_index == 2

    def test_empty_scene(self, small_scene_dict):
        """Test that assembling a scene without objects fails."""
        from mortonray.core.errors import EmptySceneError
        from mortonray.scene import SceneDescription

        small_scene_dict["world"]["objects"] = []
        with pytest.raises(EmptySceneError):
            SceneDescription.from_dict(small_scene_dict).assemble()


class TestSceneFiles:
    """Tests for JSON files on disk."""

    def test_save_and_load(self, small_scene_dict, tmp_path):
        """Test that a saved scene loads back to the same document."""
        from mortonray.scene import SceneDescription

        scene = SceneDescription.from_dict(small_scene_dict)
        path = tmp_path / "scene.json"
        scene.save(path)
        assert SceneDescription.load(path).to_dict() == scene.to_dict()

    def test_invalid_json(self, tmp_path):
        """Test that a syntax error is reported as a format error."""
        from mortonray.core.errors import SceneFormatError
        from mortonray.scene import SceneDescription

        path = tmp_path / "broken.json"
        path.write_text('{"image": ', encoding="utf-8")
        with pytest.raises(SceneFormatError, match="invalid JSON"):
            SceneDescription.load(path)

    def test_missing_file(self, tmp_path):
        """Test that an unreadable file raises OSError."""
        from mortonray.scene import SceneDescription

        with pytest.raises(OSError):
            SceneDescription.load(tmp_path / "absent.json")

    def test_example_file_matches_example_scene(self):
        """Test that the shipped example scene file is the documented example."""
        from pathlib import Path

        from mortonray.scene import EXAMPLE_SCENE, SceneDescription

        path = Path(__file__).parents[1] / "examples" / "scenes" / "example.json"
        expected = SceneDescription.from_dict(EXAMPLE_SCENE).to_dict()
        assert SceneDescription.load(path).to_dict() == expected


class TestAssemble:
    """Tests for uploading a scene to the device."""

    def test_world(self, small_scene_dict):
        """Test the assembled world's dimensions and contents."""
        from mortonray.scene import SceneDescription

        world = SceneDescription.from_dict(small_scene_dict).assemble()
        assert (world.width, world.height) == (6, 4)
        assert world.samples_per_pixel == 4
        assert world.max_depth == 5
        assert world.hierarchy.leaf_count == 4
        assert len(world.materials) == 4
        assert world.background == pytest.approx((0.7, 0.8, 1.0))

    def test_example_scene_assembles(self):
        """Test that every object kind in the example uploads."""
        from mortonray.scene import EXAMPLE_SCENE, SceneDescription

        world = SceneDescription.from_dict(EXAMPLE_SCENE).assemble()
        assert world.hierarchy.leaf_count == 5
        assert world.hierarchy.node_count == 9


class TestPresets:
    """Tests for the built-in scenes."""

    def test_random_scene_is_seeded(self):
        """Test that a seed fixes the generated scene."""
        from mortonray.scene import random_scene

        assert random_scene(seed=3).to_dict() == random_scene(seed=3).to_dict()
        assert random_scene(seed=3).to_dict() != random_scene(seed=4).to_dict()

    def test_random_scene_layout(self):
        """Test the large spheres, the clearance and the material references."""
        from mortonray.scene import random_scene
        from mortonray.scene.presets import CLEARANCE, SMALL_RADIUS

        scene = random_scene(seed=1)
        assert scene.width == 720
        assert len(scene.objects) > 4
        anchor = np.array([4.0, SMALL_RADIUS, 0.0])
        for obj in scene.objects[4:]:
            assert obj.radius == SMALL_RADIUS
            assert np.linalg.norm(np.array(obj.center) - anchor) > CLEARANCE
            assert obj.material in scene.materials

    def test_random_scene_document_round_trip(self):
        """Test that a generated scene survives serialization."""
        from mortonray.scene import SceneDescription, random_scene

        scene = random_scene(seed=6)
        data = json.loads(json.dumps(scene.to_dict()))
        assert SceneDescription.from_dict(data).to_dict() == scene.to_dict()

    def test_cornell_box(self):
        """Test the Cornell box contents with and without fog."""
        from mortonray.geometry import Volume
        from mortonray.scene import CornellBoxParams, cornell_box

        foggy = cornell_box(height=32, samples_per_pixel=1)
        assert len(foggy.objects) == 10
        assert isinstance(foggy.objects[-1], Volume)
        assert foggy.width == 32

        clear = cornell_box(CornellBoxParams(fog_density=0.0))
        assert len(clear.objects) == 9
        assert not any(isinstance(obj, Volume) for obj in clear.objects)

    def test_cornell_box_assembles(self):
        """Test that the Cornell box uploads and can be traced."""
        from mortonray.scene import cornell_box

        scene = cornell_box(height=8, samples_per_pixel=1, max_depth=4)
        world = scene.assemble()
        assert world.hierarchy.leaf_count == 10
        sampler = world.sampler(seed=0)
        sampler.render(1)
        assert np.all(np.isfinite(sampler.sums()))
