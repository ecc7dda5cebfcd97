"""Scene documents and their assembly into a renderable world.

A scene document is a JSON object with three sections:

    image   {height, samples_per_pixel, max_depth}
    camera  {type: "thin_lens" | "orthographic", origin, look_at, up_vector,
             aspect_ratio, vertical_fov, aperture, focus_distance}
    world   {background_color, materials {name: {type, ...}},
             objects [{type, ..., material}]}

:class:`SceneDescription` is the parsed, validated document. Its
:meth:`~SceneDescription.assemble` method resolves material names, builds the
hierarchy and uploads everything to the device, returning a :class:`World`.

Example:
    >>> scene = SceneDescription.from_dict(EXAMPLE_SCENE)
    >>> scene.width, scene.image.height
    (711, 400)
    >>> world = scene.assemble()  # Requires ti.init()
"""

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

from mortonray.bvh.hierarchy import Hierarchy, build_hierarchy
from mortonray.camera import Camera, DeviceCamera, OrthographicCamera, ThinLensCamera
from mortonray.core.errors import SceneFormatError, UndeclaredMaterialError
from mortonray.core.integrator import PathTracer
from mortonray.core.sampler import ParallelSampler
from mortonray.geometry import Quad, Shape, Sphere, Triangle, Volume
from mortonray.materials import (
    Dielectric,
    Emissive,
    Lambertian,
    Material,
    MaterialTable,
    Metal,
    Plastic,
)

from .colors import Color, parse_color

log = logging.getLogger(__name__)

AspectRatio = float | tuple[int, int]


# =============================================================================
# Field helpers
# =============================================================================


def _require(data: Mapping[str, Any], key: str, context: str) -> Any:
    if not isinstance(data, Mapping):
        raise SceneFormatError(f"{context}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise SceneFormatError(f'{context}: missing field "{key}"')
    return data[key]


def _vector(value: Any, context: str) -> tuple[float, float, float]:
    if isinstance(value, str) or not isinstance(value, Sequence) or len(value) != 3:
        raise SceneFormatError(f"{context}: expected 3 numbers, got {value!r}")
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError) as e:
        raise SceneFormatError(f"{context}: expected 3 numbers, got {value!r}") from e
    return (x, y, z)


def _number(value: Any, context: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneFormatError(f"{context}: expected a number, got {value!r}")
    return float(value)


def _integer(value: Any, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SceneFormatError(f"{context}: expected an integer, got {value!r}")
    return value


def _color(value: Any, context: str) -> Color:
    try:
        return parse_color(value)
    except SceneFormatError as e:
        raise SceneFormatError(f"{context}: {e}") from e


# =============================================================================
# Image and aspect ratio
# =============================================================================


def parse_aspect_ratio(value: Any) -> AspectRatio:
    """Read a float ratio or an ``[a, b]`` fraction.

    Raises:
        SceneFormatError: If the value is neither or is not positive.
    """
    if isinstance(value, Sequence) and not isinstance(value, str):
        if len(value) != 2:
            raise SceneFormatError(f"aspect_ratio: expected [a, b], got {value!r}")
        a = _integer(value[0], "aspect_ratio")
        b = _integer(value[1], "aspect_ratio")
        if a <= 0 or b <= 0:
            raise SceneFormatError(f"aspect_ratio: terms must be positive, got {value!r}")
        return (a, b)
    ratio = _number(value, "aspect_ratio")
    if ratio <= 0.0:
        raise SceneFormatError(f"aspect_ratio: must be positive, got {ratio}")
    return ratio


def aspect_value(ratio: AspectRatio) -> float:
    if isinstance(ratio, tuple):
        return ratio[0] / ratio[1]
    return float(ratio)


def image_width(height: int, ratio: AspectRatio) -> int:
    """Width in pixels: ``height * a // b`` for fractions, ``int(height * r)`` otherwise."""
    if isinstance(ratio, tuple):
        return height * ratio[0] // ratio[1]
    return int(height * ratio)


@dataclass(frozen=True)
class ImageSpec:
    """Output image parameters.

    Attributes:
        height: Image height in pixels.
        samples_per_pixel: Number of paths traced per pixel.
        max_depth: Maximum number of scatter events per path.

    Raises:
        ValueError: If any value is below 1.
    """

    height: int
    samples_per_pixel: int
    max_depth: int

    def __post_init__(self) -> None:
        for name in ("height", "samples_per_pixel", "max_depth"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageSpec":
        try:
            return cls(
                height=_integer(_require(data, "height", "image"), "image.height"),
                samples_per_pixel=_integer(
                    _require(data, "samples_per_pixel", "image"), "image.samples_per_pixel"
                ),
                max_depth=_integer(_require(data, "max_depth", "image"), "image.max_depth"),
            )
        except SceneFormatError:
            raise
        except ValueError as e:
            raise SceneFormatError(f"image: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "samples_per_pixel": self.samples_per_pixel,
            "max_depth": self.max_depth,
        }


# =============================================================================
# Camera, materials and objects
# =============================================================================


def camera_from_dict(data: Mapping[str, Any]) -> tuple[Camera, AspectRatio]:
    """Read the camera section.

    Returns:
        The camera and the aspect ratio as written (float or fraction).
    """
    kind = str(_require(data, "type", "camera")).lower()
    aspect = parse_aspect_ratio(_require(data, "aspect_ratio", "camera"))
    common = {
        "origin": _vector(_require(data, "origin", "camera"), "camera.origin"),
        "look_at": _vector(_require(data, "look_at", "camera"), "camera.look_at"),
        "up": _vector(_require(data, "up_vector", "camera"), "camera.up_vector"),
        "aspect_ratio": aspect_value(aspect),
        "vertical_fov": _number(_require(data, "vertical_fov", "camera"), "camera.vertical_fov"),
    }
    if kind == "thin_lens":
        camera = ThinLensCamera(
            aperture=_number(_require(data, "aperture", "camera"), "camera.aperture"),
            focus_distance=_number(data.get("focus_distance", 0.0), "camera.focus_distance"),
            **common,
        )
    elif kind in ("orthographic", "isomorphic"):
        camera = OrthographicCamera(**common)
    else:
        raise SceneFormatError(f'camera: unknown type "{kind}"')
    return camera, aspect


def material_from_dict(name: str, data: Mapping[str, Any]) -> Material:
    """Read one material declaration.

    Raises:
        SceneFormatError: If the declaration is malformed or invalid.
    """
    context = f'material "{name}"'
    kind = str(_require(data, "type", context)).lower()
    try:
        if kind == "lambertian":
            return Lambertian(_color(_require(data, "albedo", context), context))
        if kind == "metal":
            return Metal(
                _color(_require(data, "albedo", context), context),
                _number(data.get("fuzziness", 0.0), context),
            )
        if kind == "dielectric":
            return Dielectric(
                _number(_require(data, "refraction_index", context), context),
                _color(data.get("attenuation", "white"), context),
            )
        if kind == "plastic":
            return Plastic(
                _color(_require(data, "albedo", context), context),
                _number(data.get("roughness", 0.0), context),
            )
        if kind == "emissive":
            return Emissive(
                _color(_require(data, "color", context), context),
                _number(data.get("intensity", 1.0), context),
            )
    except SceneFormatError:
        raise
    except ValueError as e:
        raise SceneFormatError(f"{context}: {e}") from e
    raise SceneFormatError(f'{context}: unknown type "{kind}"')


def _edges(data: Mapping[str, Any], context: str):
    edges = _require(data, "edges", context)
    if isinstance(edges, str) or not isinstance(edges, Sequence) or len(edges) != 2:
        raise SceneFormatError(f"{context}: expected two edges, got {edges!r}")
    return _vector(edges[0], context), _vector(edges[1], context)


def object_from_dict(index: int, data: Mapping[str, Any]) -> Shape:
    """Read one object. The material name is kept unresolved.

    Raises:
        SceneFormatError: If the object is malformed or invalid.
    """
    context = f"object #{index}"
    kind = str(_require(data, "type", context)).lower()
    material = str(_require(data, "material", context))
    try:
        if kind == "sphere":
            return Sphere(
                _vector(_require(data, "center", context), context),
                _number(_require(data, "radius", context), context),
                material,
            )
        if kind in ("triangle", "quad"):
            vertex = _vector(_require(data, "vertex", context), context)
            edge_v, edge_w = _edges(data, context)
            shape = Triangle if kind == "triangle" else Quad
            return shape(vertex, edge_v, edge_w, material)
        if kind in ("volumetric", "volume"):
            return Volume(
                _vector(_require(data, "center", context), context),
                _number(_require(data, "radius", context), context),
                _number(_require(data, "density", context), context),
                material,
            )
    except SceneFormatError:
        raise
    except ValueError as e:
        raise SceneFormatError(f"{context}: {e}") from e
    raise SceneFormatError(f'{context}: unknown type "{kind}"')


# =============================================================================
# Scene description and world
# =============================================================================


@dataclass
class World:
    """A scene uploaded to the device and ready to render.

    Attributes:
        hierarchy: The BVH over every object.
        materials: The material table.
        camera: The device camera.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Target number of samples per pixel.
        max_depth: Maximum number of scatter events per path.
        background: Background color.
    """

    hierarchy: Hierarchy
    materials: MaterialTable
    camera: DeviceCamera
    width: int
    height: int
    samples_per_pixel: int
    max_depth: int
    background: Color

    def sampler(self, seed: int = 0) -> ParallelSampler:
        return ParallelSampler(
            self.hierarchy,
            self.materials,
            self.camera,
            self.width,
            self.height,
            self.max_depth,
            self.background,
            seed=seed,
        )

    def tracer(self) -> PathTracer:
        return PathTracer(self.hierarchy, self.materials, self.max_depth, self.background)


@dataclass
class SceneDescription:
    """A parsed scene document.

    Attributes:
        image: Output image parameters.
        camera: The camera model.
        aspect_ratio: The aspect ratio as written (float or fraction).
        background: Background color.
        materials: Declared materials by name, in declaration order.
        objects: Objects, each naming its material.
    """

    image: ImageSpec
    camera: Camera
    aspect_ratio: AspectRatio
    background: Color = (0.0, 0.0, 0.0)
    materials: dict[str, Material] = field(default_factory=dict)
    objects: list[Shape] = field(default_factory=list)

    @property
    def width(self) -> int:
        return image_width(self.image.height, self.aspect_ratio)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SceneDescription":
        """Parse and validate a scene document.

        Raises:
            SceneFormatError: If the document is malformed.
        """
        image = ImageSpec.from_dict(_require(data, "image", "scene"))
        camera, aspect = camera_from_dict(_require(data, "camera", "scene"))
        world = _require(data, "world", "scene")

        declared = _require(world, "materials", "world")
        if not isinstance(declared, Mapping):
            raise SceneFormatError("world.materials: expected an object")
        objects = _require(world, "objects", "world")
        if isinstance(objects, str) or not isinstance(objects, Sequence):
            raise SceneFormatError("world.objects: expected a list")

        return cls(
            image=image,
            camera=camera,
            aspect_ratio=aspect,
            background=_color(
                world.get("background_color", "black"), "world.background_color"
            ),
            materials={
                str(name): material_from_dict(str(name), spec) for name, spec in declared.items()
            },
            objects=[object_from_dict(i, spec) for i, spec in enumerate(objects)],
        )

    def to_dict(self) -> dict[str, Any]:
        camera = self.camera.to_dict()
        camera["aspect_ratio"] = (
            list(self.aspect_ratio) if isinstance(self.aspect_ratio, tuple) else self.aspect_ratio
        )
        return {
            "image": self.image.to_dict(),
            "camera": camera,
            "world": {
                "background_color": list(self.background),
                "materials": {name: m.to_dict() for name, m in self.materials.items()},
                "objects": [obj.to_dict() for obj in self.objects],
            },
        }

    @classmethod
    def load(cls, path: str | PathLike) -> "SceneDescription":
        """Read a scene document from a JSON file.

        Raises:
            SceneFormatError: If the file is not valid JSON or not a valid scene.
            OSError: If the file cannot be read.
        """
        text = Path(path).read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SceneFormatError(f"{path}: invalid JSON: {e}") from e
        scene = cls.from_dict(data)
        log.debug(f"Parsed {path}")
        return scene

    def save(self, path: str | PathLike) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")

    def material_ids(self, table: MaterialTable) -> list[int]:
        """Resolve every object's material name to a table index.

        Raises:
            UndeclaredMaterialError: If an object names an undeclared material.
        """
        ids = []
        for i, obj in enumerate(self.objects):
            if obj.material not in table:
                kind = obj.to_dict()["type"]
                raise UndeclaredMaterialError(i, kind, obj.material)
            ids.append(table.index_of(obj.material))
        return ids

    def assemble(self) -> World:
        """Upload the scene to the device. Requires ``ti.init()``.

        Raises:
            UndeclaredMaterialError: If an object names an undeclared material.
            EmptySceneError: If the scene has no objects.
        """
        table = MaterialTable(self.materials)
        ids = self.material_ids(table)
        hierarchy = build_hierarchy(self.objects, ids)
        return World(
            hierarchy=hierarchy,
            materials=table,
            camera=DeviceCamera(self.camera),
            width=self.width,
            height=self.image.height,
            samples_per_pixel=self.image.samples_per_pixel,
            max_depth=self.image.max_depth,
            background=self.background,
        )


# Documented sample scene (prints with ``mortonray --example``); it does not
# render anything pretty
EXAMPLE_SCENE: dict[str, Any] = {
    "image": {
        "height": 400,
        "samples_per_pixel": 200,
        "max_depth": 50,
    },
    "camera": {
        "type": "thin_lens",
        "origin": [13, 2, 3],
        "look_at": [0, 0, 0],
        "up_vector": [0, 1, 0],
        "aspect_ratio": [16, 9],
        "aperture": 0.1,
        "vertical_fov": 30,
        "focus_distance": 10,
    },
    "world": {
        "background_color": [0.2, 0.2, 0.2],
        "materials": {
            "diffuse": {"type": "lambertian", "albedo": [0.5, 0.1, 1.0]},
            "metal": {"type": "metal", "albedo": "#15A2FF", "fuzziness": 0.2},
            "glass": {"type": "dielectric", "attenuation": "red", "refraction_index": 1.5},
            "plastic": {"type": "plastic", "albedo": "cyan", "roughness": 0.1},
            "emissive": {"type": "emissive", "color": "yellow", "intensity": 2.0},
        },
        "objects": [
            {"type": "sphere", "center": [-26, -4, -6], "radius": 5.2, "material": "emissive"},
            {
                "type": "triangle",
                "vertex": [1, 0, 0],
                "edges": [[0, 1, 0], [0.1, 0, 1]],
                "material": "metal",
            },
            {
                "type": "quad",
                "vertex": [2, 1, 3],
                "edges": [[0, 4, 3], [0, 1, 5]],
                "material": "glass",
            },
            {
                "type": "volumetric",
                "center": [0, 0, 2],
                "radius": 1,
                "density": 0.9,
                "material": "diffuse",
            },
            {"type": "sphere", "center": [0, -1.5, 0], "radius": 0.5, "material": "plastic"},
        ],
    },
}

EXAMPLE_HEADER = """\
Sample scene file (does not render anything pretty).
Colors: [r, g, b], "#RRGGBB", "0xRRGGBB", or one of red, yellow, green, cyan,
blue, magenta, black, white.
Camera types: "thin_lens" or "orthographic" (no aperture or focus_distance;
focus_distance is optional for thin_lens). aspect_ratio is a number or [a, b].
Material types: lambertian, metal, dielectric, plastic, emissive.
Object types: sphere, triangle, quad, volumetric."""


def example_text() -> str:
    """The sample scene document with an explanatory header."""
    return EXAMPLE_HEADER + "\n\n" + json.dumps(EXAMPLE_SCENE, indent=2)
