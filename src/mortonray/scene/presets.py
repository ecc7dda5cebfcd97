"""Built-in scenes.

- :func:`random_scene`: a ground sphere under three large spheres and a grid
  of small randomly placed diffuse, metal and glass spheres
- :func:`cornell_box`: the classic Cornell box lit by a ceiling quad, with a
  plastic, a metal and a glass sphere and a thin fog ball

Both return a :class:`~mortonray.scene.description.SceneDescription`, so they
can be saved as JSON documents or assembled and rendered directly.

Example:
    >>> scene = random_scene(seed=7)
    >>> scene.save("random_scene.json")
"""

from dataclasses import dataclass

import numpy as np

from mortonray.camera import ThinLensCamera
from mortonray.geometry import Quad, Sphere, Volume
from mortonray.materials import Dielectric, Emissive, Lambertian, Metal, Plastic

from .colors import Color
from .description import ImageSpec, SceneDescription

# =============================================================================
# Random scene
# =============================================================================

GRID_RANGE = range(-11, 11)
SMALL_RADIUS = 0.2
# Small spheres closer than this to the metal sphere are skipped
CLEARANCE = 0.9


def random_scene(seed: int | None = None) -> SceneDescription:
    """Create the random sphere field.

    Args:
        seed: Seed for numpy's generator. None draws fresh entropy.

    Returns:
        The scene, at 405 pixels high, 100 samples per pixel, depth 20.
    """
    rng = np.random.default_rng(seed)

    materials = {
        "ground": Lambertian((0.5, 0.5, 0.5)),
        "glass": Dielectric(1.5),
        "brown": Lambertian((0.4, 0.2, 0.1)),
        "metal": Metal((0.7, 0.6, 0.5), 0.0),
    }
    objects = [
        Sphere((0.0, -1000.0, 0.0), 1000.0, "ground"),
        Sphere((0.0, 1.0, 0.0), 1.0, "glass"),
        Sphere((-4.0, 1.0, 0.0), 1.0, "brown"),
        Sphere((4.0, 1.0, 0.0), 1.0, "metal"),
    ]

    anchor = np.array([4.0, SMALL_RADIUS, 0.0])
    for a in GRID_RANGE:
        for b in GRID_RANGE:
            choose, ra, rb = rng.random(3)
            center = np.array([a + 0.9 * ra, SMALL_RADIUS, b + 0.9 * rb])
            if np.sum((center - anchor) ** 2) <= CLEARANCE**2:
                continue

            if choose < 0.8:
                name = f"diffuse.{a}.{b}"
                albedo = rng.random(3) * rng.random(3)
                materials[name] = Lambertian(tuple(albedo.tolist()))
            elif choose < 0.95:
                name = f"metal.{a}.{b}"
                albedo = 0.5 * rng.random(3) + 0.5
                materials[name] = Metal(tuple(albedo.tolist()), 0.5 * float(rng.random()))
            else:
                name = "glass"
            objects.append(Sphere(tuple(center.tolist()), SMALL_RADIUS, name))

    camera = ThinLensCamera(
        origin=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        aspect_ratio=16 / 9,
        aperture=0.1,
        vertical_fov=30.0,
        focus_distance=10.0,
    )
    return SceneDescription(
        image=ImageSpec(height=405, samples_per_pixel=100, max_depth=20),
        camera=camera,
        aspect_ratio=(16, 9),
        background=(1.0, 1.0, 1.0),
        materials=materials,
        objects=objects,
    )


# =============================================================================
# Cornell box
# =============================================================================

BOX_SIZE = 555.0

LIGHT_WIDTH = 130.0
LIGHT_DEPTH = 105.0

SPHERE_RADIUS = 80.0
METAL_SPHERE_ALBEDO = (0.95, 0.93, 0.88)
METAL_SPHERE_FUZZINESS = 0.3
GLASS_SPHERE_IOR = 1.5


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Multiplier on the light color.
        light_color: RGB color of the light (each component in [0, 1]).
        left_wall_color: RGB albedo of the wall on the viewer's left.
        right_wall_color: RGB albedo of the wall on the viewer's right.
        white_color: RGB albedo of the back wall, floor and ceiling.
        fog_density: Density of the fog ball. Zero leaves it out.

    Example:
        >>> params = CornellBoxParams(light_intensity=20.0, fog_density=0.0)
    """

    light_intensity: float = 15.0
    light_color: Color = (1.0, 1.0, 1.0)
    left_wall_color: Color = (0.12, 0.45, 0.15)
    right_wall_color: Color = (0.65, 0.05, 0.05)
    white_color: Color = (0.73, 0.73, 0.73)
    fog_density: float = 0.01


def cornell_box(
    params: CornellBoxParams | None = None,
    height: int = 512,
    samples_per_pixel: int = 100,
    max_depth: int = 50,
    box_size: float = BOX_SIZE,
) -> SceneDescription:
    """Create the Cornell box scene.

    The box spans 0 to ``box_size`` on each axis; the camera sits in front
    of the open side at z = -800 and looks toward +z.
    """
    if params is None:
        params = CornellBoxParams()
    s = box_size

    materials = {
        "left": Lambertian(params.left_wall_color),
        "right": Lambertian(params.right_wall_color),
        "white": Lambertian(params.white_color),
        "light": Emissive(params.light_color, params.light_intensity),
        "plastic": Plastic((0.73, 0.73, 0.73), 0.1),
        "metal": Metal(METAL_SPHERE_ALBEDO, METAL_SPHERE_FUZZINESS),
        "glass": Dielectric(GLASS_SPHERE_IOR),
        "fog": Lambertian((1.0, 1.0, 1.0)),
    }

    light_x = (s - LIGHT_WIDTH) / 2.0
    light_z = (s - LIGHT_DEPTH) / 2.0
    objects = [
        # Walls; the camera looks toward +z so x = s is on the viewer's left
        Quad((s, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), "left"),
        Quad((0.0, 0.0, s), (0.0, s, 0.0), (0.0, 0.0, -s), "right"),
        Quad((0.0, 0.0, s), (s, 0.0, 0.0), (0.0, s, 0.0), "white"),
        Quad((0.0, 0.0, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s), "white"),
        Quad((0.0, s, s), (s, 0.0, 0.0), (0.0, 0.0, -s), "white"),
        # Light sits just below the ceiling
        Quad(
            (light_x, s - 1.0, light_z),
            (LIGHT_WIDTH, 0.0, 0.0),
            (0.0, 0.0, LIGHT_DEPTH),
            "light",
        ),
        Sphere((s * 0.27, SPHERE_RADIUS, s * 0.35), SPHERE_RADIUS, "plastic"),
        Sphere((s * 0.73, SPHERE_RADIUS, s * 0.35), SPHERE_RADIUS, "metal"),
        Sphere((s * 0.5, SPHERE_RADIUS, s * 0.65), SPHERE_RADIUS, "glass"),
    ]
    if params.fog_density > 0.0:
        objects.append(Volume((s * 0.5, s * 0.6, s * 0.3), 60.0, params.fog_density, "fog"))

    camera = ThinLensCamera(
        origin=(s / 2.0, s / 2.0, -800.0),
        look_at=(s / 2.0, s / 2.0, s / 2.0),
        up=(0.0, 1.0, 0.0),
        aspect_ratio=1.0,
        aperture=0.0,
        vertical_fov=40.0,
    )
    return SceneDescription(
        image=ImageSpec(height=height, samples_per_pixel=samples_per_pixel, max_depth=max_depth),
        camera=camera,
        aspect_ratio=1.0,
        background=(0.0, 0.0, 0.0),
        materials=materials,
        objects=objects,
    )
