"""Pytest configuration for mortonray tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    from mortonray.config import RenderSettings, init_taichi

    init_taichi(RenderSettings(arch="cpu"))
    yield


@pytest.fixture
def small_scene_dict():
    """A tiny scene document: a diffuse ground, a glass ball and a fog ball."""
    return {
        "image": {"height": 4, "samples_per_pixel": 4, "max_depth": 5},
        "camera": {
            "type": "thin_lens",
            "origin": [0, 1, 4],
            "look_at": [0, 0.5, 0],
            "up_vector": [0, 1, 0],
            "aspect_ratio": 1.5,
            "aperture": 0.05,
            "vertical_fov": 40,
        },
        "world": {
            "background_color": [0.7, 0.8, 1.0],
            "materials": {
                "ground": {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
                "glass": {"type": "dielectric", "refraction_index": 1.5},
                "fog": {"type": "lambertian", "albedo": "white"},
                "lamp": {"type": "emissive", "color": "yellow", "intensity": 3},
            },
            "objects": [
                {"type": "sphere", "center": [0, -100, 0], "radius": 100, "material": "ground"},
                {"type": "sphere", "center": [0, 0.5, 0], "radius": 0.5, "material": "glass"},
                {
                    "type": "volumetric",
                    "center": [1, 0.5, 0],
                    "radius": 0.4,
                    "density": 2.0,
                    "material": "fog",
                },
                {
                    "type": "quad",
                    "vertex": [-2, 2, -1],
                    "edges": [[1, 0, 0], [0, 0, 1]],
                    "material": "lamp",
                },
            ],
        },
    }
