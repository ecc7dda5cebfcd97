"""Scene module for scene documents and built-in scenes.

Components:
    colors: Color forms accepted in scene documents
    description: JSON scene documents, validation and assembly into a World
    presets: The random sphere field and the Cornell box
"""

from .colors import NAMED_COLORS, Color, hex_to_color, parse_color
from .description import (
    EXAMPLE_SCENE,
    AspectRatio,
    ImageSpec,
    SceneDescription,
    World,
    aspect_value,
    camera_from_dict,
    example_text,
    image_width,
    material_from_dict,
    object_from_dict,
    parse_aspect_ratio,
)
from .presets import CornellBoxParams, cornell_box, random_scene

__all__ = [
    "Color",
    "NAMED_COLORS",
    "hex_to_color",
    "parse_color",
    "AspectRatio",
    "ImageSpec",
    "SceneDescription",
    "World",
    "EXAMPLE_SCENE",
    "example_text",
    "aspect_value",
    "image_width",
    "parse_aspect_ratio",
    "camera_from_dict",
    "material_from_dict",
    "object_from_dict",
    "CornellBoxParams",
    "cornell_box",
    "random_scene",
]
