"""Preview module for rendering output.

Components:
    export: Gamma-2 byte conversion and Pillow image export
"""

from .export import MAX_PIXEL, compute_rmse, save_image, to_bytes

__all__ = [
    "MAX_PIXEL",
    "to_bytes",
    "save_image",
    "compute_rmse",
]
