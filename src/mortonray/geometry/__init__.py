"""Geometry module for bounding boxes and shape primitives.

Components:
    aabb: Host bounding boxes and the device slab test
    primitive: Tagged primitive struct and hit records
    sphere: Sphere primitive
    triangle: Triangle primitive and the shared planar solver
    quad: Parallelogram primitive
    volume: Spherical fog volume
    dispatch: Intersection dispatch over primitive kinds

Host shapes compute their own bounding boxes; device intersection routines
are Taichi functions returning ``(did_hit, t, outward_normal)``.
"""

from .aabb import FLAT_BOX_PADDING, BoundingBox, hit_box, to_device_corners
from .dispatch import hit_primitive, pack_primitives
from .primitive import HitRecord, Primitive, PrimitiveKind, make_hit_record
from .quad import Quad, hit_quad
from .sphere import Sphere, hit_sphere
from .triangle import Triangle, hit_triangle, planar_coordinates
from .volume import Volume, hit_volume

Shape = Sphere | Triangle | Quad | Volume

__all__ = [
    "BoundingBox",
    "FLAT_BOX_PADDING",
    "hit_box",
    "to_device_corners",
    "Primitive",
    "PrimitiveKind",
    "HitRecord",
    "make_hit_record",
    "hit_primitive",
    "pack_primitives",
    "Shape",
    "Sphere",
    "hit_sphere",
    "Triangle",
    "hit_triangle",
    "planar_coordinates",
    "Quad",
    "hit_quad",
    "Volume",
    "hit_volume",
]
