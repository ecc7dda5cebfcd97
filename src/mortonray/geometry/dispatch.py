"""Intersection dispatch over the closed set of primitive kinds.

:func:`hit_primitive` is the single entry point the hierarchy uses to test a
primitive; it switches on the primitive's kind tag. :func:`pack_primitives`
lays host shapes out as the flat arrays the device stores.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from .primitive import Primitive, PrimitiveKind, empty_hit_record, make_hit_record
from .quad import hit_quad
from .sphere import hit_sphere
from .triangle import hit_triangle
from .volume import hit_volume

vec3 = tm.vec3


@ti.func
def hit_primitive(
    prim: Primitive,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
    state: ti.u32,
):
    """Test a ray against one primitive of any kind.

    Args:
        prim: The primitive to test.
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.
        state: The caller's random stream state (consumed by volumes only).

    Returns:
        A tuple (record, new_state). record.hit is 0 on a miss.
    """
    s = state
    did_hit = 0
    t = 0.0
    outward_normal = vec3(0.0, 0.0, 0.0)

    if prim.kind == int(PrimitiveKind.SPHERE):
        did_hit, t, outward_normal = hit_sphere(
            ray_origin, ray_direction, prim.origin, prim.radius, t_min, t_max
        )
    elif prim.kind == int(PrimitiveKind.TRIANGLE):
        did_hit, t, outward_normal = hit_triangle(
            ray_origin, ray_direction, prim.origin, prim.edge_v, prim.edge_w, t_min, t_max
        )
    elif prim.kind == int(PrimitiveKind.QUAD):
        did_hit, t, outward_normal = hit_quad(
            ray_origin, ray_direction, prim.origin, prim.edge_v, prim.edge_w, t_min, t_max
        )
    elif prim.kind == int(PrimitiveKind.VOLUME):
        did_hit, t, outward_normal, s = hit_volume(
            ray_origin,
            ray_direction,
            prim.origin,
            prim.radius,
            prim.density,
            t_min,
            t_max,
            s,
        )

    record = empty_hit_record()
    if did_hit == 1:
        record = make_hit_record(ray_origin, ray_direction, t, outward_normal, prim.material_id)
    return record, s


def pack_primitives(
    objects: Sequence, material_ids: Sequence[int] | None = None
) -> dict[str, npt.NDArray]:
    """Lay host shapes out as structure-of-arrays for upload.

    Args:
        objects: Host shapes (Sphere, Triangle, Quad, Volume).
        material_ids: Material index per object. Defaults to 0 for all.

    Returns:
        Dict of numpy arrays keyed like the Primitive struct members.

    Raises:
        ValueError: If material_ids does not match objects in length.
    """
    n = len(objects)
    if material_ids is None:
        material_ids = [0] * n
    if len(material_ids) != n:
        raise ValueError(f"Expected {n} material ids, got {len(material_ids)}")

    packed = {
        "kind": np.zeros(n, dtype=np.int32),
        "material_id": np.asarray(material_ids, dtype=np.int32).reshape(n),
        "origin": np.zeros((n, 3), dtype=np.float32),
        "edge_v": np.zeros((n, 3), dtype=np.float32),
        "edge_w": np.zeros((n, 3), dtype=np.float32),
        "radius": np.zeros(n, dtype=np.float32),
        "density": np.zeros(n, dtype=np.float32),
    }
    for i, obj in enumerate(objects):
        packed["kind"][i] = int(obj.kind)
        for name, value in obj.device_params().items():
            packed[name][i] = value
    return packed
