"""Device material table and scatter dispatch.

Materials are declared by name in a scene and referenced by objects. The table
assigns each declared name an index (in declaration order), uploads
(kind, color, parameter) rows into Taichi fields, and dispatches
:meth:`MaterialTable.scatter` on the kind tag.

Row layout by kind:
    LAMBERTIAN: color = albedo
    METAL:      color = albedo, param = fuzziness
    DIELECTRIC: color = attenuation, param = refraction index
    PLASTIC:    color = albedo, param = roughness
    EMISSIVE:   color = color, param = intensity
"""

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from mortonray.core.rng import RngStream
from mortonray.geometry.primitive import HitRecord

from .dielectric import Dielectric, scatter_dielectric
from .emissive import Emissive, scatter_emissive
from .lambertian import Lambertian, scatter_lambertian
from .material import MaterialType, ScatterKind
from .metal import Metal, scatter_metal
from .plastic import Plastic, scatter_plastic

vec3 = tm.vec3

Material = Lambertian | Metal | Dielectric | Plastic | Emissive


@dataclass(frozen=True)
class ScatterInfo:
    """A scatter outcome copied back to Python.

    Attributes:
        kind: SCATTERED, EMITTED or ABSORBED.
        direction: New ray direction (SCATTERED only).
        color: Attenuation (SCATTERED) or radiance (EMITTED).
    """

    kind: ScatterKind
    direction: tuple[float, float, float]
    color: tuple[float, float, float]


@ti.data_oriented
class MaterialTable:
    """Named materials stored on the device.

    Attributes:
        names: Declared names, in index order.
        materials: Host materials, in index order.
    """

    def __init__(self, materials: Mapping[str, Material]) -> None:
        self.names = list(materials.keys())
        self.materials = list(materials.values())
        self._index = {name: i for i, name in enumerate(self.names)}
        size = max(len(self.materials), 1)

        self.kind = ti.field(dtype=ti.i32, shape=size)
        self.color = ti.Vector.field(3, dtype=ti.f32, shape=size)
        self.param = ti.field(dtype=ti.f32, shape=size)

        # Host query results
        self._result_kind = ti.field(dtype=ti.i32, shape=())
        self._result_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_color = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_state = ti.field(dtype=ti.u32, shape=())

        kinds = np.zeros(size, dtype=np.int32)
        colors = np.zeros((size, 3), dtype=np.float32)
        params = np.zeros(size, dtype=np.float32)
        for i, material in enumerate(self.materials):
            color, param = material.device_params()
            kinds[i] = int(material.kind)
            colors[i] = color
            params[i] = param
        self.kind.from_numpy(kinds)
        self.color.from_numpy(colors)
        self.param.from_numpy(params)

    def __len__(self) -> int:
        return len(self.materials)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def index_of(self, name: str) -> int:
        """Index of a declared material.

        Raises:
            KeyError: If the name was never declared.
        """
        return self._index[name]

    @ti.func
    def scatter(
        self,
        material_id: ti.i32,
        incident_direction: vec3,
        rec: HitRecord,
        state: ti.u32,
    ):
        """Scatter a ray at a hit point with the material it references.

        Args:
            material_id: Row of the table.
            incident_direction: The incoming ray direction.
            rec: The hit record.
            state: The caller's random stream state.

        Returns:
            A tuple (kind, direction, color, new_state); see
            :mod:`mortonray.materials.material`.
        """
        material_kind = self.kind[material_id]
        color = self.color[material_id]
        param = self.param[material_id]

        kind = int(ScatterKind.ABSORBED)
        direction = vec3(0.0, 0.0, 0.0)
        out_color = vec3(0.0, 0.0, 0.0)
        s = state

        if material_kind == int(MaterialType.LAMBERTIAN):
            kind, direction, out_color, s = scatter_lambertian(color, rec.normal, s)
        elif material_kind == int(MaterialType.METAL):
            kind, direction, out_color, s = scatter_metal(
                color, param, incident_direction, rec.normal, s
            )
        elif material_kind == int(MaterialType.DIELECTRIC):
            kind, direction, out_color, s = scatter_dielectric(
                color, param, incident_direction, rec.normal, rec.front_face, s
            )
        elif material_kind == int(MaterialType.PLASTIC):
            kind, direction, out_color, s = scatter_plastic(
                color, param, incident_direction, rec.normal, s
            )
        elif material_kind == int(MaterialType.EMISSIVE):
            kind, direction, out_color, s = scatter_emissive(color, param, s)

        return kind, direction, out_color, s

    @ti.kernel
    def _sample(
        self,
        material_id: ti.i32,
        incident_direction: vec3,
        normal: vec3,
        front_face: ti.i32,
        state: ti.u32,
    ):
        rec = HitRecord(
            hit=1,
            t=1.0,
            point=vec3(0.0, 0.0, 0.0),
            normal=normal,
            front_face=front_face,
            material_id=material_id,
        )
        kind, direction, color, s = self.scatter(material_id, incident_direction, rec, state)
        self._result_kind[None] = kind
        self._result_direction[None] = direction
        self._result_color[None] = color
        self._result_state[None] = s

    def sample(
        self,
        material: str | int,
        incident_direction,
        normal,
        front_face: bool,
        rng: RngStream,
    ) -> ScatterInfo:
        """Scatter once from Python, at a hit point at the origin.

        Args:
            material: Material name or index.
            incident_direction: The incoming direction (x, y, z).
            normal: Unit normal facing against the incoming direction.
            front_face: Whether the outward side was hit.
            rng: Random stream; advanced by the random numbers consumed.

        Returns:
            The scatter outcome.
        """
        material_id = material if isinstance(material, int) else self.index_of(material)
        self._sample(
            material_id,
            vec3(*(float(c) for c in incident_direction)),
            vec3(*(float(c) for c in normal)),
            int(front_face),
            rng.state,
        )
        rng.state = int(self._result_state[None])
        direction = self._result_direction[None]
        color = self._result_color[None]
        return ScatterInfo(
            kind=ScatterKind(int(self._result_kind[None])),
            direction=(float(direction[0]), float(direction[1]), float(direction[2])),
            color=(float(color[0]), float(color[1]), float(color[2])),
        )
