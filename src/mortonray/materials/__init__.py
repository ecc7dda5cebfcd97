"""Materials module: how light scatters at a surface.

Components:
    material: Material and scatter-outcome tags, host-side validation
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    plastic: Glossy coat over a diffuse base
    emissive: Light sources
    table: Device material table and scatter dispatch

Each material module provides a frozen host dataclass (validated on
construction) and a Taichi ``scatter_*`` function that threads the caller's
random stream state.
"""

from .dielectric import Dielectric, scatter_dielectric
from .emissive import Emissive, scatter_emissive
from .lambertian import Lambertian, diffuse_direction, scatter_lambertian
from .material import MaterialType, ScatterKind
from .metal import Metal, scatter_metal
from .plastic import Plastic, coat_reflectance, scatter_plastic
from .table import Material, MaterialTable, ScatterInfo

__all__ = [
    "MaterialType",
    "ScatterKind",
    "Material",
    "MaterialTable",
    "ScatterInfo",
    "Lambertian",
    "scatter_lambertian",
    "diffuse_direction",
    "Metal",
    "scatter_metal",
    "Dielectric",
    "scatter_dielectric",
    "Plastic",
    "scatter_plastic",
    "coat_reflectance",
    "Emissive",
    "scatter_emissive",
]
