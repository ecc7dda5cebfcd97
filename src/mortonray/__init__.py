"""Taichi path tracer with a Morton-code bounding volume hierarchy.

This package renders scenes made of spheres, triangles, quads and fog volumes
by stochastic path tracing. Scenes are indexed once by a linear BVH whose
split points come from Morton (Z-order) keys, then rendered in parallel with
an independent random stream for every (pixel, sample) pair.

Subpackages:
    core: Rays, random streams, the path integrator and the parallel sampler
    geometry: Bounding boxes, primitive shapes and their intersection tests
    bvh: Morton coding, hierarchy building and traversal
    materials: Diffuse, metal, dielectric, plastic and emissive scattering
    camera: Thin-lens and orthographic ray generation
    scene: Scene documents, colours and preset scenes
    preview: Byte conversion and image export
"""

__version__ = "0.1.0"
