"""Whitted-style recursive ray tracer for scenes of spheres, built on Taichi.

The renderer traces one primary ray per pixel through a scene of analytic
spheres. Its features:
- Mirror reflection and dielectric refraction with a Fresnel blend
- Point-like lights given by emissive spheres, with binary shadow rays
- Spherical (longitude/latitude) texture projection
- Explicit, bounded recursion depth

Subpackages:
    core: Vector math, the shading engine and the image synthesis driver
    geometry: The sphere primitive and its intersection test
    materials: Texture loading and sampling
    scene: Scene storage, nearest-hit and shadow queries, scene building
    camera: The pinhole camera
    preview: Image export and preview utilities
"""

__version__ = "0.1.0"
