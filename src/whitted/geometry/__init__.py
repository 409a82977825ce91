"""Geometry module: the sphere primitive.

Ray-sphere intersection follows the pattern:
    hit, t0, t1 = intersect_sphere(sphere, ray_origin, ray_direction)
"""

from .sphere import NO_TEXTURE, Sphere, intersect_sphere, make_sphere, sphere_color

__all__ = [
    "Sphere",
    "NO_TEXTURE",
    "intersect_sphere",
    "make_sphere",
    "sphere_color",
]
