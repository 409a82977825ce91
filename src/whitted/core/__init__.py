"""Core rendering module.

Components:
    vector: Vector3 math, the Ray type, reflection and refraction
    shading: The recursive Whitted shading engine (trace)
    renderer: Pixel buffer, scanline rendering and the Renderer class

Note: shading and renderer are NOT imported here because importing them
allocates Taichi fields. Import them directly after ti.init():
    from whitted.core.shading import trace_ray
    from whitted.core.renderer import Renderer
"""

from .vector import (
    Ray,
    dot,
    length,
    length_squared,
    make_ray,
    mix,
    normalize,
    ray_at,
    reflect,
    refract,
    vec3,
)

__all__ = [
    "Ray",
    "make_ray",
    "ray_at",
    "vec3",
    "dot",
    "length",
    "length_squared",
    "normalize",
    "mix",
    "reflect",
    "refract",
]
