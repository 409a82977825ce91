"""Vector math and ray helpers for the Whitted shading core.

The Vector3 type is Taichi's ``vec3``; arithmetic (add, subtract, negate,
component-wise and scalar multiply) comes from its operators. The functions
here fill in the rest: dot product, lengths, a zero-safe normalize and the
reflection/refraction directions used by the shading engine.

All functions are ``@ti.func`` and must be called from inside a Taichi kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.core.vector import normalize, vec3
    >>> @ti.kernel
    ... def unit() -> vec3:
    ...     return normalize(vec3(3.0, 0.0, 4.0))
    >>> unit()  # [0.6, 0.0, 0.8]
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and a normalized direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3, unit length).
    """

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point ray.origin + t * ray.direction."""
    return ray.origin + t * ray.direction


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared Euclidean length of a vector."""
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Unlike ``tm.normalize``, a zero-length vector is returned unchanged
    instead of turning into NaN.

    Args:
        v: The input vector.

    Returns:
        ``v / |v|`` when ``|v|^2 > 0``, otherwise ``v`` itself.
    """
    result = v
    nor2 = length_squared(v)
    if nor2 > 0.0:
        inv_nor = 1.0 / ti.sqrt(nor2)
        result = v * inv_nor
    return result


@ti.func
def mix(a: ti.f32, b: ti.f32, t: ti.f32) -> ti.f32:
    """Linear blend ``b * t + a * (1 - t)``."""
    return b * t + a * (1.0 - t)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror an incident direction about a unit normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal, facing the incident ray.

    Returns:
        ``incident - normal * 2 * (incident . normal)``, not normalized.
    """
    return incident - normal * 2.0 * dot(incident, normal)


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Bend an incident direction through a surface (Snell's law).

    Args:
        incident: The incoming direction (normalized).
        normal: The surface normal facing the incident ray (normalized).
        eta: Ratio of refractive indices, incident side over transmitted side.

    Returns:
        A tuple ``(direction, total_internal_reflection)``. When the
        discriminant ``k = 1 - eta^2 (1 - cosi^2)`` is negative no refracted
        ray exists: direction is the zero vector and the flag is 1.
        Otherwise direction is the normalized refracted ray and the flag is 0.
    """
    cosi = -dot(normal, incident)
    k = 1.0 - eta * eta * (1.0 - cosi * cosi)
    direction = vec3(0.0, 0.0, 0.0)
    total_internal_reflection = 1
    if k >= 0.0:
        direction = normalize(incident * eta + normal * (eta * cosi - ti.sqrt(k)))
        total_internal_reflection = 0
    return direction, total_internal_reflection
