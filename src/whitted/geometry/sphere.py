"""Sphere primitive: analytic intersection and surface color lookup.

A sphere carries its geometry (center, radius and the cached squared
radius), its material coefficients and an optional spherical texture.
A sphere whose emission color has a positive first channel is treated by
the shading engine as a point-like light located at its center.

The intersection test is the geometric (not the quadratic-formula) form:
it projects the center onto the ray and rejects spheres whose center lies
behind the ray origin. This one-sided early-out is what the shading engine
relies on for shadow rays leaving a lit surface.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.geometry.sphere import make_sphere, intersect_sphere
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.core.vector import dot, vec3
from whitted.materials.texture import sample_texture, texel_coords

# Texture offset marking an untextured sphere
NO_TEXTURE = -1


@ti.dataclass
class Sphere:
    """A sphere with material properties.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        radius2: The squared radius, cached for intersection tests.
        surface_color: Flat diffuse color, used when there is no texture.
        emission_color: Emitted light; a positive x component makes the
            sphere a light source.
        reflectivity: Reflection coefficient in [0, 1].
        transparency: Transmission coefficient in [0, 1].
        texture_offset: Offset into the texel atlas, or NO_TEXTURE.
        texture_width: Texture width in texels.
        texture_height: Texture height in texels.
    """

    center: vec3
    radius: ti.f32
    radius2: ti.f32
    surface_color: vec3
    emission_color: vec3
    reflectivity: ti.f32
    transparency: ti.f32
    texture_offset: ti.i32
    texture_width: ti.i32
    texture_height: ti.i32


@ti.func
def make_sphere(center: vec3, radius: ti.f32, surface_color: vec3) -> Sphere:
    """Create an untextured, non-emissive, fully diffuse sphere."""
    return Sphere(
        center=center,
        radius=radius,
        radius2=radius * radius,
        surface_color=surface_color,
        emission_color=vec3(0.0, 0.0, 0.0),
        reflectivity=0.0,
        transparency=0.0,
        texture_offset=NO_TEXTURE,
        texture_width=0,
        texture_height=0,
    )


@ti.func
def intersect_sphere(sphere: Sphere, origin: vec3, direction: vec3):
    """Intersect a ray with a sphere.

    With ``L = center - origin`` and ``tca = L . direction``, the ray misses
    when ``tca < 0`` (center behind the origin) or when the squared distance
    from the center to the ray, ``d2 = L . L - tca^2``, exceeds radius^2.
    Otherwise ``thc = sqrt(radius^2 - d2)`` and the hits are at
    ``tca -/+ thc``.

    Args:
        sphere: The sphere to test.
        origin: The ray origin.
        direction: The ray direction (normalized).

    Returns:
        A tuple ``(hit, t0, t1)``: hit is 1 on intersection, 0 otherwise;
        ``t0 <= t1`` are the entry and exit distances (0 on a miss).
    """
    hit = 0
    t0 = 0.0
    t1 = 0.0
    to_center = sphere.center - origin
    tca = dot(to_center, direction)
    if tca >= 0.0:
        d2 = dot(to_center, to_center) - tca * tca
        if d2 <= sphere.radius2:
            thc = ti.sqrt(sphere.radius2 - d2)
            t0 = tca - thc
            t1 = tca + thc
            hit = 1
    return hit, t0, t1


@ti.func
def sphere_color(sphere: Sphere, point: vec3) -> vec3:
    """Surface color of a sphere at a point on its surface.

    Untextured spheres return their flat surface color. Textured spheres
    use a longitude/latitude projection of the point around the center:
    ``u = atan2(z, x) / 2pi + 0.5`` and ``v = acos(y / radius) / pi``,
    sampled nearest-neighbour.
    """
    color = sphere.surface_color
    if sphere.texture_offset != NO_TEXTURE:
        local = point - sphere.center
        u = ti.atan2(local.z, local.x) / (2.0 * tm.pi) + 0.5
        # Round-off can push |y| slightly past the radius
        v = ti.acos(tm.clamp(local.y / sphere.radius, -1.0, 1.0)) / tm.pi
        column, row = texel_coords(u, v, sphere.texture_width, sphere.texture_height)
        color = sample_texture(sphere.texture_offset, sphere.texture_width, column, row)
    return color
