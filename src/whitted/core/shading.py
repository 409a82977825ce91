"""Whitted-style shading engine for scenes of spheres.

``trace`` returns the color seen along a ray:

- Rays that hit nothing return the background color (2, 2, 2). It is
  deliberately outside [0, 1] and saturates to white on output.
- Reflective or transparent surfaces, while the depth budget lasts, blend a
  mirrored ray and a refracted ray with a cheap Fresnel term, then tint the
  blend by the surface color.
- All other surfaces sum the Lambertian contribution of every emissive
  sphere. Any other sphere on the shadow ray blocks the light completely.
- The hit sphere's own emission is always added on top.

Taichi functions cannot recurse. Because the reflect/refract combination is
linear in the secondary ray colors, the recursion is unrolled into a
depth-first work stack of pending rays, each carrying the product of the
weights above it. Every parallel invocation owns one stack lane, so
concurrent traces never share scratch memory.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.manager import SceneManager
    >>> from whitted.core.shading import trace_ray
    >>> scene = SceneManager()
    >>> scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.0, 0.32, 0.36))
    0
    >>> trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
    (2.0, 2.0, 2.0)
"""

import math

import taichi as ti
import taichi.math as tm

from whitted.core.vector import dot, mix, normalize, reflect, refract
from whitted.geometry.sphere import Sphere, sphere_color
from whitted.scene.intersection import find_nearest, get_sphere, is_occluded, num_spheres

vec3 = tm.vec3

# =============================================================================
# Shading Constants
# =============================================================================

# Default recursion budget for reflection/refraction rays
MAX_RAY_DEPTH = 5

# Offset along the normal for secondary ray origins
BIAS = 1e-4

# Index of refraction of every transparent sphere
IOR = 1.1

# Color returned for rays that escape the scene
BACKGROUND_COLOR = vec3(2.0, 2.0, 2.0)

# Fresnel term: mix((1 - facing)^FRESNEL_EXPONENT, 1, FRESNEL_MIX)
FRESNEL_EXPONENT = 3
FRESNEL_MIX = 0.1

# =============================================================================
# Work Stack
# =============================================================================

# Number of independent stack lanes (one per concurrently traced pixel)
MAX_LANES = 2048

# Pending rays per lane; a trace never holds more than max_depth + 1
STACK_SIZE = 64

# Largest max_depth accepted by the host-side entry points
MAX_DEPTH_LIMIT = STACK_SIZE - 4

_stack_origins = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_LANES, STACK_SIZE))
_stack_directions = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_LANES, STACK_SIZE))
_stack_weights = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_LANES, STACK_SIZE))
_stack_depths = ti.field(dtype=ti.i32, shape=(MAX_LANES, STACK_SIZE))


def check_max_depth(max_depth: int) -> None:
    """Validate a recursion budget before launching a kernel.

    Raises:
        ValueError: If max_depth is negative or above MAX_DEPTH_LIMIT.
    """
    if max_depth < 0 or max_depth > MAX_DEPTH_LIMIT:
        raise ValueError(f"max_depth must be in [0, {MAX_DEPTH_LIMIT}], got {max_depth}")


@ti.func
def _push(lane: ti.i32, top: ti.i32, origin: vec3, direction: vec3, weight: vec3, depth: ti.i32):
    _stack_origins[lane, top] = origin
    _stack_directions[lane, top] = direction
    _stack_weights[lane, top] = weight
    _stack_depths[lane, top] = depth


@ti.func
def fresnel_factor(direction: vec3, normal: vec3) -> ti.f32:
    """Reflection weight for a ray meeting a surface.

    Rises from 0.1 when the ray hits head-on to 1.0 at grazing incidence.
    """
    facing_ratio = -dot(direction, normal)
    return mix((1.0 - facing_ratio) ** FRESNEL_EXPONENT, 1.0, FRESNEL_MIX)


@ti.func
def shade_direct(sphere: Sphere, hit_point: vec3, normal: vec3) -> vec3:
    """Direct illumination of a surface point by every emissive sphere.

    Args:
        sphere: The sphere that was hit.
        hit_point: The point on its surface.
        normal: The surface normal, facing the incoming ray.

    Returns:
        The sum over lights of
        ``color * transmission * max(0, N . L) * light.emission_color``.
        There is no distance falloff.
    """
    surface_color = vec3(0.0, 0.0, 0.0)
    albedo = sphere_color(sphere, hit_point)
    shadow_origin = hit_point + normal * BIAS
    for i in range(num_spheres[None]):
        light = get_sphere(i)
        if light.emission_color.x > 0.0:
            light_direction = normalize(light.center - hit_point)
            transmission = 1.0
            if is_occluded(shadow_origin, light_direction, i) == 1:
                transmission = 0.0
            cos_theta = ti.max(0.0, dot(normal, light_direction))
            surface_color += albedo * transmission * cos_theta * light.emission_color
    return surface_color


@ti.func
def trace(origin: vec3, direction: vec3, max_depth: ti.i32, lane: ti.i32) -> vec3:
    """Compute the color seen along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized).
        max_depth: Reflection/refraction budget; surfaces reached at this
            depth are shaded with direct illumination only.
        lane: Stack lane owned by the caller, in [0, MAX_LANES).

    Returns:
        The ray's color. Channels are not clamped.
    """
    color = vec3(0.0, 0.0, 0.0)
    _push(lane, 0, origin, direction, vec3(1.0, 1.0, 1.0), 0)
    top = 1

    while top > 0:
        top -= 1
        ray_origin = _stack_origins[lane, top]
        ray_direction = _stack_directions[lane, top]
        weight = _stack_weights[lane, top]
        depth = _stack_depths[lane, top]

        nearest, t_near = find_nearest(ray_origin, ray_direction)
        if nearest < 0:
            color += weight * BACKGROUND_COLOR
        else:
            sphere = get_sphere(nearest)
            hit_point = ray_origin + ray_direction * t_near
            normal = normalize(hit_point - sphere.center)

            # Ray started inside the sphere: face the normal toward it
            inside = 0
            if dot(ray_direction, normal) > 0.0:
                normal = -normal
                inside = 1

            if (sphere.reflectivity > 0.0 or sphere.transparency > 0.0) and depth < max_depth:
                fresnel = fresnel_factor(ray_direction, normal)
                tint = weight * sphere_color(sphere, hit_point)
                reflect_direction = normalize(reflect(ray_direction, normal))
                reflect_weight = tint * fresnel

                if sphere.transparency > 0.0:
                    eta = 1.0 / IOR
                    if inside == 1:
                        eta = IOR
                    refract_direction, total_internal = refract(ray_direction, normal, eta)
                    refract_weight = tint * (1.0 - fresnel) * sphere.transparency
                    if total_internal == 1:
                        # No transmitted ray: its share goes to the reflection
                        reflect_weight += refract_weight
                    else:
                        _push(
                            lane,
                            top,
                            hit_point - normal * BIAS,
                            refract_direction,
                            refract_weight,
                            depth + 1,
                        )
                        top += 1

                _push(
                    lane,
                    top,
                    hit_point + normal * BIAS,
                    reflect_direction,
                    reflect_weight,
                    depth + 1,
                )
                top += 1
            else:
                color += weight * shade_direct(sphere, hit_point, normal)

            color += weight * sphere.emission_color

    return color


# =============================================================================
# Host-side Entry Point
# =============================================================================


@ti.kernel
def _trace_single(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
) -> vec3:
    return trace(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, 0)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_RAY_DEPTH,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene from Python.

    Intended for tests and debugging; whole images go through the renderer.

    Args:
        origin: The ray origin.
        direction: The ray direction; normalized before tracing.
        max_depth: Reflection/refraction budget.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        ValueError: If max_depth is out of range.
    """
    check_max_depth(max_depth)

    dx, dy, dz = direction
    norm = math.sqrt(dx * dx + dy * dy + dz * dz)
    if norm > 0.0:
        dx, dy, dz = dx / norm, dy / norm, dz / norm

    color = _trace_single(origin[0], origin[1], origin[2], dx, dy, dz, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))
