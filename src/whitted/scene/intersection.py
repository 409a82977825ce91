"""Scene sphere storage, nearest-hit search and shadow queries.

The scene is an ordered list of spheres kept in Taichi fields with a
Structure-of-Arrays layout. Insertion order is the iteration order of every
query: nearest-hit search keeps the first sphere found when two hits are
equidistant, and the occlusion test stops at the first blocker.

The fields are written from Python while building a scene and are read-only
while kernels run.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -20.0), 4.0, surface_color=(1.0, 0.32, 0.36))
    0
    >>> # Use find_nearest / is_occluded within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.geometry.sphere import NO_TEXTURE, Sphere, intersect_sphere

vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Distance reported when nothing is hit
T_INFINITY = 1e30

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_surface_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_emission_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_reflectivities = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_transparencies = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_texture_offsets = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_texture_widths = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_texture_heights = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Only the count is reset; stale field entries are overwritten by the
    next spheres added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    surface_color: tuple[float, float, float],
    reflectivity: float = 0.0,
    transparency: float = 0.0,
    emission_color: tuple[float, float, float] = (0.0, 0.0, 0.0),
    texture_offset: int = NO_TEXTURE,
    texture_width: int = 0,
    texture_height: int = 0,
) -> int:
    """Append a sphere to the scene.

    No validation is done here; see SceneManager.add_sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = int(num_spheres[None])
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = list(center)
    sphere_radii[idx] = radius
    sphere_surface_colors[idx] = list(surface_color)
    sphere_emission_colors[idx] = list(emission_color)
    sphere_reflectivities[idx] = reflectivity
    sphere_transparencies[idx] = transparency
    sphere_texture_offsets[idx] = texture_offset
    sphere_texture_widths[idx] = texture_width
    sphere_texture_heights[idx] = texture_height
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(i: ti.i32) -> Sphere:
    """Assemble the Sphere at index i from the scene fields."""
    radius = sphere_radii[i]
    return Sphere(
        center=sphere_centers[i],
        radius=radius,
        radius2=radius * radius,
        surface_color=sphere_surface_colors[i],
        emission_color=sphere_emission_colors[i],
        reflectivity=sphere_reflectivities[i],
        transparency=sphere_transparencies[i],
        texture_offset=sphere_texture_offsets[i],
        texture_width=sphere_texture_widths[i],
        texture_height=sphere_texture_heights[i],
    )


@ti.func
def find_nearest(origin: vec3, direction: vec3):
    """Find the closest sphere along a ray.

    For each intersected sphere the entry distance t0 is used, or the exit
    distance t1 when the origin is inside the sphere (t0 < 0). The strict
    comparison keeps the earliest sphere in scene order on ties.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized).

    Returns:
        A tuple ``(index, t)``: the index of the nearest sphere (-1 on a
        miss) and its distance along the ray (T_INFINITY on a miss).
    """
    nearest = -1
    t_near = T_INFINITY
    for i in range(num_spheres[None]):
        hit, t0, t1 = intersect_sphere(get_sphere(i), origin, direction)
        if hit == 1:
            t = t0
            if t < 0.0:
                t = t1
            if t < t_near:
                t_near = t
                nearest = i
    return nearest, t_near


@ti.func
def is_occluded(origin: vec3, direction: vec3, light_index: ti.i32) -> ti.i32:
    """Test whether any sphere other than the light blocks a shadow ray.

    Shadowing is binary: the first intersecting sphere settles the answer.
    Distance to the light is not considered.

    Args:
        origin: The shadow ray origin (offset off the surface).
        direction: Normalized direction toward the light's center.
        light_index: Scene index of the light, which never occludes itself.

    Returns:
        1 if the light is blocked, 0 otherwise.
    """
    occluded = 0
    # Taichi doesn't support break in ti.func loops
    for j in range(num_spheres[None]):
        if occluded == 0 and j != light_index:
            hit, _t0, _t1 = intersect_sphere(get_sphere(j), origin, direction)
            if hit == 1:
                occluded = 1
    return occluded
