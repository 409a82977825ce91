"""Pinhole camera generating one primary ray per pixel.

The camera sits at a fixed origin looking down the -z axis with +y up. Pixel
(x, y) is mapped to normalized device coordinates through its center, scaled
by ``tan(fov / 2)`` (and by the aspect ratio horizontally), and the ray
direction is the normalized vector ``(xx, yy, -1)``. Row 0 is the top row of
the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import PinholeCamera, setup_camera
    >>> setup_camera(PinholeCamera(fov=30.0))
    >>> # Use primary_ray(x, y, width, height) within a Taichi kernel
"""

import math
from dataclasses import dataclass

import taichi as ti

from whitted.core.vector import Ray, make_ray, normalize, vec3


@dataclass
class PinholeCamera:
    """Configuration for the pinhole camera.

    Attributes:
        fov: Vertical field of view in degrees.
        origin: Camera position in world space.
    """

    fov: float = 30.0
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)


# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# tan(fov / 2), the half-height of the image plane at unit distance
_camera_angle = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> None:
    """Store the camera configuration for use in kernels.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the field of view is not in (0, 180) degrees.
    """
    if not 0.0 < camera.fov < 180.0:
        raise ValueError(f"Field of view must be in (0, 180) degrees, got {camera.fov}")

    _camera_origin[None] = list(camera.origin)
    _camera_angle[None] = math.tan(math.pi * 0.5 * camera.fov / 180.0)


@ti.func
def primary_ray(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the ray through the center of pixel (x, y).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera origin with a normalized direction.
    """
    inv_width = 1.0 / ti.cast(width, ti.f32)
    inv_height = 1.0 / ti.cast(height, ti.f32)
    aspect_ratio = ti.cast(width, ti.f32) / ti.cast(height, ti.f32)
    angle = _camera_angle[None]

    xx = (2.0 * ((ti.cast(x, ti.f32) + 0.5) * inv_width) - 1.0) * angle * aspect_ratio
    yy = (1.0 - 2.0 * ((ti.cast(y, ti.f32) + 0.5) * inv_height)) * angle
    direction = normalize(vec3(xx, yy, -1.0))

    return make_ray(_camera_origin[None], direction)


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get the current camera state for debugging.

    Returns:
        Dictionary with the camera origin and the tan(fov / 2) scale.
    """
    origin_vec = _camera_origin[None]
    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "angle": float(_camera_angle[None]),
    }
