"""Camera module: the pinhole camera that generates primary rays."""

from .pinhole import PinholeCamera, get_camera_info, primary_ray, setup_camera

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "primary_ray",
    "get_camera_info",
]
