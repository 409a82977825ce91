"""Scene module: sphere storage, ray queries and scene building.

Components:
    intersection: Sphere fields, nearest-hit search and shadow queries
    manager: Validated scene building and (de)serialization
    default_scene: The demo scene of five spheres and one light
"""

from .default_scene import create_default_scene
from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    find_nearest,
    get_sphere,
    get_sphere_count,
    is_occluded,
)
from .manager import SceneConfig, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "get_sphere",
    "find_nearest",
    "is_occluded",
    # Manager module
    "SceneManager",
    "SceneConfig",
    "SphereInfo",
    # Default scene
    "create_default_scene",
]
