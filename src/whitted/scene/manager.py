"""Scene manager: validated scene building on top of the sphere fields.

The SceneManager is the host-side view of the scene. It validates sphere
parameters, loads and uploads textures, writes spheres into the Taichi
fields used by the shading engine, and keeps a Python-side record of every
sphere so scenes can be exported to and rebuilt from plain configuration.

Spheres are immutable once added; the only way to change a scene is to
clear it and build it again.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0.0, -10004.0, -20.0), 10000.0, (0.2, 0.2, 0.2))
    0
    >>> scene.add_sphere((0.0, 20.0, -30.0), 3.0, (0.0, 0.0, 0.0), emission_color=(3.0, 3.0, 3.0))
    1
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from whitted.geometry.sphere import NO_TEXTURE
from whitted.materials.texture import add_texture, clear_textures, load_texture
from whitted.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        surface_color: The flat surface color.
        reflectivity: Reflection coefficient in [0, 1].
        transparency: Transmission coefficient in [0, 1].
        emission_color: The emitted color.
        texture_path: Source file of the texture, if loaded from disk.
        texture_size: (width, height) of the texture, or None.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    surface_color: tuple[float, float, float]
    reflectivity: float = 0.0
    transparency: float = 0.0
    emission_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    texture_path: str | None = None
    texture_size: tuple[int, int] | None = None

    @property
    def is_light(self) -> bool:
        """Whether the shading engine treats this sphere as a light."""
        return self.emission_color[0] > 0.0


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        spheres: List of sphere configurations.
    """

    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _check_coefficient(value: float, name: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


class SceneManager:
    """Builds and describes the scene's ordered list of spheres.

    Attributes:
        spheres: List of SphereInfo for all spheres, in scene order.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((5.0, -1.0, -15.0), 2.0, (0.90, 0.76, 0.46), reflectivity=1.0)
        0
        >>> scene.add_sphere(
        ...     (0.0, 0.0, -20.0), 4.0, (1.0, 0.32, 0.36),
        ...     reflectivity=1.0, transparency=0.5, texture_path="earth.ppm",
        ... )
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_textures()
        self.spheres.clear()

    def clear(self) -> None:
        """Remove all spheres and textures."""
        self._clear_all()

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        surface_color: tuple[float, float, float],
        reflectivity: float = 0.0,
        transparency: float = 0.0,
        emission_color: tuple[float, float, float] = (0.0, 0.0, 0.0),
        texture_path: str | Path | None = None,
        texture: npt.NDArray[np.floating] | None = None,
    ) -> int:
        """Add a sphere to the end of the scene.

        Args:
            center: The center point as (x, y, z).
            radius: The radius (must be positive).
            surface_color: Flat color as (R, G, B); not clamped.
            reflectivity: Reflection coefficient in [0, 1].
            transparency: Transmission coefficient in [0, 1].
            emission_color: Emitted color; a positive R channel makes the
                sphere a light source.
            texture_path: Optional PPM file to wrap around the sphere.
            texture: Optional (H, W, 3) texture array, as an alternative
                to texture_path.

        Returns:
            The index of the added sphere.

        Raises:
            ValueError: If a parameter is out of range, or both texture
                sources are given.
            FileNotFoundError: If texture_path does not exist.
            RuntimeError: If sphere or texture capacity is exceeded.
        """
        center = _as_triple(center, "center")
        surface_color = _as_triple(surface_color, "surface_color")
        emission_color = _as_triple(emission_color, "emission_color")
        if not radius > 0.0:
            raise ValueError(f"radius must be positive, got {radius}")
        _check_coefficient(reflectivity, "reflectivity")
        _check_coefficient(transparency, "transparency")
        if texture_path is not None and texture is not None:
            raise ValueError("Pass either texture_path or texture, not both")
        if get_sphere_count() >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        if texture_path is not None:
            texture = load_texture(texture_path)

        texture_offset = NO_TEXTURE
        texture_size = None
        if texture is not None:
            texture_offset = add_texture(texture)
            texture_size = (int(texture.shape[1]), int(texture.shape[0]))

        sphere_index = add_sphere(
            center,
            radius,
            surface_color,
            reflectivity=reflectivity,
            transparency=transparency,
            emission_color=emission_color,
            texture_offset=texture_offset,
            texture_width=texture_size[0] if texture_size else 0,
            texture_height=texture_size[1] if texture_size else 0,
        )

        info = SphereInfo(
            sphere_index=sphere_index,
            center=center,
            radius=float(radius),
            surface_color=surface_color,
            reflectivity=float(reflectivity),
            transparency=float(transparency),
            emission_color=emission_color,
            texture_path=str(texture_path) if texture_path is not None else None,
            texture_size=texture_size,
        )
        self.spheres.append(info)
        logger.debug("Added sphere %d at %s (r=%g)", sphere_index, center, radius)

        return sphere_index

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_sphere_info(self, sphere_index: int) -> SphereInfo | None:
        """Get information about a sphere by index, or None if not found."""
        if 0 <= sphere_index < len(self.spheres):
            return self.spheres[sphere_index]
        return None

    def get_lights(self) -> list[SphereInfo]:
        """Get the spheres acting as light sources, in scene order."""
        return [sphere for sphere in self.spheres if sphere.is_light]

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Spheres whose texture was passed as an array, rather than loaded
        from a file, are exported untextured.
        """
        config = SceneConfig()
        for sphere in self.spheres:
            sphere_config: dict[str, Any] = {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "surface_color": list(sphere.surface_color),
                "reflectivity": sphere.reflectivity,
                "transparency": sphere.transparency,
                "emission_color": list(sphere.emission_color),
            }
            if sphere.texture_path is not None:
                sphere_config["texture_path"] = sphere.texture_path
            config.spheres.append(sphere_config)
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the one described by a configuration.

        Raises:
            ValueError: If a sphere configuration is invalid.
        """
        for sphere_config in config.spheres:
            if "center" not in sphere_config or "radius" not in sphere_config:
                raise ValueError(f"Sphere configuration needs center and radius: {sphere_config}")

        self.clear()
        for sphere_config in config.spheres:
            self.add_sphere(
                sphere_config["center"],
                sphere_config["radius"],
                sphere_config.get("surface_color", [0.5, 0.5, 0.5]),
                reflectivity=sphere_config.get("reflectivity", 0.0),
                transparency=sphere_config.get("transparency", 0.0),
                emission_color=sphere_config.get("emission_color", [0.0, 0.0, 0.0]),
                texture_path=sphere_config.get("texture_path"),
            )
        logger.info("Loaded scene with %d spheres", len(self.spheres))

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {"spheres": self.to_config().spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with a 'spheres' key."""
        self.from_config(SceneConfig(spheres=data.get("spheres", [])))

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
