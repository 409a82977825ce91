"""The demo scene: five spheres lit by one emissive sphere.

The scene has these spheres, in this order:
- A huge grey sphere (radius 10000) whose top acts as the ground plane.
- A large red glass-and-mirror sphere in the middle. It is reflective and
  half transparent, and is optionally wrapped in a texture.
- Three mirror spheres in gold, light blue and white.
- A small black sphere high above the others that emits light. It is the
  scene's only light source.

The camera sits at the origin looking down -z with a 30 degree field of view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.scene.default_scene import create_default_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene(texture_path="angad_texture.ppm")
    >>> setup_camera(camera)
"""

from pathlib import Path

from whitted.camera.pinhole import PinholeCamera
from whitted.scene.manager import SceneManager

# Light position and strength
LIGHT_CENTER = (0.0, 20.0, -30.0)
LIGHT_EMISSION = (3.0, 3.0, 3.0)

# Center sphere (the one that may carry a texture)
CENTER_SPHERE = (0.0, 0.0, -20.0)
CENTER_RADIUS = 4.0


def create_default_scene(
    texture_path: str | Path | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Build the demo scene.

    Args:
        texture_path: Optional PPM texture for the center sphere.

    Returns:
        A tuple of (scene, camera).

    Raises:
        FileNotFoundError: If texture_path does not exist.
        ValueError: If texture_path is not a binary PPM file.
    """
    scene = SceneManager()

    # Ground
    scene.add_sphere((0.0, -10004.0, -20.0), 10000.0, (0.20, 0.20, 0.20))

    scene.add_sphere(
        CENTER_SPHERE,
        CENTER_RADIUS,
        (1.00, 0.32, 0.36),
        reflectivity=1.0,
        transparency=0.5,
        texture_path=texture_path,
    )
    scene.add_sphere((5.0, -1.0, -15.0), 2.0, (0.90, 0.76, 0.46), reflectivity=1.0)
    scene.add_sphere((5.0, 0.0, -25.0), 3.0, (0.65, 0.77, 0.97), reflectivity=1.0)
    scene.add_sphere((-5.5, 0.0, -15.0), 3.0, (0.90, 0.90, 0.90), reflectivity=1.0)

    # Light
    scene.add_sphere(LIGHT_CENTER, 3.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

    camera = PinholeCamera(fov=30.0, origin=(0.0, 0.0, 0.0))

    return scene, camera
