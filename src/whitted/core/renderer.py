"""Image synthesis driver: primary rays in, pixel buffer out.

For every pixel the driver builds the pinhole camera's primary ray, traces
it through the scene and stores the color in a pixel buffer owned by this
module. The shading engine never touches the buffer; it only returns a
color per call.

Rendering proceeds one scanline per kernel launch. Within a row every pixel
is traced in parallel, each with its own work-stack lane (its column), so
concurrent traces share nothing but the read-only scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import PinholeCamera, setup_camera
    >>> from whitted.core.renderer import Renderer
    >>> from whitted.scene.default_scene import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> renderer = Renderer(640, 480)
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()  # (480, 640, 3), unclamped
"""

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import PinholeCamera, primary_ray, setup_camera
from whitted.core.shading import MAX_LANES, MAX_RAY_DEPTH, check_max_depth, trace

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Callback receives (rows_rendered, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Configuration for a complete render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in degrees.
        max_depth: Reflection/refraction recursion budget.
        output: Output image path.
    """

    width: int = 640
    height: int = 480
    fov: float = 30.0
    max_depth: int = MAX_RAY_DEPTH
    output: str = "untitled.ppm"


# =============================================================================
# Render Target (Pixel Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation).
# A row is traced in parallel with one stack lane per column.
MAX_IMAGE_WIDTH = MAX_LANES
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the pixel buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Reset every pixel of the buffer to black."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_row(row: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32):
    for x in range(width):
        ray = primary_ray(x, row, width, height)
        _color_buffer[x, row] = trace(ray.origin, ray.direction, max_depth, x)


@ti.kernel
def _render_single_pixel(
    x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
) -> vec3:
    ray = primary_ray(x, y, width, height)
    return trace(ray.origin, ray.direction, max_depth, 0)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(start: int, stop: int, max_depth: int = MAX_RAY_DEPTH) -> None:
    """Render the scanlines in [start, stop) into the pixel buffer.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range or max_depth is out of bounds.
    """
    _check_render_target_initialized()
    check_max_depth(max_depth)

    width, height = get_image_dimensions()
    if not 0 <= start <= stop <= height:
        raise ValueError(f"Row range [{start}, {stop}) outside image of height {height}")

    for row in range(start, stop):
        _render_row(row, width, height, max_depth)


def render_image(max_depth: int = MAX_RAY_DEPTH) -> None:
    """Render every scanline of the image.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If max_depth is out of range.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, max_depth)


def render_pixel(x: int, y: int, max_depth: int = MAX_RAY_DEPTH) -> tuple[float, float, float]:
    """Trace the primary ray of a single pixel without touching the buffer.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        max_depth: Reflection/refraction recursion budget.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the pixel lies outside the image or max_depth is out of range.
    """
    _check_render_target_initialized()
    check_max_depth(max_depth)

    width, height = get_image_dimensions()
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"Pixel ({x}, {y}) outside image of size {width}x{height}")

    color = _render_single_pixel(x, y, width, height, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Copy the rendered image out of the pixel buffer.

    Returns:
        Array of shape (height, width, 3), dtype float32, row 0 at the top.
        Values are not clamped; rays that escape the scene read 2.0.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()

    # Buffer is indexed [x, y]; images are [row, column]
    image = np.transpose(full_image[:width, :height, :], (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)


# =============================================================================
# Renderer
# =============================================================================


class Renderer:
    """Scanline renderer wrapping the pixel buffer.

    The renderer owns the active image size and drives rendering in batches
    of rows so that callers can report progress.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the renderer and its pixel buffer.

        Raises:
            ValueError: If the dimensions are out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self._rows_rendered = 0

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def rows_rendered(self) -> int:
        """Number of scanlines completed by the last render."""
        return self._rows_rendered

    def reset(self) -> None:
        """Clear the pixel buffer without changing its size."""
        setup_render_target(self._width, self._height)
        self._rows_rendered = 0

    def render(
        self,
        max_depth: int = MAX_RAY_DEPTH,
        rows_per_batch: int = 16,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render the whole image.

        Args:
            max_depth: Reflection/refraction recursion budget.
            rows_per_batch: Scanlines rendered between callbacks.
            callback: Optional function called after each batch with
                (rows_rendered, total_rows).

        Example:
            >>> def progress(done, total):
            ...     print(f"{done}/{total} rows")
            >>> renderer.render(callback=progress)
        """
        for done, total in self.render_progressive(max_depth, rows_per_batch):
            if callback is not None:
                callback(done, total)

    def render_progressive(
        self,
        max_depth: int = MAX_RAY_DEPTH,
        rows_per_batch: int = 16,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each batch of rows.

        Yields:
            Tuple of (rows_rendered, total_rows).

        Raises:
            ValueError: If rows_per_batch is not positive or max_depth is out of range.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")
        check_max_depth(max_depth)

        # The module-level buffer may have been resized by another renderer
        setup_render_target(self._width, self._height)
        self._rows_rendered = 0

        start_time = time.perf_counter()
        while self._rows_rendered < self._height:
            stop = min(self._rows_rendered + rows_per_batch, self._height)
            render_rows(self._rows_rendered, stop, max_depth)
            self._rows_rendered = stop
            yield (self._rows_rendered, self._height)

        logger.info(
            "Rendered %dx%d (max depth %d) in %.2fs",
            self._width,
            self._height,
            max_depth,
            time.perf_counter() - start_time,
        )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image as an unclamped (height, width, 3) array."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image clamped and quantized to 8 bits."""
        from whitted.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the rendered image; the format follows the file extension."""
        from whitted.preview.export import save_image

        save_image(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"rows_rendered={self.rows_rendered})"
        )


def render_scene(settings: RenderSettings, callback: ProgressCallback | None = None) -> Renderer:
    """Point the camera per the settings and render the current scene.

    Args:
        settings: Image size, field of view and recursion budget.
        callback: Optional progress callback, see Renderer.render.

    Returns:
        The Renderer holding the finished image.
    """
    setup_camera(PinholeCamera(fov=settings.fov))
    renderer = Renderer(settings.width, settings.height)
    renderer.render(max_depth=settings.max_depth, callback=callback)
    return renderer
