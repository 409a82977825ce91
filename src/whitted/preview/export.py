"""Image export for rendered pixel buffers.

Each channel is clamped to [0, 1] and quantized to 8 bits by truncation
(``int(c * 255)``), with no tone mapping or gamma, and then written with
Pillow.

Supported formats:
    - PPM (binary P6), the renderer's native output
    - Any other format Pillow can write, chosen by file extension (PNG, ...)

Example:
    >>> from whitted.preview.export import save_ppm
    >>> from whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(640, 480)
    >>> renderer.render()
    >>> save_ppm(renderer.get_image_numpy(), "untitled.ppm")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Clamp a float image to [0, 1] and quantize it to 8 bits.

    Args:
        image: Image array of shape (H, W, 3); values may lie outside [0, 1].

    Returns:
        Array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array is not an (H, W, 3) image.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Image must have shape (height, width, 3), got {image.shape}")

    clamped = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    return (clamped * 255).astype(np.uint8)


def save_ppm(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write an image as a binary (P6) PPM file.

    Args:
        image: Image array of shape (H, W, 3).
        filepath: Output file path.
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath, format="PPM")


def save_image(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write an image in the format implied by the file extension.

    ``.ppm`` files go through save_ppm; other extensions are handed to
    Pillow as-is.

    Args:
        image: Image array of shape (H, W, 3).
        filepath: Output file path (e.g. "render.ppm" or "render.png").
    """
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(image, filepath)
        return

    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)
