"""Sphere textures: loading, storage and nearest-neighbour lookup.

Every texture in the scene is packed into one flat texel atlas so that
Taichi kernels can sample it without per-texture fields. A texture is
addressed by its offset into the atlas plus its width and height; texels
are stored row-major with row 0 at the top of the source image, matching
``texture[row][column]`` indexing.

Textures are read from binary ``P6`` PPM files. Pixel values are divided
by 255 regardless of the file's declared maximum value.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.materials.texture import add_texture, load_texture
    >>> pixels = load_texture("checker.ppm")
    >>> offset = add_texture(pixels)
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Magic number of binary full-color PPM files
PPM_MAGIC = b"P6"

# Total texel capacity shared by all textures
MAX_TEXELS = 1 << 21

texels = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXELS)
num_texels = ti.field(dtype=ti.i32, shape=())


def load_texture(filepath: str | Path) -> npt.NDArray[np.float32]:
    """Decode a binary PPM file into an array of normalized colors.

    Args:
        filepath: Path to a ``P6`` PPM image.

    Returns:
        Array of shape (height, width, 3), dtype float32, values in [0, 1].

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not start with the ``P6`` magic number.
    """
    path = Path(filepath)
    with path.open("rb") as f:
        magic = f.read(len(PPM_MAGIC))
    if magic != PPM_MAGIC:
        raise ValueError(f"Invalid PPM file format: {path} (expected {PPM_MAGIC!r} header)")

    with PILImage.open(path) as image:
        rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)

    pixels = rgb.astype(np.float32) / 255.0
    logger.debug("Loaded texture %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return pixels


@ti.kernel
def _upload_texels(offset: ti.i32, data: ti.types.ndarray()):
    for i in range(data.shape[0]):
        texels[offset + i] = vec3(data[i, 0], data[i, 1], data[i, 2])


def add_texture(pixels: npt.NDArray[np.floating]) -> int:
    """Copy a texture into the texel atlas.

    Args:
        pixels: Array of shape (height, width, 3) with colors in [0, 1].

    Returns:
        The atlas offset of the texture's first texel.

    Raises:
        ValueError: If the array is not a non-empty (H, W, 3) image.
        RuntimeError: If the atlas has no room for the texture.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Texture must have shape (height, width, 3), got {pixels.shape}")
    height, width = pixels.shape[0], pixels.shape[1]
    if width == 0 or height == 0:
        raise ValueError("Texture must not be empty")

    offset = int(num_texels[None])
    count = width * height
    if offset + count > MAX_TEXELS:
        raise RuntimeError(f"Texture atlas capacity ({MAX_TEXELS} texels) exceeded")

    flat = np.ascontiguousarray(pixels.reshape(count, 3), dtype=np.float32)
    _upload_texels(offset, flat)
    num_texels[None] = offset + count
    return offset


def clear_textures() -> None:
    """Forget all uploaded textures."""
    num_texels[None] = 0


def get_texel_count() -> int:
    """Get the number of texels currently stored in the atlas."""
    return int(num_texels[None])


@ti.func
def texel_coords(u: ti.f32, v: ti.f32, width: ti.i32, height: ti.i32):
    """Map texture coordinates to integer texel indices.

    Indices are truncated and then clamped into the texture, so coordinates
    outside [0, 1] land on the nearest edge texel instead of wrapping.

    Returns:
        A tuple ``(column, row)`` within ``[0, width) x [0, height)``.
    """
    column = ti.min(width - 1, ti.max(0, ti.cast(u * width, ti.i32)))
    row = ti.min(height - 1, ti.max(0, ti.cast(v * height, ti.i32)))
    return column, row


@ti.func
def sample_texture(offset: ti.i32, width: ti.i32, column: ti.i32, row: ti.i32) -> vec3:
    """Fetch the texel at (column, row) of the texture starting at offset."""
    return texels[offset + row * width + column]
