"""Materials module: sphere textures.

Material coefficients (surface color, reflectivity, transparency, emission)
live on the spheres themselves; this package holds the texture atlas that
textured spheres sample from.
"""

from .texture import (
    MAX_TEXELS,
    add_texture,
    clear_textures,
    get_texel_count,
    load_texture,
    sample_texture,
    texel_coords,
)

__all__ = [
    "MAX_TEXELS",
    "load_texture",
    "add_texture",
    "clear_textures",
    "get_texel_count",
    "sample_texture",
    "texel_coords",
]
