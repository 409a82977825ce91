"""Preview module: image export and Matplotlib preview.

Example:
    >>> from whitted.preview import save_ppm, show_preview
    >>> save_ppm(renderer.get_image_numpy(), "untitled.ppm")
    >>> show_preview(renderer)
"""

from whitted.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_reinhard,
)
from whitted.preview.export import image_to_uint8, save_image, save_ppm

__all__ = [
    # Display functions
    "show_preview",
    "tone_map_reinhard",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_ppm",
    "save_image",
    "image_to_uint8",
]
