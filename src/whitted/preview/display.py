"""Matplotlib-based preview of a finished render.

The renderer's output is unclamped. Escaped rays carry the background value
2.0, so images are clamped for display, and optionally gamma encoded or
tone mapped first.

Example:
    >>> from whitted.preview.display import show_preview
    >>> from whitted.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(640, 480)
    >>> renderer.render()
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from whitted.core.renderer import Renderer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard"]


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: c / (1 + c), after dropping negatives."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Clamp to [0, 1] and gamma encode: out = in^(1/gamma).

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    image = np.clip(image, 0.0, 1.0)
    if gamma == 1.0:
        return image.astype(np.float32)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Turn a raw render into an image displayable in [0, 1].

    Args:
        image: Raw image array of shape (H, W, 3).
        tone_map: "none" clamps bright values; "reinhard" compresses them.
        gamma: Gamma value; 1.0 (the default) matches the file writer.

    Returns:
        Processed image in [0, 1].

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    result = image.copy()
    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    return apply_gamma(result, gamma)


def show_preview(
    source: Renderer | npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a render in a Matplotlib figure.

    Args:
        source: A Renderer, or a raw (H, W, 3) image array.
        tone_map: Tone mapping method ("none" or "reinhard").
        gamma: Gamma correction value.
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    image = source if isinstance(source, np.ndarray) else source.get_image_numpy()
    display_image = process_image_for_display(image, tone_map=tone_map, gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        height, width = display_image.shape[:2]
        title = f"Render Preview - {width}x{height}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
