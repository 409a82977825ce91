#!/usr/bin/env python3
"""Render the demo sphere scene.

This script builds the demo scene, renders it with the Whitted ray tracer
and writes the result as a binary PPM (or any format Pillow knows, by
extension).

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --fov DEGREES       Vertical field of view (default: 30)
    --max-depth DEPTH   Reflection/refraction recursion budget (default: 5)
    --texture PATH      PPM texture for the center sphere (default: none)
    --output OUTPUT     Output file path (default: untitled.ppm)
    --cpu               Force the CPU backend
    --quiet             Suppress progress output

Example:
    python examples/render_spheres.py --texture angad_texture.ppm --output spheres.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument(
        "--fov", type=float, default=30.0, help="Vertical field of view in degrees (default: 30)"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=5,
        help="Reflection/refraction recursion budget (default: 5)",
    )
    parser.add_argument(
        "--texture",
        type=str,
        default=None,
        help="PPM texture for the center sphere (default: none)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="untitled.ppm",
        help="Output file path (default: untitled.ppm)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_spheres(
    width: int = 640,
    height: int = 480,
    fov: float = 30.0,
    max_depth: int = 5,
    texture_path: str | None = None,
    output_path: str = "untitled.ppm",
    quiet: bool = False,
) -> Path:
    """Render the demo scene and save it to a file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.core.renderer import RenderSettings, render_scene
    from whitted.preview.export import save_image
    from whitted.scene.default_scene import create_default_scene

    if not quiet:
        print(f"Creating sphere scene ({width}x{height})...")

    create_default_scene(texture_path=texture_path)
    settings = RenderSettings(
        width=width, height=height, fov=fov, max_depth=max_depth, output=output_path
    )

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            print(f"\r  Progress: {done}/{total} rows ({done / total * 100:.1f}%)", end="", flush=True)

    renderer = render_scene(settings, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(settings.output)
    save_image(renderer.get_image_numpy(), output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        # Use GPU if available, fall back to CPU
        try:
            ti.init(arch=ti.gpu)
        except Exception:
            ti.init(arch=ti.cpu)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            fov=args.fov,
            max_depth=args.max_depth,
            texture_path=args.texture,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
