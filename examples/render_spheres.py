#!/usr/bin/env python3
"""Render a small hand-built scene in all three render modes.

This script builds a scene with SceneBuilder (no scene file), then renders
depth, normal and full light-transport images of it.

Usage:
    python examples/render_spheres.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 320)
    --height HEIGHT     Image height in pixels (default: 240)
    --depth DEPTH       Recursion depth for full mode (default: 6)
    --output-dir DIR    Directory for the PNG files (default: .)
    --quiet             Suppress progress output

Example:
    python examples/render_spheres.py --width 640 --height 480
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a hand-built sphere scene in depth, normal and full mode.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=320,
        help="Image width in pixels (default: 320)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=240,
        help="Image height in pixels (default: 240)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=6,
        help="Recursion depth for full mode (default: 6)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the PNG files (default: .)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def build_scene():
    """Build a floor, a mirror sphere, a glass sphere and two lights."""
    from rtracer.scene.builder import SceneBuilder

    builder = SceneBuilder()
    floor = builder.add_material(
        "floor",
        ambient_color=(0.05, 0.05, 0.05),
        diffuse_color=(0.6, 0.6, 0.6),
        specular_color=(0.1, 0.1, 0.1),
        specular_exponent=10.0,
        albedo=(1.0, 0.2, 0.0),
    )
    mirror = builder.add_material(
        "mirror",
        diffuse_color=(0.1, 0.1, 0.1),
        specular_color=(0.8, 0.8, 0.8),
        specular_exponent=500.0,
        albedo=(0.2, 0.8, 0.0),
    )
    glass = builder.add_material(
        "glass",
        specular_color=(0.5, 0.5, 0.5),
        specular_exponent=125.0,
        refraction_index=1.5,
        albedo=(0.0, 0.1, 0.9),
    )

    builder.add_polygon(
        [(-4.0, -0.5, -4.0), (-4.0, -0.5, 4.0), (4.0, -0.5, 4.0), (4.0, -0.5, -4.0)],
        floor,
    )
    builder.add_sphere((-0.8, 0.5, -1.5), 1.0, mirror)
    builder.add_sphere((0.9, 0.2, 0.0), 0.7, glass)
    builder.add_light((0.0, 4.0, 2.0), (0.8, 0.8, 0.8))
    builder.add_light((-3.0, 2.0, 1.0), (0.3, 0.3, 0.4))
    return builder.build()


def render_all_modes(
    width: int = 320,
    height: int = 240,
    depth: int = 6,
    output_dir: Path = Path("."),
    quiet: bool = False,
) -> list[Path]:
    """Render the scene in every mode and save one PNG per mode.

    Returns:
        Paths of the saved images.
    """
    # Lazy imports to allow Taichi initialization first
    from rtracer.camera.pinhole import CameraOptions
    from rtracer.core.renderer import RenderMode, RenderOptions, Renderer

    scene = build_scene()
    camera = CameraOptions(
        screen_width=width,
        screen_height=height,
        look_from=(0.0, 1.0, 4.0),
        look_to=(0.0, 0.3, 0.0),
    )

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            print(f"\r  Progress: {done}/{total} rows", end="", flush=True)

    outputs = []
    for mode in RenderMode:
        renderer = Renderer(scene, camera, RenderOptions(mode=mode, depth=depth))
        if not quiet:
            print(f"Rendering {mode.name.lower()} ({width}x{height})...")
        renderer.render(callback=progress_callback)
        if not quiet:
            print()  # Newline after progress

        output_file = output_dir / f"spheres_{mode.name.lower()}.png"
        renderer.save_image(str(output_file))
        if not quiet:
            print(f"Saved to: {output_file.absolute()}")
        outputs.append(output_file)

    return outputs


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    ti.init(arch=ti.cpu)

    try:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        render_all_modes(
            width=args.width,
            height=args.height,
            depth=args.depth,
            output_dir=args.output_dir,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
