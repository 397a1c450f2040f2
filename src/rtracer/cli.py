"""Command-line entry point: render a scene file to a PNG image.

Usage:
    rtracer SCENE.obj [options]
    python -m rtracer SCENE.obj [options]

Options:
    --width WIDTH         Image width in pixels (default: 640)
    --height HEIGHT       Image height in pixels (default: 480)
    --fov DEGREES         Field of view in degrees (default: 90)
    --look-from X Y Z     Camera position (default: 0 0 0)
    --look-to X Y Z       Point the camera looks at (default: 0 0 -1)
    --depth DEPTH         Recursion depth for full mode, 0 to 16 (default: 4)
    --mode MODE           depth, normal or full (default: full)
    --output OUTPUT       Output file path (default: render.png)
    --arch ARCH           Taichi backend, cpu or gpu (default: cpu)
    --show                Show the result in a Matplotlib window
    --quiet               Suppress progress output
    --verbose             Enable debug logging

Example:
    rtracer examples/scenes/spheres.obj --width 320 --height 240 --depth 6
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="rtracer",
        description="Render a Wavefront-style scene with a Whitted-style ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("scene", type=Path, help="Scene file (.obj)")
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--fov",
        type=float,
        default=90.0,
        help="Field of view in degrees (default: 90)",
    )
    parser.add_argument(
        "--look-from",
        type=float,
        nargs=3,
        default=(0.0, 0.0, 0.0),
        metavar=("X", "Y", "Z"),
        help="Camera position (default: 0 0 0)",
    )
    parser.add_argument(
        "--look-to",
        type=float,
        nargs=3,
        default=(0.0, 0.0, -1.0),
        metavar=("X", "Y", "Z"),
        help="Point the camera looks at (default: 0 0 -1)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=4,
        help="Recursion depth for full mode, 0 to 16 (default: 4)",
    )
    parser.add_argument(
        "--mode",
        choices=("depth", "normal", "full"),
        default="full",
        help="What the image encodes (default: full)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> Path:
    """Load the scene, render it and save the image.

    Taichi must already be initialized.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.

    Raises:
        FileNotFoundError: If the scene or a material library is missing.
        ValueError: If the scene file or the render configuration is invalid.
        RuntimeError: If the scene exceeds a fixed capacity.
    """
    # Lazy imports to allow Taichi initialization first
    from rtracer.camera.pinhole import CameraOptions
    from rtracer.core.renderer import RenderMode, RenderOptions, Renderer
    from rtracer.preview.display import show_preview
    from rtracer.scene.loader import read_scene

    scene = read_scene(args.scene)

    camera = CameraOptions(
        screen_width=args.width,
        screen_height=args.height,
        fov=math.radians(args.fov),
        look_from=tuple(args.look_from),
        look_to=tuple(args.look_to),
    )
    options = RenderOptions(mode=RenderMode.from_name(args.mode), depth=args.depth)

    renderer = Renderer(scene, camera, options)

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (done / total) * 100 if total > 0 else 0
            print(
                f"\r  Progress: {done}/{total} rows ({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                file=sys.stderr,
                flush=True,
            )

    renderer.render(callback=progress_callback)
    if not args.quiet:
        print(file=sys.stderr)  # Newline after progress

    output_file = Path(args.output)
    renderer.save_image(str(output_file))
    logger.info("Saved to: %s", output_file.absolute())

    if args.show:
        show_preview(renderer)

    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        run(args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
