#!/usr/bin/env python3
"""Render the demo scene.

This script demonstrates end-to-end rendering with the raycaster: it builds
the demo scene (diffuse, mirror and glass spheres, a triangle pyramid and
two point lights), renders it row batch by row batch and saves a PNG.

Usage:
    python examples/render_scene.py [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --height HEIGHT         Image height in pixels (default: 400)
    --aa AA                 Anti-aliasing grid size per pixel (default: 1)
    --jitter                Jitter anti-aliasing samples
    --aperture RADIUS       Lens aperture radius (default: 0.0)
    --focal-length LENGTH   Distance to the focal plane (default: 1.0)
    --dof-samples SAMPLES   Lens samples per sub-pixel (default: 50)
    --shadow-test POLICY    z_axis or distance (default: z_axis)
    --seed SEED             Random seed (default: 30019)
    --output OUTPUT         Output file path (default: demo_scene.png)
    --verbose               Enable debug logging
    --quiet                 Suppress progress output

Example:
    python examples/render_scene.py --width 320 --height 240 --aa 2
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
        description="Render the demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=400,
        help="Image height in pixels (default: 400)",
    )
    parser.add_argument(
        "--aa",
        type=int,
        default=1,
        help="Anti-aliasing grid size per pixel (default: 1)",
    )
    parser.add_argument(
        "--jitter",
        action="store_true",
        help="Jitter anti-aliasing samples inside their sub-pixel cell",
    )
    parser.add_argument(
        "--aperture",
        type=float,
        default=0.0,
        help="Lens aperture radius (default: 0.0)",
    )
    parser.add_argument(
        "--focal-length",
        type=float,
        default=1.0,
        help="Distance to the focal plane (default: 1.0)",
    )
    parser.add_argument(
        "--dof-samples",
        type=int,
        default=50,
        help="Lens samples per sub-pixel when depth of field is on (default: 50)",
    )
    parser.add_argument(
        "--shadow-test",
        choices=("z_axis", "distance"),
        default="z_axis",
        help="Shadow occlusion policy (default: z_axis)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=30019,
        help="Random seed (default: 30019)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="demo_scene.png",
        help="Output file path (default: demo_scene.png)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_scene(args: argparse.Namespace) -> Path:
    """Render the demo scene and save to file.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from raycaster.preview.export import save_png
    from raycaster.scene.options import SceneOptions
    from raycaster.scene.presets import create_demo_scene

    options = SceneOptions(
        width=args.width,
        height=args.height,
        camera_position=(0.0, 0.5, 0.0),
        aperture_radius=args.aperture,
        focal_length=args.focal_length,
        aa_multiplier=args.aa,
        dof_samples=args.dof_samples,
        seed=args.seed,
        aa_jitter=args.jitter,
        shadow_test=args.shadow_test,
    )

    if not args.quiet:
        print(f"Creating demo scene ({options.width}x{options.height})...")

    scene = create_demo_scene(options)

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
            print(
                f"\r  Progress: {rows_done}/{total_rows} rows "
                f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    buffer = scene.render(callback=progress_callback)

    if not args.quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    save_png(buffer, output_file)

    total_time = time.time() - start_time
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    ti.init(arch=ti.cpu)

    try:
        render_scene(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
