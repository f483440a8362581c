#!/usr/bin/env python3
"""Render one of the bundled scenes to a PNG file.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene {cornell,spheres}   Scene to render (default: cornell)
    --width WIDTH               Image width in pixels (default: scene default)
    --samples SAMPLES           Samples per pixel (default: scene default)
    --max-depth DEPTH           Maximum path length (default: 8)
    --seed SEED                 Seed of the sample streams (default: 1)
    --output OUTPUT             Output file path (default: <scene>.png)
    --batch-size SIZE           Samples per progress update (default: 10)
    --arch {cpu,gpu}            Taichi backend (default: cpu)
    --preview                   Show the result in a Matplotlib window
    --quiet                     Suppress progress output

Example:
    python examples/render_scene.py --scene spheres --width 320 --samples 32
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

SCENES = ("cornell", "spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a bundled scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--scene", choices=SCENES, default="cornell", help="Scene to render (default: cornell)")
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--samples", type=int, default=None, help="Samples per pixel")
    parser.add_argument("--max-depth", type=int, default=8, help="Maximum path length (default: 8)")
    parser.add_argument("--seed", type=int, default=1, help="Seed of the sample streams (default: 1)")
    parser.add_argument("--output", type=str, default=None, help="Output file path (default: <scene>.png)")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument("--arch", choices=("cpu", "gpu"), default="cpu", help="Taichi backend (default: cpu)")
    parser.add_argument("--preview", action="store_true", help="Show the result in a Matplotlib window")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_scene(
    scene_name: str = "cornell",
    width: int | None = None,
    num_samples: int | None = None,
    max_depth: int = 8,
    seed: int = 1,
    output_path: str | None = None,
    batch_size: int = 10,
    preview: bool = False,
    quiet: bool = False,
) -> Path:
    """Build a scene, render it and save the result.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so that Taichi is initialized first
    from pathtracer.camera.camera import Camera
    from pathtracer.preview.display import show_preview
    from pathtracer.preview.export import save_png
    from pathtracer.scene.cornell_box import create_cornell_box_scene
    from pathtracer.scene.showcase import create_sphere_field_scene

    if scene_name == "cornell":
        scene, config = create_cornell_box_scene(max_depth=max_depth)
    else:
        scene, config = create_sphere_field_scene(max_depth=max_depth)

    if width is not None:
        config.image_width = width
    if num_samples is not None:
        config.samples_per_pixel = num_samples
    config.seed = seed

    camera = Camera(config)
    if not quiet:
        print(
            f"Rendering {scene_name} ({camera.width}x{camera.height}, "
            f"{scene.get_primitive_count()} primitives, "
            f"{config.samples_per_pixel} spp)..."
        )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({current / target * 100:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    camera.render(callback=progress_callback, batch_size=batch_size)
    if not quiet:
        print()

    output_file = Path(output_path if output_path is not None else f"{scene_name}.png")
    save_png(camera, output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    if preview:
        show_preview(camera, title=f"{scene_name} - {camera.sample_count} SPP")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        render_scene(
            scene_name=args.scene,
            width=args.width,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            preview=args.preview,
            quiet=args.quiet,
        )
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
