#!/usr/bin/env python3
"""Render one of the standard sphere scenes.

This script demonstrates end-to-end rendering: it builds a scene, sets up
the thin-lens camera, renders with progressive refinement and saves the
result. The output format follows the file extension (.png, .tiff, ...).

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene NAME          ground, showcase or random (default: ground)
    --width WIDTH         Image width in pixels (default: 400)
    --aspect-ratio RATIO  Width / height (default: scene-dependent)
    --samples SAMPLES     Samples per pixel (default: 100)
    --max-depth DEPTH     Maximum bounces per path (default: 50)
    --seed SEED           Seed for the random streams and scene layout (default: 42)
    --batch-size SIZE     Samples per progress update (default: 10)
    --arch ARCH           Taichi backend, cpu or gpu (default: cpu)
    --output OUTPUT       Output file path (default: image.tiff)
    --quiet               Suppress progress output

Example:
    python -m examples.render_spheres --scene showcase --width 300 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")

SCENE_ASPECT_RATIOS = {
    "ground": 16.0 / 9.0,
    "showcase": 16.0 / 9.0,
    "random": 3.0 / 2.0,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=sorted(SCENE_ASPECT_RATIOS),
        default="ground",
        help="Scene to render (default: ground)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Width / height (default: 16:9, or 3:2 for the random scene)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for random streams and scene layout (default: 42)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.tiff",
        help="Output file path (default: image.tiff)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_spheres(
    scene_name: str = "ground",
    width: int = 400,
    aspect_ratio: float | None = None,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 42,
    output_path: str = "image.tiff",
    batch_size: int = 10,
    quiet: bool = False,
) -> Path:
    """Render a sphere scene and save it to a file.

    Args:
        scene_name: One of "ground", "showcase" or "random".
        width: Image width in pixels.
        aspect_ratio: Width / height. Defaults to the scene's own ratio.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per path.
        seed: Seed for the random streams (and the random scene layout).
        output_path: Output file path.
        batch_size: Number of samples to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer, RenderSettings
    from pathtracer.scene.spheres import (
        create_ground_sphere_scene,
        create_material_showcase_scene,
        create_random_spheres_scene,
    )

    if aspect_ratio is None:
        aspect_ratio = SCENE_ASPECT_RATIOS[scene_name]

    settings = RenderSettings(
        width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
        batch_size=batch_size,
    )

    logger.info("Creating %s scene (%dx%d)", scene_name, settings.width, settings.height)
    if scene_name == "random":
        scene, camera = create_random_spheres_scene(seed=seed, aspect_ratio=aspect_ratio)
    elif scene_name == "showcase":
        scene, camera = create_material_showcase_scene(aspect_ratio=aspect_ratio)
    else:
        scene, camera = create_ground_sphere_scene(aspect_ratio=aspect_ratio)

    setup_camera(camera)
    renderer = ProgressiveRenderer.from_settings(settings)

    logger.info(
        "Rendering %d spheres at %d samples per pixel",
        scene.get_sphere_count(),
        settings.samples_per_pixel,
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                file=sys.stderr,
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=settings.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print(file=sys.stderr)

    output_file = Path(output_path)
    renderer.save_image(output_file)

    logger.info("Saved to %s in %.2fs", output_file.absolute(), time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        render_spheres(
            scene_name=args.scene,
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Rendering failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
