#!/usr/bin/env python3
"""Render the Cornell box scene.

This script builds the Cornell box preset, renders it with progressive
refinement and saves the result.

Usage:
    python examples/render_cornell_box.py [options]

Options:
    --height HEIGHT     Image height in pixels (default: 512)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --output OUTPUT     Output file path (default: cornell_box.png)
    --batch-size SIZE   Samples per progress update (default: 10)
    --no-fog            Leave out the fog ball
    --quiet             Suppress progress output

Example:
    python examples/render_cornell_box.py --height 256 --samples 50
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from mortonray.config import RenderSettings, init_taichi
from mortonray.logging import setup_log

log = logging.getLogger("mortonray.examples.cornell_box")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--height",
        type=int,
        default=512,
        help="Image height in pixels (default: 512)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument("--no-fog", action="store_true", help="Leave out the fog ball")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_cornell_box(
    height: int = 512,
    num_samples: int = 100,
    output_path: str = "cornell_box.png",
    batch_size: int = 10,
    fog: bool = True,
) -> Path:
    """Render the Cornell box scene and save to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from mortonray.core.progressive import ProgressiveRenderer
    from mortonray.scene import CornellBoxParams, cornell_box

    params = CornellBoxParams() if fog else CornellBoxParams(fog_density=0.0)
    scene = cornell_box(params, height=height, samples_per_pixel=num_samples)
    world = scene.assemble()
    renderer = ProgressiveRenderer(world.sampler())

    log.info(f"Rendering {num_samples} samples per pixel...")
    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        log.info(f"Progress: {current}/{target} samples - {samples_per_sec:.1f} spp/s")

    renderer.render(num_samples=num_samples, batch_size=batch_size, callback=progress_callback)

    output_file = Path(output_path)
    renderer.save_image(output_file)
    log.info(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    setup_log(logging.WARNING if args.quiet else logging.INFO)

    try:
        init_taichi(RenderSettings(batch_size=args.batch_size))
        render_cornell_box(
            height=args.height,
            num_samples=args.samples,
            output_path=args.output,
            batch_size=args.batch_size,
            fog=not args.no_fog,
        )
        return 0
    except (ValueError, OSError) as e:
        log.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
