"""Command-line interface.

Usage:
    mortonray SCENE.json [-o OUT.png] [--tree] [--seed N] [--batch-size N]
    mortonray --random [-o OUT.png] [--seed N]
    mortonray --example

``--example`` prints a documented sample scene. ``--random`` generates the
random sphere field, writes it next to the output image as a JSON document
and renders it.
"""

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from mortonray.config import ARCHES, RenderSettings, init_taichi
from mortonray.core.errors import RenderError, SceneFormatError
from mortonray.core.progressive import ProgressiveRenderer
from mortonray.logging import setup_log
from mortonray.scene import SceneDescription, example_text, random_scene

log = logging.getLogger(__name__)

RANDOM_SCENE_NAME = "random_scene"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="mortonray",
        description="Render a JSON scene by path tracing.",
    )
    parser.add_argument("scene", nargs="?", type=Path, help="Scene file (.json)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output image (default: the scene path with a .png extension)",
    )
    parser.add_argument(
        "-t", "--tree", action="store_true", help="Print the bounding volume hierarchy"
    )
    parser.add_argument(
        "--example", action="store_true", help="Print a sample scene file and exit"
    )
    parser.add_argument(
        "--random", action="store_true", help="Render a randomly generated scene"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHES),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--threads", type=int, default=None, help="CPU worker threads (default: all cores)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    return parser.parse_args(argv)


def resolve_scene(args: argparse.Namespace) -> tuple[SceneDescription, Path]:
    """Load or generate the scene and pick the output path.

    Raises:
        SceneFormatError: If there is nothing to render or the scene path
            is not a JSON file.
    """
    if args.random:
        scene = random_scene(args.seed)
        output = args.output or Path(f"{RANDOM_SCENE_NAME}.png")
        scene_path = output.with_name(f"{RANDOM_SCENE_NAME}.json")
        scene.save(scene_path)
        log.info(f"Saved generated scene to {scene_path}")
        return scene, output

    if args.scene is None:
        raise SceneFormatError("There's nothing to render. Use --help to learn more.")
    if args.scene.suffix != ".json":
        raise SceneFormatError(f"{args.scene}: scene files must end in .json")
    scene = SceneDescription.load(args.scene)
    return scene, args.output or args.scene.with_suffix(".png")


def run(args: argparse.Namespace, settings: RenderSettings) -> Path:
    """Render the scene selected by ``args``. Requires ``ti.init()``.

    Returns:
        Path of the saved image.
    """
    scene, output = resolve_scene(args)
    log.info(
        f"Successfully loaded scene with {len(scene.objects)} objects "
        f"and {len(scene.materials)} materials"
    )

    world = scene.assemble()
    depth, nodes = world.hierarchy.depth_and_node_count()
    log.info(
        f"Successfully built BVH tree with {nodes} nodes "
        f"({world.hierarchy.leaf_count} leaves), depth: {depth}"
    )
    if args.tree:
        print(world.hierarchy.format_tree())

    renderer = ProgressiveRenderer(world.sampler(settings.seed))
    samples = world.samples_per_pixel
    log.info(f"Rendering {world.width}x{world.height} at {samples} samples per pixel")

    start_time = time.time()
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total} spp"),
        TimeElapsedColumn(),
    ) as progress:
        task = progress.add_task("Rendering", total=samples)
        renderer.render(
            num_samples=samples,
            batch_size=settings.batch_size,
            callback=lambda current, target: progress.update(task, completed=current),
        )
    log.info(f"Rendered in {time.time() - start_time:.2f}s")

    renderer.save_image(output)
    return output


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_log(logging.DEBUG if args.verbose else logging.INFO)

    if args.example:
        print(example_text())
        return 0

    try:
        settings = RenderSettings(
            seed=args.seed, batch_size=args.batch_size, arch=args.arch, threads=args.threads
        )
        init_taichi(settings)
        run(args, settings)
    except (RenderError, ValueError, OSError) as e:
        log.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
