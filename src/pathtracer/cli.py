"""Command-line entry point: render a preset scene to a PNG.

Usage:
    pathtracer [ns] [nx] [ny] [options]

Positional arguments are the samples per pixel, image width and image
height. They are parsed leniently: a value that is not an integer falls back
to its default with a warning.

Options:
    --output OUTPUT          Output file path (default: img0.png)
    --max-bounce N           Bounce budget per path (default: 50)
    --seed SEED              Root seed for reproducible renders
    --scene NAME             spheres, showcase or triangles (default: spheres)
    --tone-map METHOD        none, reinhard or reinhard_extended (default: none)
    --arch {cpu,gpu}         Taichi backend (default: cpu)
    --batch-size N           Samples per progress update (default: all at once)
    --debug                  Run Taichi in debug mode (enables kernel checks)
    --verbose / --quiet      More or less logging

Example:
    pathtracer 8 200 100 --scene spheres --seed 42 --output spheres.png
"""

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

logger = logging.getLogger(__name__)

DEFAULT_NS = 8
DEFAULT_NX = 640
DEFAULT_NY = 360
DEFAULT_OUTPUT = "img0.png"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("ns", nargs="?", default=None, help=f"Samples per pixel (default: {DEFAULT_NS})")
    parser.add_argument("nx", nargs="?", default=None, help=f"Image width (default: {DEFAULT_NX})")
    parser.add_argument("ny", nargs="?", default=None, help=f"Image height (default: {DEFAULT_NY})")
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output file path (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--max-bounce",
        type=int,
        default=50,
        help="Bounce budget per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Root seed for reproducible renders (default: system entropy)",
    )
    parser.add_argument(
        "--scene",
        choices=("spheres", "showcase", "triangles"),
        default="spheres",
        help="Preset scene to render (default: spheres)",
    )
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "reinhard_extended"),
        default="none",
        help="Tone mapping applied before gamma encoding (default: none)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Samples per progress update (default: all samples at once)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run Taichi in debug mode",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    return parser


def parse_lenient_int(value: str | None, default: int, name: str) -> int:
    """Parse an integer argument, falling back to a default on bad input."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Could not parse %s=%r, using default %d", name, value, default)
        return default


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested verbosity."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def init_taichi(arch: str = "cpu", debug: bool = False) -> None:
    """Initialize Taichi; must run before any pathtracer module is imported."""
    ti.init(arch=ti.gpu if arch == "gpu" else ti.cpu, debug=debug)


def run(args: argparse.Namespace) -> Path:
    """Render the requested scene and write it to disk.

    Taichi must already be initialized.

    Returns:
        Path of the written PNG.

    Raises:
        ValueError: If the render options are invalid.
        OSError: If the image cannot be written.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.camera.pinhole import setup_camera
    from src.pathtracer.core.integrator import SKY, set_background
    from src.pathtracer.core.progressive import RenderOptions, render
    from src.pathtracer.imaging.export import write_png
    from src.pathtracer.imaging.tonemap import mean_luminance, tonemap
    from src.pathtracer.scene.presets import load_preset

    options = RenderOptions(
        nx=parse_lenient_int(args.nx, DEFAULT_NX, "nx"),
        ny=parse_lenient_int(args.ny, DEFAULT_NY, "ny"),
        ns=parse_lenient_int(args.ns, DEFAULT_NS, "ns"),
        n_max_bounce=args.max_bounce,
    )

    scene, camera = load_preset(args.scene, options.aspect_ratio)
    logger.info(
        "Scene %r: %d spheres, %d triangles, %d materials",
        args.scene,
        scene.get_sphere_count(),
        scene.get_triangle_count(),
        scene.get_material_count(),
    )
    setup_camera(camera)
    set_background(SKY)

    start_time = time.perf_counter()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.perf_counter() - start_time
        logger.info("Progress: %d/%d samples (%.1fs)", current, target, elapsed)

    image = render(options, seed=args.seed, callback=progress_callback, batch_size=args.batch_size)
    logger.info("Mean luminance %.4f", mean_luminance(image))

    output_file = Path(args.output)
    write_png(output_file, tonemap(image, args.tone_map))
    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        init_taichi(args.arch, args.debug)
        run(args)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
