"""Progressive renderer and the one-shot render driver.

This module wraps the integrator with:
- RenderOptions, the validated image size / sample / bounce settings
- ProgressiveRenderer, which accumulates samples in batches with progress
  callbacks or a generator interface
- render(), which seeds the random streams, renders a full frame and
  returns the averaged linear RGBA image

The scene and camera are global Taichi state: build the scene and call
setup_camera() before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.progressive import RenderOptions, render
    >>> from src.pathtracer.scene.presets import create_two_spheres_scene
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_spheres_scene()
    >>> setup_camera(camera)
    >>> image = render(RenderOptions(nx=200, ny=100, ns=8), seed=42)
    >>> image.shape
    (100, 200, 4)
"""

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.pathtracer.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.core.sampler import seed_streams

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderOptions:
    """Image size and sampling budget for a render.

    Attributes:
        nx: Image width in pixels.
        ny: Image height in pixels.
        ns: Samples per pixel.
        n_max_bounce: Maximum number of bounces per path.
    """

    nx: int = 640
    ny: int = 360
    ns: int = 8
    n_max_bounce: int = MAX_DEPTH

    def __post_init__(self) -> None:
        if self.nx < 1 or self.ny < 1:
            raise ValueError(f"Image size {self.nx}x{self.ny} must be at least 1x1")
        if self.nx > MAX_IMAGE_WIDTH or self.ny > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image size {self.nx}x{self.ny} exceeds maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.ns < 1:
            raise ValueError(f"Samples per pixel {self.ns} must be at least 1")
        if self.n_max_bounce < 0:
            raise ValueError(f"Bounce budget {self.n_max_bounce} must not be negative")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.nx / self.ny


class ProgressiveRenderer:
    """Adds samples to the shared render target a batch at a time.

    Each batch is one or more full-frame passes of render_image(); after
    every batch the caller learns how many samples per pixel have been
    accumulated, so it can save previews or report progress. The image can
    be read back at any point with get_image_numpy().
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Allocate the active render region and clear it.

        Raises:
            ValueError: The size is outside the render target limits or
                max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"Bounce budget {max_depth} must not be negative")
        self._max_depth = max_depth
        self.resize(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated so far."""
        return get_total_samples()

    def seed(self, seed: int | None = None) -> int:
        """Reseed one random stream per pixel and return the root seed used."""
        return seed_streams(seed, self._width * self._height)

    def reset(self) -> None:
        """Throw away accumulated samples, keeping the size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Switch to a new image size; accumulated samples are discarded."""
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add ``num_samples`` samples per pixel, calling ``callback`` after each batch.

        The callback receives (samples so far, samples once this call ends).
        Calling render() again keeps refining the same image.
        """
        for done, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(done, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Generator form of render(): yields (samples so far, target) per batch.

        The last batch is shorter when ``batch_size`` does not divide
        ``num_samples``. Nothing is rendered when ``num_samples`` is 0.

        Raises:
            ValueError: ``batch_size`` is below 1.
        """
        if batch_size < 1:
            raise ValueError(f"Batch size {batch_size} must be at least 1")

        target = self.sample_count + max(num_samples, 0)
        done = self.sample_count
        while done < target:
            render_image(min(batch_size, target - done), self._max_depth)
            done = self.sample_count
            logger.debug("Accumulated %d/%d samples per pixel", done, target)
            yield done, target

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Averaged linear RGBA image, shape (height, width, 4), top row first."""
        return get_linear_image_numpy()

    def __repr__(self) -> str:
        return f"ProgressiveRenderer({self._width}x{self._height}, spp={self.sample_count}, max_depth={self._max_depth})"


def render(
    options: RenderOptions,
    seed: int | None = None,
    callback: ProgressCallback | None = None,
    batch_size: int | None = None,
) -> npt.NDArray[np.float32]:
    """Render the current scene through the current camera.

    For each pixel (i, j), ns jittered primary rays through
    ((i + xi_u) / nx, (j + xi_v) / ny) are traced and their radiance
    averaged. Identical options, scene, camera and seed give bit-identical
    results.

    Args:
        options: Image size and sampling budget.
        seed: Root seed for the random streams; None draws from system entropy.
        callback: Optional progress callback, see ProgressiveRenderer.render().
        batch_size: Samples per progress step (defaults to all at once).

    Returns:
        float32 array of shape (ny, nx, 4) holding linear RGBA; row 0 is the
        top of the image.
    """
    renderer = ProgressiveRenderer(options.nx, options.ny, options.n_max_bounce)
    used_seed = renderer.seed(seed)
    logger.info(
        "Rendering %dx%d at %d spp (max bounce %d, seed %d)",
        options.nx,
        options.ny,
        options.ns,
        options.n_max_bounce,
        used_seed,
    )

    start = time.perf_counter()
    renderer.render(options.ns, batch_size or options.ns, callback)
    logger.info("Rendered %d spp in %.2fs", renderer.sample_count, time.perf_counter() - start)

    return renderer.get_image_numpy()
