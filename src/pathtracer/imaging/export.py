"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit RGBA via Pillow)

Example:
    >>> from src.pathtracer.imaging.export import write_png
    >>> from src.pathtracer.imaging.tonemap import tonemap
    >>> write_png("img0.png", tonemap(linear_image))
"""

import logging
import os

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.pathtracer.imaging.tonemap import ToneMapMethod, tonemap

logger = logging.getLogger(__name__)


def write_png(filepath: str | os.PathLike[str], pixels: npt.NDArray[np.uint8]) -> None:
    """Write 8-bit RGBA pixels to a PNG file.

    Args:
        filepath: Output file path.
        pixels: uint8 array of shape (height, width, 4), top row first.

    Raises:
        ValueError: If the array is not 8-bit RGBA.
        OSError: If the file cannot be written.
    """
    if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(
            f"Expected uint8 pixels of shape (height, width, 4), got {pixels.dtype} {pixels.shape}"
        )

    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels))
    pil_image.save(filepath, format="PNG")
    logger.info("Wrote %dx%d PNG to %s", pixels.shape[1], pixels.shape[0], os.fspath(filepath))


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | os.PathLike[str],
    *,
    tone_map: ToneMapMethod = "none",
) -> None:
    """Tone map a linear RGBA image and save it as a PNG file.

    Args:
        image: Linear image array of shape (H, W, 4).
        filepath: Output file path.
        tone_map: Tone mapping method applied before gamma encoding.
    """
    write_png(filepath, tonemap(image, tone_map))


def read_png(filepath: str | os.PathLike[str]) -> npt.NDArray[np.uint8]:
    """Read a PNG file as 8-bit RGBA pixels of shape (height, width, 4)."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGBA"), dtype=np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
