"""Color encoding and tone mapping for linear RGBA images.

Linear colors are float arrays whose last axis holds (r, g, b, a). Tone
mapping optionally compresses the rgb channels into [0, 1], then gamma
encodes them with gamma 2.2 and quantizes every channel to 8 bits by
truncation. Values below 0 or NaN map to 0, values above 1 saturate at 255.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.imaging.tonemap import tonemap
    >>> pixels = tonemap(np.ones((2, 2, 4), dtype=np.float32))
    >>> int(pixels[0, 0, 0])
    255
"""

from typing import Literal

import numpy as np
import numpy.typing as npt

ToneMapMethod = Literal["none", "reinhard", "reinhard_extended"]

TONE_MAP_METHODS: tuple[str, ...] = ("none", "reinhard", "reinhard_extended")

# Display gamma
GAMMA = 2.2

# Rec. 709 luminance weights
LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


def gamma_encode(linear: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Encode linear values for display: c^(1/2.2)."""
    return np.power(np.asarray(linear, dtype=np.float32), 1.0 / GAMMA)


def gamma_decode(encoded: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Decode display values back to linear: c^2.2."""
    return np.power(np.asarray(encoded, dtype=np.float32), GAMMA)


def luminance(colors: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Compute relative luminance of the rgb channels.

    Args:
        colors: Array whose last axis holds at least (r, g, b).

    Returns:
        Array of luminances with the last axis removed.
    """
    rgb = np.asarray(colors, dtype=np.float32)[..., :3]
    return (rgb * LUMINANCE_WEIGHTS).sum(axis=-1)


def mean_luminance(colors: npt.ArrayLike) -> float:
    """Average luminance over all pixels."""
    return float(np.mean(luminance(colors)))


def reinhard(colors: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping c / (1 + c) to rgb; alpha is kept.

    Args:
        colors: Linear RGBA array of shape (..., 4).

    Returns:
        Tone mapped RGBA array.
    """
    result = np.array(colors, dtype=np.float32)
    rgb = np.maximum(result[..., :3], 0.0)
    result[..., :3] = rgb / (1.0 + rgb)
    return result


def reinhard_extended(colors: npt.ArrayLike, max_white: float | None = None) -> npt.NDArray[np.float32]:
    """Apply extended Reinhard tone mapping to rgb; alpha is kept.

    c (1 + c / max_white^2) / (1 + c), so values equal to max_white map to 1.

    Args:
        colors: Linear RGBA array of shape (..., 4).
        max_white: Smallest value that maps to pure white. Defaults to the
            brightest rgb value in the image (at least 1).

    Returns:
        Tone mapped RGBA array.

    Raises:
        ValueError: If max_white is not positive.
    """
    result = np.array(colors, dtype=np.float32)
    rgb = np.maximum(result[..., :3], 0.0)

    if max_white is None:
        finite = rgb[np.isfinite(rgb)]
        max_white = max(1.0, float(finite.max())) if finite.size else 1.0
    if max_white <= 0.0:
        raise ValueError(f"max_white = {max_white} must be positive")

    mw2 = max_white * max_white
    result[..., :3] = rgb * (1.0 + rgb / mw2) / (1.0 + rgb)
    return result


def tonemap(
    colors: npt.ArrayLike,
    method: ToneMapMethod = "none",
    max_white: float | None = None,
) -> npt.NDArray[np.uint8]:
    """Convert linear RGBA colors to 8-bit RGBA.

    Args:
        colors: Linear RGBA array of shape (..., 4), e.g. (ny, nx, 4).
        method: Tone mapping operator applied to rgb before encoding.
        max_white: White point for "reinhard_extended".

    Returns:
        uint8 array with the same shape as colors.

    Raises:
        ValueError: If the method is unknown or the last axis is not 4.
    """
    linear = np.asarray(colors, dtype=np.float32)
    if linear.shape[-1:] != (4,):
        raise ValueError(f"Expected RGBA colors with a last axis of 4, got shape {linear.shape}")

    if method == "reinhard":
        linear = reinhard(linear)
    elif method == "reinhard_extended":
        linear = reinhard_extended(linear, max_white)
    elif method != "none":
        raise ValueError(f"Unknown tone map method {method!r}; choose from {TONE_MAP_METHODS}")

    linear = np.nan_to_num(linear, nan=0.0, posinf=np.inf, neginf=0.0)

    rgb = gamma_encode(np.maximum(linear[..., :3], 0.0)) * 255.0
    alpha = linear[..., 3:] * 255.0

    encoded = np.concatenate([rgb, alpha], axis=-1)
    return np.clip(encoded, 0.0, 255.0).astype(np.uint8)


def from_rgba8(pixels: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Decode 8-bit RGBA back to linear RGBA.

    Each color channel is gamma decoded from its own byte; alpha is scaled
    linearly.

    Args:
        pixels: uint8 array of shape (..., 4).

    Returns:
        float32 array of shape (..., 4).
    """
    scaled = np.asarray(pixels, dtype=np.float32) / 255.0
    result = scaled.copy()
    result[..., :3] = gamma_decode(scaled[..., :3])
    return result
