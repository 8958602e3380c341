"""Imaging module: tone mapping, color encoding and PNG export.

Components:
    tonemap: Gamma encoding, Reinhard operators, luminance, 8-bit conversion
    export: PNG writing/reading through Pillow and image comparison
"""

from .export import compute_rmse, read_png, save_png_from_array, write_png
from .tonemap import (
    GAMMA,
    TONE_MAP_METHODS,
    ToneMapMethod,
    from_rgba8,
    gamma_decode,
    gamma_encode,
    luminance,
    mean_luminance,
    reinhard,
    reinhard_extended,
    tonemap,
)

__all__ = [
    "GAMMA",
    "TONE_MAP_METHODS",
    "ToneMapMethod",
    "gamma_encode",
    "gamma_decode",
    "luminance",
    "mean_luminance",
    "reinhard",
    "reinhard_extended",
    "tonemap",
    "from_rgba8",
    "write_png",
    "read_png",
    "save_png_from_array",
    "compute_rmse",
]
