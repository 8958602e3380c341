"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera model

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Support look-at positioning with up vector

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .pinhole import (
    DEFAULT_CAMERA,
    PinholeCamera,
    generate_ray,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "DEFAULT_CAMERA",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "generate_ray",
    "get_camera_info",
]
