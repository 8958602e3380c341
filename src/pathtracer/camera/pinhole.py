"""Perspective pinhole camera.

A PinholeCamera is plain Python configuration: eye position, target, up
hint, vertical field of view in degrees and aspect ratio. setup_camera()
turns it into a frame stored in Taichi fields, and the get_ray* functions
read that frame inside kernels.

Frame conventions (right-handed):
- w = normalize(lookfrom - lookat), so the camera looks along -w
- u = normalize(vup x w) is image-right
- v = w x u is image-up

The image plane sits one unit in front of the eye. Its half height is
tan(vfov / 2) and its half width is aspect_ratio times that. Image
coordinates (s, t) run over [0, 1] from the lower-left corner.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.camera.pinhole import DEFAULT_CAMERA, setup_camera, get_ray
    >>> setup_camera(DEFAULT_CAMERA)
    >>>
    >>> @ti.kernel
    ... def center_ray() -> ti.f32:
    ...     return get_ray(0.5, 0.5).direction.z
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray
from src.pathtracer.core.sampler import rand


@dataclass
class PinholeCamera:
    """Where the camera sits, what it looks at and how wide it sees.

    Attributes:
        lookfrom: Eye position.
        lookat: Point the view is centered on.
        vup: Up hint; only its component orthogonal to the view is used.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width over height.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Vertical field of view {self.vfov} is outside (0, 180)")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio {self.aspect_ratio} must be positive")
        if tuple(self.lookfrom) == tuple(self.lookat):
            raise ValueError("lookfrom and lookat must be distinct points")

    def with_aspect_ratio(self, aspect_ratio: float) -> "PinholeCamera":
        """Return a copy of this camera with a different aspect ratio."""
        return replace(self, aspect_ratio=aspect_ratio)


# Looks down -z from the origin; its viewport has lower-left corner
# (-2, -1, -1), horizontal span (4, 0, 0) and vertical span (0, 2, 0).
DEFAULT_CAMERA = PinholeCamera(
    lookfrom=(0.0, 0.0, 0.0),
    lookat=(0.0, 0.0, -1.0),
    vup=(0.0, 1.0, 0.0),
    vfov=90.0,
    aspect_ratio=2.0,
)


# Camera frame written by setup_camera() and read by the ray generators.
# _camera_w points away from the scene.
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> None:
    """Compute the camera frame and image plane and store them for kernels.

    Call again whenever the camera or the image aspect ratio changes.

    Raises:
        ValueError: ``vup`` is parallel to the viewing direction.
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    # Basis computed in double precision on the host
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm < 1e-12:
        raise ValueError(f"Up vector {camera.vup} is parallel to the viewing direction")
    u = u / u_norm

    v = np.cross(w, u)

    horizontal = 2.0 * half_width * u
    vertical = 2.0 * half_height * v
    lower_left = lookfrom - half_width * u - half_height * v - w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The direction runs from the camera origin to the viewport point and is
    not normalized.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        A Ray from the camera position toward the viewport point.
    """
    origin = _camera_origin[None]
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, stream: ti.i32) -> Ray:
    """Generate a ray through a uniformly jittered point inside a pixel.

    u = (i + xi_u) / width, v = (j + xi_v) / height with xi uniform in [0, 1).

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        stream: The random stream to draw the jitter from.

    Returns:
        A primary Ray for this sample.
    """
    jitter_u = rand(stream)
    jitter_v = rand(stream)

    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    return get_ray(u, v)


@ti.kernel
def _sample_ray(s: ti.f32, t: ti.f32) -> ti.types.vector(6, ti.f32):
    ray = get_ray(s, t)
    return ti.Vector(
        [
            ray.origin.x,
            ray.origin.y,
            ray.origin.z,
            ray.direction.x,
            ray.direction.y,
            ray.direction.z,
        ]
    )


def generate_ray(s: float, t: float) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate a primary ray from Python scope.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        Tuple of (origin, direction) tuples.
    """
    r = _sample_ray(s, t)
    return (float(r[0]), float(r[1]), float(r[2])), (float(r[3]), float(r[4]), float(r[5]))


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
