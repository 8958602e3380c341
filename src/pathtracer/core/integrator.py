"""Path tracing integrator for Monte Carlo light transport.

This module estimates the radiance arriving along camera rays with a bounded
random walk: every bounce multiplies the path throughput by the attenuation
of the material that was hit, and a path that escapes the scene picks up the
procedural background weighted by that throughput. Absorbed paths and paths
that run out of bounce budget contribute nothing. Illumination comes solely
from the background.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, Null)
    - Vertical-gradient background palettes (STUDIO, SKY)
    - Per-pixel sample accumulation into an RGBA render target
    - Per-pixel random streams for reproducible renders

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import (
    ...     SKY, render_image, set_background, setup_render_target
    ... )
    >>> from src.pathtracer.scene.presets import create_two_spheres_scene
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_spheres_scene()
    >>> setup_camera(camera)
    >>> set_background(SKY)
    >>> setup_render_target(200, 100)
    >>> render_image(num_samples=8)
"""

import logging
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.pinhole import get_ray_jittered
from src.pathtracer.core.ray import lerp, make_ray, normalize
from src.pathtracer.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from src.pathtracer.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from src.pathtracer.materials.metal import (
    get_metal_albedo,
    get_metal_roughness,
    scatter_metal,
)
from src.pathtracer.materials.null import scatter_null
from src.pathtracer.scene.intersection import intersect_scene
from src.pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)


# Type aliases for vectors
vec3 = tm.vec3
vec4 = tm.vec4


# Default maximum number of bounces per path
MAX_DEPTH = 50

# Lower bound of the hit window; keeps secondary rays off their own surface
T_MIN = 1e-4
T_MAX = float("inf")


@dataclass(frozen=True)
class BackgroundPalette:
    """Vertical gradient seen by rays that leave the scene.

    The color is lerp(0.5 * (normalize(direction).y + 1), bottom, top), so a
    ray pointing straight down sees bottom and one pointing straight up sees
    top.

    Attributes:
        bottom: Linear RGB color at the nadir.
        top: Linear RGB color at the zenith.
        alpha: Alpha reported for samples whose primary ray hits nothing.
    """

    bottom: tuple[float, float, float]
    top: tuple[float, float, float]
    alpha: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"Background alpha {self.alpha} is outside [0, 1]")


STUDIO = BackgroundPalette(bottom=(0.0, 0.0, 0.0), top=(1.0, 1.0, 1.0))
SKY = BackgroundPalette(bottom=(1.0, 1.0, 1.0), top=(0.5, 0.7, 1.0))

_background_bottom = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_top = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_alpha = ti.field(dtype=ti.f32, shape=())

_active_background: BackgroundPalette | None = None


def set_background(palette: BackgroundPalette = STUDIO) -> None:
    """Select the background palette used by subsequent renders."""
    global _active_background

    _background_bottom[None] = list(palette.bottom)
    _background_top[None] = list(palette.top)
    _background_alpha[None] = palette.alpha
    _active_background = palette


def get_background() -> BackgroundPalette:
    """Get the active background palette (STUDIO until one is set)."""
    if _active_background is None:
        return STUDIO
    return _active_background


def _ensure_background() -> None:
    if _active_background is None:
        set_background(STUDIO)


@ti.func
def background_color(direction: vec3) -> vec3:
    """Evaluate the background gradient for a ray direction."""
    t = 0.5 * (normalize(direction).y + 1.0)
    return lerp(t, _background_bottom[None], _background_top[None])


# The accumulation buffers are allocated once at the largest supported size;
# only the top-left _image_size region is used.
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_size = ti.Vector.field(2, dtype=ti.i32, shape=())
_color_sum = ti.Vector.field(4, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Select the active image size and zero the accumulation buffers.

    Raises:
        ValueError: A dimension is below 1 or above MAX_IMAGE_WIDTH / MAX_IMAGE_HEIGHT.
    """
    if not (1 <= width <= MAX_IMAGE_WIDTH and 1 <= height <= MAX_IMAGE_HEIGHT):
        raise ValueError(
            f"Image size {width}x{height} must lie within 1x1 and {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
        )

    _image_size[None] = (width, height)
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Drop every accumulated sample."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Active (width, height) of the render target."""
    size = _image_size[None]
    return int(size[0]), int(size[1])


def _require_render_target() -> None:
    if not _render_target_initialized[None]:
        raise RuntimeError("No render target; call setup_render_target() first")


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Unknown material IDs behave like the null material and absorb.

    Returns:
        A tuple of (scattered_origin, scattered_direction, attenuation,
        did_scatter).
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_origin = hit_point
    scattered_direction = incident_direction
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered, attenuation, did_scatter = scatter_lambertian(albedo, hit_point, normal, stream)
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        roughness = get_metal_roughness(type_index)
        scattered, attenuation, did_scatter = scatter_metal(
            albedo, roughness, incident_direction, hit_point, normal, stream
        )
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, hit_point, normal, front_face, stream
        )
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction

    else:
        scattered, attenuation, did_scatter = scatter_null(incident_direction, hit_point)
        scattered_origin = scattered.origin
        scattered_direction = scattered.direction

    return scattered_origin, scattered_direction, attenuation, did_scatter


@ti.func
def radiance(
    ray_origin: vec3,
    ray_direction: vec3,
    max_depth: ti.i32,
    stream: ti.i32,
) -> vec4:
    """Estimate the radiance arriving along a ray.

    Args:
        ray_origin: Origin of the primary ray.
        ray_direction: Direction of the primary ray (any length).
        max_depth: Bounce budget; 0 yields zero radiance.
        stream: The random stream to draw from.

    Returns:
        RGBA where rgb is the radiance estimate and alpha is 1 if the primary
        ray hit geometry, the background alpha otherwise.
    """
    origin = ray_origin
    direction = ray_direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    alpha = 0.0

    # Taichi doesn't support break in ti.func loops
    active = 1

    for depth in range(max_depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if depth == 0:
                alpha = _background_alpha[None]
                if rec.hit == 1:
                    alpha = 1.0

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                next_origin, next_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.point, rec.normal, rec.front_face, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = next_origin
                    direction = next_direction

    return vec4(color.x, color.y, color.z, alpha)


_trace_result = ti.Vector.field(4, dtype=ti.f32, shape=())


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32):
    # Single-iteration outer loop keeps the bounce loop serial
    for _ in range(1):
        _trace_result[None] = radiance(origin, direction, max_depth, stream)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float, float]:
    """Evaluate the radiance along one ray from Python scope.

    Useful for testing and debugging; production renders go through
    render_image(), which processes all pixels in parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction (any nonzero length).
        depth: Bounce budget.
        stream: Random stream to draw from.

    Returns:
        Tuple of (R, G, B, A).
    """
    _ensure_background()
    _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        depth,
        stream,
    )
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Trace one jittered sample through every pixel and accumulate it."""
    for i, j in ti.ndrange(width, height):
        stream = j * width + i
        ray = get_ray_jittered(i, j, width, height, stream)
        sample = radiance(ray.origin, ray.direction, max_depth, stream)

        # Replace NaN/Inf so a single bad path cannot poison the pixel
        for c in ti.static(range(4)):
            if tm.isnan(sample[c]) or tm.isinf(sample[c]):
                sample[c] = 0.0

        _color_sum[i, j] += sample
        _sample_count[i, j] += 1


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Render the given number of samples per pixel into the render target.

    Accumulates into the existing buffers, so repeated calls refine the image.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget per path.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples < 0 or max_depth < 0.
    """
    _require_render_target()
    if num_samples < 0:
        raise ValueError(f"Sample count {num_samples} must not be negative")
    if max_depth < 0:
        raise ValueError(f"Bounce budget {max_depth} must not be negative")

    _ensure_background()
    width, height = get_image_dimensions()
    logger.debug("Rendering %d spp at %dx%d (max depth %d)", num_samples, width, height, max_depth)

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)


def get_total_samples() -> int:
    """Get the number of samples per pixel accumulated so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _require_render_target()
    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> np.ndarray:
    """Get the averaged linear RGBA image as a NumPy array.

    Row 0 is the top of the image. Pixels without samples are zero.

    Returns:
        float32 array of shape (height, width, 4).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _require_render_target()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    image = color_sum / np.maximum(counts, 1)[:, :, np.newaxis]

    # Transpose from (width, height, 4) to (height, width, 4) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel j = 0 is the bottom row, images store the top row first)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
