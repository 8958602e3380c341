"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward n + r, where n is the unit normal on the
incoming side and r is a random point inside the unit sphere. The resulting
directions concentrate around the normal, and the attenuation applied to the
gathered radiance is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(
    >>> #     albedo, hit_point, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    make_ray,
    near_zero,
    point3,
    random_in_unit_sphere,
)
from src.pathtracer.materials.registry import check_albedo, claim_slot

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(
    albedo: vec3,
    hit_point: point3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter a ray off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        hit_point: The intersection point; the scattered ray starts here.
        normal: The unit surface normal on the incoming side.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) where:
        - scattered_ray: Ray from the hit point toward n + random_in_unit_sphere().
        - attenuation: The albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb outright.
    """
    direction = normal + random_in_unit_sphere(stream)

    # The random offset can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal

    return make_ray(hit_point, direction), albedo, 1


# Registry of diffuse materials, indexed by type-local slot
MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Forget every registered diffuse material; stale slots are overwritten on reuse."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot.

    Raises:
        ValueError: A channel lies outside [0, 1].
        RuntimeError: The registry is full.
    """
    check_albedo(albedo)
    slot = claim_slot(num_lambertian_materials, MAX_LAMBERTIAN_MATERIALS, "lambertian")
    lambertian_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    return slot


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
