"""Metal (specular reflective) material implementation.

This module implements specular reflection with optional roughness. The unit
incoming direction is mirrored about the normal,

    R = D - 2 (D . N) N

and then perturbed by roughness * random_in_unit_sphere(). When the perturbed
direction points into the surface (R . N <= 0) the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, roughness, incident_dir, hit_point, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    make_ray,
    normalize,
    point3,
    random_in_unit_sphere,
    reflect,
)
from src.pathtracer.materials.registry import check_albedo, check_unit_interval, claim_slot

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    hit_point: point3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        roughness: The surface roughness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point; the scattered ray starts here.
        normal: The unit surface normal.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) where:
        - scattered_ray: The (perturbed) reflection leaving the hit point.
        - attenuation: The albedo.
        - did_scatter: 1 if the scattered direction is above the surface,
          0 if the ray is absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)
    direction = reflected + roughness * random_in_unit_sphere(stream)

    did_scatter = 1
    if tm.dot(direction, normal) <= 0.0:
        did_scatter = 0

    return make_ray(hit_point, direction), albedo, did_scatter


# Registry of metals, indexed by type-local slot
MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_roughness = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    roughness: float = 0.0,
) -> int:
    """Store a metal's albedo and roughness and return its slot.

    Raises:
        ValueError: An albedo channel or the roughness lies outside [0, 1].
        RuntimeError: The registry is full.
    """
    check_albedo(albedo)
    check_unit_interval("roughness", roughness)
    slot = claim_slot(num_metal_materials, MAX_METAL_MATERIALS, "metal")
    metal_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    metal_roughness[slot] = roughness
    return slot


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_roughness(material_idx: ti.i32) -> ti.f32:
    return metal_roughness[material_idx]
