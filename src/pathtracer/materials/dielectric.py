"""Dielectric (glass/water) material implementation.

This module implements transparent materials with refraction and Fresnel
reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when eta_ratio * sin(theta) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.
Dielectrics never absorb: the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, hit_point, normal, front_face, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    make_ray,
    normalize,
    point3,
    reflect,
    refract,
    schlick,
)
from src.pathtracer.core.sampler import rand
from src.pathtracer.materials.registry import claim_slot

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Relative index for the side being hit (1/ior entering, ior leaving)."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def _cos_sin_theta(unit_direction: vec3, normal: vec3):
    cos_theta = tm.clamp(tm.dot(-unit_direction, normal), -1.0, 1.0)
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return cos_theta, sin_theta


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    hit_point: point3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter a ray off (or through) a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point; the scattered ray starts here.
        normal: The unit surface normal on the incoming side.
        front_face: 1 if the ray enters the material, 0 if it leaves it.
        stream: The random stream used for the Fresnel choice.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) where:
        - scattered_ray: The reflected or refracted ray.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = normalize(incident_direction)
    ratio = _refraction_ratio(ior, front_face)
    cos_theta, sin_theta = _cos_sin_theta(unit_direction, normal)

    direction = vec3(0.0, 0.0, 0.0)
    if ratio * sin_theta > 1.0:
        # Total internal reflection
        direction = reflect(unit_direction, normal)
    elif rand(stream) < schlick(cos_theta, ior):
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    return make_ray(hit_point, direction), attenuation, 1


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if total internal reflection will occur, 0 otherwise.
    """
    ratio = _refraction_ratio(ior, front_face)
    _, sin_theta = _cos_sin_theta(normalize(incident_direction), normal)
    return ratio * sin_theta > 1.0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
) -> ti.f32:
    """Compute the Schlick reflectance for a given incidence.

    Returns:
        The Fresnel reflectance coefficient in [0, 1].
    """
    cos_theta, _ = _cos_sin_theta(normalize(incident_direction), normal)
    return schlick(cos_theta, ior)


# Registry of dielectrics, indexed by type-local slot
MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store a refractive index and return its slot.

    Raises:
        ValueError: ``ior`` is not positive.
        RuntimeError: The registry is full.
    """
    if ior <= 0.0:
        raise ValueError(f"Refractive index must be positive, got {ior}")
    slot = claim_slot(num_dielectric_materials, MAX_DIELECTRIC_MATERIALS, "dielectric")
    dielectric_iors[slot] = ior
    return slot


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
