"""Ray data structure and vector utilities for Monte Carlo path tracing.

This module provides the fundamental Ray dataclass and the vector algebra the
intersection kernels, materials and integrator share. All operations are
Taichi functions and can be called from within kernels.

Points and vectors share the ``vec3`` representation. ``point3`` names the
positional use; by convention point - point gives a vector and
point + vector gives a point, and points are never summed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = point3(0.0, 0.0, 0.0)
    >>> direction = vec3(1.0, 0.0, 0.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # (5, 0, 0)
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.sampler import rand

# Type aliases for 3D vectors and positions using Taichi's math module
vec3 = tm.vec3
point3 = tm.vec3

# Tolerance for parallelism tests and degenerate geometry
EPSILON = 1e-6


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (point3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; code that needs a unit direction normalizes locally.
    """

    origin: point3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> point3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: point3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The result for a zero-length input is unspecified; callers must make
    sure v is non-zero.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the right-handed cross product a x b.

    cross(x, y) = z, cross(y, z) = x, cross(z, x) = y.
    """
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def lerp(t, a, b):
    """Linearly interpolate between a and b: (1 - t) * a + t * b.

    Works for scalars and vectors alike.
    """
    return (1.0 - t) * a + t * b


@ti.func
def has_nans(v: vec3) -> ti.i32:
    """Check whether any component of a vector is NaN.

    Returns:
        1 if at least one component is NaN, 0 otherwise.
    """
    return tm.isnan(v.x) or tm.isnan(v.y) or tm.isnan(v.z)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal: d - 2 (d . n) n.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    Splits the refracted direction into the component parallel to the
    surface, eta_ratio * (d + cos_theta * n), and the perpendicular component
    -sqrt(1 - |r_parallel|^2) * n. The caller is responsible for detecting
    total internal reflection beforehand; the square root argument is
    clamped so the result never contains NaNs.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal on the incoming side (unit length).
        eta_ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction (unit length when no TIR occurs).
    """
    cos_theta = tm.min(-tm.dot(incident, normal), 1.0)
    r_out_parallel = eta_ratio * (incident + cos_theta * normal)
    r_out_perp = -ti.sqrt(1.0 - tm.min(length_squared(r_out_parallel), 1.0)) * normal
    result = r_out_parallel + r_out_perp
    assert not has_nans(result), "refract produced NaN components"
    return result


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - n) / (1 + n))^2, F = r0 + (1 - r0) (1 - cos)^5.
    r0 is the same for n and 1/n, so either the refractive index or the
    relative index gives the same value.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Refractive index of the material.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling in the cube [-1, 1]^3: three uniform samples are
    mapped to the cube and accepted when the squared length is <= 1. The
    expected number of iterations is below 2; the loop is bounded to keep
    the kernel well formed.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point with length <= 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(64):
        if not found:
            p = vec3(
                rand(stream) * 2.0 - 1.0,
                rand(stream) * 2.0 - 1.0,
                rand(stream) * 2.0 - 1.0,
            )
            if length_squared(p) <= 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p
