"""Sphere primitive and the shared hit record.

This module provides the HitRecord every primitive returns, the constructor
that orients its normal against the incoming ray, and the implicit sphere
intersection kernel.

The sphere test solves |origin + t * direction - center|^2 = r^2 in the
half-b form: with oc = origin - center,

    a = direction . direction
    b = oc . direction          (half of the textbook 'b')
    c = oc . oc - r^2
    discriminant = b^2 - a * c  (the textbook value divided by 4)

so the roots are (-b -/+ sqrt(discriminant)) / a.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import point3, vec3

vec2 = tm.vec2


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive float).
    """

    center: point3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The world-space intersection point.
        normal: The unit surface normal, oriented against the incoming ray so
            that dot(ray.direction, normal) < 0.
        front_face: 1 if the ray struck the outer side of the surface (the
            side the geometric normal points to), 0 otherwise.
        uv: Barycentric (u, v) coordinates for triangles, zero for spheres.
    """

    hit: ti.i32
    t: ti.f32
    point: point3
    normal: vec3
    front_face: ti.i32
    uv: vec2


@ti.func
def make_hit_record(ray_direction: vec3, t: ti.f32, point: point3, outward_normal: vec3, uv: vec2) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    Args:
        ray_direction: Direction of the incoming ray.
        t: Ray parameter of the intersection.
        point: Intersection point.
        outward_normal: Unit geometric normal of the primitive.
        uv: Surface parameterization at the hit point.

    Returns:
        A HitRecord with hit=1, front_face set and the normal flipped when the
        ray arrives from the inner side.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        front_face = 0
        normal = -outward_normal
    return HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face, uv=uv)


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=point3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        uv=vec2(0.0, 0.0),
    )


@ti.func
def hit_sphere(
    ray_origin: point3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The nearer root is tried first, then the farther one; the first that lies
    strictly inside (t_min, t_max) is accepted. A non-positive discriminant
    (miss or exact tangent) reports no hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord; check its hit field to see whether an intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - a * c

    result = make_miss_record()

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-b - sqrt_d) / a
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = (-b + sqrt_d) / a
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_origin + t * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            result = make_hit_record(ray_direction, t, point, outward_normal, vec2(0.0, 0.0))

    return result
