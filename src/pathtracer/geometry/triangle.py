"""Triangle primitive with Moller-Trumbore ray intersection.

A triangle is defined by three vertices v0, v1, v2. With edges e1 = v1 - v0
and e2 = v2 - v0, the Moller-Trumbore test solves

    origin + t * direction = v0 + u * e1 + v * e2

for (t, u, v) using scalar triple products, without computing the plane
equation first. The geometric normal is normalize(e1 x e2), so the front
face is the one seen counter-clockwise.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.geometry.triangle import Triangle, hit_triangle
    >>> tri = Triangle(
    ...     v0=ti.math.vec3(0, 0, 0),
    ...     v1=ti.math.vec3(1, 0, 0),
    ...     v2=ti.math.vec3(0, 1, 0),
    ... )
    >>> # Use hit_triangle within a Taichi kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import EPSILON, cross, point3, vec3

from .sphere import HitRecord, make_hit_record, make_miss_record

vec2 = tm.vec2


@ti.dataclass
class Triangle:
    """A triangle defined by three vertices.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
    """

    v0: point3
    v1: point3
    v2: point3


@ti.func
def hit_triangle(
    ray_origin: point3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-triangle intersection (Moller-Trumbore).

    Steps:
        1. h = d x e2, a = e1 . h; |a| < EPSILON means the ray is parallel.
        2. f = 1 / a, s = o - v0, u = f (s . h); reject u outside [0, 1].
        3. q = s x e1, v = f (d . q); reject v < 0 or u + v > 1.
        4. t = f (e2 . q); accept when t > EPSILON and t_min < t < t_max.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        tri: The triangle to test.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord with the barycentric (u, v) stored in uv.
    """
    e1 = tri.v1 - tri.v0
    e2 = tri.v2 - tri.v0

    result = make_miss_record()

    h = cross(ray_direction, e2)
    a = tm.dot(e1, h)

    if ti.abs(a) >= EPSILON:
        f = 1.0 / a
        s = ray_origin - tri.v0
        u = f * tm.dot(s, h)
        if u >= 0.0 and u <= 1.0:
            q = cross(s, e1)
            v = f * tm.dot(ray_direction, q)
            if v >= 0.0 and u + v <= 1.0:
                t = f * tm.dot(e2, q)
                if t > EPSILON and t > t_min and t < t_max:
                    # Evaluate on the surface rather than along the ray
                    point = tri.v0 + u * e1 + v * e2
                    outward_normal = tm.normalize(cross(e1, e2))
                    result = make_hit_record(ray_direction, t, point, outward_normal, vec2(u, v))

    return result


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Compute the unit geometric normal normalize(e1 x e2)."""
    return tm.normalize(cross(tri.v1 - tri.v0, tri.v2 - tri.v0))


def triangle_area(
    v0: tuple[float, float, float],
    v1: tuple[float, float, float],
    v2: tuple[float, float, float],
) -> float:
    """Compute the area of a triangle from Python scope.

    Args:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.

    Returns:
        Half the magnitude of (v1 - v0) x (v2 - v0).
    """
    p0 = np.asarray(v0, dtype=np.float64)
    e1 = np.asarray(v1, dtype=np.float64) - p0
    e2 = np.asarray(v2, dtype=np.float64) - p0
    return float(0.5 * np.linalg.norm(np.cross(e1, e2)))
