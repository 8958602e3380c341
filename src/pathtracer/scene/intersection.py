"""Primitive tables and nearest-hit queries over the whole scene.

Spheres and triangles live in two fixed-capacity tables of Taichi fields,
one field per attribute. A query walks both tables linearly; there is no
acceleration structure. Every primitive stores the material id it is
shaded with.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> import taichi.math as tm
    >>> from src.pathtracer.scene.intersection import add_sphere, add_triangle, clear_scene
    >>> clear_scene()
    >>> add_sphere(tm.vec3(0, 0, -1), 0.5, material_id=0)
    0
    >>> add_triangle(tm.vec3(-1, -0.5, -2), tm.vec3(1, -0.5, -2), tm.vec3(0, 1, -2), material_id=1)
    0
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere
from src.pathtracer.geometry.triangle import Triangle, hit_triangle

vec3 = tm.vec3
vec2 = tm.vec2


@ti.dataclass
class SceneHitRecord:
    """A geometry HitRecord plus the material of the primitive that was hit.

    Attributes:
        hit: 1 when some primitive was hit, else 0.
        t: Ray parameter of the nearest hit.
        point: Hit position.
        normal: Unit normal facing the incoming ray.
        front_face: 1 when the ray arrived from the outward side.
        uv: Barycentric (u, v) on triangles, (0, 0) on spheres.
        material_id: Material of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    uv: vec2
    material_id: ti.i32


MAX_SPHERES = 1024
MAX_TRIANGLES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_material_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Empty both primitive tables. Old entries are overwritten on reuse."""
    num_spheres[None] = 0
    num_triangles[None] = 0


def _append_index(counter, capacity: int, what: str) -> int:
    index = int(counter[None])
    if index >= capacity:
        raise RuntimeError(f"Scene already holds the maximum of {capacity} {what}")
    counter[None] = index + 1
    return index


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its table index.

    Raises:
        ValueError: ``radius`` is not positive.
        RuntimeError: The sphere table is full.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    index = _append_index(num_spheres, MAX_SPHERES, "spheres")
    sphere_centers[index] = center
    sphere_radii[index] = radius
    sphere_material_ids[index] = material_id
    return index


def add_triangle(v0: vec3, v1: vec3, v2: vec3, material_id: int = 0) -> int:
    """Append a triangle and return its table index.

    Seen from the front face, v0, v1, v2 run counter-clockwise.

    Raises:
        RuntimeError: The triangle table is full.
    """
    index = _append_index(num_triangles, MAX_TRIANGLES, "triangles")
    triangle_v0[index] = v0
    triangle_v1[index] = v1
    triangle_v2[index] = v2
    triangle_material_ids[index] = material_id
    return index


def get_sphere_count() -> int:
    return int(num_spheres[None])


def get_triangle_count() -> int:
    return int(num_triangles[None])


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        uv=rec.uv,
        material_id=material_id,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Nearest hit over every sphere and triangle within (t_min, t_max).

    Each accepted hit becomes the new upper bound of the window, so later
    primitives only register if they are closer. A miss comes back with
    hit == 0 and material_id == -1.
    """
    nearest = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0),
        normal=vec3(0.0),
        front_face=0,
        uv=vec2(0.0),
        material_id=-1,
    )
    window_end = t_max

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, window_end)
        if rec.hit == 1:
            window_end = rec.t
            nearest = _with_material(rec, sphere_material_ids[i])

    for i in range(num_triangles[None]):
        tri = Triangle(v0=triangle_v0[i], v1=triangle_v1[i], v2=triangle_v2[i])
        rec = hit_triangle(ray_origin, ray_direction, tri, t_min, window_end)
        if rec.hit == 1:
            window_end = rec.t
            nearest = _with_material(rec, triangle_material_ids[i])

    return nearest
