"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive, HitRecord and normal orientation
    triangle: Triangle primitive with Moller-Trumbore intersection

All intersection routines are Taichi functions (@ti.func). They never fail:
numerical degeneracies (tangent rays, rays parallel to a triangle's plane)
simply report no hit. Every record returned with hit == 1 has its normal
facing the incoming ray.

Ray-object intersection follows the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_hit_record, make_miss_record
from .triangle import Triangle, hit_triangle, triangle_area, triangle_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_hit_record",
    "make_miss_record",
    "Triangle",
    "hit_triangle",
    "triangle_area",
    "triangle_normal",
]
