"""Null material: absorbs every ray.

Stands in for missing materials and is handy in tests, where a surface that
never scatters makes the integrator's result depend on geometry alone.
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import make_ray, point3

vec3 = tm.vec3


@ti.func
def scatter_null(incident_direction: vec3, hit_point: point3):
    """Absorb the incoming ray.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) with
        did_scatter == 0; the ray and attenuation are placeholders.
    """
    return make_ray(hit_point, incident_direction), vec3(0.0, 0.0, 0.0), 0
