"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure and vector/point algebra
    sampler: Seedable per-pixel random number streams
    integrator: Radiance estimation, background palette and render target
    progressive: Render driver (RenderOptions, render, ProgressiveRenderer)

The core module evaluates the rendering equation with a bounded Monte Carlo
random walk: each bounce multiplies the path throughput by the material's
attenuation until the path escapes to the background, is absorbed, or runs
out of bounce budget.
"""

from .ray import (
    EPSILON,
    Ray,
    cross,
    dot,
    has_nans,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    normalize,
    point3,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick,
    vec3,
)
from .sampler import MAX_STREAMS, entropy_seed, rand, seed_streams

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.progressive.

__all__ = [
    "EPSILON",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "point3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "lerp",
    "has_nans",
    "near_zero",
    "reflect",
    "refract",
    "schlick",
    "random_in_unit_sphere",
    "MAX_STREAMS",
    "rand",
    "seed_streams",
    "entropy_seed",
]
