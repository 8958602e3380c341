"""Taichi-based Monte Carlo path tracer.

This package renders static scenes of spheres and triangles into PNG images
using recursive path tracing, with support for:
- Lambertian, metal, dielectric and null (absorbing) materials
- Procedural gradient backgrounds as the only light source
- Seedable, per-pixel random streams for reproducible renders
- Gamma-encoded 8-bit RGBA output

Subpackages:
    core: Ray algebra, random streams, the integrator and the render driver
    geometry: Sphere and triangle intersection kernels
    materials: Scatter functions for each material type
    scene: Primitive storage, scene manager and preset scenes
    camera: Pinhole camera with ray generation
    imaging: Tone mapping and PNG export
"""

__version__ = "0.1.0"
