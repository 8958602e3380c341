"""Unit tests for the metal material."""

import math

import numpy as np
import pytest
import taichi as ti


def _scatter(incident, normal, roughness=0.0, n=1):
    from src.pathtracer.core.ray import vec3
    from src.pathtracer.materials.metal import scatter_metal

    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=n)
    scattered = ti.field(dtype=ti.i32, shape=n)

    @ti.kernel
    def test_kernel(d: vec3, nrm: vec3, fuzz: ti.f32):
        for k in range(n):
            ray, att, did = scatter_metal(vec3(0.8, 0.6, 0.2), fuzz, d, vec3(0.0, 0.0, 0.0), nrm, k)
            directions[k] = ray.direction
            attenuation[k] = att
            scattered[k] = did

    test_kernel(vec3(*incident), vec3(*normal), roughness)
    return directions.to_numpy(), attenuation.to_numpy(), scattered.to_numpy()


class TestMetalScatter:
    def test_mirror_reflection(self):
        directions, attenuation, scattered = _scatter((1.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        s = 1.0 / math.sqrt(2.0)
        np.testing.assert_allclose(directions[0], [s, s, 0.0], atol=1e-6)
        np.testing.assert_allclose(attenuation[0], [0.8, 0.6, 0.2], atol=1e-6)
        assert scattered[0] == 1

    def test_reflection_below_surface_absorbs(self):
        """Reflecting a ray that leaves along the normal points back into the surface."""
        _, _, scattered = _scatter((0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
        assert scattered[0] == 0

    def test_incident_length_does_not_matter(self):
        short, _, _ = _scatter((1.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        long, _, _ = _scatter((10.0, -10.0, 0.0), (0.0, 1.0, 0.0))
        np.testing.assert_allclose(short, long, atol=1e-6)

    def test_rough_reflection_stays_near_mirror(self):
        n = 512
        directions, _, scattered = _scatter((1.0, -1.0, 0.0), (0.0, 1.0, 0.0), roughness=0.3, n=n)
        s = 1.0 / math.sqrt(2.0)
        offsets = np.linalg.norm(directions - np.array([s, s, 0.0]), axis=1)
        assert offsets.max() <= 0.3 + 1e-5
        assert offsets.std() > 0.0
        # Scattered rays always leave above the surface
        assert np.all(directions[scattered == 1][:, 1] > 0.0)

    def test_grazing_rough_reflection_can_absorb(self):
        n = 512
        _, _, scattered = _scatter((1.0, -0.05, 0.0), (0.0, 1.0, 0.0), roughness=1.0, n=n)
        assert 0 < scattered.sum() < n


class TestMetalRegistry:
    def test_add_and_read_back(self):
        from src.pathtracer.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_material_count,
            get_metal_roughness,
        )

        idx = add_metal_material((0.8, 0.6, 0.2), roughness=0.3)
        assert idx == 0
        assert get_metal_material_count() == 1

        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(i: ti.i32):
            albedo[None] = get_metal_albedo(i)
            fuzz[None] = get_metal_roughness(i)

        test_kernel(idx)
        assert abs(albedo[None][0] - 0.8) < 1e-6
        assert abs(fuzz[None] - 0.3) < 1e-6

    def test_default_roughness_is_mirror(self):
        from src.pathtracer.materials.metal import add_metal_material, metal_roughness

        idx = add_metal_material((0.8, 0.8, 0.8))
        assert metal_roughness[idx] == 0.0

    @pytest.mark.parametrize("roughness", [-0.1, 1.5])
    def test_rejects_roughness(self, roughness):
        from src.pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 0.5, 0.5), roughness=roughness)

    def test_rejects_albedo(self):
        from src.pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 2.0, 0.5))

    def test_capacity(self):
        from src.pathtracer.materials.metal import MAX_METAL_MATERIALS, add_metal_material

        for _ in range(MAX_METAL_MATERIALS):
            add_metal_material((0.5, 0.5, 0.5))
        with pytest.raises(RuntimeError):
            add_metal_material((0.5, 0.5, 0.5))
