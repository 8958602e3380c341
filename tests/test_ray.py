"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, lerp, reflect, refract)
- Schlick's approximation
- Random sampling inside the unit sphere
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_positive_t(self):
        """ray_at(r, t) = origin + t * direction."""
        from src.pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(1.0, 0.0, 0.0))
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_ray_at_non_unit_direction(self):
        """Direction is not normalized before evaluation."""
        from src.pathtracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 2.0, -4.0))
            result[None] = ray_at(ray, 0.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 3.0) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6


class TestCrossProduct:
    """The cross product is right-handed."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
            ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
            ((0, 1, 0), (0, 0, 1), (1, 0, 0)),
            ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
            ((0, 0, 1), (0, 1, 0), (-1, 0, 0)),
            ((1, 0, 0), (0, 0, 1), (0, -1, 0)),
        ],
    )
    def test_basis_vectors(self, a, b, expected):
        from src.pathtracer.core.ray import cross, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(x: vec3, y: vec3):
            result[None] = cross(x, y)

        test_kernel(vec3(*a), vec3(*b))
        r = result[None]
        for k in range(3):
            assert abs(r[k] - expected[k]) < 1e-6


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_length_and_normalize(self):
        from src.pathtracer.core.ray import length, length_squared, normalize, vec3

        lengths = ti.field(dtype=ti.f32, shape=2)
        unit = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            lengths[0] = length(v)
            lengths[1] = length_squared(v)
            unit[None] = normalize(v)

        test_kernel()
        assert abs(lengths[0] - 5.0) < 1e-6
        assert abs(lengths[1] - 25.0) < 1e-5
        u = unit[None]
        assert abs(u[0] - 0.6) < 1e-6
        assert abs(u[1] - 0.8) < 1e-6

    def test_lerp_scalar_and_vector(self):
        from src.pathtracer.core.ray import lerp, vec3

        scalar = ti.field(dtype=ti.f32, shape=())
        vector = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            scalar[None] = lerp(0.25, 2.0, 6.0)
            vector[None] = lerp(0.5, vec3(1.0, 1.0, 1.0), vec3(0.5, 0.7, 1.0))

        test_kernel()
        assert abs(scalar[None] - 3.0) < 1e-6
        v = vector[None]
        assert abs(v[0] - 0.75) < 1e-6
        assert abs(v[1] - 0.85) < 1e-6
        assert abs(v[2] - 1.0) < 1e-6

    def test_has_nans(self):
        from src.pathtracer.core.ray import has_nans, vec3

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel(x: ti.f32):
            result[0] = has_nans(vec3(1.0, 2.0, 3.0))
            result[1] = has_nans(vec3(1.0, x, 3.0))

        test_kernel(float("nan"))
        assert result[0] == 0
        assert result[1] == 1

    def test_near_zero(self):
        from src.pathtracer.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0

    def test_reflect(self):
        """Reflection about the y axis flips the y component."""
        from src.pathtracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestRefraction:
    """Snell's law behaviour of refract()."""

    @staticmethod
    def _sin_from_cos(c: float) -> float:
        return math.sqrt(max(0.0, 1.0 - c * c))

    def test_refract_round_trip(self):
        """Refracting into a denser medium and back out recovers the direction."""
        from src.pathtracer.core.ray import normalize, refract, vec3

        into = ti.field(dtype=ti.math.vec3, shape=())
        back = ti.field(dtype=ti.math.vec3, shape=())
        incident = ti.field(dtype=ti.math.vec3, shape=())

        eta, eta_prime = 1.0, 2.0

        @ti.kernel
        def test_kernel():
            u = normalize(vec3(1.0, 2.0, -1.0))
            n = vec3(0.0, 0.0, 1.0)
            w = refract(u, n, eta / eta_prime)
            incident[None] = u
            into[None] = w
            back[None] = refract(w, n, eta_prime / eta)

        test_kernel()
        u = incident[None]
        w = into[None]
        w1 = back[None]

        # Still travelling downward after entering the denser medium
        assert w[2] < 0.0

        # Snell's law on the way in: eta sin(theta) = eta' sin(theta')
        sin_in = self._sin_from_cos(-u[2])
        sin_out = self._sin_from_cos(-w[2])
        assert abs(eta * sin_in - eta_prime * sin_out) < 1e-5

        for k in range(3):
            assert abs(w1[k] - u[k]) < 1e-5

    def test_refract_normal_incidence_passes_straight(self):
        from src.pathtracer.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestSchlick:
    """Endpoints of Schlick's approximation."""

    @pytest.mark.parametrize("ior", [1.333, 1.5, 2.4])
    def test_normal_incidence(self, ior):
        from src.pathtracer.core.ray import schlick

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(n: ti.f32):
            result[None] = schlick(1.0, n)

        test_kernel(ior)
        expected = ((1.0 - ior) / (1.0 + ior)) ** 2
        assert abs(result[None] - expected) < 1e-6

    @pytest.mark.parametrize("ior", [1.333, 1.5, 2.4])
    def test_grazing_incidence(self, ior):
        from src.pathtracer.core.ray import schlick

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(n: ti.f32):
            result[None] = schlick(0.0, n)

        test_kernel(ior)
        assert abs(result[None] - 1.0) < 1e-6

    def test_same_for_relative_index(self):
        """r0 is symmetric in n and 1/n."""
        from src.pathtracer.core.ray import schlick

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = schlick(0.7, 1.5)
            result[1] = schlick(0.7, 1.0 / 1.5)

        test_kernel()
        assert abs(result[0] - result[1]) < 1e-6


class TestRandomInUnitSphere:
    """Rejection sampling inside the unit ball."""

    def test_points_inside_unit_sphere(self):
        from src.pathtracer.core.ray import length_squared, random_in_unit_sphere

        n = 1000
        lengths = ti.field(dtype=ti.f32, shape=n)
        centroid = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                p = random_in_unit_sphere(k)
                lengths[k] = length_squared(p)
                centroid[k] = p

        test_kernel()
        assert lengths.to_numpy().max() <= 1.0
        # Samples are spread over the ball, not collapsed to the center
        assert lengths.to_numpy().mean() > 0.3
        assert abs(centroid.to_numpy().mean(axis=0)).max() < 0.1
