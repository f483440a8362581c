"""Tests for the PDF subsystem.

Normalization is checked by Monte Carlo: for directions w drawn uniformly
from the sphere, E[4 * pi * p(w)] equals the integral of p, which must be 1.
"""

import math

import numpy as np
import pytest
import taichi as ti

N = 200000


def _integrate(make_pdf_in_kernel):
    """Estimate the integral of a PDF over the sphere of directions.

    Args:
        make_pdf_in_kernel: A ti.func with no arguments returning a Pdf.
    """
    from pathtracer.core.pdf import pdf_value
    from pathtracer.core.sampling import random_unit_vector, rng_seed

    total = ti.field(dtype=ti.f64, shape=())

    @ti.kernel
    def integrate_kernel():
        for i in range(N):
            rng = rng_seed(17, i, 0)
            w, rng = random_unit_vector(rng)
            total[None] += ti.cast(4.0 * math.pi * pdf_value(make_pdf_in_kernel(), w), ti.f64)

    total[None] = 0.0
    integrate_kernel()
    return total[None] / N


def _generated_densities(make_pdf_in_kernel, n=5000):
    """Generate directions from a PDF and return them with their densities."""
    from pathtracer.core.pdf import pdf_generate, pdf_value
    from pathtracer.core.sampling import rng_seed

    dirs = ti.field(dtype=ti.math.vec3, shape=n)
    densities = ti.field(dtype=ti.f32, shape=n)

    @ti.kernel
    def generate_kernel():
        for i in range(n):
            rng = rng_seed(23, i, 0)
            pdf = make_pdf_in_kernel()
            d, rng = pdf_generate(pdf, rng)
            dirs[i] = d
            densities[i] = pdf_value(pdf, d)

    generate_kernel()
    return dirs.to_numpy(), densities.to_numpy()


class TestPdfNormalization:
    """Each PDF integrates to 1 over the sphere of directions."""

    def test_sphere_pdf(self):
        from pathtracer.core.pdf import make_sphere_pdf

        @ti.func
        def make():
            return make_sphere_pdf()

        assert _integrate(make) == pytest.approx(1.0, abs=1e-4)

    def test_cosine_pdf(self):
        from pathtracer.core.pdf import make_cosine_pdf, vec3

        @ti.func
        def make():
            return make_cosine_pdf(ti.math.normalize(vec3(1.0, 2.0, -0.5)))

        assert _integrate(make) == pytest.approx(1.0, abs=0.02)

    def test_quad_hittable_pdf(self):
        from pathtracer.core.pdf import SHAPE_QUAD, make_hittable_pdf, vec3
        from pathtracer.scene.intersection import add_quad

        add_quad(vec3(-1.0, 1.0, -1.0), vec3(2.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0), material_id=0)

        @ti.func
        def make():
            return make_hittable_pdf(vec3(0.0, 0.0, 0.0), SHAPE_QUAD, 0)

        assert _integrate(make) == pytest.approx(1.0, abs=0.03)

    def test_sphere_hittable_pdf(self):
        from pathtracer.core.pdf import SHAPE_SPHERE, make_hittable_pdf, vec3
        from pathtracer.scene.intersection import add_sphere

        add_sphere(vec3(0.0, 0.0, -2.0), 1.0, material_id=0)

        @ti.func
        def make():
            return make_hittable_pdf(vec3(0.0, 0.0, 0.0), SHAPE_SPHERE, 0)

        assert _integrate(make) == pytest.approx(1.0, abs=0.04)

    def test_lights_pdf(self):
        from pathtracer.core.pdf import make_lights_pdf, vec3
        from pathtracer.scene.intersection import SHAPE_QUAD, SHAPE_SPHERE, add_light, add_quad, add_sphere

        add_sphere(vec3(0.0, 0.0, -2.0), 1.0, material_id=0)
        add_quad(vec3(-1.0, 1.0, -1.0), vec3(2.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0), material_id=0)
        add_light(SHAPE_SPHERE, 0)
        add_light(SHAPE_QUAD, 0)

        @ti.func
        def make():
            return make_lights_pdf(vec3(0.0, 0.0, 0.0))

        assert _integrate(make) == pytest.approx(1.0, abs=0.03)


class TestGeneratedDirections:
    """Generated directions are unit length with positive density."""

    def test_cosine_pdf(self):
        from pathtracer.core.pdf import make_cosine_pdf, vec3

        @ti.func
        def make():
            return make_cosine_pdf(vec3(0.0, 1.0, 0.0))

        dirs, densities = _generated_densities(make)
        np.testing.assert_allclose(np.linalg.norm(dirs, axis=1), 1.0, atol=1e-5)
        assert np.all(densities > 0.0)
        assert np.all(dirs[:, 1] > 0.0)

    def test_lights_pdf(self):
        from pathtracer.core.pdf import make_lights_pdf, vec3
        from pathtracer.scene.intersection import SHAPE_QUAD, add_light, add_quad

        add_quad(vec3(-0.5, 2.0, -0.5), vec3(1.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), material_id=0)
        add_light(SHAPE_QUAD, 0)

        @ti.func
        def make():
            return make_lights_pdf(vec3(0.0, 0.0, 0.0))

        dirs, densities = _generated_densities(make)
        np.testing.assert_allclose(np.linalg.norm(dirs, axis=1), 1.0, atol=1e-5)
        assert np.all(densities > 0.0)


class TestMixturePdf:
    """Tests for the two-component mixture."""

    @pytest.mark.parametrize("ratio", [0.0, 0.25, 0.5, 1.0])
    def test_value_is_convex_combination(self, ratio):
        from pathtracer.core.pdf import (
            make_cosine_pdf,
            make_mixture_pdf,
            make_sphere_pdf,
            mixture_pdf_value,
            pdf_value,
            vec3,
        )

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            a = make_cosine_pdf(vec3(0.0, 0.0, 1.0))
            b = make_sphere_pdf()
            d = ti.math.normalize(vec3(0.3, 0.1, 0.8))
            result[0] = mixture_pdf_value(make_mixture_pdf(a, b, ratio), d)
            result[1] = pdf_value(a, d)
            result[2] = pdf_value(b, d)

        test_kernel()
        expected = ratio * result[1] + (1.0 - ratio) * result[2]
        assert result[0] == pytest.approx(expected, rel=1e-6)

    @pytest.mark.parametrize("ratio", [0.2, 0.5, 0.8])
    def test_sampling_frequency_matches_ratio(self, ratio):
        from pathtracer.core.pdf import make_cosine_pdf, make_mixture_pdf, mixture_pdf_generate, vec3
        from pathtracer.core.sampling import rng_seed

        n = 20000
        up = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = rng_seed(29, i, 0)
                # Opposite hemispheres tell the components apart
                mix = make_mixture_pdf(
                    make_cosine_pdf(vec3(0.0, 0.0, 1.0)),
                    make_cosine_pdf(vec3(0.0, 0.0, -1.0)),
                    ratio,
                )
                d, rng = mixture_pdf_generate(mix, rng)
                up[i] = 1 if d.z > 0.0 else 0

        test_kernel()
        assert up.to_numpy().mean() == pytest.approx(ratio, abs=0.015)

    def test_mixture_integrates_to_one(self):
        from pathtracer.core.pdf import (
            SHAPE_QUAD,
            make_cosine_pdf,
            make_hittable_pdf,
            make_mixture_pdf,
            mixture_pdf_value,
            vec3,
        )
        from pathtracer.core.sampling import random_unit_vector, rng_seed
        from pathtracer.scene.intersection import add_quad

        add_quad(vec3(-1.0, 1.0, -1.0), vec3(2.0, 0.0, 0.0), vec3(0.0, 0.0, 2.0), material_id=0)
        total = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            for i in range(N):
                rng = rng_seed(31, i, 0)
                w, rng = random_unit_vector(rng)
                mix = make_mixture_pdf(
                    make_hittable_pdf(vec3(0.0, 0.0, 0.0), SHAPE_QUAD, 0),
                    make_cosine_pdf(vec3(0.0, 1.0, 0.0)),
                    0.5,
                )
                total[None] += ti.cast(4.0 * math.pi * mixture_pdf_value(mix, w), ti.f64)

        test_kernel()
        assert total[None] / N == pytest.approx(1.0, abs=0.03)
