"""Unit tests for the metal material."""

import numpy as np
import pytest
import taichi as ti


def _scatter(incident, normal, fuzz, n=1):
    from pathtracer.core.sampling import rng_seed
    from pathtracer.materials.metal import scatter_metal, vec3

    dirs = ti.field(dtype=ti.math.vec3, shape=n)
    attenuation = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel():
        for i in range(n):
            rng = rng_seed(1, i, 0)
            d, att, rng = scatter_metal(
                vec3(0.9, 0.8, 0.7),
                fuzz,
                vec3(incident[0], incident[1], incident[2]),
                vec3(normal[0], normal[1], normal[2]),
                rng,
            )
            dirs[i] = d
            attenuation[None] = att

    test_kernel()
    return dirs.to_numpy(), attenuation.to_numpy()


class TestMetalStorage:
    """Tests for metal material storage."""

    def test_add_and_read_back(self):
        from pathtracer.materials.metal import add_metal_material, get_metal_fuzz, get_metal_material_count

        add_metal_material((0.5, 0.5, 0.5))
        idx = add_metal_material((0.9, 0.9, 0.9), fuzz=0.25)
        assert idx == 1
        assert get_metal_material_count() == 2

        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            fuzz[None] = get_metal_fuzz(1)

        test_kernel()
        assert fuzz[None] == pytest.approx(0.25)

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_fuzz_out_of_range(self, fuzz):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)

    def test_invalid_albedo(self):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((1.5, 0.5, 0.5))


class TestMetalScatter:
    """Tests for metal scattering."""

    def test_perfect_mirror(self):
        dirs, attenuation = _scatter((1.0, -1.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        s = 1.0 / np.sqrt(2.0)
        np.testing.assert_allclose(dirs[0], [s, s, 0.0], atol=1e-5)
        np.testing.assert_allclose(attenuation, [0.9, 0.8, 0.7], atol=1e-6)

    def test_unnormalized_incident(self):
        dirs, _ = _scatter((0.0, -5.0, 0.0), (0.0, 1.0, 0.0), 0.0)
        np.testing.assert_allclose(dirs[0], [0.0, 1.0, 0.0], atol=1e-5)

    def test_fuzzy_reflection_stays_near_mirror(self):
        dirs, _ = _scatter((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 0.3, n=2000)
        np.testing.assert_allclose(np.linalg.norm(dirs, axis=1), 1.0, atol=1e-5)
        # Offset of length <= 0.3 from the unit mirror direction
        assert np.all(dirs[:, 1] >= np.cos(np.arcsin(0.3)) - 1e-4)
        assert dirs[:, 1].min() < 0.999
