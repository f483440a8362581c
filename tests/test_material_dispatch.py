"""Tests for the unified material registry and per-hit dispatch."""

import numpy as np
import pytest
import taichi as ti


def _dispatch(material_id, direction=(0.0, -1.0, 0.0), front_face=1):
    """Scatter a ray hitting the plane y = 0 from above with material_id."""
    from pathtracer.core.ray import Ray
    from pathtracer.core.sampling import rng_seed
    from pathtracer.materials.material import emitted, scatter, scattering_pdf
    from pathtracer.scene.intersection import SceneHitRecord, vec3

    did_scatter = ti.field(dtype=ti.i32, shape=())
    mode = ti.field(dtype=ti.i32, shape=())
    attenuation = ti.field(dtype=ti.math.vec3, shape=())
    specular_dir = ti.field(dtype=ti.math.vec3, shape=())
    specular_origin = ti.field(dtype=ti.math.vec3, shape=())
    emission = ti.field(dtype=ti.math.vec3, shape=())
    density = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        ray = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(direction[0], direction[1], direction[2]))
        rec = SceneHitRecord(
            hit=1,
            t=1.0,
            point=vec3(0.0, 0.0, 0.0),
            normal=vec3(0.0, 1.0, 0.0),
            front_face=front_face,
            u=0.0,
            v=0.0,
            material_id=material_id,
        )
        rng = rng_seed(1, 0, 0)
        srec, rng = scatter(material_id, ray, rec, rng)
        did_scatter[None] = srec.did_scatter
        mode[None] = srec.mode
        attenuation[None] = srec.attenuation
        specular_dir[None] = srec.specular_ray.direction
        specular_origin[None] = srec.specular_ray.origin
        emission[None] = emitted(material_id, ray, rec)
        density[None] = scattering_pdf(material_id, ray, rec, vec3(0.0, 1.0, 0.0))

    test_kernel()
    return {
        "did_scatter": did_scatter[None],
        "mode": mode[None],
        "attenuation": attenuation.to_numpy(),
        "specular_dir": specular_dir.to_numpy(),
        "specular_origin": specular_origin.to_numpy(),
        "emitted": emission.to_numpy(),
        "scattering_pdf": density[None],
    }


class TestRegistry:
    """Tests for the material_id table."""

    def test_ids_are_sequential_across_types(self):
        from pathtracer.materials.dielectric import add_dielectric_material
        from pathtracer.materials.lambertian import add_lambertian_material
        from pathtracer.materials.material import MaterialType, get_material_count, register_material

        a = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        b = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.5))
        c = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.2, 0.2, 0.2)))
        assert (a, b, c) == (0, 1, 2)
        assert get_material_count() == 3

    def test_type_lookup(self):
        from pathtracer.materials.material import (
            MaterialType,
            get_material_type,
            get_material_type_index,
            register_material,
        )
        from pathtracer.materials.metal import add_metal_material

        add_metal_material((0.1, 0.1, 0.1))
        register_material(MaterialType.METAL, add_metal_material((0.5, 0.5, 0.5)))

        result = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            result[0] = get_material_type(0)
            result[1] = get_material_type_index(0)
            result[2] = get_material_type(5)
            result[3] = get_material_type_index(-1)

        test_kernel()
        assert [result[i] for i in range(4)] == [int(MaterialType.METAL), 1, -1, -1]

    def test_clear_registry_clears_type_storage(self):
        from pathtracer.materials.lambertian import add_lambertian_material, get_lambertian_material_count
        from pathtracer.materials.material import (
            MaterialType,
            clear_material_registry,
            get_material_count,
            register_material,
        )

        register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.5, 0.5, 0.5)))
        clear_material_registry()
        assert get_material_count() == 0
        assert get_lambertian_material_count() == 0


class TestDispatch:
    """Tests for scatter, emitted and scattering_pdf by material type."""

    def test_lambertian(self):
        from pathtracer.materials.lambertian import add_lambertian_material
        from pathtracer.materials.material import MaterialType, ScatterMode, register_material

        mid = register_material(MaterialType.LAMBERTIAN, add_lambertian_material((0.25, 0.5, 0.75)))
        out = _dispatch(mid)
        assert out["did_scatter"] == 1
        assert out["mode"] == int(ScatterMode.SCATTER_PDF)
        np.testing.assert_allclose(out["attenuation"], [0.25, 0.5, 0.75], atol=1e-6)
        np.testing.assert_allclose(out["emitted"], 0.0)
        assert out["scattering_pdf"] == pytest.approx(1.0 / np.pi, rel=1e-6)

    def test_metal_is_specular(self):
        from pathtracer.materials.material import MaterialType, ScatterMode, register_material
        from pathtracer.materials.metal import add_metal_material

        mid = register_material(MaterialType.METAL, add_metal_material((0.8, 0.8, 0.8), fuzz=0.0))
        out = _dispatch(mid, direction=(0.6, -0.8, 0.0))
        assert out["did_scatter"] == 1
        assert out["mode"] == int(ScatterMode.SCATTER_SPECULAR)
        np.testing.assert_allclose(out["specular_dir"], [0.6, 0.8, 0.0], atol=1e-5)
        # Reflected rays start just above the surface
        assert out["specular_origin"][1] > 0.0
        assert out["scattering_pdf"] == 0.0

    def test_dielectric_refraction_starts_below_surface(self):
        from pathtracer.materials.dielectric import add_dielectric_material
        from pathtracer.materials.material import MaterialType, ScatterMode, register_material

        # ior 1 never reflects at normal incidence
        mid = register_material(MaterialType.DIELECTRIC, add_dielectric_material(1.0))
        out = _dispatch(mid)
        assert out["mode"] == int(ScatterMode.SCATTER_SPECULAR)
        np.testing.assert_allclose(out["specular_dir"], [0.0, -1.0, 0.0], atol=1e-5)
        assert out["specular_origin"][1] < 0.0

    def test_diffuse_light(self):
        from pathtracer.materials.diffuse_light import add_diffuse_light_material
        from pathtracer.materials.material import MaterialType, register_material

        mid = register_material(MaterialType.DIFFUSE_LIGHT, add_diffuse_light_material((7.0, 8.0, 9.0)))
        front = _dispatch(mid, front_face=1)
        assert front["did_scatter"] == 0
        np.testing.assert_allclose(front["emitted"], [7.0, 8.0, 9.0])

        back = _dispatch(mid, front_face=0)
        np.testing.assert_allclose(back["emitted"], 0.0)

    def test_unknown_material_absorbs(self):
        out = _dispatch(12)
        assert out["did_scatter"] == 0
        np.testing.assert_allclose(out["emitted"], 0.0)
