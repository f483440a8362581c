"""Tests for the radiance estimator and the render target."""

import numpy as np
import pytest


def _setup_view(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), width=16, vfov=40.0):
    from pathtracer.camera.thin_lens import CameraConfig, setup_camera
    from pathtracer.core.integrator import setup_render_target

    config = CameraConfig(
        aspect_ratio=1.0,
        image_width=width,
        vfov=vfov,
        focus_dist=3.0,
        lookfrom=lookfrom,
        lookat=lookat,
    )
    w, h = setup_camera(config)
    setup_render_target(w, h)
    return w, h


def _ground_and_light(scene, occluded=False):
    """Ground plane at y=0 under a downward-facing light at y=2."""
    ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_quad((-5.0, 0.0, -5.0), (10.0, 0.0, 0.0), (0.0, 0.0, 10.0), ground)
    # cross((2,0,0), (0,0,2)) points down toward the ground
    scene.add_light_quad((-1.0, 2.0, -1.0), (2.0, 0.0, 0.0), (0.0, 0.0, 2.0), (4.0, 4.0, 4.0))
    if occluded:
        black = scene.add_lambertian_material((0.0, 0.0, 0.0))
        scene.add_quad((-4.0, 1.0, -4.0), (8.0, 0.0, 0.0), (0.0, 0.0, 8.0), black)


def _overhead_sphere_light(scene, distance, radiance=2.0):
    """Ground at y=0 lit by a unit sphere light straight overhead.

    A sphere light of radius r at distance d above a diffuse ground of
    albedo a gives the ground radiance a * emission * r^2 / d^2. The emission
    is scaled so that this equals radiance.
    """
    albedo = 0.5
    ground = scene.add_lambertian_material((albedo, albedo, albedo))
    scene.add_quad((-50.0, 0.0, -50.0), (100.0, 0.0, 0.0), (0.0, 0.0, 100.0), ground)
    emission = radiance * distance**2 / albedo
    light = scene.add_diffuse_light_material((emission, emission, emission))
    scene.add_sphere((0.0, distance, 0.0), 1.0, light, is_light=True)


class TestRenderTarget:
    """Tests for render target setup and state errors."""

    def test_setup_and_dimensions(self):
        from pathtracer.core.integrator import (
            get_image_dimensions,
            get_linear_image,
            get_sample_count,
            setup_render_target,
        )

        setup_render_target(32, 8)
        assert get_image_dimensions() == (32, 8)
        assert get_sample_count() == 0
        image = get_linear_image()
        assert image.shape == (8, 32, 3)
        assert image.dtype == np.float32
        assert np.all(image == 0.0)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (4096, 10), (10, 4096)])
    def test_invalid_dimensions(self, width, height):
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_render_before_setup(self):
        from pathtracer.core.integrator import get_linear_image, get_sample_count, render_image

        with pytest.raises(RuntimeError):
            render_image(1)
        with pytest.raises(RuntimeError):
            get_sample_count()
        with pytest.raises(RuntimeError):
            get_linear_image()

    def test_sample_count_accumulates(self):
        from pathtracer.core.integrator import clear_render_target, get_sample_count, render_image

        _setup_view(width=4)
        render_image(2)
        render_image(3)
        assert get_sample_count() == 5
        clear_render_target()
        assert get_sample_count() == 0


class TestIntegratorSettings:
    """Tests for background and mixture ratio configuration."""

    def test_defaults(self):
        from pathtracer.core.integrator import DEFAULT_MIXTURE_RATIO, get_background, get_mixture_ratio

        assert get_background() == (0.0, 0.0, 0.0)
        assert get_mixture_ratio() == pytest.approx(DEFAULT_MIXTURE_RATIO)

    def test_invalid_values(self):
        from pathtracer.core.integrator import set_background, set_mixture_ratio

        with pytest.raises(ValueError):
            set_background((-0.1, 0.0, 0.0))
        with pytest.raises(ValueError):
            set_mixture_ratio(1.5)
        with pytest.raises(ValueError):
            set_mixture_ratio(-0.1)


class TestRadiance:
    """Tests for the radiance estimator."""

    def test_depth_zero_is_black(self):
        from pathtracer.core.integrator import render_sample, set_background
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_light_quad((-1.0, -1.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), (10.0, 10.0, 10.0))
        set_background((1.0, 1.0, 1.0))
        _setup_view()

        assert render_sample(8, 8, max_depth=0) == (0.0, 0.0, 0.0)

    def test_miss_returns_background(self):
        from pathtracer.core.integrator import render_sample, set_background

        set_background((0.2, 0.4, 0.6))
        _setup_view()
        assert render_sample(3, 5) == pytest.approx((0.2, 0.4, 0.6))

    def test_visible_light_returns_emission(self):
        from pathtracer.core.integrator import render_sample
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        # Front face toward the camera at z=3
        scene.add_light_quad((-1.0, -1.0, 0.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), (3.0, 2.0, 1.0))
        _setup_view()
        assert render_sample(8, 8, max_depth=1) == pytest.approx((3.0, 2.0, 1.0))

    def test_back_of_light_is_black(self):
        from pathtracer.core.integrator import render_sample
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_light_quad((-1.0, -1.0, 0.0), (0.0, 2.0, 0.0), (2.0, 0.0, 0.0), (3.0, 2.0, 1.0))
        _setup_view()
        assert render_sample(8, 8, max_depth=1) == (0.0, 0.0, 0.0)

    def test_diffuse_sphere_in_white_furnace(self):
        """A convex diffuse object under uniform sky reflects exactly albedo * sky."""
        from pathtracer.core.integrator import render_sample, set_background
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, 0.0), 1.0, (0.5, 0.25, 0.75))
        set_background((1.0, 1.0, 1.0))
        _setup_view()

        for sample in range(8):
            color = render_sample(8, 8, sample_index=sample, max_depth=4)
            assert color == pytest.approx((0.5, 0.25, 0.75), abs=1e-4)

    def test_radiance_is_finite_and_non_negative(self):
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.integrator import get_linear_image, render_image, setup_render_target
        from pathtracer.scene.cornell_box import create_cornell_box_scene

        _, config = create_cornell_box_scene(image_width=24)
        setup_render_target(*setup_camera(config))
        render_image(4, seed=3, max_depth=8)

        image = get_linear_image()
        assert np.all(np.isfinite(image))
        assert np.all(image >= 0.0)
        assert image.mean() > 0.0

    def test_lit_versus_shadowed(self):
        from pathtracer.core.integrator import get_linear_image, render_image
        from pathtracer.scene.manager import SceneManager

        means = []
        for occluded in (False, True):
            scene = SceneManager()
            _ground_and_light(scene, occluded=occluded)
            # Camera below the occluder, looking at the ground under the light
            _setup_view(lookfrom=(0.0, 0.5, 3.0), lookat=(0.0, 0.0, 0.0), width=16, vfov=20.0)
            render_image(16, seed=1, max_depth=4)
            means.append(get_linear_image().mean())

        lit, shadowed = means
        assert lit > 0.05
        assert shadowed < 0.1 * lit

    def test_sphere_light_lit_hemisphere_brighter(self):
        from pathtracer.camera.camera import Camera
        from pathtracer.camera.thin_lens import CameraConfig
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, 0.0), 1.0, (0.8, 0.8, 0.8))
        light = scene.add_diffuse_light_material((10.0, 10.0, 10.0))
        # Out of view to the right (+x) of the diffuse sphere
        scene.add_sphere((4.0, 0.0, 0.0), 1.0, light, is_light=True)

        camera = Camera(
            CameraConfig(
                aspect_ratio=1.0,
                image_width=32,
                vfov=30.0,
                focus_dist=5.0,
                samples_per_pixel=32,
                max_depth=4,
                lookfrom=(0.0, 0.0, 5.0),
                lookat=(0.0, 0.0, 0.0),
            )
        )
        camera.render()

        pixels = np.frombuffer(camera.pixel_buffer(), dtype=np.uint8).reshape(camera.height, camera.width, 3)
        luminance = pixels.astype(np.float64) @ np.array([0.2126, 0.7152, 0.0722])
        # Columns 22-25 see the sphere around x = +0.65, columns 6-9 around x = -0.65
        lit = luminance[14:18, 22:26]
        shadowed = luminance[14:18, 6:10]
        assert lit.min() > shadowed.max()

    @pytest.mark.parametrize("distance", [50.0, 5000.0, 20000.0])
    def test_distant_sphere_light(self, distance):
        from pathtracer.core.integrator import get_linear_image, render_image
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        _overhead_sphere_light(scene, distance)
        _setup_view(lookfrom=(0.0, 1.0, 2.0), lookat=(0.0, 0.0, 0.0), width=16, vfov=10.0)
        render_image(32, seed=2, max_depth=4)

        image = get_linear_image()
        assert np.all(np.isfinite(image))
        assert image.mean() == pytest.approx(2.0, rel=0.1)

    @pytest.mark.slow
    def test_estimate_independent_of_mixture_ratio(self):
        from pathtracer.core.integrator import (
            clear_render_target,
            get_linear_image,
            render_image,
            set_mixture_ratio,
        )
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        _ground_and_light(scene)
        _setup_view(lookfrom=(0.0, 0.5, 3.0), lookat=(0.0, 0.0, 0.0), width=16, vfov=20.0)

        means = []
        for ratio in (0.0, 0.5, 1.0):
            set_mixture_ratio(ratio)
            clear_render_target()
            render_image(64, seed=5, max_depth=4)
            means.append(get_linear_image().mean())

        assert means[0] == pytest.approx(means[1], rel=0.1)
        assert means[2] == pytest.approx(means[1], rel=0.1)
