"""Tests for tone mapping, quantization and PNG export."""

import numpy as np
import pytest


class TestToneMapping:
    """Tests for the ACES curve and gamma encoding."""

    def test_aces_black_and_white_points(self):
        from pathtracer.preview.display import tone_map_aces

        image = np.array([[[0.0, 1.0, 1000.0]]], dtype=np.float32)
        result = tone_map_aces(image)
        assert result[0, 0, 0] == pytest.approx(0.0)
        assert result[0, 0, 1] == pytest.approx(2.54 / 3.16, rel=1e-5)
        # The curve tends to 2.51 / 2.43 > 1 and is clipped
        assert result[0, 0, 2] == pytest.approx(1.0)

    def test_aces_is_monotonic_and_clamps_negative(self):
        from pathtracer.preview.display import tone_map_aces

        values = np.linspace(-1.0, 10.0, 200, dtype=np.float32).reshape(1, -1, 1)
        result = tone_map_aces(values).ravel()
        assert np.all(np.diff(result) >= 0.0)
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)

    def test_gamma(self):
        from pathtracer.preview.display import apply_gamma

        image = np.array([[[0.25, 0.5, 1.0]]], dtype=np.float32)
        result = apply_gamma(image, 2.0)
        assert result[0, 0] == pytest.approx([0.5, np.sqrt(0.5), 1.0], rel=1e-6)
        assert apply_gamma(image, 1.0) is image

    def test_unknown_tone_map(self):
        from pathtracer.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Unknown tone mapping"):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), tone_map="reinhard")


class TestQuantization:
    """Tests for byte conversion."""

    def test_quantize(self):
        from pathtracer.preview.display import quantize_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [-0.2, 0.999, 2.0]]], dtype=np.float32)
        result = quantize_to_uint8(image)
        assert result.dtype == np.uint8
        assert result[0, 0].tolist() == [0, 128, 255]
        assert result[0, 1].tolist() == [0, 255, 255]

    def test_full_pipeline(self):
        from pathtracer.preview.display import image_to_uint8

        image = np.zeros((2, 3, 3), dtype=np.float32)
        image[0, 0] = 1000.0
        result = image_to_uint8(image)
        assert result.shape == (2, 3, 3)
        assert result[0, 0].tolist() == [255, 255, 255]
        assert result[1, 2].tolist() == [0, 0, 0]

    def test_no_tone_map_linear_gamma(self):
        from pathtracer.preview.display import image_to_uint8

        image = np.full((1, 1, 3), 0.5, dtype=np.float32)
        assert image_to_uint8(image, tone_map="none", gamma=1.0)[0, 0].tolist() == [128, 128, 128]


class TestExport:
    """Tests for PNG export and image comparison."""

    def test_save_png_from_array(self, tmp_path):
        from PIL import Image

        from pathtracer.preview.export import save_png_from_array

        image = np.zeros((4, 6, 3), dtype=np.float32)
        image[0, 0] = [0.5, 0.0, 0.0]
        path = tmp_path / "array.png"
        save_png_from_array(image, path, tone_map="none", gamma=1.0)

        with Image.open(path) as loaded:
            assert loaded.mode == "RGB"
            assert loaded.size == (6, 4)
            pixels = np.asarray(loaded)
        assert pixels[0, 0].tolist() == [128, 0, 0]
        assert pixels[3, 5].tolist() == [0, 0, 0]

    def test_save_png_from_camera(self, tmp_path):
        from PIL import Image

        from pathtracer.camera.camera import Camera
        from pathtracer.camera.thin_lens import CameraConfig
        from pathtracer.preview.export import save_png

        camera = Camera(CameraConfig(aspect_ratio=1.0, image_width=5, samples_per_pixel=1, background=(1.0, 1.0, 1.0)))
        camera.render()
        path = tmp_path / "camera.png"
        save_png(camera, path)

        with Image.open(path) as loaded:
            assert loaded.size == (5, 5)
            assert np.array_equal(np.asarray(loaded), camera.image())

    def test_rmse(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.float32)
        b = np.full((2, 2, 3), 0.5, dtype=np.float32)
        assert compute_rmse(a, a) == 0.0
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_rmse_shape_mismatch(self):
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
