"""Camera that renders, accumulates and tone maps a full image.

Camera wraps the thin-lens ray generator and the integrator's render target.
Creating a Camera sets up the viewport, the render target and the integrator
settings (background, mixture ratio) from a single CameraConfig.

The scene, the camera geometry and the image buffers live in global Taichi
fields, so only the most recently created Camera is active.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera
    >>> from pathtracer.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, config = create_cornell_box_scene()
    >>> camera = Camera(config)
    >>> camera.render()
    >>> rgb8 = camera.image()
"""

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from pathtracer.camera.thin_lens import CameraConfig, setup_camera
from pathtracer.core.integrator import (
    clear_render_target,
    get_linear_image,
    get_sample_count,
    render_image,
    set_background,
    set_mixture_ratio,
    setup_render_target,
)
from pathtracer.preview.display import image_to_uint8

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, target_samples)
ProgressCallback = Callable[[int, int], None]


class Camera:
    """A configured camera with its own accumulation buffer.

    Attributes:
        config: The configuration the camera was built from.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        """Set up the camera, render target and integrator settings.

        Args:
            config: Camera configuration (defaults to CameraConfig()).

        Raises:
            ValueError: If the configuration is invalid or the image is
                larger than the render target supports.
        """
        self.config = config if config is not None else CameraConfig()
        self._width, self._height = setup_camera(self.config)
        setup_render_target(self._width, self._height)
        set_background(self.config.background)
        set_mixture_ratio(self.config.mixture_ratio)

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Number of samples accumulated per pixel so far."""
        return get_sample_count()

    def reset(self) -> None:
        """Discard the accumulated samples, keeping the configuration."""
        clear_render_target()

    def render(
        self,
        callback: ProgressCallback | None = None,
        batch_size: int = 1,
        num_samples: int | None = None,
    ) -> None:
        """Accumulate samples_per_pixel more samples per pixel.

        Calling render() again continues the same sample sequence, so two
        calls give the same image as one render with twice the samples.

        Args:
            callback: Optional function called after each batch with
                (current_samples, target_samples).
            batch_size: Number of samples rendered between callbacks.
            num_samples: Samples to add (default config.samples_per_pixel).

        Raises:
            ValueError: If batch_size is less than 1.
        """
        for current, target in self.render_progressive(batch_size=batch_size, num_samples=num_samples):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        batch_size: int = 1,
        num_samples: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render in batches, yielding progress after each batch.

        Yields:
            Tuple of (current_samples, target_samples).

        Raises:
            ValueError: If batch_size is less than 1.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if num_samples is None:
            num_samples = self.config.samples_per_pixel
        if num_samples <= 0:
            return

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.info(
            "Rendering %dx%d, %d samples per pixel, max depth %d",
            self._width,
            self._height,
            num_samples,
            self.config.max_depth,
        )

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, seed=self.config.seed, max_depth=self.config.max_depth)
            remaining -= batch
            logger.info("Samples remaining: %d", remaining)
            yield (self.sample_count, target_samples)

        logger.info("Render finished at %d samples per pixel", self.sample_count)

    def linear_image(self) -> npt.NDArray[np.float32]:
        """Averaged linear radiance of shape (height, width, 3)."""
        return get_linear_image()

    def image(self) -> npt.NDArray[np.uint8]:
        """Tone mapped RGB8 image of shape (height, width, 3), row 0 on top."""
        return image_to_uint8(self.linear_image())

    def pixel_buffer(self) -> bytes:
        """Row-major RGB8 bytes, three per pixel."""
        return np.ascontiguousarray(self.image()).tobytes()

    def __repr__(self) -> str:
        return f"Camera(width={self.width}, height={self.height}, samples={self.sample_count})"
