"""Camera module for primary ray generation and image accumulation.

Components:
    thin_lens: CameraConfig, viewport setup and jittered, defocused
        primary rays (Taichi functions)
    camera: The Camera class that renders, accumulates and tone maps

Pixel (row, col) = (0, 0) is the top-left corner of the image.

The Camera class is imported from pathtracer.camera.camera directly, since it
depends on the integrator, which itself needs get_ray from thin_lens.
"""

from .thin_lens import (
    CameraConfig,
    compute_image_height,
    get_camera_info,
    get_ray,
    setup_camera,
    validate_camera_config,
)

__all__ = [
    "CameraConfig",
    "compute_image_height",
    "validate_camera_config",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
