"""Thin-lens camera model for primary ray generation.

This module turns a CameraConfig into the viewport geometry kept in Taichi
fields and generates jittered, optionally defocused primary rays.

The camera frame is derived from the view parameters:
- forward: normalize(lookat - lookfrom)
- viewport_u: spans the viewport left to right, along cross(forward, vup)
- viewport_v: spans the viewport top to bottom, along cross(forward, viewport_u)

The viewport sits at focus_dist in front of the camera, so objects at that
distance are in perfect focus. With defocus_angle > 0, ray origins are
spread over a disk of radius tan(defocus_angle / 2) * focus_dist around the
camera position, which blurs everything off the focus plane.

Pixel (row, col) = (0, 0) is the top-left corner of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import CameraConfig, setup_camera
    >>> config = CameraConfig(
    ...     lookfrom=(0.0, 1.0, 0.0),
    ...     lookat=(0.0, 0.0, -5.0),
    ...     vfov=30.0,
    ... )
    >>> width, height = setup_camera(config)
    >>> (width, height)
    (400, 225)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import make_ray
from pathtracer.core.sampling import random_in_unit_disk, random_range

logger = logging.getLogger(__name__)

# Shortest accepted look direction and cross(forward, vup)
_DEGENERATE_EPSILON = 1e-8


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for the thin-lens camera and its render.

    Attributes:
        aspect_ratio: Width divided by height of the output image.
        image_width: Output width in pixels. The height is
            int(image_width / aspect_ratio).
        vfov: Vertical field of view in degrees, in (0, 180).
        focus_dist: Distance from the camera to the plane of perfect focus.
        defocus_angle: Apex angle in degrees of the cone of rays through each
            pixel. 0 gives a pinhole camera.
        samples_per_pixel: Samples accumulated per pixel by a full render.
        max_depth: Maximum number of intersections per path.
        lookfrom: Camera position in world space.
        lookat: Point the camera is looking at.
        vup: Up direction used to orient the camera.
        background: Radiance returned by rays that escape the scene.
        mixture_ratio: Probability of sampling the lights rather than the
            material at a diffuse bounce.
        seed: Seed of the per-sample random streams.
    """

    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 400
    vfov: float = 50.0
    focus_dist: float = 5.0
    defocus_angle: float = 0.0
    samples_per_pixel: int = 100
    max_depth: int = 8
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)
    mixture_ratio: float = 0.5
    seed: int = 1


def compute_image_height(config: CameraConfig) -> int:
    """Image height derived from width and aspect ratio.

    Raises:
        ValueError: If the aspect ratio is not positive or the height is < 1.
    """
    if config.aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {config.aspect_ratio}")
    height = int(config.image_width / config.aspect_ratio)
    if height < 1:
        raise ValueError(
            f"Image height < 1 (image_width={config.image_width}, "
            f"aspect_ratio={config.aspect_ratio})"
        )
    return height


def validate_camera_config(config: CameraConfig) -> None:
    """Check every range constraint of a camera configuration.

    Raises:
        ValueError: Naming the first parameter that is out of range.
    """
    if config.image_width < 1:
        raise ValueError(f"image_width must be >= 1, got {config.image_width}")
    if config.samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be >= 1, got {config.samples_per_pixel}")
    if config.max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {config.max_depth}")
    if not 0.0 < config.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {config.vfov}")
    if config.focus_dist <= 0.0:
        raise ValueError(f"focus_dist must be positive, got {config.focus_dist}")
    if not 0.0 <= config.defocus_angle < 180.0:
        raise ValueError(f"defocus_angle must be in [0, 180) degrees, got {config.defocus_angle}")
    if not 0.0 <= config.mixture_ratio <= 1.0:
        raise ValueError(f"mixture_ratio must be in [0, 1], got {config.mixture_ratio}")
    if len(config.background) != 3 or any(c < 0.0 for c in config.background):
        raise ValueError(f"background must have 3 non-negative components, got {config.background}")
    compute_image_height(config)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00 = ti.Vector.field(3, dtype=ti.f32, shape=())  # Center of the top-left pixel
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # One pixel to the right
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # One pixel down
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_enabled = ti.field(dtype=ti.i32, shape=())


def setup_camera(config: CameraConfig) -> tuple[int, int]:
    """Validate the configuration and store the viewport geometry.

    Args:
        config: Camera configuration.

    Returns:
        Tuple of (image_width, image_height).

    Raises:
        ValueError: If a parameter is out of range, the look direction is
            degenerate, or vup is parallel to the view direction.
    """
    validate_camera_config(config)
    width = config.image_width
    height = compute_image_height(config)

    lookfrom = np.array(config.lookfrom, dtype=np.float64)
    lookat = np.array(config.lookat, dtype=np.float64)
    vup = np.array(config.vup, dtype=np.float64)

    view = lookat - lookfrom
    view_length = np.linalg.norm(view)
    if view_length < _DEGENERATE_EPSILON:
        raise ValueError("lookfrom and lookat coincide; the view direction is undefined")
    forward = view / view_length

    right = np.cross(forward, vup)
    right_length = np.linalg.norm(right)
    if right_length < _DEGENERATE_EPSILON:
        raise ValueError("vup is parallel to the view direction")
    right = right / right_length
    down = np.cross(forward, right)
    down = down / np.linalg.norm(down)

    # Viewport at the focus plane, using the true pixel ratio
    viewport_height = 2.0 * config.focus_dist * math.tan(math.radians(config.vfov) / 2.0)
    viewport_width = viewport_height * (width / height)
    viewport_u = viewport_width * right
    viewport_v = viewport_height * down

    delta_u = viewport_u / width
    delta_v = viewport_v / height

    viewport_top_left = lookfrom + config.focus_dist * forward - viewport_u / 2.0 - viewport_v / 2.0
    pixel00 = viewport_top_left + 0.5 * (delta_u + delta_v)

    defocus_radius = math.tan(math.radians(config.defocus_angle) / 2.0) * config.focus_dist

    _camera_origin[None] = lookfrom.tolist()
    _pixel00[None] = pixel00.tolist()
    _pixel_delta_u[None] = delta_u.tolist()
    _pixel_delta_v[None] = delta_v.tolist()
    _defocus_disk_u[None] = (right * defocus_radius).tolist()
    _defocus_disk_v[None] = (down * defocus_radius).tolist()
    _defocus_enabled[None] = 1 if config.defocus_angle > 0.0 else 0

    logger.debug(
        "Camera set up: %dx%d, vfov=%g, focus_dist=%g, defocus_radius=%g",
        width,
        height,
        config.vfov,
        config.focus_dist,
        defocus_radius,
    )
    return width, height


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(row: ti.i32, col: ti.i32, rng: ti.u32):
    """Generate a jittered primary ray through pixel (row, col).

    The sample point is uniform within the pixel square, offset from the
    pixel center by [-0.5, 0.5) along both axes. With defocus enabled, the
    origin is drawn from the defocus disk.

    Args:
        row: Pixel row, 0 at the top.
        col: Pixel column, 0 at the left.
        rng: Random generator state.

    Returns:
        A tuple (ray, rng) where ray has a unit direction.
    """
    jitter_u, rng = random_range(-0.5, 0.5, rng)
    jitter_v, rng = random_range(-0.5, 0.5, rng)
    pixel_sample = (
        _pixel00[None]
        + (ti.cast(col, ti.f32) + jitter_u) * _pixel_delta_u[None]
        + (ti.cast(row, ti.f32) + jitter_v) * _pixel_delta_v[None]
    )

    origin = _camera_origin[None]
    if _defocus_enabled[None] == 1:
        p, rng = random_in_unit_disk(rng)
        origin = origin + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]

    ray = make_ray(origin, pixel_sample - origin)
    return ray, rng


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the current camera state for debugging.

    Returns:
        Dictionary with origin, pixel00, delta_u, delta_v, defocus_u and
        defocus_v as (x, y, z) tuples.
    """

    def _as_tuple(value) -> tuple[float, float, float]:
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _as_tuple(_camera_origin[None]),
        "pixel00": _as_tuple(_pixel00[None]),
        "delta_u": _as_tuple(_pixel_delta_u[None]),
        "delta_v": _as_tuple(_pixel_delta_v[None]),
        "defocus_u": _as_tuple(_defocus_disk_u[None]),
        "defocus_v": _as_tuple(_defocus_disk_v[None]),
    }
