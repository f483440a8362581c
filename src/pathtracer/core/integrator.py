"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the per-sample render
kernel. Paths start at the camera, bounce off surfaces according to their
material, and gather emitted radiance along the way.

At a diffuse (SCATTER_PDF) bounce the next direction is drawn from a
mixture of two distributions: toward the designated lights, and the
material's own cosine lobe. The path weight is

    attenuation * scattering_pdf(direction) / mixture_density(direction)

which stays unbiased for any mixture ratio while concentrating samples on
the lights. Specular materials (metal, dielectric) bypass the mixture and
the path simply follows the reflected or refracted ray.

Key features:
    - Iterative form of the recursive estimator, bounded by max_depth
    - Mixture importance sampling of lights and material lobes
    - Deterministic per-sample random streams keyed by (seed, pixel, sample)
    - Progressive running-average accumulation with a NaN/Inf guard

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import CameraConfig, setup_camera
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, config = create_cornell_box_scene()
    >>> width, height = setup_camera(config)
    >>> setup_render_target(width, height)
    >>> render_image(num_samples=16, seed=1, max_depth=8)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.interval import Interval
from pathtracer.core.pdf import (
    make_lights_pdf,
    make_mixture_pdf,
    mixture_pdf_generate,
    mixture_pdf_value,
    pdf_generate,
    pdf_value,
)
from pathtracer.core.ray import RAY_EPSILON, Ray, make_ray
from pathtracer.core.sampling import rng_seed
from pathtracer.materials.material import ScatterMode, emitted, scatter, scattering_pdf
from pathtracer.scene.intersection import intersect_scene, num_lights

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

__all__ = [
    "T_MIN",
    "T_MAX",
    "RAY_EPSILON",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "DEFAULT_MIXTURE_RATIO",
    "radiance",
    "render_pass",
    "render_image",
    "render_sample",
    "reset_integrator_settings",
    "set_background",
    "get_background",
    "set_mixture_ratio",
    "get_mixture_ratio",
    "setup_render_target",
    "clear_render_target",
    "reset_render_target",
    "get_image_dimensions",
    "get_sample_count",
    "get_linear_image",
]

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for ray intersection
T_MIN = 1e-4
T_MAX = 1e10

# Default probability of sampling lights at a diffuse bounce
DEFAULT_MIXTURE_RATIO = 0.5

# =============================================================================
# Integrator Configuration
# =============================================================================

_background = ti.Vector.field(3, dtype=ti.f32, shape=())
_mixture_ratio = ti.field(dtype=ti.f32, shape=())


def reset_integrator_settings() -> None:
    """Restore a black background and the default mixture ratio."""
    _background[None] = [0.0, 0.0, 0.0]
    _mixture_ratio[None] = DEFAULT_MIXTURE_RATIO


def set_background(color: tuple[float, float, float]) -> None:
    """Set the radiance returned by rays that escape the scene.

    Raises:
        ValueError: If any component is negative.
    """
    if len(color) != 3 or any(c < 0.0 for c in color):
        raise ValueError(f"Background must have 3 non-negative components, got {color}")
    _background[None] = [color[0], color[1], color[2]]


def get_background() -> tuple[float, float, float]:
    """Get the current background radiance."""
    value = _background[None]
    return (float(value[0]), float(value[1]), float(value[2]))


def set_mixture_ratio(ratio: float) -> None:
    """Set the probability of sampling the lights at a diffuse bounce.

    Raises:
        ValueError: If ratio is outside [0, 1].
    """
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"Mixture ratio must be in [0, 1], got {ratio}")
    _mixture_ratio[None] = ratio


def get_mixture_ratio() -> float:
    """Get the current mixture ratio."""
    return float(_mixture_ratio[None])


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Buffers are allocated once at this size; images use the top-left corner
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Active image size
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of linear radiance, indexed [row, col] with row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Samples accumulated in each pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# 1 once setup_render_target() has run
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Activate a width x height image and zero its buffers.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"{width}x{height} image does not fit the {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT} render buffers"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    logger.debug("Render target set up: %dx%d", width, height)


def clear_render_target() -> None:
    """Discard all accumulated samples, keeping the image size."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def reset_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _image_width[None] = 0
    _image_height[None] = 0
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_sample_count() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_linear_image() -> np.ndarray:
    """Get the averaged linear radiance as a (height, width, 3) float32 array.

    Row 0 is the top of the image. Values are unbounded above.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _color_buffer.to_numpy()[:height, :width, :].astype(np.float32)


# =============================================================================
# Radiance Estimator
# =============================================================================


@ti.func
def radiance(ray: Ray, max_depth: ti.i32, rng: ti.u32):
    """Estimate the radiance arriving along ray.

    Equivalent to the recursive estimator

        L(ray, d) = 0                               if d == 0
                  = background                      on a miss
                  = emitted                         if the material absorbs
                  = emitted + att * L(next, d - 1)  otherwise

    where att is the attenuation for a specular bounce and
    attenuation * scattering_pdf / mixture_density for a diffuse bounce.

    Args:
        ray: The ray to trace.
        max_depth: Maximum number of intersections along the path.
        rng: Random generator state.

    Returns:
        A tuple (color, rng).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = Ray(origin=ray.origin, direction=ray.direction)

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _depth in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, Interval(min=T_MIN, max=T_MAX))

            if rec.hit == 0:
                color += throughput * _background[None]
                active = 0
            else:
                color += throughput * emitted(rec.material_id, current, rec)

                srec, rng = scatter(rec.material_id, current, rec, rng)

                if srec.did_scatter == 0:
                    active = 0
                elif srec.mode == int(ScatterMode.SCATTER_SPECULAR):
                    throughput *= srec.attenuation
                    current = srec.specular_ray
                else:
                    origin = rec.point + RAY_EPSILON * rec.normal
                    direction = vec3(0.0, 0.0, 1.0)
                    density = 0.0

                    if num_lights[None] > 0:
                        mix = make_mixture_pdf(make_lights_pdf(origin), srec.pdf, _mixture_ratio[None])
                        direction, rng = mixture_pdf_generate(mix, rng)
                        density = mixture_pdf_value(mix, direction)
                    else:
                        direction, rng = pdf_generate(srec.pdf, rng)
                        density = pdf_value(srec.pdf, direction)

                    assert density > 0.0, "Sampled direction has zero density"

                    if density <= 0.0:
                        active = 0
                    else:
                        scattered = make_ray(origin, direction)
                        weight = scattering_pdf(rec.material_id, current, rec, scattered.direction) / density
                        throughput *= srec.attenuation * weight
                        current = scattered

    return color, rng


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Clamp negative values and replace NaN/Inf components with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def _trace_pixel_sample(row: ti.i32, col: ti.i32, sample_index: ti.i32, seed: ti.i32, max_depth: ti.i32) -> vec3:
    """Trace one camera path through pixel (row, col)."""
    rng = rng_seed(seed, row * MAX_IMAGE_WIDTH + col, sample_index)
    ray, rng = get_ray(row, col, rng)
    color, rng = radiance(ray, max_depth, rng)
    return _sanitize(color)


@ti.kernel
def render_pass(sample_index: ti.i32, seed: ti.i32, max_depth: ti.i32, width: ti.i32, height: ti.i32):
    """Render one sample per pixel and accumulate.

    Each pixel sample draws from its own random stream keyed by
    (seed, pixel, sample_index), so the result does not depend on the order
    in which pixels are processed.

    Args:
        sample_index: Index of this sample within the render.
        seed: Seed of the render.
        max_depth: Maximum number of intersections per path.
        width: Image width in pixels.
        height: Image height in pixels.
    """
    for row, col in ti.ndrange(height, width):
        color = _trace_pixel_sample(row, col, sample_index, seed, max_depth)

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _sample_count[row, col] += 1
        n = _sample_count[row, col]
        _color_buffer[row, col] += (color - _color_buffer[row, col]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    row: ti.i32, col: ti.i32, sample_index: ti.i32, seed: ti.i32, max_depth: ti.i32
) -> vec3:
    return _trace_pixel_sample(row, col, sample_index, seed, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    row: int, col: int, sample_index: int = 0, seed: int = 1, max_depth: int = 8
) -> tuple[float, float, float]:
    """Trace a single sample for one pixel without accumulating it.

    Intended for testing and debugging; use render_image() for full frames.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    color = _render_single_pixel(row, col, sample_index, seed, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, seed: int = 1, max_depth: int = 8) -> None:
    """Accumulate num_samples more samples per pixel.

    Sample indices continue from the current sample count, so repeated calls
    extend the same sequence of random streams.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    start = get_sample_count()
    for s in range(num_samples):
        render_pass(start + s, seed, max_depth, width, height)
