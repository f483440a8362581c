"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray and orthonormal basis structures plus vector utilities
    interval: Ray parameter intervals used by intersection tests
    sampling: Seedable in-kernel random source and directional samplers
    pdf: Sphere, cosine, hittable and mixture probability densities
    integrator: Radiance estimator and the per-sample render kernel

All compute-intensive operations use Taichi kernels and functions.
"""

from .interval import Interval, interval_contains, interval_surrounds
from .ray import (
    RAY_EPSILON,
    Onb,
    Ray,
    make_onb,
    make_ray,
    near_zero,
    offset_ray_origin,
    onb_local_to_world,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampling import (
    random_cosine_direction,
    random_float,
    random_in_cone,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    rng_seed,
)

# Note: pdf and integrator are NOT imported here to avoid circular imports.
# Both depend on the scene storage, which in turn depends on this package.
# Import directly from pathtracer.core.pdf or pathtracer.core.integrator.

__all__ = [
    "Ray",
    "Onb",
    "Interval",
    "vec3",
    "ray_at",
    "make_ray",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "RAY_EPSILON",
    "offset_ray_origin",
    "make_onb",
    "onb_local_to_world",
    "interval_surrounds",
    "interval_contains",
    "rng_seed",
    "random_float",
    "random_range",
    "random_in_unit_disk",
    "random_unit_vector",
    "random_in_unit_sphere",
    "random_cosine_direction",
    "random_in_cone",
]
