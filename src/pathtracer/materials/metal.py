"""Metal (specular reflective) material with optional fuzz.

The incoming direction is mirrored about the normal, R = I - 2(I . N)N, and
then perturbed by a random point in a sphere scaled by the fuzz factor:

    scattered = reflect(normalize(I), N) + fuzz * random_in_unit_sphere()

Metal is a specular material: the integrator follows the scattered ray
directly and multiplies the path throughput by the albedo, without light
sampling. A metal always scatters, even when a large fuzz pushes the
direction below the surface.

Example:
    >>> from pathtracer.materials.metal import add_metal_material
    >>> gold = add_metal_material((0.8, 0.6, 0.2), fuzz=0.1)
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, reflect
from pathtracer.core.sampling import random_in_unit_sphere

from .lambertian import validate_albedo

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, incident_direction: vec3, normal: vec3, rng: ti.u32):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: The fuzz factor in [0, 1].
        incident_direction: The incoming ray direction.
        normal: The unit surface normal facing the incoming ray.
        rng: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, rng). The direction is
        unit length.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)
    offset, rng = random_in_unit_sphere(rng)
    scattered = reflected + fuzz * offset

    # The offset can cancel the reflection exactly when fuzz is 1
    if near_zero(scattered):
        scattered = reflected

    return tm.normalize(scattered), albedo, rng


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Reset the metal material count to zero."""
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Add a metal material to the per-type storage.

    Args:
        albedo: The reflective color as (R, G, B), each component in [0, 1].
        fuzz: The fuzz factor in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If any albedo component or fuzz is outside [0, 1].
        RuntimeError: If the maximum number of materials is exceeded.
    """
    validate_albedo(albedo)
    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    logger.debug("Added metal material %d albedo=%s fuzz=%g", idx, tuple(albedo), fuzz)
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
