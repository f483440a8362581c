"""Dielectric (glass/water) material.

Transparent materials both reflect and refract:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the refraction ratio times sin(theta)
      exceeds 1

The material randomly chooses between reflection and refraction with the
Fresnel reflectance as the probability of reflecting. Clear glass absorbs
nothing, so attenuation is always white.

Example:
    >>> from pathtracer.materials.dielectric import add_dielectric_material
    >>> glass = add_dielectric_material(1.5)
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract, schlick_fresnel
from pathtracer.core.sampling import random_float

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted: 1/ior entering, ior leaving."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32, rng: ti.u32):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.
        rng: Random generator state.

    Returns:
        A tuple (scattered_direction, attenuation, rng). The direction is
        unit length and attenuation is (1, 1, 1).
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = tm.normalize(incident_direction)
    ri = refraction_ratio(ior, front_face)

    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))

    cannot_refract = ri * sin_theta > 1.0
    u, rng = random_float(rng)

    scattered = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_fresnel(cos_theta, ri) > u:
        scattered = reflect(unit_direction, normal)
    else:
        scattered = refract(unit_direction, normal, ri)

    return tm.normalize(scattered), attenuation, rng


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Reset the dielectric material count to zero."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float) -> int:
    """Add a dielectric material to the per-type storage.

    Args:
        ior: Index of refraction relative to the surrounding medium, positive.
            Common values are 1.33 (water), 1.5 (glass) and 2.4 (diamond).
            Values below 1 model a thinner medium, such as an air bubble in
            water at 1 / 1.33.

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    logger.debug("Added dielectric material %d ior=%g", idx, ior)
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
