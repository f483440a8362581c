"""Lambertian (ideal diffuse) material.

Incident light is scattered in all directions weighted by the cosine of the
angle from the surface normal. The BRDF is albedo / pi.

Scattering does not pick a direction itself. It hands the integrator a
cosine PDF about the surface normal, which is mixed with light sampling.
The scattering density used to weight the sampled direction is

    scattering_pdf(wi) = max(cos(theta), 0) / pi

so that albedo * scattering_pdf / sampling_density is the path weight.

Example:
    >>> from pathtracer.materials.lambertian import add_lambertian_material
    >>> red = add_lambertian_material((0.65, 0.05, 0.05))
    >>> # Inside a kernel:
    >>> # attenuation, pdf = scatter_lambertian(albedo, rec.normal)
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.pdf import make_cosine_pdf

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Scatter off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal at the hit point.

    Returns:
        A tuple (attenuation, pdf) where pdf is a cosine Pdf about normal.
    """
    return albedo, make_cosine_pdf(normal)


@ti.func
def scattering_pdf_lambertian(normal: vec3, scattered_direction: vec3) -> ti.f32:
    """Cosine scattering density max(cos(theta), 0) / pi.

    Directions below the surface have zero density.
    """
    return ti.max(tm.dot(normal, scattered_direction), 0.0) / tm.pi


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Raises:
        ValueError: If albedo does not have three components or any component
            is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_lambertian_materials() -> None:
    """Reset the Lambertian material count to zero."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the per-type storage.

    Args:
        albedo: The diffuse reflectance color as (R, G, B).

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
        RuntimeError: If the maximum number of materials is exceeded.
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    logger.debug("Added Lambertian material %d albedo=%s", idx, tuple(albedo))
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo of a Lambertian material by type-local index."""
    return lambertian_albedos[material_idx]
