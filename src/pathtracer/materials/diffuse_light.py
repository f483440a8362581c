"""Diffuse area light (emissive) material.

A diffuse light emits constant radiance from its front face and never
scatters. Paths that reach a light therefore end there. Designate the
primitive carrying this material as a light as well, so that the
integrator samples it directly.

Example:
    >>> from pathtracer.materials.diffuse_light import add_diffuse_light_material
    >>> lamp = add_diffuse_light_material((15.0, 15.0, 15.0))
"""

import logging

import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def emitted_diffuse_light(emission: vec3, front_face: ti.i32) -> vec3:
    """Radiance leaving the surface toward the viewer.

    Only the front face emits; the back of a light is black.
    """
    result = vec3(0.0, 0.0, 0.0)
    if front_face == 1:
        result = emission
    return result


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of diffuse light materials in the scene
MAX_DIFFUSE_LIGHT_MATERIALS = 64

diffuse_light_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_LIGHT_MATERIALS)
num_diffuse_light_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_light_materials() -> None:
    """Reset the diffuse light material count to zero."""
    num_diffuse_light_materials[None] = 0


def add_diffuse_light_material(emission: tuple[float, float, float]) -> int:
    """Add a diffuse light material to the per-type storage.

    Args:
        emission: Emitted radiance as (R, G, B), each component >= 0.

    Returns:
        The type-local index of the added material.

    Raises:
        ValueError: If emission does not have three non-negative components.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    if len(emission) != 3:
        raise ValueError(f"Emission must have 3 components, got {len(emission)}")
    for i, component in enumerate(emission):
        if component < 0.0:
            raise ValueError(f"Emission component {i} = {component} must be >= 0")

    idx = num_diffuse_light_materials[None]
    if idx >= MAX_DIFFUSE_LIGHT_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse light materials ({MAX_DIFFUSE_LIGHT_MATERIALS}) exceeded"
        )

    diffuse_light_emissions[idx] = vec3(emission[0], emission[1], emission[2])
    num_diffuse_light_materials[None] = idx + 1
    logger.debug("Added diffuse light material %d emission=%s", idx, tuple(emission))
    return idx


def get_diffuse_light_material_count() -> int:
    """Get the number of diffuse light materials."""
    return int(num_diffuse_light_materials[None])


@ti.func
def get_diffuse_light_emission(material_idx: ti.i32) -> vec3:
    return diffuse_light_emissions[material_idx]
