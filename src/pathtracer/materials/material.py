"""Material registry and per-hit material dispatch.

Every material lives in the storage of its own type (lambertian, metal,
dielectric, diffuse_light). This module assigns each one a unified
material_id and keeps the mapping

    material_id -> (MaterialType, type-local index)

in Taichi fields, so kernels can dispatch on the id stored in a hit record.

The dispatch functions are:
    scatter(material_id, ray_in, rec, rng) -> (ScatterRecord, rng)
    emitted(material_id, ray_in, rec) -> radiance
    scattering_pdf(material_id, ray_in, rec, scattered_direction) -> density

A ScatterRecord carries a mode tag that says which payload is valid:
SCATTER_PDF means the integrator samples the record's Pdf (mixed with light
sampling) and weights by scattering_pdf; SCATTER_SPECULAR means the
integrator follows specular_ray directly and multiplies by the attenuation.

Example:
    >>> from pathtracer.materials.lambertian import add_lambertian_material
    >>> from pathtracer.materials.material import MaterialType, register_material
    >>> type_index = add_lambertian_material((0.5, 0.5, 0.5))
    >>> material_id = register_material(MaterialType.LAMBERTIAN, type_index)
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.core.pdf import Pdf, make_sphere_pdf
from pathtracer.core.ray import Ray, make_ray, offset_ray_origin
from pathtracer.scene.intersection import SceneHitRecord

from .dielectric import (
    clear_dielectric_materials,
    get_dielectric_ior,
    scatter_dielectric,
)
from .diffuse_light import (
    clear_diffuse_light_materials,
    emitted_diffuse_light,
    get_diffuse_light_emission,
)
from .lambertian import (
    clear_lambertian_materials,
    get_lambertian_albedo,
    scatter_lambertian,
    scattering_pdf_lambertian,
)
from .metal import (
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Material variants; the value is the tag stored in the registry."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    DIFFUSE_LIGHT = 3


class ScatterMode(IntEnum):
    """Which payload of a ScatterRecord is valid."""

    SCATTER_PDF = 0
    SCATTER_SPECULAR = 1


@ti.dataclass
class ScatterRecord:
    """Result of scattering a ray off a surface.

    Attributes:
        did_scatter: 1 if the path continues, 0 if the material absorbed or
            emitted without scattering.
        mode: ScatterMode tag selecting the valid payload.
        attenuation: Color multiplier for the path throughput.
        pdf: Sampling distribution for the next direction (SCATTER_PDF).
        specular_ray: The next ray to follow (SCATTER_SPECULAR).
    """

    did_scatter: ti.i32
    mode: ti.i32
    attenuation: vec3
    pdf: Pdf
    specular_ray: Ray


# =============================================================================
# Registry Fields
# =============================================================================

MAX_MATERIALS = 1024

# material_id -> (MaterialType, slot in that type's storage)
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified material_id to a material already in its type storage.

    Args:
        material_type: The material's type.
        type_index: Index returned by the type's add_*_material().

    Returns:
        The new unified material_id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def clear_material_registry() -> None:
    """Clear the unified id table and every per-type storage."""
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    clear_diffuse_light_materials()
    num_materials[None] = 0


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID, or -1 if invalid."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


# =============================================================================
# Dispatch
# =============================================================================


@ti.func
def _no_scatter() -> ScatterRecord:
    return ScatterRecord(
        did_scatter=0,
        mode=int(ScatterMode.SCATTER_PDF),
        attenuation=vec3(0.0, 0.0, 0.0),
        pdf=make_sphere_pdf(),
        specular_ray=Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0)),
    )


@ti.func
def _specular(attenuation: vec3, point: vec3, normal: vec3, direction: vec3) -> ScatterRecord:
    origin = offset_ray_origin(point, normal, direction)
    return ScatterRecord(
        did_scatter=1,
        mode=int(ScatterMode.SCATTER_SPECULAR),
        attenuation=attenuation,
        pdf=make_sphere_pdf(),
        specular_ray=make_ray(origin, direction),
    )


@ti.func
def scatter(material_id: ti.i32, ray_in: Ray, rec: SceneHitRecord, rng: ti.u32):
    """Scatter an incoming ray off the surface described by rec.

    Args:
        material_id: The unified material ID of the hit surface.
        ray_in: The incoming ray.
        rec: The scene hit record.
        rng: Random generator state.

    Returns:
        A tuple (ScatterRecord, rng).
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    srec = _no_scatter()

    if mat_type == int(MaterialType.LAMBERTIAN):
        attenuation, pdf = scatter_lambertian(get_lambertian_albedo(type_index), rec.normal)
        srec = ScatterRecord(
            did_scatter=1,
            mode=int(ScatterMode.SCATTER_PDF),
            attenuation=attenuation,
            pdf=pdf,
            specular_ray=Ray(origin=rec.point, direction=rec.normal),
        )

    elif mat_type == int(MaterialType.METAL):
        direction, attenuation, rng = scatter_metal(
            get_metal_albedo(type_index),
            get_metal_fuzz(type_index),
            ray_in.direction,
            rec.normal,
            rng,
        )
        srec = _specular(attenuation, rec.point, rec.normal, direction)

    elif mat_type == int(MaterialType.DIELECTRIC):
        direction, attenuation, rng = scatter_dielectric(
            get_dielectric_ior(type_index),
            ray_in.direction,
            rec.normal,
            rec.front_face,
            rng,
        )
        srec = _specular(attenuation, rec.point, rec.normal, direction)

    # DIFFUSE_LIGHT and unknown ids keep the non-scattering record

    return srec, rng


@ti.func
def emitted(material_id: ti.i32, ray_in: Ray, rec: SceneHitRecord) -> vec3:
    """Radiance emitted by the surface toward the incoming ray.

    Only diffuse lights emit, and only from their front face.
    """
    result = vec3(0.0, 0.0, 0.0)
    if get_material_type(material_id) == int(MaterialType.DIFFUSE_LIGHT):
        emission = get_diffuse_light_emission(get_material_type_index(material_id))
        result = emitted_diffuse_light(emission, rec.front_face)
    return result


@ti.func
def scattering_pdf(material_id: ti.i32, ray_in: Ray, rec: SceneHitRecord, scattered_direction: vec3) -> ti.f32:
    """Density with which the material itself scatters into a direction.

    Lambertian surfaces return max(cos(theta), 0) / pi. Specular and
    emissive materials return 0; the integrator never weights specular
    bounces by this value.
    """
    density = 0.0
    if get_material_type(material_id) == int(MaterialType.LAMBERTIAN):
        density = scattering_pdf_lambertian(rec.normal, scattered_direction)
    return density
