"""Materials module.

Components:
    lambertian: Ideal diffuse reflection, sampled through a cosine PDF
    metal: Mirror reflection with fuzz
    dielectric: Glass-like refraction with Schlick Fresnel reflectance
    diffuse_light: Emissive surface that never scatters
    material: Unified material registry, ScatterRecord and dispatch

Each material type keeps its parameters in its own Taichi fields. The
registry in material.py maps a unified material_id onto (type, type-local
index) so that kernels can dispatch on the id stored with each primitive.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
)
from .diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
    emitted_diffuse_light,
    get_diffuse_light_emission,
    get_diffuse_light_material_count,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scattering_pdf_lambertian,
)
from .material import (
    MAX_MATERIALS,
    MaterialType,
    ScatterMode,
    ScatterRecord,
    clear_material_registry,
    emitted,
    get_material_count,
    get_material_type,
    get_material_type_index,
    register_material,
    scatter,
    scattering_pdf,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scattering_pdf_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    # Diffuse light
    "emitted_diffuse_light",
    "add_diffuse_light_material",
    "clear_diffuse_light_materials",
    "get_diffuse_light_material_count",
    "get_diffuse_light_emission",
    # Registry and dispatch
    "MAX_MATERIALS",
    "MaterialType",
    "ScatterMode",
    "ScatterRecord",
    "register_material",
    "clear_material_registry",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
    "scatter",
    "emitted",
    "scattering_pdf",
]
