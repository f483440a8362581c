"""Scene module for primitive storage, intersection and scene building.

Components:
    intersection: Flat primitive storage in Taichi fields, closest-hit scan,
        designated lights and light sampling
    manager: SceneManager, the high-level builder with a unified material-id
        space and dictionary serialization
    cornell_box: The Cornell box test scene
    showcase: The sphere field demo scene

Only the intersection module is imported here. The builders depend on the
material registry, which itself needs SceneHitRecord from this package, so
they are imported from their own modules:

    >>> from pathtracer.scene.manager import SceneManager
    >>> from pathtracer.scene.cornell_box import create_cornell_box_scene
"""

from .intersection import (
    MAX_LIGHTS,
    MAX_QUADS,
    MAX_SPHERES,
    SHAPE_LIGHTS,
    SHAPE_QUAD,
    SHAPE_SPHERE,
    SceneHitRecord,
    add_light,
    add_quad,
    add_sphere,
    clear_scene,
    get_light_count,
    get_quad_count,
    get_sphere_count,
    intersect_scene,
    lights_pdf_value,
    lights_random_direction,
    primitive_pdf_value,
    primitive_random_direction,
)

__all__ = [
    "SHAPE_SPHERE",
    "SHAPE_QUAD",
    "SHAPE_LIGHTS",
    "MAX_SPHERES",
    "MAX_QUADS",
    "MAX_LIGHTS",
    "SceneHitRecord",
    "clear_scene",
    "add_sphere",
    "add_quad",
    "add_light",
    "get_sphere_count",
    "get_quad_count",
    "get_light_count",
    "intersect_scene",
    "primitive_pdf_value",
    "primitive_random_direction",
    "lights_pdf_value",
    "lights_random_direction",
]
