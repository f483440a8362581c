"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, the shared HitRecord and cone light sampling
    quad: Parallelogram primitive with area light sampling

Every shape provides the same three Taichi functions:
    hit_<shape>(ray, shape, ray_t) -> HitRecord
    <shape>_pdf_value(shape, origin, direction) -> density per steradian
    <shape>_random_direction(shape, origin, rng) -> (direction, rng)

There is no acceleration structure; the scene scans primitives linearly.
"""

from .quad import Quad, hit_quad, quad_area, quad_normal, quad_pdf_value, quad_random_direction
from .sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    make_miss_record,
    set_face_normal,
    sphere_pdf_value,
    sphere_random_direction,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "set_face_normal",
    "sphere_pdf_value",
    "sphere_random_direction",
    "Quad",
    "hit_quad",
    "quad_area",
    "quad_normal",
    "quad_pdf_value",
    "quad_random_direction",
]
