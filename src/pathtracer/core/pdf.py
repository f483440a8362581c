"""Probability densities over directions for importance sampling.

A Pdf is a small tagged value describing one sampling strategy at one
shading point. Every kind provides a matching pair of operations:

    pdf_value(pdf, direction) -> density per steradian
    pdf_generate(pdf, rng) -> (unit direction, rng)

Kinds:
    PDF_SPHERE: uniform over all directions, density 1 / (4 * pi)
    PDF_COSINE: cosine-weighted about an axis, density max(cos, 0) / pi
    PDF_HITTABLE: toward a primitive or toward the designated lights,
        delegating to the shape's light-sampling functions

A MixturePdf blends two Pdf values with a fixed ratio. The integrator uses
it to combine light sampling with the material's own distribution.

Example:
    >>> @ti.kernel
    ... def density() -> ti.f32:
    ...     pdf = make_cosine_pdf(vec3(0.0, 1.0, 0.0))
    ...     return pdf_value(pdf, vec3(0.0, 1.0, 0.0))
    >>> density()  # 1 / pi
    0.3183...
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import make_onb, onb_local_to_world
from pathtracer.core.sampling import random_cosine_direction, random_float, random_unit_vector
from pathtracer.scene.intersection import (
    SHAPE_LIGHTS,
    SHAPE_QUAD,
    SHAPE_SPHERE,
    lights_pdf_value,
    lights_random_direction,
    primitive_pdf_value,
    primitive_random_direction,
)

vec3 = tm.vec3

# Pdf kinds
PDF_SPHERE = 0
PDF_COSINE = 1
PDF_HITTABLE = 2

__all__ = [
    "PDF_SPHERE",
    "PDF_COSINE",
    "PDF_HITTABLE",
    "SHAPE_SPHERE",
    "SHAPE_QUAD",
    "SHAPE_LIGHTS",
    "Pdf",
    "MixturePdf",
    "make_sphere_pdf",
    "make_cosine_pdf",
    "make_hittable_pdf",
    "make_lights_pdf",
    "pdf_value",
    "pdf_generate",
    "make_mixture_pdf",
    "mixture_pdf_value",
    "mixture_pdf_generate",
]


@ti.dataclass
class Pdf:
    """A single sampling distribution over directions.

    Only the fields used by the given kind are meaningful.

    Attributes:
        kind: PDF_SPHERE, PDF_COSINE or PDF_HITTABLE.
        axis: Unit axis of the cosine lobe (PDF_COSINE).
        origin: Shading point directions are sampled from (PDF_HITTABLE).
        shape_kind: SHAPE_SPHERE, SHAPE_QUAD or SHAPE_LIGHTS (PDF_HITTABLE).
        shape_index: Primitive index for a single shape (PDF_HITTABLE).
    """

    kind: ti.i32
    axis: vec3
    origin: vec3
    shape_kind: ti.i32
    shape_index: ti.i32


@ti.dataclass
class MixturePdf:
    """Convex combination of two distributions.

    Attributes:
        a: First distribution, chosen with probability ratio.
        b: Second distribution, chosen with probability 1 - ratio.
        ratio: Weight of a, in [0, 1].
    """

    a: Pdf
    b: Pdf
    ratio: ti.f32


@ti.func
def make_sphere_pdf() -> Pdf:
    """Uniform distribution over the unit sphere."""
    return Pdf(
        kind=PDF_SPHERE,
        axis=vec3(0.0, 0.0, 1.0),
        origin=vec3(0.0, 0.0, 0.0),
        shape_kind=SHAPE_SPHERE,
        shape_index=-1,
    )


@ti.func
def make_cosine_pdf(axis: vec3) -> Pdf:
    """Cosine-weighted distribution about a unit axis."""
    return Pdf(
        kind=PDF_COSINE,
        axis=axis,
        origin=vec3(0.0, 0.0, 0.0),
        shape_kind=SHAPE_SPHERE,
        shape_index=-1,
    )


@ti.func
def make_hittable_pdf(origin: vec3, shape_kind: ti.i32, shape_index: ti.i32) -> Pdf:
    """Distribution of directions from origin toward a single primitive."""
    return Pdf(
        kind=PDF_HITTABLE,
        axis=vec3(0.0, 0.0, 1.0),
        origin=origin,
        shape_kind=shape_kind,
        shape_index=shape_index,
    )


@ti.func
def make_lights_pdf(origin: vec3) -> Pdf:
    """Distribution of directions from origin toward the designated lights."""
    return make_hittable_pdf(origin, SHAPE_LIGHTS, -1)


@ti.func
def pdf_value(pdf: Pdf, direction: vec3) -> ti.f32:
    """Evaluate the density of a unit direction under pdf.

    Returns:
        The non-negative density per steradian.
    """
    density = 0.0
    if pdf.kind == PDF_SPHERE:
        density = 1.0 / (4.0 * tm.pi)
    elif pdf.kind == PDF_COSINE:
        density = ti.max(tm.dot(direction, pdf.axis), 0.0) / tm.pi
    elif pdf.kind == PDF_HITTABLE:
        if pdf.shape_kind == SHAPE_LIGHTS:
            density = lights_pdf_value(pdf.origin, direction)
        else:
            density = primitive_pdf_value(pdf.shape_kind, pdf.shape_index, pdf.origin, direction)
    return density


@ti.func
def pdf_generate(pdf: Pdf, rng: ti.u32):
    """Draw a unit direction distributed according to pdf.

    Returns:
        A tuple (direction, rng).
    """
    direction = vec3(0.0, 0.0, 1.0)
    if pdf.kind == PDF_SPHERE:
        direction, rng = random_unit_vector(rng)
    elif pdf.kind == PDF_COSINE:
        local, rng = random_cosine_direction(rng)
        direction = tm.normalize(onb_local_to_world(make_onb(pdf.axis), local))
    elif pdf.kind == PDF_HITTABLE:
        if pdf.shape_kind == SHAPE_LIGHTS:
            direction, rng = lights_random_direction(pdf.origin, rng)
        else:
            direction, rng = primitive_random_direction(pdf.shape_kind, pdf.shape_index, pdf.origin, rng)
    return direction, rng


# =============================================================================
# Mixture
# =============================================================================


@ti.func
def make_mixture_pdf(a: Pdf, b: Pdf, ratio: ti.f32) -> MixturePdf:
    """Mix a and b, choosing a with probability ratio."""
    return MixturePdf(a=a, b=b, ratio=ratio)


@ti.func
def mixture_pdf_value(mix: MixturePdf, direction: vec3) -> ti.f32:
    """Density ratio * a(direction) + (1 - ratio) * b(direction)."""
    return mix.ratio * pdf_value(mix.a, direction) + (1.0 - mix.ratio) * pdf_value(mix.b, direction)


@ti.func
def mixture_pdf_generate(mix: MixturePdf, rng: ti.u32):
    """Draw from a with probability ratio, otherwise from b.

    Returns:
        A tuple (direction, rng).
    """
    x, rng = random_float(rng)
    direction = vec3(0.0, 0.0, 1.0)
    if x < mix.ratio:
        direction, rng = pdf_generate(mix.a, rng)
    else:
        direction, rng = pdf_generate(mix.b, rng)
    return direction, rng
