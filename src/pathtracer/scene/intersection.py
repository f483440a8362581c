"""The scene aggregate: primitive storage, ray queries and light sampling.

Spheres and quads live in struct fields of their geometry dataclasses, each
paired with a material id. The aggregate scans them linearly;
intersect_scene returns the closest hit over every primitive.

Some primitives are also registered as lights, by (shape kind, index). The
light list backs the importance-sampling density used by the integrator:
lights_random_direction picks one light uniformly and samples toward it, and
lights_pdf_value is the matching average of the per-light densities.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import (
    ...     SHAPE_QUAD, add_light, add_quad, add_sphere, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> idx = add_quad(vec3(-1, 2, -2), vec3(2, 0, 0), vec3(0, 0, 1), material_id=1)
    >>> add_light(SHAPE_QUAD, idx)
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.interval import Interval
from pathtracer.core.ray import Ray
from pathtracer.core.sampling import random_float
from pathtracer.geometry.quad import Quad, hit_quad, quad_pdf_value, quad_random_direction
from pathtracer.geometry.sphere import (
    HitRecord,
    Sphere,
    hit_sphere,
    sphere_pdf_value,
    sphere_random_direction,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Shape kinds used by light references and hittable PDFs
SHAPE_SPHERE = 0
SHAPE_QUAD = 1
SHAPE_LIGHTS = 2


@ti.dataclass
class SceneHitRecord:
    """A HitRecord tagged with the material of the primitive that was hit.

    The geometric fields (hit, t, point, normal, front_face, u, v) mean the
    same as in HitRecord. material_id is -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32
    material_id: ti.i32


@ti.dataclass
class LightRef:
    """Reference to a primitive that is sampled as a light."""

    shape_kind: ti.i32
    shape_index: ti.i32


MAX_SPHERES = 1024
MAX_QUADS = 1024
MAX_LIGHTS = 64

spheres = Sphere.field(shape=MAX_SPHERES)
sphere_material = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

quads = Quad.field(shape=MAX_QUADS)
quad_material = ti.field(dtype=ti.i32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

lights = LightRef.field(shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Forget every primitive and light.

    Only the counters are reset; stale slots are overwritten as new
    primitives arrive.
    """
    num_spheres[None] = 0
    num_quads[None] = 0
    num_lights[None] = 0


def _claim_slot(counter, capacity: int, what: str) -> int:
    idx = int(counter[None])
    if idx >= capacity:
        raise RuntimeError(f"Maximum number of {what} ({capacity}) exceeded")
    counter[None] = idx + 1
    return idx


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Store a sphere and return its index.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = _claim_slot(num_spheres, MAX_SPHERES, "spheres")
    spheres.center[idx] = center
    spheres.radius[idx] = radius
    sphere_material[idx] = material_id
    logger.debug("Added sphere %d (radius=%g, material=%d)", idx, radius, material_id)
    return idx


def add_quad(q: vec3, u: vec3, v: vec3, material_id: int = 0) -> int:
    """Store the parallelogram with corners q, q+u, q+v, q+u+v.

    Returns:
        Index of the quad.

    Raises:
        RuntimeError: If MAX_QUADS quads are already stored.
    """
    idx = _claim_slot(num_quads, MAX_QUADS, "quads")
    quads.Q[idx] = q
    quads.u[idx] = u
    quads.v[idx] = v
    quad_material[idx] = material_id
    logger.debug("Added quad %d (material=%d)", idx, material_id)
    return idx


def add_light(shape_kind: int, shape_index: int) -> int:
    """Designate an existing primitive as a light for importance sampling.

    Args:
        shape_kind: SHAPE_SPHERE or SHAPE_QUAD.
        shape_index: Index returned by add_sphere() or add_quad().

    Returns:
        The index of the light in the light list.

    Raises:
        ValueError: If the shape kind is unknown or the index does not refer
            to an existing primitive.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    if shape_kind == SHAPE_SPHERE:
        count = num_spheres[None]
    elif shape_kind == SHAPE_QUAD:
        count = num_quads[None]
    else:
        raise ValueError(f"Unknown light shape kind: {shape_kind}")
    if shape_index < 0 or shape_index >= count:
        raise ValueError(f"Light shape index {shape_index} out of range [0, {count})")

    idx = _claim_slot(num_lights, MAX_LIGHTS, "lights")
    lights.shape_kind[idx] = shape_kind
    lights.shape_index[idx] = shape_index
    logger.debug("Designated light %d (kind=%d, index=%d)", idx, shape_kind, shape_index)
    return idx


def get_sphere_count() -> int:
    return int(num_spheres[None])


def get_quad_count() -> int:
    return int(num_quads[None])


def get_light_count() -> int:
    """Number of primitives designated as lights."""
    return int(num_lights[None])


# =============================================================================
# Ray Queries
# =============================================================================


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        u=rec.u,
        v=rec.v,
        material_id=material_id,
    )


@ti.func
def _scene_miss() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0),
        normal=vec3(0.0),
        front_face=0,
        u=0.0,
        v=0.0,
        material_id=-1,
    )


@ti.func
def intersect_scene(ray: Ray, ray_t: Interval) -> SceneHitRecord:
    """Closest intersection of ray with the scene inside ray_t.

    Spheres are tested before quads. Each hit shrinks the upper end of the
    search interval, so later primitives only count if they are nearer.
    """
    closest = Interval(min=ray_t.min, max=ray_t.max)
    result = _scene_miss()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, spheres[i], closest)
        if rec.hit == 1:
            closest.max = rec.t
            result = _with_material(rec, sphere_material[i])

    for i in range(num_quads[None]):
        rec = hit_quad(ray, quads[i], closest)
        if rec.hit == 1:
            closest.max = rec.t
            result = _with_material(rec, quad_material[i])

    return result


# =============================================================================
# Light Sampling
# =============================================================================


@ti.func
def primitive_pdf_value(shape_kind: ti.i32, shape_index: ti.i32, origin: vec3, direction: vec3) -> ti.f32:
    """Density of sampling direction toward a single primitive."""
    density = 0.0
    if shape_kind == SHAPE_SPHERE:
        density = sphere_pdf_value(spheres[shape_index], origin, direction)
    elif shape_kind == SHAPE_QUAD:
        density = quad_pdf_value(quads[shape_index], origin, direction)
    return density


@ti.func
def primitive_random_direction(shape_kind: ti.i32, shape_index: ti.i32, origin: vec3, rng: ti.u32):
    """Sample a direction toward a single primitive.

    Returns:
        A tuple (direction, rng).
    """
    direction = vec3(0.0, 0.0, 1.0)
    if shape_kind == SHAPE_SPHERE:
        direction, rng = sphere_random_direction(spheres[shape_index], origin, rng)
    elif shape_kind == SHAPE_QUAD:
        direction, rng = quad_random_direction(quads[shape_index], origin, rng)
    return direction, rng


@ti.func
def lights_pdf_value(origin: vec3, direction: vec3) -> ti.f32:
    """Average density of the designated lights for direction.

    Matches lights_random_direction(), which picks a light uniformly and
    then samples toward it. Returns 0 when there are no lights.
    """
    total = 0.0
    n = num_lights[None]
    for i in range(n):
        total += primitive_pdf_value(lights[i].shape_kind, lights[i].shape_index, origin, direction)
    density = 0.0
    if n > 0:
        density = total / ti.cast(n, ti.f32)
    return density


@ti.func
def lights_random_direction(origin: vec3, rng: ti.u32):
    """Pick a designated light uniformly and sample a direction toward it.

    Returns:
        A tuple (direction, rng). Callers must check that at least one light
        exists; with none the direction is an arbitrary unit vector.
    """
    n = num_lights[None]
    direction = vec3(0.0, 0.0, 1.0)
    if n > 0:
        x, rng = random_float(rng)
        i = ti.min(ti.cast(x * ti.cast(n, ti.f32), ti.i32), n - 1)
        direction, rng = primitive_random_direction(lights[i].shape_kind, lights[i].shape_index, origin, rng)
    return direction, rng
