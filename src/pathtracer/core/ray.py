"""Ray data structure, orthonormal basis and vector utilities.

This module provides the fundamental Ray dataclass and the vector helpers
shared by geometry, materials and the integrator. All functions are Taichi
functions (@ti.func) and must be called from within Taichi kernels.

Rays are always constructed through make_ray(), which normalizes the
direction. Downstream code (PDF evaluation, Schlick reflectance, cone
sampling) relies on unit-length directions.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def walk() -> ti.f32:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 5.0).z
    >>> walk()
    -5.0
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Unit length when the ray
            was built with make_ray().
    """

    origin: vec3
    direction: vec3


@ti.dataclass
class Onb:
    """Orthonormal basis built around a single unit normal.

    Attributes:
        u: First tangent axis.
        v: Second tangent axis.
        w: The normal the basis was built from (local z-axis).
    """

    u: vec3
    v: vec3
    w: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling t along the ray (t > 0 is in front)."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction, normalizing the direction.

    Args:
        origin: The starting point of the ray.
        direction: Any non-zero direction vector.

    Returns:
        A new Ray whose direction has unit length.
    """
    return Ray(origin=origin, direction=tm.normalize(direction))


# =============================================================================
# Vector Helpers
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror direction of incident about a unit normal.

    The incident vector points toward the surface and keeps its length.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    Callers are expected to rule out total internal reflection first; if it
    occurs anyway, a zero vector is returned.

    Args:
        incident: Unit direction of the incoming ray.
        normal: Unit normal on the incident side.
        eta: n_incident / n_transmitted.

    Returns:
        The transmitted direction, or zero on total internal reflection.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick approximation of the Fresnel reflectance.

    Args:
        cosine: Cosine of the incidence angle.
        ref_idx: Relative index of refraction across the surface.

    Returns:
        Probability of reflection, r0 at normal incidence rising to 1 at
        grazing angles.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * tm.pow(1.0 - cosine, 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are near zero, 0 otherwise."""
    return ti.cast(tm.max(ti.abs(v.x), tm.max(ti.abs(v.y), ti.abs(v.z))) < 1e-8, ti.i32)


# =============================================================================
# Orthonormal Basis
# =============================================================================


@ti.func
def make_onb(normal: vec3) -> Onb:
    """Build an orthonormal basis whose w-axis is the given unit normal.

    Args:
        normal: The axis to build around (must be unit length).

    Returns:
        An Onb with w = normal and u, v spanning the tangent plane.
    """
    # Choose a helper axis that is not parallel to the normal
    helper = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        helper = vec3(0.0, 1.0, 0.0)
    u = tm.normalize(tm.cross(normal, helper))
    v = tm.cross(normal, u)
    return Onb(u=u, v=v, w=normal)


@ti.func
def onb_local_to_world(onb: Onb, local: vec3) -> vec3:
    """Transform a direction from basis-local (z-up) to world coordinates."""
    return local.x * onb.u + local.y * onb.v + local.z * onb.w


# =============================================================================
# Ray Spawning
# =============================================================================

# Distance a spawned ray origin is pushed off the surface
RAY_EPSILON = 1e-4


@ti.func
def offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Origin for a ray leaving point, nudged off the surface.

    The nudge is RAY_EPSILON along the normal, on whichever side direction
    heads into, so reflected rays start above the surface and refracted
    rays below it.
    """
    side = 1.0 if tm.dot(direction, normal) >= 0.0 else -1.0
    return point + (side * RAY_EPSILON) * normal
