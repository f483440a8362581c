"""Quad primitive with ray-quad intersection and area light sampling.

A quad is defined by:
- Q: A corner point of the quad
- u: Edge vector from Q to adjacent corner
- v: Edge vector from Q to other adjacent corner

The quad spans the parallelogram from Q to Q+u+v. The normal is computed as
normalize(cross(u, v)), pointing in the direction determined by the right-hand
rule.

Ray-quad intersection uses the parametric plane test:
1. Find where the ray intersects the plane containing the quad
2. Express the hit in planar coordinates (alpha, beta) and accept it if both
   lie in [0, 1]

Quads are the usual shape for area lights. Light sampling picks a uniform
point on the surface and converts the area density to solid angle.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.quad import Quad, hit_quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> quad = Quad(
    ...     Q=ti.math.vec3(0, 0, 0),
    ...     u=ti.math.vec3(1, 0, 0),
    ...     v=ti.math.vec3(0, 0, 1)
    ... )
    >>> # Use hit_quad within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.interval import Interval, interval_contains, interval_surrounds
from pathtracer.core.ray import Ray, make_ray, ray_at
from pathtracer.core.sampling import random_float

from .sphere import LIGHT_T_MAX, LIGHT_T_MIN, HitRecord, make_miss_record, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays closer than this to parallel with the plane never hit it
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Quad:
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    The quad represents the parallelogram with vertices at:
        Q, Q+u, Q+v, Q+u+v

    Attributes:
        Q: The corner point of the quad (vec3).
        u: Edge vector from Q to adjacent corner (vec3).
        v: Edge vector from Q to other adjacent corner (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def _compute_quad_frame(quad: Quad):
    """Compute the quad's plane and the helper vector for planar coordinates.

    With n = u x v (unnormalized) and w = n / dot(n, n), a point P on the plane
    has planar coordinates

        alpha = dot(w, cross(P - Q, v))
        beta  = dot(w, cross(u, P - Q))

    so that P = Q + alpha * u + beta * v.

    Returns:
        Tuple of (normal, d, w, valid) where normal is the unit plane normal,
        d the plane constant dot(normal, Q), and valid is 0 for a degenerate
        quad whose edges are parallel.
    """
    n = tm.cross(quad.u, quad.v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w = vec3(0.0, 0.0, 0.0)
    valid = 0
    if n_dot_n > 1e-12:
        normal = n / ti.sqrt(n_dot_n)
        w = n / n_dot_n
        valid = 1

    d = tm.dot(normal, quad.Q)
    return normal, d, w, valid


@ti.func
def hit_quad(ray: Ray, quad: Quad, ray_t: Interval) -> HitRecord:
    """Test for ray-quad intersection.

    The ray-plane intersection is found by solving:
        ray.origin + t * ray.direction = Q + alpha * u + beta * v

    Taking the dot product with the unit normal:
        t = (D - dot(normal, ray.origin)) / dot(normal, ray.direction)

    Args:
        ray: The ray to test.
        quad: The quad to test intersection against.
        ray_t: Accepted range of the ray parameter.

    Returns:
        A HitRecord containing intersection information. The planar
        coordinates (alpha, beta) are stored as (u, v).
    """
    normal, d, w, valid = _compute_quad_frame(quad)
    denom = tm.dot(normal, ray.direction)

    result = make_miss_record()

    if valid == 1 and ti.abs(denom) >= PARALLEL_EPSILON:
        t = (d - tm.dot(normal, ray.origin)) / denom

        if interval_surrounds(ray_t, t):
            point = ray_at(ray, t)
            planar = point - quad.Q
            alpha = tm.dot(w, tm.cross(planar, quad.v))
            beta = tm.dot(w, tm.cross(quad.u, planar))

            # Planar coordinates are accepted on the closed unit square
            unit = Interval(min=0.0, max=1.0)
            if interval_contains(unit, alpha) and interval_contains(unit, beta):
                front_face, hit_normal = set_face_normal(ray.direction, normal)
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=point,
                    normal=hit_normal,
                    front_face=front_face,
                    u=alpha,
                    v=beta,
                )

    return result


@ti.func
def quad_normal(quad: Quad) -> vec3:
    """Compute the unit normal of a quad, normalize(cross(u, v))."""
    return tm.normalize(tm.cross(quad.u, quad.v))


@ti.func
def quad_area(quad: Quad) -> ti.f32:
    """Compute the area of a quad, |cross(u, v)|."""
    return tm.length(tm.cross(quad.u, quad.v))


@ti.func
def quad_pdf_value(quad: Quad, origin: vec3, direction: vec3) -> ti.f32:
    """Solid-angle density of sampling direction toward the quad.

    A uniform area density 1/area converts to solid angle through
    dist^2 / |cos(theta)|, where theta is the angle between the direction
    and the quad normal at the hit point.

    Args:
        quad: The light quad.
        origin: The shading point.
        direction: The direction to evaluate (unit length).

    Returns:
        The probability density (per steradian), 0 if the ray misses.
    """
    density = 0.0
    rec = hit_quad(
        make_ray(origin, direction),
        quad,
        Interval(min=LIGHT_T_MIN, max=LIGHT_T_MAX),
    )
    if rec.hit == 1:
        area = quad_area(quad)
        distance_squared = rec.t * rec.t * tm.dot(direction, direction)
        cosine = ti.abs(tm.dot(direction, rec.normal)) / tm.length(direction)
        if cosine > PARALLEL_EPSILON and area > 0.0:
            density = distance_squared / (cosine * area)

    return density


@ti.func
def quad_random_direction(quad: Quad, origin: vec3, rng: ti.u32):
    """Sample a unit direction from origin toward a uniform point on the quad.

    Args:
        quad: The light quad.
        origin: The shading point.
        rng: Random generator state.

    Returns:
        A tuple (direction, rng).
    """
    r1, rng = random_float(rng)
    r2, rng = random_float(rng)
    target = quad.Q + r1 * quad.u + r2 * quad.v
    return tm.normalize(target - origin), rng
