"""Sphere primitive with robust ray-sphere intersection and light sampling.

This module provides the Sphere dataclass, the HitRecord shared by all
primitives, and the sphere's light-sampling pair (density and direction
generation) used when a sphere is designated as a light.

The intersection uses the robust quadratic formula from Ray Tracing Gems to
avoid catastrophic cancellation when b^2 is nearly equal to 4ac.

Light sampling draws directions uniformly from the cone that the sphere
subtends as seen from the shading point, rather than sampling points on the
sphere surface. For small or distant lights this wastes no samples on the
far side of the sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.interval import Interval, interval_surrounds
from pathtracer.core.ray import Ray, make_onb, make_ray, onb_local_to_world, ray_at
from pathtracer.core.sampling import random_in_cone, random_unit_vector

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Interval used when re-intersecting a light along a sampled direction
LIGHT_T_MIN = 0.001
LIGHT_T_MAX = 1e10


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The 3D intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always facing against the incoming
            ray (see set_face_normal). Only valid if hit == 1.
        front_face: 1 if the ray struck the side the geometric normal points
            to, 0 if it struck the back side. Only valid if hit == 1.
        u: First surface coordinate of the hit point.
        v: Second surface coordinate of the hit point.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    If the outward normal points the same way as the ray, the ray hit the
    back face and the normal is flipped.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: The geometric (outward) unit normal.

    Returns:
        A tuple (front_face, normal) where dot(ray_direction, normal) <= 0.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        u=0.0,
        v=0.0,
    )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) never subtracts nearly equal values
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the origin of the parameterization
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def _sphere_uv(unit_point: vec3):
    """Spherical (u, v) coordinates of a point on the unit sphere.

    u is the angle around the y-axis from x = -1, v the angle from y = -1,
    both normalized to [0, 1].
    """
    theta = ti.acos(tm.clamp(-unit_point.y, -1.0, 1.0))
    phi = ti.atan2(-unit_point.z, unit_point.x) + tm.pi
    return phi / (2.0 * tm.pi), theta / tm.pi


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, ray_t: Interval) -> HitRecord:
    """Test for ray-sphere intersection using the robust quadratic formula.

    The ray-sphere intersection is found by solving:
        |origin + t * direction - center|^2 = radius^2

    which gives a*t^2 + 2*h*t + c = 0 with:
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    The discriminant h^2 - a*c is evaluated as a * (radius^2 - |l|^2), where
    l = oc - (h / a) * direction is the offset from the center to the closest
    point on the ray's line. This stays accurate for spheres far away
    relative to their radius.

    The nearer root is taken if the interval surrounds it, otherwise the
    farther root is tested.

    Args:
        ray: The ray to test.
        sphere: The sphere to test intersection against.
        ray_t: Accepted range of the ray parameter.

    Returns:
        A HitRecord containing intersection information. Check the hit field
        to determine if intersection occurred.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    closest_offset = oc - (h / a) * ray.direction
    discriminant = a * (sphere.radius * sphere.radius - tm.dot(closest_offset, closest_offset))

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = interval_surrounds(ray_t, t)
        if not valid:
            t = t1
            valid = interval_surrounds(ray_t, t)

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray.direction, outward_normal)
            u, v = _sphere_uv(outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
                u=u,
                v=v,
            )

    return result


@ti.func
def cone_one_minus_cos(radius_squared: ti.f32, dist_squared: ti.f32) -> ti.f32:
    """1 - cos_theta_max of the cone a sphere subtends, without cancellation.

    With s = radius^2 / distance^2, 1 - sqrt(1 - s) equals
    s / (1 + sqrt(1 - s)), which keeps full precision as s approaches 0.
    """
    ratio = radius_squared / dist_squared
    return ratio / (1.0 + ti.sqrt(ti.max(0.0, 1.0 - ratio)))


@ti.func
def sphere_pdf_value(sphere: Sphere, origin: vec3, direction: vec3) -> ti.f32:
    """Solid-angle density of sampling direction toward the sphere.

    Matches sphere_random_direction(): uniform over the cone subtended by
    the sphere, i.e. 1 / (2 * pi * (1 - cos_theta_max)). Directions that miss
    the sphere have zero density. From inside the sphere every direction
    hits, and the density is uniform over the full sphere of directions.

    Args:
        sphere: The light sphere.
        origin: The shading point.
        direction: The direction to evaluate (unit length).

    Returns:
        The probability density (per steradian).
    """
    density = 0.0
    to_center = sphere.center - origin
    dist_squared = tm.dot(to_center, to_center)
    radius_squared = sphere.radius * sphere.radius

    if dist_squared <= radius_squared:
        density = 1.0 / (4.0 * tm.pi)
    else:
        rec = hit_sphere(
            make_ray(origin, direction),
            sphere,
            Interval(min=LIGHT_T_MIN, max=LIGHT_T_MAX),
        )
        if rec.hit == 1:
            density = 1.0 / (2.0 * tm.pi * cone_one_minus_cos(radius_squared, dist_squared))

    return density


@ti.func
def sphere_random_direction(sphere: Sphere, origin: vec3, rng: ti.u32):
    """Sample a unit direction from origin toward the sphere.

    Draws uniformly from the cone with half-angle asin(radius / distance)
    around the direction to the center.

    Args:
        sphere: The light sphere.
        origin: The shading point.
        rng: Random generator state.

    Returns:
        A tuple (direction, rng).
    """
    to_center = sphere.center - origin
    dist_squared = tm.dot(to_center, to_center)
    radius_squared = sphere.radius * sphere.radius

    direction = vec3(0.0, 0.0, 1.0)
    if dist_squared <= radius_squared:
        direction, rng = random_unit_vector(rng)
    else:
        local, rng = random_in_cone(cone_one_minus_cos(radius_squared, dist_squared), rng)
        onb = make_onb(tm.normalize(to_center))
        direction = tm.normalize(onb_local_to_world(onb, local))

    return direction, rng
