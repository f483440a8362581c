"""Parameter intervals along a ray.

An Interval bounds the ray parameter t accepted by an intersection test.
The lower bound is a small positive value (T_MIN) to avoid self-intersection
at the surface a ray was spawned from; the upper bound stands in for
"no hit" and is narrowed to the closest hit while scanning the scene.
"""

import taichi as ti


@ti.dataclass
class Interval:
    """A closed or open range [min, max] over the ray parameter.

    Attributes:
        min: Lower bound.
        max: Upper bound.
    """

    min: ti.f32
    max: ti.f32


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if x lies strictly inside the interval (endpoints excluded)."""
    return interval.min < x and x < interval.max


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if x lies inside the interval (endpoints included)."""
    return interval.min <= x and x <= interval.max
