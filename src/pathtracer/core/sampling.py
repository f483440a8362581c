"""Seedable random source and directional sampling primitives.

Taichi's built-in ti.random() keeps hidden per-thread state that survives
across kernel launches, so two renders in the same process never see the same
numbers. The renderer instead uses a counter-based generator: every pixel
sample starts from a state hashed from (seed, stream, sample) and threads the
32-bit state explicitly through every sampling call. The same seed therefore
always reproduces the same image, independent of thread scheduling.

Every function takes the current state as its last argument and returns the
advanced state as its last result:

    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     rng = rng_seed(1, 0, 0)
    ...     x, rng = random_float(rng)
    ...     return x

Hashing follows Thomas Wang's 32-bit integer hash; the stream itself is a
xorshift32 generator. The directional samplers follow the usual
constructions (concentric disk mapping, z-uniform sphere sampling, Malley's
method for the cosine hemisphere, uniform cone in cos(theta)).
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Scale that maps the top 24 bits of the state to [0, 1)
_INV_2_24 = 1.0 / 16777216.0

# Lower bound for the lifted z of cosine samples (keeps cos(theta) > 0)
_MIN_COSINE_Z2 = 1e-6


# =============================================================================
# Generator State
# =============================================================================


@ti.func
def _wang_hash(x: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash."""
    h = x
    h = (h ^ ti.cast(61, ti.u32)) ^ ((h >> 16) & 0xFFFF)
    h *= ti.cast(9, ti.u32)
    h = h ^ ((h >> 4) & 0x0FFFFFFF)
    h *= ti.cast(0x27D4EB2D, ti.u32)
    h = h ^ ((h >> 15) & 0x1FFFF)
    return h


@ti.func
def rng_seed(seed: ti.i32, stream: ti.i32, sample: ti.i32) -> ti.u32:
    """Derive an independent generator state for one sample stream.

    Args:
        seed: Global seed of the render.
        stream: Stream identifier, typically the flattened pixel index.
        sample: Sample index within the stream.

    Returns:
        A non-zero 32-bit generator state.
    """
    h = _wang_hash(ti.cast(sample, ti.u32))
    h = _wang_hash(h ^ ti.cast(stream, ti.u32))
    h = _wang_hash(h ^ ti.cast(seed, ti.u32))
    if h == 0:
        h = ti.cast(1, ti.u32)
    return h


@ti.func
def random_float(rng: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple (value, rng).
    """
    s = rng
    s ^= s << 13
    s ^= (s >> 17) & 0x7FFF
    s ^= s << 5
    value = ti.cast((s >> 8) & 0xFFFFFF, ti.f32) * _INV_2_24
    return value, s


@ti.func
def random_range(lo: ti.f32, hi: ti.f32, rng: ti.u32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple (value, rng).
    """
    x, rng = random_float(rng)
    return lo + x * (hi - lo), rng


# =============================================================================
# Directional Sampling
# =============================================================================


@ti.func
def random_in_unit_disk(rng: ti.u32):
    """Uniform point inside the unit disk in the xy-plane.

    Uses the Shirley-Chiu concentric mapping rather than rejection, so each
    call consumes exactly two numbers.

    Returns:
        A tuple (point, rng) with point = (x, y, 0) and x^2 + y^2 <= 1.
    """
    a, rng = random_range(-1.0, 1.0, rng)
    b, rng = random_range(-1.0, 1.0, rng)
    r = 0.0
    phi = 0.0
    if a != 0.0 or b != 0.0:
        if ti.abs(a) > ti.abs(b):
            r = a
            phi = (tm.pi / 4.0) * (b / a)
        else:
            r = b
            phi = (tm.pi / 2.0) - (tm.pi / 4.0) * (a / b)
    return vec3(r * ti.cos(phi), r * ti.sin(phi), 0.0), rng


@ti.func
def random_unit_vector(rng: ti.u32):
    """Uniformly distributed unit vector on the sphere.

    Returns:
        A tuple (direction, rng).
    """
    u1, rng = random_float(rng)
    u2, rng = random_float(rng)
    z = 1.0 - 2.0 * u1
    r = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * u2
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z), rng


@ti.func
def random_in_unit_sphere(rng: ti.u32):
    """Uniformly distributed point inside the unit ball.

    Returns:
        A tuple (point, rng) with |point| <= 1.
    """
    direction, rng = random_unit_vector(rng)
    u, rng = random_float(rng)
    return direction * (u ** (1.0 / 3.0)), rng


@ti.func
def random_cosine_direction(rng: ti.u32):
    """Cosine-weighted direction in the local z-up hemisphere.

    A concentric disk sample is lifted onto the hemisphere (Malley's
    method), giving density cos(theta) / pi. The lifted z is bounded away
    from zero so the sampled direction always has positive density.

    Returns:
        A tuple (direction, rng) in the local frame.
    """
    p, rng = random_in_unit_disk(rng)
    z = ti.sqrt(ti.max(_MIN_COSINE_Z2, 1.0 - p.x * p.x - p.y * p.y))
    return tm.normalize(vec3(p.x, p.y, z)), rng


@ti.func
def random_in_cone(one_minus_cos: ti.f32, rng: ti.u32):
    """Uniform direction inside a cone around the local z-axis.

    The cone is given by 1 - cos(half-angle) so that very narrow cones keep
    their precision. z is uniform on [1 - one_minus_cos, 1].

    Args:
        one_minus_cos: One minus the cosine of the cone half-angle, in [0, 2].

    Returns:
        A tuple (direction, rng) in the local frame.
    """
    u1, rng = random_float(rng)
    u2, rng = random_float(rng)
    drop = u2 * one_minus_cos
    z = 1.0 - drop
    # 1 - z^2 = drop * (2 - drop)
    r = ti.sqrt(ti.max(0.0, drop * (2.0 - drop)))
    phi = 2.0 * tm.pi * u1
    return vec3(r * ti.cos(phi), r * ti.sin(phi), z), rng
