"""Deterministic random streams for anti-aliasing jitter and lens sampling.

Every pixel draws from its own stream. A stream is seeded by hashing the
camera seed together with the linear pixel index (Wang hash), then advanced
with xorshift32. Because the stream depends only on (seed, pixel), a render
is reproducible for a given seed no matter how Taichi schedules pixels
across threads.

The state is a plain ``ti.u32`` threaded through the calls: every sampling
function takes the current state and returns the new one alongside the
sample.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = init_stream(ti.u32(30019), ti.u32(7))
    ...     u, state = next_random(state)
    ...     return u
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Default seed of the per-pixel random streams
DEFAULT_SEED = 30019

# Upper bound on rejection sampling attempts for the unit disk. The
# acceptance rate is pi / 4, so the bound is never reached in practice.
MAX_DISK_ATTEMPTS = 64

# 2^-24: maps the top 24 bits of a u32 onto [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def wang_hash(x: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with Thomas Wang's integer hash."""
    h = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    h = h * ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h = h * ti.u32(0x27D4EB2D)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def init_stream(seed: ti.u32, index: ti.u32) -> ti.u32:
    """Create the initial state of the stream identified by index.

    Args:
        seed: The render seed (owned by the camera).
        index: The stream index, usually the linear pixel index.

    Returns:
        A non-zero xorshift32 state.
    """
    state = wang_hash(seed ^ wang_hash(index))
    if state == ti.u32(0):
        # xorshift32 is stuck at zero
        state = ti.u32(1)
    return state


@ti.func
def next_random(state: ti.u32):
    """Advance the stream and return a uniform float.

    Args:
        state: The current stream state.

    Returns:
        A tuple (value, new_state) with value uniformly distributed in [0, 1).
    """
    s = state
    s = s ^ (s << ti.u32(13))
    s = s ^ (s >> ti.u32(17))
    s = s ^ (s << ti.u32(5))
    value = ti.cast(s >> ti.u32(8), ti.f32) * _INV_2_POW_24
    return value, s


@ti.func
def random_in_square(state: ti.u32):
    """Draw a uniform point in [0, 1)^2.

    Returns:
        A tuple (u, v, new_state).
    """
    s = state
    u, s = next_random(s)
    v, s = next_random(s)
    return u, v, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a random point inside the unit disk in the xy-plane.

    Uses rejection sampling: (dx, dy) is drawn uniformly from [-1, 1]^2 and
    rejected while dx^2 + dy^2 >= 1.

    Args:
        state: The current stream state.

    Returns:
        A tuple (point, new_state) where point is (dx, dy, 0) with
        dx^2 + dy^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    found = 0
    for _ in range(MAX_DISK_ATTEMPTS):
        if found == 0:
            u, v, s = random_in_square(s)
            dx = 2.0 * u - 1.0
            dy = 2.0 * v - 1.0
            if dx * dx + dy * dy < 1.0:
                p = vec3(dx, dy, 0.0)
                found = 1
    return p, s


def normalize_seed(seed: int) -> int:
    """Fold a Python integer seed into the unsigned 32-bit range."""
    return int(seed) & 0xFFFFFFFF
