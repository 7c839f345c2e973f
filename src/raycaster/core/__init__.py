"""Core rendering module.

This module contains the fundamental building blocks for ray casting:

Components:
    ray: Ray data structure, vector helpers and optics (reflect, refract,
        fresnel)
    hit: Scene-level hit record and derived optics
    sampling: Deterministic per-pixel random streams
    integrator: Recursive shading (cast_ray) and the pixel kernel
    renderer: Row-batched rendering loop with progress reporting
    image: Pixel buffer that receives the final, clamped colors

All per-ray computation runs in Taichi kernels; the host side only sets up
fields and collects results.
"""

from .hit import (
    BIAS,
    RayHit,
    hit_fresnel,
    hit_reflection,
    hit_refraction,
    is_back_facing,
    make_miss,
    offset_origin,
)
from .ray import (
    Ray,
    cross,
    dot,
    fresnel,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    vec3,
)
from .sampling import (
    DEFAULT_SEED,
    init_stream,
    next_random,
    normalize_seed,
    random_in_square,
    random_in_unit_disk,
    wang_hash,
)

# Note: integrator, renderer and image are NOT imported here to avoid circular
# imports. Import directly from raycaster.core.integrator,
# raycaster.core.renderer or raycaster.core.image when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "fresnel",
    "BIAS",
    "RayHit",
    "make_miss",
    "is_back_facing",
    "offset_origin",
    "hit_reflection",
    "hit_refraction",
    "hit_fresnel",
    "DEFAULT_SEED",
    "wang_hash",
    "init_stream",
    "next_random",
    "random_in_square",
    "random_in_unit_disk",
    "normalize_seed",
]
