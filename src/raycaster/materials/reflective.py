"""Reflective (mirror) material shading.

A reflective surface shows whatever is seen along the mirror direction. The
color returned by the secondary ray replaces the local color: there is no
blending with direct light and the material color is not applied.

The secondary ray starts on the normal side of the surface, offset by BIAS.
"""

import taichi as ti
import taichi.math as tm

from raycaster.core.hit import RayHit, hit_reflection, offset_origin

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_reflective(rec: RayHit):
    """Compute the secondary ray for a mirror hit.

    Args:
        rec: The hit record.

    Returns:
        A tuple of (origin, direction) for the reflected ray.
    """
    origin = offset_origin(rec, 1.0)
    direction = hit_reflection(rec)
    return origin, direction
