"""Refractive (glass-like) material shading.

A refractive surface splits the incoming light into a reflected and a
refracted part weighted by the Fresnel reflectance kr:

    color = reflect_color * kr + refract_color * (1 - kr)

Under total internal reflection kr is exactly 1 and no refracted ray is
cast.

Ray origins are offset by BIAS so that the secondary rays start on the
correct side of the surface. With outside = dot(incident, normal) < 0:

    refraction origin: outside ? position - BIAS * n : position + BIAS * n
    reflection origin: outside ? position + BIAS * n : position - BIAS * n

Example:
    >>> # Inside a Taichi kernel or function:
    >>> # kr, refl_o, refl_d, refr_o, refr_d, has_refr = scatter_refractive(rec, 1.5)
"""

import taichi as ti
import taichi.math as tm

from raycaster.core.hit import (
    RayHit,
    hit_fresnel,
    hit_reflection,
    hit_refraction,
    offset_origin,
)
from raycaster.core.ray import near_zero

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def is_outside(rec: RayHit) -> ti.i32:
    """Check whether the ray arrives from the side the normal points to."""
    return tm.dot(rec.incident, rec.normal) < 0.0


@ti.func
def scatter_refractive(rec: RayHit, ior: ti.f32):
    """Compute both secondary rays of a refractive hit.

    Args:
        rec: The hit record.
        ior: Index of refraction of the material.

    Returns:
        A tuple of (kr, reflect_origin, reflect_direction, refract_origin,
        refract_direction, has_refraction). has_refraction is 0 when kr == 1
        or the refracted direction is the total internal reflection
        sentinel; the refract_* values are then meaningless.
    """
    kr = hit_fresnel(rec, ior)

    side = 1.0
    if is_outside(rec):
        side = -1.0

    refract_origin = offset_origin(rec, side)
    reflect_origin = offset_origin(rec, -side)
    reflect_direction = hit_reflection(rec)

    refract_direction = vec3(0.0, 0.0, 0.0)
    has_refraction = 0
    if kr < 1.0:
        refract_direction = hit_refraction(rec, ior)
        if not near_zero(refract_direction):
            has_refraction = 1

    return (
        kr,
        reflect_origin,
        reflect_direction,
        refract_origin,
        refract_direction,
        has_refraction,
    )
