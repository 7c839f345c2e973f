"""Scene-level ray hit record and the optics derived from it.

A RayHit describes the nearest intersection of a ray with the scene: the
position, the surface normal as produced by the primitive (not re-oriented
toward the ray), the incident direction and the material id of the surface.

Reflection, refraction and Fresnel reflectance are not stored on the record.
They are derived on demand by the hit_* functions below, which is where the
renderer gets its secondary ray directions from.
"""

import taichi as ti
import taichi.math as tm

from raycaster.core.ray import fresnel, reflect, refract

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Offset along the normal for secondary ray origins (avoids self-intersection).
# Sized for single-precision positions.
BIAS = 1e-4

# Rays whose direction is within this of parallel to a surface never hit it
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class RayHit:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any entity (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        position: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, oriented
            by the primitive. Spheres give the outward normal, planes and
            triangles give their construction-time normal on both sides.
            Only valid if hit == 1.
        incident: The direction of the ray that produced the hit.
        material_id: The material ID of the hit entity.
            Only valid if hit == 1. -1 indicates no hit.
    """

    hit: ti.i32
    t: ti.f32
    position: vec3
    normal: vec3
    incident: vec3
    material_id: ti.i32


@ti.func
def make_miss() -> RayHit:
    """Create a RayHit indicating no intersection."""
    return RayHit(
        hit=0,
        t=0.0,
        position=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        incident=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def is_back_facing(normal: vec3, incident: vec3) -> ti.i32:
    """Check whether a surface normal points along the incident ray."""
    return tm.dot(normal, incident) > 0.0


@ti.func
def offset_origin(rec: RayHit, side: ti.f32) -> vec3:
    """Push the hit position off the surface by BIAS.

    Args:
        rec: The hit record.
        side: +1.0 to move along the normal, -1.0 to move against it.

    Returns:
        position + side * BIAS * normal.
    """
    return rec.position + side * BIAS * rec.normal


@ti.func
def hit_reflection(rec: RayHit) -> vec3:
    """Mirror direction of the incident ray about the hit normal."""
    return reflect(rec.incident, rec.normal)


@ti.func
def hit_refraction(rec: RayHit, ior: ti.f32) -> vec3:
    """Refracted direction at the hit.

    Args:
        rec: The hit record.
        ior: Index of refraction of the hit material.

    Returns:
        The normalized refracted direction, or the zero vector under total
        internal reflection. Callers must skip the refraction branch when the
        zero vector is returned.
    """
    return refract(rec.incident, rec.normal, ior)


@ti.func
def hit_fresnel(rec: RayHit, ior: ti.f32) -> ti.f32:
    """Fresnel reflectance kr at the hit (1.0 under total internal reflection)."""
    return fresnel(rec.incident, rec.normal, ior)
