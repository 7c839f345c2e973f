"""Infinite plane primitive.

A plane is defined by a point on it (the center) and a unit normal. The
normal is fixed at construction and is never flipped toward the ray, so a
plane can be hit from either side; the scene query decides whether a
back-side hit counts.
"""

import taichi as ti
import taichi.math as tm

from raycaster.core.hit import PARALLEL_EPSILON
from raycaster.geometry.sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane through center with the given unit normal.

    Attributes:
        center: Any point on the plane.
        normal: The unit normal (normalized on the host when the plane is
            registered with the scene).
    """

    center: vec3
    normal: vec3


@ti.func
def hit_plane(ray_origin: vec3, ray_direction: vec3, plane: Plane) -> HitRecord:
    """Test for ray-plane intersection.

    Solves dot(origin + t * direction - center, normal) = 0 for t. Rays that
    run parallel to the plane never hit, and neither do intersections at or
    behind the ray origin.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        plane: The plane to test intersection against.

    Returns:
        A HitRecord carrying the plane's own normal.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    denom = tm.dot(ray_direction, plane.normal)
    if ti.abs(denom) > PARALLEL_EPSILON:
        t = tm.dot(plane.center - ray_origin, plane.normal) / denom
        if t > 0.0:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = plane.normal

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_plane(center: vec3, normal: vec3) -> Plane:
    """Create a plane within a Taichi kernel, normalizing the normal."""
    return Plane(center=center, normal=tm.normalize(normal))
