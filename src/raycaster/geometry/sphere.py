"""Sphere primitive with geometric ray-sphere intersection.

This module provides the Sphere dataclass, the primitive-level HitRecord
shared by every geometry kind, and the intersection function.

The intersection uses the geometric formulation rather than the raw
quadratic: project the center onto the ray to find the closest approach
``tc``, compare the squared closest-approach distance ``d^2`` with ``r^2``,
then step back and forth by the half chord ``thc = sqrt(r^2 - d^2)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Zero or negative radii never hit.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Always > 0 when hit == 1.
        point: The 3D point where the ray intersected the primitive.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, as defined
            by the primitive. It is not flipped to face the ray.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> HitRecord:
    """Test for ray-sphere intersection.

    With L = center - origin:
        tc = dot(L, direction)          (closest approach along the ray)
        d^2 = dot(L, L) - tc^2          (squared distance at closest approach)
        thc = sqrt(r^2 - d^2)           (half chord)
        t0 = tc - thc, t1 = tc + thc

    The sphere is skipped when the closest approach lies behind the origin
    (tc < 0) or when d^2 > r^2. Otherwise the first positive root wins, so a
    ray starting inside the sphere hits the far wall.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        sphere: The sphere to test intersection against.

    Returns:
        A HitRecord with the outward unit normal. Check the hit field to
        determine if an intersection occurred.
    """
    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    radius2 = sphere.radius * sphere.radius
    l = sphere.center - ray_origin
    tc = tm.dot(l, ray_direction)
    d2 = tm.dot(l, l) - tc * tc

    if sphere.radius > 0.0 and tc >= 0.0 and d2 <= radius2:
        thc = ti.sqrt(radius2 - d2)
        t = tc - thc
        if t <= 0.0:
            t = tc + thc

        if t > 0.0:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = tm.normalize(hit_point - sphere.center)

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius within a Taichi kernel."""
    return Sphere(center=center, radius=radius)
