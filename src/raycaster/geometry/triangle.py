"""Triangle primitive with Moller-Trumbore intersection.

Triangles are two-sided: both winding orders produce hits. The face normal
is cross(v1 - v0, v2 - v0) normalized, so it follows the winding order the
vertices were given in and is not flipped toward the ray.

Meshes are stored as plain triangle lists (see Scene.add_mesh); there is no
shared vertex buffer on the device.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.geometry.triangle import Triangle, hit_triangle
    >>> tri = Triangle(
    ...     v0=ti.math.vec3(-1, -1, 0),
    ...     v1=ti.math.vec3(1, -1, 0),
    ...     v2=ti.math.vec3(0, 1, 0),
    ... )
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from raycaster.core.hit import PARALLEL_EPSILON
from raycaster.geometry.sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Triangle:
    """A triangle given by its three vertices.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Compute the unit face normal from the winding order."""
    return tm.normalize(tm.cross(tri.v1 - tri.v0, tri.v2 - tri.v0))


@ti.func
def hit_triangle(ray_origin: vec3, ray_direction: vec3, tri: Triangle) -> HitRecord:
    """Test for ray-triangle intersection using Moller-Trumbore.

    Solves origin + t * direction = (1 - u - v) * v0 + u * v1 + v * v2 with
    Cramer's rule. A hit requires u in [0, 1], v >= 0, u + v <= 1 and t > 0.
    No back-face culling is performed.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        tri: The triangle to test intersection against.

    Returns:
        A HitRecord carrying the winding-order face normal.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    edge1 = tri.v1 - tri.v0
    edge2 = tri.v2 - tri.v0
    pvec = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, pvec)

    # Zero-area triangles also land here (det == 0)
    if ti.abs(det) >= PARALLEL_EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - tri.v0
        u = tm.dot(tvec, pvec) * inv_det

        if u >= 0.0 and u <= 1.0:
            qvec = tm.cross(tvec, edge1)
            v = tm.dot(ray_direction, qvec) * inv_det

            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(edge2, qvec) * inv_det
                if t > 0.0:
                    did_hit = 1
                    hit_t = t
                    hit_point = ray_origin + t * ray_direction
                    hit_normal = tm.normalize(tm.cross(edge1, edge2))

    return HitRecord(hit=did_hit, t=hit_t, point=hit_point, normal=hit_normal)


@ti.func
def make_triangle(v0: vec3, v1: vec3, v2: vec3) -> Triangle:
    """Create a triangle from three vertices within a Taichi kernel."""
    return Triangle(v0=v0, v1=v1, v2=v2)
