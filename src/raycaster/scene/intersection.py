"""Scene-level primitive intersection and shadow testing.

This module stores the scene entities in Taichi fields and answers the two
queries the renderer needs:

    intersect_scene: the nearest hit of a ray, as a RayHit
    cast_shadow: whether a point is occluded from a point light

Each primitive kind (sphere, plane, triangle) has its own structure-of-arrays
storage with a per-entity material id, and its own loop in the queries.
Adding a primitive kind means adding a dataclass and hit function in
raycaster.geometry, a storage block here, and a loop in both queries.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.scene.intersection import (
    ...     add_sphere, add_plane, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, 5), 1.0, material_id=0)
    >>> add_plane((0, -1, 0), (0, 1, 0), material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from raycaster.core.hit import BIAS, RayHit, is_back_facing, make_miss
from raycaster.geometry.plane import Plane, hit_plane
from raycaster.geometry.sphere import HitRecord, Sphere, hit_sphere
from raycaster.geometry.triangle import Triangle, hit_triangle
from raycaster.materials.material import MaterialType, get_material_type

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class ShadowTest(IntEnum):
    """Occlusion policy used by cast_shadow.

    Z_AXIS: an occluder counts when its Z coordinate lies between the Z of
        the shaded point and the Z of the light (inclusive, either order).
        This only matches true occlusion when the light-to-surface direction
        is roughly aligned with the Z axis. The lower bound is the shaded
        point's own Z, not the Z of the biased shadow-ray origin, so an
        occluder sitting exactly at the surface's depth still counts. It
        is the default.
    DISTANCE: an occluder counts when it is closer to the shadow-ray origin
        than the light is.
    """

    Z_AXIS = 0
    DISTANCE = 1


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_PLANES = 256
MAX_TRIANGLES = 65536

# Initial squared distance for the nearest-hit search
FAR_DISTANCE_SQ = 1e30

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_material_ids = ti.field(dtype=ti.i32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Triangle storage (plain triangle list, no shared vertices)
triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_material_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())

# Active shadow policy (a ShadowTest value)
shadow_test_mode = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero and the shadow policy to Z_AXIS.
    The field data is not cleared but will be overwritten when new
    primitives are added.
    """
    num_spheres[None] = 0
    num_planes[None] = 0
    num_triangles[None] = 0
    shadow_test_mode[None] = int(ShadowTest.Z_AXIS)


def set_shadow_test(policy: ShadowTest | str) -> ShadowTest:
    """Select the occlusion policy used by cast_shadow.

    Args:
        policy: A ShadowTest member or its name ("z_axis", "distance").

    Returns:
        The selected ShadowTest.

    Raises:
        ValueError: If the policy name is unknown.
    """
    if isinstance(policy, str):
        try:
            policy = ShadowTest[policy.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown shadow test {policy!r}; expected one of "
                f"{[p.name.lower() for p in ShadowTest]}"
            ) from None
    policy = ShadowTest(policy)
    shadow_test_mode[None] = int(policy)
    return policy


def get_shadow_test() -> ShadowTest:
    """Get the active occlusion policy."""
    return ShadowTest(int(shadow_test_mode[None]))


def add_sphere(center: tuple[float, float, float], radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Non-positive radii are stored but
            never produce hits.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def add_plane(
    center: tuple[float, float, float],
    normal: tuple[float, float, float],
    material_id: int = 0,
) -> int:
    """Add an infinite plane to the scene.

    Args:
        center: Any point on the plane.
        normal: The plane normal. It is normalized here; a zero normal is
            stored as is and never produces hits.
        material_id: The material ID to associate with this plane.

    Returns:
        The index of the added plane.

    Raises:
        RuntimeError: If the maximum number of planes is exceeded.
    """
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")

    n = np.asarray(normal, dtype=np.float64)
    norm = np.linalg.norm(n)
    if norm > 0.0:
        n = n / norm

    plane_centers[idx] = [center[0], center[1], center[2]]
    plane_normals[idx] = n.tolist()
    plane_material_ids[idx] = material_id
    num_planes[None] = idx + 1
    return idx


def add_triangle(
    v0: tuple[float, float, float],
    v1: tuple[float, float, float],
    v2: tuple[float, float, float],
    material_id: int = 0,
) -> int:
    """Add a triangle to the scene.

    The winding order v0 -> v1 -> v2 defines the face normal.

    Returns:
        The index of the added triangle.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    triangle_v0[idx] = [v0[0], v0[1], v0[2]]
    triangle_v1[idx] = [v1[0], v1[1], v1[2]]
    triangle_v2[idx] = [v2[0], v2[1], v2[2]]
    triangle_material_ids[idx] = material_id
    num_triangles[None] = idx + 1
    return idx


@ti.kernel
def _copy_triangles(
    start: ti.i32,
    v0: ti.types.ndarray(),
    v1: ti.types.ndarray(),
    v2: ti.types.ndarray(),
    material_id: ti.i32,
):
    """Copy corner arrays of shape (n, 3) into the triangle fields."""
    for k in range(v0.shape[0]):
        idx = start + k
        triangle_v0[idx] = vec3(v0[k, 0], v0[k, 1], v0[k, 2])
        triangle_v1[idx] = vec3(v1[k, 0], v1[k, 1], v1[k, 2])
        triangle_v2[idx] = vec3(v2[k, 0], v2[k, 1], v2[k, 2])
        triangle_material_ids[idx] = material_id


def add_triangles(vertices: np.ndarray, faces: np.ndarray, material_id: int = 0) -> range:
    """Add a triangle list in bulk from vertex and face arrays.

    Args:
        vertices: Float array of shape (num_vertices, 3).
        faces: Integer array of shape (num_faces, 3) indexing into vertices.
        material_id: The material ID shared by every triangle.

    Returns:
        The range of indices assigned to the new triangles.

    Raises:
        ValueError: If the arrays have the wrong shape or a face index is out
            of range.
        RuntimeError: If the maximum number of triangles would be exceeded.
    """
    vertices = np.asarray(vertices, dtype=np.float32)
    faces = np.asarray(faces)
    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise ValueError(f"vertices must have shape (n, 3), got {vertices.shape}")
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError(f"faces must have shape (m, 3), got {faces.shape}")
    if not np.issubdtype(faces.dtype, np.integer):
        raise ValueError(f"faces must be an integer array, got dtype {faces.dtype}")
    if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
        raise ValueError(
            f"Face indices must be in [0, {len(vertices) - 1}], "
            f"got range [{faces.min()}, {faces.max()}]"
        )

    start = num_triangles[None]
    count = len(faces)
    if start + count > MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")

    if count:
        corners = vertices[faces]
        _copy_triangles(
            start,
            np.ascontiguousarray(corners[:, 0]),
            np.ascontiguousarray(corners[:, 1]),
            np.ascontiguousarray(corners[:, 2]),
            material_id,
        )
    num_triangles[None] = start + count
    return range(start, start + count)


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_triangle_count() -> int:
    """Get the number of triangles in the scene."""
    return int(num_triangles[None])


# =============================================================================
# Scene Queries
# =============================================================================


@ti.func
def _to_ray_hit(rec: HitRecord, ray_direction: vec3, material_id: ti.i32) -> RayHit:
    """Attach the incident direction and material ID to a primitive hit."""
    return RayHit(
        hit=rec.hit,
        t=rec.t,
        position=rec.point,
        normal=rec.normal,
        incident=ray_direction,
        material_id=material_id,
    )


@ti.func
def _accepts(rec: HitRecord, ray_direction: vec3, material_id: ti.i32) -> ti.i32:
    """Check whether a primitive hit may become the nearest hit.

    Back-facing hits (normal pointing along the ray) are skipped unless the
    material is refractive, so glass can be hit from the inside on exit.
    """
    ok = 0
    if rec.hit == 1:
        ok = 1
        if is_back_facing(rec.normal, ray_direction):
            if get_material_type(material_id) != int(MaterialType.REFRACTIVE):
                ok = 0
    return ok


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> RayHit:
    """Find the nearest hit of a ray among all entities.

    Hits are ordered by squared distance from the ray origin. On equal
    distance the entity tested last wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        The nearest accepted hit, or a miss record (hit == 0).
    """
    min_dist = FAR_DISTANCE_SQ
    result = make_miss()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere)
        mat = sphere_material_ids[i]
        if _accepts(rec, ray_direction, mat):
            dist = tm.dot(rec.point - ray_origin, rec.point - ray_origin)
            if dist <= min_dist:
                min_dist = dist
                result = _to_ray_hit(rec, ray_direction, mat)

    for i in range(num_planes[None]):
        plane = Plane(center=plane_centers[i], normal=plane_normals[i])
        rec = hit_plane(ray_origin, ray_direction, plane)
        mat = plane_material_ids[i]
        if _accepts(rec, ray_direction, mat):
            dist = tm.dot(rec.point - ray_origin, rec.point - ray_origin)
            if dist <= min_dist:
                min_dist = dist
                result = _to_ray_hit(rec, ray_direction, mat)

    for i in range(num_triangles[None]):
        tri = Triangle(v0=triangle_v0[i], v1=triangle_v1[i], v2=triangle_v2[i])
        rec = hit_triangle(ray_origin, ray_direction, tri)
        mat = triangle_material_ids[i]
        if _accepts(rec, ray_direction, mat):
            dist = tm.dot(rec.point - ray_origin, rec.point - ray_origin)
            if dist <= min_dist:
                min_dist = dist
                result = _to_ray_hit(rec, ray_direction, mat)

    return result


@ti.func
def _occludes(
    rec: HitRecord,
    shadow_origin: vec3,
    point_z: ti.f32,
    light_position: vec3,
) -> ti.i32:
    """Apply the active shadow policy to one shadow-ray hit."""
    blocked = 0
    if rec.hit == 1:
        if shadow_test_mode[None] == int(ShadowTest.DISTANCE):
            to_hit = rec.point - shadow_origin
            to_light = light_position - shadow_origin
            if tm.dot(to_hit, to_hit) < tm.dot(to_light, to_light):
                blocked = 1
        else:
            zh = rec.point.z
            zl = light_position.z
            if (point_z <= zh and zh <= zl) or (point_z >= zh and zh >= zl):
                blocked = 1
    return blocked


@ti.func
def cast_shadow(
    position: vec3,
    normal: vec3,
    light_position: vec3,
    light_direction: vec3,
) -> ti.i32:
    """Test whether a surface point is in shadow for one light.

    A shadow ray starts at position + BIAS * normal and travels along
    light_direction. Every entity is tested (no back-face skipping); the
    first hit accepted by the active ShadowTest policy shadows the point.

    Args:
        position: The shaded surface point.
        normal: The surface normal at that point.
        light_position: The light position.
        light_direction: Unit direction from position to the light.

    Returns:
        1 if the point is shadowed, 0 otherwise.
    """
    origin = position + BIAS * normal
    point_z = position.z
    shadowed = 0

    for i in range(num_spheres[None]):
        if shadowed == 0:
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(origin, light_direction, sphere)
            shadowed = _occludes(rec, origin, point_z, light_position)

    for i in range(num_planes[None]):
        if shadowed == 0:
            plane = Plane(center=plane_centers[i], normal=plane_normals[i])
            rec = hit_plane(origin, light_direction, plane)
            shadowed = _occludes(rec, origin, point_z, light_position)

    for i in range(num_triangles[None]):
        if shadowed == 0:
            tri = Triangle(v0=triangle_v0[i], v1=triangle_v1[i], v2=triangle_v2[i])
            rec = hit_triangle(origin, light_direction, tri)
            shadowed = _occludes(rec, origin, point_z, light_position)

    return shadowed
