"""Scene module for entity storage, lights and scene-level queries.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Primitive storage and nearest-hit / shadow queries
    lights: Point light storage
    options: SceneOptions render configuration
    scene: Scene container driving rendering
    presets: Demo scene factory

Scene data is organized for efficient parallel access:
    - Structure-of-Arrays layout for geometric data
    - Per-primitive material ID arrays
    - Flat light arrays iterated during diffuse shading
"""

# Note: scene and presets are not imported here to avoid circular imports
# (they depend on the camera and the integrator, which depend on this package).
# Import them directly: from raycaster.scene.scene import Scene

from .intersection import (
    MAX_PLANES,
    MAX_SPHERES,
    MAX_TRIANGLES,
    ShadowTest,
    add_plane,
    add_sphere,
    add_triangle,
    add_triangles,
    cast_shadow,
    clear_scene,
    get_plane_count,
    get_shadow_test,
    get_sphere_count,
    get_triangle_count,
    intersect_scene,
    set_shadow_test,
)
from .lights import (
    MAX_LIGHTS,
    PointLight,
    add_point_light,
    clear_lights,
    get_light_count,
)
from .options import MAX_IMAGE_SIZE, SHADOW_TESTS, SceneOptions

__all__ = [
    # Intersection module
    "ShadowTest",
    "add_sphere",
    "add_plane",
    "add_triangle",
    "add_triangles",
    "clear_scene",
    "get_sphere_count",
    "get_plane_count",
    "get_triangle_count",
    "intersect_scene",
    "cast_shadow",
    "set_shadow_test",
    "get_shadow_test",
    "MAX_SPHERES",
    "MAX_PLANES",
    "MAX_TRIANGLES",
    # Lights module
    "PointLight",
    "add_point_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    # Options module
    "SceneOptions",
    "MAX_IMAGE_SIZE",
    "SHADOW_TESTS",
]
