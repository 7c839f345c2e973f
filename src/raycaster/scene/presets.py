"""Demo scene configuration.

This module provides a factory function for a small showcase scene that
exercises every material type:

- A diffuse floor plane and a diffuse back wall
- A red diffuse sphere on the left
- A mirror sphere on the right
- A glass sphere in front, between the two
- A diffuse pyramid made of triangles behind the glass sphere
- Two point lights, a warm key light and a dim cool fill light

The coordinate system matches the default camera: the camera sits at the
origin looking along +Z with +Y up.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.scene.presets import create_demo_scene
    >>>
    >>> scene = create_demo_scene()
    >>> buffer = scene.render()
"""

from dataclasses import dataclass

from raycaster.materials.material import Material, MaterialType
from raycaster.scene.options import SceneOptions
from raycaster.scene.scene import Scene


@dataclass
class DemoSceneParams:
    """Parameters for configuring the demo scene.

    Attributes:
        key_light_color: RGB color of the key light.
        fill_light_color: RGB color of the fill light.
        glass_ior: Refractive index of the glass sphere.
        floor_color: RGB color of the floor plane.
    """

    key_light_color: tuple[float, float, float] = (1.0, 0.95, 0.85)
    fill_light_color: tuple[float, float, float] = (0.2, 0.25, 0.35)
    glass_ior: float = 1.5
    floor_color: tuple[float, float, float] = (0.75, 0.75, 0.75)


# =============================================================================
# Demo Scene Constants
# =============================================================================

FLOOR_Y = -1.0
BACK_WALL_Z = 12.0

RED_ALBEDO = (0.8, 0.15, 0.1)
WALL_ALBEDO = (0.4, 0.5, 0.7)
PYRAMID_ALBEDO = (0.9, 0.75, 0.2)
MIRROR_TINT = (0.9, 0.9, 0.9)
GLASS_TINT = (1.0, 1.0, 1.0)

KEY_LIGHT_POSITION = (-3.0, 5.0, 1.0)
FILL_LIGHT_POSITION = (4.0, 3.0, 2.0)


def create_demo_scene(
    options: SceneOptions | None = None,
    params: DemoSceneParams | None = None,
) -> Scene:
    """Create the demo scene.

    Args:
        options: Render options. Defaults to SceneOptions().
        params: Optional DemoSceneParams for customizing lights and materials.

    Returns:
        A Scene holding the geometry, materials and lights.

    Example:
        >>> scene = create_demo_scene(SceneOptions(width=200, height=150))
        >>> scene.entity_count
        9
    """
    if params is None:
        params = DemoSceneParams()

    scene = Scene(options)

    # =========================================================================
    # Materials
    # =========================================================================

    floor = Material(color=params.floor_color)
    wall = Material(color=WALL_ALBEDO)
    red = Material(color=RED_ALBEDO)
    gold = Material(color=PYRAMID_ALBEDO)
    mirror = Material(color=MIRROR_TINT, type=MaterialType.REFLECTIVE)
    glass = Material(
        color=GLASS_TINT,
        type=MaterialType.REFRACTIVE,
        refractive_index=params.glass_ior,
    )

    # =========================================================================
    # Planes
    # =========================================================================

    scene.add_plane((0.0, FLOOR_Y, 0.0), (0.0, 1.0, 0.0), floor)
    scene.add_plane((0.0, 0.0, BACK_WALL_Z), (0.0, 0.0, -1.0), wall)

    # =========================================================================
    # Spheres
    # =========================================================================

    # Resting on the floor
    scene.add_sphere((-1.6, 0.0, 7.0), 1.0, red)
    scene.add_sphere((1.6, 0.0, 7.0), 1.0, mirror)
    scene.add_sphere((0.0, -0.4, 4.5), 0.6, glass)

    # =========================================================================
    # Pyramid (4 triangles, apex up, faces wound toward the camera)
    # =========================================================================

    apex = (0.0, 1.2, 9.0)
    front_left = (-1.0, FLOOR_Y, 8.0)
    front_right = (1.0, FLOOR_Y, 8.0)
    back_left = (-1.0, FLOOR_Y, 10.0)
    back_right = (1.0, FLOOR_Y, 10.0)

    pyramid = scene.add_material(gold)
    scene.add_triangle(front_left, apex, front_right, pyramid)
    scene.add_triangle(front_right, apex, back_right, pyramid)
    scene.add_triangle(back_right, apex, back_left, pyramid)
    scene.add_triangle(back_left, apex, front_left, pyramid)

    # =========================================================================
    # Lights
    # =========================================================================

    scene.add_point_light(KEY_LIGHT_POSITION, params.key_light_color)
    scene.add_point_light(FILL_LIGHT_POSITION, params.fill_light_color)

    return scene
