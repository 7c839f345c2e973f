"""Point light storage.

Lights are stored in Taichi fields (structure of arrays) so the diffuse
shading loop can iterate over them inside kernels. A light is a position and
a color; the intensity is encoded in the color magnitude, so components
above 1.0 are allowed.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class PointLight:
    """A point light source.

    Attributes:
        position: World-space position (x, y, z).
        color: Light color (R, G, B). Non-negative, may exceed 1.0.
    """

    position: tuple[float, float, float]
    color: tuple[float, float, float]


# Maximum number of point lights in the scene
MAX_LIGHTS = 256

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Clear all lights from the scene."""
    num_lights[None] = 0


def add_point_light(
    position: tuple[float, float, float],
    color: tuple[float, float, float],
) -> int:
    """Add a point light to the scene.

    Args:
        position: The light position as (x, y, z).
        color: The light color as (R, G, B).

    Returns:
        The index of the added light.

    Raises:
        ValueError: If any color component is negative.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"Light color component {i} = {component} is negative")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = [position[0], position[1], position[2]]
    light_colors[idx] = [color[0], color[1], color[2]]
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])
