"""Material data and the device-side material registry.

A material is a color, a type tag and a refractive index. The type tag
selects the shading strategy used by the renderer:

    DIFFUSE: direct lighting from every unshadowed point light
    REFLECTIVE: the color seen along the mirror direction replaces the local
        color entirely
    REFRACTIVE: Fresnel-weighted blend of reflected and refracted colors

Materials are shared by reference: many entities point at the same material
id. The registry lives in Taichi fields (structure of arrays) so kernels can
look up the color, type and index of refraction of a hit by its material id.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.materials.material import Material, MaterialType, add_material
    >>> glass = Material(color=(1.0, 1.0, 1.0), type=MaterialType.REFRACTIVE,
    ...                  refractive_index=1.5)
    >>> glass_id = add_material(glass)
"""

from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the renderer to determine which shading
    strategy applies to a hit.
    """

    DIFFUSE = 0
    REFLECTIVE = 1
    REFRACTIVE = 2


@dataclass(frozen=True)
class Material:
    """Host-side description of a material.

    Attributes:
        color: The surface color as (R, G, B). Components must be
            non-negative; they are not clamped to [0, 1].
        type: The shading strategy.
        refractive_index: Index of refraction. Only meaningful for
            REFRACTIVE materials, where it must be at least 1.0.
    """

    color: tuple[float, float, float]
    type: MaterialType = MaterialType.DIFFUSE
    refractive_index: float = 1.0

    def __post_init__(self) -> None:
        if len(self.color) != 3:
            raise ValueError(f"Material color must have 3 components, got {self.color!r}")
        for i, component in enumerate(self.color):
            if component < 0.0:
                raise ValueError(f"Color component {i} = {component} is negative")
        # Normalize plain ints (e.g. from a parser) to the enum
        object.__setattr__(self, "type", MaterialType(self.type))
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))
        if self.type == MaterialType.REFRACTIVE and self.refractive_index < 1.0:
            raise ValueError(
                f"IOR = {self.refractive_index} is less than 1.0. "
                "Physical materials have IOR >= 1.0 (vacuum/air = 1.0)."
            )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 1024

# Storage for material properties, indexed by material id
material_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the material registry.

    Args:
        material: The material to register.

    Returns:
        The material id (index into the registry fields).

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    color = material.color
    material_colors[idx] = [color[0], color[1], color[2]]
    material_types[idx] = int(material.type)
    material_iors[idx] = material.refractive_index
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material id.

    Returns:
        The material type as an integer (see MaterialType), or -1 for
        invalid material ids.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_color(material_id: ti.i32) -> vec3:
    """Get the color of a material by id."""
    return material_colors[material_id]


@ti.func
def get_material_ior(material_id: ti.i32) -> ti.f32:
    """Get the index of refraction of a material by id."""
    return material_iors[material_id]
