"""Materials module for surface shading.

This module implements the three material types understood by the renderer:

Components:
    material: Material data, MaterialType and the device-side registry
    diffuse: Direct lighting term for diffuse surfaces
    reflective: Mirror reflection (secondary ray replaces the local color)
    refractive: Fresnel-weighted reflection and refraction

Materials are identified on the device by an integer material id. The
renderer looks up the type of the hit material and dispatches to the
matching shading function. Secondary rays are returned as (origin,
direction) pairs; the integrator decides when to follow them.
"""

from .diffuse import diffuse_strength, eval_diffuse
from .material import (
    MAX_MATERIALS,
    Material,
    MaterialType,
    add_material,
    clear_materials,
    get_material_color,
    get_material_count,
    get_material_ior,
    get_material_type,
    material_colors,
    material_iors,
    material_types,
    num_materials,
)
from .reflective import scatter_reflective
from .refractive import is_outside, scatter_refractive

__all__ = [
    # Registry
    "Material",
    "MaterialType",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_type",
    "get_material_color",
    "get_material_ior",
    "material_colors",
    "material_types",
    "material_iors",
    "num_materials",
    # Diffuse
    "eval_diffuse",
    "diffuse_strength",
    # Reflective
    "scatter_reflective",
    # Refractive
    "scatter_refractive",
    "is_outside",
]
