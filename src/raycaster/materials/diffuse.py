"""Diffuse material shading.

A diffuse surface is lit directly by point lights. Each unshadowed light
contributes

    material_color * light_color * max(0, dot(normal, light_direction))

The light loop and the shadow test live in the integrator; this module only
provides the per-light term.
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def diffuse_strength(normal: vec3, light_direction: vec3) -> ti.f32:
    """Cosine falloff, truncated at zero for lights behind the surface."""
    return tm.max(0.0, tm.dot(normal, light_direction))


@ti.func
def eval_diffuse(
    material_color: vec3,
    light_color: vec3,
    normal: vec3,
    light_direction: vec3,
) -> vec3:
    """Evaluate the contribution of one light on a diffuse surface.

    Args:
        material_color: The surface color.
        light_color: The light color (intensity is encoded in its magnitude).
        normal: The unit surface normal at the hit.
        light_direction: The unit direction from the hit point to the light.

    Returns:
        The reflected color. Not clamped.
    """
    return material_color * light_color * diffuse_strength(normal, light_direction)
