"""Ray data structure and vector utilities for recursive ray casting.

This module provides the fundamental Ray dataclass together with the vector
and optics helpers shared by the geometry, material and integrator modules.
All operations are Taichi functions so they can run inside rendering kernels.

Colors are represented by the same ``vec3`` type as positions and directions.
They are not clamped while light is accumulated; clamping to [0, 1] happens
only when a pixel is written to the output buffer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Threshold below which a vector component is considered zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Every producer in
            this package normalizes it before building the ray.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and a direction that is normalized here."""
    return Ray(origin=origin, direction=tm.normalize(direction))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Used for nearest-hit comparisons, where the square root is unnecessary.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Callers must guard near-zero vectors themselves (see near_zero); a zero
    vector has no direction.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to detect the zero-vector sentinel returned by refract() under
    total internal reflection.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Optics
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * dot(incident, normal) * normal and normalizes
    the result. The normal should be unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The normalized reflected direction.
    """
    return tm.normalize(incident - 2.0 * tm.dot(incident, normal) * normal)


@ti.func
def refract(incident: vec3, normal: vec3, ior: ti.f32) -> vec3:
    """Refract an incident vector through a surface using Snell's law.

    The side of the surface is derived from the incident direction: when
    dot(incident, normal) < 0 the ray enters the medium (eta = 1 / ior),
    otherwise it exits (eta = ior) and the normal is flipped.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal as stored on the hit (not flipped).
        ior: Index of refraction of the medium behind the surface.

    Returns:
        The normalized refracted direction, or the zero vector if total
        internal reflection occurs.
    """
    cos_i = tm.clamp(tm.dot(incident, normal), -1.0, 1.0)
    eta_i = 1.0
    eta_t = ior
    n = normal
    if cos_i < 0.0:
        # Entering the medium
        cos_i = -cos_i
    else:
        # Exiting the medium
        eta_i = ior
        eta_t = 1.0
        n = -normal

    eta = eta_i / eta_t
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)

    result = vec3(0.0, 0.0, 0.0)
    if k >= 0.0:
        result = tm.normalize(eta * incident + (eta * cos_i - ti.sqrt(k)) * n)
    return result


@ti.func
def fresnel(incident: vec3, normal: vec3, ior: ti.f32) -> ti.f32:
    """Compute the fraction of light reflected at a refractive boundary.

    Uses the Fresnel equations for unpolarized light (the mean of the s- and
    p-polarized reflectances). The transmitted fraction is 1 - kr.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal as stored on the hit (not flipped).
        ior: Index of refraction of the medium behind the surface.

    Returns:
        The reflectance kr in [0, 1]. Exactly 1.0 under total internal
        reflection.
    """
    cos_i = tm.clamp(tm.dot(incident, normal), -1.0, 1.0)
    eta_i = 1.0
    eta_t = ior
    if cos_i > 0.0:
        # Exiting the medium
        eta_i = ior
        eta_t = 1.0

    # Snell's law for the sine of the transmitted angle
    sin_t = eta_i / eta_t * ti.sqrt(tm.max(0.0, 1.0 - cos_i * cos_i))

    kr = 1.0
    if sin_t < 1.0:
        cos_t = ti.sqrt(tm.max(0.0, 1.0 - sin_t * sin_t))
        cos_i = ti.abs(cos_i)
        r_s = ((eta_t * cos_i) - (eta_i * cos_t)) / ((eta_t * cos_i) + (eta_i * cos_t))
        r_p = ((eta_i * cos_i) - (eta_t * cos_t)) / ((eta_i * cos_i) + (eta_t * cos_t))
        kr = (r_s * r_s + r_p * r_p) / 2.0
    return kr

