"""Geometry module for shape primitives.

This module provides the geometric primitives and their intersection
algorithms:

Components:
    sphere: Sphere primitive and the shared HitRecord
    plane: Infinite two-sided plane
    triangle: Two-sided triangle (Moller-Trumbore)

Each primitive kind is a Taichi dataclass with a matching hit_* function.
All intersection routines are Taichi functions (@ti.func) and share the
same calling pattern:
    rec = hit_shape(ray_origin, ray_direction, shape)

A valid hit always has rec.t > 0. Degenerate shapes (zero radius, zero
area) simply never report a hit.
"""

from .plane import Plane, hit_plane, make_plane
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere
from .triangle import Triangle, hit_triangle, make_triangle, triangle_normal

__all__ = [
    "HitRecord",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Plane",
    "hit_plane",
    "make_plane",
    "Triangle",
    "hit_triangle",
    "make_triangle",
    "triangle_normal",
]
