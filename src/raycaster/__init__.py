"""Taichi-based recursive ray caster.

This package renders scenes of spheres, planes and triangles lit by point
lights, with support for:
- Diffuse, mirror-reflective and Fresnel-weighted refractive materials
- Hard shadows from point lights
- Grid or jittered anti-aliasing
- Thin-lens depth of field
- Reproducible per-pixel random streams

Subpackages:
    core: Vector utilities, hit records, sampling, the integrator and renderer
    geometry: Shape primitives and intersection algorithms
    materials: Material data and per-type shading
    scene: Entity storage, lights, options and the Scene container
    camera: Thin-lens camera with ray generation
    preview: Image export utilities
"""

__version__ = "0.1.0"
