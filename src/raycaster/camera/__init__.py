"""Camera module for view and ray generation.

This module provides the camera model used to generate primary rays:

Components:
    thin_lens: Axis-angle oriented camera with sub-pixel sampling and lens
        sampling for depth of field

Camera responsibilities:
    - Build an orthonormal right/up/forward basis from an axis and angle
    - Map pixel and sub-pixel coordinates onto the image plane
    - Offset ray origins across the lens aperture toward a focal point
    - Own the seed of the per-pixel random streams

Image plane coordinates are normalized:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
Pixel rows are counted from the top, so ray generation flips y.
"""

from .thin_lens import (
    FIELD_OF_VIEW,
    ThinLensCamera,
    compute_camera_basis,
    get_aa_multiplier,
    get_camera_info,
    get_camera_seed,
    get_focal_length,
    get_lens_ray,
    get_ray,
    get_ray_jittered,
    is_dof_enabled,
    setup_camera,
    use_depth_of_field,
)

__all__ = [
    "FIELD_OF_VIEW",
    "ThinLensCamera",
    "compute_camera_basis",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_lens_ray",
    "get_camera_seed",
    "get_focal_length",
    "get_aa_multiplier",
    "use_depth_of_field",
    "get_camera_info",
    "is_dof_enabled",
]
