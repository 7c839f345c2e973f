"""Thin-lens camera model with axis-angle orientation.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Orientation by a rotation axis and an angle in degrees
- A fixed 60 degree horizontal field of view at unit image-plane distance
- Fixed-grid (or jittered) sub-pixel sampling for anti-aliasing
- Lens sampling toward a focal point for depth of field

The orientation is converted to a unit quaternion, and the rows of the
corresponding rotation matrix are used directly as the right, up and forward
vectors. The axis (0, 0, 1) with angle 0 gives right = +X, up = +Y and
forward = +Z.

The camera also owns the seed of the per-pixel random streams used for
jitter and lens sampling (see raycaster.core.sampling).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>>
    >>> camera = ThinLensCamera(width=640, height=480, angle=15.0)
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(320, 240, 0, 0)  # Ray through the center pixel
"""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti
import taichi.math as tm

from raycaster.core.ray import Ray, make_ray, near_zero, vec3
from raycaster.core.sampling import DEFAULT_SEED, normalize_seed, random_in_square, random_in_unit_disk

if TYPE_CHECKING:
    from raycaster.scene.options import SceneOptions

logger = logging.getLogger(__name__)

# Horizontal field of view in degrees
FIELD_OF_VIEW = 60.0

# Size of one pixel on the image plane grid
PIXEL_UNIT = 1.0

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        width: Output image width in pixels.
        height: Output image height in pixels.
        position: Camera origin in world space (x, y, z).
        axis: Rotation axis of the camera orientation (non-zero).
        angle: Rotation about the axis in degrees.
        aperture_radius: Lens radius. 0 gives a pinhole.
        focal_length: Distance from the origin to the focal plane along each
            primary ray.
        aa_multiplier: Side length of the sub-pixel grid.
        seed: Seed of the per-pixel random streams.
    """

    width: int = 400
    height: int = 400
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    axis: tuple[float, float, float] = (0.0, 0.0, 1.0)
    angle: float = 0.0
    aperture_radius: float = 0.0
    focal_length: float = 1.0
    aa_multiplier: int = 1
    seed: int = DEFAULT_SEED

    @classmethod
    def from_options(cls, options: "SceneOptions") -> "ThinLensCamera":
        """Build the camera described by a SceneOptions."""
        return cls(
            width=options.width,
            height=options.height,
            position=options.camera_position,
            axis=options.camera_axis,
            angle=options.camera_angle,
            aperture_radius=options.aperture_radius,
            focal_length=options.focal_length,
            aa_multiplier=options.aa_multiplier,
            seed=options.seed,
        )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())

# Image plane
_bottom_left = ti.Vector.field(3, dtype=ti.f32, shape=())
_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())

# Sampling parameters
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_aa_multiplier = ti.field(dtype=ti.i32, shape=())
_pixel_offset = ti.field(dtype=ti.f32, shape=())
_aperture_radius = ti.field(dtype=ti.f32, shape=())
_focal_length = ti.field(dtype=ti.f32, shape=())
_seed = ti.field(dtype=ti.u32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def compute_camera_basis(
    axis: tuple[float, float, float],
    angle: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute the camera's right, up and forward vectors.

    The axis-angle rotation is turned into the unit quaternion
    (w, x, y, z) = (cos(a/2), axis * sin(a/2)); the three rows of its
    rotation matrix are the right, up and forward vectors.

    Args:
        axis: Rotation axis (normalized here).
        angle: Rotation angle in degrees.

    Returns:
        Tuple of (right, up, forward) as float64 arrays of unit length.

    Raises:
        ValueError: If the axis is the zero vector.
    """
    axis_vec = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis_vec)
    if norm == 0.0:
        raise ValueError(f"Camera axis must be non-zero, got {tuple(axis)}")
    ax, ay, az = axis_vec / norm

    half = math.radians(angle) / 2.0
    s = math.sin(half)
    qw = math.cos(half)
    qx, qy, qz = ax * s, ay * s, az * s

    right = np.array(
        [
            1.0 - 2.0 * qy * qy - 2.0 * qz * qz,
            2.0 * qx * qy - 2.0 * qw * qz,
            2.0 * qx * qz + 2.0 * qw * qy,
        ]
    )
    up = np.array(
        [
            2.0 * qx * qy + 2.0 * qw * qz,
            1.0 - 2.0 * qx * qx - 2.0 * qz * qz,
            2.0 * qy * qz - 2.0 * qw * qx,
        ]
    )
    forward = np.array(
        [
            2.0 * qx * qz - 2.0 * qw * qy,
            2.0 * qy * qz + 2.0 * qw * qx,
            1.0 - 2.0 * qx * qx - 2.0 * qy * qy,
        ]
    )
    return right, up, forward


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the orthonormal basis and the image plane, then writes them to
    the Taichi fields read by the ray generation functions. Must be called
    before rendering.

    The image plane sits at unit distance along forward:
        half_width = tan(FOV / 2), half_height = half_width / aspect
        bottom_left = origin - half_width * right - half_height * up + forward
        horizontal = 2 * half_width * right, vertical = 2 * half_height * up

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the image size or aa_multiplier is not positive, or
            the axis is zero.
    """
    if camera.width <= 0 or camera.height <= 0:
        raise ValueError(f"Image size must be positive, got {camera.width}x{camera.height}")
    if camera.aa_multiplier < 1:
        raise ValueError(f"aa_multiplier must be >= 1, got {camera.aa_multiplier}")

    right, up, forward = compute_camera_basis(camera.axis, camera.angle)
    origin = np.asarray(camera.position, dtype=np.float64)

    scale = math.tan(math.radians(FIELD_OF_VIEW) / 2.0)
    pixel_offset = (PIXEL_UNIT / 2.0) / camera.aa_multiplier
    half_width = PIXEL_UNIT * scale
    half_height = half_width / camera.aspect_ratio

    bottom_left = origin - half_width * right - half_height * up + forward
    horizontal = 2.0 * half_width * right
    vertical = 2.0 * half_height * up

    _camera_origin[None] = origin.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _camera_forward[None] = forward.tolist()
    _bottom_left[None] = bottom_left.tolist()
    _horizontal[None] = horizontal.tolist()
    _vertical[None] = vertical.tolist()

    _image_width[None] = camera.width
    _image_height[None] = camera.height
    _aa_multiplier[None] = camera.aa_multiplier
    _pixel_offset[None] = pixel_offset
    _aperture_radius[None] = camera.aperture_radius
    _focal_length[None] = camera.focal_length
    _seed[None] = normalize_seed(camera.seed)

    logger.debug(
        "Camera settings: aspect_ratio=%s pixel_offset=%s scale=%s origin=%s "
        "axis=%s angle=%s aperture_radius=%s focal_length=%s",
        camera.aspect_ratio,
        pixel_offset,
        scale,
        tuple(origin),
        tuple(camera.axis),
        camera.angle,
        camera.aperture_radius,
        camera.focal_length,
    )
    logger.debug(
        "Camera basis: right=%s up=%s forward=%s bottom_left=%s horizontal=%s vertical=%s",
        right.tolist(),
        up.tolist(),
        forward.tolist(),
        bottom_left.tolist(),
        horizontal.tolist(),
        vertical.tolist(),
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def _ray_through(u: ti.f32, v: ti.f32) -> Ray:
    """Ray from the camera origin through plane coordinates (u, v) in [0, 1]^2."""
    origin = _camera_origin[None]
    point = _bottom_left[None] + u * _horizontal[None] + v * _vertical[None]
    return make_ray(origin, point - origin)


@ti.func
def get_ray(x: ti.i32, y: ti.i32, i: ti.i32, j: ti.i32) -> Ray:
    """Generate the primary ray for a pixel and sub-pixel cell.

    The sample sits at the center of cell (i, j) of the
    aa_multiplier x aa_multiplier grid inside pixel (x, y). Pixel rows are
    counted from the top, so y is flipped onto the bottom-left image plane.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        i: Sub-pixel column in [0, aa_multiplier).
        j: Sub-pixel row in [0, aa_multiplier).

    Returns:
        A Ray from the camera origin with a unit direction.
    """
    offset = _pixel_offset[None]
    u = (ti.cast(x, ti.f32) + offset * ti.cast(i * 2 + 1, ti.f32)) / ti.cast(
        _image_width[None], ti.f32
    )
    v = 1.0 - (ti.cast(y, ti.f32) + offset * ti.cast(j * 2 + 1, ti.f32)) / ti.cast(
        _image_height[None], ti.f32
    )
    return _ray_through(u, v)


@ti.func
def get_ray_jittered(x: ti.i32, y: ti.i32, i: ti.i32, j: ti.i32, state: ti.u32):
    """Generate a primary ray at a random point inside sub-pixel cell (i, j).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        i: Sub-pixel column.
        j: Sub-pixel row.
        state: Random stream state.

    Returns:
        A tuple (origin, direction, new_state) with a unit direction.
    """
    ju, jv, s = random_in_square(state)
    cell = 2.0 * _pixel_offset[None]
    u = (ti.cast(x, ti.f32) + cell * (ti.cast(i, ti.f32) + ju)) / ti.cast(
        _image_width[None], ti.f32
    )
    v = 1.0 - (ti.cast(y, ti.f32) + cell * (ti.cast(j, ti.f32) + jv)) / ti.cast(
        _image_height[None], ti.f32
    )
    ray = _ray_through(u, v)
    return ray.origin, ray.direction, s


@ti.func
def get_lens_ray(ray_origin: vec3, focal_point: vec3, fallback_direction: vec3, state: ti.u32):
    """Generate a lens-perturbed ray toward a focal point.

    A point is drawn from the unit disk, scaled by the aperture radius and
    applied along the camera's right and up vectors to offset the origin.
    The new ray aims at the focal point. When the offset origin coincides
    with the focal point (focal length 0, pinhole aperture) there is no
    direction to aim at and fallback_direction is used instead.

    Args:
        ray_origin: Origin of the primary ray.
        focal_point: Point on the focal plane the ray must pass through.
        fallback_direction: Unit direction of the primary ray.
        state: Random stream state.

    Returns:
        A tuple (origin, direction, new_state) with a unit direction.
    """
    disk, s = random_in_unit_disk(state)
    dv = disk * _aperture_radius[None]
    origin = ray_origin + _camera_right[None] * dv.x + _camera_up[None] * dv.y

    direction = fallback_direction
    to_focus = focal_point - origin
    if not near_zero(to_focus):
        direction = tm.normalize(to_focus)
    return origin, direction, s


@ti.func
def use_depth_of_field() -> ti.i32:
    """Whether lens sampling is requested (aperture > 0 or focal length != 1)."""
    return _aperture_radius[None] > 0.0 or _focal_length[None] != 1.0


@ti.func
def get_focal_length() -> ti.f32:
    """Get the focal length of the current camera."""
    return _focal_length[None]


@ti.func
def get_aa_multiplier() -> ti.i32:
    """Get the sub-pixel grid side length of the current camera."""
    return _aa_multiplier[None]


@ti.func
def get_camera_seed() -> ti.u32:
    """Get the seed of the per-pixel random streams."""
    return _seed[None]


# =============================================================================
# Utility Functions
# =============================================================================


def is_dof_enabled() -> bool:
    """Whether the current camera requests depth of field."""
    return float(_aperture_radius[None]) > 0.0 or float(_focal_length[None]) != 1.0


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, right, up, forward, bottom_left, horizontal
        and vertical as 3-tuples.
    """
    fields = {
        "origin": _camera_origin,
        "right": _camera_right,
        "up": _camera_up,
        "forward": _camera_forward,
        "bottom_left": _bottom_left,
        "horizontal": _horizontal,
        "vertical": _vertical,
    }
    info = {}
    for name, f in fields.items():
        vec = f[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
