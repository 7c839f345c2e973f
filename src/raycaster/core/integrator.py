"""Recursive ray-casting integrator.

This module implements the shading kernel: for every pixel it averages the
colors of all sub-pixel samples (and, with depth of field, of all lens
samples per sub-pixel), each obtained by casting a ray into the scene.

Shading by material type:
    - Diffuse: sum over point lights of color * light * max(0, n . l) for
      every light that is not shadowed
    - Reflective: the color seen along the mirror direction
    - Refractive: Fresnel blend of the reflected and refracted colors
    - No hit: black

Taichi functions cannot recurse, so cast_ray walks an explicit stack of
(origin, direction, depth, weight) frames. A reflective hit passes its
weight on to the reflected frame; a refractive hit splits it into kr for the
reflected frame and 1 - kr for the refracted frame (only when kr < 1);
a diffuse hit adds weight * direct lighting. Frames deeper than MAX_DEPTH
contribute black, exactly as a depth-capped recursion would.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.core.integrator import render_image, setup_render_target
    >>> from raycaster.camera.thin_lens import ThinLensCamera, setup_camera
    >>>
    >>> setup_camera(ThinLensCamera(width=320, height=240))
    >>> setup_render_target(320, 240)
    >>> render_image()
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from raycaster.camera.thin_lens import (
    get_aa_multiplier,
    get_camera_seed,
    get_focal_length,
    get_lens_ray,
    get_ray,
    get_ray_jittered,
    use_depth_of_field,
)
from raycaster.core.hit import RayHit
from raycaster.core.sampling import init_stream
from raycaster.materials.diffuse import eval_diffuse
from raycaster.materials.material import (
    MaterialType,
    get_material_color,
    get_material_ior,
    get_material_type,
)
from raycaster.materials.reflective import scatter_reflective
from raycaster.materials.refractive import scatter_refractive
from raycaster.scene.intersection import cast_shadow, intersect_scene
from raycaster.scene.lights import light_colors, light_positions, num_lights

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum recursion depth; primary rays start at depth 1
MAX_DEPTH = 10

# Frame capacity of the cast_ray stack. Each refractive hit pops one frame
# and pushes two, so the stack never holds more than MAX_DEPTH + 1 frames.
STACK_SIZE = MAX_DEPTH + 2

# Default number of lens samples per sub-pixel with depth of field
DEFAULT_DOF_SAMPLES = 50

# =============================================================================
# Sampling Configuration
# =============================================================================

_dof_samples = ti.field(dtype=ti.i32, shape=())
_aa_jitter = ti.field(dtype=ti.i32, shape=())


def set_dof_samples(samples: int) -> None:
    """Set the number of lens samples per sub-pixel used with depth of field.

    Raises:
        ValueError: If samples is less than 1.
    """
    if samples < 1:
        raise ValueError(f"dof_samples must be >= 1, got {samples}")
    _dof_samples[None] = samples


def set_aa_jitter(enabled: bool) -> None:
    """Jitter sub-pixel samples inside their cell instead of using its center."""
    _aa_jitter[None] = 1 if enabled else 0


def get_dof_samples() -> int:
    """Get the number of lens samples per sub-pixel."""
    return int(_dof_samples[None])


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Unclamped color buffer indexed [x, y] with y = 0 at the top row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi
    kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to black."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Forget the render target so that rendering requires a new setup."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def shade_diffuse(rec: RayHit) -> vec3:
    """Direct lighting of a diffuse hit from every unshadowed point light.

    Args:
        rec: The hit record (material must be DIFFUSE).

    Returns:
        The unclamped sum of the light contributions.
    """
    color = vec3(0.0, 0.0, 0.0)
    material_color = get_material_color(rec.material_id)
    for k in range(num_lights[None]):
        light_position = light_positions[k]
        light_direction = tm.normalize(light_position - rec.position)
        if cast_shadow(rec.position, rec.normal, light_position, light_direction) == 0:
            color += eval_diffuse(material_color, light_colors[k], rec.normal, light_direction)
    return color


@ti.func
def cast_ray(origin: vec3, direction: vec3, depth: ti.i32) -> vec3:
    """Compute the color seen along a ray.

    Equivalent to the recursive formulation

        cast_ray(o, d, depth) = black                       if depth > MAX_DEPTH
                              = black                       on a miss
                              = direct lighting             on a diffuse hit
                              = cast_ray(reflection, depth + 1)
                                                            on a reflective hit
                              = kr * cast_ray(reflection, depth + 1)
                                + (1 - kr) * cast_ray(refraction, depth + 1)
                                                            on a refractive hit

    evaluated with an explicit stack of weighted frames.

    Args:
        origin: The ray origin.
        direction: The unit ray direction.
        depth: Recursion depth of this ray (primary rays use 1).

    Returns:
        The unclamped color.
    """
    color = vec3(0.0, 0.0, 0.0)

    # Frame stack, one local vector per component (dynamic indexing)
    stack_ox = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_oy = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_oz = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dx = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dy = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dz = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_depth = ti.Vector([0 for _ in range(STACK_SIZE)], dt=ti.i32)
    stack_weight = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_ptr = 0

    if depth <= MAX_DEPTH:
        stack_ox[0] = origin.x
        stack_oy[0] = origin.y
        stack_oz[0] = origin.z
        stack_dx[0] = direction.x
        stack_dy[0] = direction.y
        stack_dz[0] = direction.z
        stack_depth[0] = depth
        stack_weight[0] = 1.0
        stack_ptr = 1

    while stack_ptr > 0:
        # Pop frame
        stack_ptr -= 1
        o = vec3(stack_ox[stack_ptr], stack_oy[stack_ptr], stack_oz[stack_ptr])
        d = vec3(stack_dx[stack_ptr], stack_dy[stack_ptr], stack_dz[stack_ptr])
        frame_depth = stack_depth[stack_ptr]
        weight = stack_weight[stack_ptr]

        # Up to two child frames (a: reflection, b: refraction)
        a_origin = vec3(0.0, 0.0, 0.0)
        a_direction = vec3(0.0, 0.0, 0.0)
        a_weight = 0.0
        b_origin = vec3(0.0, 0.0, 0.0)
        b_direction = vec3(0.0, 0.0, 0.0)
        b_weight = 0.0

        rec = intersect_scene(o, d)
        if rec.hit == 1:
            mat_type = get_material_type(rec.material_id)

            if mat_type == int(MaterialType.DIFFUSE):
                color += weight * shade_diffuse(rec)

            elif mat_type == int(MaterialType.REFLECTIVE):
                a_origin, a_direction = scatter_reflective(rec)
                a_weight = weight

            elif mat_type == int(MaterialType.REFRACTIVE):
                ior = get_material_ior(rec.material_id)
                kr, refl_o, refl_d, refr_o, refr_d, has_refraction = scatter_refractive(rec, ior)
                a_origin = refl_o
                a_direction = refl_d
                a_weight = weight * kr
                if has_refraction == 1:
                    b_origin = refr_o
                    b_direction = refr_d
                    b_weight = weight * (1.0 - kr)

        # Children deeper than MAX_DEPTH would contribute black
        child_depth = frame_depth + 1
        if child_depth <= MAX_DEPTH:
            if b_weight > 0.0 and stack_ptr < STACK_SIZE:
                stack_ox[stack_ptr] = b_origin.x
                stack_oy[stack_ptr] = b_origin.y
                stack_oz[stack_ptr] = b_origin.z
                stack_dx[stack_ptr] = b_direction.x
                stack_dy[stack_ptr] = b_direction.y
                stack_dz[stack_ptr] = b_direction.z
                stack_depth[stack_ptr] = child_depth
                stack_weight[stack_ptr] = b_weight
                stack_ptr += 1
            if a_weight > 0.0 and stack_ptr < STACK_SIZE:
                stack_ox[stack_ptr] = a_origin.x
                stack_oy[stack_ptr] = a_origin.y
                stack_oz[stack_ptr] = a_origin.z
                stack_dx[stack_ptr] = a_direction.x
                stack_dy[stack_ptr] = a_direction.y
                stack_dz[stack_ptr] = a_direction.z
                stack_depth[stack_ptr] = child_depth
                stack_weight[stack_ptr] = a_weight
                stack_ptr += 1

    return color


@ti.func
def render_pixel_impl(x: ti.i32, y: ti.i32, width: ti.i32) -> vec3:
    """Compute the final (unclamped) color of one pixel.

    For each of the aa_multiplier^2 sub-pixel cells the primary ray is
    either cast once, or, with depth of field, replaced by dof_samples lens
    rays aimed at the focal point origin + direction * max(0, focal_length)
    whose colors are averaged. The sub-pixel colors are averaged again.

    The random stream of the pixel is seeded from the camera seed and the
    linear pixel index, so the result does not depend on scheduling.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.

    Returns:
        The pixel color.
    """
    state = init_stream(get_camera_seed(), ti.cast(y * width + x, ti.u32))
    aa = get_aa_multiplier()
    dof = use_depth_of_field()
    focal_length = tm.max(0.0, get_focal_length())

    samples = 1
    if dof:
        samples = _dof_samples[None]
        if samples < 1:
            samples = DEFAULT_DOF_SAMPLES

    color = vec3(0.0, 0.0, 0.0)
    for i in range(aa):
        for j in range(aa):
            origin = vec3(0.0, 0.0, 0.0)
            direction = vec3(0.0, 0.0, 1.0)
            if _aa_jitter[None] == 1:
                origin, direction, state = get_ray_jittered(x, y, i, j, state)
            else:
                ray = get_ray(x, y, i, j)
                origin = ray.origin
                direction = ray.direction

            focal_point = origin + direction * focal_length
            sub_color = vec3(0.0, 0.0, 0.0)
            for _ in range(samples):
                ray_origin = origin
                ray_direction = direction
                if dof:
                    ray_origin, ray_direction, state = get_lens_ray(
                        origin, focal_point, direction, state
                    )
                sub_color += cast_ray(ray_origin, ray_direction, 1)
            color += sub_color / ti.cast(samples, ti.f32)

    return color / ti.cast(aa * aa, ti.f32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(row_start: ti.i32, row_end: ti.i32, width: ti.i32):
    """Render rows [row_start, row_end) into the color buffer in parallel."""
    for y, x in ti.ndrange((row_start, row_end), (0, width)):
        _color_buffer[x, y] = render_pixel_impl(x, y, width)


@ti.kernel
def _render_single_pixel(x: ti.i32, y: ti.i32, width: ti.i32) -> vec3:
    """Render one pixel without touching the color buffer."""
    return render_pixel_impl(x, y, width)


@ti.kernel
def _trace(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
) -> vec3:
    """Cast a single ray given by scalar components."""
    return cast_ray(vec3(ox, oy, oz), vec3(dx, dy, dz), depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int) -> None:
    """Render a batch of rows into the render target.

    Args:
        row_start: First row (inclusive, 0 = top).
        row_end: Last row (exclusive). Clipped to the image height.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range is invalid.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    row_end = min(row_end, height)
    if row_start < 0 or row_start >= row_end:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")

    _render_rows(row_start, row_end, width)
    logger.debug("Finished rows %d-%d of %d", row_start, row_end - 1, height)


def render_image() -> None:
    """Render the whole image into the render target.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    logger.info("Rendering %dx%d image", width, height)
    _render_rows(0, height, width)
    logger.info("Finished rendering image")


def render_pixel(x: int, y: int) -> tuple[float, float, float]:
    """Render a single pixel and return its unclamped color.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel lies outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= x < width and 0 <= y < height):
        raise ValueError(f"Pixel ({x}, {y}) outside {width}x{height} image")
    color = _render_single_pixel(x, y, width)

    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = 1,
) -> tuple[float, float, float]:
    """Cast one ray into the current scene and return its color.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized here).
        depth: Recursion depth to start at. Values above MAX_DEPTH give black.

    Returns:
        Tuple of (R, G, B) color values (unclamped).

    Raises:
        ValueError: If direction is the zero vector.
    """
    d = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(d)
    if norm == 0.0:
        raise ValueError("Ray direction must be non-zero")
    d = d / norm
    color = _trace(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(d[0]),
        float(d[1]),
        float(d[2]),
        depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    The array has shape (height, width, 3), dtype float32, row 0 at the top.
    Values are not clamped.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    # Extract active region and transpose (width, height, 3) -> (height, width, 3)
    image = _color_buffer.to_numpy()[:width, :height, :]
    image = np.transpose(image, (1, 0, 2))

    return np.ascontiguousarray(image, dtype=np.float32)
