"""Unit tests for the thin-lens camera.

Tests cover:
- Quaternion basis from axis and angle
- Image plane setup (60 degree horizontal field of view)
- Primary ray generation with the anti-aliasing grid and flipped y
- Jittered sub-pixel rays
- Lens rays for depth of field
- Validation and configuration helpers
"""

import math

import numpy as np
import pytest
import taichi as ti


def _primary_ray(x, y, i=0, j=0):
    """Generate one primary ray with the current camera."""
    from raycaster.camera.thin_lens import get_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(x: ti.i32, y: ti.i32, i: ti.i32, j: ti.i32):
        ray = get_ray(x, y, i, j)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel(x, y, i, j)
    return origin[None].to_numpy(), direction[None].to_numpy()


class TestCameraBasis:
    """Tests for compute_camera_basis."""

    def test_default_orientation(self):
        """Test axis (0, 0, 1) with angle 0 looks along +Z with +Y up."""
        from raycaster.camera.thin_lens import compute_camera_basis

        right, up, forward = compute_camera_basis((0.0, 0.0, 1.0), 0.0)

        np.testing.assert_allclose(right, [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(up, [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(forward, [0.0, 0.0, 1.0], atol=1e-12)

    def test_zero_angle_ignores_axis(self):
        """Test any axis with angle 0 gives the default basis."""
        from raycaster.camera.thin_lens import compute_camera_basis

        right, up, forward = compute_camera_basis((1.0, 2.0, 3.0), 0.0)

        np.testing.assert_allclose(right, [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(up, [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(forward, [0.0, 0.0, 1.0], atol=1e-12)

    def test_quarter_turn_about_y(self):
        """Test a 90 degree turn about +Y uses the half-angle quaternion."""
        from raycaster.camera.thin_lens import compute_camera_basis

        right, up, forward = compute_camera_basis((0.0, 1.0, 0.0), 90.0)

        np.testing.assert_allclose(right, [0.0, 0.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(up, [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(forward, [-1.0, 0.0, 0.0], atol=1e-12)

    @pytest.mark.parametrize(
        "axis,angle",
        [((1.0, 0.0, 0.0), 30.0), ((0.3, -0.5, 0.8), 137.0), ((0.0, 0.0, 2.0), -45.0)],
    )
    def test_basis_is_orthonormal(self, axis, angle):
        """Test right, up and forward are orthonormal for any rotation."""
        from raycaster.camera.thin_lens import compute_camera_basis

        basis = np.stack(compute_camera_basis(axis, angle))
        np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)

    def test_axis_is_normalized(self):
        """Test the axis length does not change the rotation."""
        from raycaster.camera.thin_lens import compute_camera_basis

        a = np.stack(compute_camera_basis((0.0, 1.0, 0.0), 40.0))
        b = np.stack(compute_camera_basis((0.0, 5.0, 0.0), 40.0))
        np.testing.assert_allclose(a, b, atol=1e-12)

    def test_zero_axis_raises(self):
        """Test a zero-length axis is rejected."""
        from raycaster.camera.thin_lens import compute_camera_basis

        with pytest.raises(ValueError, match="non-zero"):
            compute_camera_basis((0.0, 0.0, 0.0), 10.0)


class TestCameraSetup:
    """Tests for setup_camera and the image plane."""

    def test_image_plane_uses_60_degree_fov(self):
        """Test the horizontal extent is 2 * tan(30 degrees) at unit distance."""
        from raycaster.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(ThinLensCamera(width=200, height=100))
        info = get_camera_info()

        expected_width = 2.0 * math.tan(math.radians(30.0))
        assert abs(info["horizontal"][0] - expected_width) < 1e-5
        assert abs(info["vertical"][1] - expected_width / 2.0) < 1e-5
        assert abs(info["bottom_left"][2] - 1.0) < 1e-6

    def test_setup_camera_writes_position(self):
        """Test the origin follows the configured position."""
        from raycaster.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(ThinLensCamera(position=(1.0, 2.0, -3.0)))
        info = get_camera_info()

        assert info["origin"] == pytest.approx((1.0, 2.0, -3.0))
        assert info["bottom_left"][2] == pytest.approx(-2.0)

    def test_invalid_size_raises(self):
        """Test non-positive image sizes are rejected."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        with pytest.raises(ValueError, match="positive"):
            setup_camera(ThinLensCamera(width=0, height=10))

    def test_invalid_aa_multiplier_raises(self):
        """Test aa_multiplier below 1 is rejected."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        with pytest.raises(ValueError, match="aa_multiplier"):
            setup_camera(ThinLensCamera(aa_multiplier=0))

    def test_from_options(self):
        """Test ThinLensCamera mirrors SceneOptions."""
        from raycaster.camera.thin_lens import ThinLensCamera
        from raycaster.scene.options import SceneOptions

        options = SceneOptions(
            width=64,
            height=32,
            camera_position=(1.0, 0.0, 0.0),
            camera_angle=20.0,
            aperture_radius=0.1,
            focal_length=3.0,
            aa_multiplier=2,
            seed=7,
        )
        camera = ThinLensCamera.from_options(options)

        assert camera.width == 64
        assert camera.height == 32
        assert camera.position == (1.0, 0.0, 0.0)
        assert camera.angle == 20.0
        assert camera.aperture_radius == 0.1
        assert camera.focal_length == 3.0
        assert camera.aa_multiplier == 2
        assert camera.seed == 7
        assert camera.aspect_ratio == 2.0

    def test_is_dof_enabled(self):
        """Test depth of field turns on with an aperture or a focal length != 1."""
        from raycaster.camera.thin_lens import ThinLensCamera, is_dof_enabled, setup_camera

        setup_camera(ThinLensCamera())
        assert not is_dof_enabled()

        setup_camera(ThinLensCamera(aperture_radius=0.2))
        assert is_dof_enabled()

        setup_camera(ThinLensCamera(focal_length=4.0))
        assert is_dof_enabled()


class TestPrimaryRays:
    """Tests for get_ray."""

    def test_center_pixel_looks_forward(self):
        """Test the center of an odd-sized image maps to the forward axis."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(width=3, height=3))
        origin, direction = _primary_ray(1, 1)

        np.testing.assert_allclose(origin, [0.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(direction, [0.0, 0.0, 1.0], atol=1e-6)

    def test_direction_is_unit_length(self):
        """Test primary ray directions are normalized."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(width=16, height=9))
        _, direction = _primary_ray(0, 0)
        assert abs(np.linalg.norm(direction) - 1.0) < 1e-5

    def test_top_row_points_up_and_left_column_points_left(self):
        """Test y = 0 is the top of the image and x = 0 its left side."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(width=9, height=9))
        _, top_left = _primary_ray(0, 0)
        _, bottom_right = _primary_ray(8, 8)

        assert top_left[0] < 0.0 and top_left[1] > 0.0
        assert bottom_right[0] > 0.0 and bottom_right[1] < 0.0

    def test_sub_pixel_grid(self):
        """Test the aa grid samples cell centers at (2i + 1) * 0.5 / aa."""
        from raycaster.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(ThinLensCamera(width=4, height=4, aa_multiplier=2))
        info = get_camera_info()
        _, direction = _primary_ray(0, 0, 1, 0)

        u = (0.0 + 0.25 * 3) / 4.0
        v = 1.0 - (0.0 + 0.25 * 1) / 4.0
        point = (
            np.array(info["bottom_left"])
            + u * np.array(info["horizontal"])
            + v * np.array(info["vertical"])
        )
        expected = point / np.linalg.norm(point)
        np.testing.assert_allclose(direction, expected, atol=1e-5)

    def test_rotated_camera_looks_along_forward(self):
        """Test the center ray follows the rotated forward vector."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(width=3, height=3, axis=(0.0, 1.0, 0.0), angle=90.0))
        _, direction = _primary_ray(1, 1)

        np.testing.assert_allclose(direction, [-1.0, 0.0, 0.0], atol=1e-5)


class TestJitteredRays:
    """Tests for get_ray_jittered."""

    def test_jittered_ray_stays_inside_pixel(self):
        """Test jittered rays stay within the pixel's footprint."""
        from raycaster.camera.thin_lens import ThinLensCamera, get_ray_jittered, setup_camera
        from raycaster.core.sampling import init_stream

        setup_camera(ThinLensCamera(width=3, height=3))
        n = 64
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                state = init_stream(ti.u32(30019), ti.u32(k))
                o, d, state = get_ray_jittered(1, 1, 0, 0, state)
                directions[k] = d

        test_kernel()
        d = directions.to_numpy()
        # Project onto the image plane at z = 1
        px = d[:, 0] / d[:, 2]
        py = d[:, 1] / d[:, 2]
        half_pixel = math.tan(math.radians(30.0)) / 3.0
        assert np.all(np.abs(px) <= half_pixel + 1e-5)
        assert np.all(np.abs(py) <= half_pixel + 1e-5)
        # Not all the same point
        assert np.ptp(px) > 0.0


class TestLensRays:
    """Tests for get_lens_ray."""

    def _lens_rays(self, n, focal_distance):
        from raycaster.camera.thin_lens import get_lens_ray, vec3
        from raycaster.core.sampling import init_stream

        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(focal: ti.f32):
            for k in range(n):
                state = init_stream(ti.u32(30019), ti.u32(k))
                primary = vec3(0.0, 0.0, 1.0)
                focal_point = primary * focal
                o, d, state = get_lens_ray(vec3(0.0, 0.0, 0.0), focal_point, primary, state)
                origins[k] = o
                directions[k] = d

        test_kernel(focal_distance)
        return origins.to_numpy(), directions.to_numpy()

    def test_lens_origins_within_aperture(self):
        """Test lens offsets stay within the aperture on the right/up plane."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(aperture_radius=0.5, focal_length=4.0))
        origins, _ = self._lens_rays(128, 4.0)

        r = np.sqrt(origins[:, 0] ** 2 + origins[:, 1] ** 2)
        assert np.all(r < 0.5 + 1e-6)
        assert np.all(np.abs(origins[:, 2]) < 1e-6)
        assert r.max() > 0.1

    def test_lens_rays_pass_through_focal_point(self):
        """Test every lens ray passes through the focal point."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(aperture_radius=0.5, focal_length=4.0))
        origins, directions = self._lens_rays(64, 4.0)

        t = (4.0 - origins[:, 2]) / directions[:, 2]
        points = origins + t[:, None] * directions
        np.testing.assert_allclose(points[:, :2], 0.0, atol=1e-4)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-5)

    def test_zero_aperture_keeps_primary_ray(self):
        """Test a pinhole aperture reproduces the primary ray."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(aperture_radius=0.0, focal_length=3.0))
        origins, directions = self._lens_rays(8, 3.0)

        np.testing.assert_allclose(origins, 0.0, atol=1e-6)
        np.testing.assert_allclose(directions, [[0.0, 0.0, 1.0]] * 8, atol=1e-6)

    def test_zero_focal_length_falls_back_to_primary_direction(self):
        """Test a focal point at the origin falls back to the primary direction."""
        from raycaster.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(aperture_radius=0.0, focal_length=0.0))
        _, directions = self._lens_rays(8, 0.0)

        assert np.all(np.isfinite(directions))
        np.testing.assert_allclose(directions, [[0.0, 0.0, 1.0]] * 8, atol=1e-6)
