"""Integration tests for the end-to-end rendering pipeline.

This module tests the complete pipeline from scene creation through the
final pixel buffer and PNG output. Tests are kept fast (low resolution, few
samples) while still exercising every material type.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import numpy as np
from PIL import Image as PILImage

WIDTH = 40
HEIGHT = 30


def _options(**changes):
    from raycaster.scene.options import SceneOptions

    return SceneOptions(width=WIDTH, height=HEIGHT).with_changes(**changes)


class TestDemoSceneIntegration:
    """Integration tests for rendering the demo scene."""

    def test_demo_scene_renders(self) -> None:
        from raycaster.scene.presets import create_demo_scene

        buffer = create_demo_scene(_options()).render()
        image = buffer.to_numpy()

        assert image.shape == (HEIGHT, WIDTH, 3)
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0
        # Lit floor and wall cover most of the frame
        assert np.mean(image.sum(axis=2) > 0.0) > 0.5

    def test_demo_scene_is_deterministic(self) -> None:
        from raycaster.scene.presets import create_demo_scene

        options = _options(aa_multiplier=2, aa_jitter=True)
        first = create_demo_scene(options).render().to_numpy()
        second = create_demo_scene(options).render().to_numpy()

        np.testing.assert_array_equal(first, second)

    def test_antialiasing_stays_close_to_single_sample(self) -> None:
        """Test a supersampled render differs from a plain one only at edges."""
        from raycaster.scene.presets import create_demo_scene

        plain = create_demo_scene(_options()).render().to_numpy()
        smooth = create_demo_scene(_options(aa_multiplier=3)).render().to_numpy()

        rmse = float(np.sqrt(np.mean((plain - smooth) ** 2)))
        assert 0.0 < rmse < 0.25

    def test_depth_of_field_render(self) -> None:
        from raycaster.scene.presets import create_demo_scene

        options = _options(aperture_radius=0.1, focal_length=7.0, dof_samples=4)
        image = create_demo_scene(options).render().to_numpy()

        assert np.all(np.isfinite(image))
        assert image.max() > 0.0

    def test_rotated_camera_sees_different_view(self) -> None:
        from raycaster.scene.presets import create_demo_scene

        front = create_demo_scene(_options()).render().to_numpy()
        turned = create_demo_scene(
            _options(camera_axis=(0.0, 1.0, 0.0), camera_angle=180.0)
        ).render().to_numpy()

        assert not np.array_equal(front, turned)

    def test_render_and_save(self, tmp_path) -> None:
        from raycaster.preview.export import save_png
        from raycaster.scene.presets import create_demo_scene

        buffer = create_demo_scene(_options()).render()
        filepath = tmp_path / "demo.png"
        save_png(buffer, filepath, gamma=2.2)

        img = PILImage.open(filepath)
        assert img.size == (WIDTH, HEIGHT)
        assert img.mode == "RGB"


class TestProgressReporting:
    """Integration tests for progress callbacks through Scene.render."""

    def test_progress_reaches_total(self) -> None:
        from raycaster.scene.presets import create_demo_scene

        calls = []
        create_demo_scene(_options()).render(
            callback=lambda done, total: calls.append((done, total)),
            batch_rows=7,
        )

        assert calls[-1] == (HEIGHT, HEIGHT)
        assert [done for done, _ in calls] == sorted(done for done, _ in calls)
        assert len(calls) == 5
