"""Pytest configuration for raycaster tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so that the modules declaring fields load after ti.init
    from raycaster.camera.thin_lens import ThinLensCamera, setup_camera
    from raycaster.core.integrator import (
        DEFAULT_DOF_SAMPLES,
        reset_render_target,
        set_aa_jitter,
        set_dof_samples,
    )
    from raycaster.materials.material import clear_materials
    from raycaster.scene.intersection import clear_scene
    from raycaster.scene.lights import clear_lights

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        reset_render_target()
        set_dof_samples(DEFAULT_DOF_SAMPLES)
        set_aa_jitter(False)
        setup_camera(ThinLensCamera())

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()
