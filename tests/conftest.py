"""Pytest configuration for path tracer tests.

Taichi is initialized once per session. Scene, material and render-target
fields are module-level globals, so every test starts and ends with them
cleared.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate every field allocated by the modules under test.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear all global scene and render state around each test."""
    # Import here so that Taichi is initialized first
    from pathtracer.core.integrator import reset_integrator_settings, reset_render_target
    from pathtracer.materials.material import clear_material_registry
    from pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_material_registry()
        reset_render_target()
        reset_integrator_settings()

    _clear_all()
    yield
    _clear_all()
