"""Pytest configuration for path tracer tests.

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
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and reseed the random streams before each test.

    This ensures tests are isolated from each other and that every test
    sees the same random sequences regardless of execution order.
    """
    # Import here so Taichi is initialized before any field is declared
    from pathtracer.core import integrator
    from pathtracer.core.sampler import DEFAULT_SEED, seed_streams
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.lambertian import clear_lambertian_materials
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        integrator.clear_render_target()
        integrator._render_target_initialized[None] = 0

    _clear_all()
    seed_streams(DEFAULT_SEED)

    yield

    _clear_all()
