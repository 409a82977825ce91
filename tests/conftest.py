"""Pytest configuration for ray tracer tests.

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
    """Clear spheres and textures before and after each test."""
    # Import here so the fields are allocated after ti.init()
    from whitted.materials.texture import clear_textures
    from whitted.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_textures()

    _clear_all()

    yield

    _clear_all()
