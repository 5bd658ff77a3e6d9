"""Scene module for scene storage and construction.

Components:
    intersection: Sphere storage and closest-hit search
    manager: Scene manager coordinating spheres and materials
    spheres: Factory functions for the standard sphere scenes

Scene data lives in Taichi fields using a Structure-of-Arrays layout and
is read-only while a render kernel runs.
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .spheres import (
    create_ground_sphere_scene,
    create_material_showcase_scene,
    create_random_spheres_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scenes
    "create_ground_sphere_scene",
    "create_material_showcase_scene",
    "create_random_spheres_scene",
]
